"""End to end pipeline runs against the fake Shopify and Sensay APIs."""

import asyncio

import httpx
import pytest

from storesync.api.streaming import sync_event_stream
from storesync.factories.clients import ClientFactory
from storesync.services.progress import ProgressEmitter, ProgressRecorder
from storesync.services.sync import KnowledgeBaseSyncService, run_sync_pipeline

from tests.conftest import FakeShopify


async def _run(factory, credentials):
    recorder = ProgressRecorder()
    async with factory.shopify(credentials) as shopify, factory.sensay() as sensay:
        service = KnowledgeBaseSyncService(sensay, factory.settings)
        terminal = await run_sync_pipeline(credentials, shopify, service, ProgressEmitter(recorder))
    return terminal, recorder.events


@pytest.mark.asyncio
async def test_three_product_store(factory, credentials):
    terminal, events = await _run(factory, credentials)

    assert [(e.stage, e.progress) for e in events[:4]] == [
        ("connecting", 5), ("connecting", 15), ("fetching", 25), ("preparing", 35),
    ]
    assert events[3].product_count == 3
    assert [e.type for e in events].count("success") == 1
    assert events[-1] is terminal
    assert terminal.type == "success"
    assert terminal.progress == 100
    assert terminal.product_count == 3
    wire = terminal.to_wire()
    assert wire["knowledgeBaseId"] == 100
    assert wire["replicaUuid"] == "replica-1"
    assert len(wire["userId"]) == 16
    progress = [e.progress for e in events]
    assert progress == sorted(progress)


@pytest.mark.asyncio
async def test_invalid_token_stops_at_connecting(factory, credentials, fake_shopify, fake_sensay):
    fake_shopify.shop_status = 401

    terminal, events = await _run(factory, credentials)

    assert len(events) == 3
    assert terminal.type == "error"
    assert terminal.stage == "connecting"
    assert terminal.message == "Invalid access token"
    assert terminal.progress == 15
    assert not any(path.endswith("/products.json") for path in fake_shopify.paths())
    assert fake_sensay.calls == []


@pytest.mark.asyncio
async def test_empty_store_succeeds_without_sync(settings, credentials, fake_sensay):
    factory = ClientFactory(
        settings,
        shopify_transport=httpx.MockTransport(FakeShopify([])),
        sensay_transport=httpx.MockTransport(fake_sensay),
    )

    terminal, events = await _run(factory, credentials)

    assert [e.progress for e in events] == [5, 15, 25, 100]
    assert terminal.type == "success"
    assert terminal.product_count == 0
    assert fake_sensay.calls == []


@pytest.mark.asyncio
async def test_sync_failure_reports_error_with_last_progress(factory, credentials, fake_sensay):
    fake_sensay.fail_replica_creation = True

    terminal, events = await _run(factory, credentials)

    assert terminal.type == "error"
    assert terminal.stage == "syncing"
    assert "Replica quota exceeded" in terminal.message
    assert terminal.progress == 40
    assert [e.type for e in events].count("error") == 1


class RecordingFactory(ClientFactory):
    """Keeps the Shopify clients it hands out so tests can inspect them."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.shopify_clients = []

    def shopify(self, credentials):
        client = super().shopify(credentials)
        self.shopify_clients.append(client)
        return client


@pytest.mark.asyncio
async def test_closing_stream_cancels_and_cleans_up_pipeline(settings, credentials, fake_sensay):
    async def hanging_store(request):
        await asyncio.Event().wait()

    factory = RecordingFactory(
        settings,
        shopify_transport=httpx.MockTransport(hanging_store),
        sensay_transport=httpx.MockTransport(fake_sensay),
    )

    stream = sync_event_stream(credentials, factory)
    first = await stream.__anext__()
    await stream.aclose()

    assert '"progress": 5' in first
    assert factory.shopify_clients[0]._client.is_closed
    assert fake_sensay.calls == []
