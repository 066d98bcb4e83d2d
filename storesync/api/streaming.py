"""Server-sent events gateway for the sync pipeline."""

import asyncio
import contextlib
import logging
from typing import AsyncIterator

from storesync.factories.clients import ClientFactory
from storesync.schemas.shopify import ShopifyCredentials
from storesync.services.progress import ProgressEmitter, SyncEventChannel, encode_sse
from storesync.services.sync import KnowledgeBaseSyncService, run_sync_pipeline

_logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _produce(credentials: ShopifyCredentials, factory: ClientFactory, channel: SyncEventChannel) -> None:
    emitter = ProgressEmitter(channel.put)
    try:
        async with factory.shopify(credentials) as shopify, factory.sensay() as sensay:
            sync_service = KnowledgeBaseSyncService(sensay, factory.settings)
            await run_sync_pipeline(credentials, shopify, sync_service, emitter)
    except Exception as e:
        _logger.exception(f"Sync stream error for {credentials.domain}")
        await emitter.fail(str(e) or "Unexpected error during sync")
    # Not reached on cancellation: the consumer is already gone then.
    await channel.close()


async def sync_event_stream(
    credentials: ShopifyCredentials,
    factory: ClientFactory,
    queue_size: int = 1,
) -> AsyncIterator[str]:
    """
    Run the pipeline in its own task and forward its events as SSE frames.

    Frames are yielded in emission order, one per event. If the client goes
    away the generator is closed and the pipeline task is cancelled.
    """
    channel = SyncEventChannel(maxsize=queue_size)
    producer = asyncio.create_task(_produce(credentials, factory, channel))
    try:
        async for event in channel:
            yield encode_sse(event)
        await producer
    finally:
        if not producer.done():
            _logger.info(f"Sync stream for {credentials.domain} closed before completion, cancelling")
            producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer
