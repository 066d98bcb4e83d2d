"""Pytest fixtures: fake Shopify and Sensay APIs served through httpx.MockTransport."""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from storesync.api.dependencies import get_client_factory
from storesync.core.config import Settings, get_settings
from storesync.factories.clients import ClientFactory
from storesync.main import app
from storesync.schemas.shopify import ShopifyCredentials

STORE_DOMAIN = "test-store.myshopify.com"
ACCESS_TOKEN = "shpat_test"


def make_product(product_id: int, title: str, price: str = "10.00", quantity: int = 5, **extra) -> Dict[str, Any]:
    product = {
        "id": product_id,
        "title": title,
        "body_html": f"<p>{title} description</p>",
        "vendor": "Acme",
        "product_type": "Widgets",
        "tags": "new, sale",
        "created_at": "2024-01-15T10:00:00Z",
        "updated_at": "2024-02-01T12:30:00Z",
        "variants": [
            {
                "id": product_id * 10,
                "title": "Default Title",
                "price": price,
                "sku": f"SKU-{product_id}",
                "inventory_quantity": quantity,
                "inventory_management": "shopify",
                "inventory_item_id": product_id * 100,
                "option1": "Default Title",
            }
        ],
        "images": [{"src": f"https://cdn.example.com/{product_id}.png"}],
    }
    product.update(extra)
    return product


class FakeShopify:
    """Admin API double; pages products with a ``Link`` cursor when needed."""

    def __init__(self, products: Optional[List[Dict[str, Any]]] = None, page_size: int = 250):
        self.products = products if products is not None else []
        self.page_size = page_size
        self.shop_status = 200
        self.products_status = 200
        self.calls: List[httpx.Request] = []

    def paths(self) -> List[str]:
        return [request.url.path for request in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        if path.endswith("/shop.json"):
            if self.shop_status != 200:
                return httpx.Response(self.shop_status, json={"errors": "[API] Invalid API key or access token"})
            return httpx.Response(200, json={"shop": {"name": "Test Store", "domain": STORE_DOMAIN}})
        if path.endswith("/products/count.json"):
            return httpx.Response(200, json={"count": len(self.products)})
        if path.endswith("/products.json"):
            if self.products_status != 200:
                return httpx.Response(self.products_status, json={"errors": "boom"})
            start = int(request.url.params.get("page_info") or 0)
            end = start + self.page_size
            headers = {}
            if end < len(self.products):
                headers["link"] = (
                    f'<https://{STORE_DOMAIN}/admin/api/2023-10/products.json?limit={self.page_size}'
                    f'&page_info={end}>; rel="next"'
                )
            return httpx.Response(200, json={"products": self.products[start:end]}, headers=headers)
        if path.endswith("/inventory_levels.json"):
            return httpx.Response(200, json={"inventory_levels": [{"inventory_item_id": 1, "available": 3}]})
        return httpx.Response(404, json={"errors": "Not Found"})


class FakeSensay:
    """Sensay API double keeping users, replicas and training entries in memory."""

    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.replicas: List[Dict[str, Any]] = []
        self.knowledge_bases: Dict[int, Dict[str, Any]] = {}
        self.next_kb_id = 100
        self.polls_until_ready = 1
        self.processing_status = "READY"
        self.fail_replica_creation = False
        self.chat_reply = "We have 3 widgets in stock."
        self.chat_status = 200
        self.calls: List[httpx.Request] = []

    def requests_to(self, method: str, path_prefix: str) -> List[httpx.Request]:
        return [r for r in self.calls if r.method == method and r.url.path.startswith(path_prefix)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        method, path = request.method, request.url.path
        body = json.loads(request.content) if request.content else {}

        if method == "POST" and path == "/v1/users":
            if body["id"] in self.users:
                return httpx.Response(409, json={"success": False, "error": "User already exists"})
            self.users[body["id"]] = body
            return httpx.Response(200, json={"success": True, "id": body["id"]})

        if path == "/v1/replicas":
            if method == "GET":
                return httpx.Response(200, json={"success": True, "items": self.replicas})
            if self.fail_replica_creation:
                return httpx.Response(500, json={"success": False, "error": "Replica quota exceeded"})
            replica = dict(body, uuid=f"replica-{len(self.replicas) + 1}")
            self.replicas.append(replica)
            return httpx.Response(200, json={"success": True, "uuid": replica["uuid"]})

        if path.startswith("/v1/replicas/") and path.count("/") == 3:
            uuid = path.rsplit("/", 1)[1]
            replica = next((r for r in self.replicas if r.get("uuid") == uuid), None)
            if replica is None:
                return httpx.Response(404, json={"success": False, "error": "Replica not found"})
            if method == "DELETE":
                self.replicas.remove(replica)
                return httpx.Response(200, json={"success": True})
            return httpx.Response(200, json=dict(replica, success=True))

        if path.endswith("/chat/completions"):
            if self.chat_status != 200:
                return httpx.Response(self.chat_status, json={"success": False, "error": "Replica unavailable"})
            return httpx.Response(200, json={"success": True, "content": self.chat_reply})

        if path.startswith("/v1/replicas/") and path.endswith("/training") and method == "POST":
            kb_id = self.next_kb_id
            self.next_kb_id += 1
            self.knowledge_bases[kb_id] = {
                "id": kb_id,
                "replica_uuid": path.split("/")[3],
                "type": "text",
                "status": "BLANK",
                "raw_text": "",
                "created_at": f"2024-03-01T00:00:{kb_id - 100:02d}Z",
                "polls": 0,
            }
            return httpx.Response(200, json={"success": True, "knowledgeBaseID": kb_id})

        if path.startswith("/v1/replicas/") and "/training/" in path and method == "PUT":
            kb = self.knowledge_bases[int(path.rsplit("/", 1)[1])]
            kb["raw_text"] = body["rawText"]
            kb["status"] = "PROCESSING"
            return httpx.Response(200, json={"success": True})

        if path == "/v1/training" and method == "GET":
            items = [
                {k: v for k, v in kb.items() if k != "polls"}
                for kb in self.knowledge_bases.values()
                if not request.url.params.get("status") or kb["status"] == request.url.params["status"]
            ]
            return httpx.Response(200, json={"success": True, "items": items})

        if path.startswith("/v1/training/"):
            kb_id = int(path.rsplit("/", 1)[1])
            kb = self.knowledge_bases.get(kb_id)
            if kb is None:
                return httpx.Response(404, json={"success": False, "error": "Not found"})
            if method == "DELETE":
                del self.knowledge_bases[kb_id]
                return httpx.Response(200, json={"success": True})
            kb["polls"] += 1
            if kb["polls"] >= self.polls_until_ready:
                kb["status"] = self.processing_status
            return httpx.Response(200, json={k: v for k, v in kb.items() if k != "polls"})

        return httpx.Response(404, json={"success": False, "error": f"Unhandled {method} {path}"})


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        sensay_api_key="test-key",
        kb_poll_interval=0,
        kb_poll_timeout=5,
    )


@pytest.fixture
def credentials():
    return ShopifyCredentials(domain=STORE_DOMAIN, access_token=ACCESS_TOKEN)


@pytest.fixture
def fake_shopify():
    return FakeShopify([
        make_product(1, "Blue Widget", "19.99", 4),
        make_product(2, "Red Widget", "24.50", 0),
        make_product(3, "Green Widget", "9.00", 12),
    ])


@pytest.fixture
def fake_sensay():
    return FakeSensay()


@pytest.fixture
def factory(settings, fake_shopify, fake_sensay):
    return ClientFactory(
        settings,
        shopify_transport=httpx.MockTransport(fake_shopify),
        sensay_transport=httpx.MockTransport(fake_sensay),
    )


@pytest.fixture
def client(settings, factory):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_client_factory] = lambda: factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
