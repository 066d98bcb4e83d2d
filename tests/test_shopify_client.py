import httpx
import pytest

from storesync.core.exceptions import ShopifyAPIError
from storesync.schemas.shopify import ShopifyCredentials
from storesync.services.shopify import ShopifyClient, extract_next_page_info

from tests.conftest import ACCESS_TOKEN, STORE_DOMAIN, FakeShopify, make_product


def _client(handler, domain=STORE_DOMAIN, page_limit=250):
    return ShopifyClient(
        ShopifyCredentials(domain=domain, access_token=ACCESS_TOKEN),
        page_limit=page_limit,
        transport=httpx.MockTransport(handler),
    )


def test_extract_next_page_info():
    header = (
        '<https://s.myshopify.com/admin/api/2023-10/products.json?page_info=abc&limit=250>; rel="previous", '
        '<https://s.myshopify.com/admin/api/2023-10/products.json?page_info=xyz123&limit=250>; rel="next"'
    )
    assert extract_next_page_info(header) == "xyz123"
    assert extract_next_page_info('<https://x/products.json?page_info=abc>; rel="previous"') is None
    assert extract_next_page_info(None) is None


def test_credentials_normalize_domain():
    creds = ShopifyCredentials(domain=" https://shop.myshopify.com/ ", accessToken=" tok ")
    assert creds.domain == "shop.myshopify.com"
    assert creds.access_token == "tok"
    assert creds.is_complete
    assert not ShopifyCredentials(domain="shop.myshopify.com").is_complete


@pytest.mark.asyncio
async def test_connection_success_sends_token(fake_shopify):
    async with _client(fake_shopify) as client:
        status = await client.test_connection()

    assert status.connected
    assert status.shop_name == "Test Store"
    assert status.domain == STORE_DOMAIN
    assert status.last_sync
    request = fake_shopify.calls[0]
    assert request.headers["X-Shopify-Access-Token"] == ACCESS_TOKEN
    assert str(request.url) == f"https://{STORE_DOMAIN}/admin/api/2023-10/shop.json"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code, message", [
    (401, "Invalid access token"),
    (404, "Store not found"),
    (403, "[API] Invalid API key or access token"),
])
async def test_connection_failures_are_reported(status_code, message):
    fake = FakeShopify()
    fake.shop_status = status_code
    async with _client(fake) as client:
        status = await client.test_connection()

    assert not status.connected
    assert status.error == message


@pytest.mark.asyncio
async def test_connection_network_errors():
    def timeout(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    def refused(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    async with _client(timeout) as client:
        assert (await client.test_connection()).error == "Connection timed out"
    async with _client(refused) as client:
        assert (await client.test_connection()).error == "Invalid store domain"


@pytest.mark.asyncio
async def test_get_all_products_follows_cursor():
    fake = FakeShopify([make_product(i, f"Product {i}") for i in range(1, 6)], page_size=2)
    async with _client(fake, page_limit=2) as client:
        products = await client.get_all_products()

    assert [p["id"] for p in products] == [1, 2, 3, 4, 5]
    product_calls = [r for r in fake.calls if r.url.path.endswith("/products.json")]
    assert len(product_calls) == 3
    assert "page_info" not in product_calls[0].url.params
    assert product_calls[1].url.params["page_info"] == "2"
    assert product_calls[0].url.params["limit"] == "2"


@pytest.mark.asyncio
async def test_get_all_products_error():
    fake = FakeShopify([make_product(1, "A")])
    fake.products_status = 500
    async with _client(fake) as client:
        with pytest.raises(ShopifyAPIError) as exc_info:
            await client.get_all_products()

    assert str(exc_info.value).startswith("Failed to fetch products")
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_product_count_and_inventory(fake_shopify):
    async with _client(fake_shopify) as client:
        assert await client.get_product_count() == 3
        levels = await client.get_inventory_levels([10, 20])
        assert await client.get_inventory_levels([]) == {"inventory_levels": []}

    assert levels["inventory_levels"][0]["available"] == 3
    inventory_call = fake_shopify.calls[-1]
    assert inventory_call.url.params["inventory_item_ids"] == "10,20"


@pytest.mark.asyncio
async def test_product_count_defaults_to_zero_on_error():
    async with _client(lambda request: httpx.Response(500, text="oops")) as client:
        assert await client.get_product_count() == 0


@pytest.mark.asyncio
async def test_get_store_info(fake_shopify):
    async with _client(fake_shopify) as client:
        shop = await client.get_store_info()

    assert shop == {"name": "Test Store", "domain": STORE_DOMAIN}


@pytest.mark.asyncio
async def test_non_object_json_is_handled():
    async with _client(lambda request: httpx.Response(200, json=["not", "a", "shop"])) as client:
        status = await client.test_connection()
        assert await client.get_product_count() == 0
        with pytest.raises(ShopifyAPIError, match="Failed to fetch products"):
            await client.get_all_products()
        with pytest.raises(ShopifyAPIError):
            await client.get_store_info()

    assert not status.connected
    assert status.error == "Unknown connection error"
