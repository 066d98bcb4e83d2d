"""Shopify Admin API client."""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx

from storesync.constants.shopify import (
    MAX_PAGE_LIMIT,
    ShopifyConnectionError,
    ShopifyEndpoint,
    ShopifyHeader,
)
from storesync.core.exceptions import ShopifyAPIError
from storesync.schemas.shopify import (
    ConnectionStatus,
    ProcessedProduct,
    RawProduct,
    ShopifyCredentials,
)
from storesync.services.shopify.converters import (
    format_for_knowledge_base,
    process_product_data,
)

__logger__ = logging.getLogger(__name__)

_PAGE_INFO = re.compile(r"page_info=([^&>]+)")


def extract_next_page_info(link_header: Optional[str]) -> Optional[str]:
    """Return the ``page_info`` cursor of the ``rel="next"`` link, if any."""
    if not link_header:
        return None
    for link in link_header.split(","):
        if 'rel="next"' in link:
            match = _PAGE_INFO.search(link)
            return match.group(1) if match else None
    return None


class ShopifyClient:
    """
    Thin async wrapper around the Shopify Admin REST API.

    One instance per request; close it with ``aclose()`` or use it as an
    async context manager.
    """

    def __init__(
        self,
        credentials: ShopifyCredentials,
        api_version: str = "2023-10",
        timeout: float = 30.0,
        page_limit: int = MAX_PAGE_LIMIT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self.api_version = api_version
        self.page_limit = min(page_limit, MAX_PAGE_LIMIT)
        self.base_url = f"https://{credentials.domain}/admin/api/{api_version}"
        self._client = httpx.AsyncClient(
            headers={
                ShopifyHeader.ACCESS_TOKEN: credentials.access_token,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ShopifyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _url(self, path: str) -> str:
        # Malformed domains surface as InvalidURL when the request is built.
        return f"{self.base_url}{path}"

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            response = await self._client.get(self._url(path), params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            __logger__.error(f"Shopify GET error on {path}: {e}")
            raise ShopifyAPIError(f"Shopify request to {path} failed: {e}") from e
        if response.is_error:
            __logger__.error(f"Shopify GET error on {path}: {response.status_code} - {response.text}")
            raise ShopifyAPIError(
                f"Shopify API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        return response

    async def test_connection(self) -> ConnectionStatus:
        """
        Probe the store with the shop endpoint.

        Expected failures (bad token, unknown store, network errors) are
        reported in the returned status instead of being raised.
        """
        try:
            response = await self._client.get(self._url(ShopifyEndpoint.SHOP))
        except httpx.TimeoutException as e:
            __logger__.warning(f"Shopify connection test timed out for {self.credentials.domain}: {e}")
            return ConnectionStatus(connected=False, error=ShopifyConnectionError.TIMEOUT)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            __logger__.warning(f"Shopify connection test failed for {self.credentials.domain}: {e}")
            return ConnectionStatus(connected=False, error=ShopifyConnectionError.INVALID_DOMAIN)

        if response.status_code == 401:
            error = ShopifyConnectionError.INVALID_TOKEN
        elif response.status_code == 404:
            error = ShopifyConnectionError.STORE_NOT_FOUND
        elif response.is_error:
            error = _error_from_payload(response) or ShopifyConnectionError.UNKNOWN
        else:
            try:
                shop = _json_object(response).get("shop") or {}
            except ValueError:
                shop = None
            if not isinstance(shop, dict):
                return ConnectionStatus(connected=False, error=ShopifyConnectionError.UNKNOWN)
            domain = shop.get("domain") or self.credentials.domain
            return ConnectionStatus(
                connected=True,
                domain=domain,
                shop_name=shop.get("name") or domain,
                last_sync=datetime.now(timezone.utc).isoformat(),
            )

        __logger__.warning(
            f"Shopify connection test failed for {self.credentials.domain}: "
            f"{response.status_code} - {error}"
        )
        return ConnectionStatus(connected=False, error=error)

    async def get_store_info(self) -> Dict[str, Any]:
        response = await self._get(ShopifyEndpoint.SHOP)
        try:
            return _json_object(response).get("shop") or {}
        except ValueError as e:
            raise ShopifyAPIError(f"Invalid shop response: {e}") from e

    async def get_product_count(self) -> int:
        """Product count reported by Shopify, 0 when it cannot be read."""
        try:
            response = await self._get(ShopifyEndpoint.PRODUCTS_COUNT)
            return int(_json_object(response).get("count", 0))
        except (ShopifyAPIError, ValueError, TypeError) as e:
            __logger__.error(f"Error fetching product count: {e}")
            return 0

    async def get_all_products(self) -> List[RawProduct]:
        """Fetch the whole catalog, following ``Link`` header cursors."""
        products: List[RawProduct] = []
        page_info: Optional[str] = None
        page = 0
        while True:
            params: Dict[str, Any] = {"limit": self.page_limit}
            if page_info:
                params["page_info"] = page_info
            try:
                response = await self._get(ShopifyEndpoint.PRODUCTS, params=params)
                batch = _json_object(response).get("products") or []
                if not isinstance(batch, list):
                    raise ValueError("products is not a list")
            except ShopifyAPIError as e:
                raise ShopifyAPIError(f"Failed to fetch products: {e}", status_code=e.status_code) from e
            except ValueError as e:
                raise ShopifyAPIError(f"Failed to fetch products: invalid response ({e})") from e

            page += 1
            products.extend(batch)
            page_info = extract_next_page_info(response.headers.get("link"))
            __logger__.debug(f"Fetched page {page} with {len(batch)} products")
            if not page_info:
                break

        __logger__.info(f"Fetched {len(products)} products from {self.credentials.domain}")
        return products

    async def get_inventory_levels(self, inventory_item_ids: Sequence[int]) -> Dict[str, Any]:
        if not inventory_item_ids:
            return {"inventory_levels": []}
        response = await self._get(
            ShopifyEndpoint.INVENTORY_LEVELS,
            params={
                "inventory_item_ids": ",".join(str(i) for i in inventory_item_ids),
                "limit": MAX_PAGE_LIMIT,
            },
        )
        try:
            return _json_object(response)
        except ValueError as e:
            raise ShopifyAPIError(f"Invalid inventory levels response: {e}") from e

    def process_product_data(self, products: List[RawProduct]) -> List[ProcessedProduct]:
        return process_product_data(products)

    def format_for_knowledge_base(self, products: List[ProcessedProduct]) -> str:
        return format_for_knowledge_base(products)


def _json_object(response: httpx.Response) -> Dict[str, Any]:
    """Decoded JSON body; raises ValueError unless it is an object."""
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _error_from_payload(response: httpx.Response) -> Optional[str]:
    try:
        errors = response.json().get("errors")
    except (ValueError, AttributeError):
        return None
    if not errors:
        return None
    return errors if isinstance(errors, str) else str(errors)
