"""Factory for creating Shopify and Sensay API clients."""

from typing import Optional

import httpx

from storesync.core.config import Settings
from storesync.core.exceptions import ConfigurationError
from storesync.schemas.shopify import ShopifyCredentials
from storesync.services.sensay.client import SensayClient
from storesync.services.shopify.client import ShopifyClient


class ClientFactory:
    """
    Builds per-request API clients from settings.

    Transports can be injected to point the clients at something other than
    the real APIs.
    """

    def __init__(
        self,
        settings: Settings,
        shopify_transport: Optional[httpx.AsyncBaseTransport] = None,
        sensay_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.shopify_transport = shopify_transport
        self.sensay_transport = sensay_transport

    def shopify(self, credentials: ShopifyCredentials) -> ShopifyClient:
        """
        Create a Shopify client for one store.

        Args:
            credentials: Store domain and Admin API access token

        Returns:
            ShopifyClient: Client bound to the store
        """
        return ShopifyClient(
            credentials,
            api_version=self.settings.shopify_api_version,
            timeout=self.settings.shopify_request_timeout,
            page_limit=self.settings.shopify_page_limit,
            transport=self.shopify_transport,
        )

    def sensay(self) -> SensayClient:
        """
        Create a Sensay client authenticated with the organization secret.

        Raises:
            ConfigurationError: If no Sensay API key is configured
        """
        if not self.settings.sensay_api_key:
            raise ConfigurationError("Sensay API key not configured")
        return SensayClient(
            api_key=self.settings.sensay_api_key,
            base_url=self.settings.sensay_base_url,
            api_version=self.settings.sensay_api_version,
            timeout=self.settings.sensay_request_timeout,
            transport=self.sensay_transport,
        )
