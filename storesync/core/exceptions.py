"""Exceptions raised by the storefront and AI provider integrations."""

from typing import Optional


class StoreSyncError(Exception):
    """Base class for integration errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ShopifyAPIError(StoreSyncError):
    """Shopify Admin API request failed."""


class SensayAPIError(StoreSyncError):
    """Sensay API request failed or returned an unsuccessful payload."""


class ConfigurationError(StoreSyncError):
    """Required configuration is missing."""
