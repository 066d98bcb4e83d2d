"""FastAPI dependencies shared by the v1 endpoints."""

from typing import Optional

from fastapi import Body, Depends, HTTPException

from storesync.core.config import Settings, get_settings
from storesync.factories.clients import ClientFactory
from storesync.schemas.shopify import ShopifyCredentials


def get_client_factory(settings: Settings = Depends(get_settings)) -> ClientFactory:
    return ClientFactory(settings)


def require_credentials(credentials: Optional[ShopifyCredentials] = Body(None)) -> ShopifyCredentials:
    """Reject the request before any network call when domain or token is missing."""
    if credentials is None or not credentials.is_complete:
        raise HTTPException(status_code=400, detail="Domain and access token are required")
    return credentials


def require_sensay_api_key(settings: Settings = Depends(get_settings)) -> str:
    if not settings.sensay_api_key:
        raise HTTPException(status_code=500, detail="Sensay API key not configured")
    return settings.sensay_api_key
