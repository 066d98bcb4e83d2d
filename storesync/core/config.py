from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Sensay (AI knowledge base / replicas)
    sensay_api_key: Optional[str] = None
    sensay_base_url: str = "https://api.sensay.io"
    sensay_api_version: str = "2025-03-25"
    sensay_request_timeout: float = 60.0
    sensay_replica_model: str = "claude-3-7-sonnet-latest"

    # Shopify Admin API
    shopify_api_version: str = "2023-10"
    shopify_request_timeout: float = 30.0
    shopify_page_limit: int = 250

    # Knowledge base processing
    kb_wait_for_processing: bool = True
    kb_poll_interval: float = 3.0
    kb_poll_timeout: float = 120.0
    kb_poll_max_retries: int = 3

    # Progress stream
    stream_queue_size: int = 1

    cors_origins: List[str] = [
        "http://localhost",
        "http://localhost:3000",
    ]
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
