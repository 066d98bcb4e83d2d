from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from storesync.schemas.base import CamelModel

# Raw products are kept exactly as returned by the Admin API.
RawProduct = Dict[str, Any]


class ShopifyCredentials(CamelModel):
    """Store domain and Admin API access token, supplied on every request."""
    domain: str = ""
    access_token: str = ""

    @field_validator("domain", mode="before")
    @classmethod
    def normalize_domain(cls, value):
        if value is None:
            return ""
        domain = str(value).strip()
        for scheme in ("https://", "http://"):
            if domain.lower().startswith(scheme):
                domain = domain[len(scheme):]
        return domain.rstrip("/")

    @field_validator("access_token", mode="before")
    @classmethod
    def strip_token(cls, value):
        return "" if value is None else str(value).strip()

    @property
    def is_complete(self) -> bool:
        return bool(self.domain) and bool(self.access_token)


class ConnectionStatus(CamelModel):
    connected: bool
    domain: Optional[str] = None
    shop_name: Optional[str] = None
    last_sync: Optional[str] = None
    product_count: Optional[int] = None
    error: Optional[str] = None


class ProcessedVariant(CamelModel):
    id: str
    title: str = "Default"
    price: str = "0"
    compare_at_price: Optional[str] = None
    sku: str = ""
    inventory: int = 0
    weight: float = 0
    weight_unit: str = "g"
    options: Dict[str, str] = Field(default_factory=dict)


class InventoryInfo(CamelModel):
    available: int = 0
    tracked: bool = False


class ProcessedProduct(CamelModel):
    """Normalized product used to build knowledge base content."""
    id: str
    title: str = ""
    description: str = ""
    price: str = "0"
    compare_at_price: Optional[str] = None
    sku: str = ""
    vendor: str = ""
    product_type: str = ""
    tags: List[str] = Field(default_factory=list)
    variants: List[ProcessedVariant] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    inventory: InventoryInfo = Field(default_factory=InventoryInfo)
    created_at: str = ""
    updated_at: str = ""
