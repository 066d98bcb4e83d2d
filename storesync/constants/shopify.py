"""Constants for Shopify Admin API operations."""


class ShopifyEndpoint:
    """Admin REST API paths, relative to /admin/api/{version}."""
    SHOP = "/shop.json"
    PRODUCTS = "/products.json"
    PRODUCTS_COUNT = "/products/count.json"
    INVENTORY_LEVELS = "/inventory_levels.json"


class ShopifyHeader:
    ACCESS_TOKEN = "X-Shopify-Access-Token"


class ShopifyInventoryManagement:
    SHOPIFY = "shopify"


class ShopifyConnectionError:
    """User-facing messages for failed connection probes."""
    INVALID_TOKEN = "Invalid access token"
    STORE_NOT_FOUND = "Store not found"
    INVALID_DOMAIN = "Invalid store domain"
    TIMEOUT = "Connection timed out"
    UNKNOWN = "Unknown connection error"


MAX_PAGE_LIMIT = 250
