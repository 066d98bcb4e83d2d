"""Shopify services package."""

from storesync.services.shopify.client import (
    ShopifyClient,
    extract_next_page_info,
)

from storesync.services.shopify.converters import (
    format_display_date,
    format_for_knowledge_base,
    format_product_for_knowledge_base,
    process_product_data,
    shopify_product_to_processed,
    shopify_variant_to_processed,
    strip_html,
)

__all__ = [
    # Client
    'ShopifyClient',
    'extract_next_page_info',
    # Converters
    'format_display_date',
    'format_for_knowledge_base',
    'format_product_for_knowledge_base',
    'process_product_data',
    'shopify_product_to_processed',
    'shopify_variant_to_processed',
    'strip_html',
]
