"""
Enhanced knowledge base content for a store catalog.

The document has three parts: a store header with generated facts, one
section per product, and guidelines for the assistant. Output depends only on
the arguments, so the same catalog and ``synced_at`` always give the same text.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Sequence

from storesync.schemas.knowledgebase import KnowledgeBasePayload
from storesync.schemas.shopify import ProcessedProduct, ProcessedVariant
from storesync.services.shopify.converters import format_display_date

__logger__ = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 500
MAX_LISTED_VALUES = 10


def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def _price(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _timestamp(synced_at: datetime) -> str:
    return synced_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def build_generated_facts(products: Sequence[ProcessedProduct]) -> List[str]:
    product_types = _unique(p.product_type or "Uncategorized" for p in products)
    vendors = _unique(p.vendor or "Unknown" for p in products)
    prices = [price for price in (_price(p.price) for p in products) if price > 0]
    min_price = min(prices) if prices else 0.0
    max_price = max(prices) if prices else 0.0
    total_inventory = sum(p.inventory.available for p in products)
    in_stock = sum(1 for p in products if p.inventory.available > 0)

    return [
        f"Store has {len(products)} total products",
        f"Product categories: {', '.join(product_types[:MAX_LISTED_VALUES]) or 'No categories'}",
        f"Available vendors: {', '.join(vendors[:MAX_LISTED_VALUES]) or 'No vendors'}",
        f"Price range: ${min_price:.2f} - ${max_price:.2f}",
        f"Total inventory items: {total_inventory}",
        f"Products in stock: {in_stock}",
        f"Products out of stock: {len(products) - in_stock}",
    ]


def _format_header(products: Sequence[ProcessedProduct], store_name: str,
                   facts: List[str], synced_at: datetime) -> str:
    categories = ", ".join(_unique(p.product_type for p in products)[:MAX_LISTED_VALUES])
    vendors = ", ".join(_unique(p.vendor for p in products)[:MAX_LISTED_VALUES])
    lines = [
        f"# {store_name} - AI Product Knowledge Base",
        "",
        f"This comprehensive knowledge base contains real-time information about all products "
        f"in the {store_name} Shopify store.",
        "",
        "## Store Overview",
        f"- **Total Products**: {len(products)}",
        f"- **Last Updated**: {_timestamp(synced_at)}",
        f"- **Categories**: {categories}",
        f"- **Active Vendors**: {vendors}",
        "",
        "## Key Store Statistics",
    ]
    lines.extend(f"- {fact}" for fact in facts)
    lines.extend(["", "---", "", ""])
    return "\n".join(lines)


def _format_variant(variant: ProcessedVariant) -> str:
    stock = f"{variant.inventory} in stock" if variant.inventory > 0 else "Out of stock"
    pricing = f"${variant.price}"
    if variant.compare_at_price:
        pricing += f" (was ${variant.compare_at_price})"
    sku = f" (SKU: {variant.sku})" if variant.sku else ""
    return f"  • **{variant.title}**: {pricing} - {stock}{sku}"


def format_product_section(product: ProcessedProduct) -> str:
    available = product.inventory.available
    if len(product.variants) > 1:
        pricing = "\n".join(_format_variant(v) for v in product.variants)
    else:
        pricing = f"**Price**: ${product.price}"
        if product.compare_at_price:
            pricing += f" (was ${product.compare_at_price})"
        pricing += f" - {f'{available} in stock' if available > 0 else 'Out of stock'}"
        if product.sku:
            pricing += f" (SKU: {product.sku})"

    description = product.description or "No description available"
    if len(description) > MAX_DESCRIPTION_LENGTH:
        description = description[:MAX_DESCRIPTION_LENGTH] + "..."

    image_count = len(product.images)
    return "\n".join([
        f"## {product.title}",
        "",
        "**Product Details:**",
        f"- **ID**: {product.id}",
        f"- **Vendor**: {product.vendor}",
        f"- **Category**: {product.product_type}",
        f"- **SKU**: {product.sku or 'Not specified'}",
        "",
        "**Description:**",
        description,
        "",
        "**Pricing & Availability:**",
        pricing,
        "",
        "**Inventory Information:**",
        f"- **Total Available**: {available} units",
        f"- **Inventory Tracking**: {'Enabled' if product.inventory.tracked else 'Disabled'}",
        f"- **Stock Status**: {'✅ In Stock' if available > 0 else '❌ Out of Stock'}",
        "",
        "**Product Classification:**",
        f"- **Tags**: {', '.join(product.tags) if product.tags else 'No tags assigned'}",
        f"- **Created**: {format_display_date(product.created_at)}",
        f"- **Last Updated**: {format_display_date(product.updated_at)}",
        f"- **Images**: {image_count} image{'' if image_count == 1 else 's'} available",
        "",
        "---",
    ])


def _format_footer(synced_at: datetime) -> str:
    return f"""

## AI Assistant Guidelines

When customers inquire about products:

### 🔍 **Search & Discovery**
- Use product names, SKUs, categories, or tags for searches
- Suggest alternatives when specific products are unavailable
- Provide detailed comparisons between similar products

### 💰 **Pricing & Availability**
- Always mention current pricing and any sale prices
- Check real-time stock levels before confirming availability
- Inform about estimated restock if items are out of stock

### 🛍️ **Recommendations**
- Suggest complementary products based on customer interests
- Recommend higher or lower-priced alternatives as appropriate
- Consider customer preferences and budget constraints

### 📋 **Product Information**
- Provide comprehensive product details including specifications
- Mention key features and benefits clearly
- Include vendor information and warranty details when relevant

### ⚠️ **Important Notes**
- All information is current as of the last sync: {_timestamp(synced_at)}
- Stock levels and pricing may change rapidly
- Always encourage customers to check the store for the most current information"""


def format_enhanced_product_data(
    products: Sequence[ProcessedProduct],
    store_name: str,
    synced_at: datetime,
) -> KnowledgeBasePayload:
    """Build the raw text and generated facts pushed to the knowledge base."""
    if not products:
        __logger__.warning(f"No products to format for {store_name}")
        return KnowledgeBasePayload(
            raw_text=f"# {store_name} - Empty Store\n\nNo products found in this store.",
            generated_facts=["Store has no products"],
        )

    facts = build_generated_facts(products)
    header = _format_header(products, store_name, facts, synced_at)
    body = "\n\n".join(format_product_section(p) for p in products)
    raw_text = header + body + _format_footer(synced_at)

    __logger__.info(
        f"Formatted {len(products)} products for {store_name}: "
        f"{len(raw_text)} characters, {len(facts)} facts"
    )
    return KnowledgeBasePayload(raw_text=raw_text, generated_facts=facts)
