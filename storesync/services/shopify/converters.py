"""Data converters from Shopify Admin API records to knowledge base content."""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from storesync.constants.shopify import ShopifyInventoryManagement
from storesync.schemas.shopify import (
    InventoryInfo,
    ProcessedProduct,
    ProcessedVariant,
    RawProduct,
)

__logger__ = logging.getLogger(__name__)

_HTML_TAG = re.compile(r"<[^>]*>")


def strip_html(value: Optional[str]) -> str:
    """Remove HTML tags from a Shopify ``body_html`` field."""
    if not value:
        return ""
    return _HTML_TAG.sub("", str(value))


def _text(value: Any, default: str = "") -> str:
    if value is None or value == "":
        return default
    return str(value)


def _int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _records(value: Any) -> List[Dict[str, Any]]:
    """Return the dict items of a list field, ignoring anything malformed."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def format_display_date(value: Optional[str]) -> str:
    """Render an ISO timestamp as MM/DD/YYYY, or return it untouched."""
    if not value:
        return "Unknown"
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime("%m/%d/%Y")
    except ValueError:
        return str(value)


def shopify_variant_to_processed(variant: Dict[str, Any]) -> ProcessedVariant:
    options = {"option1": _text(variant.get("option1"))}
    if variant.get("option2"):
        options["option2"] = str(variant["option2"])
    if variant.get("option3"):
        options["option3"] = str(variant["option3"])

    return ProcessedVariant(
        id=_text(variant.get("id")),
        title=_text(variant.get("title"), "Default"),
        price=_text(variant.get("price"), "0"),
        compare_at_price=_text(variant.get("compare_at_price")) or None,
        sku=_text(variant.get("sku")),
        inventory=_int(variant.get("inventory_quantity")),
        weight=_float(variant.get("weight")),
        weight_unit=_text(variant.get("weight_unit"), "g"),
        options=options,
    )


def shopify_product_to_processed(product: RawProduct) -> ProcessedProduct:
    """
    Convert one raw Shopify product to its normalized form.

    Missing or malformed fields fall back to defaults; this never raises.
    """
    if not isinstance(product, dict):
        __logger__.warning(f"Skipping fields of malformed product record: {type(product).__name__}")
        product = {}

    raw_variants = _records(product.get("variants"))
    variants = [shopify_variant_to_processed(v) for v in raw_variants]
    first = raw_variants[0] if raw_variants else {}

    tags_value = product.get("tags")
    if isinstance(tags_value, list):
        tags = [str(tag).strip() for tag in tags_value if str(tag).strip()]
    elif tags_value:
        tags = [tag.strip() for tag in str(tags_value).split(",")]
    else:
        tags = []

    images = [str(img["src"]) for img in _records(product.get("images")) if img.get("src")]

    return ProcessedProduct(
        id=_text(product.get("id")),
        title=_text(product.get("title")),
        description=strip_html(product.get("body_html")),
        price=_text(first.get("price"), "0"),
        compare_at_price=_text(first.get("compare_at_price")) or None,
        sku=_text(first.get("sku")),
        vendor=_text(product.get("vendor")),
        product_type=_text(product.get("product_type")),
        tags=tags,
        variants=variants,
        images=images,
        inventory=InventoryInfo(
            available=sum(v.inventory for v in variants),
            tracked=any(
                v.get("inventory_management") == ShopifyInventoryManagement.SHOPIFY
                for v in raw_variants
            ),
        ),
        created_at=_text(product.get("created_at")),
        updated_at=_text(product.get("updated_at")),
    )


def process_product_data(products: Iterable[RawProduct]) -> List[ProcessedProduct]:
    """Normalize raw products, one output per input, preserving order."""
    return [shopify_product_to_processed(p) for p in products or []]


def _stock_label(quantity: int) -> str:
    return f" ({quantity} in stock)" if quantity > 0 else " (Out of stock)"


def format_product_for_knowledge_base(product: ProcessedProduct) -> str:
    if len(product.variants) > 1:
        heading = "Variants:"
        pricing = "\n".join(
            f"  - {v.title}: ${v.price}{_stock_label(v.inventory)}"
            for v in product.variants
        )
    else:
        heading = "Pricing:"
        pricing = f"Price: ${product.price}{_stock_label(product.inventory.available)}"

    return "\n".join([
        f"Product: {product.title}",
        f"ID: {product.id}",
        f"SKU: {product.sku}",
        f"Vendor: {product.vendor}",
        f"Type: {product.product_type}",
        f"Description: {product.description}",
        "",
        heading,
        pricing,
        "",
        f"Tags: {', '.join(product.tags)}",
        f"Created: {format_display_date(product.created_at)}",
        f"Updated: {format_display_date(product.updated_at)}",
        "",
        "---",
    ])


def format_for_knowledge_base(products: Iterable[ProcessedProduct]) -> str:
    """Plain text document with one block per product, in input order."""
    return "\n\n".join(format_product_for_knowledge_base(p) for p in products)
