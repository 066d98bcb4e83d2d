import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from storesync.api.dependencies import (
    get_client_factory,
    require_credentials,
    require_sensay_api_key,
)
from storesync.api.streaming import SSE_HEADERS, sync_event_stream
from storesync.constants.sync import ProgressEventType
from storesync.factories.clients import ClientFactory
from storesync.schemas.shopify import ShopifyCredentials
from storesync.services.progress import ProgressEmitter, ProgressRecorder
from storesync.services.sensay.knowledge import format_enhanced_product_data
from storesync.services.shopify.converters import format_for_knowledge_base
from storesync.services.sync import KnowledgeBaseSyncService, run_sync_pipeline

router = APIRouter(prefix="/shopify", tags=["shopify"])

_logger = logging.getLogger(__name__)

ENHANCED_PREVIEW_LENGTH = 2000
PLAIN_PREVIEW_LENGTH = 1000


def _preview(text: str, length: int) -> str:
    return text[:length] + ("..." if len(text) > length else "")


def _inventory_item_ids(product) -> list:
    if not isinstance(product, dict):
        return []
    return [
        v["inventory_item_id"] for v in product.get("variants") or []
        if isinstance(v, dict) and v.get("inventory_item_id")
    ]


@router.post("/test-connection")
async def test_connection(
    credentials: ShopifyCredentials = Depends(require_credentials),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Check the store credentials and report the product count when connected."""
    try:
        async with factory.shopify(credentials) as shopify:
            status = await shopify.test_connection()
            if status.connected:
                status.product_count = await shopify.get_product_count()
    except Exception as e:
        _logger.exception(f"Shopify connection test error for {credentials.domain}")
        return JSONResponse(
            status_code=500,
            content={"connected": False, "error": str(e) or "Connection test failed"},
        )
    return status.to_wire()


@router.post("/verify-connection")
async def verify_connection(
    credentials: ShopifyCredentials = Depends(require_credentials),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Connection probe only, no product fetching."""
    try:
        async with factory.shopify(credentials) as shopify:
            status = await shopify.test_connection()
    except Exception as e:
        _logger.exception(f"Connection verification error for {credentials.domain}")
        return JSONResponse(
            status_code=500,
            content={"connected": False, "error": str(e) or "Connection verification failed"},
        )
    return {
        "connected": status.connected,
        "shopName": status.shop_name,
        "error": status.error,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/sync-products-stream")
async def sync_products_stream(
    credentials: ShopifyCredentials = Depends(require_credentials),
    api_key: str = Depends(require_sensay_api_key),
    factory: ClientFactory = Depends(get_client_factory),
):
    """
    Sync the catalog into the AI knowledge base, streaming progress.

    The response is a ``text/event-stream`` of ``data: {...}`` frames ending
    with exactly one ``success`` or ``error`` event.
    """
    _logger.info(f"Starting streamed sync for {credentials.domain}")
    return StreamingResponse(
        sync_event_stream(credentials, factory, factory.settings.stream_queue_size),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/sync-products")
async def sync_products(
    credentials: ShopifyCredentials = Depends(require_credentials),
    api_key: str = Depends(require_sensay_api_key),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Same pipeline as the stream, answered once it has finished."""
    recorder = ProgressRecorder()
    emitter = ProgressEmitter(recorder)
    try:
        async with factory.shopify(credentials) as shopify, factory.sensay() as sensay:
            sync_service = KnowledgeBaseSyncService(sensay, factory.settings)
            terminal = await run_sync_pipeline(credentials, shopify, sync_service, emitter)
    except Exception as e:
        _logger.exception(f"Product sync error for {credentials.domain}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e) or "Product sync failed"},
        )

    body = terminal.to_wire()
    success = body.pop("type") == ProgressEventType.SUCCESS
    if not success:
        body["error"] = body["message"]
    body["success"] = success
    body["events"] = [event.to_wire() for event in recorder.events]
    return body


@router.post("/debug-products")
async def debug_products(
    credentials: ShopifyCredentials = Depends(require_credentials),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Diagnostic view of each catalog step: count, raw, processed, formatted."""
    try:
        async with factory.shopify(credentials) as shopify:
            status = await shopify.test_connection()
            _logger.info(f"Debug connection result for {credentials.domain}: {status.connected}")
            if not status.connected:
                return {"success": False, "error": "Connection failed", "connectionStatus": status.to_wire()}

            store_info = await shopify.get_store_info()
            product_count = await shopify.get_product_count()
            raw_products = await shopify.get_all_products()
            inventory_levels = await shopify.get_inventory_levels(
                _inventory_item_ids(raw_products[0]) if raw_products else []
            )
            processed = shopify.process_product_data(raw_products)
            formatted = shopify.format_for_knowledge_base(processed[:2])
            _logger.info(
                f"Debug products for {credentials.domain}: count={product_count} "
                f"raw={len(raw_products)} processed={len(processed)}"
            )
    except Exception as e:
        _logger.exception(f"Debug products error for {credentials.domain}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return {
        "success": True,
        "debug": {
            "connectionStatus": status.to_wire(),
            "storeInfo": {
                key: store_info.get(key)
                for key in ("name", "domain", "currency", "plan_name", "iana_timezone")
            },
            "productCountFromAPI": product_count,
            "rawProductsFetched": len(raw_products),
            "processedProducts": len(processed),
            "firstRawProduct": raw_products[0] if raw_products else None,
            "firstProcessedProduct": processed[0].to_wire() if processed else None,
            "firstProductInventoryLevels": inventory_levels.get("inventory_levels") or [],
            "knowledgeBaseSample": formatted[:PLAIN_PREVIEW_LENGTH],
            "sampleProductTitles": [p.title for p in processed[:5]],
        },
    }


@router.post("/debug-knowledge-base")
async def debug_knowledge_base(
    credentials: ShopifyCredentials = Depends(require_credentials),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Preview both knowledge base formats for the current catalog."""
    try:
        async with factory.shopify(credentials) as shopify:
            status = await shopify.test_connection()
            if not status.connected:
                return {"success": False, "error": "Shopify connection failed", "connectionStatus": status.to_wire()}
            raw_products = await shopify.get_all_products()
    except Exception as e:
        _logger.exception(f"Debug knowledge base error for {credentials.domain}")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    processed = shopify.process_product_data(raw_products)
    payload = format_enhanced_product_data(
        processed, status.shop_name or credentials.domain, datetime.now(timezone.utc)
    )
    plain = format_for_knowledge_base(processed)

    return {
        "success": True,
        "debug": {
            "shopifyConnection": status.to_wire(),
            "productCounts": {"raw": len(raw_products), "processed": len(processed)},
            "knowledgeBase": {
                "enhanced": {
                    "contentLength": len(payload.raw_text),
                    "factsCount": len(payload.generated_facts),
                    "content": _preview(payload.raw_text, ENHANCED_PREVIEW_LENGTH),
                    "facts": payload.generated_facts,
                },
                "original": {
                    "contentLength": len(plain),
                    "content": _preview(plain, PLAIN_PREVIEW_LENGTH),
                },
            },
            "sampleProducts": [
                {
                    "id": p.id,
                    "title": p.title,
                    "description": _preview(p.description, 100),
                    "price": p.price,
                    "variants": len(p.variants),
                    "inventory": p.inventory.to_wire(),
                }
                for p in processed[:3]
            ],
        },
    }
