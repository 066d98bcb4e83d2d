"""
Catalog to knowledge base synchronization.

``run_sync_pipeline`` drives the whole sequence for one request::

    connecting -> fetching -> preparing -> syncing -> done

Every step is reported through a ``ProgressEmitter``. Expected failures
(connection refused by the store, AI provider errors) end the pipeline with a
single error event; anything unexpected propagates to the caller, which is
responsible for turning it into the terminal error event.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from storesync.constants.sensay import KnowledgeBaseStatus, KnowledgeBaseType
from storesync.constants.sync import SyncProgress, SyncStage
from storesync.core.config import Settings
from storesync.core.exceptions import SensayAPIError
from storesync.schemas.shopify import ProcessedProduct, ShopifyCredentials
from storesync.schemas.knowledgebase import SyncResult
from storesync.schemas.sync import ProgressEvent
from storesync.services.progress import ProgressEmitter
from storesync.services.sensay.client import SensayClient
from storesync.services.sensay.knowledge import format_enhanced_product_data
from storesync.services.sensay.users import SensayUserManager
from storesync.services.shopify.client import ShopifyClient

__logger__ = logging.getLogger(__name__)


class KnowledgeBaseSyncService:
    """Pushes a processed catalog into the store's Sensay knowledge base."""

    def __init__(self, client: SensayClient, settings: Settings):
        self.client = client
        self.settings = settings
        self.user_manager = SensayUserManager(client, llm_model=settings.sensay_replica_model)

    async def sync_products_to_knowledge_base(
        self,
        products: List[ProcessedProduct],
        shopify_domain: str,
        shopify_access_token: str,
        store_name: Optional[str] = None,
        emitter: Optional[ProgressEmitter] = None,
    ) -> SyncResult:
        """
        Replace the store's product knowledge base with ``products``.

        Never raises for provider failures: they are returned as
        ``SyncResult(success=False, error=...)``. An empty catalog succeeds
        immediately without touching the provider.
        """
        if not products:
            __logger__.info(f"No products to sync for {shopify_domain}")
            return SyncResult(success=True, product_count=0)

        async def report(stage: str, message: str, progress: float) -> None:
            if emitter is not None:
                await emitter.progress(stage, message, int(progress))

        try:
            await report(SyncStage.PREPARING, "Setting up user-specific AI replica...", SyncProgress.REPLICA_SETUP)
            user = await self.user_manager.get_or_create_user_replica(
                shopify_domain, shopify_access_token, store_name
            )
            if not user.success or not user.user_id or not user.replica_uuid:
                raise SensayAPIError(user.error or "Failed to create user replica")
            user_id, replica_uuid = user.user_id, user.replica_uuid

            await report(SyncStage.PREPARING, "Checking for existing product knowledge base...", SyncProgress.KB_LOOKUP)
            existing_id = await self.find_existing_knowledge_base(user_id, replica_uuid)
            is_update = existing_id is not None

            await report(SyncStage.PREPARING, "Preparing enhanced product data...", SyncProgress.FORMATTING)
            payload = format_enhanced_product_data(
                products, store_name or shopify_domain, datetime.now(timezone.utc)
            )

            await report(
                SyncStage.SYNCING,
                "Replacing existing knowledge base entry..." if is_update else "Creating new knowledge base entry...",
                SyncProgress.KB_CREATE,
            )
            if is_update:
                await self._delete_quietly(existing_id, user_id)
            knowledge_base_id = await self.client.create_knowledge_base(replica_uuid, user_id=user_id)
            __logger__.info(f"Created knowledge base {knowledge_base_id} for user {user_id}")

            await report(
                SyncStage.SYNCING,
                "Updating product knowledge base..." if is_update else "Uploading product data...",
                SyncProgress.KB_UPLOAD,
            )
            await self.client.upload_knowledge_base_text(
                replica_uuid, knowledge_base_id, payload.raw_text, user_id=user_id
            )
            __logger__.info(
                f"Uploaded {len(payload.raw_text)} characters to knowledge base {knowledge_base_id}"
            )

            await report(SyncStage.SYNCING, "Processing product knowledge...", SyncProgress.PROCESSING_START)
            status = None
            if self.settings.kb_wait_for_processing:
                status = await self.wait_for_processing(knowledge_base_id, user_id, report)
        except SensayAPIError as e:
            __logger__.error(f"Error syncing products to knowledge base for {shopify_domain}: {e}")
            return SyncResult(success=False, error=str(e))

        return SyncResult(
            success=True,
            product_count=len(products),
            knowledge_base_id=knowledge_base_id,
            replica_uuid=replica_uuid,
            user_id=user_id,
            status=status,
            is_update=is_update,
        )

    async def find_existing_knowledge_base(self, user_id: str, replica_uuid: str) -> Optional[int]:
        """Most recent READY text knowledge base attached to the replica."""
        try:
            items = await self.client.list_knowledge_bases(
                status=KnowledgeBaseStatus.READY,
                type=KnowledgeBaseType.TEXT,
                page=1,
                limit=50,
                user_id=user_id,
            )
        except SensayAPIError as e:
            __logger__.warning(f"Could not list knowledge bases for replica {replica_uuid}: {e}")
            return None

        candidates = [
            item for item in items
            if item.get("status") == KnowledgeBaseStatus.READY
            and item.get("replica_uuid") == replica_uuid
            and item.get("id") is not None
        ]
        if not candidates:
            return None
        latest = max(candidates, key=lambda item: item.get("created_at") or "")
        return int(latest["id"])

    async def _delete_quietly(self, knowledge_base_id: int, user_id: str) -> None:
        try:
            await self.client.delete_knowledge_base(knowledge_base_id, user_id=user_id)
            __logger__.info(f"Deleted previous knowledge base {knowledge_base_id}")
        except SensayAPIError as e:
            __logger__.warning(f"Could not delete knowledge base {knowledge_base_id}, creating a new one: {e}")

    async def wait_for_processing(self, knowledge_base_id: int, user_id: str, report) -> str:
        """
        Poll the entry until Sensay reports READY.

        Failed statuses raise. When polling times out or keeps failing, the
        entry is assumed ready as long as it still exists.
        """
        started = time.monotonic()
        timeout = self.settings.kb_poll_timeout
        errors = 0

        while time.monotonic() - started < timeout:
            try:
                data = await self.client.get_knowledge_base(knowledge_base_id, user_id=user_id)
            except SensayAPIError as e:
                errors += 1
                __logger__.warning(f"Error checking knowledge base {knowledge_base_id} status: {e}")
                if errors >= self.settings.kb_poll_max_retries:
                    break
                await asyncio.sleep(self.settings.kb_poll_interval)
                continue

            errors = 0
            status = data.get("status")
            __logger__.debug(f"Knowledge base {knowledge_base_id} status: {status}")
            if status == KnowledgeBaseStatus.READY:
                return KnowledgeBaseStatus.READY
            if status in KnowledgeBaseStatus.FAILED:
                raise SensayAPIError(f"Processing failed with status: {status}")

            elapsed = time.monotonic() - started
            span = SyncProgress.PROCESSING_MAX - SyncProgress.PROCESSING_START
            await report(
                SyncStage.SYNCING,
                "Processing product knowledge...",
                min(SyncProgress.PROCESSING_START + elapsed / timeout * span, SyncProgress.PROCESSING_MAX),
            )
            await asyncio.sleep(self.settings.kb_poll_interval)

        __logger__.warning(f"Status polling for knowledge base {knowledge_base_id} gave up, verifying it exists")
        try:
            await self.client.get_knowledge_base(knowledge_base_id, user_id=user_id)
        except SensayAPIError as e:
            raise SensayAPIError("Knowledge base processing failed - could not verify completion") from e
        return KnowledgeBaseStatus.READY


async def run_sync_pipeline(
    credentials: ShopifyCredentials,
    shopify: ShopifyClient,
    sync_service: KnowledgeBaseSyncService,
    emitter: ProgressEmitter,
) -> ProgressEvent:
    """
    Full sync for one store, reporting each stage on ``emitter``.

    Returns the terminal event. Errors other than the expected ones (failed
    connection, unsuccessful sync) are left to the caller.
    """
    await emitter.progress(SyncStage.CONNECTING, "Connecting to Shopify store...", SyncProgress.CONNECTING)
    await emitter.progress(SyncStage.CONNECTING, "Verifying store connection...", SyncProgress.VERIFYING)
    status = await shopify.test_connection()
    if not status.connected:
        await emitter.fail(status.error or "Failed to connect to Shopify", stage=SyncStage.CONNECTING)
        return emitter.terminal_event

    await emitter.progress(SyncStage.FETCHING, "Fetching product catalog...", SyncProgress.FETCHING)
    raw_products = await shopify.get_all_products()
    products = shopify.process_product_data(raw_products)

    if not products:
        await emitter.succeed("Store connected successfully! No products found to sync.", product_count=0)
        return emitter.terminal_event

    await emitter.progress(
        SyncStage.PREPARING,
        f"Found {len(products)} products, preparing sync...",
        SyncProgress.PRODUCTS_FOUND,
        product_count=len(products),
    )

    result = await sync_service.sync_products_to_knowledge_base(
        products,
        credentials.domain,
        credentials.access_token,
        status.shop_name,
        emitter=emitter,
    )
    if not result.success:
        await emitter.fail(result.error or "Sync failed", stage=SyncStage.SYNCING)
        return emitter.terminal_event

    extra: Dict[str, Any] = {
        "knowledgeBaseId": result.knowledge_base_id,
        "replicaUuid": result.replica_uuid,
        "userId": result.user_id,
    }
    await emitter.succeed(
        f"Successfully synced {len(products)} products to AI knowledge base",
        product_count=len(products),
        **extra,
    )
    return emitter.terminal_event
