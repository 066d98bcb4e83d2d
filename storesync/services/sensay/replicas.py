"""Listing and cleanup of the organization's replicas and knowledge bases."""

import logging
import re
from typing import Any, Dict, List, Optional

from storesync.constants.sensay import SHOPIFY_TAG_PREFIX, KnowledgeBaseType
from storesync.schemas.knowledgebase import KnowledgeBaseInfo, ReplicaInfo, ReplicaLLM
from storesync.services.sensay.client import SensayClient

__logger__ = logging.getLogger(__name__)

_TOTAL_PRODUCTS = re.compile(r"Total Products\**:\s*\**\s*(\d+)", re.IGNORECASE)
_PRODUCT_HEADING = re.compile(r"^##\s+[^#].*$", re.MULTILINE)
NON_PRODUCT_HEADINGS = (
    "Store Overview",
    "Key Store Statistics",
    "Product Information",
    "How to Use This Information",
    "AI Assistant Guidelines",
)
PREVIEW_LENGTH = 200


def extract_product_count(raw_text: Optional[str]) -> Optional[int]:
    """Product count of a synced catalog document, if it can be recovered."""
    if not raw_text:
        return None

    match = _TOTAL_PRODUCTS.search(raw_text)
    if match:
        return int(match.group(1))

    headings = [
        h for h in _PRODUCT_HEADING.findall(raw_text)
        if not any(name in h for name in NON_PRODUCT_HEADINGS)
    ]
    return len(headings) or None


def replica_from_api(item: Dict[str, Any]) -> ReplicaInfo:
    llm = item.get("llm") or {}
    return ReplicaInfo(
        uuid=item.get("uuid", ""),
        name=item.get("name") or "",
        short_description=item.get("shortDescription") or "",
        greeting=item.get("greeting") or "",
        type=item.get("type") or "character",
        owner_id=item.get("ownerID") or "",
        private=bool(item.get("private")),
        slug=item.get("slug") or "",
        tags=item.get("tags") or [],
        profile_image=item.get("profileImage"),
        suggested_questions=item.get("suggestedQuestions"),
        created_at=item.get("created_at") or "",
        llm=ReplicaLLM(
            model=llm.get("model") or "unknown",
            memory_mode=llm.get("memoryMode") or "unknown",
            system_message=llm.get("systemMessage") or "",
        ),
    )


def knowledge_base_from_api(item: Dict[str, Any]) -> KnowledgeBaseInfo:
    raw_text = item.get("raw_text") or ""
    preview = None
    if raw_text:
        preview = raw_text[:PREVIEW_LENGTH] + ("..." if len(raw_text) > PREVIEW_LENGTH else "")
    return KnowledgeBaseInfo(
        id=item["id"],
        replica_uuid=item.get("replica_uuid") or "",
        type=item.get("type") or KnowledgeBaseType.TEXT,
        filename=item.get("filename"),
        status=item.get("status") or "BLANK",
        raw_text_preview=preview,
        created_at=item.get("created_at"),
        updated_at=item.get("updated_at"),
        product_count=extract_product_count(raw_text),
    )


class ReplicaService:
    """Listing passthroughs used by the replicas endpoint."""

    def __init__(self, client: SensayClient):
        self.client = client

    async def get_all_replicas(self) -> List[ReplicaInfo]:
        items = await self.client.list_replicas()
        return [replica_from_api(item) for item in items if item.get("uuid")]

    async def get_shopify_replicas(self) -> List[ReplicaInfo]:
        replicas = await self.get_all_replicas()
        return [r for r in replicas if any(tag.startswith(SHOPIFY_TAG_PREFIX) for tag in r.tags)]

    async def get_all_knowledge_bases(self) -> List[KnowledgeBaseInfo]:
        items = await self.client.list_knowledge_bases(type=KnowledgeBaseType.TEXT, page=1, limit=100)
        return [knowledge_base_from_api(item) for item in items if item.get("id") is not None]

    async def get_replica(self, replica_uuid: str) -> ReplicaInfo:
        return replica_from_api(await self.client.get_replica(replica_uuid))

    async def delete_replica(self, replica_uuid: str) -> None:
        await self.client.delete_replica(replica_uuid)
        __logger__.info(f"Deleted replica {replica_uuid}")

    async def delete_knowledge_base(self, knowledge_base_id: int) -> None:
        await self.client.delete_knowledge_base(knowledge_base_id)
        __logger__.info(f"Deleted knowledge base {knowledge_base_id}")

    async def get_replica_knowledge_bases(self, replica_uuid: str) -> List[KnowledgeBaseInfo]:
        knowledge_bases = await self.get_all_knowledge_bases()
        return [kb for kb in knowledge_bases if kb.replica_uuid == replica_uuid]
