"""Per-store Sensay users and replicas."""

import hashlib
import logging
import secrets
from typing import Any, Dict, Optional

from storesync.constants.sensay import (
    SHOPIFY_TAG_PREFIX,
    ReplicaMemoryMode,
    ReplicaType,
)
from storesync.core.exceptions import SensayAPIError
from storesync.schemas.knowledgebase import UserReplicaResult
from storesync.services.sensay.client import SensayClient

__logger__ = logging.getLogger(__name__)

SYSTEM_MESSAGE_TEMPLATE = """You are an intelligent AI assistant specialized in Shopify product management and customer support for {store}.

Your knowledge base contains detailed information about products in this Shopify store, including:
- Product names, descriptions, and specifications
- Pricing information and variant details
- Current stock levels and availability
- Product categories, tags, and vendor information
- SKU numbers and product IDs

When customers ask about products:
1. Provide accurate and helpful information based on your knowledge base
2. Check current stock levels when mentioning availability
3. Suggest similar or complementary products when appropriate
4. Help with product comparisons and recommendations
5. If you don't have specific information about a product, acknowledge this clearly

Always maintain a helpful, professional, and friendly tone while being informative and accurate."""


def generate_user_id(shopify_domain: str, access_token: str) -> str:
    """Stable user id for a store: first 16 hex chars of sha256(domain_token)."""
    combined = f"{shopify_domain}_{access_token}"
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()[:16]


def store_tag(shopify_domain: str) -> str:
    return f"{SHOPIFY_TAG_PREFIX}{shopify_domain}"


class SensayUserManager:
    """Finds or creates the Sensay user and replica that belong to a store."""

    def __init__(self, client: SensayClient, llm_model: str = "claude-3-7-sonnet-latest"):
        self.client = client
        self.llm_model = llm_model

    def build_replica_payload(self, user_id: str, shopify_domain: str, store_name: Optional[str]) -> Dict[str, Any]:
        store = store_name or shopify_domain
        return {
            "name": f"{store} Store Assistant",
            "shortDescription": "Shopify product AI assistant",
            "greeting": (
                f"Hello! I'm your AI assistant for {store}. I have access to your store's "
                "product catalog and can help you with product information, inventory checks, "
                "and customer support. How can I help you today?"
            ),
            "type": ReplicaType.BRAND,
            "ownerID": user_id,
            "private": True,
            "slug": f"shopify-assistant-{user_id}-{secrets.token_hex(3)}",
            "tags": [store_tag(shopify_domain), "e-commerce", "product-assistant"],
            "llm": {
                "model": self.llm_model,
                "memoryMode": ReplicaMemoryMode.RAG_SEARCH,
                "systemMessage": SYSTEM_MESSAGE_TEMPLATE.format(store=store),
            },
        }

    async def find_user_replica(self, user_id: str, shopify_domain: str) -> Optional[str]:
        try:
            replicas = await self.client.list_replicas()
        except SensayAPIError as e:
            __logger__.error(f"Error finding replica for user {user_id}: {e}")
            return None

        tag = store_tag(shopify_domain)
        for replica in replicas:
            if replica.get("ownerID") == user_id and tag in (replica.get("tags") or []):
                return replica.get("uuid")
        return None

    async def create_user_and_replica(
        self,
        shopify_domain: str,
        access_token: str,
        store_name: Optional[str] = None,
    ) -> UserReplicaResult:
        user_id = generate_user_id(shopify_domain, access_token)
        __logger__.info(f"Creating user {user_id} and replica for store {shopify_domain}")

        try:
            try:
                await self.client.create_user(user_id, f"Shopify Store User - {store_name or shopify_domain}")
            except SensayAPIError as e:
                if e.status_code != 409:
                    raise SensayAPIError(f"Failed to create user: {e}", status_code=e.status_code) from e
                __logger__.info(f"User {user_id} already exists, continuing")

            response = await self.client.create_replica(
                self.build_replica_payload(user_id, shopify_domain, store_name),
                user_id=user_id,
            )
            replica_uuid = response.get("uuid")
            if not replica_uuid:
                raise SensayAPIError("Failed to create replica for user")
        except SensayAPIError as e:
            __logger__.error(f"Error creating user and replica for {shopify_domain}: {e}")
            return UserReplicaResult(success=False, error=str(e))

        __logger__.info(f"Created replica {replica_uuid} for user {user_id}")
        return UserReplicaResult(success=True, user_id=user_id, replica_uuid=replica_uuid)

    async def get_or_create_user_replica(
        self,
        shopify_domain: str,
        access_token: str,
        store_name: Optional[str] = None,
    ) -> UserReplicaResult:
        user_id = generate_user_id(shopify_domain, access_token)
        existing = await self.find_user_replica(user_id, shopify_domain)
        if existing:
            __logger__.info(f"Found existing replica {existing} for user {user_id}")
            return UserReplicaResult(success=True, user_id=user_id, replica_uuid=existing)
        return await self.create_user_and_replica(shopify_domain, access_token, store_name)
