"""Sensay API client utilities."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from storesync.constants.sensay import CHAT_SOURCE, SensayHeader
from storesync.core.exceptions import SensayAPIError

__logger__ = logging.getLogger(__name__)


class SensayClient:
    """
    Async client for the Sensay REST API (users, replicas, training, chat).

    Requests are authenticated with the organization secret; calls made on
    behalf of a user pass ``user_id`` and get the ``X-USER-ID`` header.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.sensay.io",
        api_version: str = "2025-03-25",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                SensayHeader.ORGANIZATION_SECRET: api_key,
                SensayHeader.API_VERSION: api_version,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "SensayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Execute a request and return the decoded JSON body.

        Raises:
            SensayAPIError: transport failure, non-2xx status, or a body with
                ``success: false``.
        """
        headers = {SensayHeader.USER_ID: user_id} if user_id else None
        __logger__.debug(f"Sensay request: {method} {path} params={params}")
        try:
            response = await self._client.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            __logger__.error(f"Sensay {method} error on {path}: {e}")
            raise SensayAPIError(f"Sensay request {method} {path} failed: {e}") from e

        if response.is_error:
            __logger__.error(f"Sensay {method} error on {path}: {response.status_code} - {response.text}")
            raise SensayAPIError(
                f"Sensay API error ({response.status_code}): {_error_detail(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return {"success": True}
        try:
            data = response.json()
        except ValueError as e:
            raise SensayAPIError(f"Sensay returned invalid JSON for {method} {path}") from e
        if isinstance(data, dict) and data.get("success") is False:
            raise SensayAPIError(
                f"Sensay API error on {method} {path}: {data.get('error') or 'request unsuccessful'}",
                status_code=response.status_code,
            )
        return data

    # ------------------ USERS ------------------
    async def create_user(self, user_id: str, name: str) -> Dict[str, Any]:
        return await self.request("POST", "/v1/users", json={"id": user_id, "name": name})

    # ------------------ REPLICAS ------------------
    async def list_replicas(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        data = await self.request("GET", "/v1/replicas", user_id=user_id)
        return data.get("items") or []

    async def get_replica(self, replica_uuid: str) -> Dict[str, Any]:
        return await self.request("GET", f"/v1/replicas/{replica_uuid}")

    async def create_replica(self, payload: Dict[str, Any], user_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.request("POST", "/v1/replicas", json=payload, user_id=user_id)

    async def delete_replica(self, replica_uuid: str) -> Dict[str, Any]:
        return await self.request("DELETE", f"/v1/replicas/{replica_uuid}")

    # ------------------ TRAINING (KNOWLEDGE BASE) ------------------
    async def create_knowledge_base(self, replica_uuid: str, user_id: Optional[str] = None) -> int:
        """Create an empty training entry and return its id."""
        data = await self.request("POST", f"/v1/replicas/{replica_uuid}/training", user_id=user_id)
        knowledge_base_id = data.get("knowledgeBaseID")
        if knowledge_base_id is None:
            raise SensayAPIError("Failed to create knowledge base entry: no knowledgeBaseID returned")
        return int(knowledge_base_id)

    async def upload_knowledge_base_text(
        self,
        replica_uuid: str,
        knowledge_base_id: int,
        raw_text: str,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.request(
            "PUT",
            f"/v1/replicas/{replica_uuid}/training/{knowledge_base_id}",
            json={"rawText": raw_text},
            user_id=user_id,
        )

    async def get_knowledge_base(self, knowledge_base_id: int, user_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.request("GET", f"/v1/training/{knowledge_base_id}", user_id=user_id)

    async def list_knowledge_bases(
        self,
        status: Optional[str] = None,
        type: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        user_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        if type:
            params["type"] = type
        data = await self.request("GET", "/v1/training", params=params, user_id=user_id)
        return data.get("items") or []

    async def delete_knowledge_base(self, knowledge_base_id: int, user_id: Optional[str] = None) -> Dict[str, Any]:
        return await self.request("DELETE", f"/v1/training/{knowledge_base_id}", user_id=user_id)

    # ------------------ CHAT ------------------
    async def chat_completion(
        self,
        replica_uuid: str,
        content: str,
        user_id: str,
        skip_chat_history: bool = False,
    ) -> Dict[str, Any]:
        return await self.request(
            "POST",
            f"/v1/replicas/{replica_uuid}/chat/completions",
            json={
                "content": content,
                "source": CHAT_SOURCE,
                "skip_chat_history": skip_chat_history,
            },
            user_id=user_id,
        )


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        return str(data.get("error") or data.get("message") or data)
    return str(data)
