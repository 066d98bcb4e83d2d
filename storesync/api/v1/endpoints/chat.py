import logging

from fastapi import APIRouter, Depends, HTTPException

from storesync.api.dependencies import get_client_factory, require_sensay_api_key
from storesync.core.exceptions import SensayAPIError
from storesync.factories.clients import ClientFactory
from storesync.schemas.knowledgebase import ChatRequest, ChatResponse

router = APIRouter(prefix="/chat", tags=["chat"])

_logger = logging.getLogger(__name__)


@router.post("")
async def chat_with_replica(
    request: ChatRequest,
    api_key: str = Depends(require_sensay_api_key),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Send a message to the store's replica and return its answer."""
    try:
        async with factory.sensay() as client:
            data = await client.chat_completion(
                request.replica_uuid,
                request.content,
                user_id=request.user_id,
                skip_chat_history=request.skip_chat_history,
            )
    except SensayAPIError as e:
        _logger.error(f"Chat completion failed for replica {request.replica_uuid}: {e}")
        raise HTTPException(status_code=502, detail=f"Error talking to the AI replica: {e}")

    return ChatResponse(success=True, content=data.get("content") or "").to_wire()
