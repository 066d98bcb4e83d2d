import logging

from fastapi import APIRouter, Depends

from storesync.api.dependencies import get_client_factory, require_sensay_api_key
from storesync.api.v1.endpoints.replicas import sensay_error_response
from storesync.core.exceptions import SensayAPIError
from storesync.factories.clients import ClientFactory
from storesync.services.sensay.replicas import ReplicaService

router = APIRouter(prefix="/knowledge-bases", tags=["knowledge-bases"])

_logger = logging.getLogger(__name__)


@router.delete("/{knowledge_base_id}")
async def delete_knowledge_base(
    knowledge_base_id: int,
    api_key: str = Depends(require_sensay_api_key),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Remove a training entry; the next sync creates a fresh one."""
    try:
        async with factory.sensay() as client:
            await ReplicaService(client).delete_knowledge_base(knowledge_base_id)
    except SensayAPIError as e:
        _logger.error(f"Error deleting knowledge base {knowledge_base_id}: {e}")
        return sensay_error_response(e, "Failed to delete knowledge base")

    return {"success": True}
