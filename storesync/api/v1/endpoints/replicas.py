import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from storesync.api.dependencies import get_client_factory, require_sensay_api_key
from storesync.constants.sync import ReplicaListType
from storesync.core.exceptions import SensayAPIError
from storesync.factories.clients import ClientFactory
from storesync.services.sensay.replicas import ReplicaService

router = APIRouter(prefix="/replicas", tags=["replicas"])

_logger = logging.getLogger(__name__)


def sensay_error_response(e: SensayAPIError, fallback: str) -> JSONResponse:
    status_code = 404 if e.status_code == 404 else 500
    return JSONResponse(status_code=status_code, content={"success": False, "error": str(e) or fallback})


@router.get("")
async def list_replicas(
    type: Literal["all", "shopify", "knowledge"] = Query(
        ReplicaListType.ALL, description="all, shopify or knowledge"),
    api_key: str = Depends(require_sensay_api_key),
    factory: ClientFactory = Depends(get_client_factory),
):
    """Replicas of the organization, or its text knowledge bases."""
    try:
        async with factory.sensay() as client:
            service = ReplicaService(client)
            if type == ReplicaListType.KNOWLEDGE:
                knowledge_bases = await service.get_all_knowledge_bases()
                return {"success": True, "knowledgeBases": [kb.to_wire() for kb in knowledge_bases]}

            if type == ReplicaListType.SHOPIFY:
                replicas = await service.get_shopify_replicas()
            else:
                replicas = await service.get_all_replicas()
    except SensayAPIError as e:
        _logger.error(f"Replicas API error: {e}")
        return sensay_error_response(e, "Failed to fetch replicas")

    return {"success": True, "replicas": [r.to_wire() for r in replicas]}


@router.get("/{replica_uuid}")
async def get_replica(
    replica_uuid: str,
    api_key: str = Depends(require_sensay_api_key),
    factory: ClientFactory = Depends(get_client_factory),
):
    """One replica with the knowledge bases attached to it."""
    try:
        async with factory.sensay() as client:
            service = ReplicaService(client)
            replica = await service.get_replica(replica_uuid)
            knowledge_bases = await service.get_replica_knowledge_bases(replica_uuid)
    except SensayAPIError as e:
        _logger.error(f"Error fetching replica {replica_uuid}: {e}")
        return sensay_error_response(e, "Failed to fetch replica")

    return {
        "success": True,
        "replica": replica.to_wire(),
        "knowledgeBases": [kb.to_wire() for kb in knowledge_bases],
    }


@router.delete("/{replica_uuid}")
async def delete_replica(
    replica_uuid: str,
    api_key: str = Depends(require_sensay_api_key),
    factory: ClientFactory = Depends(get_client_factory),
):
    try:
        async with factory.sensay() as client:
            await ReplicaService(client).delete_replica(replica_uuid)
    except SensayAPIError as e:
        _logger.error(f"Error deleting replica {replica_uuid}: {e}")
        return sensay_error_response(e, "Failed to delete replica")

    return {"success": True}
