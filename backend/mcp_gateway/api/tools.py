from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from mcp_gateway.api.deps import get_gateway
from mcp_gateway.core.errors import GatewayError, InvalidRequest
from mcp_gateway.core.logging import logger
from mcp_gateway.schemas.tools import ListCallsRequest, RetrieveTranscriptsRequest
from mcp_gateway.services.gateway import Gateway

router = APIRouter(prefix="/api")


@router.post("/list-calls")
async def list_calls(
    request: Optional[ListCallsRequest] = None,
    gateway: Gateway = Depends(get_gateway),
) -> Dict[str, Any]:
    request = request or ListCallsRequest()
    try:
        return await gateway.list_calls(request.from_date_time, request.to_date_time)
    except GatewayError as exc:
        logger.error(f"Error listing calls: {exc}")
        raise


@router.post("/retrieve-transcripts")
async def retrieve_transcripts(
    request: Optional[RetrieveTranscriptsRequest] = None,
    gateway: Gateway = Depends(get_gateway),
) -> Dict[str, Any]:
    call_ids = request.call_ids if request else None
    if not isinstance(call_ids, list):
        raise InvalidRequest("callIds array is required")
    try:
        return await gateway.retrieve_transcripts(call_ids)
    except GatewayError as exc:
        logger.error(f"Error retrieving transcripts: {exc}")
        raise
