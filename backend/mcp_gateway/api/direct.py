from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from mcp_gateway.api.deps import get_gong_client
from mcp_gateway.core.errors import InvalidRequest
from mcp_gateway.core.logging import logger
from mcp_gateway.schemas.tools import ListCallsRequest, RetrieveTranscriptsRequest
from mcp_gateway.services.gong_client import GongAPIError, GongClient

router = APIRouter()


@router.get("/")
async def describe() -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": "Gong API HTTP Service",
        "endpoints": {
            "health": "GET /",
            "listCalls": "POST /api/list-calls",
            "retrieveTranscripts": "POST /api/retrieve-transcripts",
        },
    }


@router.post("/api/list-calls")
async def list_calls(
    request: Optional[ListCallsRequest] = None,
    client: GongClient = Depends(get_gong_client),
) -> Any:
    request = request or ListCallsRequest()
    try:
        return await client.list_calls(request.from_date_time, request.to_date_time)
    except GongAPIError as exc:
        logger.error(f"Error listing calls: {exc.detail}")
        raise


@router.post("/api/retrieve-transcripts")
async def retrieve_transcripts(
    request: Optional[RetrieveTranscriptsRequest] = None,
    client: GongClient = Depends(get_gong_client),
) -> Any:
    call_ids = request.call_ids if request else None
    if not isinstance(call_ids, list):
        raise InvalidRequest("callIds array is required")
    try:
        return await client.retrieve_transcripts(call_ids)
    except GongAPIError as exc:
        logger.error(f"Error retrieving transcripts: {exc.detail}")
        raise
