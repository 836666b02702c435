from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from mcp_gateway.api.deps import get_gateway
from mcp_gateway.schemas.mcp import MCPMessage
from mcp_gateway.schemas.sessions import (
    SessionCreateRequest,
    SessionCreateResponse,
    SessionInfo,
    SessionListResponse,
    StatusResponse,
)
from mcp_gateway.services.gateway import Gateway

router = APIRouter()


@router.post("/session", response_model=SessionCreateResponse)
async def create_session(
    request: Optional[SessionCreateRequest] = None,
    gateway: Gateway = Depends(get_gateway),
) -> SessionCreateResponse:
    client_id = (request.client_id if request else None) or "anonymous"
    session = await gateway.create_session(client_id)
    return SessionCreateResponse(session_id=session.id, status="created")


@router.post("/session/{session_id}/message")
async def send_message(
    session_id: str,
    message: MCPMessage,
    gateway: Gateway = Depends(get_gateway),
) -> Any:
    response = await gateway.send_message(session_id, message.to_wire())
    if response is None:
        return JSONResponse(status_code=202, content={"status": "accepted"})
    return response


@router.delete("/session/{session_id}", response_model=StatusResponse)
async def destroy_session(
    session_id: str, gateway: Gateway = Depends(get_gateway)
) -> StatusResponse:
    gateway.destroy_session(session_id)
    return StatusResponse(status="destroyed")


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(gateway: Gateway = Depends(get_gateway)) -> SessionListResponse:
    return SessionListResponse(
        sessions=[SessionInfo.from_session(s) for s in gateway.list_sessions()]
    )
