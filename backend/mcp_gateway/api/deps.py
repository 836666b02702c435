from fastapi import Request
from fastapi.responses import JSONResponse

from mcp_gateway.core.errors import GatewayError
from mcp_gateway.services.gateway import Gateway
from mcp_gateway.services.gong_client import GongAPIError, GongClient


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


def get_gong_client(request: Request) -> GongClient:
    return request.app.state.gong_client


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


async def gong_error_handler(request: Request, exc: GongAPIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
