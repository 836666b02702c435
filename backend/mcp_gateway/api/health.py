from typing import Any, Dict

from fastapi import APIRouter, Depends

from mcp_gateway.api.deps import get_gateway
from mcp_gateway.core.config import DEFAULT_HEALTH_PATH
from mcp_gateway.services.gateway import Gateway
from mcp_gateway.utils.time import utc_now


async def health(gateway: Gateway = Depends(get_gateway)) -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": gateway.options.service_name,
        "sessions": len(gateway.registry),
        "timestamp": utc_now(),
    }


def build_router(path: str = DEFAULT_HEALTH_PATH) -> APIRouter:
    router = APIRouter()
    router.add_api_route(path, health, methods=["GET"])
    return router
