from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mcp_gateway.api import direct, health, sessions, tools
from mcp_gateway.api.deps import gateway_error_handler, gong_error_handler
from mcp_gateway.core.config import VERSION, DirectOptions, GatewayOptions
from mcp_gateway.core.errors import GatewayError
from mcp_gateway.core.logging import logger
from mcp_gateway.services.gateway import Gateway
from mcp_gateway.services.gong_client import GongAPIError, GongClient
from mcp_gateway.services.registry import SessionRegistry


def create_app(
    options: Optional[GatewayOptions] = None,
    registry: Optional[SessionRegistry] = None,
) -> FastAPI:
    options = options or GatewayOptions.from_env()
    gateway = Gateway(options, registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{options.service_name} serving '{options.command}' over HTTP")
        yield
        logger.info("Shutting down gracefully")
        await gateway.registry.shutdown()

    app = FastAPI(title=options.service_name, version=VERSION, lifespan=lifespan)
    app.state.gateway = gateway

    if options.cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_exception_handler(GatewayError, gateway_error_handler)

    app.include_router(health.build_router(options.health_path))
    app.include_router(sessions.router)
    app.include_router(tools.router)
    return app


def create_direct_app(
    options: DirectOptions, client: Optional[GongClient] = None
) -> FastAPI:
    app = FastAPI(title="Gong API HTTP Service", version=VERSION)
    app.state.gong_client = client or GongClient(
        options.access_key, options.access_secret, options.api_url
    )
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(GongAPIError, gong_error_handler)
    app.include_router(direct.router)
    return app


def run(options: GatewayOptions, log_level: str = "info") -> None:
    import uvicorn

    uvicorn.run(
        create_app(options),
        host=options.host,
        port=options.port,
        log_level=log_level,
    )


def run_direct(options: DirectOptions, log_level: str = "info") -> None:
    import uvicorn

    uvicorn.run(
        create_direct_app(options),
        host=options.host,
        port=options.port,
        log_level=log_level,
    )
