"""
Command line entry points: serve (stdio gateway) and direct (Gong REST proxy).
"""

import os
from typing import List, Optional

import typer
from pydantic import ValidationError

from mcp_gateway.core.config import DirectOptions, GatewayOptions, load_env_file
from mcp_gateway.core.logging import logger, setup_logging

app = typer.Typer(help="Expose a stdio MCP server over HTTP.")


@app.command()
def serve(
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Port to run the gateway server on"
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    command: Optional[str] = typer.Option(
        None, "--command", "-c", help="Command to run the MCP server"
    ),
    args: Optional[List[str]] = typer.Option(
        None, "--args", "-a", help="Argument for the MCP server command (repeatable)"
    ),
    cors: Optional[bool] = typer.Option(
        None, "--cors/--no-cors", help="Enable CORS headers"
    ),
    health_endpoint: Optional[str] = typer.Option(
        None, "--health-endpoint", help="Health check endpoint path"
    ),
    timeout_ms: Optional[int] = typer.Option(
        None, "--timeout-ms", help="How long to wait for an MCP response"
    ),
    lax_matching: Optional[bool] = typer.Option(
        None,
        "--lax-matching/--strict-matching",
        help="Also accept responses without a matching id if they carry a result",
    ),
    log_level: str = typer.Option("info", "--log-level", help="Logging level"),
):
    """Run the stdio-to-HTTP gateway."""
    load_env_file()
    setup_logging(log_level)
    try:
        options = GatewayOptions.from_env(
            port=port,
            host=host,
            command=command,
            args=args or None,
            cors=cors,
            health_path=health_endpoint,
            timeout_ms=timeout_ms,
            lax_matching=lax_matching,
        )
    except ValidationError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(code=1)

    logger.info(f"Starting {options.service_name} with options: {options.model_dump()}")

    from mcp_gateway.main import run

    run(options, log_level=log_level)


@app.command()
def direct(
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on"),
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    log_level: str = typer.Option("info", "--log-level", help="Logging level"),
):
    """Run the REST proxy that calls the Gong API without a subprocess."""
    load_env_file()
    setup_logging(log_level)
    if not os.environ.get("GONG_ACCESS_KEY") or not os.environ.get("GONG_ACCESS_SECRET"):
        typer.echo(
            "Error: GONG_ACCESS_KEY and GONG_ACCESS_SECRET environment variables are required",
            err=True,
        )
        raise typer.Exit(code=1)
    try:
        options = DirectOptions.from_env(port=port, host=host)
    except ValidationError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(code=1)

    logger.info(f"Starting Gong HTTP API server on port {options.port}")

    from mcp_gateway.main import run_direct

    run_direct(options, log_level=log_level)


if __name__ == "__main__":
    app()
