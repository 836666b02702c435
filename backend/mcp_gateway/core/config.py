import os
import shlex
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

VERSION = "0.1.0"

DEFAULT_PORT = 8000
DEFAULT_COMMAND = "node"
DEFAULT_ARGS = ["dist/index.js"]
DEFAULT_HEALTH_PATH = "/health"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_BUFFER_BYTES = 4 * 1024 * 1024

DIRECT_DEFAULT_PORT = 3000
GONG_API_URL = "https://api.gong.io/v2"

_TRUTHY = {"1", "true", "yes", "on"}


def load_env_file(path: Optional[str] = None) -> None:
    load_dotenv(path or os.path.join(os.getcwd(), ".env"), override=False)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_args(name: str, default: List[str]) -> List[str]:
    raw = os.environ.get(name)
    if raw is None:
        return list(default)
    return shlex.split(raw)


class GatewayOptions(BaseModel):
    """Startup configuration for the stdio gateway. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    command: str = Field(default=DEFAULT_COMMAND, min_length=1)
    args: List[str] = Field(default_factory=lambda: list(DEFAULT_ARGS))
    cors: bool = True
    health_path: str = DEFAULT_HEALTH_PATH
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    max_buffer_bytes: int = Field(default=DEFAULT_MAX_BUFFER_BYTES, gt=0)
    # Accept any response carrying a result when no id matches. Off by default.
    lax_matching: bool = False
    service_name: str = "MCP Gateway"
    client_name: str = "mcp-gateway"
    client_version: str = VERSION

    @field_validator("health_path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        value = value.strip() or DEFAULT_HEALTH_PATH
        return value if value.startswith("/") else f"/{value}"

    @classmethod
    def from_env(cls, **overrides) -> "GatewayOptions":
        values = {
            "host": os.environ.get("MCP_GATEWAY_HOST", "127.0.0.1"),
            "port": os.environ.get("PORT", str(DEFAULT_PORT)),
            "command": os.environ.get("MCP_COMMAND", DEFAULT_COMMAND),
            "args": _env_args("MCP_ARGS", DEFAULT_ARGS),
            "cors": _env_bool("MCP_GATEWAY_CORS", True),
            "health_path": os.environ.get(
                "MCP_GATEWAY_HEALTH_PATH", DEFAULT_HEALTH_PATH
            ),
            "timeout_ms": os.environ.get(
                "MCP_REQUEST_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS)
            ),
            "max_buffer_bytes": os.environ.get(
                "MCP_MAX_BUFFER_BYTES", str(DEFAULT_MAX_BUFFER_BYTES)
            ),
            "lax_matching": _env_bool("MCP_LAX_MATCHING", False),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class DirectOptions(BaseModel):
    """Configuration for the REST proxy that talks to Gong directly."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=DIRECT_DEFAULT_PORT, ge=0, le=65535)
    access_key: str = Field(min_length=1)
    access_secret: str = Field(min_length=1)
    api_url: str = GONG_API_URL

    @classmethod
    def from_env(cls, **overrides) -> "DirectOptions":
        values = {
            "host": os.environ.get("MCP_GATEWAY_HOST", "127.0.0.1"),
            "port": os.environ.get("PORT", str(DIRECT_DEFAULT_PORT)),
            "access_key": os.environ.get("GONG_ACCESS_KEY", ""),
            "access_secret": os.environ.get("GONG_ACCESS_SECRET", ""),
            "api_url": os.environ.get("GONG_API_URL", GONG_API_URL),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
