from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict


class MCPMessage(BaseModel):
    """A JSON-RPC message as sent over the MCP stdio transport.

    Unknown members are kept so the message reaches the subprocess intact.
    """

    model_config = ConfigDict(extra="allow")

    jsonrpc: str = "2.0"
    id: Optional[Union[int, str]] = None
    method: Optional[str] = None
    params: Optional[Any] = None
    result: Optional[Any] = None
    error: Optional[Any] = None

    def to_wire(self) -> Dict[str, Any]:
        payload = self.model_dump(exclude_unset=True)
        payload.setdefault("jsonrpc", self.jsonrpc)
        return payload
