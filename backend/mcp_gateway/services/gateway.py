from typing import Any, Dict, List, Optional

from mcp_gateway.core.config import GatewayOptions
from mcp_gateway.core.errors import GatewayError, SessionNotFound
from mcp_gateway.core.logging import logger
from mcp_gateway.services import correlator
from mcp_gateway.services.process import ProcessHandle
from mcp_gateway.services.registry import Session, SessionRegistry

PROTOCOL_VERSION = "2024-11-05"
EPHEMERAL_CLIENT_ID = "api-call"
INITIALIZE_ID = 1
TOOL_CALL_ID = 2


class Gateway:
    """Session and exchange operations behind the HTTP routes."""

    def __init__(
        self, options: GatewayOptions, registry: Optional[SessionRegistry] = None
    ) -> None:
        self.options = options
        self.registry = registry if registry is not None else SessionRegistry()

    async def create_session(self, client_id: str) -> Session:
        # A failed spawn leaves the row behind until destroy or shutdown cleanup.
        session = self.registry.create(client_id)
        await self.registry.attach_process(
            session.id, self.options.command, self.options.args
        )
        return session

    async def send_message(
        self, session_id: str, message: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        session = self.registry.get(session_id)
        if session is None or session.process is None:
            raise SessionNotFound("Session not found or inactive")

        try:
            if message.get("id") is None:
                await correlator.notify(session.process, message)
                response = None
            else:
                response = await self._exchange(session.process, message)
        except GatewayError as exc:
            logger.error(
                f"Error sending message to MCP for session {session_id}: {exc}"
            )
            raise

        self.registry.touch(session_id)
        return response

    def destroy_session(self, session_id: str) -> None:
        self.registry.destroy(session_id)

    def list_sessions(self) -> List[Session]:
        return self.registry.list_all()

    async def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Run one tools/call against a throwaway session."""
        session = self.registry.create(EPHEMERAL_CLIENT_ID)
        try:
            handle = await self.registry.attach_process(
                session.id, self.options.command, self.options.args
            )
            await self._exchange(handle, self._initialize_message())
            await correlator.notify(
                handle, {"jsonrpc": "2.0", "method": "notifications/initialized"}
            )
            return await self._exchange(
                handle,
                {
                    "jsonrpc": "2.0",
                    "id": TOOL_CALL_ID,
                    "method": "tools/call",
                    "params": {"name": tool_name, "arguments": arguments},
                },
            )
        finally:
            self.registry.destroy(session.id)

    async def list_calls(
        self, from_date_time: Optional[str] = None, to_date_time: Optional[str] = None
    ) -> Dict[str, Any]:
        arguments: Dict[str, Any] = {}
        if from_date_time:
            arguments["fromDateTime"] = from_date_time
        if to_date_time:
            arguments["toDateTime"] = to_date_time
        return await self.call_tool("list_calls", arguments)

    async def retrieve_transcripts(self, call_ids: List[Any]) -> Dict[str, Any]:
        return await self.call_tool("retrieve_transcripts", {"callIds": call_ids})

    async def _exchange(
        self, handle: ProcessHandle, message: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await correlator.exchange(
            handle,
            message,
            timeout_ms=self.options.timeout_ms,
            lax_matching=self.options.lax_matching,
            max_buffer_bytes=self.options.max_buffer_bytes,
        )

    def _initialize_message(self) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": INITIALIZE_ID,
            "method": "initialize",
            "params": {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {
                    "name": self.options.client_name,
                    "version": self.options.client_version,
                },
            },
        }
