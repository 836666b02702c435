import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from mcp_gateway.core.errors import SessionNotFound, SpawnFailed
from mcp_gateway.core.logging import logger
from mcp_gateway.services.process import ProcessHandle, spawn
from mcp_gateway.utils.time import utc_datetime

Spawner = Callable[..., Awaitable[ProcessHandle]]

SHUTDOWN_TIMEOUT = 5.0


@dataclass
class Session:
    id: str
    client_id: str
    created_at: datetime = field(default_factory=utc_datetime)
    last_activity: datetime = field(default_factory=utc_datetime)
    is_active: bool = True
    process: Optional[ProcessHandle] = None


class SessionRegistry:
    """In-memory map of session id to session, owning each session's process.

    Every mutation runs on the event loop without awaiting in between, so
    create/destroy of distinct ids cannot interleave badly. Terminated
    processes are remembered until they have fully exited so that
    ``shutdown`` can wait for them.
    """

    def __init__(self, spawner: Spawner = spawn) -> None:
        self._sessions: Dict[str, Session] = {}
        self._terminated: List[ProcessHandle] = []
        self._spawn = spawner

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, client_id: str) -> Session:
        now = utc_datetime()
        session = Session(
            id=str(uuid.uuid4()), client_id=client_id, created_at=now, last_activity=now
        )
        self._sessions[session.id] = session
        logger.info(f"Created session {session.id} for client {client_id}")
        return session

    async def attach_process(
        self,
        session_id: str,
        command: str,
        args: Sequence[str] = (),
        env: Optional[Dict[str, str]] = None,
    ) -> ProcessHandle:
        session = self._sessions.get(session_id)
        if session is None:
            logger.error(f"Session {session_id} not found")
            raise SessionNotFound(f"Session {session_id} not found")

        try:
            handle = await self._spawn(command, args, env=env, label=session_id)
        except SpawnFailed as exc:
            logger.error(f"Failed to start MCP process for session {session_id}: {exc}")
            raise

        if self._sessions.get(session_id) is not session:
            # Destroyed while the process was starting.
            self._terminate(session_id, handle)
            raise SessionNotFound(f"Session {session_id} not found")

        if session.process is not None:
            self._terminate(session_id, session.process)
        session.process = handle
        logger.info(f"Started MCP process for session {session_id} (pid {handle.pid})")
        return handle

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def touch(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session:
            session.last_activity = utc_datetime()

    def destroy(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if session.process is not None:
            self._terminate(session_id, session.process)
        session.is_active = False
        logger.info(f"Destroyed session {session_id}")
        return True

    def list_all(self) -> List[Session]:
        return list(self._sessions.values())

    def cleanup(self) -> None:
        for session_id in list(self._sessions):
            self.destroy(session_id)
        logger.info("All sessions cleaned up")

    async def shutdown(self, timeout: float = SHUTDOWN_TIMEOUT) -> None:
        """Destroy every session and wait for the terminated processes to exit."""
        self.cleanup()
        pending, self._terminated = self._terminated, []
        if not pending:
            return
        try:
            await asyncio.wait_for(
                asyncio.gather(
                    *(handle.wait_closed() for handle in pending),
                    return_exceptions=True,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"MCP processes still running {timeout}s after shutdown was requested"
            )

    def _terminate(self, session_id: str, handle: ProcessHandle) -> None:
        self._terminated = [h for h in self._terminated if not h.closed]
        self._terminated.append(handle)
        try:
            handle.terminate()
        except Exception as exc:
            logger.error(f"Error killing child process for session {session_id}: {exc}")
