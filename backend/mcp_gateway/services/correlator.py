"""Request/response correlation over a line-delimited JSON-RPC stream.

One exchange writes a single request line to the subprocess and waits for
the response line carrying the same ``id``. stdout arrives in arbitrary
chunks, so bytes are buffered until a newline completes a line. Lines that
are not JSON objects (startup banners, partial garbage) are skipped.

Exchanges on one process handle are serialized through the handle's lock,
which keeps exactly one pending waiter per handle.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

from mcp_gateway.core.config import DEFAULT_MAX_BUFFER_BYTES, DEFAULT_TIMEOUT_MS
from mcp_gateway.core.errors import BufferOverflow, ExchangeTimeout, ProcessExited
from mcp_gateway.core.logging import logger
from mcp_gateway.services.process import ProcessHandle

DELIMITER = b"\n"


class LineBuffer:
    def __init__(self, max_bytes: int = DEFAULT_MAX_BUFFER_BYTES) -> None:
        self.max_bytes = max_bytes
        self._pending = bytearray()

    @property
    def overflowed(self) -> bool:
        return len(self._pending) > self.max_bytes

    def feed(self, chunk: bytes) -> List[bytes]:
        """Append a chunk and return every line it completed."""
        self._pending.extend(chunk)
        if DELIMITER not in chunk:
            return []
        *lines, rest = self._pending.split(DELIMITER)
        self._pending = bytearray(rest)
        return [bytes(line) for line in lines]


def encode_message(message: Dict[str, Any]) -> bytes:
    # json.dumps escapes control characters, so the line holds no raw newline.
    return json.dumps(message).encode("utf-8") + DELIMITER


def decode_line(line: bytes) -> Optional[Dict[str, Any]]:
    text = line.strip()
    if not text:
        return None
    try:
        message = json.loads(text.decode("utf-8"))
    except (ValueError, RecursionError):
        return None
    return message if isinstance(message, dict) else None


def carries_result(message: Dict[str, Any]) -> bool:
    result = message.get("result")
    if isinstance(result, (dict, list)):
        return True
    return bool(result)


def matches_request(
    message: Dict[str, Any], request_id: Any, lax_matching: bool = False
) -> bool:
    if request_id is not None and message.get("id") == request_id:
        return True
    return lax_matching and carries_result(message)


class PendingExchange:
    """Output listener that resolves a future with the first matching line."""

    def __init__(
        self,
        request_id: Any,
        lax_matching: bool = False,
        max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES,
    ) -> None:
        self.request_id = request_id
        self.lax_matching = lax_matching
        self.buffer = LineBuffer(max_buffer_bytes)
        self.future: asyncio.Future = asyncio.get_running_loop().create_future()

    def __call__(self, chunk: bytes) -> None:
        if self.future.done():
            return
        if not chunk:
            self.future.set_exception(
                ProcessExited("MCP process closed its output before responding")
            )
            return

        for line in self.buffer.feed(chunk):
            message = decode_line(line)
            if message is None:
                if line.strip():
                    logger.debug(f"Discarding unparseable MCP output: {line[:200]!r}")
                continue
            if matches_request(message, self.request_id, self.lax_matching):
                self.future.set_result(message)
                return
            logger.debug(f"Ignoring unrelated MCP message (id={message.get('id')})")

        if self.buffer.overflowed:
            self.future.set_exception(
                BufferOverflow(
                    f"MCP output line exceeded {self.buffer.max_bytes} bytes"
                )
            )


async def exchange(
    handle: ProcessHandle,
    request: Dict[str, Any],
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    lax_matching: bool = False,
    max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES,
) -> Dict[str, Any]:
    payload = encode_message(request)
    async with handle.exchange_lock:
        pending = PendingExchange(request.get("id"), lax_matching, max_buffer_bytes)
        handle.add_listener(pending)
        try:
            if handle.stdout_closed:
                raise ProcessExited("MCP process output is closed")
            await handle.write(payload)
            try:
                return await asyncio.wait_for(
                    pending.future, timeout=timeout_ms / 1000.0
                )
            except asyncio.TimeoutError:
                raise ExchangeTimeout("MCP request timeout") from None
        finally:
            handle.remove_listener(pending)


async def notify(handle: ProcessHandle, message: Dict[str, Any]) -> None:
    """Write a message that expects no reply."""
    await handle.write(encode_message(message))
