import asyncio
import os
from typing import Callable, Dict, List, Optional, Sequence

from mcp_gateway.core.errors import SpawnFailed, WriteFailed
from mcp_gateway.core.logging import logger

CHUNK_SIZE = 64 * 1024

# Receives every stdout chunk as it arrives; b"" signals end of stream.
OutputListener = Callable[[bytes], None]


class ProcessHandle:
    """One spawned MCP server subprocess and its three pipes.

    stdout is read in chunks by a background task and handed to whichever
    listeners are attached at that moment. Chunks that arrive while nobody
    listens are dropped.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        label: str = "",
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self.process = process
        self.label = label or str(process.pid)
        self.chunk_size = chunk_size
        self.exchange_lock = asyncio.Lock()
        self._listeners: List[OutputListener] = []
        self._stdout_closed = False
        self._stdout_task = asyncio.create_task(self._pump_stdout())
        self._stderr_task = asyncio.create_task(self._drain_stderr())
        self._exit_task = asyncio.create_task(self._watch_exit())

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode

    @property
    def stdout_closed(self) -> bool:
        return self._stdout_closed

    @property
    def closed(self) -> bool:
        """True once the process has exited and both output pipes hit EOF."""
        return all(
            task.done()
            for task in (self._stdout_task, self._stderr_task, self._exit_task)
        )

    def add_listener(self, listener: OutputListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: OutputListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def write(self, data: bytes) -> None:
        stdin = self.process.stdin
        if self.returncode is not None:
            raise WriteFailed(f"MCP process exited with code {self.returncode}")
        if stdin is None or stdin.is_closing():
            raise WriteFailed("MCP process input is closed")
        try:
            stdin.write(data)
            await stdin.drain()
        except (OSError, RuntimeError) as exc:
            raise WriteFailed(f"Failed to write to MCP process: {exc}") from exc

    def terminate(self) -> None:
        if self.returncode is not None:
            return
        try:
            self.process.terminate()
        except OSError as exc:
            logger.error(f"Error terminating MCP process for {self.label}: {exc}")

    async def wait_closed(self) -> int:
        """Wait until the process has exited and both pipes are drained."""
        returncode = await self.process.wait()
        await asyncio.gather(
            self._stdout_task,
            self._stderr_task,
            self._exit_task,
            return_exceptions=True,
        )
        return returncode

    async def _pump_stdout(self) -> None:
        stream = self.process.stdout
        try:
            while True:
                chunk = await stream.read(self.chunk_size)
                for listener in list(self._listeners):
                    try:
                        listener(chunk)
                    except Exception:
                        logger.exception(
                            f"Output listener failed for MCP process {self.label}"
                        )
                if not chunk:
                    break
        finally:
            self._stdout_closed = True

    async def _drain_stderr(self) -> None:
        stream = self.process.stderr
        while True:
            try:
                line = await stream.readline()
            except ValueError:
                # Over the reader limit; the oversized line has been discarded.
                continue
            if not line:
                break
            text = line.decode(errors="replace").rstrip()
            logger.debug(f"mcp[{self.label}]: {text}")

    async def _watch_exit(self) -> None:
        returncode = await self.process.wait()
        logger.info(f"MCP process for {self.label} exited with code {returncode}")


async def spawn(
    command: str,
    args: Sequence[str] = (),
    env: Optional[Dict[str, str]] = None,
    label: str = "",
) -> ProcessHandle:
    try:
        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env if env is not None else os.environ.copy(),
        )
    except (OSError, ValueError) as exc:
        raise SpawnFailed(f"Failed to start MCP process: {exc}") from exc
    return ProcessHandle(process, label=label)
