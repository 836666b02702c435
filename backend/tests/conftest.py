"""
Shared pytest fixtures for the gateway tests.

- stub_args / stub_options: run the scripted MCP server in stub_mcp_server.py
- FakeHandle / fake_spawner: process handles that never start a process
- a real registry whose shutdown waits for its subprocesses to exit
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional

import pytest
import pytest_asyncio

# Add backend directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mcp_gateway.core.config import GatewayOptions
from mcp_gateway.services.process import spawn
from mcp_gateway.services.registry import SessionRegistry

STUB_SERVER = str(Path(__file__).parent / "stub_mcp_server.py")


def stub_args(mode: str = "echo") -> List[str]:
    return ["-u", STUB_SERVER, mode]


def stub_options(mode: str = "echo", **overrides) -> GatewayOptions:
    values = {"command": sys.executable, "args": stub_args(mode), "timeout_ms": 5000}
    values.update(overrides)
    return GatewayOptions(**values)


class FakeHandle:
    """Stands in for ProcessHandle where no real process is needed."""

    def __init__(
        self,
        label: str = "",
        fail_terminate: bool = False,
        write_error: Optional[Exception] = None,
    ):
        self.label = label
        self.pid = 4242
        self.returncode = None
        self.stdout_closed = False
        self.exchange_lock = asyncio.Lock()
        self.listeners = []
        self.written: List[bytes] = []
        self.fail_terminate = fail_terminate
        self.write_error = write_error
        self.terminate_calls = 0

    @property
    def closed(self) -> bool:
        return self.returncode is not None

    def add_listener(self, listener) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    async def write(self, data: bytes) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.written.append(data)

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.fail_terminate:
            raise ProcessLookupError("process already gone")
        self.returncode = -15

    async def wait_closed(self):
        return self.returncode


class FakeSpawner:
    def __init__(
        self, fail_terminate: bool = False, write_error: Optional[Exception] = None
    ):
        self.fail_terminate = fail_terminate
        self.write_error = write_error
        self.spawned: List[FakeHandle] = []
        self.calls = []

    async def __call__(self, command, args=(), env=None, label=""):
        self.calls.append((command, list(args), label))
        handle = FakeHandle(
            label, fail_terminate=self.fail_terminate, write_error=self.write_error
        )
        self.spawned.append(handle)
        return handle


@pytest.fixture
def fake_spawner():
    return FakeSpawner()


@pytest.fixture
def fake_registry(fake_spawner):
    return SessionRegistry(spawner=fake_spawner)


@pytest_asyncio.fixture
async def handles():
    """Spawn stub servers on demand and reap them after the test."""
    spawned = []

    async def _spawn(mode: str = "echo"):
        handle = await spawn(sys.executable, stub_args(mode), label=f"stub-{mode}")
        spawned.append(handle)
        return handle

    yield _spawn

    for handle in spawned:
        handle.terminate()
    for handle in spawned:
        await asyncio.wait_for(handle.wait_closed(), timeout=10)


@pytest_asyncio.fixture
async def registry():
    """Registry backed by real subprocesses, cleaned up after the test."""
    registry = SessionRegistry()
    yield registry
    await registry.shutdown(timeout=10)
