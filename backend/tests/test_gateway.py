import sys

import pytest

from mcp_gateway.core.config import GatewayOptions
from mcp_gateway.core.errors import GatewayError, SessionNotFound, SpawnFailed
from mcp_gateway.services.gateway import EPHEMERAL_CLIENT_ID, Gateway

from conftest import stub_options


@pytest.mark.asyncio
async def test_create_session_spawns_process(registry):
    gateway = Gateway(stub_options("echo"), registry)

    session = await gateway.create_session("client-1")

    assert registry.get(session.id) is session
    assert session.process is not None
    assert session.process.returncode is None


@pytest.mark.asyncio
async def test_create_session_spawn_failure_leaves_row(registry):
    options = GatewayOptions(command="/nonexistent/mcp-server", args=[])
    gateway = Gateway(options, registry)

    with pytest.raises(SpawnFailed):
        await gateway.create_session("client-1")

    sessions = gateway.list_sessions()
    assert len(sessions) == 1
    assert sessions[0].client_id == "client-1"
    assert sessions[0].process is None

    with pytest.raises(SessionNotFound):
        await gateway.send_message(sessions[0].id, {"jsonrpc": "2.0", "id": 1})


@pytest.mark.asyncio
async def test_send_message_round_trip_touches_session(registry):
    gateway = Gateway(stub_options("echo"), registry)
    session = await gateway.create_session("client-1")
    before = session.last_activity

    response = await gateway.send_message(
        session.id, {"jsonrpc": "2.0", "id": 7, "method": "tools/list"}
    )

    assert response["id"] == 7
    assert response["result"]["echo"]["method"] == "tools/list"
    assert session.last_activity >= before


@pytest.mark.asyncio
async def test_send_notification_returns_none(registry):
    gateway = Gateway(stub_options("echo"), registry)
    session = await gateway.create_session("client-1")

    response = await gateway.send_message(
        session.id, {"jsonrpc": "2.0", "method": "notifications/initialized"}
    )

    assert response is None


@pytest.mark.asyncio
async def test_send_message_unknown_session(registry):
    gateway = Gateway(stub_options("echo"), registry)

    with pytest.raises(SessionNotFound, match="Session not found or inactive"):
        await gateway.send_message("missing", {"jsonrpc": "2.0", "id": 1})


@pytest.mark.asyncio
async def test_send_message_after_destroy(registry):
    gateway = Gateway(stub_options("echo"), registry)
    session = await gateway.create_session("client-1")
    handle = session.process

    gateway.destroy_session(session.id)

    assert registry.get(session.id) is None
    with pytest.raises(SessionNotFound):
        await gateway.send_message(session.id, {"jsonrpc": "2.0", "id": 1})
    assert await handle.wait_closed() != 0


@pytest.mark.asyncio
async def test_destroy_unknown_session_is_silent(registry):
    gateway = Gateway(stub_options("echo"), registry)

    gateway.destroy_session("missing")


@pytest.mark.asyncio
async def test_call_tool_end_to_end(registry):
    gateway = Gateway(stub_options("echo"), registry)

    response = await gateway.call_tool("list_calls", {"fromDateTime": "2024-01-01"})

    assert response == {"jsonrpc": "2.0", "id": 2, "result": {"content": "ok"}}
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_call_tool_with_lax_matching_and_id_less_server(registry):
    gateway = Gateway(stub_options("no-id", lax_matching=True), registry)

    response = await gateway.call_tool("list_calls", {})

    assert response == {"jsonrpc": "2.0", "result": {"content": "ok"}}
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_call_tool_cleans_up_when_server_dies(registry):
    gateway = Gateway(stub_options("exit-after-init"), registry)

    with pytest.raises(GatewayError):
        await gateway.call_tool("list_calls", {})

    assert len(registry) == 0
    assert all(s.client_id != EPHEMERAL_CLIENT_ID for s in registry.list_all())


@pytest.mark.asyncio
async def test_call_tool_cleans_up_on_spawn_failure(registry):
    options = GatewayOptions(command="/nonexistent/mcp-server", args=[])
    gateway = Gateway(options, registry)

    with pytest.raises(SpawnFailed):
        await gateway.call_tool("list_calls", {})

    assert len(registry) == 0


@pytest.mark.asyncio
async def test_list_calls_drops_missing_arguments(registry):
    gateway = Gateway(stub_options("echo"), registry)
    calls = []

    async def fake_call_tool(name, arguments):
        calls.append((name, arguments))
        return {"result": {}}

    gateway.call_tool = fake_call_tool

    await gateway.list_calls(from_date_time="2024-01-01T00:00:00Z")
    await gateway.retrieve_transcripts(["c1", "c2"])

    assert calls == [
        ("list_calls", {"fromDateTime": "2024-01-01T00:00:00Z"}),
        ("retrieve_transcripts", {"callIds": ["c1", "c2"]}),
    ]
