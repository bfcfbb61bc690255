"""
Tests for the MCP client, manager and transports.

``FakeTransport`` answers JSON-RPC requests in-process so the client logic can
be tested without spawning a server.
"""

import asyncio

import pytest

from shuttle import McpClient, McpError, McpManager, McpServerConfig, ToolRegistry
from shuttle.tools.mcp_client import create_transport
from shuttle.tools.mcp_transport import McpTransport, SseTransport, StdioTransport
from shuttle.types import ExecutionContext


class FakeTransport(McpTransport):
    def __init__(self, tools=None, fail_on=None):
        super().__init__(request_timeout=1.0)
        self.tools = tools or [{"name": "echo", "description": "Echo", "inputSchema": {"type": "object"}}]
        self.fail_on = fail_on
        self.sent = []
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True
        self._fail_pending("closed")

    async def _send(self, payload):
        self.sent.append(payload)
        if "id" not in payload:
            return
        method = payload["method"]
        if method == self.fail_on:
            self._handle_message({"jsonrpc": "2.0", "id": payload["id"],
                                  "error": {"code": -1, "message": f"{method} refused"}})
            return
        if method == "initialize":
            result = {"protocolVersion": "2024-11-05"}
        elif method == "tools/list":
            result = {"tools": self.tools}
        else:
            args = payload["params"]["arguments"]
            if payload["params"]["name"] == "bad":
                result = {"content": [{"type": "text", "text": "nope"}], "isError": True}
            else:
                result = {"content": [{"type": "text", "text": args.get("text", "")}]}
        self._handle_message({"jsonrpc": "2.0", "id": payload["id"], "result": result})


def _client(name="fake", **kwargs):
    return McpClient(McpServerConfig(name=name, command="unused"), transport=FakeTransport(**kwargs))


CTX = ExecutionContext(session_id="s", message_id="m")


class TestMcpClient:
    @pytest.mark.asyncio
    async def test_connect_performs_handshake(self):
        client = _client()
        await client.connect()
        transport = client._transport
        assert client.is_connected
        assert [p["method"] for p in transport.sent] == ["initialize", "notifications/initialized"]
        assert transport.sent[0]["params"]["clientInfo"]["name"] == "shuttle"

    @pytest.mark.asyncio
    async def test_failed_handshake_raises_and_closes(self):
        client = _client(fail_on="initialize")
        with pytest.raises(McpError) as exc_info:
            await client.connect()
        assert "initialize refused" in str(exc_info.value)
        assert client._transport.closed
        assert not client.is_connected

    @pytest.mark.asyncio
    async def test_list_tools_requires_connection(self):
        with pytest.raises(McpError):
            await _client().list_tools()

    @pytest.mark.asyncio
    async def test_adapted_tools_call_through(self):
        client = _client()
        await client.connect()
        tools = await client.list_tools()
        assert [t.name for t in tools] == ["echo"]
        result = await tools[0].execute({"text": "hello"}, CTX)
        assert result.output == "hello"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_call_tool_string_arguments(self):
        client = _client()
        await client.connect()
        assert (await client.call_tool("echo", '{"text": "hi"}')).output == "hi"
        bad = await client.call_tool("echo", "{not json")
        assert bad.error.startswith("Invalid arguments for echo")

    @pytest.mark.asyncio
    async def test_server_reported_error(self):
        client = _client()
        await client.connect()
        result = await client.call_tool("bad", {})
        assert result.error == "nope"

    @pytest.mark.asyncio
    async def test_rpc_failure_becomes_error_result(self):
        client = _client(fail_on="tools/call")
        await client.connect()
        result = await client.call_tool("echo", {"text": "x"})
        assert result.error == "tools/call refused"

    @pytest.mark.asyncio
    async def test_transport_loss_reports_disconnected(self):
        client = _client()
        await client.connect()
        client._transport.closed = True
        assert not client.is_connected
        result = await client.call_tool("echo", {"text": "x"})
        assert "not connected" in result.error
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_call_after_disconnect(self):
        client = _client()
        await client.connect()
        await client.disconnect()
        result = await client.call_tool("echo", {})
        assert "not connected" in result.error


class TestCreateTransport:
    def test_stdio_requires_command(self):
        with pytest.raises(McpError):
            create_transport(McpServerConfig(name="x"))

    def test_sse_requires_url(self):
        with pytest.raises(McpError):
            create_transport(McpServerConfig(name="x", transport="sse"))

    def test_builds_matching_transport(self):
        assert isinstance(create_transport(McpServerConfig(name="x", command="srv")), StdioTransport)
        sse = create_transport(McpServerConfig(name="x", transport="sse", url="http://h/sse"))
        assert isinstance(sse, SseTransport)

    def test_unknown_transport(self):
        with pytest.raises(McpError):
            create_transport(McpServerConfig(name="x", transport="carrier-pigeon"))


class TestMcpManager:
    @pytest.mark.asyncio
    async def test_aggregates_tools_across_servers(self):
        manager = McpManager()
        await manager.add_server(McpServerConfig(name="a"), client=_client("a"))
        await manager.add_server(
            McpServerConfig(name="b"),
            client=_client("b", tools=[{"name": "search"}, {"name": "fetch"}]),
        )
        names = [t.name for t in await manager.list_all_tools()]
        assert names == ["echo", "search", "fetch"]
        assert manager.server_names() == ["a", "b"]

        registry = ToolRegistry(await manager.list_all_tools())
        assert "fetch" in registry

    @pytest.mark.asyncio
    async def test_duplicate_server_name_rejected(self):
        manager = McpManager()
        await manager.add_server(McpServerConfig(name="a"), client=_client("a"))
        with pytest.raises(McpError):
            await manager.add_server(McpServerConfig(name="a"), client=_client("a"))

    @pytest.mark.asyncio
    async def test_remove_and_disconnect_all(self):
        async with McpManager() as manager:
            await manager.add_server(McpServerConfig(name="a"), client=_client("a"))
            await manager.add_server(McpServerConfig(name="b"), client=_client("b"))
            await manager.remove_server("a")
            assert not manager.is_server_connected("a")
            assert manager.is_server_connected("b")
            client_b = manager.get_client("b")
        assert manager.server_names() == []
        assert not client_b.is_connected


class TestTransportDispatch:
    @pytest.mark.asyncio
    async def test_closed_transport_rejects_requests(self):
        transport = FakeTransport()
        await transport.close()
        with pytest.raises(ConnectionError):
            await transport.request("tools/list")
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_rpc_error_fails_request(self):
        transport = FakeTransport(fail_on="ping")
        with pytest.raises(RuntimeError, match="ping refused"):
            await transport.request("ping")

    @pytest.mark.asyncio
    async def test_unmatched_responses_are_ignored(self):
        transport = FakeTransport()
        transport._handle_message({"jsonrpc": "2.0", "id": 99, "result": {}})
        transport._handle_message({"jsonrpc": "2.0", "method": "notifications/progress"})
        assert transport._pending == {}

    @pytest.mark.asyncio
    async def test_sse_endpoint_and_message_events(self):
        transport = SseTransport("http://localhost:8000/sse")
        transport._endpoint = asyncio.get_running_loop().create_future()
        transport._dispatch("endpoint", "/messages?session=abc")
        assert transport._endpoint.result() == "http://localhost:8000/messages?session=abc"

        future = asyncio.get_running_loop().create_future()
        transport._pending[1] = future
        transport._dispatch("message", '{"jsonrpc": "2.0", "id": 1, "result": {"ok": true}}')
        assert future.result() == {"ok": True}

        transport._dispatch("message", "garbage")
