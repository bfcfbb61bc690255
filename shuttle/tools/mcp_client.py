"""MCP client: adapts tools hosted by an MCP server into registry tools."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from ..errors import McpError
from ..types import ExecutionContext, Tool, ToolResult
from .mcp_transport import McpTransport, SseTransport, StdioTransport

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
CLIENT_INFO = {"name": "shuttle", "version": "0.1.0"}


@dataclass
class McpServerConfig:
    name: str
    transport: Literal["stdio", "sse"] = "stdio"
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] | None = None
    url: str | None = None
    headers: dict[str, str] | None = None


def create_transport(config: McpServerConfig) -> McpTransport:
    if config.transport == "stdio":
        if not config.command:
            raise McpError(config.name, "Command is required for stdio transport")
        return StdioTransport(config.command, config.args, env=config.env)
    if config.transport == "sse":
        if not config.url:
            raise McpError(config.name, "URL is required for SSE transport")
        return SseTransport(config.url, headers=config.headers)
    raise McpError(config.name, f"Unsupported transport: {config.transport}")


class McpClient:
    def __init__(self, config: McpServerConfig, transport: McpTransport | None = None) -> None:
        self.config = config
        self._transport = transport
        self._connected = False

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def is_connected(self) -> bool:
        # the transport closes itself when the server goes away
        return self._connected and self._transport is not None and not self._transport.closed

    async def connect(self) -> None:
        if self.is_connected:
            return
        transport = self._transport or create_transport(self.config)
        try:
            await transport.start()
            await transport.request("initialize", {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": CLIENT_INFO,
            })
            await transport.notify("notifications/initialized")
        except Exception as e:
            await transport.close()
            raise McpError(self.name, f"Failed to connect to MCP server {self.name}: {e}", e) from e
        self._transport = transport
        self._connected = True
        logger.info("Connected to MCP server %s", self.name)

    async def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        if self._transport:
            await self._transport.close()
        logger.info("Disconnected from MCP server %s", self.name)

    async def list_tools(self) -> list[Tool]:
        if not self.is_connected:
            raise McpError(self.name, "MCP client is not connected")
        result = await self._transport.request("tools/list")
        return [self._adapt_tool(t) for t in result.get("tools", [])]

    async def call_tool(self, name: str, args: Any) -> ToolResult:
        if not self.is_connected:
            return ToolResult(error=f"MCP server {self.name} is not connected")
        if isinstance(args, str):
            try:
                args = json.loads(args)
            except json.JSONDecodeError:
                return ToolResult(error=f"Invalid arguments for {name}: {args}")
        try:
            result = await self._transport.request(
                "tools/call", {"name": name, "arguments": args or {}}
            )
        except Exception as e:
            logger.warning("MCP call %s/%s failed: %s", self.name, name, e)
            return ToolResult(error=str(e) or type(e).__name__)

        output = _content_to_text(result.get("content"))
        if result.get("isError"):
            return ToolResult(output=output, error=output or "MCP tool error")
        return ToolResult(output=output)

    def _adapt_tool(self, spec: dict[str, Any]) -> Tool:
        tool_name = spec["name"]

        async def _execute(args: Any, ctx: ExecutionContext) -> ToolResult:
            return await self.call_tool(tool_name, args)

        return Tool(
            name=tool_name,
            description=spec.get("description") or "",
            parameters=spec.get("inputSchema") or {"type": "object", "properties": {}},
            execute=_execute,
        )


def _content_to_text(content: Any) -> str:
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(item["text"])
            else:
                parts.append(json.dumps(item))
        return "\n".join(parts)
    return json.dumps(content)


async def connect_mcp(config: McpServerConfig) -> McpClient:
    client = McpClient(config)
    await client.connect()
    return client
