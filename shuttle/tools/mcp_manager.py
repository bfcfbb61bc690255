"""MCP manager: tracks several named servers and aggregates their tools."""

from __future__ import annotations

import asyncio
import logging

from ..errors import McpError
from ..types import Tool
from .mcp_client import McpClient, McpServerConfig

logger = logging.getLogger(__name__)


class McpManager:
    def __init__(self) -> None:
        self._clients: dict[str, McpClient] = {}

    async def add_server(self, config: McpServerConfig, client: McpClient | None = None) -> list[Tool]:
        if config.name in self._clients:
            raise McpError(config.name, f"MCP server already exists: {config.name}")
        client = client or McpClient(config)
        await client.connect()
        self._clients[config.name] = client
        return await client.list_tools()

    async def remove_server(self, name: str) -> None:
        client = self._clients.pop(name, None)
        if client:
            await client.disconnect()

    def get_client(self, name: str) -> McpClient | None:
        return self._clients.get(name)

    async def list_all_tools(self) -> list[Tool]:
        tools: list[Tool] = []
        for client in self._clients.values():
            tools.extend(await client.list_tools())
        return tools

    async def disconnect_all(self) -> None:
        results = await asyncio.gather(
            *(client.disconnect() for client in self._clients.values()),
            return_exceptions=True,
        )
        for name, result in zip(list(self._clients), results):
            if isinstance(result, Exception):
                logger.warning("Error disconnecting MCP server %s: %s", name, result)
        self._clients.clear()

    def server_names(self) -> list[str]:
        return list(self._clients)

    def is_server_connected(self, name: str) -> bool:
        client = self._clients.get(name)
        return client.is_connected if client else False

    async def __aenter__(self) -> McpManager:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.disconnect_all()
