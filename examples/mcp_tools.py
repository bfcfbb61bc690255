#!/usr/bin/env python3
"""
Shuttle - MCP Tools Example

Connects to an MCP server over stdio and hands its tools to an agent.

    python mcp_tools.py npx -y @modelcontextprotocol/server-filesystem /tmp
"""

import asyncio
import sys

from shuttle import Agent, AgentConfig, McpManager, McpServerConfig, get_text_content
from shuttle.providers import AnthropicProvider


async def main(command: str, args: list[str]):
    async with McpManager() as manager:
        tools = await manager.add_server(McpServerConfig(name="fs", command=command, args=args))
        print(f"Loaded {len(tools)} MCP tools: {', '.join(t.name for t in tools)}")

        config = AgentConfig(model="claude-sonnet-4-5", max_steps=10)
        agent = Agent(AnthropicProvider(), config, tools=tools)
        session = agent.create_session()
        messages = await agent.run(session, "List the files you can see.")
        print(get_text_content(messages[-1]))


if __name__ == "__main__":
    if len(sys.argv) < 2:
        sys.exit("usage: mcp_tools.py COMMAND [ARGS...]")
    asyncio.run(main(sys.argv[1], sys.argv[2:]))
