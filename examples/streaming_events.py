#!/usr/bin/env python3
"""
Shuttle - Streaming Events Demo

Streams a turn and prints each agent event. Uses the scripted provider, so
it runs offline.
"""

import asyncio

from shuttle import Agent, ToolResult, define_tool
from shuttle.providers import ScriptedProvider
from shuttle.types import InferenceResponse, TextBlock, ToolCallBlock


async def add(args, ctx):
    return ToolResult(output=str(args["a"] + args["b"]))


async def main():
    provider = ScriptedProvider(
        [
            InferenceResponse(
                content=[
                    TextBlock("Adding the numbers."),
                    ToolCallBlock(id="call_1", name="add", arguments={"a": 2, "b": 3}),
                ],
                finish_reason="tool_calls",
            ),
            InferenceResponse(content=[TextBlock("2 + 3 = 5")]),
        ],
        chunk_size=4,
    )
    tool = define_tool(
        "add",
        "Add two integers",
        {
            "type": "object",
            "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
            "required": ["a", "b"],
        },
        add,
    )
    agent = Agent(provider, tools=[tool])
    session = agent.create_session()

    async for event in agent.stream(session, "What is 2 + 3?"):
        if event.type == "text":
            print(event.text, end="", flush=True)
        elif event.type == "tool_call":
            print(f"\n[tool] {event.name}({event.args})")
        elif event.type == "tool_result":
            print(f"[result] {event.result}")
        elif event.type == "done":
            print(f"\n[done] {event.steps} steps, {event.usage.total_tokens} tokens")


if __name__ == "__main__":
    asyncio.run(main())
