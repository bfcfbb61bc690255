"""
Pytest Configuration and Fixtures
"""

import pytest

from shuttle import ToolResult, define_tool
from shuttle.types import InferenceResponse, TextBlock, ToolCallBlock, Usage


def _text_response(text: str, usage: Usage | None = None) -> InferenceResponse:
    return InferenceResponse(
        content=[TextBlock(text=text)], finish_reason="stop", usage=usage or Usage(3, 5)
    )


def _tool_response(*calls: tuple[str, str, object], text: str = "") -> InferenceResponse:
    content = [TextBlock(text=text)] if text else []
    content.extend(ToolCallBlock(id=cid, name=name, arguments=args) for cid, name, args in calls)
    return InferenceResponse(content=content, finish_reason="tool_calls", usage=Usage(4, 2))


@pytest.fixture
def echo_tool():
    """Tool that echoes its ``text`` argument."""

    async def _execute(args, ctx):
        return ToolResult(output=f"echo: {args['text']}")

    return define_tool(
        name="echo",
        description="Echo the input text",
        parameters={
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        },
        execute=_execute,
    )


@pytest.fixture
def boom_tool():
    """Tool whose executor always raises."""

    async def _execute(args, ctx):
        raise RuntimeError("boom")

    return define_tool(
        name="boom",
        description="Always fails",
        parameters={"type": "object", "properties": {}},
        execute=_execute,
    )


@pytest.fixture
def text_response():
    """Factory for a final (no tool calls) inference response."""
    return _text_response


@pytest.fixture
def tool_response():
    """Factory for a response requesting ``(id, name, args)`` tool calls."""
    return _tool_response
