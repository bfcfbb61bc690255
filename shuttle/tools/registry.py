"""Tool registry and tool definition helpers."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable

from pydantic import BaseModel

from ..errors import ToolNotFoundError
from ..types import ExecutionContext, JSONSchema, Tool, ToolDefinition, ToolResult
from .schema import PydanticSchema

logger = logging.getLogger(__name__)


def define_tool(
    name: str,
    description: str,
    parameters: JSONSchema,
    execute: Callable[[Any, ExecutionContext], Awaitable[ToolResult] | ToolResult],
) -> Tool:
    return Tool(name=name, description=description, parameters=parameters, execute=execute)


def define_model_tool(
    name: str,
    description: str,
    schema: type[BaseModel] | PydanticSchema,
    execute: Callable[[Any, ExecutionContext], Awaitable[ToolResult] | ToolResult],
) -> Tool:
    """Define a tool whose arguments are validated against a Pydantic model.

    The executor receives the validated model instance instead of the raw
    arguments. Validation errors surface as tool errors.
    """
    parser = schema if isinstance(schema, PydanticSchema) else PydanticSchema(schema)

    async def _execute(args: Any, ctx: ExecutionContext) -> ToolResult:
        result = execute(parser.parse(args), ctx)
        if inspect.isawaitable(result):
            result = await result
        return result

    return Tool(
        name=name,
        description=description,
        parameters=parser.to_json_schema(),
        execute=_execute,
    )


class ToolRegistry:
    """Name-keyed tool store. Registering an existing name replaces it."""

    def __init__(self, tools: Iterable[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        if tools:
            self.register_many(tools)

    def register(self, tool: Tool) -> ToolRegistry:
        if tool.name in self._tools:
            logger.debug("Replacing registered tool %s", tool.name)
        self._tools[tool.name] = tool
        return self

    def register_many(self, tools: Iterable[Tool]) -> ToolRegistry:
        for tool in tools:
            self.register(tool)
        return self

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def get_or_raise(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def has(self, name: str) -> bool:
        return name in self._tools

    def list(self) -> list[Tool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def clear(self) -> None:
        self._tools.clear()

    def to_tool_definitions(self) -> list[ToolDefinition]:
        return [tool.to_definition() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
