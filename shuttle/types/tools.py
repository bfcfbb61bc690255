"""Tool types."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

JSONSchema = dict[str, Any]


@dataclass
class ToolResult:
    output: str = ""
    error: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class ExecutionContext:
    session_id: str
    message_id: str
    signal: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self.signal is not None and self.signal.is_set()


ToolExecute = Callable[[Any, ExecutionContext], Awaitable[ToolResult] | ToolResult]


@dataclass
class ToolDefinition:
    """What the inference backend sees: name, description and schema only."""

    name: str
    description: str
    parameters: JSONSchema = field(default_factory=dict)


@dataclass
class Tool:
    name: str
    description: str
    parameters: JSONSchema
    execute: ToolExecute

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name, description=self.description, parameters=self.parameters
        )
