"""Agent event types: progress notifications emitted by the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .llm import Usage


@dataclass
class StepEvent:
    step: int
    max_steps: int
    type: str = "step"


@dataclass
class MessageStartEvent:
    role: str
    type: str = "message_start"


@dataclass
class TextEvent:
    text: str
    type: str = "text"


@dataclass
class TextDoneEvent:
    text: str
    type: str = "text_done"


@dataclass
class ToolCallEvent:
    id: str
    name: str
    args: Any = None
    type: str = "tool_call"


@dataclass
class ToolResultEvent:
    id: str
    name: str
    result: str
    is_error: bool = False
    type: str = "tool_result"


@dataclass
class MessageEndEvent:
    finish_reason: str
    type: str = "message_end"


@dataclass
class ErrorEvent:
    error: Exception
    type: str = "error"


@dataclass
class DoneEvent:
    content: str
    steps: int = 0
    duration_ms: int = 0
    usage: Usage = field(default_factory=Usage)
    type: str = "done"


AgentEvent = (
    StepEvent
    | MessageStartEvent
    | TextEvent
    | TextDoneEvent
    | ToolCallEvent
    | ToolResultEvent
    | MessageEndEvent
    | ErrorEvent
    | DoneEvent
)
