"""Inference provider types: request/response and streaming events."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Literal, Protocol, runtime_checkable

from .messages import ContentBlock, Message
from .tools import ToolDefinition

FinishReason = Literal["stop", "tool_calls", "max_tokens", "error"]


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def add(self, other: Usage) -> None:
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens


@dataclass
class InferenceRequest:
    model: str
    messages: list[Message]
    system_prompt: str = ""
    tools: list[ToolDefinition] = field(default_factory=list)
    max_tokens: int | None = None
    temperature: float | None = None
    signal: asyncio.Event | None = None


@dataclass
class InferenceResponse:
    content: list[ContentBlock] = field(default_factory=list)
    finish_reason: FinishReason = "stop"
    usage: Usage = field(default_factory=Usage)


@dataclass
class TextDelta:
    text: str
    type: str = "text_delta"


@dataclass
class ToolCallStart:
    id: str
    name: str
    type: str = "tool_call_start"


@dataclass
class ToolCallDelta:
    id: str
    arguments: str = ""
    type: str = "tool_call_delta"


@dataclass
class ToolCallEnd:
    id: str
    name: str
    arguments: str = ""
    type: str = "tool_call_end"


@dataclass
class Finish:
    reason: str = "stop"
    usage: Usage = field(default_factory=Usage)
    type: str = "finish"


@dataclass
class StreamError:
    error: Exception
    type: str = "error"


InferenceEvent = TextDelta | ToolCallStart | ToolCallDelta | ToolCallEnd | Finish | StreamError


@runtime_checkable
class InferenceProvider(Protocol):
    name: str

    async def complete(self, request: InferenceRequest) -> InferenceResponse: ...
    def stream(self, request: InferenceRequest) -> AsyncIterator[InferenceEvent]: ...
