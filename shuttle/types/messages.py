"""Message types."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

Role = Literal["user", "assistant", "tool"]


def generate_id() -> str:
    return uuid.uuid4().hex


@dataclass
class TextBlock:
    text: str
    type: str = "text"


@dataclass
class ToolCallBlock:
    id: str
    name: str
    arguments: Any = None
    type: str = "tool_call"


@dataclass
class ToolResultBlock:
    tool_call_id: str
    result: str
    is_error: bool = False
    type: str = "tool_result"


ContentBlock = TextBlock | ToolCallBlock | ToolResultBlock


@dataclass
class Message:
    role: Role
    content: list[ContentBlock] = field(default_factory=list)
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def tool_calls(self) -> list[ToolCallBlock]:
        return [c for c in self.content if isinstance(c, ToolCallBlock)]

    @property
    def tool_results(self) -> list[ToolResultBlock]:
        return [c for c in self.content if isinstance(c, ToolResultBlock)]
