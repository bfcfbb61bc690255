"""Stream assembler: rebuilds an assistant message from inference events.

The assembled content has the same shape a batch call returns: one text
block holding all text deltas, followed by the completed tool calls in the
order they ended.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..errors import InferenceError
from ..types import (
    AgentEvent,
    ContentBlock,
    Finish,
    InferenceEvent,
    StreamError,
    TextBlock,
    TextDelta,
    TextEvent,
    ToolCallBlock,
    ToolCallDelta,
    ToolCallEnd,
    ToolCallEvent,
    ToolCallStart,
    Usage,
)
from ..utils import parse_arguments

logger = logging.getLogger(__name__)


@dataclass
class _CallBuffer:
    id: str
    name: str
    arguments: str = ""


@dataclass
class MessageAssembler:
    text: str = ""
    tool_calls: list[ToolCallBlock] = field(default_factory=list)
    finish_reason: str | None = None
    usage: Usage = field(default_factory=Usage)
    _buffers: dict[str, _CallBuffer] = field(default_factory=dict)

    @property
    def finished(self) -> bool:
        return self.finish_reason is not None

    def feed(self, event: InferenceEvent) -> list[AgentEvent]:
        """Apply one inference event; return the agent events it produces."""
        if isinstance(event, TextDelta):
            self.text += event.text
            return [TextEvent(text=event.text)]

        if isinstance(event, ToolCallStart):
            self._buffers[event.id] = _CallBuffer(id=event.id, name=event.name)
            return []

        if isinstance(event, ToolCallDelta):
            buffer = self._buffers.get(event.id)
            if buffer is None:
                logger.debug("Argument fragment for unknown call %s", event.id)
                buffer = self._buffers[event.id] = _CallBuffer(id=event.id, name="")
            buffer.arguments += event.arguments
            return []

        if isinstance(event, ToolCallEnd):
            buffer = self._buffers.pop(event.id, None)
            # the end event carries the complete argument string when the backend has it
            raw = event.arguments or (buffer.arguments if buffer else "")
            name = event.name or (buffer.name if buffer else "")
            call = ToolCallBlock(id=event.id, name=name, arguments=parse_arguments(raw))
            self.tool_calls.append(call)
            return [ToolCallEvent(id=call.id, name=call.name, args=call.arguments)]

        if isinstance(event, Finish):
            self.finish_reason = event.reason
            self.usage = event.usage
            return []

        if isinstance(event, StreamError):
            error = event.error
            if not isinstance(error, InferenceError):
                error = InferenceError("stream", str(error), cause=error)
            raise error

        raise TypeError(f"Unknown inference event: {event!r}")

    def seal(self) -> list[ContentBlock]:
        if self._buffers:
            logger.warning(
                "Dropping %d tool call(s) that never ended: %s",
                len(self._buffers), ", ".join(self._buffers),
            )
            self._buffers.clear()
        content: list[ContentBlock] = []
        if self.text:
            content.append(TextBlock(text=self.text))
        content.extend(self.tool_calls)
        return content
