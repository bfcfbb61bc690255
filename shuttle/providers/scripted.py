"""Scripted provider: replays canned responses, for tests and offline demos."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterable

from ..types import (
    Finish,
    InferenceEvent,
    InferenceRequest,
    InferenceResponse,
    TextBlock,
    TextDelta,
    ToolCallBlock,
    ToolCallDelta,
    ToolCallEnd,
    ToolCallStart,
)
from ..utils import dump_arguments
from .base import BaseProvider

ScriptItem = InferenceResponse | list[InferenceEvent] | Exception
Script = Iterable[ScriptItem] | Callable[[InferenceRequest], ScriptItem]


def response_to_events(response: InferenceResponse, chunk_size: int = 0) -> list[InferenceEvent]:
    """Render a complete response as the event sequence a streaming backend would send.

    ``chunk_size`` > 0 splits text and argument strings into fragments of that length.
    """

    def _chunks(text: str) -> list[str]:
        if chunk_size <= 0 or not text:
            return [text]
        return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]

    events: list[InferenceEvent] = []
    for block in response.content:
        if isinstance(block, TextBlock):
            events.extend(TextDelta(text=t) for t in _chunks(block.text))
        elif isinstance(block, ToolCallBlock):
            args = dump_arguments(block.arguments)
            events.append(ToolCallStart(id=block.id, name=block.name))
            events.extend(ToolCallDelta(id=block.id, arguments=a) for a in _chunks(args))
            events.append(ToolCallEnd(id=block.id, name=block.name, arguments=args))
    events.append(Finish(reason=response.finish_reason, usage=response.usage))
    return events


class ScriptedProvider(BaseProvider):
    name = "scripted"

    def __init__(self, script: Script, chunk_size: int = 0) -> None:
        super().__init__()
        self._next = script if callable(script) else iter(script).__next__
        self._callable = callable(script)
        self.chunk_size = chunk_size
        self.requests: list[InferenceRequest] = []

    def _pop(self, request: InferenceRequest) -> ScriptItem:
        # snapshot the transcript: the session keeps growing after the call
        self.requests.append(
            InferenceRequest(
                model=request.model,
                messages=list(request.messages),
                system_prompt=request.system_prompt,
                tools=list(request.tools),
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                signal=request.signal,
            )
        )
        try:
            return self._next(request) if self._callable else self._next()
        except StopIteration:
            raise RuntimeError("Scripted provider ran out of responses") from None

    async def _do_complete(self, request: InferenceRequest) -> InferenceResponse:
        item = self._pop(request)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, list):
            raise TypeError("Event scripts can only be streamed")
        return item

    async def _do_stream(self, request: InferenceRequest) -> AsyncIterator[InferenceEvent]:
        item = self._pop(request)
        if isinstance(item, Exception):
            raise item
        events = item if isinstance(item, list) else response_to_events(item, self.chunk_size)
        for event in events:
            yield event

    @property
    def calls(self) -> int:
        return len(self.requests)
