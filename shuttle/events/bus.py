"""Event bus: fans agent events out to subscribed handlers.

Handler failures are logged and swallowed; observers never influence the
orchestration loop.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Awaitable, Callable

from ..types import AgentEvent

logger = logging.getLogger(__name__)

Handler = Callable[[AgentEvent], Awaitable[None] | None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._wildcard: list[Handler] = []

    def on(self, event_type: str, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def on_all(self, handler: Handler) -> None:
        self._wildcard.append(handler)

    def off(self, event_type: str, handler: Handler) -> None:
        handlers = self._wildcard if event_type == "*" else self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event: AgentEvent) -> None:
        event_type = getattr(event, "type", "")
        for handler in self._handlers.get(event_type, []) + self._wildcard:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event handler error for %s", event_type)
