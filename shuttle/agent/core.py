"""Agent: owns a tool registry and drives sessions through the step loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import aclosing
from dataclasses import replace

from ..config import AgentConfig
from ..events import EventBus, Handler
from ..session import ModelConfig, Session, add_user_message, create_session
from ..tools import ExecutorOptions, ToolExecutor, ToolRegistry
from ..types import AgentEvent, InferenceProvider, Message, Tool
from .step import TurnContext, Transport, batch_transport, run_turn, stream_transport

logger = logging.getLogger(__name__)


class Agent:
    """Provider + tools + config → a batch ``run`` or an event ``stream``.

    Each agent owns exactly one ``ToolRegistry``. A session must not be
    driven by two ``run``/``stream`` calls at the same time.
    """

    def __init__(
        self,
        provider: InferenceProvider,
        config: AgentConfig | None = None,
        tools: Iterable[Tool] | None = None,
        executor_options: ExecutorOptions | None = None,
        on_event: Handler | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or AgentConfig()
        self._registry = ToolRegistry(tools)
        options = replace(executor_options) if executor_options else ExecutorOptions()
        if options.timeout_ms is None:
            options.timeout_ms = self.config.tool_timeout_ms
        self.executor = ToolExecutor(self._registry, options)
        self.event_bus = event_bus or EventBus()
        if on_event is not None:
            self.event_bus.on_all(on_event)

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def register_tool(self, tool: Tool) -> Agent:
        self._registry.register(tool)
        return self

    def register_tools(self, tools: Iterable[Tool]) -> Agent:
        self._registry.register_many(tools)
        return self

    def unregister_tool(self, name: str) -> Agent:
        self._registry.unregister(name)
        return self

    def get_tools(self) -> list[Tool]:
        return self._registry.list()

    def on(self, event_type: str, handler: Handler) -> None:
        self.event_bus.on(event_type, handler)

    def create_session(self, system_prompt: str | None = None) -> Session:
        return create_session(
            system_prompt=self.config.system_prompt if system_prompt is None else system_prompt,
            model=ModelConfig(
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            ),
        )

    async def run(
        self, session: Session, user_message: str, signal: asyncio.Event | None = None
    ) -> list[Message]:
        """Run a turn to completion; return the session transcript.

        Raises ``MaxStepsExceededError``, ``InferenceError`` or
        ``AgentAbortError`` after marking the session ``error``.
        """
        async for _ in self._drive(session, user_message, batch_transport(self.provider), signal):
            pass
        return session.messages

    async def stream(
        self, session: Session, user_message: str, signal: asyncio.Event | None = None
    ) -> AsyncIterator[AgentEvent]:
        """Run a turn, yielding every agent event as it happens.

        On a fatal condition the last event is an ``ErrorEvent``, after which
        the underlying exception is raised.
        """
        transport = stream_transport(self.provider)
        async with aclosing(self._drive(session, user_message, transport, signal)) as events:
            async for event in events:
                yield event

    async def _drive(
        self,
        session: Session,
        user_message: str,
        transport: Transport,
        signal: asyncio.Event | None,
    ) -> AsyncIterator[AgentEvent]:
        add_user_message(session, user_message)
        model = session.model
        logger.debug("Session %s: new turn via %s", session.id, getattr(self.provider, "name", "provider"))
        ctx = TurnContext(
            session=session,
            registry=self._registry,
            executor=self.executor,
            transport=transport,
            max_steps=self.config.max_steps,
            model=model.model or self.config.model,
            max_tokens=model.max_tokens if model.max_tokens is not None else self.config.max_tokens,
            temperature=(
                model.temperature if model.temperature is not None else self.config.temperature
            ),
            signal=signal,
        )
        async with aclosing(run_turn(ctx)) as events:
            async for event in events:
                await self.event_bus.emit(event)
                yield event


def create_agent(provider: InferenceProvider, config: AgentConfig | None = None, **kwargs) -> Agent:
    return Agent(provider, config, **kwargs)
