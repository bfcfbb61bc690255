"""The step machine shared by batch and streaming execution.

A *transport* turns an ``InferenceRequest`` into a lazy sequence of step
items: either incremental ``InferenceEvent``s or one complete
``InferenceResponse``. ``run_step`` consumes whichever it gets and always
produces the same transcript mutations; the two execution modes differ only
in which transport they pass and in what the caller does with the yielded
agent events.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field

from ..errors import AgentAbortError, InferenceError, MaxStepsExceededError
from ..session import Session, SessionStatus, get_text_content
from ..tools import ToolExecutor, ToolRegistry
from ..types import (
    AgentEvent,
    ContentBlock,
    DoneEvent,
    ErrorEvent,
    ExecutionContext,
    InferenceEvent,
    InferenceProvider,
    InferenceRequest,
    InferenceResponse,
    Message,
    MessageEndEvent,
    MessageStartEvent,
    StepEvent,
    TextBlock,
    TextDoneEvent,
    TextEvent,
    ToolCallBlock,
    ToolCallEvent,
    ToolResultEvent,
    Usage,
)
from .assembler import MessageAssembler

logger = logging.getLogger(__name__)

StepItem = InferenceEvent | InferenceResponse
Transport = Callable[[InferenceRequest], AsyncIterator[StepItem]]


def _inference_error(provider: InferenceProvider, err: Exception) -> InferenceError:
    if isinstance(err, InferenceError):
        return err
    return InferenceError(getattr(provider, "name", "unknown"), str(err), cause=err)


def batch_transport(provider: InferenceProvider) -> Transport:
    async def _drain(request: InferenceRequest) -> AsyncIterator[StepItem]:
        try:
            response = await provider.complete(request)
        except Exception as e:
            raise _inference_error(provider, e) from e
        yield response

    return _drain


def stream_transport(provider: InferenceProvider) -> Transport:
    async def _drain(request: InferenceRequest) -> AsyncIterator[StepItem]:
        events = provider.stream(request)
        while True:
            try:
                event = await events.__anext__()
            except StopAsyncIteration:
                return
            except Exception as e:
                raise _inference_error(provider, e) from e
            yield event

    return _drain


@dataclass
class StepResult:
    message: Message | None = None
    tool_message: Message | None = None
    finish_reason: str = "stop"
    usage: Usage = field(default_factory=Usage)

    @property
    def final(self) -> bool:
        return self.message is not None and not self.message.tool_calls


@dataclass
class TurnContext:
    session: Session
    registry: ToolRegistry
    executor: ToolExecutor
    transport: Transport
    max_steps: int
    model: str
    max_tokens: int | None = None
    temperature: float | None = None
    signal: asyncio.Event | None = None


async def run_step(ctx: TurnContext, result: StepResult) -> AsyncIterator[AgentEvent]:
    """Run one inference call plus any tool calls it requests."""
    session = ctx.session
    request = InferenceRequest(
        model=ctx.model,
        messages=session.messages,
        system_prompt=session.system_prompt,
        tools=ctx.registry.to_tool_definitions(),
        max_tokens=ctx.max_tokens,
        temperature=ctx.temperature,
        signal=ctx.signal,
    )

    yield MessageStartEvent(role="assistant")
    assembler = MessageAssembler()
    content: list[ContentBlock] | None = None
    async for item in ctx.transport(request):
        if isinstance(item, InferenceResponse):
            content = list(item.content)
            result.finish_reason = item.finish_reason
            result.usage = item.usage
            for block in content:
                if isinstance(block, TextBlock):
                    yield TextEvent(text=block.text)
                elif isinstance(block, ToolCallBlock):
                    yield ToolCallEvent(id=block.id, name=block.name, args=block.arguments)
        else:
            for event in assembler.feed(item):
                yield event

    if content is None:
        if not assembler.finished:
            logger.warning("Inference stream ended without a finish event")
        content = assembler.seal()
        result.finish_reason = assembler.finish_reason or "stop"
        result.usage = assembler.usage

    if result.finish_reason == "error":
        raise InferenceError("inference", "Inference backend reported an error")

    message = Message(role="assistant", content=content)
    session.messages.append(message)
    result.message = message

    for block in content:
        if isinstance(block, TextBlock):
            yield TextDoneEvent(text=block.text)
    yield MessageEndEvent(finish_reason=result.finish_reason)

    calls = message.tool_calls
    if not calls:
        return

    exec_ctx = ExecutionContext(session_id=session.id, message_id=message.id, signal=ctx.signal)
    results = await ctx.executor.execute_all(calls, exec_ctx)
    tool_message = Message(role="tool", content=list(results))
    session.messages.append(tool_message)
    result.tool_message = tool_message

    names = {call.id: call.name for call in calls}
    yield MessageStartEvent(role="tool")
    for block in results:
        yield ToolResultEvent(
            id=block.tool_call_id,
            name=names.get(block.tool_call_id, "unknown"),
            result=block.result,
            is_error=block.is_error,
        )
    yield MessageEndEvent(finish_reason="tool_results")


async def run_turn(ctx: TurnContext) -> AsyncIterator[AgentEvent]:
    """Drive steps until a step ends without tool calls or the budget runs out.

    Fatal conditions mark the session ``error``, yield a terminal
    ``ErrorEvent`` and are then re-raised.
    """
    session = ctx.session
    session.status = SessionStatus.RUNNING
    usage = Usage()
    start = time.monotonic()
    logger.info("Session %s: turn started (max_steps=%d)", session.id, ctx.max_steps)

    try:
        for step in range(1, ctx.max_steps + 1):
            if ctx.signal is not None and ctx.signal.is_set():
                raise AgentAbortError()

            yield StepEvent(step=step, max_steps=ctx.max_steps)
            logger.debug("Session %s: step %d", session.id, step)

            result = StepResult()
            async for event in run_step(ctx, result):
                yield event
            usage.add(result.usage)

            if result.final:
                session.status = SessionStatus.COMPLETED
                logger.info("Session %s: completed after %d step(s)", session.id, step)
                yield DoneEvent(
                    content=get_text_content(result.message),
                    steps=step,
                    duration_ms=int((time.monotonic() - start) * 1000),
                    usage=usage,
                )
                return

        last = next((m for m in reversed(session.messages) if m.role == "assistant"), None)
        raise MaxStepsExceededError(ctx.max_steps, get_text_content(last) if last else "")
    except Exception as e:
        session.status = SessionStatus.ERROR
        logger.error("Session %s: turn failed: %s", session.id, e)
        yield ErrorEvent(error=e)
        raise
    finally:
        # cancellation or a consumer closing the stream early
        if session.status == SessionStatus.RUNNING:
            session.status = SessionStatus.ERROR
            logger.warning("Session %s: turn interrupted", session.id)
