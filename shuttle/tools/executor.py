"""Tool executor: runs tool calls against a registry and never raises.

Every failure mode (unknown tool, executor exception, timeout, an explicit
``ToolResult.error``) is turned into a ``ToolResultBlock`` with
``is_error=True`` so the orchestration loop can feed it back to the model.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from ..errors import ToolExecutionError, ToolNotFoundError, ToolTimeoutError
from ..types import ExecutionContext, ToolCallBlock, ToolResult, ToolResultBlock
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

BeforeHook = Callable[[ToolCallBlock, ExecutionContext], Awaitable[None]]
AfterHook = Callable[[ToolCallBlock, ToolResultBlock, ExecutionContext], Awaitable[None]]


@dataclass
class ExecutorOptions:
    timeout_ms: int | None = None
    on_before_execute: BeforeHook | None = None
    on_after_execute: AfterHook | None = None


class ToolExecutor:
    def __init__(self, registry: ToolRegistry, options: ExecutorOptions | None = None) -> None:
        self.registry = registry
        self.options = options or ExecutorOptions()

    async def execute(self, call: ToolCallBlock, ctx: ExecutionContext) -> ToolResultBlock:
        tool = self.registry.get(call.name)
        if tool is None:
            err = ToolNotFoundError(call.name)
            logger.warning("%s (call %s)", err, call.id)
            return ToolResultBlock(tool_call_id=call.id, result=str(err), is_error=True)

        if ctx.cancelled:
            return ToolResultBlock(
                tool_call_id=call.id,
                result=f"Tool execution cancelled: {call.name}",
                is_error=True,
            )

        try:
            if self.options.on_before_execute:
                await self.options.on_before_execute(call, ctx)

            result = await self._invoke(tool.execute, call, ctx)
            block = ToolResultBlock(
                tool_call_id=call.id,
                result=result.error if result.error else result.output,
                is_error=bool(result.error),
            )

            if self.options.on_after_execute:
                await self.options.on_after_execute(call, block, ctx)
            return block
        except asyncio.CancelledError:
            raise
        except ToolExecutionError as e:
            logger.warning("Tool %s failed: %s", call.name, e)
            return ToolResultBlock(tool_call_id=call.id, result=str(e), is_error=True)
        except Exception as e:
            logger.warning("Tool %s raised %s: %s", call.name, type(e).__name__, e)
            return ToolResultBlock(tool_call_id=call.id, result=str(e) or type(e).__name__, is_error=True)

    async def execute_all(
        self, calls: list[ToolCallBlock], ctx: ExecutionContext
    ) -> list[ToolResultBlock]:
        """Run calls concurrently; results keep the order of ``calls``."""
        return list(await asyncio.gather(*(self.execute(call, ctx) for call in calls)))

    async def execute_sequential(
        self, calls: list[ToolCallBlock], ctx: ExecutionContext
    ) -> list[ToolResultBlock]:
        results: list[ToolResultBlock] = []
        for call in calls:
            results.append(await self.execute(call, ctx))
        return results

    async def _invoke(self, execute, call: ToolCallBlock, ctx: ExecutionContext) -> ToolResult:
        async def _run() -> ToolResult:
            result = execute(call.arguments, ctx)
            if inspect.isawaitable(result):
                result = await result
            return _coerce_result(result)

        timeout_ms = self.options.timeout_ms
        if not timeout_ms:
            return await _run()
        try:
            return await asyncio.wait_for(_run(), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError:
            raise ToolTimeoutError(call.name, timeout_ms) from None


def _coerce_result(result: object) -> ToolResult:
    if isinstance(result, ToolResult):
        return result
    if result is None:
        return ToolResult(output="")
    if isinstance(result, str):
        return ToolResult(output=result)
    raise TypeError(f"Tool returned {type(result).__name__}, expected ToolResult")
