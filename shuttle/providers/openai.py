"""OpenAI provider: Responses API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from ..config import AgentConfig
from ..errors import InferenceError
from ..types import (
    ContentBlock,
    Finish,
    FinishReason,
    InferenceEvent,
    InferenceRequest,
    InferenceResponse,
    Message,
    TextBlock,
    TextDelta,
    ToolCallBlock,
    ToolCallDelta,
    ToolCallEnd,
    ToolCallStart,
    ToolDefinition,
    Usage,
)
from ..utils import dump_arguments, parse_arguments
from .base import BaseProvider, RetryConfig

DEFAULT_MAX_TOKENS = 4096


def _messages_to_input(messages: list[Message]) -> list[dict]:
    items: list[dict] = []
    for m in messages:
        texts = [c.text for c in m.content if isinstance(c, TextBlock)]
        if m.role == "user":
            if texts:
                items.append({"role": "user", "content": "\n".join(texts)})
        elif m.role == "assistant":
            if texts:
                items.append({"role": "assistant", "content": "\n".join(texts)})
            for tc in m.tool_calls:
                items.append({
                    "type": "function_call",
                    "call_id": tc.id,
                    "name": tc.name,
                    "arguments": dump_arguments(tc.arguments),
                })
        elif m.role == "tool":
            for tr in m.tool_results:
                items.append({
                    "type": "function_call_output",
                    "call_id": tr.tool_call_id,
                    "output": tr.result,
                })
    return items


def _tools_to_dicts(tools: list[ToolDefinition]) -> list[dict]:
    return [
        {
            "type": "function",
            "name": t.name,
            "description": t.description,
            "parameters": t.parameters,
            "strict": False,
        }
        for t in tools
    ]


def _map_status(status: str | None) -> FinishReason:
    if status == "incomplete":
        return "max_tokens"
    if status == "failed":
        return "error"
    return "stop"


def _usage(raw: Any) -> Usage:
    if raw is None:
        return Usage()
    return Usage(
        input_tokens=getattr(raw, "input_tokens", 0) or 0,
        output_tokens=getattr(raw, "output_tokens", 0) or 0,
    )


class OpenAIProvider(BaseProvider):
    name = "openai"

    def __init__(
        self,
        config: AgentConfig | None = None,
        client: Any = None,
        retry: RetryConfig | None = None,
    ) -> None:
        super().__init__(retry=retry)
        if client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError:
                raise ImportError("pip install openai") from None
            config = config or AgentConfig()
            client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)
        self._client = client

    def _build_kwargs(self, request: InferenceRequest) -> dict:
        kwargs: dict = {
            "model": request.model,
            "input": _messages_to_input(request.messages),
            "max_output_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
        }
        if request.system_prompt:
            kwargs["instructions"] = request.system_prompt
        if request.tools:
            kwargs["tools"] = _tools_to_dicts(request.tools)
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        return kwargs

    async def _do_complete(self, request: InferenceRequest) -> InferenceResponse:
        resp = await self._client.responses.create(**self._build_kwargs(request))
        content: list[ContentBlock] = []
        for item in resp.output:
            if item.type == "message":
                for part in item.content:
                    if part.type == "output_text":
                        content.append(TextBlock(text=part.text))
            elif item.type == "function_call":
                content.append(ToolCallBlock(
                    id=getattr(item, "call_id", None) or getattr(item, "id", None) or "",
                    name=item.name or "",
                    arguments=parse_arguments(item.arguments),
                ))
        finish = _map_status(getattr(resp, "status", None))
        if finish == "stop" and any(isinstance(c, ToolCallBlock) for c in content):
            finish = "tool_calls"
        return InferenceResponse(content=content, finish_reason=finish, usage=_usage(resp.usage))

    async def _do_stream(self, request: InferenceRequest) -> AsyncIterator[InferenceEvent]:
        stream = await self._client.responses.create(**self._build_kwargs(request), stream=True)
        # item id -> call id; argument deltas reference the item id
        call_ids: dict[str, str] = {}
        usage = Usage()
        reason: str = "stop"
        async for event in stream:
            etype = event.type
            if etype == "response.output_text.delta":
                yield TextDelta(text=event.delta)
            elif etype == "response.output_item.added" and event.item.type == "function_call":
                item = event.item
                call_id = getattr(item, "call_id", None) or item.id or ""
                call_ids[item.id or call_id] = call_id
                yield ToolCallStart(id=call_id, name=item.name or "")
            elif etype == "response.function_call_arguments.delta":
                call_id = call_ids.get(event.item_id, event.item_id)
                yield ToolCallDelta(id=call_id, arguments=event.delta)
            elif etype == "response.output_item.done" and event.item.type == "function_call":
                item = event.item
                call_id = call_ids.get(item.id, getattr(item, "call_id", None) or item.id or "")
                yield ToolCallEnd(id=call_id, name=item.name or "", arguments=item.arguments or "")
                reason = "tool_calls"
            elif etype == "response.completed":
                usage = _usage(event.response.usage)
                mapped = _map_status(getattr(event.response, "status", None))
                if mapped != "stop":
                    reason = mapped
            elif etype in ("response.failed", "error"):
                message = getattr(event, "message", None) or "response failed"
                raise InferenceError(self.name, f"Inference stream failed: {message}")
        yield Finish(reason=reason, usage=usage)
