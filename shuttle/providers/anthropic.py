"""Anthropic Claude provider: Messages API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from ..config import AgentConfig
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
    ToolResultBlock,
    Usage,
)
from .base import BaseProvider, RetryConfig

DEFAULT_MAX_TOKENS = 4096

_STOP_REASONS: dict[str, FinishReason] = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "tool_use": "tool_calls",
    "max_tokens": "max_tokens",
}


def _msg_to_dict(m: Message) -> dict:
    blocks: list[dict] = []
    for c in m.content:
        if isinstance(c, TextBlock):
            if c.text:
                blocks.append({"type": "text", "text": c.text})
        elif isinstance(c, ToolCallBlock):
            args = c.arguments if isinstance(c.arguments, dict) else {"input": c.arguments}
            blocks.append({"type": "tool_use", "id": c.id, "name": c.name, "input": args})
        elif isinstance(c, ToolResultBlock):
            blocks.append({
                "type": "tool_result",
                "tool_use_id": c.tool_call_id,
                "content": c.result,
                "is_error": c.is_error,
            })
    # tool results travel in a user turn
    role = "assistant" if m.role == "assistant" else "user"
    return {"role": role, "content": blocks}


def _messages_to_dicts(messages: list[Message]) -> list[dict]:
    merged: list[dict] = []
    for m in messages:
        d = _msg_to_dict(m)
        if not d["content"]:
            continue
        if merged and merged[-1]["role"] == d["role"]:
            merged[-1]["content"].extend(d["content"])
        else:
            merged.append(d)
    return merged


def _tools_to_dicts(tools: list[ToolDefinition]) -> list[dict]:
    return [
        {
            "name": t.name,
            "description": t.description,
            "input_schema": t.parameters or {"type": "object", "properties": {}},
        }
        for t in tools
    ]


class AnthropicProvider(BaseProvider):
    name = "anthropic"

    def __init__(
        self,
        config: AgentConfig | None = None,
        client: Any = None,
        retry: RetryConfig | None = None,
    ) -> None:
        super().__init__(retry=retry)
        if client is None:
            try:
                from anthropic import AsyncAnthropic
            except ImportError:
                raise ImportError("pip install anthropic") from None
            config = config or AgentConfig()
            client = AsyncAnthropic(api_key=config.api_key, base_url=config.base_url)
        self._client = client

    def _build_kwargs(self, request: InferenceRequest) -> dict:
        kwargs: dict = {
            "model": request.model,
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": _messages_to_dicts(request.messages),
        }
        if request.system_prompt:
            kwargs["system"] = request.system_prompt
        if request.tools:
            kwargs["tools"] = _tools_to_dicts(request.tools)
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        return kwargs

    async def _do_complete(self, request: InferenceRequest) -> InferenceResponse:
        resp = await self._client.messages.create(**self._build_kwargs(request))
        content: list[ContentBlock] = []
        for block in resp.content:
            if block.type == "text":
                content.append(TextBlock(text=block.text))
            elif block.type == "tool_use":
                content.append(ToolCallBlock(id=block.id, name=block.name, arguments=block.input))
        usage = Usage()
        if resp.usage:
            usage = Usage(input_tokens=resp.usage.input_tokens, output_tokens=resp.usage.output_tokens)
        return InferenceResponse(
            content=content,
            finish_reason=_STOP_REASONS.get(resp.stop_reason or "end_turn", "stop"),
            usage=usage,
        )

    async def _do_stream(self, request: InferenceRequest) -> AsyncIterator[InferenceEvent]:
        usage = Usage()
        reason: FinishReason = "stop"
        # content block index -> [call id, name, argument buffer]
        tools: dict[int, list] = {}
        async with self._client.messages.stream(**self._build_kwargs(request)) as stream:
            async for event in stream:
                if event.type == "message_start":
                    usage.input_tokens = getattr(event.message.usage, "input_tokens", 0) or 0
                elif event.type == "content_block_start" and event.content_block.type == "tool_use":
                    block = event.content_block
                    tools[event.index] = [block.id, block.name, ""]
                    yield ToolCallStart(id=block.id, name=block.name)
                elif event.type == "content_block_delta":
                    delta = event.delta
                    if delta.type == "text_delta":
                        yield TextDelta(text=delta.text)
                    elif delta.type == "input_json_delta" and event.index in tools:
                        tools[event.index][2] += delta.partial_json
                        yield ToolCallDelta(id=tools[event.index][0], arguments=delta.partial_json)
                elif event.type == "content_block_stop" and event.index in tools:
                    call_id, name, args = tools.pop(event.index)
                    # keep "{}" for argument-less calls so the assembler sees a dict
                    yield ToolCallEnd(id=call_id, name=name, arguments=args or "{}")
                elif event.type == "message_delta":
                    stop = getattr(event.delta, "stop_reason", None)
                    if stop:
                        reason = _STOP_REASONS.get(stop, "stop")
                    if getattr(event, "usage", None):
                        usage.output_tokens = getattr(event.usage, "output_tokens", 0) or 0
        yield Finish(reason=reason, usage=usage)
