"""
Tests for inference providers.

The vendor SDK clients are replaced with SimpleNamespace/AsyncMock fakes, so
these exercise request conversion and response parsing without a network.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from shuttle import InferenceError
from shuttle.providers import (
    AnthropicProvider,
    BaseProvider,
    OpenAIProvider,
    RetryConfig,
    ScriptedProvider,
    response_to_events,
)
from shuttle.types import (
    Finish,
    InferenceRequest,
    InferenceResponse,
    Message,
    StreamError,
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


def _request(**kwargs) -> InferenceRequest:
    defaults = dict(
        model="test-model",
        messages=[
            Message(role="user", content=[TextBlock("weather?")]),
            Message(role="assistant", content=[
                TextBlock("checking"),
                ToolCallBlock(id="c1", name="weather", arguments={"city": "Tokyo"}),
            ]),
            Message(role="tool", content=[ToolResultBlock(tool_call_id="c1", result="sunny")]),
        ],
        system_prompt="be brief",
        tools=[ToolDefinition("weather", "Look up weather", {"type": "object", "properties": {}})],
    )
    defaults.update(kwargs)
    return InferenceRequest(**defaults)


async def _collect(aiter):
    return [item async for item in aiter]


async def _agen(items):
    for item in items:
        yield item


class TestResponseToEvents:
    def test_text_and_tool_call(self):
        response = InferenceResponse(
            content=[TextBlock("hi"), ToolCallBlock(id="a", name="t", arguments={"x": 1})],
            finish_reason="tool_calls",
            usage=Usage(1, 1),
        )
        events = response_to_events(response)
        assert events[0] == TextDelta("hi")
        assert events[1] == ToolCallStart(id="a", name="t")
        assert isinstance(events[2], ToolCallDelta)
        assert events[3] == ToolCallEnd(id="a", name="t", arguments='{"x": 1}')
        assert events[-1] == Finish(reason="tool_calls", usage=Usage(1, 1))

    def test_chunking(self):
        response = InferenceResponse(content=[TextBlock("abcdef")])
        events = response_to_events(response, chunk_size=2)
        assert [e.text for e in events if isinstance(e, TextDelta)] == ["ab", "cd", "ef"]


class TestScriptedProvider:
    @pytest.mark.asyncio
    async def test_replays_in_order_and_records_requests(self):
        provider = ScriptedProvider([
            InferenceResponse(content=[TextBlock("one")]),
            InferenceResponse(content=[TextBlock("two")]),
        ])
        first = await provider.complete(_request())
        second = await provider.complete(_request(model="other"))
        assert first.content[0].text == "one"
        assert second.content[0].text == "two"
        assert provider.calls == 2
        assert provider.requests[1].model == "other"

    @pytest.mark.asyncio
    async def test_exhausted_script_raises_inference_error(self):
        provider = ScriptedProvider([])
        with pytest.raises(InferenceError) as exc_info:
            await provider.complete(_request())
        assert "ran out of responses" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_request_snapshot_is_independent(self):
        provider = ScriptedProvider([InferenceResponse(content=[TextBlock("ok")])])
        messages = [Message(role="user", content=[TextBlock("hi")])]
        await provider.complete(_request(messages=messages))
        messages.append(Message(role="assistant"))
        assert len(provider.requests[0].messages) == 1

    @pytest.mark.asyncio
    async def test_callable_script(self):
        provider = ScriptedProvider(
            lambda req: InferenceResponse(content=[TextBlock(f"model={req.model}")])
        )
        response = await provider.complete(_request(model="m1"))
        assert response.content[0].text == "model=m1"

    @pytest.mark.asyncio
    async def test_mixed_script_from_generator(self):
        def script():
            yield InferenceResponse(content=[TextBlock("batch")])
            yield [TextDelta("streamed"), Finish()]
            yield RuntimeError("offline")

        provider = ScriptedProvider(script())
        assert (await provider.complete(_request())).content[0].text == "batch"
        assert await _collect(provider.stream(_request())) == [TextDelta("streamed"), Finish()]
        events = await _collect(provider.stream(_request()))
        assert isinstance(events[0], StreamError)
        assert "offline" in str(events[0].error)

    @pytest.mark.asyncio
    async def test_stream_yields_raw_event_lists(self):
        events = [TextDelta("a"), Finish()]
        provider = ScriptedProvider([events])
        assert await _collect(provider.stream(_request())) == events

    @pytest.mark.asyncio
    async def test_event_list_cannot_be_completed(self):
        provider = ScriptedProvider([[TextDelta("a")]])
        with pytest.raises(InferenceError):
            await provider.complete(_request())


class _Failing(BaseProvider):
    name = "failing"

    def __init__(self, failures: int, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures
        self.attempts = 0

    async def _do_complete(self, request):
        self.attempts += 1
        if self.attempts <= self.failures:
            err = RuntimeError("overloaded")
            err.status_code = 529
            raise err
        return InferenceResponse(content=[TextBlock("recovered")])

    async def _do_stream(self, request):
        yield TextDelta("partial")
        raise ConnectionError("reset by peer")


class TestBaseProvider:
    @pytest.mark.asyncio
    async def test_complete_wraps_backend_errors(self):
        provider = _Failing(failures=1)
        with pytest.raises(InferenceError) as exc_info:
            await provider.complete(_request())
        err = exc_info.value
        assert err.provider == "failing"
        assert err.status_code == 529
        assert isinstance(err.cause, RuntimeError)
        assert provider.attempts == 1

    @pytest.mark.asyncio
    async def test_opt_in_retry(self):
        provider = _Failing(failures=2, retry=RetryConfig(max_retries=2, base_delay=0.001))
        response = await provider.complete(_request())
        assert response.content[0].text == "recovered"
        assert provider.attempts == 3

    @pytest.mark.asyncio
    async def test_stream_converts_exceptions_to_error_event(self):
        events = await _collect(_Failing(failures=0).stream(_request()))
        assert events[0] == TextDelta("partial")
        assert isinstance(events[-1], StreamError)
        assert isinstance(events[-1].error, InferenceError)
        assert "reset by peer" in str(events[-1].error)


def _openai_provider(create: AsyncMock) -> OpenAIProvider:
    client = SimpleNamespace(responses=SimpleNamespace(create=create))
    return OpenAIProvider(client=client)


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_request_conversion(self):
        create = AsyncMock(return_value=SimpleNamespace(output=[], status="completed", usage=None))
        await _openai_provider(create).complete(_request(temperature=0.2))

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["instructions"] == "be brief"
        assert kwargs["temperature"] == 0.2
        assert kwargs["tools"][0]["name"] == "weather"
        assert kwargs["input"] == [
            {"role": "user", "content": "weather?"},
            {"role": "assistant", "content": "checking"},
            {"type": "function_call", "call_id": "c1", "name": "weather",
             "arguments": '{"city": "Tokyo"}'},
            {"type": "function_call_output", "call_id": "c1", "output": "sunny"},
        ]

    @pytest.mark.asyncio
    async def test_response_parsing(self):
        resp = SimpleNamespace(
            output=[
                SimpleNamespace(type="message", content=[SimpleNamespace(type="output_text", text="Let me look")]),
                SimpleNamespace(type="function_call", call_id="call_9", id="fc_9",
                                name="weather", arguments='{"city": "Paris"}'),
            ],
            status="completed",
            usage=SimpleNamespace(input_tokens=10, output_tokens=4),
        )
        response = await _openai_provider(AsyncMock(return_value=resp)).complete(_request())
        assert response.content == [
            TextBlock("Let me look"),
            ToolCallBlock(id="call_9", name="weather", arguments={"city": "Paris"}),
        ]
        assert response.finish_reason == "tool_calls"
        assert response.usage == Usage(10, 4)

    @pytest.mark.asyncio
    async def test_incomplete_maps_to_max_tokens(self):
        resp = SimpleNamespace(output=[], status="incomplete", usage=None)
        response = await _openai_provider(AsyncMock(return_value=resp)).complete(_request())
        assert response.finish_reason == "max_tokens"

    @pytest.mark.asyncio
    async def test_stream_maps_item_ids_to_call_ids(self):
        item = SimpleNamespace(type="function_call", id="fc_1", call_id="call_1",
                               name="weather", arguments='{"city": "Oslo"}')
        raw = [
            SimpleNamespace(type="response.output_text.delta", delta="Hi"),
            SimpleNamespace(type="response.output_item.added", item=item),
            SimpleNamespace(type="response.function_call_arguments.delta", item_id="fc_1", delta='{"city"'),
            SimpleNamespace(type="response.output_item.done", item=item),
            SimpleNamespace(type="response.completed", response=SimpleNamespace(
                status="completed", usage=SimpleNamespace(input_tokens=5, output_tokens=6))),
        ]
        provider = _openai_provider(AsyncMock(return_value=_agen(raw)))
        events = await _collect(provider.stream(_request()))
        assert events == [
            TextDelta("Hi"),
            ToolCallStart(id="call_1", name="weather"),
            ToolCallDelta(id="call_1", arguments='{"city"'),
            ToolCallEnd(id="call_1", name="weather", arguments='{"city": "Oslo"}'),
            Finish(reason="tool_calls", usage=Usage(5, 6)),
        ]

    @pytest.mark.asyncio
    async def test_stream_failure_becomes_error_event(self):
        raw = [SimpleNamespace(type="response.failed", message="server exploded")]
        provider = _openai_provider(AsyncMock(return_value=_agen(raw)))
        events = await _collect(provider.stream(_request()))
        assert len(events) == 1
        assert isinstance(events[0], StreamError)
        assert "server exploded" in str(events[0].error)


class _FakeAnthropicStream:
    def __init__(self, events):
        self._events = events

    async def __aenter__(self):
        return _agen(self._events)

    async def __aexit__(self, *exc):
        return False


class TestAnthropicProvider:
    @pytest.mark.asyncio
    async def test_request_conversion_merges_tool_results_into_user_turn(self):
        resp = SimpleNamespace(content=[], stop_reason="end_turn", usage=None)
        create = AsyncMock(return_value=resp)
        provider = AnthropicProvider(client=SimpleNamespace(messages=SimpleNamespace(create=create)))
        await provider.complete(_request(messages=_request().messages + [
            Message(role="user", content=[TextBlock("thanks")]),
        ]))

        kwargs = create.call_args.kwargs
        assert kwargs["system"] == "be brief"
        assert kwargs["tools"][0]["input_schema"] == {"type": "object", "properties": {}}
        roles = [m["role"] for m in kwargs["messages"]]
        assert roles == ["user", "assistant", "user"]
        last = kwargs["messages"][-1]["content"]
        assert last[0] == {"type": "tool_result", "tool_use_id": "c1", "content": "sunny", "is_error": False}
        assert last[1] == {"type": "text", "text": "thanks"}

    @pytest.mark.asyncio
    async def test_response_parsing(self):
        resp = SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="ok"),
                SimpleNamespace(type="tool_use", id="tu_1", name="weather", input={"city": "Rome"}),
            ],
            stop_reason="tool_use",
            usage=SimpleNamespace(input_tokens=2, output_tokens=3),
        )
        provider = AnthropicProvider(client=SimpleNamespace(
            messages=SimpleNamespace(create=AsyncMock(return_value=resp))))
        response = await provider.complete(_request())
        assert response.finish_reason == "tool_calls"
        assert response.content[1] == ToolCallBlock(id="tu_1", name="weather", arguments={"city": "Rome"})
        assert response.usage == Usage(2, 3)

    @pytest.mark.asyncio
    async def test_stream(self):
        raw = [
            SimpleNamespace(type="message_start", message=SimpleNamespace(usage=SimpleNamespace(input_tokens=7))),
            SimpleNamespace(type="content_block_start", index=0, content_block=SimpleNamespace(type="text")),
            SimpleNamespace(type="content_block_delta", index=0, delta=SimpleNamespace(type="text_delta", text="Hi")),
            SimpleNamespace(type="content_block_stop", index=0),
            SimpleNamespace(type="content_block_start", index=1,
                            content_block=SimpleNamespace(type="tool_use", id="tu_1", name="noop")),
            SimpleNamespace(type="content_block_stop", index=1),
            SimpleNamespace(type="message_delta", delta=SimpleNamespace(stop_reason="tool_use"),
                            usage=SimpleNamespace(output_tokens=9)),
        ]
        client = SimpleNamespace(messages=SimpleNamespace(stream=lambda **kw: _FakeAnthropicStream(raw)))
        events = await _collect(AnthropicProvider(client=client).stream(_request()))
        assert events == [
            TextDelta("Hi"),
            ToolCallStart(id="tu_1", name="noop"),
            ToolCallEnd(id="tu_1", name="noop", arguments="{}"),
            Finish(reason="tool_calls", usage=Usage(7, 9)),
        ]
