"""测试 AIStreamClient 的请求、流式累加与失败处理。"""

import asyncio
import json

import httpx

from planner_core.client.stream_client import AIStreamClient
from planner_core.config.settings import Settings
from planner_core.domain.models import GenerationFailure, GenerationSuccess, StreamState

PUBLISHABLE_KEY = "pk_test_1234567890"


def _settings() -> Settings:
    return Settings(supabase_url="http://gateway.test", supabase_publishable_key=PUBLISHABLE_KEY)


def _line(content: str) -> bytes:
    payload = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(payload)}\n".encode()


def _body(chunks):
    async def gen():
        for chunk in chunks:
            yield chunk

    return gen()


def _client(handler) -> AIStreamClient:
    return AIStreamClient(_settings(), transport=httpx.MockTransport(handler))


async def _wait_for(predicate, rounds: int = 1000) -> None:
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def test_generate_sends_request_and_accumulates():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = request.headers
        captured["body"] = json.loads(request.content)
        chunks = [_line("Hello"), _line(" world") + b"data: [DONE]\n"]
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=_body(chunks))

    client = _client(handler)
    outcome = asyncio.run(client.generate("lesson-plan", "Plan a fractions lesson"))

    assert captured["url"] == "http://gateway.test/functions/v1/ai-lesson-planner"
    assert captured["headers"]["authorization"] == f"Bearer {PUBLISHABLE_KEY}"
    assert captured["headers"]["content-type"] == "application/json"
    assert captured["body"] == {"type": "lesson-plan", "context": "Plan a fractions lesson"}
    assert outcome == GenerationSuccess(text="Hello world")
    assert client.state.result == "Hello world"
    assert client.state.is_loading is False
    assert client.state.outcome == outcome


def test_published_results_grow_monotonically():
    def handler(request):
        chunks = [_line("a") + _line("b"), b'data: {"choi', b'ces":[{"delta":{"content":"c"}}]}\n']
        return httpx.Response(200, content=_body(chunks))

    client = _client(handler)
    seen: list[StreamState] = []
    client.subscribe(seen.append)
    asyncio.run(client.generate("teaching-suggestion", "tip"))

    assert seen[0] == StreamState(is_loading=True, result="", outcome=None)
    loading = [s.result for s in seen if s.is_loading]
    assert loading == ["", "a", "ab", "abc"]
    assert seen[-1].is_loading is False
    assert seen[-1].result == "abc"


def test_line_split_inside_json_across_chunks():
    line = _line("Hello")
    mid = len(line) // 2

    def handler(request):
        return httpx.Response(200, content=_body([line[:mid], line[mid:], b"data: [DONE]\n"]))

    client = _client(handler)
    asyncio.run(client.generate("lesson-plan", "x"))
    assert client.state.result == "Hello"


def test_rate_limit_error_message():
    def handler(request):
        return httpx.Response(429, json={"error": "Rate limit exceeded. Please try again shortly."})

    client = _client(handler)
    outcome = asyncio.run(client.generate("lesson-plan", "x"))
    assert client.state.result == "Error: Rate limit exceeded. Please try again shortly."
    assert client.state.is_loading is False
    assert outcome == GenerationFailure(message="Rate limit exceeded. Please try again shortly.")


def test_credits_exhausted_error_message():
    def handler(request):
        return httpx.Response(402, json={"error": "out of credits"})

    client = _client(handler)
    asyncio.run(client.generate("lesson-plan", "x"))
    assert client.state.result == "Error: out of credits"
    assert client.state.is_loading is False
    assert client.state.is_error


def test_unparseable_error_body_falls_back_to_generic_message():
    def handler(request):
        return httpx.Response(500, text="<html>bad gateway</html>")

    client = _client(handler)
    asyncio.run(client.generate("lesson-plan", "x"))
    assert client.state.result == "Error: AI request failed"


def test_no_content_response_is_failure():
    def handler(request):
        return httpx.Response(204)

    client = _client(handler)
    outcome = asyncio.run(client.generate("lesson-plan", "x"))
    assert isinstance(outcome, GenerationFailure)
    assert client.state.result == "Error: AI request failed"


def test_connect_error_becomes_error_result():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    outcome = asyncio.run(client.generate("lesson-plan", "x"))
    assert outcome == GenerationFailure(message="connection refused")
    assert client.state.result == "Error: connection refused"
    assert client.state.is_loading is False


def test_read_error_mid_stream_replaces_partial_text():
    def handler(request):
        async def broken():
            yield _line("partial")
            raise httpx.ReadError("connection reset")

        return httpx.Response(200, content=broken())

    client = _client(handler)
    asyncio.run(client.generate("lesson-plan", "x"))
    assert client.state.result == "Error: connection reset"
    assert client.state.is_loading is False


def test_empty_stream_settles_with_empty_result():
    def handler(request):
        return httpx.Response(200, content=_body([b": keep-alive\n\n", b"event: ping\n"]))

    client = _client(handler)
    outcome = asyncio.run(client.generate("lesson-plan", "x"))
    assert outcome == GenerationSuccess(text="")
    assert client.state == StreamState(is_loading=False, result="", outcome=outcome)


def test_model_text_starting_with_error_is_still_success():
    def handler(request):
        return httpx.Response(200, content=_body([_line("Error: none found"), b"data: [DONE]\n"]))

    client = _client(handler)
    outcome = asyncio.run(client.generate("lesson-plan", "x"))
    assert outcome.kind == "ok"
    assert client.state.result == "Error: none found"
    assert not client.state.is_error


def test_malformed_lines_are_counted():
    def handler(request):
        chunks = [_line("A"), b"data: {not valid json}\n", _line("B")]
        return httpx.Response(200, content=_body(chunks))

    client = _client(handler)
    asyncio.run(client.generate("lesson-plan", "x"))
    assert client.state.result == "AB"
    assert client.last_skipped == 1


def test_reset_after_settle_keeps_loading_flag():
    def handler(request):
        return httpx.Response(200, content=_body([_line("done")]))

    client = _client(handler)
    asyncio.run(client.generate("lesson-plan", "x"))
    client.reset()
    assert client.state.result == ""
    assert client.state.is_loading is False


def test_reset_while_loading_is_repopulated_by_late_data():
    async def scenario():
        gate = asyncio.Event()

        def handler(request):
            async def slow():
                yield _line("Hello")
                await gate.wait()
                yield _line(" world")

            return httpx.Response(200, content=slow())

        client = _client(handler)
        task = asyncio.create_task(client.generate("lesson-plan", "x"))
        await _wait_for(lambda: client.state.result == "Hello")
        client.reset()
        during = client.state
        gate.set()
        await task
        return during, client.state

    during, after = asyncio.run(scenario())
    assert during.result == ""
    assert during.is_loading is True
    # 进行中的调用持有自己的累加器，会重新发布完整文本
    assert after.result == "Hello world"
    assert after.is_loading is False


def test_newer_generate_supersedes_in_flight_call():
    async def scenario():
        gate = asyncio.Event()
        contexts = []

        def handler(request):
            contexts.append(json.loads(request.content)["context"])
            if len(contexts) == 1:
                async def slow():
                    yield _line("first")
                    await gate.wait()
                    yield _line(" late")
                    yield b"data: [DONE]\n"

                return httpx.Response(200, content=slow())
            return httpx.Response(200, content=_body([_line("second"), b"data: [DONE]\n"]))

        client = _client(handler)
        first = asyncio.create_task(client.generate("lesson-plan", "one"))
        await _wait_for(lambda: client.state.result == "first")
        second = await client.generate("lesson-plan", "two")
        gate.set()
        first_outcome = await first
        return client.state, first_outcome, second, contexts

    state, first_outcome, second, contexts = asyncio.run(scenario())
    assert contexts == ["one", "two"]
    assert second == GenerationSuccess(text="second")
    assert first_outcome == GenerationFailure(message="superseded")
    assert state.result == "second"
    assert state.is_loading is False


def test_iter_deltas_yields_fragments():
    def handler(request):
        return httpx.Response(200, content=_body([_line("x"), _line("y"), b"data: [DONE]\n"]))

    client = _client(handler)

    async def collect():
        return [d async for d in client.iter_deltas("resource-recommendation", "ADHD")]

    assert asyncio.run(collect()) == ["x", "y"]
    assert client.state == StreamState()


def test_superseded_call_does_not_overwrite_skip_count():
    async def scenario():
        gate = asyncio.Event()
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                async def slow():
                    yield _line("first")
                    yield b"data: {not valid json}\ndata: {still broken\n"
                    await gate.wait()
                    yield b"data: [DONE]\n"

                return httpx.Response(200, content=slow())
            return httpx.Response(200, content=_body([_line("second"), b"data: [DONE]\n"]))

        client = _client(handler)
        first = asyncio.create_task(client.generate("lesson-plan", "one"))
        await _wait_for(lambda: client.state.result == "first")
        await client.generate("lesson-plan", "two")
        gate.set()
        await first
        return client

    client = asyncio.run(scenario())
    assert client.last_skipped == 0
    assert client.state.result == "second"
