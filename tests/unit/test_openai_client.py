import json

import httpx
import pytest

from ai_client._errors import AiAPIError, InvalidModelError, MissingApiKeyError, StreamDecodeError
from ai_client.openai import (
    OpenAIClient,
    OpenAIGenerateContentRequest,
    OpenAIModel,
    OpenAIResponsesCreateRequest,
    OpenAIStreamChunk,
    OutputTextDeltaEvent,
    ResponseLifecycleEvent,
    UnknownStreamEvent,
)
from ai_client.openai.client import CHAT_COMPLETIONS_PATH, DEFAULT_BASE_URL, RESPONSES_PATH


def make_client(handler, monkeypatch):
    monkeypatch.delenv("AI_CLIENT_HTTP_DEBUG", raising=False)
    client = OpenAIClient(api_key="sk-test", base_url="https://api.test/v1")
    client._http._client = httpx.Client(transport=httpx.MockTransport(handler))
    client._http._aclient = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


def sse(*payloads: str) -> bytes:
    return "".join(f"data: {p}\n\n" for p in payloads).encode("utf-8")


CHAT_RESPONSE = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "created": 1,
    "model": "gpt-5",
    "choices": [{"index": 0, "finish_reason": "stop", "message": {"role": "assistant", "content": "ok"}}],
}


def test_client_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(MissingApiKeyError):
        OpenAIClient()


def test_client_reads_key_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

    client = OpenAIClient()

    assert client.base_url == DEFAULT_BASE_URL
    assert client._http._headers()["Authorization"] == "Bearer sk-env"
    assert "sk-env" not in repr(client)


def test_generate_content_sends_sanitised_request(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=CHAT_RESPONSE)

    client = make_client(handler, monkeypatch)
    req = OpenAIGenerateContentRequest(
        model=OpenAIModel.GPT_5,
        messages=[{"role": "user", "content": "hola"}],
        temperature=0.9,
        reasoning_effort="minimal",
    )

    resp = client.generate_content(req)

    assert resp.text == "ok"
    assert seen["url"] == "https://api.test/v1" + CHAT_COMPLETIONS_PATH
    assert seen["auth"] == "Bearer sk-test"
    assert "temperature" not in seen["body"]
    assert seen["body"]["reasoning_effort"] == "none"
    assert "stream" not in seen["body"]
    # El request original no se modifica.
    assert req.temperature == 0.9


def test_generate_content_streamed_forces_stream_and_parses_chunks(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        seen["accept"] = request.headers["accept"]
        chunk = {
            "id": "c",
            "object": "chat.completion.chunk",
            "created": 1,
            "model": "gpt-4o-mini",
            "choices": [{"index": 0, "delta": {"content": "Ho"}}],
        }
        chunk2 = dict(chunk, choices=[{"index": 0, "delta": {"content": "la"}, "finish_reason": "stop"}])
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=sse(json.dumps(chunk), json.dumps(chunk2), "[DONE]"),
        )

    client = make_client(handler, monkeypatch)
    req = OpenAIGenerateContentRequest(messages=[{"role": "user", "content": "hi"}], stream=False)

    with client.generate_content_streamed(req) as stream:
        chunks = [item.unwrap() for item in stream]

    assert seen["body"]["stream"] is True
    assert seen["accept"] == "text/event-stream"
    assert all(isinstance(c, OpenAIStreamChunk) for c in chunks)
    assert "".join(c.choices[0].delta.content for c in chunks) == "Hola"
    assert req.stream is False


def test_generate_response_streamed_mixed_events(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1" + RESPONSES_PATH
        return httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=(
                b"event: response.created\n"
                + sse(
                    '{"type":"response.created","sequence_number":0,'
                    '"response":{"id":"r","created_at":1,"status":"in_progress"}}'
                )
                + b"event: response.output_text.delta\n"
                + sse(
                    '{"type":"response.output_text.delta","item_id":"m","sequence_number":1,'
                    '"output_index":0,"content_index":0,"delta":"hey"}',
                    '{"type":"response.output_text.delta","sequence_number":2}',
                    '{"type":"response.new_kind","sequence_number":3}',
                    '{"type":"response.completed","sequence_number":4,'
                    '"response":{"id":"r","created_at":1,"status":"completed"}}',
                )
            ),
        )

    client = make_client(handler, monkeypatch)

    stream = client.generate_response_streamed(OpenAIResponsesCreateRequest(input="hi"))
    items = list(stream)

    assert isinstance(items[0].value, ResponseLifecycleEvent)
    assert isinstance(items[1].value, OutputTextDeltaEvent)
    assert isinstance(items[2].error, StreamDecodeError)
    assert isinstance(items[3].value, UnknownStreamEvent)
    assert items[4].value.is_final
    assert len(items) == 5
    assert stream.closed


def test_generate_response_http_error(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={"error": {"message": "Rate limit reached", "type": "requests", "code": "rate_limit_exceeded"}},
        )

    client = make_client(handler, monkeypatch)

    with pytest.raises(AiAPIError) as exc:
        client.generate_response(OpenAIResponsesCreateRequest(input="hi"))

    assert exc.value.is_rate_limited
    assert exc.value.error_code == "rate_limit_exceeded"


def test_list_and_get_model(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        info = {"id": "gpt-4o", "object": "model", "owned_by": "openai", "created": 1}
        if request.url.path == "/v1/models":
            return httpx.Response(200, json={"object": "list", "data": [info]})
        assert request.url.path == "/v1/models/gpt-4o"
        return httpx.Response(200, json=info)

    client = make_client(handler, monkeypatch)

    assert [m.id for m in client.list_models().data] == ["gpt-4o"]
    assert client.get_model("models/gpt-4o").owned_by == "openai"

    with pytest.raises(InvalidModelError):
        client.get_model("davinci")


@pytest.mark.asyncio
async def test_async_generate_and_stream(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body.get("stream"):
            return httpx.Response(
                200,
                content=sse(
                    '{"type":"response.output_text.delta","item_id":"m","sequence_number":1,'
                    '"output_index":0,"content_index":0,"delta":"a"}',
                    "[DONE]",
                ),
            )
        return httpx.Response(
            200,
            json={
                "id": "r",
                "created_at": 1,
                "status": "completed",
                "output": [{"type": "message", "content": [{"type": "output_text", "text": "sync"}]}],
            },
        )

    client = make_client(handler, monkeypatch)
    req = OpenAIResponsesCreateRequest(input="hi")

    resp = await client.agenerate_response(req)
    assert resp.output_text == "sync"

    stream = await client.agenerate_response_streamed(req)
    async with stream:
        deltas = [item.unwrap().delta async for item in stream]

    assert deltas == ["a"]
    await client.aclose()
