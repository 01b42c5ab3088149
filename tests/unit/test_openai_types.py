import base64

import pytest
from pydantic import ValidationError

from ai_client._client import dump_request
from ai_client.openai import (
    OpenAIGenerateContentRequest,
    OpenAIGenerateContentResponse,
    OpenAIModel,
    OpenAIModelsListResponse,
    OpenAIStreamChunk,
)
from ai_client.openai.responses import (
    STREAM_EVENT_ADAPTER,
    ImageGenerationPartialImageEvent,
    OpenAIImageGenerationCallItem,
    OpenAIResponseMessageItem,
    OpenAIResponsesCreateRequest,
    OpenAIResponsesCreateResponse,
    OpenAIResponsesInputItem,
    OpenAIResponsesReasoning,
    OutputTextDeltaEvent,
    ResponseLifecycleEvent,
    StreamErrorEvent,
    TextFormatJsonSchema,
    OpenAIResponsesTextConfig,
    UnknownContentPart,
    UnknownOutputItem,
    UnknownStreamEvent,
    image_base64_part,
    text_part,
)


# ---------------------------------------------------------------------------
# Chat Completions
# ---------------------------------------------------------------------------


def test_chat_request_dump_and_defaults():
    req = OpenAIGenerateContentRequest(messages=[{"role": "user", "content": "hola"}])

    assert dump_request(req) == {
        "model": "gpt-4o-mini",
        "messages": [{"role": "user", "content": "hola"}],
    }


def test_chat_request_rejects_unknown_fields_and_bad_ranges():
    with pytest.raises(ValidationError):
        OpenAIGenerateContentRequest(messages=[], foo=1)
    with pytest.raises(ValidationError):
        OpenAIGenerateContentRequest(messages=[], temperature=3.0)


def test_chat_request_sanitised_does_not_mutate_original():
    req = OpenAIGenerateContentRequest(
        model=OpenAIModel.GPT_5_MINI,
        messages=[{"role": "user", "content": "x"}],
        temperature=0.5,
        reasoning_effort="high",
    )

    clean = req.sanitised()

    assert clean.temperature is None
    assert clean.reasoning_effort is None
    assert req.temperature == 0.5
    assert req.reasoning_effort == "high"


def test_json_schema_response_format_uses_schema_alias():
    req = OpenAIGenerateContentRequest(
        messages=[{"role": "user", "content": "x"}],
        response_format={
            "type": "json_schema",
            "json_schema": {"name": "answer", "schema": {"type": "object"}, "strict": True},
        },
    )

    dumped = dump_request(req)

    assert dumped["response_format"]["json_schema"]["schema"] == {"type": "object"}


def test_chat_response_text():
    resp = OpenAIGenerateContentResponse.model_validate(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 1,
            "model": "gpt-4o-mini",
            "choices": [{"index": 0, "finish_reason": "stop", "message": {"role": "assistant", "content": "hi"}}],
            "usage": {"completion_tokens": 1, "prompt_tokens": 2, "total_tokens": 3},
            "system_fingerprint": "fp_x",
        }
    )

    assert resp.text == "hi"
    assert resp.model_extra["system_fingerprint"] == "fp_x"


def test_stream_chunk_with_usage_only():
    chunk = OpenAIStreamChunk.model_validate_json(
        '{"id":"c","object":"chat.completion.chunk","created":1,"model":"gpt-4o","choices":[],'
        '"usage":{"completion_tokens":1,"prompt_tokens":1,"total_tokens":2}}'
    )

    assert chunk.choices == []
    assert chunk.usage.total_tokens == 2


def test_models_list_shape():
    resp = OpenAIModelsListResponse.model_validate(
        {"object": "list", "data": [{"id": "gpt-4o", "object": "model", "owned_by": "openai", "created": 1}]}
    )

    assert resp.data[0].id == "gpt-4o"


# ---------------------------------------------------------------------------
# Responses API
# ---------------------------------------------------------------------------


def test_responses_request_with_parts_and_schema():
    req = OpenAIResponsesCreateRequest(
        model="gpt-4.1",
        input=[
            OpenAIResponsesInputItem(
                role="user",
                content=[text_part("describe"), image_base64_part("image/png", "AAAA", detail="low")],
            )
        ],
        text=OpenAIResponsesTextConfig(
            format=TextFormatJsonSchema(name="d", json_schema={"type": "object"}),
        ),
    )

    dumped = dump_request(req)

    assert dumped["model"] == "gpt-4.1"
    assert dumped["input"][0]["content"][1] == {
        "type": "input_image",
        "image_url": "data:image/png;base64,AAAA",
        "detail": "low",
    }
    assert dumped["text"]["format"]["schema"] == {"type": "object"}


def test_responses_request_sanitised_clamps_reasoning_and_drops_cache():
    req = OpenAIResponsesCreateRequest(
        model=OpenAIModel.GPT_5,
        input="hi",
        temperature=0.3,
        reasoning=OpenAIResponsesReasoning(effort="xhigh"),
        prompt_cache_key="k",
    )

    clean = req.sanitised()

    assert clean.temperature is None
    assert clean.reasoning.effort == "high"
    assert clean.prompt_cache_key == "k"
    assert req.reasoning.effort == "xhigh"

    mini = req.model_copy(update={"model": OpenAIModel.GPT_5_MINI}).sanitised()
    assert mini.prompt_cache_key is None
    assert mini.reasoning.effort is None


def test_responses_output_union_keeps_unknown_items():
    image_b64 = base64.b64encode(b"\x89PNG").decode()
    resp = OpenAIResponsesCreateResponse.model_validate(
        {
            "id": "resp_1",
            "created_at": 1,
            "status": "completed",
            "output": [
                {"type": "reasoning", "id": "rs_1", "summary": []},
                {
                    "type": "message",
                    "id": "msg_1",
                    "role": "assistant",
                    "content": [
                        {"type": "output_text", "text": "Hola ", "annotations": []},
                        {"type": "refusal", "refusal": "no"},
                        {"type": "output_text", "text": "mundo"},
                    ],
                },
                {"type": "image_generation_call", "id": "ig_1", "status": "completed", "result": image_b64},
                {"no_type": True},
            ],
        }
    )

    assert isinstance(resp.output[0], UnknownOutputItem)
    assert resp.output[0].raw == {"type": "reasoning", "id": "rs_1", "summary": []}
    assert isinstance(resp.output[1], OpenAIResponseMessageItem)
    assert isinstance(resp.output[1].content[1], UnknownContentPart)
    assert isinstance(resp.output[2], OpenAIImageGenerationCallItem)
    assert isinstance(resp.output[3], UnknownOutputItem)
    assert resp.output[3].type is None

    assert resp.output_text == "Hola mundo"
    assert resp.images[0].decode_image() == b"\x89PNG"


def test_message_item_accepts_text_alias():
    item = OpenAIResponseMessageItem.model_validate({"type": "message", "text": [{"type": "output_text", "text": "x"}]})

    assert item.text == "x"


# ---------------------------------------------------------------------------
# Streaming events
# ---------------------------------------------------------------------------


def test_stream_event_union_known_types():
    delta = STREAM_EVENT_ADAPTER.validate_json(
        '{"type":"response.output_text.delta","item_id":"m","sequence_number":3,'
        '"output_index":0,"content_index":0,"delta":"Ho"}'
    )
    assert isinstance(delta, OutputTextDeltaEvent)
    assert delta.delta == "Ho"

    done = STREAM_EVENT_ADAPTER.validate_python(
        {
            "type": "response.completed",
            "sequence_number": 9,
            "response": {"id": "r", "created_at": 1, "status": "completed", "output": []},
        }
    )
    assert isinstance(done, ResponseLifecycleEvent)
    assert done.is_final

    created = STREAM_EVENT_ADAPTER.validate_python(
        {
            "type": "response.created",
            "sequence_number": 0,
            "response": {"id": "r", "created_at": 1, "status": "in_progress"},
        }
    )
    assert not created.is_final

    err = STREAM_EVENT_ADAPTER.validate_python({"type": "error", "code": "server_error", "message": "boom"})
    assert isinstance(err, StreamErrorEvent)


def test_stream_event_partial_image_alias():
    event = STREAM_EVENT_ADAPTER.validate_python(
        {
            "type": "response.image_generation_call.partial_image",
            "item_id": "ig",
            "sequence_number": 4,
            "output_index": 0,
            "partial_image_index": 0,
            "partial_image": base64.b64encode(b"img").decode(),
        }
    )

    assert isinstance(event, ImageGenerationPartialImageEvent)
    assert event.decode_image() == b"img"


def test_stream_event_unknown_type_is_preserved():
    event = STREAM_EVENT_ADAPTER.validate_json(
        '{"type":"response.reasoning_summary_text.delta","sequence_number":2,"delta":"think"}'
    )

    assert isinstance(event, UnknownStreamEvent)
    assert event.raw == {"type": "response.reasoning_summary_text.delta", "sequence_number": 2, "delta": "think"}


def test_stream_event_known_type_with_bad_shape_fails():
    with pytest.raises(ValidationError):
        STREAM_EVENT_ADAPTER.validate_python({"type": "response.output_text.delta", "delta": 1})
