import pytest

from ai_client._errors import InvalidModelError
from ai_client.openai.model import (
    MODEL_CAPABILITIES,
    OpenAIModel,
    clamp_reasoning_effort,
    sanitise_request_params,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("gpt-4o-mini", OpenAIModel.GPT_4O_MINI),
        ("models/gpt-5", OpenAIModel.GPT_5),
        ("gpt-4.1-nano", OpenAIModel.GPT_4_1_NANO),
        ("gpt-4-1-mini", OpenAIModel.GPT_4_1_MINI),
        ("models/gpt-4-1-nano", OpenAIModel.GPT_4_1_NANO),
    ],
)
def test_parse_accepts_prefixed_and_legacy_names(name, expected):
    assert OpenAIModel.parse(name) is expected


def test_parse_unknown_model_raises():
    with pytest.raises(InvalidModelError) as exc:
        OpenAIModel.parse("gpt-3")

    assert exc.value.model == "gpt-3"


def test_default_and_str():
    assert OpenAIModel.default() is OpenAIModel.GPT_4O_MINI
    assert str(OpenAIModel.GPT_5_1) == "gpt-5.1"


def test_every_model_has_capabilities():
    assert set(MODEL_CAPABILITIES) == set(OpenAIModel)


def test_capability_table():
    assert OpenAIModel.GPT_4_1.capabilities.temperature
    assert OpenAIModel.GPT_4_1.capabilities.prompt_caching
    assert "minimal" in OpenAIModel.GPT_4_1.capabilities.reasoning_efforts

    assert not OpenAIModel.GPT_5.capabilities.temperature
    assert "minimal" not in OpenAIModel.GPT_5.capabilities.reasoning_efforts

    assert not OpenAIModel.GPT_5_NANO.capabilities.supports_reasoning
    assert not OpenAIModel.GPT_4O.capabilities.prompt_caching


@pytest.mark.parametrize(
    "effort, supported, expected",
    [
        ("high", frozenset({"none", "low", "medium", "high"}), "high"),
        ("xhigh", frozenset({"none", "low", "medium", "high"}), "high"),
        ("minimal", frozenset({"none", "low", "medium", "high"}), "none"),
        ("minimal", frozenset({"low", "medium"}), "low"),
        ("medium", frozenset(), None),
        (None, frozenset({"low"}), None),
    ],
)
def test_clamp_reasoning_effort(effort, supported, expected):
    assert clamp_reasoning_effort(effort, supported) == expected


def test_sanitise_drops_temperature_for_gpt5():
    params = sanitise_request_params(OpenAIModel.GPT_5, temperature=0.7, reasoning_effort="minimal")

    assert params["temperature"] is None
    assert params["reasoning_effort"] == "none"


def test_sanitise_keeps_supported_values():
    params = sanitise_request_params(
        OpenAIModel.GPT_4_1,
        temperature=0.2,
        reasoning_effort="minimal",
        prompt_cache_key="user-42",
        prompt_cache_retention="24h",
    )

    assert params == {
        "temperature": 0.2,
        "reasoning_effort": "minimal",
        "prompt_cache_key": "user-42",
        "prompt_cache_retention": "24h",
    }


def test_sanitise_keeps_xhigh_for_gpt_4_1():
    params = sanitise_request_params(OpenAIModel.GPT_4_1, reasoning_effort="xhigh")

    assert params["reasoning_effort"] == "xhigh"


def test_sanitise_removes_caching_and_reasoning_for_small_models():
    params = sanitise_request_params(
        OpenAIModel.GPT_4O_MINI,
        temperature=1.0,
        reasoning_effort="high",
        prompt_cache_key="k",
        prompt_cache_retention="24h",
    )

    assert params == {
        "temperature": 1.0,
        "reasoning_effort": None,
        "prompt_cache_key": None,
        "prompt_cache_retention": None,
    }
