"""
OpenAI model identifiers and the per-model capability table used to sanitise
requests before they are sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional

from ai_client._errors import InvalidModelError

ReasoningEffort = Literal["none", "minimal", "low", "medium", "high", "xhigh"]

# De menor a mayor esfuerzo.
REASONING_EFFORT_ORDER: tuple[ReasoningEffort, ...] = ("none", "minimal", "low", "medium", "high", "xhigh")

_MODEL_PREFIX = "models/"

_LEGACY_NAMES = {
    "gpt-4-1-mini": "gpt-4.1-mini",
    "gpt-4-1-nano": "gpt-4.1-nano",
}


class OpenAIModel(str, Enum):
    """https://platform.openai.com/docs/models"""

    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4O = "gpt-4o"
    GPT_4_1 = "gpt-4.1"
    GPT_4_1_MINI = "gpt-4.1-mini"
    GPT_4_1_NANO = "gpt-4.1-nano"
    GPT_5_1 = "gpt-5.1"
    GPT_5 = "gpt-5"
    GPT_5_MINI = "gpt-5-mini"
    GPT_5_NANO = "gpt-5-nano"

    @classmethod
    def _missing_(cls, value: object) -> Optional[OpenAIModel]:
        if not isinstance(value, str):
            return None
        name = value[len(_MODEL_PREFIX):] if value.startswith(_MODEL_PREFIX) else value
        name = _LEGACY_NAMES.get(name, name)
        for member in cls:
            if member.value == name:
                return member
        return None

    @classmethod
    def default(cls) -> OpenAIModel:
        return cls.GPT_4O_MINI

    @classmethod
    def parse(cls, name: str) -> OpenAIModel:
        """
        Resolve a model identifier, with or without the `models/` prefix.

        Raises:
            InvalidModelError: If the identifier is not a known model.
        """
        try:
            return cls(name)
        except ValueError:
            raise InvalidModelError(name) from None

    @property
    def capabilities(self) -> ModelCapabilities:
        return MODEL_CAPABILITIES[self]

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ModelCapabilities:
    """What a model accepts in a request."""

    temperature: bool
    # Vacío si el modelo no admite razonamiento.
    reasoning_efforts: frozenset[ReasoningEffort]
    prompt_caching: bool

    @property
    def supports_reasoning(self) -> bool:
        return bool(self.reasoning_efforts)


_NO_REASONING: frozenset[ReasoningEffort] = frozenset()
_GPT_4_REASONING: frozenset[ReasoningEffort] = frozenset({"none", "minimal", "low", "medium", "high", "xhigh"})
_GPT_5_REASONING: frozenset[ReasoningEffort] = frozenset({"none", "low", "medium", "high"})

MODEL_CAPABILITIES: dict[OpenAIModel, ModelCapabilities] = {
    OpenAIModel.GPT_4O_MINI: ModelCapabilities(temperature=True, reasoning_efforts=_NO_REASONING, prompt_caching=False),
    OpenAIModel.GPT_4O: ModelCapabilities(temperature=True, reasoning_efforts=_NO_REASONING, prompt_caching=False),
    OpenAIModel.GPT_4_1: ModelCapabilities(temperature=True, reasoning_efforts=_GPT_4_REASONING, prompt_caching=True),
    OpenAIModel.GPT_4_1_MINI: ModelCapabilities(temperature=True, reasoning_efforts=_NO_REASONING, prompt_caching=False),
    OpenAIModel.GPT_4_1_NANO: ModelCapabilities(temperature=True, reasoning_efforts=_NO_REASONING, prompt_caching=False),
    OpenAIModel.GPT_5_1: ModelCapabilities(temperature=False, reasoning_efforts=_GPT_5_REASONING, prompt_caching=True),
    OpenAIModel.GPT_5: ModelCapabilities(temperature=False, reasoning_efforts=_GPT_5_REASONING, prompt_caching=True),
    OpenAIModel.GPT_5_MINI: ModelCapabilities(temperature=False, reasoning_efforts=_NO_REASONING, prompt_caching=False),
    OpenAIModel.GPT_5_NANO: ModelCapabilities(temperature=False, reasoning_efforts=_NO_REASONING, prompt_caching=False),
}


def clamp_reasoning_effort(
    effort: Optional[ReasoningEffort],
    supported: frozenset[ReasoningEffort],
) -> Optional[ReasoningEffort]:
    """
    Map a reasoning effort onto the set a model supports.

    Unsupported values move to the nearest lower supported value (xhigh becomes
    high, minimal becomes none), or to the nearest higher one when nothing lower
    is supported. Returns None when the model does not reason at all.
    """
    if effort is None or not supported:
        return None
    if effort in supported:
        return effort
    idx = REASONING_EFFORT_ORDER.index(effort)
    for candidate in reversed(REASONING_EFFORT_ORDER[:idx]):
        if candidate in supported:
            return candidate
    for candidate in REASONING_EFFORT_ORDER[idx + 1:]:
        if candidate in supported:
            return candidate
    return None


def sanitise_request_params(
    model: OpenAIModel,
    *,
    temperature: Optional[float] = None,
    reasoning_effort: Optional[ReasoningEffort] = None,
    prompt_cache_key: Optional[str] = None,
    prompt_cache_retention: Optional[str] = None,
) -> dict[str, Any]:
    """
    Adjust request parameters to what `model` accepts.

    Returns:
        The sanitised values, keyed by parameter name, ready to be applied with
        `model_copy(update=...)`.
    """
    caps = model.capabilities
    return {
        "temperature": temperature if caps.temperature else None,
        "reasoning_effort": clamp_reasoning_effort(reasoning_effort, caps.reasoning_efforts),
        "prompt_cache_key": prompt_cache_key if caps.prompt_caching else None,
        "prompt_cache_retention": prompt_cache_retention if caps.prompt_caching else None,
    }
