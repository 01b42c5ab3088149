from __future__ import annotations

from ai_client.openai.client import OpenAIClient
from ai_client.openai.model import (
    MODEL_CAPABILITIES,
    ModelCapabilities,
    OpenAIModel,
    ReasoningEffort,
    clamp_reasoning_effort,
    sanitise_request_params,
)
from ai_client.openai.responses import (
    OpenAIImageGenerationCallItem,
    OpenAIImageGenerationTool,
    OpenAIResponseMessageItem,
    OpenAIResponsesCreateRequest,
    OpenAIResponsesCreateResponse,
    OpenAIResponsesInputItem,
    OpenAIResponsesStreamEvent,
    OutputTextDeltaEvent,
    ResponseLifecycleEvent,
    UnknownOutputItem,
    UnknownStreamEvent,
    image_base64_part,
    image_url_part,
    text_part,
)
from ai_client.openai.types import (
    OpenAIGenerateContentRequest,
    OpenAIGenerateContentResponse,
    OpenAIJsonSchema,
    OpenAIModelInfo,
    OpenAIModelsListResponse,
    OpenAIPrompt,
    OpenAIStreamChunk,
)

__all__ = [
    "MODEL_CAPABILITIES",
    "ModelCapabilities",
    "OpenAIClient",
    "OpenAIGenerateContentRequest",
    "OpenAIGenerateContentResponse",
    "OpenAIImageGenerationCallItem",
    "OpenAIImageGenerationTool",
    "OpenAIJsonSchema",
    "OpenAIModel",
    "OpenAIModelInfo",
    "OpenAIModelsListResponse",
    "OpenAIPrompt",
    "OpenAIResponseMessageItem",
    "OpenAIResponsesCreateRequest",
    "OpenAIResponsesCreateResponse",
    "OpenAIResponsesInputItem",
    "OpenAIResponsesStreamEvent",
    "OpenAIStreamChunk",
    "OutputTextDeltaEvent",
    "ReasoningEffort",
    "ResponseLifecycleEvent",
    "UnknownOutputItem",
    "UnknownStreamEvent",
    "clamp_reasoning_effort",
    "image_base64_part",
    "image_url_part",
    "sanitise_request_params",
    "text_part",
]
