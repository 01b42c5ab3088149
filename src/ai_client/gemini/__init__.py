from __future__ import annotations

from ai_client.gemini.client import GeminiClient
from ai_client.gemini.model import MODEL_CAPABILITIES, GeminiCapabilities, GeminiModel, GenerationMethod, ModelInfo
from ai_client.gemini.types import (
    Blob,
    Candidate,
    Content,
    CountTokensGenerateContentRequest,
    CountTokensRequest,
    CountTokensResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    ModelsListRequest,
    ModelsListResponse,
    Part,
    SafetySetting,
    UsageMetadata,
)

__all__ = [
    "MODEL_CAPABILITIES",
    "Blob",
    "Candidate",
    "Content",
    "CountTokensGenerateContentRequest",
    "CountTokensRequest",
    "CountTokensResponse",
    "GeminiCapabilities",
    "GeminiClient",
    "GeminiModel",
    "GenerateContentRequest",
    "GenerateContentResponse",
    "GenerationConfig",
    "GenerationMethod",
    "ModelInfo",
    "ModelsListRequest",
    "ModelsListResponse",
    "Part",
    "SafetySetting",
    "UsageMetadata",
]
