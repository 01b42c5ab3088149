from __future__ import annotations

from ai_client._errors import (
    AiAPIError,
    AiError,
    InvalidApiKeyError,
    InvalidModelError,
    MissingApiKeyError,
    StreamDecodeError,
    StreamEncodingError,
    StreamError,
    StreamTransportError,
)
from ai_client._sse import AsyncEventStream, EventStream, StreamItem, StreamState
from ai_client.gemini import GeminiClient, GeminiModel
from ai_client.openai import OpenAIClient, OpenAIModel

__all__ = [
    "AiAPIError",
    "AiError",
    "AsyncEventStream",
    "EventStream",
    "GeminiClient",
    "GeminiModel",
    "InvalidApiKeyError",
    "InvalidModelError",
    "MissingApiKeyError",
    "OpenAIClient",
    "OpenAIModel",
    "StreamDecodeError",
    "StreamEncodingError",
    "StreamError",
    "StreamItem",
    "StreamState",
    "StreamTransportError",
]

__version__ = "0.1.2"
