from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel

from ai_client._auth import OPENAI_API_KEY_ENV, AuthConfig
from ai_client._client import AiHttpClient, HttpConfig
from ai_client._sse import AsyncEventStream, EventStream
from ai_client.openai.model import OpenAIModel
from ai_client.openai.responses import (
    STREAM_EVENT_ADAPTER,
    OpenAIResponsesCreateRequest,
    OpenAIResponsesCreateResponse,
    OpenAIResponsesStreamEvent,
)
from ai_client.openai.types import (
    OpenAIGenerateContentRequest,
    OpenAIGenerateContentResponse,
    OpenAIModelInfo,
    OpenAIModelsListResponse,
    OpenAIStreamChunk,
)

T = TypeVar("T")

DEFAULT_BASE_URL = "https://api.openai.com/v1"
CHAT_COMPLETIONS_PATH = "/chat/completions"
RESPONSES_PATH = "/responses"
MODELS_PATH = "/models"


def _streaming(request: T) -> T:
    """Copia sanitizada del request con stream=true."""
    sanitised = request.sanitised()  # type: ignore[attr-defined]
    return sanitised.model_copy(update={"stream": True})


@dataclass(slots=True)
class OpenAIClient:
    """
    Cliente tipado para la API de OpenAI.

    Todos los requests de generación se sanitizan según las capacidades del
    modelo antes de enviarse (temperature, reasoning effort, prompt caching).
    Los métodos *_streamed devuelven un EventStream que hay que consumir o cerrar.
    """
    api_key: str | None = field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float | None = 120.0

    _http: AiHttpClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        auth = AuthConfig.from_env_or_value(self.api_key, env_var=OPENAI_API_KEY_ENV)
        self._http = AiHttpClient(
            config=HttpConfig(base_url=self.base_url, timeout_s=self.timeout_s),
            auth_headers=auth.bearer_headers(),
        )

    def close(self) -> None:
        self._http.close()

    async def aclose(self) -> None:
        await self._http.aclose()

    # --------- Dispatch genérico ---------

    def get(self, path: str, response_type: type[T] | Any, *, params: dict[str, Any] | None = None) -> T:
        return self._http.get_as(path, response_type, params=params)

    def post(self, path: str, request: BaseModel | Mapping[str, Any], response_type: type[T] | Any) -> T:
        return self._http.post_as(path, request, response_type)

    async def aget(self, path: str, response_type: type[T] | Any, *, params: dict[str, Any] | None = None) -> T:
        return await self._http.aget_as(path, response_type, params=params)

    async def apost(self, path: str, request: BaseModel | Mapping[str, Any], response_type: type[T] | Any) -> T:
        return await self._http.apost_as(path, request, response_type)

    # --------- Modelos ---------

    def list_models(self) -> OpenAIModelsListResponse:
        return self.get(MODELS_PATH, OpenAIModelsListResponse)

    def get_model(self, model: OpenAIModel | str) -> OpenAIModelInfo:
        return self.get(f"{MODELS_PATH}/{OpenAIModel.parse(model).value}", OpenAIModelInfo)

    async def alist_models(self) -> OpenAIModelsListResponse:
        return await self.aget(MODELS_PATH, OpenAIModelsListResponse)

    async def aget_model(self, model: OpenAIModel | str) -> OpenAIModelInfo:
        return await self.aget(f"{MODELS_PATH}/{OpenAIModel.parse(model).value}", OpenAIModelInfo)

    # --------- Chat Completions ---------

    def generate_content(self, request: OpenAIGenerateContentRequest) -> OpenAIGenerateContentResponse:
        """
        Usa la API de Chat Completions.

        No se recomienda para código nuevo; considerar generate_response.
        """
        return self.post(CHAT_COMPLETIONS_PATH, request.sanitised(), OpenAIGenerateContentResponse)

    async def agenerate_content(self, request: OpenAIGenerateContentRequest) -> OpenAIGenerateContentResponse:
        return await self.apost(CHAT_COMPLETIONS_PATH, request.sanitised(), OpenAIGenerateContentResponse)

    def generate_content_streamed(self, request: OpenAIGenerateContentRequest) -> EventStream[OpenAIStreamChunk]:
        return self._http.stream_events(CHAT_COMPLETIONS_PATH, _streaming(request), OpenAIStreamChunk)

    async def agenerate_content_streamed(
        self, request: OpenAIGenerateContentRequest
    ) -> AsyncEventStream[OpenAIStreamChunk]:
        return await self._http.astream_events(CHAT_COMPLETIONS_PATH, _streaming(request), OpenAIStreamChunk)

    # --------- Responses ---------

    def generate_response(self, request: OpenAIResponsesCreateRequest) -> OpenAIResponsesCreateResponse:
        return self.post(RESPONSES_PATH, request.sanitised(), OpenAIResponsesCreateResponse)

    async def agenerate_response(self, request: OpenAIResponsesCreateRequest) -> OpenAIResponsesCreateResponse:
        return await self.apost(RESPONSES_PATH, request.sanitised(), OpenAIResponsesCreateResponse)

    def generate_response_streamed(
        self, request: OpenAIResponsesCreateRequest
    ) -> EventStream[OpenAIResponsesStreamEvent]:
        return self._http.stream_events(RESPONSES_PATH, _streaming(request), STREAM_EVENT_ADAPTER)

    async def agenerate_response_streamed(
        self, request: OpenAIResponsesCreateRequest
    ) -> AsyncEventStream[OpenAIResponsesStreamEvent]:
        return await self._http.astream_events(RESPONSES_PATH, _streaming(request), STREAM_EVENT_ADAPTER)
