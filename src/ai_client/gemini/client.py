from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel

from ai_client._auth import GEMINI_API_KEY_ENV, AuthConfig
from ai_client._client import AiHttpClient, HttpConfig
from ai_client._sse import AsyncEventStream, EventStream
from ai_client.gemini.model import GeminiModel, ModelInfo
from ai_client.gemini.types import (
    CountTokensRequest,
    CountTokensResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    ModelsListRequest,
    ModelsListResponse,
)

T = TypeVar("T")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1"
API_KEY_HEADER = "x-goog-api-key"
# Sin alt=sse el endpoint devuelve un array JSON en lugar de eventos SSE.
# Con alt=sse cada evento termina en "\r\n\r\n", de ahí crlf=True al abrir el stream.
STREAM_PARAMS = {"alt": "sse"}


def _model_path(model: GeminiModel | str, method: str | None = None) -> str:
    path = f"/{GeminiModel.parse(model).resource_name}"
    return f"{path}:{method}" if method else path


@dataclass(slots=True)
class GeminiClient:
    """
    Cliente tipado para la API de Gemini (Generative Language API).

    El modelo forma parte de la ruta (models/<id>:generateContent), por eso los
    métodos de generación lo reciben aparte del request.
    """
    api_key: str | None = field(default=None, repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float | None = 120.0

    _http: AiHttpClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        auth = AuthConfig.from_env_or_value(self.api_key, env_var=GEMINI_API_KEY_ENV)
        self._http = AiHttpClient(
            config=HttpConfig(base_url=self.base_url, timeout_s=self.timeout_s),
            auth_headers=auth.header(API_KEY_HEADER),
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

    def list_models(self) -> ModelsListResponse:
        return self.list_models_with_params(ModelsListRequest())

    def list_models_with_params(self, params: ModelsListRequest) -> ModelsListResponse:
        return self.get("/models", ModelsListResponse, params=params.to_query() or None)

    def get_model(self, model: GeminiModel | str) -> ModelInfo:
        return self.get(_model_path(model), ModelInfo)

    async def alist_models(self) -> ModelsListResponse:
        return await self.alist_models_with_params(ModelsListRequest())

    async def alist_models_with_params(self, params: ModelsListRequest) -> ModelsListResponse:
        return await self.aget("/models", ModelsListResponse, params=params.to_query() or None)

    async def aget_model(self, model: GeminiModel | str) -> ModelInfo:
        return await self.aget(_model_path(model), ModelInfo)

    # --------- Generación ---------

    def count_tokens(self, model: GeminiModel | str, request: CountTokensRequest) -> CountTokensResponse:
        return self.post(_model_path(model, "countTokens"), request, CountTokensResponse)

    async def acount_tokens(self, model: GeminiModel | str, request: CountTokensRequest) -> CountTokensResponse:
        return await self.apost(_model_path(model, "countTokens"), request, CountTokensResponse)

    def generate_content(self, model: GeminiModel | str, request: GenerateContentRequest) -> GenerateContentResponse:
        return self.post(_model_path(model, "generateContent"), request, GenerateContentResponse)

    async def agenerate_content(
        self, model: GeminiModel | str, request: GenerateContentRequest
    ) -> GenerateContentResponse:
        return await self.apost(_model_path(model, "generateContent"), request, GenerateContentResponse)

    def generate_content_streamed(
        self, model: GeminiModel | str, request: GenerateContentRequest
    ) -> EventStream[GenerateContentResponse]:
        return self._http.stream_events(
            _model_path(model, "streamGenerateContent"),
            request,
            GenerateContentResponse,
            params=STREAM_PARAMS,
            crlf=True,
        )

    async def agenerate_content_streamed(
        self, model: GeminiModel | str, request: GenerateContentRequest
    ) -> AsyncEventStream[GenerateContentResponse]:
        return await self._http.astream_events(
            _model_path(model, "streamGenerateContent"),
            request,
            GenerateContentResponse,
            params=STREAM_PARAMS,
            crlf=True,
        )
