from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ai_client.openai.model import OpenAIModel, ReasoningEffort, sanitise_request_params

# ---------------------------------------------------------------------------
# Tipos comunes a Chat Completions y Responses
# ---------------------------------------------------------------------------

OpenAIRole = Literal["assistant", "developer", "system", "user"]

FloatPenalty = Annotated[float, Field(ge=-2, le=2)]
FloatTemperature = Annotated[float, Field(ge=0, le=2)]
FloatTopP = Annotated[float, Field(ge=0, le=1)]


class OpenAIPrompt(BaseModel):
    model_config = ConfigDict(extra="forbid")
    role: OpenAIRole
    content: str


class OpenAIJsonSchema(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    name: str
    description: Optional[str] = None
    json_schema: dict[str, Any] = Field(alias="schema")
    strict: Optional[bool] = None


# ---------------------------------------------------------------------------
# Chat Completions: POST /v1/chat/completions
# ---------------------------------------------------------------------------


class ResponseFormatText(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["text"] = "text"


class ResponseFormatJsonObject(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["json_object"] = "json_object"


class ResponseFormatJsonSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["json_schema"] = "json_schema"
    json_schema: OpenAIJsonSchema


OpenAIResponseFormat = Annotated[
    Union[ResponseFormatText, ResponseFormatJsonSchema, ResponseFormatJsonObject],
    Field(discriminator="type"),
]


class StreamOptions(BaseModel):
    model_config = ConfigDict(extra="allow")
    include_usage: Optional[bool] = None


class OpenAIGenerateContentRequest(BaseModel):
    """
    Request de Chat Completions.

    La API de Chat Completions no se recomienda para código nuevo; ver
    `OpenAIResponsesCreateRequest`.
    """
    model_config = ConfigDict(extra="forbid")

    model: OpenAIModel = Field(default_factory=OpenAIModel.default)
    messages: list[OpenAIPrompt]

    frequency_penalty: Optional[FloatPenalty] = None
    # Incluye tokens visibles y de razonamiento.
    max_completion_tokens: Optional[int] = Field(default=None, ge=1)
    n: Optional[int] = Field(default=None, ge=1)
    modalities: Optional[list[str]] = None
    response_format: Optional[OpenAIResponseFormat] = None
    temperature: Optional[FloatTemperature] = None
    top_p: Optional[FloatTopP] = None
    # Con stream=true el proveedor envía deltas como SSE terminados por `data: [DONE]`.
    stream: Optional[bool] = None
    stream_options: Optional[StreamOptions] = None
    reasoning_effort: Optional[ReasoningEffort] = None

    def sanitised(self) -> OpenAIGenerateContentRequest:
        """Copia del request sin los parámetros que el modelo no acepta."""
        params = sanitise_request_params(
            self.model,
            temperature=self.temperature,
            reasoning_effort=self.reasoning_effort,
        )
        return self.model_copy(
            update={"temperature": params["temperature"], "reasoning_effort": params["reasoning_effort"]}
        )


class OpenAIUrlCitation(BaseModel):
    model_config = ConfigDict(extra="allow")
    start_index: int
    end_index: int
    title: str
    url: str


class OpenAIAnnotation(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: str
    url_citation: Optional[OpenAIUrlCitation] = None


class OpenAIMessage(BaseModel):
    model_config = ConfigDict(extra="allow")
    role: OpenAIRole
    content: Optional[str] = None
    refusal: Optional[str] = None
    annotations: Optional[list[OpenAIAnnotation]] = None


class OpenAIResponseChoice(BaseModel):
    model_config = ConfigDict(extra="allow")
    index: int
    finish_reason: Optional[str] = None
    message: OpenAIMessage


class OpenAIChatUsage(BaseModel):
    model_config = ConfigDict(extra="allow")
    completion_tokens: int
    prompt_tokens: int
    total_tokens: int


class OpenAIGenerateContentResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: str
    object: str
    created: int
    model: str
    choices: list[OpenAIResponseChoice]
    usage: Optional[OpenAIChatUsage] = None

    @property
    def text(self) -> str:
        """Contenido del primer choice, o string vacío."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class OpenAIDelta(BaseModel):
    model_config = ConfigDict(extra="allow")
    role: Optional[OpenAIRole] = None
    content: Optional[str] = None
    refusal: Optional[str] = None


class OpenAIStreamChoice(BaseModel):
    model_config = ConfigDict(extra="allow")
    index: int
    delta: OpenAIDelta
    finish_reason: Optional[str] = None


class OpenAIStreamChunk(BaseModel):
    """Un evento `data:` del streaming de Chat Completions."""
    model_config = ConfigDict(extra="allow")
    id: str
    object: str
    created: int
    model: str
    choices: list[OpenAIStreamChoice] = Field(default_factory=list)
    # Solo viene en el chunk final, y solo con stream_options.include_usage.
    usage: Optional[OpenAIChatUsage] = None


# ---------------------------------------------------------------------------
# Modelos: GET /v1/models, GET /v1/models/{model}
# ---------------------------------------------------------------------------


class OpenAIModelInfo(BaseModel):
    model_config = ConfigDict(extra="allow")
    id: str
    object: str
    owned_by: str
    created: int


class OpenAIModelsListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")
    object: str = "list"
    data: list[OpenAIModelInfo]
