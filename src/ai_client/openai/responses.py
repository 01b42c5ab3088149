"""
Schemas for OpenAI's Responses API (POST /v1/responses), including its
streaming events.

Output items, content parts and stream events are closed tagged unions with one
extra `unknown` variant: a `type` this module does not model is kept as an
`Unknown*` object holding every field of the raw JSON, instead of failing
validation or being dropped.
"""

from __future__ import annotations

import base64
from typing import Annotated, Any, Callable, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter

from ai_client.openai.model import OpenAIModel, ReasoningEffort, sanitise_request_params
from ai_client.openai.types import FloatTemperature, FloatTopP

UNKNOWN_TAG = "unknown"


def _tag_by_type(tags: Mapping[str, str]) -> Callable[[Any], str]:
    """Build a discriminator mapping the `type` field onto a union tag."""

    def discriminate(value: Any) -> str:
        if isinstance(value, dict):
            kind = value.get("type")
        else:
            kind = getattr(value, "type", None)
        return tags.get(kind, UNKNOWN_TAG) if isinstance(kind, str) else UNKNOWN_TAG

    return discriminate


class _UnknownVariant(BaseModel):
    """Variant not modelled by this library; every field of the payload is kept."""
    model_config = ConfigDict(extra="allow")
    type: Optional[str] = None

    @property
    def raw(self) -> dict[str, Any]:
        data: dict[str, Any] = {} if self.type is None else {"type": self.type}
        data.update(self.model_extra or {})
        return data


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class InputTextPart(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["input_text"] = "input_text"
    text: str


ImageDetail = Literal["low", "high", "auto"]


class InputImagePart(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["input_image"] = "input_image"
    # URL o data URI base64 ("data:image/jpeg;base64,...")
    image_url: str
    detail: Optional[ImageDetail] = None


OpenAIResponsesInputContentPart = Annotated[Union[InputTextPart, InputImagePart], Field(discriminator="type")]


def text_part(text: str) -> InputTextPart:
    return InputTextPart(text=text)


def image_url_part(url: str, detail: ImageDetail | None = None) -> InputImagePart:
    return InputImagePart(image_url=url, detail=detail)


def image_base64_part(mime_type: str, base64_data: str, detail: ImageDetail | None = None) -> InputImagePart:
    return InputImagePart(image_url=f"data:{mime_type};base64,{base64_data}", detail=detail)


class OpenAIResponsesInputItem(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # "user", "assistant", "system", "developer"
    role: str
    content: Union[str, list[OpenAIResponsesInputContentPart]]


class TextFormatText(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["text"] = "text"


class TextFormatJsonSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    type: Literal["json_schema"] = "json_schema"
    name: str
    description: Optional[str] = None
    json_schema: dict[str, Any] = Field(alias="schema")
    strict: Optional[bool] = None


OpenAIResponsesTextFormat = Annotated[Union[TextFormatText, TextFormatJsonSchema], Field(discriminator="type")]


class OpenAIResponsesTextConfig(BaseModel):
    """Responses usa `text.format` en lugar del `response_format` de chat completions."""
    model_config = ConfigDict(extra="forbid")
    format: Optional[OpenAIResponsesTextFormat] = None


class OpenAIResponsesReasoning(BaseModel):
    model_config = ConfigDict(extra="forbid")
    effort: Optional[ReasoningEffort] = None


OpenAIImageModel = Literal["gpt-image-1-mini", "gpt-image-1", "gpt-image-1.5"]
OpenAIImageSize = Literal["1024x1024", "1536x1024", "1024x1536", "auto"]
OpenAIImageQuality = Literal["low", "medium", "high", "auto"]
OpenAIImageBackground = Literal["transparent", "opaque", "auto"]
OpenAIImageFormat = Literal["png", "webp", "jpeg"]
OpenAIImageAction = Literal["auto", "generate", "edit"]
OpenAIImageInputFidelity = Literal["high", "low"]


class OpenAIImageGenerationTool(BaseModel):
    """Herramienta de generación de imágenes con modelos GPT Image."""
    model_config = ConfigDict(extra="forbid")
    type: Literal["image_generation"] = "image_generation"
    model: Optional[OpenAIImageModel] = None
    size: Optional[OpenAIImageSize] = None
    quality: Optional[OpenAIImageQuality] = None
    background: Optional[OpenAIImageBackground] = None
    output_format: Optional[OpenAIImageFormat] = None
    # Imágenes parciales durante el streaming (0-3).
    partial_images: Optional[int] = Field(default=None, ge=0, le=3)
    # Solo gpt-image-1.5.
    action: Optional[OpenAIImageAction] = None
    input_fidelity: Optional[OpenAIImageInputFidelity] = None


OpenAIResponsesTool = OpenAIImageGenerationTool


class OpenAIResponsesCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    model: OpenAIModel = Field(default_factory=OpenAIModel.default)
    # Texto, o una lista de items con partes de texto/imagen.
    input: Union[str, list[OpenAIResponsesInputItem]]

    instructions: Optional[str] = None
    # Incluye tokens de razonamiento.
    max_output_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[FloatTemperature] = None
    top_p: Optional[FloatTopP] = None
    stream: Optional[bool] = None
    prompt_cache_key: Optional[str] = None
    # "24h" mantiene los prefijos cacheados más tiempo.
    prompt_cache_retention: Optional[str] = None
    text: Optional[OpenAIResponsesTextConfig] = None
    previous_response_id: Optional[str] = None
    store: Optional[bool] = None
    reasoning: Optional[OpenAIResponsesReasoning] = None
    tools: Optional[list[OpenAIResponsesTool]] = None

    def sanitised(self) -> OpenAIResponsesCreateRequest:
        """Copia del request sin los parámetros que el modelo no acepta."""
        params = sanitise_request_params(
            self.model,
            temperature=self.temperature,
            reasoning_effort=self.reasoning.effort if self.reasoning else None,
            prompt_cache_key=self.prompt_cache_key,
            prompt_cache_retention=self.prompt_cache_retention,
        )
        update: dict[str, Any] = {
            "temperature": params["temperature"],
            "prompt_cache_key": params["prompt_cache_key"],
            "prompt_cache_retention": params["prompt_cache_retention"],
        }
        if self.reasoning is not None:
            update["reasoning"] = self.reasoning.model_copy(update={"effort": params["reasoning_effort"]})
        return self.model_copy(update=update)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

OpenAIResponseStatus = Literal["completed", "failed", "in_progress", "cancelled", "queued", "incomplete"]


class OutputTextPart(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["output_text"] = "output_text"
    text: str
    annotations: list[Any] = Field(default_factory=list)


class OutputInputTextPart(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["input_text"] = "input_text"
    text: str


class UnknownContentPart(_UnknownVariant):
    pass


OpenAIResponseContentPart = Annotated[
    Union[
        Annotated[OutputTextPart, Tag("output_text")],
        Annotated[OutputInputTextPart, Tag("input_text")],
        Annotated[UnknownContentPart, Tag(UNKNOWN_TAG)],
    ],
    Discriminator(_tag_by_type({"output_text": "output_text", "input_text": "input_text"})),
]


class OpenAIResponseMessageItem(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["message"] = "message"
    id: Optional[str] = None
    status: Optional[str] = None
    role: str = "assistant"
    content: list[OpenAIResponseContentPart] = Field(
        default_factory=list, validation_alias=AliasChoices("content", "text")
    )

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.content if isinstance(p, OutputTextPart))


class OpenAIImageGenerationCallItem(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["image_generation_call"] = "image_generation_call"
    id: Optional[str] = None
    status: Optional[str] = None
    # Imagen codificada en base64.
    result: str
    size: Optional[str] = None
    quality: Optional[str] = None
    background: Optional[str] = None

    def decode_image(self) -> bytes:
        """Decode the base64 result into raw image bytes."""
        return base64.b64decode(self.result, validate=True)


class UnknownOutputItem(_UnknownVariant):
    pass


OpenAIResponseOutputItem = Annotated[
    Union[
        Annotated[OpenAIResponseMessageItem, Tag("message")],
        Annotated[OpenAIImageGenerationCallItem, Tag("image_generation_call")],
        Annotated[UnknownOutputItem, Tag(UNKNOWN_TAG)],
    ],
    Discriminator(_tag_by_type({"message": "message", "image_generation_call": "image_generation_call"})),
]


class OpenAIInputTokensDetails(BaseModel):
    model_config = ConfigDict(extra="allow")
    cached_tokens: int = 0


class OpenAIOutputTokensDetails(BaseModel):
    model_config = ConfigDict(extra="allow")
    reasoning_tokens: int = 0


class OpenAIResponseUsage(BaseModel):
    model_config = ConfigDict(extra="allow")
    input_tokens: int
    input_tokens_details: Optional[OpenAIInputTokensDetails] = None
    output_tokens: int
    output_tokens_details: Optional[OpenAIOutputTokensDetails] = None
    total_tokens: int


class OpenAIResponsesCreateResponse(BaseModel):
    """Objeto `response`, tanto de POST /v1/responses como de los eventos de ciclo de vida."""
    model_config = ConfigDict(extra="allow")

    id: str
    object: str = "response"
    created_at: int
    status: OpenAIResponseStatus
    model: Optional[str] = None
    error: Optional[dict[str, Any]] = None
    incomplete_details: Optional[dict[str, Any]] = None
    output: list[OpenAIResponseOutputItem] = Field(default_factory=list)
    usage: Optional[OpenAIResponseUsage] = None

    instructions: Optional[Any] = None
    max_output_tokens: Optional[int] = None
    parallel_tool_calls: Optional[bool] = None
    previous_response_id: Optional[str] = None
    store: Optional[bool] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    truncation: Optional[str] = None
    tool_choice: Optional[Any] = None
    tools: Optional[list[Any]] = None
    text: Optional[Any] = None
    user: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def output_text(self) -> str:
        """Texto de todos los items `message`, concatenado."""
        return "".join(item.text for item in self.output if isinstance(item, OpenAIResponseMessageItem))

    @property
    def images(self) -> list[OpenAIImageGenerationCallItem]:
        return [item for item in self.output if isinstance(item, OpenAIImageGenerationCallItem)]


# ---------------------------------------------------------------------------
# Streaming: un objeto JSON por cada `data: {...}`, discriminado por `type`
# ---------------------------------------------------------------------------


class OutputTextDeltaEvent(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["response.output_text.delta"] = "response.output_text.delta"
    item_id: str
    sequence_number: int
    output_index: int
    content_index: int
    delta: str


class OutputTextDoneEvent(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["response.output_text.done"] = "response.output_text.done"
    item_id: str
    sequence_number: int
    output_index: int
    content_index: int
    text: str


class ContentPartEvent(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["response.content_part.added", "response.content_part.done"]
    item_id: str
    sequence_number: int
    output_index: int
    content_index: int
    part: OpenAIResponseContentPart


class OutputItemEvent(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["response.output_item.added", "response.output_item.done"]
    sequence_number: int
    output_index: int
    item: OpenAIResponseOutputItem


class ResponseLifecycleEvent(BaseModel):
    """`response.completed` es el evento final: se puede tratar como "stop"."""
    model_config = ConfigDict(extra="allow")
    type: Literal[
        "response.created",
        "response.in_progress",
        "response.completed",
        "response.failed",
        "response.incomplete",
    ]
    sequence_number: int
    response: OpenAIResponsesCreateResponse

    @property
    def is_final(self) -> bool:
        return self.type in ("response.completed", "response.failed", "response.incomplete")


class StreamErrorEvent(BaseModel):
    """Error enviado dentro del stream por el proveedor."""
    model_config = ConfigDict(extra="allow")
    type: Literal["error"] = "error"
    event_id: Optional[str] = None
    sequence_number: Optional[int] = None
    code: Optional[str] = None
    message: Optional[str] = None
    param: Optional[str] = None
    error: Optional[Any] = None


class ImageGenerationPartialImageEvent(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["response.image_generation_call.partial_image"] = "response.image_generation_call.partial_image"
    item_id: str
    sequence_number: int
    output_index: int
    partial_image_index: Optional[int] = None
    # Imagen parcial en base64, para renderizado progresivo.
    partial_image_b64: str = Field(validation_alias=AliasChoices("partial_image_b64", "partial_image"))
    size: Optional[str] = None
    quality: Optional[str] = None
    background: Optional[str] = None

    def decode_image(self) -> bytes:
        return base64.b64decode(self.partial_image_b64, validate=True)


class ImageGenerationStatusEvent(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal[
        "response.image_generation_call.in_progress",
        "response.image_generation_call.generating",
    ]
    item_id: str
    sequence_number: int
    output_index: int


class ImageGenerationCompletedEvent(BaseModel):
    model_config = ConfigDict(extra="allow")
    type: Literal["response.image_generation_call.completed", "response.image_generation_call.complete"]
    item_id: str
    sequence_number: int
    output_index: int
    item: Optional[OpenAIImageGenerationCallItem] = None


class UnknownStreamEvent(_UnknownVariant):
    pass


_STREAM_EVENT_TAGS = {
    "response.output_text.delta": "output_text_delta",
    "response.output_text.done": "output_text_done",
    "response.content_part.added": "content_part",
    "response.content_part.done": "content_part",
    "response.output_item.added": "output_item",
    "response.output_item.done": "output_item",
    "response.created": "lifecycle",
    "response.in_progress": "lifecycle",
    "response.completed": "lifecycle",
    "response.failed": "lifecycle",
    "response.incomplete": "lifecycle",
    "error": "error",
    "response.image_generation_call.partial_image": "image_partial",
    "response.image_generation_call.in_progress": "image_status",
    "response.image_generation_call.generating": "image_status",
    "response.image_generation_call.completed": "image_completed",
    "response.image_generation_call.complete": "image_completed",
}

OpenAIResponsesStreamEvent = Annotated[
    Union[
        Annotated[OutputTextDeltaEvent, Tag("output_text_delta")],
        Annotated[OutputTextDoneEvent, Tag("output_text_done")],
        Annotated[ContentPartEvent, Tag("content_part")],
        Annotated[OutputItemEvent, Tag("output_item")],
        Annotated[ResponseLifecycleEvent, Tag("lifecycle")],
        Annotated[StreamErrorEvent, Tag("error")],
        Annotated[ImageGenerationPartialImageEvent, Tag("image_partial")],
        Annotated[ImageGenerationStatusEvent, Tag("image_status")],
        Annotated[ImageGenerationCompletedEvent, Tag("image_completed")],
        Annotated[UnknownStreamEvent, Tag(UNKNOWN_TAG)],
    ],
    Discriminator(_tag_by_type(_STREAM_EVENT_TAGS)),
]

STREAM_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(OpenAIResponsesStreamEvent)
