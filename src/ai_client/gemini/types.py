from __future__ import annotations

import base64
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from ai_client.gemini.model import GeminiModel, ModelInfo

# ---------------------------------------------------------------------------
# Contenido: la API usa camelCase; los campos Python se llaman en snake_case
# ---------------------------------------------------------------------------

Role = Literal["user", "model"]


class Blob(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    mime_type: str = Field(alias="mimeType")
    # Datos codificados en base64.
    data: str

    def decode(self) -> bytes:
        return base64.b64decode(self.data, validate=True)


class Part(BaseModel):
    """Una parte de contenido: texto o datos binarios inline (exactamente uno)."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    text: Optional[str] = None
    inline_data: Optional[Blob] = Field(default=None, alias="inlineData")

    @model_validator(mode="after")
    def _exactly_one_kind(self) -> Part:
        if self.text is not None and self.inline_data is not None:
            raise ValueError("Part must hold either text or inlineData, not both")
        return self

    @classmethod
    def from_text(cls, text: str) -> Part:
        return cls(text=text)

    @classmethod
    def from_bytes(cls, mime_type: str, data: bytes) -> Part:
        return cls(inline_data=Blob(mime_type=mime_type, data=base64.b64encode(data).decode("ascii")))


class Content(BaseModel):
    model_config = ConfigDict(extra="allow")
    parts: list[Part] = Field(default_factory=list)
    role: Optional[Role] = None

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts if p.text is not None)


HarmCategory = Literal[
    "HARM_CATEGORY_UNSPECIFIED",
    "HARM_CATEGORY_DEROGATORY",
    "HARM_CATEGORY_TOXICITY",
    "HARM_CATEGORY_VIOLENCE",
    "HARM_CATEGORY_SEXUAL",
    "HARM_CATEGORY_MEDICAL",
    "HARM_CATEGORY_DANGEROUS",
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]

HarmBlockThreshold = Literal[
    "HARM_BLOCK_THRESHOLD_UNSPECIFIED",
    "BLOCK_LOW_AND_ABOVE",
    "BLOCK_MEDIUM_AND_ABOVE",
    "BLOCK_ONLY_HIGH",
    "BLOCK_NONE",
]


class SafetySetting(BaseModel):
    model_config = ConfigDict(extra="forbid")
    category: HarmCategory
    threshold: HarmBlockThreshold


class GenerationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    stop_sequences: Optional[list[str]] = Field(default=None, alias="stopSequences")
    candidate_count: Optional[int] = Field(default=None, ge=1, alias="candidateCount")
    max_output_tokens: Optional[int] = Field(default=None, ge=1, alias="maxOutputTokens")
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    top_p: Optional[float] = Field(default=None, ge=0, le=1, alias="topP")
    top_k: Optional[int] = Field(default=None, ge=1, alias="topK")
    # ["TEXT", "IMAGE"] para los modelos de imagen.
    response_modalities: Optional[list[str]] = Field(default=None, alias="responseModalities")


class GenerateContentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    contents: list[Content]
    safety_settings: Optional[list[SafetySetting]] = Field(default=None, alias="safetySettings")
    generation_config: Optional[GenerationConfig] = Field(default=None, alias="generationConfig")

    @field_validator("safety_settings")
    @classmethod
    def _one_setting_per_category(cls, value: Optional[list[SafetySetting]]) -> Optional[list[SafetySetting]]:
        if value is None:
            return value
        seen: set[str] = set()
        for setting in value:
            if setting.category in seen:
                raise ValueError(f"duplicate safety setting for {setting.category}")
            seen.add(setting.category)
        return value


class CountTokensGenerateContentRequest(GenerateContentRequest):
    """
    Variante de GenerateContentRequest para countTokens: incluye el modelo,
    serializado como `models/<id>`.
    """
    model: GeminiModel = Field(default_factory=GeminiModel.default)

    @field_serializer("model")
    def _serialize_model(self, model: GeminiModel) -> str:
        return model.resource_name


class CountTokensRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    contents: Optional[list[Content]] = None
    generate_content_request: Optional[CountTokensGenerateContentRequest] = Field(
        default=None, alias="generateContentRequest"
    )


class CountTokensResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    total_tokens: int = Field(default=0, alias="totalTokens")


# ---------------------------------------------------------------------------
# Respuesta de generateContent / streamGenerateContent
# ---------------------------------------------------------------------------


class Candidate(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    content: Optional[Content] = None
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")
    index: Optional[int] = None
    safety_ratings: list[dict[str, Any]] = Field(default_factory=list, alias="safetyRatings")


class UsageMetadata(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    prompt_token_count: Optional[int] = Field(default=None, alias="promptTokenCount")
    candidates_token_count: Optional[int] = Field(default=None, alias="candidatesTokenCount")
    total_token_count: Optional[int] = Field(default=None, alias="totalTokenCount")


class GenerateContentResponse(BaseModel):
    """Respuesta completa, o un fragmento cuando viene del streaming."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    candidates: list[Candidate] = Field(default_factory=list)
    prompt_feedback: Optional[dict[str, Any]] = Field(default=None, alias="promptFeedback")
    usage_metadata: Optional[UsageMetadata] = Field(default=None, alias="usageMetadata")
    model_version: Optional[str] = Field(default=None, alias="modelVersion")
    response_id: Optional[str] = Field(default=None, alias="responseId")

    @property
    def text(self) -> str:
        """Texto del primer candidato, o string vacío."""
        if not self.candidates or self.candidates[0].content is None:
            return ""
        return self.candidates[0].content.text

    @property
    def inline_data(self) -> list[Blob]:
        """Blobs inline (p.ej. imágenes generadas) del primer candidato."""
        if not self.candidates or self.candidates[0].content is None:
            return []
        return [p.inline_data for p in self.candidates[0].content.parts if p.inline_data is not None]


# ---------------------------------------------------------------------------
# Listado de modelos
# ---------------------------------------------------------------------------


class ModelsListRequest(BaseModel):
    """Query params de GET /v1/models."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)
    page_token: Optional[str] = Field(default=None, alias="pageToken")
    page_size: Optional[int] = Field(default=None, ge=1, alias="pageSize")

    def to_query(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ModelsListResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    models: list[ModelInfo] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")
