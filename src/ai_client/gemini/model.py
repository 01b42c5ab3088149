from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ai_client._errors import InvalidModelError

MODEL_PREFIX = "models/"

# Nombres versionados o preview que resuelven al mismo modelo
_ALIASES = {
    "gemini-2.0-flash-001": "gemini-2.0-flash",
    "gemini-2.5-flash-preview-05-20": "gemini-2.5-flash",
}


class GeminiModel(str, Enum):
    GEMINI_1_0_PRO = "gemini-1.0-pro"
    GEMINI_1_0_PRO_LATEST = "gemini-1.0-pro-latest"
    GEMINI_1_0_PRO_VISION_LATEST = "gemini-1.0-pro-vision-latest"
    GEMINI_1_5_PRO = "gemini-1.5-pro"
    GEMINI_1_5_FLASH = "gemini-1.5-flash"
    GEMINI_2_0_FLASH = "gemini-2.0-flash"
    GEMINI_2_0_FLASH_LITE = "gemini-2.0-flash-lite"
    GEMINI_2_5_FLASH = "gemini-2.5-flash"
    GEMINI_2_5_FLASH_LITE = "gemini-2.5-flash-lite"
    # Nano Banana: generación de imágenes rápida
    GEMINI_2_5_FLASH_IMAGE = "gemini-2.5-flash-image"
    # Nano Banana Pro
    GEMINI_3_PRO_IMAGE = "gemini-3-pro-image-preview"
    IMAGEN_4 = "imagen-4.0-generate-001"
    IMAGEN_4_FAST = "imagen-4.0-fast-generate-001"

    @classmethod
    def _missing_(cls, value: object) -> Optional[GeminiModel]:
        if not isinstance(value, str):
            return None
        name = value[len(MODEL_PREFIX):] if value.startswith(MODEL_PREFIX) else value
        name = _ALIASES.get(name, name)
        for member in cls:
            if member.value == name:
                return member
        return None

    @classmethod
    def default(cls) -> GeminiModel:
        return cls.GEMINI_2_0_FLASH_LITE

    @classmethod
    def parse(cls, name: str) -> GeminiModel:
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
    def resource_name(self) -> str:
        """Nombre de recurso usado en rutas y en el campo `model`: models/<id>."""
        return f"{MODEL_PREFIX}{self.value}"

    @property
    def capabilities(self) -> GeminiCapabilities:
        return MODEL_CAPABILITIES[self]

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class GeminiCapabilities:
    image_generation: bool
    image_input: bool


_TEXT_ONLY = GeminiCapabilities(image_generation=False, image_input=False)
_MULTIMODAL = GeminiCapabilities(image_generation=False, image_input=True)
_IMAGE_MODEL = GeminiCapabilities(image_generation=True, image_input=True)

MODEL_CAPABILITIES: dict[GeminiModel, GeminiCapabilities] = {
    GeminiModel.GEMINI_1_0_PRO: _TEXT_ONLY,
    GeminiModel.GEMINI_1_0_PRO_LATEST: _TEXT_ONLY,
    GeminiModel.GEMINI_1_0_PRO_VISION_LATEST: _MULTIMODAL,
    GeminiModel.GEMINI_1_5_PRO: _MULTIMODAL,
    GeminiModel.GEMINI_1_5_FLASH: _MULTIMODAL,
    GeminiModel.GEMINI_2_0_FLASH: _MULTIMODAL,
    GeminiModel.GEMINI_2_0_FLASH_LITE: _MULTIMODAL,
    GeminiModel.GEMINI_2_5_FLASH: _MULTIMODAL,
    GeminiModel.GEMINI_2_5_FLASH_LITE: _MULTIMODAL,
    GeminiModel.GEMINI_2_5_FLASH_IMAGE: _IMAGE_MODEL,
    GeminiModel.GEMINI_3_PRO_IMAGE: _IMAGE_MODEL,
    # Imagen genera imágenes a partir de texto; no acepta imágenes de entrada.
    GeminiModel.IMAGEN_4: GeminiCapabilities(image_generation=True, image_input=False),
    GeminiModel.IMAGEN_4_FAST: GeminiCapabilities(image_generation=True, image_input=False),
}


GenerationMethod = Literal[
    "generateContent",
    "countTokens",
    "createCachedContent",
    "createTunedModel",
    "embedContent",
]


class ModelInfo(BaseModel):
    """Entrada de GET /v1/models y GET /v1/models/{model}."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    base_model_id: Optional[str] = Field(default=None, alias="baseModelId")
    version: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    input_token_limit: Optional[int] = Field(default=None, alias="inputTokenLimit")
    output_token_limit: Optional[int] = Field(default=None, alias="outputTokenLimit")
    # Strings en lugar de GenerationMethod: la API agrega métodos nuevos con frecuencia.
    supported_generation_methods: list[str] = Field(default_factory=list, alias="supportedGenerationMethods")
    # Rango 0.0 a 2.0; valores altos dan respuestas más creativas.
    temperature: Optional[float] = None
    max_temperature: Optional[float] = Field(default=None, alias="maxTemperature")
    top_p: Optional[float] = Field(default=None, alias="topP")
    top_k: Optional[int] = Field(default=None, alias="topK")

    def supports(self, method: GenerationMethod | str) -> bool:
        return method in self.supported_generation_methods

    def known_model(self) -> Optional[GeminiModel]:
        """El GeminiModel correspondiente, o None si la librería no lo conoce."""
        try:
            return GeminiModel(self.name)
        except ValueError:
            return None
