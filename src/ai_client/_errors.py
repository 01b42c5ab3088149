from __future__ import annotations
from dataclasses import dataclass
from typing import Any


class AiError(RuntimeError):
    """Error base de la librería."""


class InvalidModelError(AiError, ValueError):
    """El identificador de modelo no corresponde a ningún modelo conocido."""

    def __init__(self, model: str) -> None:
        super().__init__(f"invalid model: {model!r}")
        self.model = model


class MissingApiKeyError(AiError, ValueError):
    """No se encontró API key ni en argumentos ni en entorno."""


class InvalidApiKeyError(AiError, ValueError):
    """La API key no se puede enviar como valor de header HTTP."""


@dataclass(slots=True)
class AiAPIError(AiError):
    """
    Error HTTP devuelto por un proveedor, con el envelope ya parseado.

    OpenAI:  {"error": {"message", "type", "param", "code"}}
    Gemini:  {"error": {"code": <int>, "message", "status", "details": [...]}}

    Los campos que el body no trae quedan en None.
    """
    status_code: int
    message: str
    body: str | None = None

    error_code: str | None = None
    error_type: str | None = None
    param: str | None = None
    status: str | None = None
    details: Any | None = None

    def __str__(self) -> str:
        extra = "".join(
            f", {label}={value!r}"
            for label, value in (("code", self.error_code), ("status", self.status))
            if value
        )
        size = f", body={len(self.body)} chars" if self.body else ""
        return f"AiAPIError(status_code={self.status_code}{extra}, message={self.message!r}{size})"

    def __repr__(self) -> str:
        # El body puede ser enorme; se omite del repr.
        shown = {k: v for k, v in self.to_dict().items() if k != "body"}
        inner = ", ".join(f"{k}={v!r}" for k, v in shown.items())
        return f"AiAPIError({inner}, body={'...' if self.body else None})"

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    @property
    def is_auth_error(self) -> bool:
        """401 (key inválida) o 403 (sin permiso para el modelo/proyecto)."""
        return self.status_code in (401, 403)

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429


class StreamError(AiError):
    """
    Error surfaced as an item of an event stream instead of being raised.

    `terminal` tells whether the stream closes right after yielding it.
    """

    terminal: bool = True

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.__cause__ = cause


class StreamTransportError(StreamError):
    """The transport failed while reading the response body."""


class StreamEncodingError(StreamError):
    """The response body contained bytes that are not valid UTF-8."""


class StreamDecodeError(StreamError):
    """A `data:` payload did not match the expected event schema."""

    terminal = False

    def __init__(self, message: str, *, payload: str, cause: BaseException | None = None) -> None:
        super().__init__(message, cause=cause)
        self.payload = payload

    def __repr__(self) -> str:
        return f"StreamDecodeError(message={self.message!r}, payload={self.payload!r})"
