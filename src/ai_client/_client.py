from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Iterator, Mapping, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from ai_client._errors import AiAPIError
from ai_client._sse import AsyncEventStream, EventStream

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT = "ai_client/0.1.2"
HTTP_DEBUG_ENV = "AI_CLIENT_HTTP_DEBUG"

_SECRET_HEADERS = frozenset({"authorization", "x-goog-api-key"})


def _redacted(headers: Mapping[str, str]) -> dict[str, str]:
    return {k: "***REDACTED***" if k.lower() in _SECRET_HEADERS else v for k, v in headers.items()}


@dataclass(frozen=True, slots=True)
class HttpConfig:
    base_url: str
    timeout_s: float | None = 120.0


def _lf_line_endings(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """
    Rewrite CRLF line endings to LF while the body streams in.

    A trailing CR is held back until the next chunk shows whether it starts a
    CRLF pair, so a pair split across two reads is still rewritten.
    """
    held = b""
    for chunk in chunks:
        data = held + chunk
        held = b""
        if data.endswith(b"\r"):
            data, held = data[:-1], b"\r"
        if data:
            yield data.replace(b"\r\n", b"\n")
    if held:
        yield held


async def _alf_line_endings(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    held = b""
    async for chunk in chunks:
        data = held + chunk
        held = b""
        if data.endswith(b"\r"):
            data, held = data[:-1], b"\r"
        if data:
            yield data.replace(b"\r\n", b"\n")
    if held:
        yield held


def _str_field(obj: Mapping[str, Any], key: str) -> str | None:
    value = obj.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_error_response(
    status_code: int,
    body_text: str,
    content_type: str,
) -> AiAPIError:
    """
    Parsea una respuesta de error de OpenAI o Gemini.

    Si el body no es JSON o no matchea el envelope esperado,
    retorna AiAPIError con campos estructurados en None.
    """
    fallback = body_text if body_text.strip() else "HTTP error"

    if "application/json" not in content_type.lower():
        return AiAPIError(status_code=status_code, message=fallback, body=body_text)
    try:
        data = json.loads(body_text) if body_text else {}
    except ValueError:
        return AiAPIError(status_code=status_code, message=fallback, body=body_text)

    # Gemini a veces devuelve una lista con un único envelope
    if isinstance(data, list) and len(data) == 1:
        data = data[0]
    if not isinstance(data, dict):
        return AiAPIError(status_code=status_code, message=str(data) if data else "HTTP error", body=body_text)

    error_obj = data.get("error")
    if isinstance(error_obj, str) and error_obj.strip():
        return AiAPIError(status_code=status_code, message=error_obj.strip(), body=body_text)
    if not isinstance(error_obj, dict):
        return AiAPIError(status_code=status_code, message=_str_field(data, "message") or "HTTP error", body=body_text)

    return AiAPIError(
        status_code=status_code,
        message=_str_field(error_obj, "message") or "HTTP error",
        body=body_text,
        # OpenAI: code es string; Gemini: code es el status HTTP numérico y se ignora
        error_code=_str_field(error_obj, "code"),
        error_type=_str_field(error_obj, "type"),
        param=_str_field(error_obj, "param"),
        status=_str_field(error_obj, "status"),
        details=error_obj.get("details"),
    )


def dump_request(request: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    """Serializa un request pydantic al JSON que espera el proveedor."""
    if isinstance(request, BaseModel):
        return request.model_dump(mode="json", by_alias=True, exclude_none=True)
    return dict(request)


def parse_response(response: httpx.Response, response_type: type[T] | TypeAdapter[T] | Any) -> T:
    """
    Valida el body de una respuesta 2xx contra el tipo esperado.

    Un body que no matchea el schema se reporta como AiAPIError con el status
    original, y se loguea el body completo para diagnóstico.
    """
    adapter = response_type if isinstance(response_type, TypeAdapter) else TypeAdapter(response_type)
    text = response.text
    try:
        return adapter.validate_json(text)
    except ValidationError as e:
        logger.error("failed to parse response body: %s", e)
        logger.error("response body: %s", text)
        raise AiAPIError(
            status_code=response.status_code,
            message="unrecognised API response",
            body=text,
        ) from e


class AiHttpClient:
    """
    Wrapper HTTPX ligero con:
    - JSON requests
    - Streaming SSE via httpx send(stream=True), entregado como EventStream
    - Debug logging opcional
    """

    def __init__(self, *, config: HttpConfig, auth_headers: Mapping[str, str]) -> None:
        self._config = config
        self._auth_headers = dict(auth_headers)
        self._debug_http = os.getenv(HTTP_DEBUG_ENV, "").lower() in {"1", "true", "yes", "on"}

        def log_request(request: httpx.Request) -> None:
            if not self._debug_http:
                return
            logging.warning("HTTPX REQUEST %s %s", request.method, request.url)
            logging.warning("HTTPX REQUEST headers=%s", _redacted(request.headers))
            body = request.content
            if not body:
                return
            try:
                logging.warning("HTTPX REQUEST body=%s", body.decode("utf-8"))
            except UnicodeDecodeError:
                logging.warning("HTTPX REQUEST body=(binary) len=%s", len(body))

        def log_response_head(response: httpx.Response) -> bool:
            """Loguea status y headers; True si el body se puede leer sin consumir un stream SSE."""
            req = response.request
            logging.warning("HTTPX RESPONSE %s %s -> %s", req.method, req.url, response.status_code)
            logging.warning("HTTPX RESPONSE headers=%s", _redacted(response.headers))
            if "text/event-stream" in response.headers.get("content-type", ""):
                logging.warning("HTTPX RESPONSE body=(event-stream; not auto-logged)")
                return False
            return True

        def log_response(response: httpx.Response) -> None:
            if not self._debug_http or not log_response_head(response):
                return
            try:
                response.read()
            except httpx.HTTPError as e:
                logging.warning("HTTPX RESPONSE body=(unreadable) err=%r", e)
                return
            logging.warning("HTTPX RESPONSE body=%s", response.text)

        async def alog_request(request: httpx.Request) -> None:
            log_request(request)

        async def alog_response(response: httpx.Response) -> None:
            if not self._debug_http or not log_response_head(response):
                return
            try:
                await response.aread()
            except httpx.HTTPError as e:
                logging.warning("HTTPX RESPONSE body=(unreadable) err=%r", e)
                return
            logging.warning("HTTPX RESPONSE body=%s", response.text)

        timeout = httpx.Timeout(config.timeout_s)
        self._client = httpx.Client(
            timeout=timeout,
            event_hooks={"request": [log_request], "response": [log_response]},
        )
        self._aclient = httpx.AsyncClient(
            timeout=timeout,
            event_hooks={"request": [alog_request], "response": [alog_response]},
        )

    def close(self) -> None:
        self._client.close()

    async def aclose(self) -> None:
        await self._aclient.aclose()

    def _url(self, path: str) -> str:
        return f"{self._config.base_url}{path}"

    def _headers(self, *, accept: str | None = None) -> dict[str, str]:
        headers: dict[str, str] = dict(self._auth_headers)
        headers["User-Agent"] = USER_AGENT
        if accept:
            headers["Accept"] = accept
        return headers

    @staticmethod
    def raise_for_status(resp: httpx.Response) -> None:
        """Verifica status y levanta AiAPIError estructurado."""
        if 200 <= resp.status_code < 300:
            return

        try:
            body_text = resp.text
        except (httpx.ResponseNotRead, UnicodeDecodeError, LookupError):
            body_text = ""

        raise _parse_error_response(
            status_code=resp.status_code,
            body_text=body_text,
            content_type=resp.headers.get("content-type", ""),
        )

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        resp = self._client.get(self._url(path), headers=self._headers(), params=params)
        self.raise_for_status(resp)
        return resp

    async def aget(self, path: str, *, params: dict[str, Any] | None = None) -> httpx.Response:
        resp = await self._aclient.get(self._url(path), headers=self._headers(), params=params)
        self.raise_for_status(resp)
        return resp

    def post_json(self, path: str, payload: dict[str, Any], *, params: dict[str, Any] | None = None) -> httpx.Response:
        headers = self._headers()
        headers["Content-Type"] = "application/json"
        resp = self._client.post(self._url(path), headers=headers, json=payload, params=params)
        self.raise_for_status(resp)
        return resp

    async def apost_json(
        self, path: str, payload: dict[str, Any], *, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        headers = self._headers()
        headers["Content-Type"] = "application/json"
        resp = await self._aclient.post(self._url(path), headers=headers, json=payload, params=params)
        self.raise_for_status(resp)
        return resp

    def open_stream(self, path: str, payload: dict[str, Any], *, params: dict[str, Any] | None = None) -> httpx.Response:
        """
        Envía un POST y retorna la respuesta con el body todavía abierto.

        En error HTTP se lee el body, se cierra la conexión y se levanta
        AiAPIError; en éxito quien llama es dueño de la respuesta y debe cerrarla.
        """
        headers = self._headers(accept="text/event-stream")
        headers["Content-Type"] = "application/json"
        request = self._client.build_request("POST", self._url(path), headers=headers, json=payload, params=params)
        resp = self._client.send(request, stream=True)
        if not 200 <= resp.status_code < 300:
            try:
                resp.read()
            finally:
                resp.close()
            self.raise_for_status(resp)
        return resp

    async def aopen_stream(
        self, path: str, payload: dict[str, Any], *, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        headers = self._headers(accept="text/event-stream")
        headers["Content-Type"] = "application/json"
        request = self._aclient.build_request("POST", self._url(path), headers=headers, json=payload, params=params)
        resp = await self._aclient.send(request, stream=True)
        if not 200 <= resp.status_code < 300:
            try:
                await resp.aread()
            finally:
                await resp.aclose()
            self.raise_for_status(resp)
        return resp

    # --------- Typed helpers used by the provider clients ---------

    def get_as(self, path: str, response_type: Any, *, params: dict[str, Any] | None = None) -> Any:
        return parse_response(self.get(path, params=params), response_type)

    async def aget_as(self, path: str, response_type: Any, *, params: dict[str, Any] | None = None) -> Any:
        return parse_response(await self.aget(path, params=params), response_type)

    def post_as(
        self,
        path: str,
        request: BaseModel | Mapping[str, Any],
        response_type: Any,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return parse_response(self.post_json(path, dump_request(request), params=params), response_type)

    async def apost_as(
        self,
        path: str,
        request: BaseModel | Mapping[str, Any],
        response_type: Any,
        *,
        params: dict[str, Any] | None = None,
    ) -> Any:
        resp = await self.apost_json(path, dump_request(request), params=params)
        return parse_response(resp, response_type)

    def stream_events(
        self,
        path: str,
        request: BaseModel | Mapping[str, Any],
        event_type: Any,
        *,
        params: dict[str, Any] | None = None,
        crlf: bool = False,
    ) -> EventStream[Any]:
        """
        Abre un stream SSE y lo entrega como EventStream tipado.

        Con `crlf=True` los finales de línea CRLF se reescriben a LF antes del
        parser, para proveedores que delimitan los eventos con `\\r\\n\\r\\n`.
        """
        resp = self.open_stream(path, dump_request(request), params=params)
        chunks: Iterable[bytes] = resp.iter_bytes()
        if crlf:
            chunks = _lf_line_endings(chunks)
        return EventStream(chunks, event_type, on_close=resp.close)

    async def astream_events(
        self,
        path: str,
        request: BaseModel | Mapping[str, Any],
        event_type: Any,
        *,
        params: dict[str, Any] | None = None,
        crlf: bool = False,
    ) -> AsyncEventStream[Any]:
        resp = await self.aopen_stream(path, dump_request(request), params=params)
        chunks: AsyncIterable[bytes] = resp.aiter_bytes()
        if crlf:
            chunks = _alf_line_endings(chunks)
        return AsyncEventStream(chunks, event_type, on_close=resp.aclose)
