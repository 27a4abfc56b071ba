"""Clasificación de respuestas del servidor.

Orden de detección (el orden importa):
1. Fallo de red -> `TransportError` (lo lanza el transporte, nunca llega aquí).
2. Cuerpo que no es JSON -> `DecodeError` (un cuerpo vacío solo es válido en 2xx
   cuando la operación lo admite, o con 204).
3. Sobre `{"code": int, "error": str}` -> `ParseCodeError`, aunque el status sea 200.
4. Status no-2xx sin sobre reconocible -> `HttpStatusError`.

Mirar el sobre antes que el status evita clasificar mal errores propios de Parse
(p.ej. borrar el esquema de una clase no vacía devuelve el código 255).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from parse_rest.core.domain.errors import DecodeError, HttpStatusError, ParseCodeError
from parse_rest.core.interfaces.transport import TransportResponse

logger = logging.getLogger(__name__)


def _is_success(status: int) -> bool:
    return 200 <= status < 300


def parse_error_envelope(payload: Any) -> tuple[int, str] | None:
    if not isinstance(payload, Mapping):
        return None
    code = payload.get("code")
    error = payload.get("error")
    if isinstance(code, int) and not isinstance(code, bool) and isinstance(error, str):
        return code, error
    return None


def decode_response(response: TransportResponse, *, allow_empty: bool = False) -> Any:
    """Devuelve el JSON decodificado de una respuesta exitosa o lanza el error clasificado."""

    status = response.status
    text = response.body.strip() if response.body else b""

    if not text:
        if _is_success(status) and (allow_empty or status == 204):
            return None
        if _is_success(status):
            raise DecodeError(f"Empty response body (HTTP {status})")
        logger.warning("HTTP %s with empty body", status)
        raise HttpStatusError(status)

    try:
        payload = json.loads(text.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError(f"Response body is not valid JSON (HTTP {status})") from exc

    envelope = parse_error_envelope(payload)
    if envelope is not None:
        code, message = envelope
        logger.warning("Parse error code=%s status=%s", code, status)
        raise ParseCodeError(code, message, status=status)

    if not _is_success(status):
        logger.warning("HTTP %s without a Parse error envelope", status)
        message = None
        if isinstance(payload, Mapping) and isinstance(payload.get("error"), str):
            message = f"HTTP {status}: {payload['error']}"
        raise HttpStatusError(status, message)

    return payload


# Forma esperada ---------------------------------------------------------------


def expect_object(payload: Any, what: str = "response") -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise DecodeError(f"Expected {what} to be a JSON object, got {type(payload).__name__}")
    return payload


def expect_list(payload: Any, what: str = "response") -> list[Any]:
    if not isinstance(payload, list):
        raise DecodeError(f"Expected {what} to be a JSON array, got {type(payload).__name__}")
    return payload


def expect_results(payload: Any) -> list[dict[str, Any]]:
    """`{"results": [...]}` de find/list; cada elemento debe ser un objeto."""

    body = expect_object(payload)
    if "results" not in body:
        raise DecodeError("Expected a 'results' key in the response")
    results = expect_list(body["results"], "results")
    for item in results:
        expect_object(item, "each result")
    return results


def expect_count(payload: Any) -> int:
    body = expect_object(payload)
    count = body.get("count")
    if isinstance(count, bool) or not isinstance(count, int):
        raise DecodeError(f"Expected an integer 'count', got {type(count).__name__}")
    return count


def expect_result_key(payload: Any) -> Any:
    """Sobre `{"result": ...}` de Cloud Code.

    Una función que no devuelve nada produce `{}` en el cable: se lee como `None`.
    """

    return expect_object(payload).get("result")


__all__ = [
    "decode_response",
    "expect_count",
    "expect_list",
    "expect_object",
    "expect_result_key",
    "expect_results",
    "parse_error_envelope",
]
