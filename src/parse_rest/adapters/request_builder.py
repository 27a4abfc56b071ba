"""Construcción de peticiones: URL, query-string, headers de autenticación y cuerpo.

Por qué separado del transporte:
- El orden y la selección de headers es parte del protocolo (bit-exact), no del cliente HTTP.
- Se prueba sin red: `build()` devuelve una `PreparedRequest` inerte.

Orden fijo de headers:
1. `X-Parse-Application-Id` (siempre; sin él -> `ConfigurationError`).
2. Un header privilegiado: master key si la operación lo pide, si no REST key,
   si no JavaScript key (solo los configurados).
3. `X-Parse-Session-Token` si hay sesión.
4. `Content-Type` cuando hay cuerpo.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

from parse_rest.core.config import ParseSettings
from parse_rest.core.domain.errors import ConfigurationError, PreconditionError
from parse_rest.core.domain.models import validate_class_name
from parse_rest.core.services.session_state import SessionState

logger = logging.getLogger(__name__)

APPLICATION_ID_HEADER = "X-Parse-Application-Id"
REST_API_KEY_HEADER = "X-Parse-REST-API-Key"
MASTER_KEY_HEADER = "X-Parse-Master-Key"
JAVASCRIPT_KEY_HEADER = "X-Parse-JavaScript-Key"
SESSION_TOKEN_HEADER = "X-Parse-Session-Token"
JSON_CONTENT_TYPE = "application/json"

_SPECIAL_CLASS_PATHS = {
    "_User": "/users",
    "_Role": "/roles",
    "_Session": "/sessions",
    "_Installation": "/installations",
}


def class_path(class_name: str, object_id: str | None = None) -> str:
    """Ruta REST de una clase (las clases de sistema tienen su propio prefijo)."""

    base = _SPECIAL_CLASS_PATHS.get(class_name)
    if base is None:
        base = f"/classes/{validate_class_name(class_name)}"
    if object_id is None:
        return base
    if not object_id:
        raise PreconditionError("objectId cannot be empty")
    return f"{base}/{quote(object_id, safe='')}"


def path_segment(value: str, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise PreconditionError(f"{what} cannot be empty")
    return quote(value, safe="")


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class PreparedRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


class RequestBuilder:
    """Traduce un descriptor de operación a una `PreparedRequest` con credenciales."""

    def __init__(self, settings: ParseSettings, session: SessionState) -> None:
        if not settings.app_id:
            raise ConfigurationError("An application id is required (PARSE_REST_APP_ID)")
        self._settings = settings
        self._session = session

    @property
    def settings(self) -> ParseSettings:
        return self._settings

    def url_for(self, path: str, params: Mapping[str, str] | None = None) -> str:
        if not path.startswith("/"):
            path = "/" + path
        url = self._settings.server_url + path
        if params:
            url = f"{url}?{urlencode(list(params.items()), quote_via=quote)}"
        return url

    def build(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = UNSET,
        raw_body: bytes | None = None,
        content_type: str | None = None,
        use_master_key: bool = False,
        session_token: str | None = UNSET,
    ) -> PreparedRequest:
        """Construye la petición.

        `session_token` permite forzar un token concreto (p.ej. `become`) o ninguno (`None`);
        por defecto se lee una única vez del `SessionState`.
        """

        if json_body is not UNSET and raw_body is not None:
            raise PreconditionError("A request carries either a JSON body or a raw body, not both")

        settings = self._settings
        headers: dict[str, str] = {APPLICATION_ID_HEADER: settings.app_id}

        if use_master_key:
            if not settings.master_key:
                raise ConfigurationError("This operation requires the master key (PARSE_REST_MASTER_KEY)")
            headers[MASTER_KEY_HEADER] = settings.master_key
        elif settings.rest_api_key:
            headers[REST_API_KEY_HEADER] = settings.rest_api_key
        elif settings.javascript_key:
            headers[JAVASCRIPT_KEY_HEADER] = settings.javascript_key

        token = self._session.token if session_token is UNSET else session_token
        if token:
            headers[SESSION_TOKEN_HEADER] = token

        body: bytes | None = None
        if json_body is not UNSET:
            try:
                text = json.dumps(json_body, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
            except ValueError as exc:
                raise PreconditionError("NaN and Infinity cannot be sent to Parse Server") from exc
            body = text.encode("utf-8")
            headers["Content-Type"] = JSON_CONTENT_TYPE
        elif raw_body is not None:
            body = raw_body
            headers["Content-Type"] = content_type or "application/octet-stream"

        url = self.url_for(path, params)
        logger.debug(
            "prepared %s %s headers=%s body=%d bytes",
            method,
            url,
            list(headers),
            len(body) if body else 0,
        )
        return PreparedRequest(method=method, url=url, headers=headers, body=body)
