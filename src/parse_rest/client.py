"""`ParseClient`: raíz de composición.

Por qué aquí y no en un singleton:
- Cada cliente posee su propio `SessionState`; dos clientes en el mismo proceso
  mantienen sesiones independientes (y los tests no comparten estado oculto).
- La configuración se lee una vez al construir; no se recarga.

Uso:
    async with ParseClient(ParseSettings(app_id="myApp", rest_api_key="...")) as client:
        score = ParseObject("GameScore", {"score": 1337})
        await client.objects.save(score)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.http_client import HttpxTransport, build_async_client
from parse_rest.adapters.request_builder import RequestBuilder
from parse_rest.adapters.resources import (
    AnalyticsResource,
    CloudResource,
    ConfigResource,
    FilesResource,
    InstallationsResource,
    ObjectsResource,
    ParseQuery,
    RolesResource,
    SchemasResource,
    SessionsResource,
    UsersResource,
)
from parse_rest.adapters.response_decoder import expect_object
from parse_rest.core.config import ParseSettings
from parse_rest.core.domain.models import ParseUser
from parse_rest.core.interfaces.transport import Transport
from parse_rest.core.services.session_state import SessionState

logger = logging.getLogger(__name__)


class ParseClient:
    def __init__(
        self,
        settings: ParseSettings | None = None,
        *,
        transport: Transport | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Crea el cliente.

        - `transport`: implementación propia del contrato `Transport`.
        - `http_transport`: transporte httpx de bajo nivel (p.ej. `httpx.MockTransport`).
        """

        self._settings = settings or ParseSettings()
        self._session = SessionState()
        builder = RequestBuilder(self._settings, self._session)

        self._owned: HttpxTransport | None = None
        if transport is None:
            self._owned = HttpxTransport(build_async_client(self._settings, transport=http_transport))
            transport = self._owned
        self._api = ParseAPI(builder, transport)

        self.objects = ObjectsResource(self._api)
        self.users = UsersResource(self._api, self.objects, self._session)
        self.sessions = SessionsResource(self._api, self.objects, self._session)
        self.roles = RolesResource(self._api, self.objects)
        self.installations = InstallationsResource(self._api, self.objects)
        self.cloud = CloudResource(self._api)
        self.files = FilesResource(self._api)
        self.schemas = SchemasResource(self._api)
        self.config = ConfigResource(self._api)
        self.analytics = AnalyticsResource(self._api)
        logger.debug("client ready for %s", self._settings.server_url)

    @property
    def settings(self) -> ParseSettings:
        return self._settings

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def session_token(self) -> str | None:
        return self._session.token

    @property
    def current_user(self) -> ParseUser | None:
        return self._session.user

    def query(self, class_name: str) -> ParseQuery:
        return ParseQuery(class_name, api=self._api)

    async def health(self) -> dict[str, Any]:
        """`GET /health` -> `{"status": "ok"}` cuando el servidor está listo."""

        return expect_object(await self._api.get("/health"))

    async def aclose(self) -> None:
        if self._owned is not None:
            await self._owned.aclose()

    async def __aenter__(self) -> "ParseClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
