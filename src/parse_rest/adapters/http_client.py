"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeout, User-Agent y headers para todas las peticiones del cliente.
- Facilita testeo: se inyecta un `httpx.MockTransport` sin tocar el resto del código.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx

from parse_rest.core.config import ParseSettings
from parse_rest.core.domain.errors import DecodeError, TransportError
from parse_rest.core.interfaces.transport import TransportResponse

logger = logging.getLogger(__name__)


def build_async_client(
    settings: ParseSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que todos los recursos se comporten igual.
    - `transport` permite sustituir la red (p.ej. `httpx.MockTransport` en tests).
    """

    settings = settings or ParseSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


class HttpxTransport:
    """Implementación de `Transport` sobre un `httpx.AsyncClient` compartido."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> TransportResponse:
        try:
            response = await self._client.request(method, url, headers=dict(headers), content=body)
        except httpx.DecodingError as exc:
            # Llegó respuesta pero su content-encoding no se puede decodificar.
            logger.debug("undecodable body %s %s: %s", method, url, type(exc).__name__)
            raise DecodeError(f"{method} {url} returned an undecodable body: {exc}") from exc
        except httpx.RequestError as exc:
            logger.debug("transport failure %s %s: %s", method, url, type(exc).__name__)
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        return TransportResponse(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
