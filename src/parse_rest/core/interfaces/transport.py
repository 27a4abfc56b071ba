"""Contrato del transporte HTTP.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El Core solo asume "petición HTTP(S) entra, respuesta o error sale": nada de
  keep-alive, pooling ni TLS. Cualquier implementación (httpx, un fake en tests)
  es intercambiable.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class TransportResponse:
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


@runtime_checkable
class Transport(Protocol):
    """Contrato mínimo del transporte.

    Reglas de diseño:
    - `send` es asíncrono porque hace I/O.
    - Un fallo de red antes de recibir respuesta se lanza como `TransportError`;
      cualquier respuesta (incluso 5xx) se devuelve sin interpretar.
    - No reintenta.
    """

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> TransportResponse:
        ...
