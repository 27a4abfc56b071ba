"""Estado de sesión por cliente (token + usuario actual).

Por qué un snapshot inmutable:
- Los lectores concurrentes leen una única referencia: ven el par (token, usuario)
  completo anterior o el completo nuevo, nunca una mezcla.
- Las mutaciones (login/logout/become) se serializan con un `asyncio.Lock`, pero el
  lock solo protege el intercambio de referencia: nunca se mantiene durante un await
  de red.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from parse_rest.core.domain.models import ParseUser


@dataclass(frozen=True)
class SessionSnapshot:
    token: str | None = None
    user: ParseUser | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None


_EMPTY = SessionSnapshot()


class SessionState:
    """Holder propiedad de un único `ParseClient` (nunca global)."""

    def __init__(self) -> None:
        self._snapshot = _EMPTY
        self._lock = asyncio.Lock()

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def token(self) -> str | None:
        return self._snapshot.token

    @property
    def user(self) -> ParseUser | None:
        return self._snapshot.user

    async def set(self, token: str, user: ParseUser | None) -> SessionSnapshot:
        """Publica un nuevo par (token, usuario) de forma atómica."""

        snapshot = SessionSnapshot(token=token, user=user)
        async with self._lock:
            self._snapshot = snapshot
        return snapshot

    async def clear(self) -> None:
        async with self._lock:
            self._snapshot = _EMPTY

    async def clear_if(self, token: str | None) -> bool:
        """Limpia solo si el token actual sigue siendo `token` (otro login pudo ganar la carrera)."""

        async with self._lock:
            if self._snapshot.token != token:
                return False
            self._snapshot = _EMPTY
            return True


__all__ = ["SessionSnapshot", "SessionState"]
