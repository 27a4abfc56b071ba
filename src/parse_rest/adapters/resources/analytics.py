"""Recurso: eventos de analítica (`/events/{name}`)."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import path_segment
from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.values import encode_date


class AnalyticsResource:
    def __init__(self, api: ParseAPI) -> None:
        self._api = api

    async def track_event(
        self,
        name: str,
        dimensions: Mapping[str, str] | None = None,
        *,
        at: datetime | None = None,
    ) -> None:
        """Registra un evento; las dimensiones son pares texto -> texto."""

        body: dict[str, Any] = {}
        if dimensions:
            for key, value in dimensions.items():
                if not isinstance(key, str) or not isinstance(value, str):
                    raise PreconditionError("Event dimensions must map strings to strings")
            body["dimensions"] = dict(dimensions)
        if at is not None:
            body["at"] = encode_date(at)
        await self._api.post(f"/events/{path_segment(name, 'event name')}", body, allow_empty=True)

    async def app_opened(self, *, at: datetime | None = None) -> None:
        await self.track_event("AppOpened", at=at)
