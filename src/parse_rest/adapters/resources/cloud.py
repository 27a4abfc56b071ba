"""Recurso: Cloud Code (`/functions/{name}`, `/jobs/{name}`)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import path_segment
from parse_rest.adapters.response_decoder import expect_result_key
from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.models import ParseObject
from parse_rest.core.domain.values import decode_value, encode_value


def _params_body(params: Mapping[str, Any] | None) -> dict[str, Any]:
    if params is None:
        return {}
    if not isinstance(params, Mapping):
        raise PreconditionError("Cloud parameters must be a mapping")
    return encode_value(params)


class CloudResource:
    def __init__(self, api: ParseAPI) -> None:
        self._api = api

    async def run(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        *,
        use_master_key: bool = False,
    ) -> Any:
        """Ejecuta una función y devuelve el valor de `result` ya decodificado."""

        raw = await self._api.post(
            f"/functions/{path_segment(name, 'function name')}",
            _params_body(params),
            use_master_key=use_master_key,
        )
        return decode_value(expect_result_key(raw), object_factory=ParseObject.from_wire)

    async def trigger_job(self, name: str, params: Mapping[str, Any] | None = None) -> None:
        """Encola un job en segundo plano (solo master key)."""

        await self._api.post(
            f"/jobs/{path_segment(name, 'job name')}",
            _params_body(params),
            use_master_key=True,
            allow_empty=True,
        )
