"""Recurso: configuración del servidor (`/config`)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.response_decoder import expect_object
from parse_rest.core.domain.errors import DecodeError, PreconditionError
from parse_rest.core.domain.models import ParseObject
from parse_rest.core.domain.schema import ServerConfig
from parse_rest.core.domain.values import decode_value, encode_value


class ConfigResource:
    def __init__(self, api: ParseAPI) -> None:
        self._api = api

    async def get(self, *, use_master_key: bool = False) -> ServerConfig:
        body = expect_object(await self._api.get("/config", use_master_key=use_master_key))
        params = body.get("params", {})
        if not isinstance(params, dict):
            raise DecodeError("Config 'params' must be an object")
        master_only = body.get("masterKeyOnly") or {}
        if not isinstance(master_only, dict):
            raise DecodeError("Config 'masterKeyOnly' must be an object")
        return ServerConfig(
            params=decode_value(params, object_factory=ParseObject.from_wire),
            master_key_only={str(k): bool(v) for k, v in master_only.items()},
        )

    async def update(self, params: Mapping[str, Any]) -> bool:
        """Actualiza parámetros (solo master key); devuelve el `result` del servidor."""

        if not params:
            raise PreconditionError("There are no config params to update")
        body = expect_object(
            await self._api.put("/config", {"params": encode_value(params)}, use_master_key=True)
        )
        return bool(body.get("result", False))
