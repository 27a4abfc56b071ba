"""Canal REST: builder -> transporte -> decoder.

Todos los módulos de recursos pasan por aquí; es el único punto que hace I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from parse_rest.adapters.request_builder import UNSET, RequestBuilder
from parse_rest.adapters.response_decoder import decode_response
from parse_rest.core.interfaces.transport import Transport

logger = logging.getLogger(__name__)


class ParseAPI:
    def __init__(self, builder: RequestBuilder, transport: Transport) -> None:
        self._builder = builder
        self._transport = transport

    @property
    def builder(self) -> RequestBuilder:
        return self._builder

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        body: Any = UNSET,
        raw_body: bytes | None = None,
        content_type: str | None = None,
        use_master_key: bool = False,
        session_token: str | None = UNSET,
        allow_empty: bool = False,
    ) -> Any:
        prepared = self._builder.build(
            method,
            path,
            params=params,
            json_body=body,
            raw_body=raw_body,
            content_type=content_type,
            use_master_key=use_master_key,
            session_token=session_token,
        )
        response = await self._transport.send(prepared.method, prepared.url, prepared.headers, prepared.body)
        logger.debug("%s %s -> HTTP %s (%d bytes)", method, path, response.status, len(response.body))
        return decode_response(response, allow_empty=allow_empty)

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = UNSET, **kwargs: Any) -> Any:
        return await self.request("POST", path, body=body, **kwargs)

    async def put(self, path: str, body: Any = UNSET, **kwargs: Any) -> Any:
        return await self.request("PUT", path, body=body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        kwargs.setdefault("allow_empty", True)
        return await self.request("DELETE", path, **kwargs)
