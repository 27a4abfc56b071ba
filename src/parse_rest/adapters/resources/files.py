"""Recurso: archivos (`/files/{name}`).

La subida es un POST con cuerpo binario y el content-type propio del archivo; el
servidor devuelve el nombre definitivo (con prefijo único) y la URL pública.
"""

from __future__ import annotations

import logging
import mimetypes

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import path_segment
from parse_rest.adapters.response_decoder import expect_object
from parse_rest.core.domain.errors import DecodeError, PreconditionError
from parse_rest.core.domain.values import FileRef

logger = logging.getLogger(__name__)


def guess_content_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


class FilesResource:
    def __init__(self, api: ParseAPI) -> None:
        self._api = api

    async def upload(
        self,
        name: str,
        data: bytes,
        content_type: str | None = None,
        *,
        use_master_key: bool = False,
    ) -> FileRef:
        if not isinstance(data, (bytes, bytearray)):
            raise PreconditionError("File data must be bytes")
        raw = await self._api.post(
            f"/files/{path_segment(name, 'file name')}",
            raw_body=bytes(data),
            content_type=content_type or guess_content_type(name),
            use_master_key=use_master_key,
        )
        body = expect_object(raw)
        stored, url = body.get("name"), body.get("url")
        if not isinstance(stored, str) or not isinstance(url, str):
            raise DecodeError("File upload response must contain 'name' and 'url'")
        logger.debug("uploaded file %s (%d bytes)", stored, len(data))
        return FileRef(name=stored, url=url)

    async def delete(self, file: FileRef | str) -> None:
        """Borra un archivo por su nombre definitivo (solo master key)."""

        name = file.name if isinstance(file, FileRef) else file
        await self._api.delete(f"/files/{path_segment(name, 'file name')}", use_master_key=True)
