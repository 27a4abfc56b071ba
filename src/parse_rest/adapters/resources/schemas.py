"""Recurso: esquemas (`/schemas[/{className}]`), siempre con master key.

Borrar el esquema de una clase con filas devuelve el sobre de error 255
(`ParseCodeError`), nunca un `HttpStatusError` genérico.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import path_segment
from parse_rest.adapters.response_decoder import expect_object, expect_results
from parse_rest.core.domain.errors import DecodeError, PreconditionError
from parse_rest.core.domain.models import validate_class_name
from parse_rest.core.domain.schema import FieldSchema, ParseSchema
from parse_rest.core.domain.values import FieldOp

logger = logging.getLogger(__name__)

FieldChange = FieldSchema | FieldOp


def _to_schema(raw: Any) -> ParseSchema:
    try:
        return ParseSchema.model_validate(expect_object(raw, "schema"))
    except ValidationError as exc:
        raise DecodeError(f"Unexpected schema shape: {exc.error_count()} validation error(s)") from exc


def _field_changes(fields: Mapping[str, FieldChange]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name, change in fields.items():
        if isinstance(change, FieldSchema):
            out[name] = change.to_wire()
        elif isinstance(change, FieldOp):
            # Solo `Delete` tiene sentido sobre un campo del esquema.
            out[name] = change.to_wire()
        else:
            raise PreconditionError(f"Field {name!r} must be a FieldSchema or FieldOp.delete()")
    return out


def _path(class_name: str) -> str:
    return f"/schemas/{path_segment(validate_class_name(class_name), 'class name')}"


class SchemasResource:
    def __init__(self, api: ParseAPI) -> None:
        self._api = api

    async def list(self) -> list[ParseSchema]:
        raw = await self._api.get("/schemas", use_master_key=True)
        return [_to_schema(item) for item in expect_results(raw)]

    async def retrieve(self, class_name: str) -> ParseSchema:
        raw = await self._api.get(_path(class_name), use_master_key=True)
        return _to_schema(raw)

    async def create(self, schema: ParseSchema) -> ParseSchema:
        raw = await self._api.post(_path(schema.class_name), schema.to_wire(), use_master_key=True)
        logger.info("created schema %s", schema.class_name)
        return _to_schema(raw)

    async def update(
        self,
        class_name: str,
        fields: Mapping[str, FieldChange] | None = None,
        *,
        class_level_permissions: Mapping[str, Any] | None = None,
        indexes: Mapping[str, Any] | None = None,
    ) -> ParseSchema:
        body: dict[str, Any] = {"className": class_name}
        if fields:
            body["fields"] = _field_changes(fields)
        if class_level_permissions is not None:
            body["classLevelPermissions"] = dict(class_level_permissions)
        if indexes is not None:
            body["indexes"] = dict(indexes)
        if len(body) == 1:
            raise PreconditionError("Nothing to update in the schema")
        raw = await self._api.put(_path(class_name), body, use_master_key=True)
        return _to_schema(raw)

    async def delete(self, class_name: str) -> None:
        """La clase debe estar vacía; si no, el servidor responde con el código 255."""

        await self._api.delete(_path(class_name), use_master_key=True)
        logger.info("deleted schema %s", class_name)
