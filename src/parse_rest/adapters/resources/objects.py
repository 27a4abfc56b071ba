"""Recurso: objetos (`/classes/{className}[/{objectId}]`).

Reglas:
- `save` elige POST (crear) o PUT (actualizar) según haya `objectId`.
- `fetch`/`delete`/`update` sin `objectId` fallan con `PreconditionError` antes de la red.
- Un update envía solo los campos modificados.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TypeVar

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import class_path
from parse_rest.adapters.response_decoder import expect_object
from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.models import ParseObject, pointers_for, validate_class_name
from parse_rest.core.domain.values import FieldOp, Pointer

logger = logging.getLogger(__name__)

O = TypeVar("O", bound=ParseObject)


def projection_params(*, keys: Iterable[str] | None = None, include: Iterable[str] | None = None) -> dict[str, str]:
    params: dict[str, str] = {}
    if keys:
        params["keys"] = ",".join(dict.fromkeys(keys))
    if include:
        params["include"] = ",".join(dict.fromkeys(include))
    return params


class ObjectsResource:
    """CRUD genérico; los recursos de usuarios, roles e instalaciones lo reutilizan."""

    def __init__(self, api: ParseAPI) -> None:
        self._api = api

    async def create(self, obj: O, *, use_master_key: bool = False) -> O:
        obj.ensure_alive()
        if not obj.is_new:
            raise PreconditionError(f"{obj.class_name} object {obj.object_id!r} already exists; use update()")
        raw = await self._api.post(class_path(obj.class_name), obj.to_payload(), use_master_key=use_master_key)
        obj.apply_created(expect_object(raw))
        logger.debug("created %s %s", obj.class_name, obj.object_id)
        return obj

    async def update(self, obj: O, *, use_master_key: bool = False) -> O:
        path = class_path(obj.class_name, obj.require_object_id())
        raw = await self._api.put(path, obj.to_payload(only_dirty=True), use_master_key=use_master_key)
        obj.apply_updated(expect_object(raw))
        return obj

    async def save(self, obj: O, *, use_master_key: bool = False) -> O:
        if obj.is_new:
            return await self.create(obj, use_master_key=use_master_key)
        return await self.update(obj, use_master_key=use_master_key)

    async def retrieve(
        self,
        class_name: str,
        object_id: str,
        *,
        keys: Iterable[str] | None = None,
        include: Iterable[str] | None = None,
        use_master_key: bool = False,
    ) -> ParseObject:
        validate_class_name(class_name)
        raw = await self._api.get(
            class_path(class_name, object_id),
            params=projection_params(keys=keys, include=include),
            use_master_key=use_master_key,
        )
        return ParseObject.from_wire(expect_object(raw), class_name)

    async def fetch(
        self,
        obj: O,
        *,
        include: Iterable[str] | None = None,
        use_master_key: bool = False,
    ) -> O:
        """Recarga todos los campos desde el servidor (descarta cambios locales)."""

        path = class_path(obj.class_name, obj.require_object_id())
        raw = await self._api.get(path, params=projection_params(include=include), use_master_key=use_master_key)
        obj.apply_fetched(expect_object(raw))
        return obj

    async def delete(self, obj: ParseObject, *, use_master_key: bool = False) -> None:
        path = class_path(obj.class_name, obj.require_object_id())
        await self._api.delete(path, use_master_key=use_master_key)
        obj.mark_deleted()
        logger.debug("deleted %s %s", obj.class_name, obj.object_id)

    async def _relation_op(
        self,
        obj: ParseObject,
        key: str,
        op: FieldOp,
        *,
        use_master_key: bool,
    ) -> ParseObject:
        if not key:
            raise PreconditionError("Relation key cannot be empty")
        path = class_path(obj.class_name, obj.require_object_id())
        raw = await self._api.put(path, {key: op.to_wire()}, use_master_key=use_master_key)
        # Solo llega `updatedAt`; el resto de cambios locales pendientes se conserva.
        obj.merge_server_data(expect_object(raw))
        return obj

    async def add_to_relation(
        self,
        obj: ParseObject,
        key: str,
        targets: Iterable[ParseObject | Pointer],
        *,
        use_master_key: bool = False,
    ) -> ParseObject:
        pointers = _relation_targets(targets)
        return await self._relation_op(obj, key, FieldOp.add_relation(*pointers), use_master_key=use_master_key)

    async def remove_from_relation(
        self,
        obj: ParseObject,
        key: str,
        targets: Iterable[ParseObject | Pointer],
        *,
        use_master_key: bool = False,
    ) -> ParseObject:
        pointers = _relation_targets(targets)
        return await self._relation_op(obj, key, FieldOp.remove_relation(*pointers), use_master_key=use_master_key)


def _relation_targets(targets: Iterable[ParseObject | Pointer]) -> list[Pointer]:
    items = list(targets)
    if not items:
        raise PreconditionError("At least one relation target is required")
    for item in items:
        if not isinstance(item, (ParseObject, Pointer)):
            raise PreconditionError(f"Relation targets must be objects or pointers, got {type(item).__name__}")
    return pointers_for("", items)
