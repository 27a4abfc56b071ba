"""Recurso: roles (`/roles[/{objectId}]`).

Los miembros de un rol son dos relaciones: `users` (-> `_User`) y `roles` (-> `_Role`,
roles hijos que heredan los permisos del padre).
"""

from __future__ import annotations

from collections.abc import Iterable

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import class_path
from parse_rest.adapters.resources.objects import ObjectsResource, projection_params
from parse_rest.adapters.resources.query import ParseQuery
from parse_rest.adapters.response_decoder import expect_object
from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.models import ParseObject, ParseRole, pointers_for
from parse_rest.core.domain.values import Pointer

ROLE_CLASS = "_Role"

Members = Iterable[str | ParseObject | Pointer]


class RolesResource:
    def __init__(self, api: ParseAPI, objects: ObjectsResource) -> None:
        self._api = api
        self._objects = objects

    async def create(self, role: ParseRole, *, use_master_key: bool = False) -> ParseRole:
        if not role.name:
            raise PreconditionError("A role needs a name")
        if role.acl is None:
            raise PreconditionError("A role needs an ACL")
        return await self._objects.create(role, use_master_key=use_master_key)

    async def retrieve(
        self,
        object_id: str,
        *,
        include: Iterable[str] | None = None,
        use_master_key: bool = False,
    ) -> ParseRole:
        raw = await self._api.get(
            class_path(ROLE_CLASS, object_id),
            params=projection_params(include=include),
            use_master_key=use_master_key,
        )
        return ParseRole.from_wire(expect_object(raw), ROLE_CLASS)

    async def update(self, role: ParseRole, *, use_master_key: bool = False) -> ParseRole:
        return await self._objects.update(role, use_master_key=use_master_key)

    async def delete(self, role: ParseRole, *, use_master_key: bool = False) -> None:
        await self._objects.delete(role, use_master_key=use_master_key)

    async def add_users(self, role: ParseRole, users: Members, *, use_master_key: bool = False) -> ParseRole:
        await self._objects.add_to_relation(role, "users", pointers_for("_User", users), use_master_key=use_master_key)
        return role

    async def remove_users(self, role: ParseRole, users: Members, *, use_master_key: bool = False) -> ParseRole:
        await self._objects.remove_from_relation(
            role, "users", pointers_for("_User", users), use_master_key=use_master_key
        )
        return role

    async def add_child_roles(self, role: ParseRole, roles: Members, *, use_master_key: bool = False) -> ParseRole:
        await self._objects.add_to_relation(
            role, "roles", pointers_for(ROLE_CLASS, roles), use_master_key=use_master_key
        )
        return role

    async def remove_child_roles(self, role: ParseRole, roles: Members, *, use_master_key: bool = False) -> ParseRole:
        await self._objects.remove_from_relation(
            role, "roles", pointers_for(ROLE_CLASS, roles), use_master_key=use_master_key
        )
        return role

    def query(self) -> ParseQuery:
        return ParseQuery(ROLE_CLASS, api=self._api)
