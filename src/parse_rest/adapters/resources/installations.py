"""Recurso: instalaciones (`/installations[/{objectId}]`)."""

from __future__ import annotations

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import class_path
from parse_rest.adapters.resources.objects import ObjectsResource
from parse_rest.adapters.resources.query import ParseQuery
from parse_rest.adapters.response_decoder import expect_object
from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.models import ParseInstallation

INSTALLATION_CLASS = "_Installation"


class InstallationsResource:
    def __init__(self, api: ParseAPI, objects: ObjectsResource) -> None:
        self._api = api
        self._objects = objects

    async def create(self, installation: ParseInstallation, *, use_master_key: bool = False) -> ParseInstallation:
        if not installation.device_type:
            raise PreconditionError("An installation needs a deviceType")
        return await self._objects.create(installation, use_master_key=use_master_key)

    async def retrieve(self, object_id: str, *, use_master_key: bool = False) -> ParseInstallation:
        raw = await self._api.get(class_path(INSTALLATION_CLASS, object_id), use_master_key=use_master_key)
        return ParseInstallation.from_wire(expect_object(raw), INSTALLATION_CLASS)

    async def update(self, installation: ParseInstallation, *, use_master_key: bool = False) -> ParseInstallation:
        return await self._objects.update(installation, use_master_key=use_master_key)

    async def delete(self, installation: ParseInstallation, *, use_master_key: bool = True) -> None:
        await self._objects.delete(installation, use_master_key=use_master_key)

    def query(self) -> ParseQuery:
        return ParseQuery(INSTALLATION_CLASS, api=self._api).use_master_key()
