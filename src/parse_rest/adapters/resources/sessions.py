"""Recurso: sesiones (`/sessions[/me|/{objectId}]`)."""

from __future__ import annotations

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import class_path
from parse_rest.adapters.resources.objects import ObjectsResource
from parse_rest.adapters.resources.query import ParseQuery
from parse_rest.adapters.response_decoder import expect_object
from parse_rest.core.domain.errors import PreconditionError
from parse_rest.core.domain.models import ParseSession
from parse_rest.core.services.session_state import SessionState

SESSION_CLASS = "_Session"


class SessionsResource:
    """`me` usa el token actual; el resto de operaciones usan la master key."""

    def __init__(self, api: ParseAPI, objects: ObjectsResource, session: SessionState) -> None:
        self._api = api
        self._objects = objects
        self._session = session

    async def me(self) -> ParseSession:
        token = self._session.token
        if token is None:
            raise PreconditionError("There is no active session")
        raw = await self._api.get("/sessions/me", session_token=token)
        return ParseSession.from_wire(expect_object(raw), SESSION_CLASS)

    async def retrieve(self, object_id: str) -> ParseSession:
        raw = await self._api.get(class_path(SESSION_CLASS, object_id), use_master_key=True)
        return ParseSession.from_wire(expect_object(raw), SESSION_CLASS)

    async def update(self, session: ParseSession) -> ParseSession:
        return await self._objects.update(session, use_master_key=True)

    async def delete(self, session: ParseSession) -> None:
        await self._objects.delete(session, use_master_key=True)

    def query(self) -> ParseQuery:
        return ParseQuery(SESSION_CLASS, api=self._api).use_master_key()

    async def list(self, *, limit: int | None = None, skip: int | None = None) -> list[ParseSession]:
        query = self.query()
        if limit is not None:
            query.limit(limit)
        if skip is not None:
            query.skip(skip)
        return [s for s in await query.find() if isinstance(s, ParseSession)]
