"""Recurso: usuarios (`/users`, `/login`, `/logout`, `/users/me`).

Reglas:
- signup/login/become publican el token en `SessionState` solo después de que el
  servidor confirme; si la petición falla (o se cancela) el estado no cambia.
- logout limpia la sesión solo tras la confirmación y solo si el token sigue siendo
  el que se cerró.
- No hay logout automático ante un token inválido (código 209): el error se propaga.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from parse_rest.adapters.api import ParseAPI
from parse_rest.adapters.request_builder import class_path
from parse_rest.adapters.resources.objects import ObjectsResource, projection_params
from parse_rest.adapters.resources.query import ParseQuery
from parse_rest.adapters.response_decoder import expect_object
from parse_rest.core.domain.errors import DecodeError, PreconditionError
from parse_rest.core.domain.models import ParseUser
from parse_rest.core.services.session_state import SessionState

logger = logging.getLogger(__name__)

USER_CLASS = "_User"


def _session_token_of(body: Mapping[str, Any]) -> str:
    token = body.get("sessionToken")
    if not isinstance(token, str) or not token:
        raise DecodeError("Expected a 'sessionToken' in the response")
    return token


def _require_text(value: str | None, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise PreconditionError(f"{what} is required")
    return value


class UsersResource:
    def __init__(self, api: ParseAPI, objects: ObjectsResource, session: SessionState) -> None:
        self._api = api
        self._objects = objects
        self._session = session

    async def signup(self, user: ParseUser) -> ParseUser:
        user.ensure_alive()
        if not user.is_new:
            raise PreconditionError("This user was already signed up")
        _require_text(user.get("username"), "username")
        _require_text(user.get("password"), "password")
        raw = await self._api.post("/users", user.to_payload(), session_token=None)
        body = expect_object(raw)
        token = _session_token_of(body)
        user.apply_created(body)
        await self._session.set(token, user)
        logger.info("signed up user %s", user.object_id)
        return user

    async def login(self, username: str, password: str) -> ParseUser:
        payload = {
            "username": _require_text(username, "username"),
            "password": _require_text(password, "password"),
        }
        raw = await self._api.post("/login", payload, session_token=None)
        body = expect_object(raw)
        token = _session_token_of(body)
        user = ParseUser.from_wire(body, USER_CLASS)
        await self._session.set(token, user)
        logger.info("logged in user %s", user.object_id)
        return user

    async def logout(self) -> None:
        token = self._session.token
        if token is None:
            raise PreconditionError("There is no active session to log out")
        await self._api.post("/logout", session_token=token, allow_empty=True)
        await self._session.clear_if(token)
        logger.info("logged out")

    async def become(self, session_token: str) -> ParseUser:
        """Adopta una sesión existente validándola contra `/users/me`."""

        token = _require_text(session_token, "session token")
        raw = await self._api.get("/users/me", session_token=token)
        user = ParseUser.from_wire(expect_object(raw), USER_CLASS)
        user.session_token = token
        await self._session.set(token, user)
        return user

    async def me(self) -> ParseUser:
        """Usuario de la sesión actual según el servidor (no modifica la sesión)."""

        token = self._session.token
        if token is None:
            raise PreconditionError("There is no active session")
        raw = await self._api.get("/users/me", session_token=token)
        user = ParseUser.from_wire(expect_object(raw), USER_CLASS)
        user.session_token = token
        return user

    async def request_password_reset(self, email: str) -> None:
        await self._api.post(
            "/requestPasswordReset",
            {"email": _require_text(email, "email")},
            session_token=None,
            allow_empty=True,
        )

    async def verification_email_request(self, email: str) -> None:
        await self._api.post(
            "/verificationEmailRequest",
            {"email": _require_text(email, "email")},
            session_token=None,
            allow_empty=True,
        )

    async def retrieve(
        self,
        object_id: str,
        *,
        include: Iterable[str] | None = None,
        use_master_key: bool = False,
    ) -> ParseUser:
        raw = await self._api.get(
            class_path(USER_CLASS, object_id),
            params=projection_params(include=include),
            use_master_key=use_master_key,
        )
        return ParseUser.from_wire(expect_object(raw), USER_CLASS)

    async def update(self, user: ParseUser, *, use_master_key: bool = False) -> ParseUser:
        return await self._objects.update(user, use_master_key=use_master_key)

    async def delete(self, user: ParseUser, *, use_master_key: bool = False) -> None:
        await self._objects.delete(user, use_master_key=use_master_key)

    def query(self) -> ParseQuery:
        return ParseQuery(USER_CLASS, api=self._api)
