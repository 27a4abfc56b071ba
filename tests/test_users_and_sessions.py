from __future__ import annotations

import asyncio
from collections.abc import Mapping

import pytest

from conftest import RecordingHandler, json_body, path_of
from parse_rest.client import ParseClient
from parse_rest.core.config import ParseSettings
from parse_rest.core.domain.errors import ParseCodeError, ParseErrorCode, PreconditionError
from parse_rest.core.domain.models import ParseSession, ParseUser
from parse_rest.core.interfaces.transport import TransportResponse

CREATED = "2024-05-17T12:30:45.123Z"
LOGIN_PAYLOAD = {
    "objectId": "g7y9tkhB7O",
    "username": "cooldude6",
    "phone": "415-392-0202",
    "createdAt": CREATED,
    "updatedAt": CREATED,
    "sessionToken": "r:pnktnjyb996sj4p156gjtp4im",
}


def test_signup_commits_session_after_success(client: ParseClient, handler: RecordingHandler) -> None:
    handler.reply(201, {"objectId": "g7y9tkhB7O", "createdAt": CREATED, "sessionToken": "r:new"})

    async def _run() -> None:
        user = ParseUser(username="cooldude6", password="p_n7!-e8", email="c@example.com")

        await client.users.signup(user)

        request = handler.last
        assert request.method == "POST"
        assert path_of(request) == "/users"
        assert json_body(request) == {"username": "cooldude6", "password": "p_n7!-e8", "email": "c@example.com"}
        assert client.session_token == "r:new"
        assert client.current_user is user
        assert user.object_id == "g7y9tkhB7O"
        assert "password" not in user

    asyncio.run(_run())


def test_signup_requires_username_and_password(client: ParseClient, handler: RecordingHandler) -> None:
    async def _run() -> None:
        with pytest.raises(PreconditionError):
            await client.users.signup(ParseUser(username="only-name"))

    asyncio.run(_run())
    assert handler.requests == []


def test_login_sets_session_and_later_requests_carry_it(client: ParseClient, handler: RecordingHandler) -> None:
    handler.reply(200, LOGIN_PAYLOAD)
    handler.reply(200, {"results": []})

    async def _run() -> None:
        user = await client.users.login("cooldude6", "p_n7!-e8")

        login = handler.last
        assert path_of(login) == "/login"
        assert json_body(login) == {"username": "cooldude6", "password": "p_n7!-e8"}
        assert "X-Parse-Session-Token" not in login.headers
        assert user.username == "cooldude6"
        assert user.session_token == LOGIN_PAYLOAD["sessionToken"]
        assert client.session_token == LOGIN_PAYLOAD["sessionToken"]

        await client.query("GameScore").find()
        assert handler.last.headers["X-Parse-Session-Token"] == LOGIN_PAYLOAD["sessionToken"]

    asyncio.run(_run())


def test_failed_login_leaves_session_untouched(client: ParseClient, handler: RecordingHandler) -> None:
    handler.reply(200, LOGIN_PAYLOAD)
    handler.reply(404, {"code": 101, "error": "Invalid username/password."})

    async def _run() -> None:
        await client.users.login("cooldude6", "p_n7!-e8")
        before = client.session.snapshot

        with pytest.raises(ParseCodeError):
            await client.users.login("cooldude6", "wrong")

        assert client.session.snapshot is before

    asyncio.run(_run())


def test_logout_clears_session_after_confirmation(client: ParseClient, handler: RecordingHandler) -> None:
    handler.reply(200, LOGIN_PAYLOAD)
    handler.reply(200, {})

    async def _run() -> None:
        await client.users.login("cooldude6", "p_n7!-e8")
        await client.users.logout()

        logout = handler.last
        assert logout.method == "POST"
        assert path_of(logout) == "/logout"
        assert logout.headers["X-Parse-Session-Token"] == LOGIN_PAYLOAD["sessionToken"]
        assert client.session_token is None
        assert client.current_user is None

    asyncio.run(_run())


def test_logout_without_session_is_precondition_error(client: ParseClient, handler: RecordingHandler) -> None:
    async def _run() -> None:
        with pytest.raises(PreconditionError):
            await client.users.logout()

    asyncio.run(_run())
    assert handler.requests == []


def test_become_validates_token_against_users_me(client: ParseClient, handler: RecordingHandler) -> None:
    payload = {k: v for k, v in LOGIN_PAYLOAD.items() if k != "sessionToken"}
    handler.reply(200, payload)

    async def _run() -> None:
        user = await client.users.become("r:adopted")

        request = handler.last
        assert request.method == "GET"
        assert path_of(request) == "/users/me"
        assert request.headers["X-Parse-Session-Token"] == "r:adopted"
        assert client.session_token == "r:adopted"
        assert client.current_user is user
        assert user.session_token == "r:adopted"

    asyncio.run(_run())


def test_invalid_session_is_surfaced_without_automatic_logout(
    client: ParseClient, handler: RecordingHandler
) -> None:
    handler.reply(200, LOGIN_PAYLOAD)
    handler.reply(400, {"code": 209, "error": "Invalid session token"})

    async def _run() -> None:
        await client.users.login("cooldude6", "p_n7!-e8")

        with pytest.raises(ParseCodeError) as info:
            await client.users.me()

        assert info.value.known_code is ParseErrorCode.INVALID_SESSION_TOKEN
        assert client.session_token == LOGIN_PAYLOAD["sessionToken"]

    asyncio.run(_run())


def test_password_reset_and_verification_email(client: ParseClient, handler: RecordingHandler) -> None:
    handler.reply(200, {})
    handler.reply(200, {})

    async def _run() -> None:
        await client.users.request_password_reset("c@example.com")
        assert path_of(handler.last) == "/requestPasswordReset"
        assert json_body(handler.last) == {"email": "c@example.com"}

        await client.users.verification_email_request("c@example.com")
        assert path_of(handler.last) == "/verificationEmailRequest"

    asyncio.run(_run())


def test_user_update_sends_only_changes(client: ParseClient, handler: RecordingHandler) -> None:
    handler.reply(200, LOGIN_PAYLOAD)
    handler.reply(200, {"updatedAt": "2024-05-18T00:00:00.000Z"})

    async def _run() -> None:
        user = await client.users.login("cooldude6", "p_n7!-e8")
        user.set("phone", "415-369-6201")

        await client.users.update(user)

        request = handler.last
        assert request.method == "PUT"
        assert path_of(request) == "/users/g7y9tkhB7O"
        assert json_body(request) == {"phone": "415-369-6201"}

    asyncio.run(_run())


def test_sessions_me_and_list(client: ParseClient, handler: RecordingHandler) -> None:
    handler.reply(200, LOGIN_PAYLOAD)
    handler.reply(
        200,
        {
            "objectId": "s1",
            "sessionToken": LOGIN_PAYLOAD["sessionToken"],
            "user": {"__type": "Pointer", "className": "_User", "objectId": "g7y9tkhB7O"},
            "expiresAt": {"__type": "Date", "iso": "2025-05-17T12:30:45.123Z"},
            "restricted": False,
        },
    )
    handler.reply(200, {"results": [{"objectId": "s1"}, {"objectId": "s2"}]})

    async def _run() -> None:
        await client.users.login("cooldude6", "p_n7!-e8")

        session = await client.sessions.me()
        assert path_of(handler.last) == "/sessions/me"
        assert isinstance(session, ParseSession)
        assert session.user is not None and session.user.object_id == "g7y9tkhB7O"
        assert session.expires_at is not None
        assert session.restricted is False

        sessions = await client.sessions.list(limit=10)
        assert path_of(handler.last) == "/sessions"
        assert handler.last.headers["X-Parse-Master-Key"] == "master-key"
        assert [s.object_id for s in sessions] == ["s1", "s2"]

    asyncio.run(_run())


class _HangingTransport:
    """Never answers; lets a test abandon an in-flight login."""

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> TransportResponse:
        self.started.set()
        await asyncio.Event().wait()
        raise AssertionError("unreachable")


def test_cancelled_login_does_not_touch_session(settings: ParseSettings) -> None:
    async def _run() -> None:
        transport = _HangingTransport()
        client = ParseClient(settings, transport=transport)

        task = asyncio.create_task(client.users.login("cooldude6", "p_n7!-e8"))
        await transport.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert client.session_token is None
        assert client.current_user is None

    asyncio.run(_run())
