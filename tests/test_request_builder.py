from __future__ import annotations

import asyncio
import json
from urllib.parse import parse_qs, urlsplit

import pytest

from parse_rest.adapters.request_builder import RequestBuilder, class_path
from parse_rest.core.config import ParseSettings
from parse_rest.core.domain.errors import ConfigurationError, ErrorKind, PreconditionError
from parse_rest.core.services.session_state import SessionState


def _builder(**overrides: str | None) -> tuple[RequestBuilder, SessionState]:
    values: dict[str, str | None] = {
        "server_url": "http://parse.test/parse",
        "app_id": "test-app",
        "rest_api_key": "rest-key",
        "javascript_key": None,
        "master_key": "master-key",
    }
    values.update(overrides)
    session = SessionState()
    return RequestBuilder(ParseSettings(**values), session), session


def test_headers_are_attached_in_fixed_order() -> None:
    builder, session = _builder()
    asyncio.run(session.set("r:token", None))

    request = builder.build("POST", "/classes/GameScore", json_body={"score": 1})

    assert list(request.headers) == [
        "X-Parse-Application-Id",
        "X-Parse-REST-API-Key",
        "X-Parse-Session-Token",
        "Content-Type",
    ]
    assert request.headers["X-Parse-Application-Id"] == "test-app"
    assert request.headers["X-Parse-Session-Token"] == "r:token"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.body) == {"score": 1}


def test_master_key_replaces_rest_key_when_requested() -> None:
    builder, _ = _builder()

    request = builder.build("GET", "/schemas", use_master_key=True)

    assert request.headers["X-Parse-Master-Key"] == "master-key"
    assert "X-Parse-REST-API-Key" not in request.headers
    assert "Content-Type" not in request.headers
    assert request.body is None


def test_javascript_key_is_used_without_rest_key() -> None:
    builder, _ = _builder(rest_api_key=None, javascript_key="js-key")

    request = builder.build("GET", "/classes/GameScore")

    assert request.headers["X-Parse-JavaScript-Key"] == "js-key"


def test_missing_master_key_is_a_configuration_error() -> None:
    builder, _ = _builder(master_key=None)

    with pytest.raises(ConfigurationError) as info:
        builder.build("GET", "/schemas", use_master_key=True)

    assert info.value.kind is ErrorKind.CONFIGURATION


def test_missing_application_id_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        _builder(app_id="")


def test_session_token_can_be_overridden_or_suppressed() -> None:
    builder, session = _builder()
    asyncio.run(session.set("r:current", None))

    forced = builder.build("GET", "/users/me", session_token="r:other")
    anonymous = builder.build("POST", "/login", json_body={}, session_token=None)

    assert forced.headers["X-Parse-Session-Token"] == "r:other"
    assert "X-Parse-Session-Token" not in anonymous.headers


def test_query_parameters_are_url_encoded_json() -> None:
    builder, _ = _builder()
    where = json.dumps({"name": {"$regex": "^Mon"}}, separators=(",", ":"))

    request = builder.build("GET", "/classes/GameScore", params={"where": where, "order": "-score,name"})

    split = urlsplit(request.url)
    assert split.path == "/parse/classes/GameScore"
    parsed = parse_qs(split.query)
    assert json.loads(parsed["where"][0]) == {"name": {"$regex": "^Mon"}}
    assert parsed["order"] == ["-score,name"]


def test_raw_body_uses_its_own_content_type() -> None:
    builder, _ = _builder()

    request = builder.build("POST", "/files/pic.png", raw_body=b"\x89PNG", content_type="image/png")

    assert request.headers["Content-Type"] == "image/png"
    assert request.body == b"\x89PNG"


def test_server_url_is_normalized() -> None:
    settings = ParseSettings(server_url="parse.test:1337/parse/", app_id="a")

    assert settings.server_url == "http://parse.test:1337/parse"


@pytest.mark.parametrize(
    ("class_name", "object_id", "expected"),
    [
        ("GameScore", None, "/classes/GameScore"),
        ("GameScore", "abc", "/classes/GameScore/abc"),
        ("_User", "u1", "/users/u1"),
        ("_Role", None, "/roles"),
        ("_Session", "s1", "/sessions/s1"),
        ("_Installation", None, "/installations"),
    ],
)
def test_class_path_routing(class_name: str, object_id: str | None, expected: str) -> None:
    assert class_path(class_name, object_id) == expected


def test_class_path_rejects_invalid_names() -> None:
    with pytest.raises(PreconditionError):
        class_path("1Game")
    with pytest.raises(PreconditionError):
        class_path("Game-Score")


def test_json_body_with_nan_is_rejected() -> None:
    builder, _ = _builder()

    with pytest.raises(PreconditionError):
        builder.build("POST", "/classes/GameScore", json_body={"score": float("nan")})
