from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from parse_rest.client import ParseClient
from parse_rest.core.config import ParseSettings

SERVER_URL = "http://parse.test/parse"


class RecordingHandler:
    """Fake server: records each request and answers from a queue of responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Callable[[httpx.Request], httpx.Response]] = []

    def reply(self, status: int = 200, payload: Any = None, *, content: bytes | None = None) -> "RecordingHandler":
        if content is None:
            content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        self._responses.append(httpx.Response(status, content=content))
        return self

    def reply_with(self, fn: Callable[[httpx.Request], httpx.Response]) -> "RecordingHandler":
        self._responses.append(fn)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request {request.method} {request.url}")
        response = self._responses.pop(0)
        if callable(response):
            return response(request)
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def path_of(request: httpx.Request) -> str:
    return request.url.path.removeprefix("/parse")


def query_of(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(urlsplit(str(request.url)).query).items()}


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture
def settings() -> ParseSettings:
    return ParseSettings(
        server_url=SERVER_URL,
        app_id="test-app",
        rest_api_key="rest-key",
        javascript_key=None,
        master_key="master-key",
    )


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def client(settings: ParseSettings, handler: RecordingHandler) -> ParseClient:
    return ParseClient(settings, http_transport=httpx.MockTransport(handler))
