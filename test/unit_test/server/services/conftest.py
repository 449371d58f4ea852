"""Fixtures for testing the outbound HTTP clients of the services."""

from typing import List, Union

import httpx
import pytest

Reply = Union[httpx.Response, Exception]


class HttpMock:
    """Answers every request from a queue of canned replies and records the requests."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.replies: List[Reply] = []

    def reply(self, status_code: int = 200, json=None, text: str = None) -> "HttpMock":
        if json is not None:
            self.replies.append(httpx.Response(status_code, json=json))
        else:
            self.replies.append(httpx.Response(status_code, text=text or ""))
        return self

    def fail(self, exc: Exception) -> "HttpMock":
        self.replies.append(exc)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def http_mock(monkeypatch) -> HttpMock:
    """Route every ``httpx.AsyncClient`` created by the code under test through :class:`HttpMock`."""
    mock = HttpMock()
    transport = httpx.MockTransport(mock.handler)
    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = transport
        return real_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)
    return mock
