"""Shared test fixtures for oauth2_authorizer.

Provides a fake token endpoint served through :class:`httpx.MockTransport`
so authorizers can be exercised end to end without network access, and
isolates the global output manager between tests.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

from oauth2_authorizer.output import reset_output


class FakeTokenEndpoint:
    """Records every request and answers with a configurable response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.json_body: Any = {
            "access_token": "test-access-token",
            "token_type": "Bearer",
            "expires_in": 3600,
        }
        self.text_body: str | None = None
        self.clients_created = 0
        self.clients: list[Any] = []
        self.on_request: Optional[Callable[[], None]] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request()
        if self.text_body is not None:
            return httpx.Response(self.status_code, text=self.text_body)
        return httpx.Response(self.status_code, json=self.json_body)

    def client(self) -> httpx.Client:
        self.clients_created += 1
        client = httpx.Client(transport=httpx.MockTransport(self.handler))
        self.clients.append(client)
        return client

    def async_client(self) -> httpx.AsyncClient:
        self.clients_created += 1
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        self.clients.append(client)
        return client

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]

    def form(self) -> dict[str, str]:
        """Decode the last request body as a URL-encoded form."""
        return dict(parse_qsl(self.last_request.content.decode("utf-8")))

    def json(self) -> dict[str, Any]:
        """Decode the last request body as JSON."""
        return json.loads(self.last_request.content)


@pytest.fixture
def token_endpoint() -> FakeTokenEndpoint:
    return FakeTokenEndpoint()


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr; Typer's
    CliRunner swaps those streams, so a fresh manager is needed per test.
    """
    yield
    reset_output()
