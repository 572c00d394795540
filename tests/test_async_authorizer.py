"""Tests for the asynchronous AsyncAuthorizer."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from oauth2_authorizer.async_authorizer import AsyncAuthorizer
from oauth2_authorizer.exceptions import ConfigurationError, OAuthProtocolError, TransportError
from oauth2_authorizer.models import AuthorizerOptions, GrantType
from oauth2_authorizer.outcomes import NoToken, NoTokenReason, ProtocolFailure, TokenAcquired


TOKEN_URL = "https://auth.example.com/oauth/token"


def _make_options(**kwargs: Any) -> AuthorizerOptions:
    defaults: dict[str, Any] = {
        "token_endpoint_uri": TOKEN_URL,
        "client_id": "my-client",
        "client_secret": "my-secret",
    }
    defaults.update(kwargs)
    return AuthorizerOptions(**defaults)


class TestAsyncGetToken:
    def test_client_credentials_exchange(self, token_endpoint) -> None:
        authorizer = AsyncAuthorizer(_make_options(), client_factory=token_endpoint.async_client)
        token = asyncio.run(authorizer.get_token())

        assert token is not None
        assert token.access_token == "test-access-token"
        assert token_endpoint.form() == {"grant_type": "client_credentials"}
        assert token_endpoint.last_request.headers["Authorization"].startswith("Basic ")

    def test_password_grant_form_body(self, token_endpoint) -> None:
        options = _make_options(
            username="alice",
            password="pw",
            client_id=None,
            client_secret=None,
            credentials_transport_method="form_request_body",
        )
        authorizer = AsyncAuthorizer(options, client_factory=token_endpoint.async_client)
        asyncio.run(authorizer.get_token(GrantType.RESOURCE_OWNER_PASSWORD_CREDENTIALS))

        assert token_endpoint.form() == {
            "grant_type": "password",
            "username": "alice",
            "password": "pw",
        }

    def test_protocol_error_raised(self, token_endpoint) -> None:
        token_endpoint.status_code = 400
        token_endpoint.text_body = "nope"
        authorizer = AsyncAuthorizer(_make_options(), client_factory=token_endpoint.async_client)

        with pytest.raises(OAuthProtocolError) as exc_info:
            asyncio.run(authorizer.get_token())
        assert (exc_info.value.status_code, exc_info.value.body) == (400, "nope")

    def test_protocol_error_callback(self, token_endpoint) -> None:
        token_endpoint.status_code = 400
        token_endpoint.text_body = "nope"
        calls: list[tuple[int, str]] = []
        options = _make_options(on_error=lambda status, body: calls.append((status, body)))
        authorizer = AsyncAuthorizer(options, client_factory=token_endpoint.async_client)

        assert asyncio.run(authorizer.get_token()) is None
        assert calls == [(400, "nope")]

    def test_acquire_outcomes(self, token_endpoint) -> None:
        authorizer = AsyncAuthorizer(_make_options(), client_factory=token_endpoint.async_client)
        assert isinstance(asyncio.run(authorizer.acquire()), TokenAcquired)

        token_endpoint.status_code = 500
        token_endpoint.text_body = "boom"
        assert asyncio.run(authorizer.acquire()) == ProtocolFailure(500, "boom")

    def test_cancelled_returns_none(self, token_endpoint) -> None:
        authorizer = AsyncAuthorizer(_make_options(), client_factory=token_endpoint.async_client)

        async def run() -> tuple[Any, Any]:
            cancel = asyncio.Event()
            cancel.set()
            return (
                await authorizer.get_token(cancel=cancel),
                await authorizer.acquire(cancel=cancel),
            )

        token, outcome = asyncio.run(run())
        assert token is None
        assert outcome == NoToken(NoTokenReason.CANCELLED)

    def test_cancelled_while_request_in_flight(self, token_endpoint) -> None:
        authorizer = AsyncAuthorizer(_make_options(), client_factory=token_endpoint.async_client)

        async def run() -> Any:
            cancel = asyncio.Event()
            token_endpoint.on_request = cancel.set
            return await authorizer.acquire(cancel=cancel)

        assert asyncio.run(run()) == NoToken(NoTokenReason.CANCELLED)
        assert len(token_endpoint.requests) == 1
        assert token_endpoint.clients[0].is_closed

    def test_configuration_error_before_request(self, token_endpoint) -> None:
        authorizer = AsyncAuthorizer(
            _make_options(token_endpoint_uri=None), client_factory=token_endpoint.async_client
        )
        with pytest.raises(ConfigurationError):
            asyncio.run(authorizer.get_token())
        assert token_endpoint.clients_created == 0

    def test_client_closed_after_call(self, token_endpoint) -> None:
        authorizer = AsyncAuthorizer(_make_options(), client_factory=token_endpoint.async_client)
        asyncio.run(authorizer.get_token())
        assert token_endpoint.clients[0].is_closed

    def test_network_error_wrapped(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        authorizer = AsyncAuthorizer(
            _make_options(),
            client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
        )
        with pytest.raises(TransportError):
            asyncio.run(authorizer.get_token())
