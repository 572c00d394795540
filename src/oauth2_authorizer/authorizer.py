"""Synchronous OAuth2 token acquisition.

This module provides :class:`Authorizer`, which performs one token
endpoint round trip per call through an injected :class:`httpx.Client`
factory:

- **Grant dispatch** -- client credentials, resource owner password
  credentials, or refresh token (:rfc:`6749` sections 4.4, 4.3, and 6).
- **Credential transport** -- Basic ``Authorization`` header or request
  body, with configurable wire field names.
- **Response normalisation** -- standard OAuth2 JSON or a custom key
  mapping for non-standard servers.

Each call opens its own client and closes it on every exit path. The
options are immutable, so one instance may serve concurrent calls.

See Also:
    :class:`~oauth2_authorizer.async_authorizer.AsyncAuthorizer` for the
    equivalent non-blocking implementation.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Union

import httpx

from oauth2_authorizer.exceptions import TransportError
from oauth2_authorizer.models import AuthorizerOptions, GrantType, TokenResponse
from oauth2_authorizer.outcomes import (
    NoToken,
    NoTokenReason,
    ProtocolFailure,
    TokenAcquired,
    TokenOutcome,
    unwrap_outcome,
)
from oauth2_authorizer.request import build_token_request
from oauth2_authorizer.response import interpret_response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _default_client_factory() -> httpx.Client:
    return httpx.Client(timeout=DEFAULT_TIMEOUT)


def log_outcome(outcome: TokenOutcome, endpoint: str) -> None:
    """Log the outcome of an exchange without revealing any secret."""
    if isinstance(outcome, TokenAcquired):
        logger.info(
            "Acquired %s token from %s (expires_in=%s)",
            outcome.token.token_type or "access",
            endpoint,
            outcome.token.expires_in,
        )
    elif isinstance(outcome, ProtocolFailure):
        logger.warning(
            "Token endpoint %s answered with status %s", endpoint, outcome.status_code
        )
    elif outcome.reason != NoTokenReason.CANCELLED:
        logger.warning("No token obtained from %s: %s", endpoint, outcome.reason.value)


class Authorizer:
    """Acquire OAuth2 access tokens from a token endpoint.

    Args:
        options: Resolved authorizer options.
        client_factory: Zero-argument callable returning a fresh
            :class:`httpx.Client`. The client is closed after each call.
            Defaults to a plain client with a 30-second timeout.

    Example::

        authorizer = Authorizer(AuthorizerOptions(
            token_endpoint_uri="https://auth.example.com/token",
            client_id="cid",
            client_secret="secret",
        ))
        token = authorizer.get_token()
        headers = {"Authorization": token.authorization_header()}
    """

    def __init__(
        self,
        options: AuthorizerOptions,
        client_factory: Optional[Callable[[], httpx.Client]] = None,
    ) -> None:
        if options is None:
            raise TypeError("options cannot be None")
        self._options = options
        self._client_factory = client_factory or _default_client_factory

    @property
    def options(self) -> AuthorizerOptions:
        return self._options

    def acquire(
        self,
        grant_type: Optional[Union[GrantType, str]] = None,
        refresh_token: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> TokenOutcome:
        """Perform one token exchange and return its tagged outcome.

        Never raises for protocol failures and never calls ``on_error``.

        Args:
            grant_type: Grant to perform; defaults to ``options.grant_type``.
            refresh_token: Required for the refresh token grant.
            cancel: Optional event; if set when the response completes, the
                outcome is ``NoToken(CANCELLED)``.

        Returns:
            A :data:`~oauth2_authorizer.outcomes.TokenOutcome`.

        Raises:
            ConfigurationError: Before any request is sent, if the options
                or arguments are unusable.
            TransportError: On network-level failures.
        """
        request = build_token_request(self._options, grant_type, refresh_token)
        logger.debug("POST %s", request.url)

        try:
            with self._client_factory() as client:
                response = client.post(
                    request.url, headers=request.headers, **request.body_kwargs()
                )
                if cancel is not None and cancel.is_set():
                    logger.debug("Token request to %s cancelled", request.url)
                    return NoToken(NoTokenReason.CANCELLED)
                outcome = interpret_response(
                    response.status_code,
                    response.text,
                    self._options.access_token_response_options,
                )
        except httpx.HTTPError as exc:
            raise TransportError(f"Token request failed: {exc}") from exc

        log_outcome(outcome, request.url)
        return outcome

    def get_token(
        self,
        grant_type: Optional[Union[GrantType, str]] = None,
        refresh_token: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[TokenResponse]:
        """Acquire a token, returning ``None`` when none was obtained.

        ``None`` covers cancellation, a response without an access token,
        and a failed custom-mapping conversion; use :meth:`acquire` to tell
        them apart.

        Raises:
            ConfigurationError: If the options or arguments are unusable.
            OAuthProtocolError: On a non-success status when no
                ``on_error`` callback is configured. With a callback, the
                callback receives ``(status_code, body)`` and ``None`` is
                returned.
            TransportError: On network-level failures.
        """
        outcome = self.acquire(grant_type, refresh_token, cancel)
        return unwrap_outcome(outcome, self._options.on_error)
