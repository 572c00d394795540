"""Asynchronous OAuth2 token acquisition -- mirrors :class:`~oauth2_authorizer.authorizer.Authorizer`.

:class:`AsyncAuthorizer` offers the same grant dispatch, credential
transport, and response normalisation as the blocking
:class:`~oauth2_authorizer.authorizer.Authorizer`, but sends the request
through an :class:`httpx.AsyncClient` so it can be awaited inside an event
loop.

Cancellation is cooperative: pass an :class:`asyncio.Event` and set it; the
event is checked once the response has arrived. Cancelling the surrounding
task still raises :class:`asyncio.CancelledError` as usual.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Union

import httpx

from oauth2_authorizer.authorizer import DEFAULT_TIMEOUT, log_outcome
from oauth2_authorizer.exceptions import TransportError
from oauth2_authorizer.models import AuthorizerOptions, GrantType, TokenResponse
from oauth2_authorizer.outcomes import (
    NoToken,
    NoTokenReason,
    TokenOutcome,
    unwrap_outcome,
)
from oauth2_authorizer.request import build_token_request
from oauth2_authorizer.response import interpret_response

logger = logging.getLogger(__name__)


def _default_client_factory() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)


class AsyncAuthorizer:
    """Acquire OAuth2 access tokens without blocking the event loop.

    Args:
        options: Resolved authorizer options.
        client_factory: Zero-argument callable returning a fresh
            :class:`httpx.AsyncClient`, closed after each call.

    Example::

        authorizer = AsyncAuthorizer(options)
        token = await authorizer.get_token()
    """

    def __init__(
        self,
        options: AuthorizerOptions,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        if options is None:
            raise TypeError("options cannot be None")
        self._options = options
        self._client_factory = client_factory or _default_client_factory

    @property
    def options(self) -> AuthorizerOptions:
        return self._options

    async def acquire(
        self,
        grant_type: Optional[Union[GrantType, str]] = None,
        refresh_token: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> TokenOutcome:
        """Perform one token exchange and return its tagged outcome.

        Behaves identically to
        :meth:`~oauth2_authorizer.authorizer.Authorizer.acquire` but is
        non-blocking.
        """
        request = build_token_request(self._options, grant_type, refresh_token)
        logger.debug("POST %s", request.url)

        try:
            async with self._client_factory() as client:
                response = await client.post(
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

    async def get_token(
        self,
        grant_type: Optional[Union[GrantType, str]] = None,
        refresh_token: Optional[str] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Optional[TokenResponse]:
        """Acquire a token, returning ``None`` when none was obtained.

        See :meth:`~oauth2_authorizer.authorizer.Authorizer.get_token` for
        the error contract.
        """
        outcome = await self.acquire(grant_type, refresh_token, cancel)
        return unwrap_outcome(outcome, self._options.on_error)
