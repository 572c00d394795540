"""Tagged outcomes of a token exchange.

:meth:`~oauth2_authorizer.authorizer.Authorizer.acquire` returns exactly one
of three outcome types, so callers can tell every result apart without
inspecting exceptions or nullable values:

- :class:`TokenAcquired` -- the server issued a usable token.
- :class:`ProtocolFailure` -- the token endpoint answered with a
  non-success status.
- :class:`NoToken` -- the exchange yielded no token; :class:`NoTokenReason`
  says why.

:func:`unwrap_outcome` projects an outcome onto the nullable
``TokenResponse | None`` contract of ``get_token``, routing protocol
failures to the ``on_error`` callback or raising
:class:`~oauth2_authorizer.exceptions.OAuthProtocolError`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional, Union

from oauth2_authorizer.exceptions import OAuthProtocolError
from oauth2_authorizer.models import TokenResponse


class NoTokenReason(str, enum.Enum):
    """Why an exchange completed without a token."""

    CANCELLED = "cancelled"
    MISSING_ACCESS_TOKEN = "missing_access_token"
    CONVERSION_FAILED = "conversion_failed"
    INVALID_RESPONSE = "invalid_response"


@dataclass(frozen=True)
class TokenAcquired:
    token: TokenResponse


@dataclass(frozen=True)
class ProtocolFailure:
    """Non-success answer from the token endpoint, with the raw body."""

    status_code: int
    body: str

    def to_exception(self) -> OAuthProtocolError:
        return OAuthProtocolError(self.status_code, self.body)


@dataclass(frozen=True)
class NoToken:
    reason: NoTokenReason


TokenOutcome = Union[TokenAcquired, ProtocolFailure, NoToken]


def unwrap_outcome(
    outcome: TokenOutcome,
    on_error: Optional[Callable[[int, str], None]] = None,
) -> Optional[TokenResponse]:
    """Collapse *outcome* into a token or ``None``.

    Args:
        outcome: The result of a token exchange.
        on_error: Optional callback receiving ``(status_code, body)`` for
            protocol failures. When given, the failure is reported through
            it and ``None`` is returned.

    Returns:
        The :class:`TokenResponse` for :class:`TokenAcquired`, otherwise
        ``None``.

    Raises:
        OAuthProtocolError: For a :class:`ProtocolFailure` when no
            *on_error* callback is configured.
    """
    if isinstance(outcome, TokenAcquired):
        return outcome.token
    if isinstance(outcome, ProtocolFailure):
        if on_error is None:
            raise outcome.to_exception()
        on_error(outcome.status_code, outcome.body)
    return None
