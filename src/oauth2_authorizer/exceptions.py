"""Exception hierarchy for oauth2-authorizer.

All exceptions inherit from :class:`AuthorizerError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`oauth2_authorizer.exit_codes`. The CLI entry point in
:mod:`oauth2_authorizer.app` catches ``AuthorizerError`` and exits with the
appropriate code.

Subclass hierarchy::

    AuthorizerError (exit 1)
    +-- ConfigurationError         (exit 2)
    |   +-- InvalidArgumentError
    |   +-- UnsupportedGrantTypeError
    +-- OAuthProtocolError         (exit 3)
    +-- TransportError             (exit 6)

Configuration errors are always raised before a request is sent.
"""

from __future__ import annotations

from oauth2_authorizer.exit_codes import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_PROTOCOL_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class AuthorizerError(Exception):
    """Base exception for all oauth2-authorizer errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(AuthorizerError):
    """Raised for invalid options: missing endpoint, missing credentials, bad config files."""

    exit_code = EXIT_CONFIGURATION_ERROR


class InvalidArgumentError(ConfigurationError):
    """Raised when a call argument is unusable (e.g. a blank refresh token)."""


class UnsupportedGrantTypeError(ConfigurationError):
    """Raised when the requested grant type has no builder."""


class OAuthProtocolError(AuthorizerError):
    """Raised when the token endpoint answers with a non-success status.

    Args:
        status_code: The HTTP status code returned by the token endpoint.
        body: The raw response body, undecoded.
    """

    exit_code = EXIT_PROTOCOL_ERROR

    def __init__(self, status_code: int, body: str):
        super().__init__(
            f"Token request failed with status {status_code}: {body}"
        )
        self.status_code = status_code
        self.body = body


class TransportError(AuthorizerError):
    """Raised on network-level failures while talking to the token endpoint."""

    exit_code = EXIT_TRANSPORT_ERROR
