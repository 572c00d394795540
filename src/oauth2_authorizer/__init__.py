"""oauth2_authorizer -- client-side OAuth2 token acquisition.

Negotiates an access token with a remote authorization server using the
client credentials, resource owner password credentials, or refresh token
grant, and returns a normalised :class:`TokenResponse` that an HTTP request
pipeline can attach as bearer authentication.

Typical usage::

    from oauth2_authorizer import Authorizer, AuthorizerOptions

    authorizer = Authorizer(AuthorizerOptions(
        token_endpoint_uri="https://auth.example.com/oauth/token",
        client_id="my-client",
        client_secret="s3cret",
    ))
    token = authorizer.get_token()

Modules:
    authorizer: Blocking :class:`Authorizer`.
    async_authorizer: Non-blocking :class:`AsyncAuthorizer`.
    request: Grant dispatch, credential transport, and body encoding.
    response: Token response parsing and normalisation.
    outcomes: Tagged exchange outcomes.
    models: Pydantic models and enumerations.
    config: Options files, credential sources, and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from oauth2_authorizer.async_authorizer import AsyncAuthorizer  # noqa: E402
from oauth2_authorizer.authorizer import Authorizer  # noqa: E402
from oauth2_authorizer.exceptions import (  # noqa: E402
    AuthorizerError,
    ConfigurationError,
    InvalidArgumentError,
    OAuthProtocolError,
    TransportError,
    UnsupportedGrantTypeError,
)
from oauth2_authorizer.models import (  # noqa: E402
    AccessTokenResponseOptions,
    AuthorizerOptions,
    CredentialsTransportMethod,
    GrantType,
    ResponseKeyNames,
    TokenRequestContentType,
    TokenResponse,
)
from oauth2_authorizer.outcomes import (  # noqa: E402
    NoToken,
    NoTokenReason,
    ProtocolFailure,
    TokenAcquired,
    TokenOutcome,
)

__all__ = [
    "AccessTokenResponseOptions",
    "AsyncAuthorizer",
    "Authorizer",
    "AuthorizerError",
    "AuthorizerOptions",
    "ConfigurationError",
    "CredentialsTransportMethod",
    "GrantType",
    "InvalidArgumentError",
    "NoToken",
    "NoTokenReason",
    "OAuthProtocolError",
    "ProtocolFailure",
    "ResponseKeyNames",
    "TokenAcquired",
    "TokenOutcome",
    "TokenRequestContentType",
    "TokenResponse",
    "TransportError",
    "UnsupportedGrantTypeError",
]
