"""Token request preparation -- grant dispatch, credential transport, encoding.

Everything in this module is pure: it turns :class:`AuthorizerOptions` plus
the per-call grant type and refresh token into a :class:`TokenRequest`
without touching the network. Both
:class:`~oauth2_authorizer.authorizer.Authorizer` and
:class:`~oauth2_authorizer.async_authorizer.AsyncAuthorizer` send the result
through their own client, so every precondition failure surfaces as a
:class:`~oauth2_authorizer.exceptions.ConfigurationError` before any client
exists.

Preparation runs in three steps:

1. :func:`build_grant_properties` -- validates the endpoint and the grant's
   required credentials and builds the grant-specific property set.
2. :func:`apply_credentials_transport` -- places the primary credential
   pair in a Basic ``Authorization`` header or in the property set.
3. :func:`build_token_request` -- appends ``scope`` and ``resource``,
   rewrites the query string when requested, and fixes the body encoding.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from oauth2_authorizer.exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    UnsupportedGrantTypeError,
)
from oauth2_authorizer.models import (
    CREDENTIALS_KEY_CLIENT_ID,
    CREDENTIALS_KEY_CLIENT_SECRET,
    CREDENTIALS_KEY_GRANT_TYPE,
    CREDENTIALS_KEY_PASSWORD,
    CREDENTIALS_KEY_REFRESH_TOKEN,
    CREDENTIALS_KEY_RESOURCE,
    CREDENTIALS_KEY_SCOPE,
    CREDENTIALS_KEY_USERNAME,
    AuthorizerOptions,
    CredentialsTransportMethod,
    GrantType,
    TokenRequestContentType,
)

logger = logging.getLogger(__name__)

APPLICATION_JSON = "application/json"


@dataclass(frozen=True)
class TokenRequest:
    """A fully prepared token endpoint request.

    Attributes:
        url: Absolute token endpoint URL, including the grant type query
            string when configured.
        headers: ``Accept`` plus, for Basic transport, ``Authorization``.
        properties: Flat wire-name -> value mapping sent as the body.
        content_type: Body encoding.
    """

    url: str
    headers: dict[str, str]
    properties: dict[str, str]
    content_type: TokenRequestContentType

    def body_kwargs(self) -> dict[str, Any]:
        """Return the ``httpx`` keyword arguments that encode the body."""
        if self.content_type == TokenRequestContentType.FORM_URL_ENCODED:
            return {"data": self.properties}
        if self.content_type == TokenRequestContentType.APPLICATION_JSON:
            return {"json": self.properties}
        raise ConfigurationError(
            f"Current value for 'token_request_content_type' is not valid: {self.content_type!r}"
        )


def coerce_grant_type(value: Union[GrantType, str]) -> GrantType:
    """Turn *value* into a :class:`GrantType`.

    Raises:
        UnsupportedGrantTypeError: If *value* names no known grant type.
    """
    if isinstance(value, GrantType):
        return value
    try:
        return GrantType(value)
    except ValueError:
        raise UnsupportedGrantTypeError(
            f"Requested grant-type '{value}' is not supported."
        ) from None


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _require_absolute_endpoint(options: AuthorizerOptions) -> None:
    if options.token_endpoint_uri is None:
        raise ConfigurationError("token_endpoint_uri option cannot be None.")
    try:
        url = httpx.URL(options.token_endpoint_uri)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(
            f"token_endpoint_uri is not a valid URL: {exc}"
        ) from exc
    if not url.is_absolute_url:
        raise ConfigurationError("token_endpoint_uri must be an absolute URL.")


def _client_credentials_properties(options: AuthorizerOptions) -> dict[str, str]:
    if not options.client_id:
        raise ConfigurationError("client_id cannot be empty.")
    if not options.client_secret:
        raise ConfigurationError("client_secret cannot be empty.")

    properties = {
        options.key_name(CREDENTIALS_KEY_GRANT_TYPE): GrantType.CLIENT_CREDENTIALS.value,
    }
    # Some servers scope client credentials tokens to a user context.
    if not _is_blank(options.username):
        properties[options.key_name(CREDENTIALS_KEY_USERNAME)] = options.username
    if not _is_blank(options.password):
        properties[options.key_name(CREDENTIALS_KEY_PASSWORD)] = options.password
    return properties


def _password_properties(options: AuthorizerOptions) -> dict[str, str]:
    if not options.username:
        raise ConfigurationError("username cannot be empty.")
    if not options.password:
        raise ConfigurationError("password cannot be empty.")

    properties = {
        options.key_name(CREDENTIALS_KEY_GRANT_TYPE): (
            GrantType.RESOURCE_OWNER_PASSWORD_CREDENTIALS.value
        ),
    }
    if not _is_blank(options.client_id):
        properties[options.key_name(CREDENTIALS_KEY_CLIENT_ID)] = options.client_id
    if not _is_blank(options.client_secret):
        properties[options.key_name(CREDENTIALS_KEY_CLIENT_SECRET)] = options.client_secret
    return properties


def _refresh_token_properties(
    options: AuthorizerOptions, refresh_token: Optional[str]
) -> dict[str, str]:
    if _is_blank(refresh_token):
        raise InvalidArgumentError("refresh_token cannot be blank.")
    return {
        options.key_name(CREDENTIALS_KEY_GRANT_TYPE): GrantType.REFRESH_TOKEN.value,
        options.key_name(CREDENTIALS_KEY_REFRESH_TOKEN): refresh_token,
    }


def build_grant_properties(
    options: AuthorizerOptions,
    grant_type: GrantType,
    refresh_token: Optional[str] = None,
) -> dict[str, str]:
    """Validate preconditions and build the grant-specific property set.

    Args:
        options: Resolved authorizer options.
        grant_type: The grant to perform.
        refresh_token: Required for :attr:`GrantType.REFRESH_TOKEN`.

    Returns:
        A mapping of wire field names to values.

    Raises:
        ConfigurationError: If the endpoint is missing or relative, or a
            required credential is empty.
        InvalidArgumentError: If *refresh_token* is blank for the refresh
            grant.
        UnsupportedGrantTypeError: For an unknown grant type.
    """
    _require_absolute_endpoint(options)

    if grant_type == GrantType.CLIENT_CREDENTIALS:
        return _client_credentials_properties(options)
    if grant_type == GrantType.RESOURCE_OWNER_PASSWORD_CREDENTIALS:
        return _password_properties(options)
    if grant_type == GrantType.REFRESH_TOKEN:
        return _refresh_token_properties(options, refresh_token)
    raise UnsupportedGrantTypeError(
        f"Requested grant-type '{grant_type}' is not supported."
    )


def basic_authorization_value(left: str, right: str) -> str:
    """Return ``Basic base64("<left>:<right>")`` using UTF-8."""
    encoded = base64.b64encode(f"{left}:{right}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def apply_credentials_transport(
    options: AuthorizerOptions,
    grant_type: GrantType,
    properties: dict[str, str],
) -> dict[str, str]:
    """Place the primary credential pair according to the transport method.

    Mutates *properties* for :attr:`CredentialsTransportMethod.FORM_REQUEST_BODY`.
    The refresh grant's body is unaffected by the choice of transport; with
    Basic transport it still authenticates the client when ``client_id`` is
    configured.

    Returns:
        Extra request headers (``Authorization`` for Basic transport).

    Raises:
        ConfigurationError: For an unknown transport method.
    """
    method = options.credentials_transport_method
    password_grant = grant_type == GrantType.RESOURCE_OWNER_PASSWORD_CREDENTIALS

    if method == CredentialsTransportMethod.BASIC_AUTHENTICATION_HEADER:
        if password_grant:
            left, right = options.username, options.password
        else:
            left, right = options.client_id, options.client_secret
        # A refresh without a configured client has nobody to authenticate.
        if grant_type == GrantType.REFRESH_TOKEN and not left:
            return {}
        return {"Authorization": basic_authorization_value(left or "", right or "")}

    if method == CredentialsTransportMethod.FORM_REQUEST_BODY:
        if grant_type == GrantType.CLIENT_CREDENTIALS:
            properties[options.key_name(CREDENTIALS_KEY_CLIENT_ID)] = options.client_id
            properties[options.key_name(CREDENTIALS_KEY_CLIENT_SECRET)] = options.client_secret
        elif password_grant:
            properties[options.key_name(CREDENTIALS_KEY_USERNAME)] = options.username
            properties[options.key_name(CREDENTIALS_KEY_PASSWORD)] = options.password
        return {}

    raise ConfigurationError(
        f"Current value for 'credentials_transport_method' is not valid: {method!r}"
    )


def build_token_request(
    options: AuthorizerOptions,
    grant_type: Optional[Union[GrantType, str]] = None,
    refresh_token: Optional[str] = None,
) -> TokenRequest:
    """Prepare the complete token request for one exchange.

    Args:
        options: Resolved authorizer options.
        grant_type: Grant to perform; defaults to ``options.grant_type``.
        refresh_token: Refresh token for the refresh grant.

    Returns:
        The :class:`TokenRequest` to send.

    Raises:
        ConfigurationError: On any precondition or option failure. Nothing
            has been sent when this is raised.
    """
    effective = coerce_grant_type(grant_type if grant_type is not None else options.grant_type)
    logger.debug("Preparing %s token request", effective.value)

    properties = build_grant_properties(options, effective, refresh_token)
    headers = apply_credentials_transport(options, effective, properties)
    # JSON responses are requested regardless of the request content type.
    headers["Accept"] = APPLICATION_JSON

    if options.scope is not None:
        properties[options.key_name(CREDENTIALS_KEY_SCOPE)] = " ".join(options.scope)
    if options.resource is not None:
        properties[options.key_name(CREDENTIALS_KEY_RESOURCE)] = options.resource

    url = httpx.URL(options.token_endpoint_uri)
    if options.set_grant_type_on_query_string:
        grant_key = options.key_name(CREDENTIALS_KEY_GRANT_TYPE)
        url = url.copy_with(params={grant_key: properties[grant_key]})

    content_type = options.token_request_content_type
    if content_type not in (
        TokenRequestContentType.FORM_URL_ENCODED,
        TokenRequestContentType.APPLICATION_JSON,
    ):
        raise ConfigurationError(
            f"Current value for 'token_request_content_type' is not valid: {content_type!r}"
        )

    return TokenRequest(
        url=str(url),
        headers=headers,
        properties=properties,
        content_type=content_type,
    )
