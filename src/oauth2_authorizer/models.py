"""Canonical Pydantic models shared across all oauth2_authorizer modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- built once and read-only afterwards:
    :class:`AuthorizerOptions`, :class:`AccessTokenResponseOptions`, and
    :class:`ResponseKeyNames`, plus the :class:`GrantType`,
    :class:`CredentialsTransportMethod`, and :class:`TokenRequestContentType`
    enumerations.

**Result models** -- produced by a token exchange:
    :class:`TokenResponse`.

All models are frozen. Partial ``credentials_key_names`` overrides are merged
with the defaults during validation, so a constructed
:class:`AuthorizerOptions` always knows the wire name of every well-known
credential key.
"""

from __future__ import annotations

import enum
import json
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Enumerations ---


class GrantType(str, enum.Enum):
    """OAuth2 grant types. Values are the literal ``grant_type`` wire values."""

    CLIENT_CREDENTIALS = "client_credentials"
    RESOURCE_OWNER_PASSWORD_CREDENTIALS = "password"
    REFRESH_TOKEN = "refresh_token"


class CredentialsTransportMethod(str, enum.Enum):
    """Where the primary credential pair is placed on the wire."""

    BASIC_AUTHENTICATION_HEADER = "basic_authentication_header"
    FORM_REQUEST_BODY = "form_request_body"


class TokenRequestContentType(str, enum.Enum):
    """How the token request properties are serialised into the body."""

    FORM_URL_ENCODED = "form_url_encoded"
    APPLICATION_JSON = "application_json"


# --- Credential key names ---

CREDENTIALS_KEY_GRANT_TYPE = "grant_type"
CREDENTIALS_KEY_USERNAME = "username"
CREDENTIALS_KEY_PASSWORD = "password"
CREDENTIALS_KEY_REFRESH_TOKEN = "refresh_token"
CREDENTIALS_KEY_CLIENT_ID = "client_id"
CREDENTIALS_KEY_CLIENT_SECRET = "client_secret"
CREDENTIALS_KEY_SCOPE = "scope"
CREDENTIALS_KEY_RESOURCE = "resource"

CREDENTIALS_KEYS: tuple[str, ...] = (
    CREDENTIALS_KEY_GRANT_TYPE,
    CREDENTIALS_KEY_USERNAME,
    CREDENTIALS_KEY_PASSWORD,
    CREDENTIALS_KEY_REFRESH_TOKEN,
    CREDENTIALS_KEY_CLIENT_ID,
    CREDENTIALS_KEY_CLIENT_SECRET,
    CREDENTIALS_KEY_SCOPE,
    CREDENTIALS_KEY_RESOURCE,
)


def default_credentials_key_names() -> dict[str, str]:
    """Return the identity mapping for every well-known credential key."""
    return {key: key for key in CREDENTIALS_KEYS}


# --- Token response ---


class TokenResponse(BaseModel):
    """Normalised result of a successful token exchange.

    Field names match the canonical OAuth2 JSON names (:rfc:`6749` section
    5.1), so a standard token endpoint response validates directly into this
    model. Unknown fields in the response are ignored.

    Example::

        token = TokenResponse.model_validate_json(
            '{"access_token": "abc", "token_type": "Bearer", "expires_in": 3600}'
        )
        assert token.authorization_header() == "Bearer abc"
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[float] = Field(
        default=None, description="Access token lifetime in seconds"
    )
    scope: Optional[str] = None
    refresh_token: Optional[str] = None
    refresh_token_expires_in: Optional[float] = Field(
        default=None, description="Refresh token lifetime in seconds"
    )

    def authorization_header(self) -> str:
        """Return the ``Authorization`` header value for this token.

        Uses the server-supplied ``token_type`` and falls back to
        ``Bearer`` when the server omitted it.
        """
        return f"{self.token_type or 'Bearer'} {self.access_token}"


# --- Custom response mapping ---


class ResponseKeyNames(BaseModel):
    """Wire field names for each :class:`TokenResponse` field.

    Used when the authorization server answers with a non-standard JSON
    shape, e.g. ``{"tok": "...", "exp": "3600"}``. Every name defaults to
    the canonical OAuth2 field name.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = "access_token"
    token_type: str = "token_type"
    expires_in: str = "expires_in"
    scope: str = "scope"
    refresh_token: str = "refresh_token"
    refresh_token_expires_in: str = "refresh_token_expires_in"


def _deserialize_json_object(body: str) -> Optional[dict[str, Any]]:
    """Decode *body* as a JSON object, returning ``None`` for anything else."""
    try:
        data = json.loads(body)
    except (ValueError, TypeError, RecursionError):
        return None
    if not isinstance(data, dict):
        return None
    return data


class AccessTokenResponseOptions(BaseModel):
    """Custom response-shape descriptor.

    Args:
        key_names: Wire names for each token field.
        deserializer: Optional callable turning the raw response body into a
            string-keyed mapping. Defaults to JSON object decoding.
    """

    model_config = ConfigDict(frozen=True)

    key_names: ResponseKeyNames = Field(default_factory=ResponseKeyNames)
    deserializer: Optional[Callable[[str], dict[str, Any]]] = Field(
        default=None, exclude=True
    )

    def try_deserialize(self, body: str) -> Optional[dict[str, Any]]:
        """Deserialise *body* into a mapping, or ``None`` if it cannot be decoded."""
        if self.deserializer is None:
            return _deserialize_json_object(body)
        try:
            data = self.deserializer(body)
        except (ValueError, TypeError, RecursionError):
            return None
        if not isinstance(data, dict):
            return None
        return data


# --- Authorizer options ---


class AuthorizerOptions(BaseModel):
    """Configuration for :class:`~oauth2_authorizer.authorizer.Authorizer`.

    Options are validated once and are read-only afterwards. Endpoint and
    credential requirements depend on the grant type and are therefore
    checked when a token is requested, not here.

    Example::

        AuthorizerOptions(
            token_endpoint_uri="https://auth.example.com/oauth/token",
            client_id="my-client",
            client_secret="s3cret",
            scope=["read", "write"],
            credentials_key_names={"username": "user"},
        )
    """

    model_config = ConfigDict(frozen=True)

    token_endpoint_uri: Optional[str] = Field(
        default=None, description="Absolute URL of the token endpoint"
    )
    grant_type: GrantType = GrantType.CLIENT_CREDENTIALS
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    scope: Optional[list[str]] = None
    resource: Optional[str] = Field(
        default=None, description="Resource indicator sent with the request"
    )
    credentials_transport_method: CredentialsTransportMethod = (
        CredentialsTransportMethod.BASIC_AUTHENTICATION_HEADER
    )
    token_request_content_type: TokenRequestContentType = (
        TokenRequestContentType.FORM_URL_ENCODED
    )
    credentials_key_names: dict[str, str] = Field(
        default=None,
        validate_default=True,
        description="Logical credential key -> wire field name overrides",
    )
    set_grant_type_on_query_string: bool = False
    access_token_response_options: Optional[AccessTokenResponseOptions] = None
    on_error: Optional[Callable[[int, str], None]] = Field(
        default=None, exclude=True
    )

    @field_validator("credentials_key_names", mode="before")
    @classmethod
    def _merge_default_key_names(cls, value: Any) -> Any:
        if not value:
            return default_credentials_key_names()
        if not isinstance(value, dict):
            return value
        merged = dict(value)
        for key, wire_name in default_credentials_key_names().items():
            merged.setdefault(key, wire_name)
        return merged

    def key_name(self, credentials_key: str) -> str:
        """Return the wire field name for a logical credential key.

        Raises:
            KeyError: If *credentials_key* is not a known logical key.
        """
        return self.credentials_key_names[credentials_key]
