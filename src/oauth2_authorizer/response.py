"""Token response normalisation.

Bridges the raw HTTP answer of the token endpoint and the tagged outcomes in
:mod:`oauth2_authorizer.outcomes`. Parsing happens in two explicit stages:

1. :func:`parse_response_body` produces a :data:`ParsedResponse`, either a
   :class:`StandardShape` (the body validated against the canonical OAuth2
   field names) or a :class:`CustomShape` (a string-keyed mapping produced
   by the configured deserializer).
2. :func:`normalize` turns that into a
   :class:`~oauth2_authorizer.outcomes.TokenOutcome`. Custom shapes are
   mapped field by field through :class:`Conversion` results; any failed
   conversion discards the whole token.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import ValidationError

from oauth2_authorizer.models import (
    AccessTokenResponseOptions,
    ResponseKeyNames,
    TokenResponse,
)
from oauth2_authorizer.outcomes import (
    NoToken,
    NoTokenReason,
    ProtocolFailure,
    TokenAcquired,
    TokenOutcome,
)

T = TypeVar("T")


# --- Typed conversions ---


@dataclass(frozen=True)
class Conversion(Generic[T]):
    """Result of converting one raw response value."""

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T]) -> "Conversion[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "Conversion[T]":
        return cls(error=error)


def to_seconds(raw: Any) -> Conversion[float]:
    """Convert a numeric JSON value or numeric string into seconds.

    ``None`` converts to an absent value. Booleans, blank strings,
    non-numeric text, and values that are not finite are failures.
    """
    if raw is None:
        return Conversion.success(None)
    if isinstance(raw, bool):
        return Conversion.failure(f"expected a number, got boolean {raw!r}")
    if isinstance(raw, (int, float)):
        candidate: Any = raw
    elif isinstance(raw, str):
        candidate = raw.strip()
    else:
        return Conversion.failure(f"expected a number, got {type(raw).__name__}")
    try:
        seconds = float(candidate)
    except OverflowError:
        return Conversion.failure("number out of range")
    except ValueError:
        return Conversion.failure(f"not a number: {raw!r}")
    if not math.isfinite(seconds):
        return Conversion.failure(f"not a finite number: {raw!r}")
    return Conversion.success(seconds)


def to_text(raw: Any) -> Conversion[str]:
    """Convert a raw JSON value into its string form.

    Objects and arrays are rendered back to JSON text.
    """
    if raw is None:
        return Conversion.success(None)
    if isinstance(raw, str):
        return Conversion.success(raw)
    if isinstance(raw, bool):
        return Conversion.success("true" if raw else "false")
    try:
        if isinstance(raw, (int, float)):
            return Conversion.success(str(raw))
        return Conversion.success(json.dumps(raw, ensure_ascii=False))
    except (TypeError, ValueError, RecursionError) as exc:
        return Conversion.failure(f"cannot render value as text: {exc}")


# --- Parsed shapes ---


@dataclass(frozen=True)
class StandardShape:
    token: TokenResponse


@dataclass(frozen=True)
class CustomShape:
    values: dict[str, Any]
    key_names: ResponseKeyNames


ParsedResponse = Union[StandardShape, CustomShape]


def parse_response_body(
    body: str,
    response_options: Optional[AccessTokenResponseOptions] = None,
) -> Optional[ParsedResponse]:
    """Parse a successful response body.

    Args:
        body: Raw response text.
        response_options: Custom response mapping, or ``None`` for the
            standard OAuth2 shape.

    Returns:
        The parsed shape, or ``None`` when the body cannot be decoded into
        either shape.
    """
    if response_options is None:
        try:
            return StandardShape(TokenResponse.model_validate_json(body))
        except ValidationError:
            return None

    values = response_options.try_deserialize(body)
    if values is None:
        return None
    return CustomShape(values=values, key_names=response_options.key_names)


def _token_from_custom_shape(shape: CustomShape) -> TokenOutcome:
    keys = shape.key_names
    if keys.access_token not in shape.values:
        return NoToken(NoTokenReason.MISSING_ACCESS_TOKEN)

    conversions = {
        "access_token": to_text(shape.values.get(keys.access_token)),
        "token_type": to_text(shape.values.get(keys.token_type)),
        "expires_in": to_seconds(shape.values.get(keys.expires_in)),
        "scope": to_text(shape.values.get(keys.scope)),
        "refresh_token": to_text(shape.values.get(keys.refresh_token)),
        "refresh_token_expires_in": to_seconds(
            shape.values.get(keys.refresh_token_expires_in)
        ),
    }
    if not all(conversion.ok for conversion in conversions.values()):
        return NoToken(NoTokenReason.CONVERSION_FAILED)

    access_token = conversions["access_token"].value
    if access_token is None or not access_token.strip():
        return NoToken(NoTokenReason.MISSING_ACCESS_TOKEN)

    token = TokenResponse(
        **{field: conversion.value for field, conversion in conversions.items()}
    )
    return TokenAcquired(token)


def normalize(parsed: Optional[ParsedResponse]) -> TokenOutcome:
    """Turn a parsed shape into a :data:`~oauth2_authorizer.outcomes.TokenOutcome`."""
    if parsed is None:
        return NoToken(NoTokenReason.INVALID_RESPONSE)
    if isinstance(parsed, StandardShape):
        return TokenAcquired(parsed.token)
    return _token_from_custom_shape(parsed)


def interpret_response(
    status_code: int,
    body: str,
    response_options: Optional[AccessTokenResponseOptions] = None,
) -> TokenOutcome:
    """Map a completed token endpoint response to an outcome.

    Non-2xx answers become :class:`~oauth2_authorizer.outcomes.ProtocolFailure`
    carrying the raw body; everything else goes through
    :func:`parse_response_body` and :func:`normalize`.
    """
    if not 200 <= status_code < 300:
        return ProtocolFailure(status_code=status_code, body=body)
    return normalize(parse_response_body(body, response_options))
