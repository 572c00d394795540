"""Options loading with credential sources and precedence resolution.

This module turns on-disk configuration into
:class:`~oauth2_authorizer.models.AuthorizerOptions`:

* **Options files** -- JSON (``.json``) or YAML (``.yaml`` / ``.yml``)
  documents whose keys are the ``AuthorizerOptions`` field names. See
  :func:`load_options`.
* **Credential sources** -- ``client_id_source``, ``client_secret_source``,
  ``username_source``, and ``password_source`` keys hold a descriptor
  resolved by :func:`resolve_credential` instead of a literal secret.
* **Precedence resolution** -- :func:`resolve_options` merges explicit
  overrides (CLI flags), ``OAUTH2_AUTHORIZER_*`` environment variables, and
  the options file.

Example options file::

    token_endpoint_uri: https://auth.example.com/oauth/token
    grant_type: client_credentials
    client_id_source: env:MY_CLIENT_ID
    client_secret_source: file:~/.secrets/client_secret
    scope: [read, write]
    credentials_key_names:
      username: user
"""

from __future__ import annotations

import getpass
import json
import os
import sys
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from oauth2_authorizer.exceptions import ConfigurationError
from oauth2_authorizer.models import AuthorizerOptions

_ENV_PREFIX = "OAUTH2_AUTHORIZER_"

_SOURCE_KEYS = {
    "client_id_source": "client_id",
    "client_secret_source": "client_secret",
    "username_source": "username",
    "password_source": "password",
}

# Environment variable suffix -> options key.
_ENV_KEYS = {
    "TOKEN_URL": "token_endpoint_uri",
    "GRANT_TYPE": "grant_type",
    "CLIENT_ID": "client_id",
    "CLIENT_SECRET": "client_secret",
    "USERNAME": "username",
    "PASSWORD": "password",
    "SCOPE": "scope",
    "RESOURCE": "resource",
}


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)

    Args:
        source: The source descriptor string.

    Returns:
        The resolved credential string.

    Raises:
        ConfigurationError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigurationError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigurationError(f"Unknown credential source format: {source}")


# --- Options files ---


def read_options_file(path: Path) -> dict[str, Any]:
    """Read a JSON or YAML options file into a plain dict.

    Raises:
        ConfigurationError: If the file is missing, unparsable, or not a
            mapping.
    """
    if not path.is_file():
        raise ConfigurationError(f"Options file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Invalid options file at {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Options file {path} must contain a mapping")
    return data


def build_options(data: dict[str, Any]) -> AuthorizerOptions:
    """Validate a raw options mapping, resolving ``*_source`` descriptors.

    A literal value (e.g. ``client_id``) wins over its ``*_source``
    counterpart when both are present.

    Raises:
        ConfigurationError: If a source cannot be resolved or the mapping
            fails validation.
    """
    data = dict(data)
    for source_key, target_key in _SOURCE_KEYS.items():
        source = data.pop(source_key, None)
        if source and data.get(target_key) is None:
            data[target_key] = resolve_credential(source)
    try:
        return AuthorizerOptions.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid authorizer options: {exc}") from exc


def load_options(path: Path | str) -> AuthorizerOptions:
    """Load and validate :class:`AuthorizerOptions` from a file."""
    return build_options(read_options_file(Path(path)))


# --- Precedence resolution ---


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for suffix, key in _ENV_KEYS.items():
        value = os.environ.get(_ENV_PREFIX + suffix)
        if not value:
            continue
        overrides[key] = value.split() if key == "scope" else value
    return overrides


def resolve_options(
    config_path: Optional[Path | str] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> AuthorizerOptions:
    """Resolve options with the full precedence chain.

    Precedence (high to low):
        1. *overrides* (CLI flags); ``None`` values are ignored
        2. Environment variables (``OAUTH2_AUTHORIZER_TOKEN_URL``,
           ``OAUTH2_AUTHORIZER_CLIENT_ID``, ``OAUTH2_AUTHORIZER_SCOPE``, ...)
        3. The options file at *config_path*
        4. Model defaults

    Returns:
        The validated :class:`AuthorizerOptions`.

    Raises:
        ConfigurationError: If any layer is invalid.
    """
    data: dict[str, Any] = {}
    if config_path is not None:
        data.update(read_options_file(Path(config_path)))

    # Higher layers replace literal values and any matching *_source key.
    for layer in (_env_overrides(), overrides or {}):
        for key, value in layer.items():
            if value is None:
                continue
            data[key] = value
            data.pop(f"{key}_source", None)

    return build_options(data)
