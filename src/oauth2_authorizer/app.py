"""Typer application and CLI entry point for oauth2-authorizer.

The ``token`` command resolves :class:`~oauth2_authorizer.models.AuthorizerOptions`
from an options file, ``OAUTH2_AUTHORIZER_*`` environment variables, and
flags (see :func:`~oauth2_authorizer.config.resolve_options`), performs one
token exchange, and prints the normalised token to stdout.

Typical usage::

    oauth2-authorizer token --config auth.yaml --json
    curl -H "Authorization: $(oauth2-authorizer token -c auth.yaml --header)" ...

Failures exit with the codes in :mod:`oauth2_authorizer.exit_codes`.
"""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from oauth2_authorizer import __version__
from oauth2_authorizer.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_NO_TOKEN,
    EXIT_PROTOCOL_ERROR,
)
from oauth2_authorizer.models import GrantType


app = typer.Typer(
    name="oauth2-authorizer",
    help="Acquire OAuth2 access tokens from a token endpoint.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"oauth2-authorizer {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Initialise output formatting and logging from the global flags."""
    from oauth2_authorizer.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


@app.command("token")
def token_command(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Options file (JSON or YAML)."
    ),
    grant_type: Optional[GrantType] = typer.Option(
        None, "--grant-type", "-g", help="Grant type (defaults to the configured one)."
    ),
    refresh_token: Optional[str] = typer.Option(
        None, "--refresh-token", help="Refresh token for the refresh_token grant."
    ),
    token_url: Optional[str] = typer.Option(
        None, "--token-url", help="Token endpoint URL."
    ),
    client_id: Optional[str] = typer.Option(None, "--client-id", help="Client id."),
    client_secret: Optional[str] = typer.Option(
        None, "--client-secret", help="Client secret."
    ),
    username: Optional[str] = typer.Option(None, "--username", help="Resource owner username."),
    password: Optional[str] = typer.Option(None, "--password", help="Resource owner password."),
    scope: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="Scope to request (repeatable)."
    ),
    resource: Optional[str] = typer.Option(None, "--resource", help="Resource indicator."),
    header: bool = typer.Option(
        False, "--header", help="Print only the Authorization header value."
    ),
) -> None:
    """Acquire a token and print it.

    Args:
        config: Path to an options file.
        grant_type: Grant to perform instead of the configured default.
        refresh_token: Refresh token, required for ``--grant-type refresh_token``.
        token_url: Overrides ``token_endpoint_uri``.
        client_id: Overrides ``client_id``.
        client_secret: Overrides ``client_secret``.
        username: Overrides ``username``.
        password: Overrides ``password``.
        scope: Overrides ``scope``.
        resource: Overrides ``resource``.
        header: Print ``<type> <token>`` only, for use in scripts.

    Raises:
        typer.Exit: With the mapped exit code on any failure.

    Example::

        oauth2-authorizer token -c auth.yaml -g refresh_token --refresh-token r1
    """
    from oauth2_authorizer.authorizer import Authorizer
    from oauth2_authorizer.config import resolve_options
    from oauth2_authorizer.exceptions import AuthorizerError
    from oauth2_authorizer.outcomes import NoToken, ProtocolFailure
    from oauth2_authorizer.output import debug, error, format_record, print_data, suggest

    overrides: dict[str, Any] = {
        "token_endpoint_uri": token_url,
        "client_id": client_id,
        "client_secret": client_secret,
        "username": username,
        "password": password,
        "scope": scope or None,
        "resource": resource,
    }

    try:
        options = resolve_options(config, overrides)
        debug(f"Requesting token from {options.token_endpoint_uri}")
        outcome = Authorizer(options).acquire(grant_type, refresh_token)
    except AuthorizerError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if isinstance(outcome, ProtocolFailure):
        error(f"Token endpoint answered with status {outcome.status_code}")
        if outcome.body:
            error(outcome.body)
        raise typer.Exit(code=EXIT_PROTOCOL_ERROR)

    if isinstance(outcome, NoToken):
        error(f"No access token obtained ({outcome.reason.value})")
        suggest("Check access_token_response_options against the server's response")
        raise typer.Exit(code=EXIT_NO_TOKEN)

    token = outcome.token
    if header:
        print_data(token.authorization_header())
        return
    format_record(token.model_dump(), title="Token")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``oauth2-authorizer`` console script.

    Unhandled :class:`~oauth2_authorizer.exceptions.AuthorizerError`
    instances cause a clean exit with the error's ``exit_code``.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from oauth2_authorizer.exceptions import AuthorizerError
        from oauth2_authorizer.output import error

        if isinstance(exc, AuthorizerError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
