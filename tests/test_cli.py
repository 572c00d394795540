"""Tests for the oauth2-authorizer command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from oauth2_authorizer import __version__
from oauth2_authorizer.app import app
from oauth2_authorizer.exit_codes import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_NO_TOKEN,
    EXIT_PROTOCOL_ERROR,
)


TOKEN_URL = "https://auth.example.com/oauth/token"


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _fake_transport(token_endpoint, monkeypatch: pytest.MonkeyPatch) -> None:
    """Route the default client factory to the fake token endpoint."""
    monkeypatch.setattr(
        "oauth2_authorizer.authorizer._default_client_factory", token_endpoint.client
    )
    for var in ("OAUTH2_AUTHORIZER_TOKEN_URL", "OAUTH2_AUTHORIZER_CLIENT_ID",
                "OAUTH2_AUTHORIZER_CLIENT_SECRET", "OAUTH2_AUTHORIZER_SCOPE"):
        monkeypatch.delenv(var, raising=False)


def _credential_flags() -> list[str]:
    return ["--token-url", TOKEN_URL, "--client-id", "cid", "--client-secret", "secret"]


class TestTokenCommand:
    def test_json_output(self, cli_runner: CliRunner, token_endpoint) -> None:
        result = cli_runner.invoke(app, ["--json", "--no-color", "token", *_credential_flags()])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["access_token"] == "test-access-token"
        assert data["expires_in"] == 3600
        assert token_endpoint.form() == {"grant_type": "client_credentials"}

    def test_plain_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--plain", "--no-color", "token", *_credential_flags()])

        assert result.exit_code == 0, result.output
        assert "access_token\ttest-access-token" in result.stdout
        assert "refresh_token" not in result.stdout

    def test_header_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--no-color", "token", *_credential_flags(), "--header"])

        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "Bearer test-access-token"

    def test_scope_flags(self, cli_runner: CliRunner, token_endpoint) -> None:
        result = cli_runner.invoke(
            app,
            ["--json", "token", *_credential_flags(), "--scope", "read", "-s", "write"],
        )

        assert result.exit_code == 0, result.output
        assert token_endpoint.form()["scope"] == "read write"

    def test_config_file(self, cli_runner: CliRunner, token_endpoint, tmp_path: Path) -> None:
        config = tmp_path / "auth.yaml"
        config.write_text(
            f"token_endpoint_uri: {TOKEN_URL}\n"
            "client_id: cid\n"
            "client_secret: secret\n"
            "credentials_transport_method: form_request_body\n"
        )
        result = cli_runner.invoke(
            app,
            ["--json", "token", "-c", str(config), "-g", "refresh_token", "--refresh-token", "r1"],
        )

        assert result.exit_code == 0, result.output
        assert token_endpoint.form() == {"grant_type": "refresh_token", "refresh_token": "r1"}

    def test_missing_endpoint(self, cli_runner: CliRunner, token_endpoint) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "token", "--client-id", "cid", "--client-secret", "s"]
        )

        assert result.exit_code == EXIT_CONFIGURATION_ERROR
        assert "token_endpoint_uri" in result.output
        assert token_endpoint.requests == []

    def test_blank_refresh_token(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "token", *_credential_flags(), "-g", "refresh_token"]
        )
        assert result.exit_code == EXIT_CONFIGURATION_ERROR

    def test_protocol_error(self, cli_runner: CliRunner, token_endpoint) -> None:
        token_endpoint.status_code = 401
        token_endpoint.text_body = "invalid_client"

        result = cli_runner.invoke(app, ["--no-color", "token", *_credential_flags()])

        assert result.exit_code == EXIT_PROTOCOL_ERROR
        assert "401" in result.output
        assert "invalid_client" in result.output

    def test_no_token(self, cli_runner: CliRunner, token_endpoint) -> None:
        token_endpoint.json_body = {"token_type": "Bearer"}

        result = cli_runner.invoke(app, ["--no-color", "token", *_credential_flags()])

        assert result.exit_code == EXIT_NO_TOKEN
        assert "invalid_response" in result.output


class TestVersion:
    def test_version_flag(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
