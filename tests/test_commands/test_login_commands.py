"""CLI tests for ``login``, ``logout`` and ``auth status``.

The SSO flow itself is covered in ``tests/test_sso``; here ``login`` is
either patched out or, for the paste flow, run for real with only the
token endpoint replaced.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from streamctl.app import app
from streamctl.auth import CredentialEntry, CredentialStore
from streamctl.exceptions import (
    BindPortError,
    CSRFStateMismatchError,
    LoginTimeoutError,
    TokenRequestTransportError,
)

TOKEN = "eyJhbGciOiJSUzI1NiJ9.payload.signature"


@pytest.fixture()
def store(isolated_config: Path) -> CredentialStore:
    return CredentialStore("confluent.cloud")


class TestLogin:
    def test_success_stores_token(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        with patch("streamctl.sso.login", return_value=TOKEN) as mock_login:
            result = cli_runner.invoke(app, ["--no-color", "login"])

        assert result.exit_code == 0, result.output
        assert "Logged in to https://confluent.cloud." in result.output
        assert TOKEN not in result.output

        entry = store.load()
        assert entry is not None
        assert entry.auth_type == "sso"
        assert entry.credential == TOKEN
        assert entry.metadata == {"url": "https://confluent.cloud", "realm": "prod"}

        provider = mock_login.call_args.args[0]
        assert provider.realm == "prod"
        assert provider.callback_url == "http://127.0.0.1:26635/callback"
        assert mock_login.call_args.kwargs["timeout"] == 30

    def test_url_and_connection(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        with patch("streamctl.sso.login", return_value=TOKEN) as mock_login:
            result = cli_runner.invoke(
                app,
                ["login", "--url", "https://stag.cpdev.cloud", "--connection", "acme-okta"],
            )

        assert result.exit_code == 0, result.output
        assert mock_login.call_args.args[0].realm == "stag"
        assert mock_login.call_args.kwargs["connection"] == "acme-okta"
        assert CredentialStore("stag.cpdev.cloud").load() is not None

    def test_url_from_environment(
        self,
        cli_runner: CliRunner,
        isolated_config: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("STREAMCTL_URL", "https://devel.cpdev.cloud")
        with patch("streamctl.sso.login", return_value=TOKEN) as mock_login:
            result = cli_runner.invoke(app, ["login"])
        assert result.exit_code == 0, result.output
        assert mock_login.call_args.args[0].realm == "devel"

    def test_configured_timeout(self, cli_runner: CliRunner, isolated_config: Path) -> None:
        from streamctl.config import save_global_config
        from streamctl.models import GlobalConfig

        save_global_config(GlobalConfig(login_timeout=90))
        with patch("streamctl.sso.login", return_value=TOKEN) as mock_login:
            cli_runner.invoke(app, ["login"])
        assert mock_login.call_args.kwargs["timeout"] == 90

    def test_validation_failure_is_generic(
        self, cli_runner: CliRunner, store: CredentialStore
    ) -> None:
        err = CSRFStateMismatchError("state parameter was invalid")
        with patch("streamctl.sso.login", side_effect=err):
            result = cli_runner.invoke(app, ["--no-color", "login"])

        assert result.exit_code == 3
        assert "Login failed. Please try logging in again." in result.output
        assert "state parameter" not in result.output
        assert store.load() is None

    def test_detail_shown_with_verbose(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        err = CSRFStateMismatchError("state parameter was invalid")
        with patch("streamctl.sso.login", side_effect=err):
            result = cli_runner.invoke(app, ["--no-color", "-v", "login"])
        assert result.exit_code == 3
        assert "state parameter was invalid" in result.output

    def test_timeout_message(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        with patch("streamctl.sso.login", side_effect=LoginTimeoutError("timed out after 30s")):
            result = cli_runner.invoke(app, ["--no-color", "login"])
        assert result.exit_code == 3
        assert "Timed out while waiting for browser authentication" in result.output

    def test_port_in_use(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        with patch("streamctl.sso.login", side_effect=BindPortError("address in use")):
            result = cli_runner.invoke(app, ["--no-color", "login"])
        assert result.exit_code == 3
        assert "Another login may already be in progress" in result.output

    def test_transport_failure_exit_code(
        self, cli_runner: CliRunner, store: CredentialStore
    ) -> None:
        err = TokenRequestTransportError("failed to get oauth token: connection refused")
        with patch("streamctl.sso.login", side_effect=err):
            result = cli_runner.invoke(app, ["--no-color", "login"])
        assert result.exit_code == 6
        assert "connection refused" in result.output

    def test_no_browser_with_no_input_is_usage_error(
        self, cli_runner: CliRunner, isolated_config: Path
    ) -> None:
        with patch("streamctl.sso.login") as mock_login:
            result = cli_runner.invoke(app, ["--no-input", "login", "--no-browser"])
        assert result.exit_code == 2
        mock_login.assert_not_called()

    def test_no_browser_paste_flow(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        with patch("streamctl.sso.session.generate_state", return_value="known-state"), patch(
            "streamctl.sso.flow.TokenExchanger"
        ) as exchanger_cls:
            exchanger_cls.return_value.exchange.return_value = TOKEN
            result = cli_runner.invoke(
                app,
                ["--no-color", "login", "--no-browser"],
                input="known-state/PASTED-CODE\n",
            )

        assert result.exit_code == 0, result.output
        assert "https://login.confluent.io/authorize?" in result.output
        assert "cli_callback" in result.output
        assert exchanger_cls.return_value.exchange.call_args.args[0] == "PASTED-CODE"
        entry = store.load()
        assert entry is not None and entry.credential == TOKEN

    def test_no_browser_url_shown_when_quiet(
        self, cli_runner: CliRunner, store: CredentialStore
    ) -> None:
        with patch("streamctl.sso.session.generate_state", return_value="known-state"), patch(
            "streamctl.sso.flow.TokenExchanger"
        ) as exchanger_cls:
            exchanger_cls.return_value.exchange.return_value = TOKEN
            result = cli_runner.invoke(
                app,
                ["--quiet", "login", "--no-browser"],
                input="known-state/PASTED-CODE\n",
            )

        assert result.exit_code == 0, result.output
        assert "https://login.confluent.io/authorize?" in result.output
        assert "state=known-state" in result.output

    def test_no_browser_wrong_state(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        with patch("streamctl.sso.flow.TokenExchanger") as exchanger_cls:
            result = cli_runner.invoke(
                app,
                ["--no-color", "login", "--no-browser"],
                input="forged-state/PASTED-CODE\n",
            )
        assert result.exit_code == 3
        exchanger_cls.return_value.exchange.assert_not_called()
        assert store.load() is None


class TestLogout:
    def test_removes_token(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        store.save(CredentialEntry(auth_type="sso", credential=TOKEN))
        result = cli_runner.invoke(app, ["--no-color", "logout"])
        assert result.exit_code == 0
        assert "Logged out of https://confluent.cloud." in result.output
        assert store.load() is None

    def test_not_logged_in(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        result = cli_runner.invoke(app, ["--no-color", "logout"])
        assert result.exit_code == 0
        assert "Not logged in" in result.output


class TestAuthStatus:
    def test_not_logged_in(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        result = cli_runner.invoke(app, ["--no-color", "auth", "status"])
        assert result.exit_code == 0
        assert "Not logged in to https://confluent.cloud." in result.output

    def test_token_is_masked(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        store.save(
            CredentialEntry(
                auth_type="sso",
                credential=TOKEN,
                metadata={"url": "https://confluent.cloud", "realm": "prod"},
            )
        )
        result = cli_runner.invoke(app, ["--plain", "auth", "status"])
        assert result.exit_code == 0
        assert "Realm\tprod" in result.output
        assert "Token\teyJhbGci..." in result.output
        assert TOKEN not in result.output

    def test_json(self, cli_runner: CliRunner, store: CredentialStore) -> None:
        store.save(CredentialEntry(auth_type="sso", credential=TOKEN, metadata={"realm": "prod"}))
        result = cli_runner.invoke(app, ["--json", "auth", "status"])
        rows = {row["Field"]: row["Value"] for row in json.loads(result.stdout)}
        assert rows["Auth Type"] == "sso"
        assert rows["Valid"] == "True"
