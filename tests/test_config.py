"""Tests for streamctl.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from streamctl.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    load_global_config,
    resolve_config,
    save_global_config,
)
from streamctl.exceptions import ConfigError
from streamctl.models import DEFAULT_URL, GlobalConfig


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("streamctl.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "streamctl"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("streamctl.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "custom"))

        assert get_config_dir() == tmp_path / "custom" / "streamctl"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("streamctl.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "streamctl"
        assert result.is_dir()


class TestXDGPathsFallback:
    """Non-XDG platforms (macOS, Windows) keep everything under ~/.streamctl."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("streamctl.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".streamctl"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("streamctl.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_data_dir() == tmp_path / ".streamctl" / "data"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "config.json"
        _atomic_write(target, "hello")
        assert target.read_text(encoding="utf-8") == "hello"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        target.write_text("old", encoding="utf-8")
        _atomic_write(target, "new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "config.json"
        with patch("streamctl.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_global_config()
        assert config == GlobalConfig()
        assert config.url == DEFAULT_URL
        assert config.login_timeout == 30
        assert config.no_browser is False

    def test_save_and_load(self, isolated_config: Path) -> None:
        save_global_config(
            GlobalConfig(url="https://stag.cpdev.cloud", login_timeout=90, no_browser=True)
        )
        config = load_global_config()
        assert config.url == "https://stag.cpdev.cloud"
        assert config.login_timeout == 90
        assert config.no_browser is True

    def test_saved_file_location(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig())
        path = isolated_config / "config" / "streamctl" / "config.json"
        assert json.loads(path.read_text(encoding="utf-8"))["url"] == DEFAULT_URL

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_timeout_raises_config_error(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text(
            json.dumps({"login_timeout": 0}), encoding="utf-8"
        )
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.url == DEFAULT_URL
        assert config.no_browser is False

    def test_file_overrides_defaults(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(url="https://devel.cpdev.cloud"))
        assert resolve_config().url == "https://devel.cpdev.cloud"

    def test_env_overrides_file(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_global_config(GlobalConfig(url="https://devel.cpdev.cloud"))
        monkeypatch.setenv("STREAMCTL_URL", "https://stag.cpdev.cloud")
        assert resolve_config().url == "https://stag.cpdev.cloud"

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STREAMCTL_URL", "https://stag.cpdev.cloud")
        assert resolve_config(cli_url="https://confluent.cloud").url == "https://confluent.cloud"

    @pytest.mark.parametrize("value, expected", [("1", True), ("true", True), ("no", False)])
    def test_no_browser_env(
        self,
        isolated_config: Path,
        monkeypatch: pytest.MonkeyPatch,
        value: str,
        expected: bool,
    ) -> None:
        monkeypatch.setenv("STREAMCTL_NO_BROWSER", value)
        assert resolve_config().no_browser is expected

    def test_no_browser_cli_false_beats_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("STREAMCTL_NO_BROWSER", "1")
        assert resolve_config(cli_no_browser=False).no_browser is False

    def test_cli_format(self, isolated_config: Path) -> None:
        assert resolve_config(cli_format="json").output.format == "json"

    def test_file_is_not_modified(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig())
        resolve_config(cli_url="https://stag.cpdev.cloud")
        assert load_global_config().url == DEFAULT_URL
