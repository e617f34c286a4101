"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for streamctl:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.streamctl/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~streamctl.models.GlobalConfig`
  JSON file storing defaults (service URL, login timeout, output format).
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the global config into the final effective
  configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from streamctl.exceptions import ConfigError
from streamctl.models import GlobalConfig

_APP_NAME = "streamctl"
_CONFIG_FILENAME = "config.json"

ENV_URL = "STREAMCTL_URL"
ENV_NO_BROWSER = "STREAMCTL_NO_BROWSER"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/streamctl/`` (default ``~/.config/streamctl/``).
    On macOS/Windows: ``~/.streamctl/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs, credentials), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/streamctl/`` (default ``~/.local/share/streamctl/``).
    On macOS/Windows: ``~/.streamctl/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On success the temp file is renamed over *path*; on any failure the temp
    file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~streamctl.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk.

    Args:
        config: The configuration to save.
    """
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_flag(name: str) -> Optional[bool]:
    """Read a boolean environment variable, or ``None`` when unset or empty."""
    value = os.environ.get(name, "")
    if not value:
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def resolve_config(
    cli_url: Optional[str] = None,
    cli_no_browser: Optional[bool] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_url``, ``cli_no_browser``, ``cli_format``)
        2. Environment variables (``STREAMCTL_URL``, ``STREAMCTL_NO_BROWSER``)
        3. User config (``~/.config/streamctl/config.json``)
        4. Defaults

    Returns:
        The effective :class:`~streamctl.models.GlobalConfig`. The file on
        disk is never modified.
    """
    config = load_global_config()

    env_url = os.environ.get(ENV_URL)
    if cli_url:
        config.url = cli_url
    elif env_url:
        config.url = env_url

    env_no_browser = _env_flag(ENV_NO_BROWSER)
    if cli_no_browser is not None:
        config.no_browser = cli_no_browser
    elif env_no_browser is not None:
        config.no_browser = env_no_browser

    if cli_format is not None:
        config.output.format = cli_format

    return config
