"""Config commands -- view and modify the global configuration.

Provides the ``streamctl config`` sub-command group for reading,
updating, and resetting :class:`~streamctl.models.GlobalConfig`, which
holds the default service URL, the SSO login timeout, and output
preferences.
"""

from __future__ import annotations

from typing import Any

import typer

from streamctl.exit_codes import EXIT_INVALID_USAGE
from streamctl.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the saved configuration.

    Example::

        streamctl config show
        streamctl --json config show
    """
    from streamctl.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


def _coerce(key: str, current: Any, value: str) -> Any:
    """Convert *value* to the type of the field's *current* value."""
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g. 'output.format')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the existing field's type and the whole
    config is re-validated before it is saved.

    Example::

        streamctl config set url https://stag.cpdev.cloud
        streamctl config set login_timeout 60
        streamctl config set no_browser true
    """
    from streamctl.config import load_global_config, save_global_config
    from streamctl.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    *parents, final_key = key.split(".")
    target = data
    for k in parents:
        if not isinstance(target.get(k), dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    coerced = _coerce(key, target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        streamctl --force config reset
    """
    from streamctl.config import save_global_config
    from streamctl.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
