"""Login commands -- SSO login, logout, and stored credential status.

Provides the top-level ``streamctl login`` and ``streamctl logout``
commands and the ``streamctl auth`` sub-command group.

Typical workflow::

    streamctl login                          # browser SSO against production
    streamctl login --url https://stag.cpdev.cloud --connection acme-okta
    streamctl login --no-browser             # paste the code by hand
    streamctl auth status
    streamctl logout
"""

from __future__ import annotations

from typing import Optional

import typer

from streamctl.exit_codes import EXIT_INVALID_USAGE
from streamctl.output import debug, error, get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


def _prompt_for_code(authorize_url: str) -> str:
    """Show the authorize URL and read back the pasted ``{state}/{code}``."""
    # Shown even with --quiet; the paste flow cannot continue without it.
    typer.echo("Navigate to the following link in your browser to authenticate:", err=True)
    typer.echo(authorize_url, err=True)
    typer.echo("", err=True)
    return typer.prompt("After authenticating in your browser, paste the code here")


def login_command(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(
        None, "--url", help="Service URL to log in to.", show_default=False
    ),
    connection: Optional[str] = typer.Option(
        None, "--connection", help="Enterprise SSO connection name."
    ),
    no_browser: Optional[bool] = typer.Option(
        None,
        "--no-browser/--browser",
        help="Print the login URL and paste the code instead of opening a browser.",
        show_default=False,
    ),
) -> None:
    """Log in with single sign-on.

    Opens the identity provider's login page in the default browser and
    waits for it to redirect back to a local callback. The resulting
    identity token is stored for the service URL.

    Args:
        ctx: Typer context carrying the ``no_input`` flag.
        url: Service URL. Overrides ``STREAMCTL_URL`` and the config file.
        connection: Enterprise SSO connection to preselect on the login page.
        no_browser: Use the copy/paste flow instead of a local callback.

    Raises:
        typer.Exit: With the login error's exit code if the attempt fails.

    Example::

        streamctl login --url https://confluent.cloud
    """
    from streamctl.auth import CredentialEntry, CredentialStore, context_for_url
    from streamctl.config import resolve_config
    from streamctl.exceptions import ConfigError, LoginError
    from streamctl.sso import login, select_provider

    try:
        config = resolve_config(cli_url=url, cli_no_browser=no_browser)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    no_input = ctx.obj.get("no_input", False) if ctx.obj else False
    if config.no_browser and no_input:
        error("--no-browser login needs to read the pasted code, but --no-input is set.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    provider = select_provider(config.url, no_browser=config.no_browser)
    debug(f"Logging in to {config.url} using the {provider.realm} identity provider")
    if not config.no_browser:
        info("Opening your browser to complete login...")

    try:
        token = login(
            provider,
            connection=connection,
            timeout=config.login_timeout,
            prompt=_prompt_for_code,
        )
    except LoginError as exc:
        debug(str(exc))
        error(exc.user_message)
        suggest("Run: streamctl login")
        raise typer.Exit(code=exc.exit_code) from None

    store = CredentialStore(context_for_url(config.url))
    store.save(
        CredentialEntry(
            auth_type="sso",
            credential=token,
            metadata={"url": config.url, "realm": provider.realm},
        )
    )
    success(f"Logged in to {config.url}.")


def logout_command(
    url: Optional[str] = typer.Option(
        None, "--url", help="Service URL to log out of.", show_default=False
    ),
) -> None:
    """Log out by deleting the stored identity token.

    Example::

        streamctl logout
    """
    from streamctl.auth import CredentialStore, context_for_url
    from streamctl.config import resolve_config

    config = resolve_config(cli_url=url)
    store = CredentialStore(context_for_url(config.url))
    if store.clear():
        success(f"Logged out of {config.url}.")
    else:
        info(f"Not logged in to {config.url}.")


@auth_app.command("status")
def auth_status(
    url: Optional[str] = typer.Option(
        None, "--url", help="Service URL to check.", show_default=False
    ),
) -> None:
    """Show whether an identity token is stored for a service URL.

    The token itself is never printed, only a short prefix.

    Example::

        streamctl auth status
        streamctl auth status --json
    """
    from streamctl.auth import CredentialStore, context_for_url
    from streamctl.config import resolve_config

    config = resolve_config(cli_url=url)
    store = CredentialStore(context_for_url(config.url))
    entry = store.load()
    if entry is None:
        info(f"Not logged in to {config.url}.")
        suggest("Log in: streamctl login")
        return

    preview = entry.credential[:8] + "..." if len(entry.credential) > 8 else entry.credential
    rows = [
        ["URL", str(entry.metadata.get("url", config.url))],
        ["Realm", str(entry.metadata.get("realm", "-"))],
        ["Auth Type", entry.auth_type],
        ["Token", preview],
        ["Expires At", str(entry.expires_at) if entry.expires_at else "unknown"],
        ["Valid", str(store.is_valid())],
    ]
    get_output().print_table(["Field", "Value"], rows, title="Login Status")
