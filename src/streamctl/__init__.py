"""streamctl -- command-line client for a streaming platform.

The package's non-trivial core is browser-based single sign-on
(:mod:`streamctl.sso`): an OAuth2 Authorization Code + PKCE login that
completes through a one-shot loopback listener.

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting with Rich support.
    sso: The SSO login flow.
    auth: Persistence of the identity token.
"""

__version__ = "0.1.0"
