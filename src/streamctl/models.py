"""Canonical Pydantic models shared across all streamctl modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`OutputConfig` and :class:`GlobalConfig`.

**SSO models** -- immutable values handed to the login flow:
    :class:`ProviderConfig`.

All models use Pydantic v2 with ``model_config`` where needed.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_URL = "https://confluent.cloud"
"""Production service URL, used when no URL is configured anywhere."""


# --- Configuration ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/streamctl/config.json``.

    Loaded and saved by :func:`~streamctl.config.load_global_config` and
    :func:`~streamctl.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or CLI
    flags. See :func:`~streamctl.config.resolve_config` for the full
    precedence chain.
    """

    url: str = Field(default=DEFAULT_URL, description="Service URL to log in to")
    login_timeout: int = Field(
        default=30,
        gt=0,
        description="Seconds to wait for the browser callback during SSO login",
    )
    no_browser: bool = Field(
        default=False,
        description="Print the authorize URL instead of opening a browser",
    )
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- SSO ---


class ProviderConfig(BaseModel):
    """Identity provider parameters for one login attempt.

    Selected once by :func:`~streamctl.sso.providers.select_provider` and
    frozen, so a running session can never observe a different realm than
    the one it started with.

    Example::

        ProviderConfig(
            domain="login.confluent.io",
            client_id="hPbGZM8G55HSaUsaaieiiAprnJaEc9rH",
            callback_url="http://127.0.0.1:26635/callback",
            audience="https://confluent.auth0.com/api/v2/",
        )
    """

    model_config = ConfigDict(frozen=True)

    domain: str = Field(description="Identity provider host, without scheme")
    client_id: str = Field(description="Public OAuth2 client identifier")
    callback_url: str = Field(description="Pre-registered redirect URI")
    audience: str = Field(description="API identifier requested in the token")
    realm: str = Field(default="prod", description="prod, devel, stag, or cpd")
    no_browser: bool = Field(
        default=False,
        description="Callback lands on a hosted page instead of the loopback listener",
    )

    @property
    def authorize_endpoint(self) -> str:
        """Front-channel authorize URL."""
        return f"https://{self.domain}/authorize"

    @property
    def token_endpoint(self) -> str:
        """Back-channel token URL."""
        return f"https://{self.domain}/oauth/token"
