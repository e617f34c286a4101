"""Identity provider realm selection.

The service URL a user logs in to decides which identity provider realm
(production or one of the internal test realms) the login talks to.
:func:`select_provider` turns that URL into a frozen
:class:`~streamctl.models.ProviderConfig` once, at the start of a login.
"""

from __future__ import annotations

import logging
from typing import Optional

from streamctl.models import DEFAULT_URL, ProviderConfig

logger = logging.getLogger(__name__)

CALLBACK_HOST = "127.0.0.1"
CALLBACK_PORT = 26635
CALLBACK_PATH = "/callback"
LOCAL_CALLBACK_URL = f"http://{CALLBACK_HOST}:{CALLBACK_PORT}{CALLBACK_PATH}"
"""Redirect URI registered with every realm for browser logins. Never dynamic."""

HOSTED_CALLBACK_PATH = "/cli_callback"
"""Path of the service-hosted page that shows ``{state}/{code}`` for pasting."""

REALMS: dict[str, dict[str, str]] = {
    "prod": {
        "domain": "login.confluent.io",
        "client_id": "hPbGZM8G55HSaUsaaieiiAprnJaEc9rH",
        "audience": "https://confluent.auth0.com/api/v2/",
    },
    "devel": {
        "domain": "login.confluent-dev.io",
        "client_id": "XKlqgOEo39iyonTl3Yv3IHWIXGKDP3fA",
        "audience": "https://confluent-dev.auth0.com/api/v2/",
    },
    "stag": {
        "domain": "login-stag.confluent-dev.io",
        "client_id": "Lk2u2MHszzpmmiJ1LetzZw3ur41nqLrw",
        "audience": "https://confluent-stag.auth0.com/api/v2/",
    },
    "cpd": {
        "domain": "login-cpd.confluent-dev.io",
        "client_id": "Ru1HRWIyKdu2xNOOwuEuL6n0cjtbSeQb",
        "audience": "https://confluent-cpd.auth0.com/api/v2/",
    },
}


def realm_for_url(base_url: Optional[str]) -> str:
    """Return the realm name for *base_url*.

    Anything that is not a recognised internal URL is production.
    """
    url = (base_url or DEFAULT_URL).rstrip("/")
    if "devel.cpdev.cloud" in url:
        return "devel"
    if "stag.cpdev.cloud" in url:
        return "stag"
    if url.endswith("priv.cpdev.cloud"):
        return "cpd"
    return "prod"


def select_provider(
    base_url: Optional[str] = None,
    no_browser: bool = False,
    callback_url: Optional[str] = None,
) -> ProviderConfig:
    """Build the provider configuration for one login attempt.

    Args:
        base_url: Service URL being logged in to. ``None`` or empty means
            production.
        no_browser: When ``True`` the redirect goes to the service-hosted
            ``/cli_callback`` page rather than the loopback listener.
        callback_url: Explicit redirect URI. Only needed when the loopback
            listener must bind somewhere other than the registered port.

    Returns:
        A frozen :class:`~streamctl.models.ProviderConfig`.
    """
    url = (base_url or DEFAULT_URL).rstrip("/")
    realm = realm_for_url(url)
    settings = REALMS[realm]

    if callback_url is None:
        callback_url = url + HOSTED_CALLBACK_PATH if no_browser else LOCAL_CALLBACK_URL

    logger.debug("Selected SSO realm %r for %s", realm, url)
    return ProviderConfig(
        domain=settings["domain"],
        client_id=settings["client_id"],
        audience=settings["audience"],
        callback_url=callback_url,
        realm=realm,
        no_browser=no_browser,
    )
