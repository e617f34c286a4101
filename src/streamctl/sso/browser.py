"""Open the system browser at the identity provider's authorize URL."""

from __future__ import annotations

import logging
import webbrowser

from streamctl.exceptions import BrowserLaunchError

logger = logging.getLogger(__name__)


def open_browser(url: str) -> None:
    """Open *url* in the default browser.

    Raises:
        BrowserLaunchError: If no browser could be launched.
    """
    logger.debug("Opening browser at %s", url)
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as exc:
        raise BrowserLaunchError(f"unable to open web browser for authorization: {exc}") from exc
    if not opened:
        raise BrowserLaunchError("unable to open web browser for authorization: no usable browser found")
