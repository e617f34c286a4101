"""Loopback HTTP listener that receives the SSO redirect callback.

Each login attempt gets its own :class:`CallbackListener` with its own
server and handler, bound to the fixed redirect address registered with
the identity provider. The listener answers every callback request with
the static confirmation page, validates the first one against the
session's CSRF state, and resolves the session. Later requests still get
the page but cannot change the outcome.
"""

from __future__ import annotations

import hmac
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from importlib import resources
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from streamctl.exceptions import (
    BindPortError,
    CSRFStateMismatchError,
    MissingAuthorizationCodeError,
)
from streamctl.sso.providers import CALLBACK_HOST, CALLBACK_PATH, CALLBACK_PORT
from streamctl.sso.session import AuthSession

logger = logging.getLogger(__name__)

CALLBACK_PAGE = "sso_callback.html"

REQUEST_TIMEOUT = 5.0
"""Seconds a callback connection may sit idle before it is dropped."""


def load_callback_page() -> bytes:
    """Return the confirmation page shipped in ``streamctl/sso/assets``."""
    return (
        resources.files("streamctl.sso").joinpath("assets", CALLBACK_PAGE).read_bytes()
    )


class _CallbackHandler(BaseHTTPRequestHandler):
    server: "_CallbackServer"
    timeout = REQUEST_TIMEOUT

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        listener = self.server.listener
        if parsed.path != listener.path:
            self.send_error(404)
            return

        # The browser tab gets the page whatever the validation outcome.
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(listener.page)))
        self.end_headers()
        self.wfile.write(listener.page)
        self.wfile.flush()

        listener.handle_callback(parse_qs(parsed.query))

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("callback server: " + format, *args)


class _CallbackServer(ThreadingHTTPServer):
    # Idle connections (browser preconnects) must not hold up shutdown.
    daemon_threads = True
    block_on_close = False

    def __init__(self, address: tuple[str, int], listener: "CallbackListener") -> None:
        self.listener = listener
        super().__init__(address, _CallbackHandler)


class CallbackListener:
    """Single-use loopback server for one :class:`AuthSession`.

    Args:
        session: The session whose state is checked and which is resolved
            by the first callback.
        host: Interface to bind. Always loopback in practice.
        port: Fixed TCP port matching the registered redirect URI.
        path: Callback path matching the registered redirect URI.
        page: Response body for callback requests. Defaults to the packaged
            confirmation page.

    Example::

        listener = CallbackListener(session)
        listener.start()
        try:
            session.wait(30)
        finally:
            listener.shutdown()
    """

    def __init__(
        self,
        session: AuthSession,
        host: str = CALLBACK_HOST,
        port: int = CALLBACK_PORT,
        path: str = CALLBACK_PATH,
        page: Optional[bytes] = None,
    ) -> None:
        self.session = session
        self.host = host
        self.port = port
        self.path = path
        self.page = page if page is not None else load_callback_page()
        self._server: Optional[_CallbackServer] = None
        self._thread: Optional[threading.Thread] = None
        self._shutdown_lock = threading.Lock()

    @classmethod
    def for_session(cls, session: AuthSession, page: Optional[bytes] = None) -> CallbackListener:
        """Build a listener bound to the address in the session's redirect URI."""
        parsed = urlparse(session.provider.callback_url)
        return cls(
            session,
            host=parsed.hostname or CALLBACK_HOST,
            port=parsed.port or CALLBACK_PORT,
            path=parsed.path or CALLBACK_PATH,
            page=page,
        )

    @property
    def running(self) -> bool:
        return self._server is not None

    def start(self) -> None:
        """Bind the fixed port and start serving in a background thread.

        Raises:
            BindPortError: If the address cannot be bound, typically because
                another login attempt already holds the port.
        """
        try:
            server = _CallbackServer((self.host, self.port), self)
        except OSError as exc:
            raise BindPortError(
                f"unable to start HTTP server on {self.host}:{self.port}: {exc}"
            ) from exc

        self._server = server
        self._thread = threading.Thread(
            target=server.serve_forever,
            kwargs={"poll_interval": 0.05},
            name="streamctl-sso-callback",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Listening for SSO callback on http://%s:%d%s", self.host, self.port, self.path)

    def handle_callback(self, params: dict[str, list[str]]) -> bool:
        """Validate callback query parameters and resolve the session.

        Args:
            params: Parsed query string, as returned by
                :func:`urllib.parse.parse_qs`.

        Returns:
            ``True`` if this request resolved the session, ``False`` if the
            session had already been resolved.
        """
        session = self.session
        if session.resolved:
            logger.debug("Ignoring SSO callback after the login was resolved")
            return False

        state = params.get("state", [None])[0]
        codes = params.get("code")

        if state is None or not hmac.compare_digest(
            state.encode("utf-8"), session.state.encode("utf-8")
        ):
            resolved = session.resolve(
                error=CSRFStateMismatchError(
                    "authentication callback URL either did not contain a state "
                    "parameter in query string, or the state parameter was invalid; "
                    "login will fail"
                )
            )
        elif not codes or not codes[0]:
            resolved = session.resolve(
                error=MissingAuthorizationCodeError(
                    "authentication callback URL did not contain code parameter "
                    "in query string; login will fail"
                )
            )
        else:
            resolved = session.resolve(code=codes[0])

        if not resolved:
            logger.debug("Ignoring SSO callback after the login was resolved")
        return resolved

    def shutdown(self) -> None:
        """Stop serving and release the port. Safe to call more than once."""
        with self._shutdown_lock:
            server, self._server = self._server, None
            if server is None:
                return
            server.shutdown()
            server.server_close()
            if self._thread is not None:
                self._thread.join()
                self._thread = None
        logger.debug("SSO callback server on port %d closed", self.port)
