"""SSO login orchestration: Authorization Code with PKCE, no client secret.

:class:`LoginFlow` drives one login attempt through its states::

    IDLE -> CODES_GENERATED -> LISTENER_BOUND -> AWAITING_CALLBACK
         -> COMPLETED | TIMED_OUT | CSRF_MISMATCH | MISSING_CODE -> CLOSED

Once the browser is launched, the callback handler (on the listener's
thread) and the login deadline (on the calling thread) race to resolve
the session. :meth:`~streamctl.sso.session.AuthSession.resolve` lets only
the first of them through. The listener is shut down on every exit path,
so the fixed port is free again when :meth:`LoginFlow.get_authorization_code`
returns or raises.

The fixed callback port also makes login single-flight per machine: a
second concurrent attempt fails with :class:`~streamctl.exceptions.BindPortError`
instead of racing the first one for the browser's redirect.

:func:`login` runs the whole sequence and is what the CLI calls.
"""

from __future__ import annotations

import enum
import hmac
import logging
from typing import Callable, Optional
from urllib.parse import quote, urlencode

from streamctl.exceptions import (
    CSRFStateMismatchError,
    LoginError,
    LoginTimeoutError,
    MissingAuthorizationCodeError,
)
from streamctl.models import ProviderConfig
from streamctl.sso.browser import open_browser
from streamctl.sso.listener import CallbackListener
from streamctl.sso.session import AuthSession
from streamctl.sso.token import TokenExchanger

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
"""Seconds to wait for the browser callback before giving up."""

SCOPE = "openid email"


class LoginState(str, enum.Enum):
    IDLE = "idle"
    CODES_GENERATED = "codes_generated"
    LISTENER_BOUND = "listener_bound"
    AWAITING_CALLBACK = "awaiting_callback"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    CSRF_MISMATCH = "csrf_mismatch"
    MISSING_CODE = "missing_code"
    CLOSED = "closed"


_ERROR_STATES: dict[type[LoginError], LoginState] = {
    LoginTimeoutError: LoginState.TIMED_OUT,
    CSRFStateMismatchError: LoginState.CSRF_MISMATCH,
    MissingAuthorizationCodeError: LoginState.MISSING_CODE,
}


class LoginFlow:
    """One SSO login attempt.

    Use as a context manager so that :meth:`close` always runs::

        with LoginFlow(provider) as flow:
            flow.start()
            flow.get_authorization_code(connection)
            id_token = flow.exchange()

    Args:
        provider: Frozen provider configuration selected for this attempt.
        timeout: Seconds to wait for the browser callback.
        browser: Callable that opens a URL. Defaults to the system browser.
        exchanger: Token exchanger. Defaults to one for *provider*.
        page: Body served to the browser on callback. Defaults to the
            packaged confirmation page.
    """

    def __init__(
        self,
        provider: ProviderConfig,
        timeout: float = DEFAULT_TIMEOUT,
        browser: Callable[[str], None] = open_browser,
        exchanger: Optional[TokenExchanger] = None,
        page: Optional[bytes] = None,
    ) -> None:
        self.provider = provider
        self.timeout = timeout
        self._browser = browser
        self._exchanger = exchanger or TokenExchanger(provider)
        self._page = page
        self.state = LoginState.IDLE
        self.session: Optional[AuthSession] = None
        self.listener: Optional[CallbackListener] = None

    def __enter__(self) -> LoginFlow:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _require(self, *states: LoginState) -> AuthSession:
        if self.state not in states or self.session is None:
            expected = ", ".join(s.value for s in states)
            raise RuntimeError(f"login flow is {self.state.value}, expected {expected}")
        return self.session

    def start(self) -> None:
        """Generate the session codes and, in browser mode, bind the listener.

        Raises:
            RandomSourceError: If codes cannot be generated.
            BindPortError: If the fixed callback port is taken.
        """
        if self.state is not LoginState.IDLE:
            raise RuntimeError(f"login flow is {self.state.value}, expected idle")
        self.session = AuthSession(self.provider)
        self.state = LoginState.CODES_GENERATED
        logger.debug("SSO session created for realm %r", self.provider.realm)

        if self.provider.no_browser:
            return

        listener = CallbackListener.for_session(self.session, page=self._page)
        listener.start()
        self.listener = listener
        self.state = LoginState.LISTENER_BOUND

    def authorize_url(self, connection: Optional[str] = None) -> str:
        """Return the front-channel authorize URL for this session.

        Args:
            connection: Optional enterprise SSO connection name.
        """
        session = self._require(
            LoginState.CODES_GENERATED,
            LoginState.LISTENER_BOUND,
            LoginState.AWAITING_CALLBACK,
        )
        params = {
            "response_type": "code",
            "code_challenge": session.code_challenge,
            "code_challenge_method": "S256",
            "client_id": self.provider.client_id,
            "redirect_uri": self.provider.callback_url,
            "scope": SCOPE,
            "audience": self.provider.audience,
            "state": session.state,
        }
        if connection:
            params["connection"] = connection
        return f"{self.provider.authorize_endpoint}?{urlencode(params, quote_via=quote)}"

    def get_authorization_code(self, connection: Optional[str] = None) -> str:
        """Open the browser and wait for the callback or the deadline.

        Args:
            connection: Optional enterprise SSO connection name.

        Returns:
            The validated authorization code.

        Raises:
            BrowserLaunchError: If the browser cannot be opened.
            LoginTimeoutError: If no callback arrives in time.
            CSRFStateMismatchError: If the callback's state is wrong.
            MissingAuthorizationCodeError: If the callback has no code.
        """
        session = self._require(LoginState.LISTENER_BOUND)
        assert self.listener is not None
        try:
            self._browser(self.authorize_url(connection))
            self.state = LoginState.AWAITING_CALLBACK
            if not session.wait(self.timeout):
                # Loses quietly if a callback resolved the session meanwhile.
                session.resolve(
                    error=LoginTimeoutError(
                        f"timed out after {self.timeout:g}s while waiting for "
                        "browser authentication to occur"
                    )
                )
        finally:
            self.listener.shutdown()
        return self._outcome(session)

    def read_pasted_code(self, text: str) -> str:
        """Accept the ``{state}/{code}`` string shown by the hosted callback page.

        Used instead of :meth:`get_authorization_code` when the provider is
        in no-browser mode.

        Returns:
            The validated authorization code.

        Raises:
            CSRFStateMismatchError: If the pasted state is wrong.
            MissingAuthorizationCodeError: If the input is malformed.
        """
        session = self._require(LoginState.CODES_GENERATED)
        pasted_state, sep, code = text.strip().partition("/")
        if not sep or not code:
            session.resolve(
                error=MissingAuthorizationCodeError("pasted input had invalid format")
            )
        elif not hmac.compare_digest(
            pasted_state.encode("utf-8"), session.state.encode("utf-8")
        ):
            session.resolve(
                error=CSRFStateMismatchError(
                    "authentication code either did not contain a state parameter "
                    "or the state parameter was invalid; login will fail"
                )
            )
        else:
            session.resolve(code=code)
        return self._outcome(session)

    def _outcome(self, session: AuthSession) -> str:
        error = session.error
        if error is not None:
            self.state = _ERROR_STATES.get(type(error), self.state)
            logger.debug("SSO login failed: %s", error)
            raise error
        assert session.authorization_code is not None
        self.state = LoginState.COMPLETED
        return session.authorization_code

    def exchange(self) -> str:
        """Redeem the authorization code for the identity token.

        Returns:
            The identity token, unchanged from the token endpoint.

        Raises:
            LoginError: Any of the token-exchange errors.
        """
        session = self._require(LoginState.COMPLETED)
        assert session.authorization_code is not None
        token = self._exchanger.exchange(session.authorization_code, session.code_verifier)
        session.set_identity_token(token)
        return token

    def close(self) -> None:
        """Shut the listener down and discard every session secret."""
        if self.listener is not None:
            self.listener.shutdown()
        if self.session is not None:
            self.session.discard()
        self.state = LoginState.CLOSED


def login(
    provider: ProviderConfig,
    connection: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
    browser: Callable[[str], None] = open_browser,
    prompt: Optional[Callable[[str], str]] = None,
    exchanger: Optional[TokenExchanger] = None,
) -> str:
    """Run a complete SSO login and return the identity token.

    Args:
        provider: Provider configuration from
            :func:`~streamctl.sso.providers.select_provider`.
        connection: Optional enterprise SSO connection name.
        timeout: Seconds to wait for the browser callback.
        browser: Callable that opens a URL (browser mode).
        prompt: Callable that shows the authorize URL and returns the
            pasted ``{state}/{code}`` (no-browser mode).
        exchanger: Token exchanger override.

    Returns:
        The identity token. Nothing is returned on any failure path.

    Raises:
        LoginError: Whatever aborted the attempt.
    """
    if provider.no_browser and prompt is None:
        raise ValueError("no-browser login needs a prompt callable")

    with LoginFlow(provider, timeout=timeout, browser=browser, exchanger=exchanger) as flow:
        flow.start()
        if provider.no_browser:
            assert prompt is not None
            flow.read_pasted_code(prompt(flow.authorize_url(connection)))
        else:
            flow.get_authorization_code(connection)
        return flow.exchange()
