"""Per-attempt SSO session state.

An :class:`AuthSession` lives for exactly one login attempt. It owns the
secrets generated for that attempt and the one-shot completion signal
that the callback handler and the login deadline race to resolve.
"""

from __future__ import annotations

import threading
from typing import Optional

from streamctl.exceptions import LoginError
from streamctl.models import ProviderConfig
from streamctl.sso.codes import (
    compute_code_challenge,
    generate_code_verifier,
    generate_state,
)


class AuthSession:
    """Codes, results, and completion signal for one login attempt.

    The completion signal is close-once: :meth:`resolve` succeeds for the
    first caller only, under a lock, and every later call is a no-op that
    returns ``False``. The authorization code and any error are written in
    that same critical section, so whichever path wins owns the outcome and
    the loser can never overwrite it.

    Args:
        provider: Frozen provider configuration for this attempt.
        state: CSRF state. Generated when omitted.
        code_verifier: PKCE verifier. Generated when omitted.

    Raises:
        RandomSourceError: If codes must be generated and the secure random
            source is unavailable.
    """

    def __init__(
        self,
        provider: ProviderConfig,
        state: Optional[str] = None,
        code_verifier: Optional[str] = None,
    ) -> None:
        self.provider = provider
        self.state = state if state is not None else generate_state()
        self.code_verifier = (
            code_verifier if code_verifier is not None else generate_code_verifier()
        )
        self.code_challenge = compute_code_challenge(self.code_verifier)

        self._lock = threading.Lock()
        self._done = threading.Event()
        self._authorization_code: Optional[str] = None
        self._identity_token: Optional[str] = None
        self._error: Optional[LoginError] = None

    @property
    def authorization_code(self) -> Optional[str]:
        return self._authorization_code

    @property
    def identity_token(self) -> Optional[str]:
        return self._identity_token

    @property
    def error(self) -> Optional[LoginError]:
        return self._error

    @property
    def resolved(self) -> bool:
        """Whether the completion signal has fired."""
        return self._done.is_set()

    def resolve(
        self,
        code: Optional[str] = None,
        error: Optional[LoginError] = None,
    ) -> bool:
        """Fire the completion signal with either a code or an error.

        Args:
            code: The validated authorization code.
            error: The reason the attempt failed.

        Returns:
            ``True`` if this call resolved the session, ``False`` if it had
            already been resolved (the arguments are then ignored).
        """
        if (code is None) == (error is None):
            raise ValueError("resolve() takes exactly one of code or error")
        with self._lock:
            if self._done.is_set():
                return False
            if error is not None:
                self._error = error
            else:
                self._authorization_code = code
            self._done.set()
            return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until resolved or *timeout* seconds pass; return whether resolved."""
        return self._done.wait(timeout)

    def set_identity_token(self, token: str) -> None:
        """Record the exchanged identity token. Allowed once, after a code was recorded."""
        with self._lock:
            if self._authorization_code is None or self._error is not None:
                raise RuntimeError("identity token requires a validated authorization code")
            if self._identity_token is not None:
                raise RuntimeError("identity token is already set")
            self._identity_token = token

    def discard(self) -> None:
        """Forget every secret held by this session."""
        with self._lock:
            self.state = ""
            self.code_verifier = ""
            self.code_challenge = ""
            self._authorization_code = None
            self._identity_token = None
            self._done.set()
