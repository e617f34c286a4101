"""Exception hierarchy for streamctl.

All exceptions inherit from :class:`StreamctlError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`streamctl.exit_codes`.
The top-level error handler in :func:`streamctl.app.main` catches
``StreamctlError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    StreamctlError (exit 1)
    +-- ConfigError                         (exit 1)
    +-- AuthError                           (exit 3)
        +-- LoginError                      (exit 3)
            +-- RandomSourceError
            +-- BindPortError
            +-- BrowserLaunchError
            +-- CSRFStateMismatchError
            +-- MissingAuthorizationCodeError
            +-- LoginTimeoutError
            +-- TokenRequestConstructionError
            +-- TokenRequestTransportError  (exit 6)
            +-- TokenResponseParseError
            +-- MissingIDTokenError

Every :class:`LoginError` is fatal to the login attempt that raised it.
Nothing in the SSO flow retries; the user re-runs ``streamctl login``.
"""

from __future__ import annotations

from streamctl.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
)


class StreamctlError(Exception):
    """Base exception for all streamctl errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`streamctl.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(StreamctlError):
    """Raised for configuration problems (invalid JSON, unreadable files)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthError(StreamctlError):
    """Raised when authentication fails or no usable credential is stored."""

    exit_code = EXIT_AUTH_FAILURE


# --- SSO login taxonomy ---


class LoginError(AuthError):
    """Base class for every failure of a single SSO login attempt.

    ``str(exc)`` holds the diagnostic detail and is only written to the
    debug log. :attr:`user_message` is what the terminal shows; for
    validation failures it is deliberately generic so that a forged
    callback learns nothing about why it was rejected.
    """

    user_message: str = "Login failed. Please try logging in again."

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message, exit_code=exit_code)
        if user_message is not None:
            self.user_message = user_message


class RandomSourceError(LoginError):
    """The operating system's secure random source could not be read."""

    user_message = "Unable to generate secure login codes on this machine."


class BindPortError(LoginError):
    """The fixed loopback callback port is already in use."""

    user_message = (
        "Unable to start the local login server. Another login may already "
        "be in progress; finish or cancel it and try again."
    )


class BrowserLaunchError(LoginError):
    """The system browser could not be opened at the authorize URL."""

    user_message = (
        "Unable to open a web browser for authorization. "
        "Try again with --no-browser."
    )


class CSRFStateMismatchError(LoginError):
    """The callback's ``state`` parameter was missing or did not match."""


class MissingAuthorizationCodeError(LoginError):
    """The callback carried no ``code`` parameter."""


class LoginTimeoutError(LoginError):
    """No callback arrived before the login deadline."""

    user_message = (
        "Timed out while waiting for browser authentication to occur. "
        "Please try logging in again."
    )


class TokenRequestConstructionError(LoginError):
    """The back-channel token request could not be built."""

    def __init__(self, message: str):
        super().__init__(message, user_message=message)


class TokenRequestTransportError(LoginError):
    """The back-channel token request failed on the wire."""

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str):
        super().__init__(message, user_message=message)


class TokenResponseParseError(LoginError):
    """The token endpoint answered with a body that is not a JSON object."""

    def __init__(self, message: str):
        super().__init__(message, user_message=message)


class MissingIDTokenError(LoginError):
    """The token endpoint's JSON response has no ``id_token`` field."""

    def __init__(self, message: str):
        super().__init__(message, user_message=message)
