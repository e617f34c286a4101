"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~streamctl.exceptions.StreamctlError` subclass.
Shell wrappers can inspect the exit code to tell a rejected login apart
from a bad flag without parsing stderr.

Example::

    $ streamctl login --url https://confluent.cloud
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the SSO login did not complete
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed or the login attempt was aborted."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
