"""Credential persistence for streamctl.

The SSO flow in :mod:`streamctl.sso` only produces an identity token;
this package keeps it between CLI invocations.

- :class:`CredentialStore` -- per-context, ``0o600`` JSON storage on disk.
- :class:`CredentialEntry` -- the stored record.
- :func:`context_for_url` -- maps a service URL to a context name.
"""

from streamctl.auth.credential_store import (
    CredentialEntry,
    CredentialStore,
    context_for_url,
)

__all__ = [
    "CredentialEntry",
    "CredentialStore",
    "context_for_url",
]
