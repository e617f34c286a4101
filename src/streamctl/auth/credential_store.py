"""Persistent credential store scoped per login context.

Stores credentials in ``~/.local/share/streamctl/credentials/<context>.json``
(XDG) or the platform-equivalent directory. Files are written atomically
via :func:`tempfile.NamedTemporaryFile` and ``os.replace`` with ``0o600``
permissions so that secrets are never world-readable, even momentarily.

A *context* is one service URL the user has logged in to; see
:func:`context_for_url`. Each context maps to exactly one JSON file holding
a serialised :class:`CredentialEntry`.

See Also:
    :func:`~streamctl.sso.flow.login` -- produces the identity token stored here.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from streamctl.config import get_data_dir
from streamctl.models import DEFAULT_URL

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class CredentialEntry(BaseModel):
    """A single stored credential.

    Attributes:
        auth_type: How the credential was obtained (``"sso"``).
        credential: The secret value, e.g. an identity token.
        expires_at: Optional UTC expiry time. ``None`` means unknown.
        metadata: Context such as the service URL and realm.
    """

    auth_type: str = Field(description="How this credential was obtained")
    credential: str = Field(description="The credential value")
    expires_at: Optional[datetime] = Field(
        default=None,
        description="When this credential expires (None = unknown)",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Login context (e.g. url, realm)",
    )


def context_for_url(url: Optional[str]) -> str:
    """Return a filesystem-safe context name for a service URL.

    Example::

        >>> context_for_url("https://confluent.cloud/")
        'confluent.cloud'
    """
    parsed = urlparse(url or DEFAULT_URL)
    name = parsed.netloc or parsed.path or DEFAULT_URL
    return _UNSAFE_CHARS.sub("_", name).strip("_") or "default"


def _credentials_dir() -> Path:
    """Return the credentials directory, creating it if needed."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


class CredentialStore:
    """Read/write the credential for a single login context.

    All writes are atomic: content is written to a temporary file in the
    same directory, fsynced, then renamed into place.

    Args:
        context: The context identifier used to derive the file name.

    Example::

        store = CredentialStore("confluent.cloud")
        store.save(CredentialEntry(auth_type="sso", credential="eyJ..."))
        entry = store.load()
    """

    def __init__(self, context: str) -> None:
        self._context = context
        self._path = _credentials_dir() / f"{context}.json"

    @property
    def path(self) -> Path:
        """The filesystem path to this context's credential file."""
        return self._path

    def save(self, entry: CredentialEntry) -> None:
        """Persist a credential entry atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written (permissions, disk full, etc.).
        """
        data = entry.model_dump(mode="json")
        text = json.dumps(data, indent=2) + "\n"

        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd = None
        tmp_path: Optional[str] = None
        try:
            fd = tempfile.NamedTemporaryFile(
                mode="w",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            )
            tmp_path = fd.name
            # Restrict permissions before any secret is written
            os.chmod(tmp_path, 0o600)
            fd.write(text)
            fd.flush()
            os.fsync(fd.fileno())
            fd.close()
            fd = None
            os.replace(tmp_path, self._path)
        except BaseException:
            if fd is not None:
                fd.close()
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise

    def load(self) -> Optional[CredentialEntry]:
        """Load the stored entry, or ``None`` if missing or unreadable."""
        if not self._path.is_file():
            return None
        try:
            text = self._path.read_text(encoding="utf-8")
            data = json.loads(text)
            return CredentialEntry.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError):
            return None

    def is_valid(self) -> bool:
        """Check whether a non-expired credential exists on disk."""
        entry = self.load()
        if entry is None:
            return False
        if entry.expires_at is None:
            return True
        now = datetime.now(timezone.utc)
        expires = entry.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now < expires

    def clear(self) -> bool:
        """Delete the stored credential file.

        Returns:
            ``True`` if a file was removed, ``False`` if there was none.
        """
        if self._path.is_file():
            self._path.unlink()
            return True
        return False
