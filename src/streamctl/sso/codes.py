"""CSRF state and PKCE code generation.

Implements the S256 method of :rfc:`7636`: the verifier is 32 bytes from
the operating system's secure random source encoded as unpadded URL-safe
base64 (43 characters), and the challenge is the unpadded URL-safe base64
SHA-256 digest of the verifier's ASCII text.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from streamctl.exceptions import RandomSourceError

RANDOM_BYTES = 32


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _random_token(purpose: str) -> str:
    try:
        raw = secrets.token_bytes(RANDOM_BYTES)
    except (NotImplementedError, OSError) as exc:
        raise RandomSourceError(
            f"unable to generate random bytes for {purpose}: {exc}"
        ) from exc
    return _b64url(raw)


def generate_state() -> str:
    """Return a fresh opaque CSRF ``state`` value.

    Raises:
        RandomSourceError: If the secure random source is unavailable.
    """
    return _random_token("SSO provider state")


def generate_code_verifier() -> str:
    """Return a fresh PKCE ``code_verifier``, drawn independently of the state.

    Raises:
        RandomSourceError: If the secure random source is unavailable.
    """
    return _random_token("code verifier")


def compute_code_challenge(verifier: str) -> str:
    """Derive the S256 ``code_challenge`` for *verifier*.

    Deterministic and side-effect free.

    Args:
        verifier: The PKCE code verifier.

    Returns:
        ``base64url(sha256(verifier))`` without padding.
    """
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return _b64url(digest)
