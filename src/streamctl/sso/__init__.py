"""Browser-based single sign-on for streamctl.

Implements the OAuth2 Authorization Code grant with PKCE (:rfc:`7636`)
against the platform's identity provider, without a client secret:

- :mod:`~streamctl.sso.codes` -- CSRF state and PKCE verifier/challenge.
- :mod:`~streamctl.sso.providers` -- realm selection from the service URL.
- :mod:`~streamctl.sso.session` -- per-attempt secrets and the one-shot
  completion signal.
- :mod:`~streamctl.sso.listener` -- loopback server for the redirect callback.
- :mod:`~streamctl.sso.token` -- back-channel code-for-token exchange.
- :mod:`~streamctl.sso.flow` -- the orchestrator tying them together.

Typical usage::

    from streamctl.sso import login, select_provider

    id_token = login(select_provider("https://confluent.cloud"))

Persisting the returned token is the caller's job; see
:class:`~streamctl.auth.credential_store.CredentialStore`.
"""

from streamctl.sso.flow import LoginFlow, LoginState, login
from streamctl.sso.listener import CallbackListener
from streamctl.sso.providers import select_provider
from streamctl.sso.session import AuthSession
from streamctl.sso.token import TokenExchanger

__all__ = [
    "AuthSession",
    "CallbackListener",
    "LoginFlow",
    "LoginState",
    "TokenExchanger",
    "login",
    "select_provider",
]
