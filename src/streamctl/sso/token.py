"""Back-channel exchange of an authorization code for an identity token.

:class:`TokenExchanger` POSTs the authorization code together with the
PKCE verifier to the provider's ``/oauth/token`` endpoint. No client
secret is involved; possession of the verifier is the proof. Only the
``id_token`` field of the response is read.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from streamctl.exceptions import (
    MissingIDTokenError,
    TokenRequestConstructionError,
    TokenRequestTransportError,
    TokenResponseParseError,
)
from streamctl.models import ProviderConfig

logger = logging.getLogger(__name__)


class TokenExchanger:
    """Redeem authorization codes against one provider's token endpoint.

    Args:
        provider: Provider whose ``token_endpoint``, ``client_id`` and
            ``callback_url`` are used.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
    """

    def __init__(
        self,
        provider: ProviderConfig,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.provider = provider
        self.timeout = timeout
        self._transport = transport

    def exchange(self, code: str, verifier: str) -> str:
        """Exchange *code* and *verifier* for the provider's ``id_token``.

        Args:
            code: Authorization code from the validated callback.
            verifier: The session's PKCE code verifier.

        Returns:
            The ``id_token`` string, verbatim.

        Raises:
            TokenRequestConstructionError: If the request cannot be built.
            TokenRequestTransportError: If the HTTP call fails.
            TokenResponseParseError: If the body is not a JSON object.
            MissingIDTokenError: If the JSON has no string ``id_token``.
        """
        form = {
            "grant_type": "authorization_code",
            "client_id": self.provider.client_id,
            "code_verifier": verifier,
            "code": code,
            "redirect_uri": self.provider.callback_url,
        }
        url = self.provider.token_endpoint
        logger.debug("OAuth token request URL: %s", url)
        logger.debug("OAuth token request fields: %s", ", ".join(form))

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            try:
                request = client.build_request(
                    "POST",
                    url,
                    data=form,
                    headers={"Accept": "application/json"},
                )
            except (httpx.InvalidURL, TypeError, ValueError) as exc:
                raise TokenRequestConstructionError(
                    f"failed to construct oauth token request: {exc}"
                ) from exc

            try:
                response = client.send(request)
            except httpx.HTTPError as exc:
                raise TokenRequestTransportError(f"failed to get oauth token: {exc}") from exc

        data = self._parse(response)

        token = data.get("id_token")
        if not isinstance(token, str) or not token:
            detail = ""
            if "error" in data:
                detail = f" (error: {data['error']}"
                if data.get("error_description"):
                    detail += f" - {data['error_description']}"
                detail += ")"
            raise MissingIDTokenError(
                f"oauth token response body did not contain id_token field{detail}"
            )
        return token

    @staticmethod
    def _parse(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            logger.debug(
                "Failed oauth token response (HTTP %d): %s",
                response.status_code,
                response.text,
            )
            raise TokenResponseParseError(
                f"failed to unmarshal response body in oauth token request: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise TokenResponseParseError(
                "failed to unmarshal response body in oauth token request: "
                f"expected a JSON object, got {type(data).__name__}"
            )
        return data
