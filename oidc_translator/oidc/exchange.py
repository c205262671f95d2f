"""RFC 8693 token exchange.

Mints an access token impersonating a mesh subject by exchanging the
machine-account token at the issuer's token endpoint.  Exchanged tokens
are short-lived and are not cached: every call performs a fresh exchange.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

import httpx

from oidc_translator.constants import GRANT_TYPE_TOKEN_EXCHANGE, TOKEN_TYPE_ACCESS_TOKEN
from oidc_translator.errors import TokenExchangeError
from oidc_translator.oidc.credentials import (
    ClientCredentials,
    MachineCredentialCache,
    oauth_error_code,
    parse_token_response,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExchangeRequest:
    """Form parameters of a single token exchange."""

    subject_token: str = field(repr=False)
    requested_subject: str

    def form(self) -> Dict[str, str]:
        return {
            "grant_type": GRANT_TYPE_TOKEN_EXCHANGE,
            "subject_token_type": TOKEN_TYPE_ACCESS_TOKEN,
            "subject_token": self.subject_token,
            "requested_subject": self.requested_subject,
            "requested_token_type": TOKEN_TYPE_ACCESS_TOKEN,
        }


class TokenExchangeClient:
    """Exchange the machine token for a token scoped to a given subject."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_endpoint: str,
        credentials: ClientCredentials,
        machine_credentials: MachineCredentialCache,
    ) -> None:
        self._client = client
        self._token_endpoint = token_endpoint
        self._credentials = credentials
        self._machine_credentials = machine_credentials

    async def access_token_for_subject(self, subject_id: str) -> str:
        """Return an access token impersonating *subject_id*.

        Raises :class:`AuthenticationError` if the machine token cannot be
        obtained and :class:`TokenExchangeError` if the exchange fails.
        """
        if not subject_id:
            raise TokenExchangeError("Refusing token exchange for empty subject", subject_id)

        request = ExchangeRequest(
            subject_token=await self._machine_credentials.get_access_token(),
            requested_subject=subject_id,
        )

        try:
            resp = await self._client.post(
                self._token_endpoint,
                data=request.form(),
                auth=self._credentials.basic_auth(),
            )
        except httpx.HTTPError as exc:
            raise TokenExchangeError(
                f"Token exchange request failed: {type(exc).__name__}", subject_id
            ) from exc

        if not resp.is_success:
            raise TokenExchangeError(
                "Token exchange rejected",
                subject_id,
                status_code=resp.status_code,
                error_code=oauth_error_code(resp),
            )

        try:
            parsed = parse_token_response(resp)
        except ValueError as exc:
            raise TokenExchangeError(f"Token exchange failed: {exc}", subject_id) from exc

        logger.debug(
            "Exchanged access token for subject '%s' (expires_in=%.0fs).",
            subject_id,
            parsed.expires_in,
        )
        return parsed.access_token
