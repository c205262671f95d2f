"""Machine-account credential cache (OAuth 2.0 client credentials grant).

The translator authenticates itself against the issuer with its own
client ID / secret and keeps the resulting access token in memory until
shortly before it expires.  The token is later used as the
``subject_token`` of the token exchange.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import httpx

from oidc_translator.constants import GRANT_TYPE_CLIENT_CREDENTIALS, TOKEN_EXPIRY_SAFETY_MARGIN
from oidc_translator.errors import AuthenticationError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class ClientCredentials:
    """Client ID / secret pair of the translator's machine account."""

    client_id: str
    client_secret: str = field(repr=False)

    def basic_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.client_id, self.client_secret)


@dataclass(frozen=True)
class TokenResponse:
    """Successful token endpoint response (``access_token`` / ``expires_in``)."""

    access_token: str = field(repr=False)
    expires_in: float


def oauth_error_code(resp: httpx.Response) -> Optional[str]:
    """Return the RFC 6749 ``error`` code of an error response, if any."""
    try:
        payload = resp.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return None


def parse_token_response(resp: httpx.Response) -> TokenResponse:
    """Parse a token endpoint JSON body.

    Raises :class:`ValueError` describing the problem; callers wrap it
    into their own error type.  The message never includes the body.
    """
    try:
        payload: Dict[str, Any] = resp.json()
    except ValueError as exc:
        raise ValueError("token response is not valid JSON") from exc

    if not isinstance(payload, dict):
        raise ValueError("token response is not a JSON object")

    access_token = payload.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise ValueError("token response missing 'access_token'")

    expires_in = payload.get("expires_in")
    if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)):
        raise ValueError("token response missing numeric 'expires_in'")
    if expires_in <= 0:
        raise ValueError("token response has non-positive 'expires_in'")

    return TokenResponse(access_token=access_token, expires_in=float(expires_in))


@dataclass
class _MachineCredential:
    access_token: str = field(repr=False)
    expires_at: float  # clock timestamp


class MachineCredentialCache:
    """Concurrency-safe holder of the machine-account access token.

    The cached token is handed out only while
    ``now + TOKEN_EXPIRY_SAFETY_MARGIN < expires_at``; otherwise a new
    client credentials grant is performed.  Concurrent callers that see
    an expired token wait on a single refresh.

    Parameters
    ----------
    client:
        Shared HTTP client.
    token_endpoint:
        Issuer token endpoint (from discovery).
    credentials:
        Machine account client ID / secret.
    clock:
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_endpoint: str,
        credentials: ClientCredentials,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self._client = client
        self._token_endpoint = token_endpoint
        self._credentials = credentials
        self._clock = clock
        self._credential: Optional[_MachineCredential] = None
        self._lock = asyncio.Lock()

    def _valid_token(self) -> Optional[str]:
        cred = self._credential
        if cred is not None and self._clock() + TOKEN_EXPIRY_SAFETY_MARGIN < cred.expires_at:
            return cred.access_token
        return None

    async def get_access_token(self) -> str:
        """Return a valid machine access token, refreshing it if needed.

        Raises :class:`AuthenticationError` if the grant fails.
        """
        token = self._valid_token()
        if token is not None:
            logger.debug("Access token for machine account still valid.")
            return token

        async with self._lock:
            # Another caller may have refreshed while we waited
            token = self._valid_token()
            if token is None:
                token = await self._fetch_token()
            return token

    async def _fetch_token(self) -> str:
        """POST the client credentials grant and replace the cached credential."""
        logger.debug("Client credentials grant → %s", self._token_endpoint)
        try:
            resp = await self._client.post(
                self._token_endpoint,
                data={"grant_type": GRANT_TYPE_CLIENT_CREDENTIALS},
                auth=self._credentials.basic_auth(),
            )
        except httpx.HTTPError as exc:
            raise AuthenticationError(
                f"Client credentials grant failed: {type(exc).__name__}"
            ) from exc

        if not resp.is_success:
            raise AuthenticationError(
                "Client credentials grant rejected",
                status_code=resp.status_code,
                error_code=oauth_error_code(resp),
            )

        try:
            parsed = parse_token_response(resp)
        except ValueError as exc:
            raise AuthenticationError(f"Client credentials grant failed: {exc}") from exc

        self._credential = _MachineCredential(
            access_token=parsed.access_token,
            expires_at=self._clock() + parsed.expires_in,
        )
        logger.debug("Cache machine access token for %.0fs.", parsed.expires_in)
        return parsed.access_token
