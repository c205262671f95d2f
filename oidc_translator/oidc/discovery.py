"""OIDC discovery.

Fetches the ``/.well-known/openid-configuration`` document from an
issuer (or an explicit document URL) and extracts the token and
userinfo endpoints used by the translator.

Usage::

    discovery = OIDCDiscovery(discovery_url_for_issuer("https://idp"), client)
    document = await discovery.fetch()
    # document.token_endpoint → "https://idp/oauth/token"

The document is fetched once per instance and never refreshed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from oidc_translator.constants import WELL_KNOWN_PATH
from oidc_translator.errors import DiscoveryError

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("token_endpoint", "userinfo_endpoint")


@dataclass(frozen=True)
class DiscoveryDocument:
    """Parsed OIDC discovery document (subset used by the translator)."""

    token_endpoint: str
    userinfo_endpoint: str


def discovery_url_for_issuer(issuer: str) -> str:
    """Return the well-known discovery document URL for *issuer*."""
    return f"{issuer.rstrip('/')}{WELL_KNOWN_PATH}"


def parse_discovery_document(data: Any, url: str = "<document>") -> DiscoveryDocument:
    """Build a :class:`DiscoveryDocument` from a decoded JSON body.

    Raises :class:`DiscoveryError` if the body is not an object or a
    required endpoint is missing.
    """
    if not isinstance(data, dict):
        raise DiscoveryError(f"OIDC discovery document at {url} is not a JSON object")

    missing = [
        name for name in _REQUIRED_FIELDS if not isinstance(data.get(name), str) or not data[name]
    ]
    if missing:
        raise DiscoveryError(
            f"OIDC discovery document at {url} missing required field(s): {', '.join(missing)}"
        )

    return DiscoveryDocument(
        token_endpoint=data["token_endpoint"],
        userinfo_endpoint=data["userinfo_endpoint"],
    )


class OIDCDiscovery:
    """Fetch and parse an OIDC discovery document.

    Parameters
    ----------
    url:
        Full URL of the discovery document.
    client:
        Shared HTTP client used for the request.
    """

    def __init__(self, url: str, client: httpx.AsyncClient) -> None:
        self._url = url
        self._client = client
        self._cached: Optional[DiscoveryDocument] = None

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self) -> DiscoveryDocument:
        """Fetch the discovery document (once).

        Raises :class:`DiscoveryError` on transport errors, non-2xx
        responses, undecodable bodies or missing endpoints.
        """
        if self._cached is not None:
            return self._cached

        logger.debug("Fetching OIDC discovery document: %s", self._url)
        try:
            resp = await self._client.get(self._url)
        except httpx.HTTPError as exc:
            raise DiscoveryError(
                f"Failed to fetch OIDC discovery document from {self._url}: "
                f"{type(exc).__name__}"
            ) from exc

        if not resp.is_success:
            raise DiscoveryError(
                f"Failed to fetch OIDC discovery document from {self._url}",
                status_code=resp.status_code,
            )

        try:
            data: Dict[str, Any] = resp.json()
        except ValueError as exc:
            raise DiscoveryError(
                f"OIDC discovery document at {self._url} is not valid JSON"
            ) from exc

        document = parse_discovery_document(data, self._url)
        self._cached = document
        logger.info(
            "OIDC discovery complete: token_endpoint=%s, userinfo_endpoint=%s",
            document.token_endpoint,
            document.userinfo_endpoint,
        )
        return document
