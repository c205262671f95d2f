"""Identity providers used by the translator.

Implements two variants, selected by ``auth_type``:

* **ClientCredentialProvider** – the translator authenticates with client
  ID / secret (HTTP Basic) and uses token exchange for ingress.
* **JWTProfileProvider** – RFC 7523 private-key-JWT authentication.  Known
  to configuration, but not implemented.
* **create_provider** – factory that builds a provider from a config.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Optional

import httpx

from oidc_translator.constants import DEFAULT_HTTP_TIMEOUT
from oidc_translator.errors import ConfigurationError, ProviderNotImplementedError
from oidc_translator.oidc.credentials import ClientCredentials, MachineCredentialCache
from oidc_translator.oidc.discovery import DiscoveryDocument, OIDCDiscovery
from oidc_translator.oidc.exchange import TokenExchangeClient
from oidc_translator.oidc.userinfo import UserResolver

if TYPE_CHECKING:
    from oidc_translator.config.schema import TranslatorConfig

logger = logging.getLogger(__name__)


# ── Abstract base ─────────────────────────────────────────────────────


class Provider(abc.ABC):
    """Base class for issuer-backed identity translation strategies."""

    @abc.abstractmethod
    async def access_token_for_subject(self, subject_id: str) -> str:
        """Return an access token representing *subject_id*."""

    @abc.abstractmethod
    async def subject_for_token(self, token: str) -> str:
        """Return the subject the issuer associates with *token*."""

    @abc.abstractmethod
    async def aclose(self) -> None:
        """Release network resources."""

    @abc.abstractmethod
    def redacted_repr(self) -> str:
        """Human-readable description with sensitive values masked."""


# ── Client credentials ───────────────────────────────────────────────


class ClientCredentialProvider(Provider):
    """Client credentials machine account + RFC 8693 token exchange.

    Use :meth:`create` to build an instance; it resolves the discovery
    document first and fails if that is not possible.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        discovery: DiscoveryDocument,
        credentials: ClientCredentials,
        *,
        owns_client: bool = True,
    ) -> None:
        self._client = client
        self._owns_client = owns_client
        self._discovery = discovery
        self._credentials = credentials
        self._machine_credentials = MachineCredentialCache(
            client, discovery.token_endpoint, credentials
        )
        self._exchange = TokenExchangeClient(
            client, discovery.token_endpoint, credentials, self._machine_credentials
        )
        self._users = UserResolver(client, discovery.userinfo_endpoint)

    @classmethod
    async def create(
        cls,
        discovery_url: str,
        client_id: Optional[str],
        client_secret: Optional[str],
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> "ClientCredentialProvider":
        """Resolve discovery and build the provider.

        Raises :class:`ConfigurationError` for missing credentials and
        :class:`DiscoveryError` if the discovery document cannot be used.
        """
        missing = [
            name
            for name, value in (("client_id", client_id), ("client_secret", client_secret))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Client credentials authentication requires: {', '.join(missing)}"
            )

        owns_client = http_client is None
        client = http_client or httpx.AsyncClient(timeout=timeout)
        try:
            document = await OIDCDiscovery(discovery_url, client).fetch()
        except BaseException:
            if owns_client:
                await client.aclose()
            raise

        return cls(
            client,
            document,
            ClientCredentials(client_id=client_id, client_secret=client_secret),  # type: ignore[arg-type]
            owns_client=owns_client,
        )

    @property
    def discovery(self) -> DiscoveryDocument:
        return self._discovery

    @property
    def machine_credentials(self) -> MachineCredentialCache:
        return self._machine_credentials

    async def access_token_for_subject(self, subject_id: str) -> str:
        return await self._exchange.access_token_for_subject(subject_id)

    async def subject_for_token(self, token: str) -> str:
        return await self._users.subject_for_token(token)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def redacted_repr(self) -> str:
        return (
            f"ClientCredentialProvider(token_endpoint={self._discovery.token_endpoint!r}, "
            f"client_id={self._credentials.client_id!r}, "
            "client_secret=****)"
        )


# ── JWT profile (RFC 7523) ───────────────────────────────────────────


class JWTProfileProvider(Provider):
    """Private-key-JWT machine authentication.

    Accepted by configuration so that the choice is explicit; construction
    raises :class:`ProviderNotImplementedError`, so startup fails.
    """

    def __init__(self, jwt_profile_path: Optional[str] = None) -> None:
        raise ProviderNotImplementedError(
            "JWT profile authentication is not implemented; use auth_type 'client_credentials'"
        )

    # Unreachable; present only to satisfy the Provider interface.
    async def access_token_for_subject(self, subject_id: str) -> str:
        raise NotImplementedError

    async def subject_for_token(self, token: str) -> str:
        raise NotImplementedError

    async def aclose(self) -> None:
        raise NotImplementedError

    def redacted_repr(self) -> str:
        raise NotImplementedError


# ── Factory ──────────────────────────────────────────────────────────


async def create_provider(
    config: "TranslatorConfig",
    *,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Provider:
    """Build the :class:`Provider` selected by ``config.auth_type``."""
    from oidc_translator.config.schema import AuthType

    if config.auth_type is AuthType.CLIENT_CREDENTIALS:
        provider = await ClientCredentialProvider.create(
            config.discovery_document_url,
            config.client_id,
            config.client_secret,
            http_client=http_client,
            timeout=config.http_timeout,
        )
        logger.info("Identity provider ready: %s", provider.redacted_repr())
        return provider

    if config.auth_type is AuthType.JWT_PROFILE:
        return JWTProfileProvider(config.jwt_profile_path)

    raise ConfigurationError(f"Unknown auth type: {config.auth_type!r}")
