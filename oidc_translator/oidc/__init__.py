"""OIDC protocol clients used by the translator.

* :mod:`discovery`   – discovery document resolution
* :mod:`credentials` – machine-account credential cache (client credentials)
* :mod:`exchange`    – RFC 8693 token exchange
* :mod:`userinfo`    – userinfo-based subject resolution
* :mod:`provider`    – provider abstraction tying the above together
"""

from oidc_translator.oidc.credentials import ClientCredentials, MachineCredentialCache
from oidc_translator.oidc.discovery import DiscoveryDocument, OIDCDiscovery
from oidc_translator.oidc.exchange import ExchangeRequest, TokenExchangeClient
from oidc_translator.oidc.provider import (
    ClientCredentialProvider,
    JWTProfileProvider,
    Provider,
    create_provider,
)
from oidc_translator.oidc.userinfo import UserInfoResult, UserResolver

__all__ = [
    "ClientCredentialProvider",
    "ClientCredentials",
    "DiscoveryDocument",
    "ExchangeRequest",
    "JWTProfileProvider",
    "MachineCredentialCache",
    "OIDCDiscovery",
    "Provider",
    "TokenExchangeClient",
    "UserInfoResult",
    "UserResolver",
    "create_provider",
]
