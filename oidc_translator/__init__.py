"""
OIDC Token Exchange Translator - converts between mesh and OIDC identities.

On ingress the translator turns a mesh-asserted subject ID into an OAuth2
access token (RFC 8693 token exchange); on egress it resolves an incoming
bearer token back to a subject ID via the issuer's userinfo endpoint.
"""

from oidc_translator.constants import SERVER_NAME, SERVER_VERSION

__version__ = SERVER_VERSION
__app_name__ = SERVER_NAME

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "__version__",
    "__app_name__",
]
