"""Shared constants for the OIDC Token Exchange Translator."""

SERVER_NAME = "OIDC Token Exchange Translator"
SERVER_VERSION = "0.1.0"

# Network defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_INGRESS_PORT = 50051
DEFAULT_EGRESS_PORT = 50052
DEFAULT_TRANSLATOR_NAME = "k8s oidc token exchange translator"

# HTTP
HTTP_AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "
DEFAULT_SUBJECT_HEADER = "x-mesh-subject"
# Envoy ext_authz: comma separated list of request headers to strip upstream
HEADERS_TO_REMOVE_HEADER = "x-envoy-auth-headers-to-remove"
HEALTH_PATH = "/healthz"
DEFAULT_HTTP_TIMEOUT = 10.0  # seconds

# OIDC / OAuth2
WELL_KNOWN_PATH = "/.well-known/openid-configuration"
GRANT_TYPE_CLIENT_CREDENTIALS = "client_credentials"
GRANT_TYPE_TOKEN_EXCHANGE = "urn:ietf:params:oauth:grant-type:token-exchange"
TOKEN_TYPE_ACCESS_TOKEN = "urn:ietf:params:oauth:token-type:access_token"  # nosec B105

# Machine tokens are treated as expired this many seconds early.
TOKEN_EXPIRY_SAFETY_MARGIN = 10.0

# Logging defaults
DEFAULT_LOG_LEVEL = "INFO"
