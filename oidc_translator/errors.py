"""Custom exception classes for the OIDC Token Exchange Translator.

Every error carries an :class:`ErrorKind` so callers can branch on the
failure class without matching message strings.  Messages never contain
secrets or token material; only identifiers and HTTP status information.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of failure classes raised by the translator core."""

    DISCOVERY = "discovery"
    AUTHENTICATION = "authentication"
    TOKEN_EXCHANGE = "token_exchange"
    USER_RESOLUTION = "user_resolution"
    CONFIGURATION = "configuration"
    NOT_IMPLEMENTED = "not_implemented"


class TranslatorBaseError(Exception):
    """Base class for all custom exceptions in the translator."""

    kind: ErrorKind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

        full_msg = message
        if status_code is not None:
            full_msg += f" (HTTP {status_code}"
            if error_code:
                full_msg += f", error: {error_code}"
            full_msg += ")"
        super().__init__(full_msg)


class ConfigurationError(TranslatorBaseError):
    """Raised when required configuration is missing or invalid."""

    kind = ErrorKind.CONFIGURATION


class DiscoveryError(TranslatorBaseError):
    """Raised when the OIDC discovery document cannot be resolved."""

    kind = ErrorKind.DISCOVERY


class AuthenticationError(TranslatorBaseError):
    """Raised when the machine account credential cannot be obtained."""

    kind = ErrorKind.AUTHENTICATION


class TokenExchangeError(TranslatorBaseError):
    """
    Raised when the RFC 8693 token exchange for a subject fails.

    The subject ID is kept on the exception (and in the message) for
    diagnostics.
    """

    kind = ErrorKind.TOKEN_EXCHANGE

    def __init__(
        self,
        message: str,
        subject_id: str,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        self.subject_id = subject_id
        super().__init__(
            f"{message} (subject: '{subject_id}')",
            status_code=status_code,
            error_code=error_code,
        )


class UserResolutionError(TranslatorBaseError):
    """Raised when a bearer token cannot be resolved to a subject."""

    kind = ErrorKind.USER_RESOLUTION


class ProviderNotImplementedError(TranslatorBaseError):
    """Raised when a configured provider variant has no implementation."""

    kind = ErrorKind.NOT_IMPLEMENTED
