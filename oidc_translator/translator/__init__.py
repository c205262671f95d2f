"""Identity translation between mesh subjects and OIDC bearer tokens."""

from oidc_translator.translator.core import BearerPrefixPolicy, IdentityTranslator
from oidc_translator.translator.outcome import Allowed, Error, Skip, TranslationOutcome

__all__ = [
    "Allowed",
    "BearerPrefixPolicy",
    "Error",
    "IdentityTranslator",
    "Skip",
    "TranslationOutcome",
]
