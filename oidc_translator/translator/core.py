"""Ingress / egress decision logic.

The host runtime calls :meth:`IdentityTranslator.ingress` for traffic
leaving the mesh towards a service that expects an OIDC bearer token, and
:meth:`IdentityTranslator.egress` for traffic arriving with a bearer token
that has to be mapped back to a mesh subject.  The translator holds no
per-request state; concurrent calls are independent.

Failures are never turned into :class:`Skip`: a request whose identity
cannot be translated must be failed by the host runtime.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from oidc_translator.constants import BEARER_PREFIX, HTTP_AUTHORIZATION_HEADER
from oidc_translator.errors import TranslatorBaseError
from oidc_translator.oidc.provider import Provider
from oidc_translator.translator.outcome import Allowed, Error, Skip, TranslationOutcome

logger = logging.getLogger(__name__)


class BearerPrefixPolicy(str, Enum):
    """How the bearer token is cut out of the ``Authorization`` header.

    ``literal_replace`` removes every occurrence of ``"Bearer "`` in the
    header value (historical behaviour; alters tokens that contain that
    text).  ``strict_prefix`` removes only the leading prefix.
    """

    LITERAL_REPLACE = "literal_replace"
    STRICT_PREFIX = "strict_prefix"

    def extract(self, header_value: str) -> Optional[str]:
        """Return the token, or ``None`` if the header is not a bearer header."""
        if not header_value.startswith(BEARER_PREFIX):
            return None
        if self is BearerPrefixPolicy.STRICT_PREFIX:
            return header_value[len(BEARER_PREFIX):] or None
        return header_value.replace(BEARER_PREFIX, "")


def get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


class IdentityTranslator:
    """Map between mesh subjects and issuer bearer tokens.

    Usage::

        translator = IdentityTranslator(provider)
        outcome = await translator.ingress("alice")
        outcome = await translator.egress({"Authorization": "Bearer ..."})
    """

    def __init__(
        self,
        provider: Provider,
        *,
        prefix_policy: BearerPrefixPolicy = BearerPrefixPolicy.LITERAL_REPLACE,
    ) -> None:
        self._provider = provider
        self._prefix_policy = prefix_policy

    @property
    def provider(self) -> Provider:
        return self._provider

    async def ingress(
        self, subject_id: str, verification_context: Any = None
    ) -> TranslationOutcome:
        """Attach an access token for *subject_id* to the outgoing request.

        *verification_context* is the host runtime's request payload; it is
        accepted for interface compatibility and not inspected.
        """
        try:
            access_token = await self._provider.access_token_for_subject(subject_id)
        except TranslatorBaseError as exc:
            message = f"Failed to get access token for user ID '{subject_id}': {exc}"
            logger.error(message)
            return Error(message=message, kind=exc.kind)

        logger.debug("Fetched access token for user with ID '%s'.", subject_id)
        return Allowed(
            headers_to_set=((HTTP_AUTHORIZATION_HEADER, f"{BEARER_PREFIX}{access_token}"),),
        )

    async def egress(self, headers: Mapping[str, str]) -> TranslationOutcome:
        """Resolve the request's bearer token to a mesh subject."""
        auth_header = get_header(headers, HTTP_AUTHORIZATION_HEADER)
        if auth_header is None:
            logger.debug("No authorization header found. Skip request.")
            return Skip()

        access_token = self._prefix_policy.extract(auth_header)
        if access_token is None:
            logger.debug("Authorization header does not start with 'Bearer'. Skip request.")
            return Skip()

        try:
            subject = await self._provider.subject_for_token(access_token)
        except TranslatorBaseError as exc:
            message = f"Failed to get user ID for access token: {exc}"
            logger.error(message)
            return Error(message=message, kind=exc.kind)

        logger.debug("Fetched user ID '%s' from access token.", subject)
        return Allowed(
            resolved_subject=subject,
            headers_to_remove=(HTTP_AUTHORIZATION_HEADER,),
        )
