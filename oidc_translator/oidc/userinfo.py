"""Resolve a bearer token to its subject via the userinfo endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from oidc_translator.constants import BEARER_PREFIX, HTTP_AUTHORIZATION_HEADER
from oidc_translator.errors import UserResolutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserInfoResult:
    """The part of a userinfo response the translator uses."""

    subject: str

    @classmethod
    def from_payload(cls, payload: Any) -> "UserInfoResult":
        if not isinstance(payload, dict):
            raise UserResolutionError("Userinfo response is not a JSON object")
        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub:
            raise UserResolutionError("Userinfo response missing 'sub' claim")
        return cls(subject=sub)


class UserResolver:
    """Look up the subject of a caller-supplied token.

    Tokens are untrusted input, so nothing is cached: every call asks
    the issuer again.
    """

    def __init__(self, client: httpx.AsyncClient, userinfo_endpoint: str) -> None:
        self._client = client
        self._userinfo_endpoint = userinfo_endpoint

    async def subject_for_token(self, token: str) -> str:
        try:
            resp = await self._client.get(
                self._userinfo_endpoint,
                headers={HTTP_AUTHORIZATION_HEADER: f"{BEARER_PREFIX}{token}"},
            )
        except httpx.HTTPError as exc:
            raise UserResolutionError(
                f"Userinfo request failed: {type(exc).__name__}"
            ) from exc

        if not resp.is_success:
            raise UserResolutionError("Userinfo request rejected", status_code=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise UserResolutionError("Userinfo response is not valid JSON") from exc

        return UserInfoResult.from_payload(payload).subject
