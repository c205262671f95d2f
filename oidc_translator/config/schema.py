"""Pydantic configuration model for the translator."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from oidc_translator.constants import (
    DEFAULT_EGRESS_PORT,
    DEFAULT_HOST,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_INGRESS_PORT,
    DEFAULT_SUBJECT_HEADER,
    DEFAULT_TRANSLATOR_NAME,
)
from oidc_translator.oidc.discovery import discovery_url_for_issuer
from oidc_translator.translator.core import BearerPrefixPolicy


class AuthType(str, Enum):
    """How the translator authenticates itself against the issuer."""

    CLIENT_CREDENTIALS = "client_credentials"
    JWT_PROFILE = "jwt_profile"


_REQUIRED_BY_AUTH_TYPE = {
    AuthType.CLIENT_CREDENTIALS: ("client_id", "client_secret"),
    AuthType.JWT_PROFILE: ("jwt_profile_path",),
}


class TranslatorConfig(BaseModel):
    """Validated translator configuration."""

    # ── Host runtime ──────────────────────────────────────────────────
    name: str = Field(
        default=DEFAULT_TRANSLATOR_NAME,
        min_length=1,
        description="Common name used when requesting a certificate from the PKI.",
    )
    pki_address: Optional[str] = Field(
        default=None, description="Address of the mesh PKI (host runtime only)."
    )
    host: str = Field(default=DEFAULT_HOST, description="Bind address of both listeners.")
    ingress_port: int = Field(default=DEFAULT_INGRESS_PORT, ge=1, le=65535)
    egress_port: int = Field(default=DEFAULT_EGRESS_PORT, ge=1, le=65535)
    debug: bool = False
    subject_header: str = Field(
        default=DEFAULT_SUBJECT_HEADER,
        min_length=1,
        description="Header carrying the mesh subject on the check endpoints.",
    )

    # ── Issuer ────────────────────────────────────────────────────────
    issuer: str = Field(..., min_length=1, description="OIDC issuer URL.")
    discovery_url: Optional[str] = Field(
        default=None, description="Full URL of the discovery document (overrides issuer)."
    )
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)

    # ── Machine authentication ────────────────────────────────────────
    auth_type: AuthType
    client_id: Optional[str] = None
    client_secret: Optional[str] = Field(default=None, repr=False)
    jwt_profile_path: Optional[str] = None

    bearer_prefix_policy: BearerPrefixPolicy = BearerPrefixPolicy.LITERAL_REPLACE

    @field_validator("issuer", "discovery_url")
    @classmethod
    def _validate_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"URL '{v}' must start with http:// or https://")
        return v

    @field_validator("issuer")
    @classmethod
    def _strip_issuer_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("auth_type", "bearer_prefix_policy", mode="before")
    @classmethod
    def _normalise_choice(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v

    @field_validator("subject_header")
    @classmethod
    def _lower_header(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def _check_consistency(self) -> "TranslatorConfig":
        if self.ingress_port == self.egress_port:
            raise ValueError("ingress_port and egress_port must differ")
        missing = [
            name for name in _REQUIRED_BY_AUTH_TYPE[self.auth_type] if not getattr(self, name)
        ]
        if missing:
            raise ValueError(
                f"auth_type '{self.auth_type.value}' requires: {', '.join(missing)}"
            )
        return self

    @property
    def discovery_document_url(self) -> str:
        """Discovery document URL: explicit override or the issuer's well-known URL."""
        return self.discovery_url or discovery_url_for_issuer(self.issuer)
