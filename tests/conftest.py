"""Shared fixtures: an in-process fake OIDC issuer built on httpx.MockTransport."""

from __future__ import annotations

import base64
import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

ISSUER = "https://idp"
DISCOVERY_URL = f"{ISSUER}/.well-known/openid-configuration"
TOKEN_ENDPOINT = f"{ISSUER}/token"
USERINFO_ENDPOINT = f"{ISSUER}/userinfo"
CLIENT_ID = "translator"
CLIENT_SECRET = "s3cr3t-client-secret"


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeIssuer:
    """Records requests and answers like a minimal OIDC issuer.

    Each response attribute is ``(status_code, json_body)`` and can be
    replaced per test.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.discovery_response: tuple = (
            200,
            {"token_endpoint": TOKEN_ENDPOINT, "userinfo_endpoint": USERINFO_ENDPOINT},
        )
        self.client_credentials_response: tuple = (200, {"access_token": "m1", "expires_in": 3600})
        self.exchange_response: tuple = (200, {"access_token": "u1", "expires_in": 60})
        self.userinfo: Dict[str, Any] = {"u1": {"sub": "alice"}}
        self.raise_on: Optional[str] = None

    # ── request inspection ──────────────────────────────────────────

    def calls(self, kind: str) -> List[httpx.Request]:
        return [r for r in self.requests if self.classify(r) == kind]

    @staticmethod
    def form(request: httpx.Request) -> Dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    @staticmethod
    def basic_auth(request: httpx.Request) -> Optional[tuple]:
        header = request.headers.get("authorization", "")
        if not header.startswith("Basic "):
            return None
        user, _, password = base64.b64decode(header[6:]).decode().partition(":")
        return user, password

    def classify(self, request: httpx.Request) -> str:
        url = str(request.url)
        if url == DISCOVERY_URL:
            return "discovery"
        if url == USERINFO_ENDPOINT:
            return "userinfo"
        if url == TOKEN_ENDPOINT:
            grant = self.form(request).get("grant_type")
            return "client_credentials" if grant == "client_credentials" else "exchange"
        return "unknown"

    # ── transport ───────────────────────────────────────────────────

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        kind = self.classify(request)
        if self.raise_on == kind:
            raise httpx.ConnectError("connection refused", request=request)

        if kind == "userinfo":
            token = request.headers.get("authorization", "")[len("Bearer "):]
            body = self.userinfo.get(token)
            if body is None:
                return httpx.Response(401, json={"error": "invalid_token"})
            return httpx.Response(200, json=body)

        status, body = {
            "discovery": self.discovery_response,
            "client_credentials": self.client_credentials_response,
            "exchange": self.exchange_response,
        }.get(kind, (404, {"error": "not_found"}))
        if isinstance(body, (dict, list)):
            return httpx.Response(status, content=json.dumps(body).encode(),
                                  headers={"content-type": "application/json"})
        return httpx.Response(status, content=str(body).encode())

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def issuer() -> FakeIssuer:
    return FakeIssuer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
