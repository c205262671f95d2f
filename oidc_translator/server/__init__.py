"""Host-runtime adapter exposing the translator as HTTP check endpoints."""

from oidc_translator.server.app import create_egress_app, create_ingress_app

__all__ = ["create_egress_app", "create_ingress_app"]
