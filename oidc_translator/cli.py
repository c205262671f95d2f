"""CLI argument parsing and main entry point.

``oidc-translator`` resolves the issuer's discovery document, then serves
the ingress and egress check endpoints on their own ports until stopped.
Every flag can also be given as an environment variable (``ISSUER``,
``CLIENT_ID``, ``INGRESS_PORT`` …) or in a YAML file passed via
``--config``; flags win over the environment, the environment over the file.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

import uvicorn

from oidc_translator.config.loader import load_config
from oidc_translator.config.schema import TranslatorConfig
from oidc_translator.constants import DEFAULT_LOG_LEVEL, SERVER_NAME, SERVER_VERSION
from oidc_translator.display.logging_config import secret_redaction_filter, setup_logging
from oidc_translator.errors import ConfigurationError, TranslatorBaseError
from oidc_translator.oidc.provider import create_provider
from oidc_translator.server.app import create_egress_app, create_ingress_app
from oidc_translator.translator.core import IdentityTranslator

module_logger = logging.getLogger(__name__)

# argparse dest → TranslatorConfig field
_OVERRIDE_FIELDS = (
    "name",
    "pki_address",
    "host",
    "ingress_port",
    "egress_port",
    "debug",
    "issuer",
    "discovery_url",
    "auth_type",
    "client_id",
    "client_secret",
    "jwt_profile_path",
    "bearer_prefix_policy",
    "subject_header",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oidc-translator",
        description=(
            "Translate between mesh subject IDs and OIDC access tokens "
            "(RFC 8693 token exchange / userinfo)."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {SERVER_VERSION}")
    parser.add_argument("--config", help="Optional YAML configuration file.")

    runtime = parser.add_argument_group("runtime")
    runtime.add_argument("-n", "--name", help="Common name of the translator. [env: NAME]")
    runtime.add_argument("-p", "--pki-address", help="Address of the mesh PKI. [env: PKI_ADDRESS]")
    runtime.add_argument("--host", help="Bind address of both listeners. [env: HOST]")
    runtime.add_argument(
        "-i", "--ingress-port", type=int, help="Ingress listener port. [env: INGRESS_PORT]"
    )
    runtime.add_argument(
        "-e", "--egress-port", type=int, help="Egress listener port. [env: EGRESS_PORT]"
    )
    runtime.add_argument(
        "--subject-header", help="Header carrying the mesh subject. [env: SUBJECT_HEADER]"
    )
    runtime.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging. [env: DEBUG]",
    )
    runtime.add_argument("--log-file", help="Also write logs to this file.")

    issuer = parser.add_argument_group("issuer")
    issuer.add_argument("--issuer", help="OIDC issuer URL. [env: ISSUER]")
    issuer.add_argument(
        "--discovery-url",
        help="Full URL of the discovery document, overriding the issuer's well-known URL. "
        "[env: DISCOVERY_URL]",
    )
    issuer.add_argument(
        "--auth-type",
        choices=["client-credentials", "client_credentials", "jwt-profile", "jwt_profile"],
        help="How the translator authenticates against the issuer. [env: AUTH_TYPE]",
    )
    issuer.add_argument("--client-id", help="Client ID (client credentials). [env: CLIENT_ID]")
    issuer.add_argument(
        "--client-secret", help="Client secret (client credentials). [env: CLIENT_SECRET]"
    )
    issuer.add_argument(
        "--jwt-profile-path", help="JWT profile file (jwt profile). [env: JWT_PROFILE_PATH]"
    )
    issuer.add_argument(
        "--bearer-prefix-policy",
        choices=["literal_replace", "strict_prefix"],
        help="How the bearer token is cut out of the Authorization header. "
        "[env: BEARER_PREFIX_POLICY]",
    )
    return parser


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    return {name: getattr(args, name) for name in _OVERRIDE_FIELDS}


async def run_translator(config: TranslatorConfig) -> int:
    """Create the provider and serve both listeners until shutdown."""
    try:
        provider = await create_provider(config)
    except TranslatorBaseError as exc:
        module_logger.error("Could not initialize identity provider: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    translator = IdentityTranslator(provider, prefix_policy=config.bearer_prefix_policy)
    log_level = "debug" if config.debug else "warning"
    servers: List[uvicorn.Server] = [
        uvicorn.Server(
            uvicorn.Config(
                app=create_ingress_app(translator, config.subject_header),
                host=config.host,
                port=config.ingress_port,
                log_config=None,
                log_level=log_level,
            )
        ),
        uvicorn.Server(
            uvicorn.Config(
                app=create_egress_app(translator, config.subject_header),
                host=config.host,
                port=config.egress_port,
                log_config=None,
                log_level=log_level,
            )
        ),
    ]

    module_logger.info(
        "Serving ingress on %s:%s and egress on %s:%s",
        config.host,
        config.ingress_port,
        config.host,
        config.egress_port,
    )
    tasks = [
        asyncio.create_task(_serve(server, direction))
        for server, direction in zip(servers, ("ingress", "egress"))
    ]
    try:
        # Once either listener stops, stop the other too
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for server in servers:
            server.should_exit = True
        results = await asyncio.gather(*tasks)
    finally:
        await provider.aclose()
        module_logger.info("%s has shut down.", SERVER_NAME)
    return 0 if all(results) else 1


async def _serve(server: uvicorn.Server, direction: str) -> bool:
    """Run one listener; False if uvicorn aborted it (e.g. port already in use)."""
    try:
        await server.serve()
    except SystemExit as exc:
        # uvicorn calls sys.exit(1) when startup fails
        module_logger.error("The %s listener failed to start (exit code %s).", direction, exc.code)
        return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, overrides=_overrides_from_args(args))
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    secret_redaction_filter.register(config.client_secret)
    setup_logging("DEBUG" if config.debug else DEFAULT_LOG_LEVEL, log_file=args.log_file)
    module_logger.info("Starting oidc token exchange translator '%s'.", config.name)
    module_logger.debug("Debug logging is enabled.")

    try:
        return asyncio.run(run_translator(config))
    except KeyboardInterrupt:
        module_logger.info("Interrupted.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
