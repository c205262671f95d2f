"""Starlette check endpoints for the ingress and egress listeners.

The endpoints follow the shape of an HTTP external-authorization service
(Envoy ``ext_authz``): the proxy forwards the original request headers and
any path; a ``200`` response lets the request continue and its headers are
applied upstream, any other status fails the request.

* ingress – the mesh subject arrives in the configured subject header;
  an ``Authorization: Bearer <token>`` header is returned.
* egress – the bearer token is resolved to a subject, which is returned in
  the subject header together with ``x-envoy-auth-headers-to-remove``.  The
  subject header is always listed for removal so that a value written by
  the caller never reaches the upstream service.
"""

import logging
from typing import Dict, List, Sequence

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from oidc_translator.constants import (
    DEFAULT_SUBJECT_HEADER,
    HEADERS_TO_REMOVE_HEADER,
    HEALTH_PATH,
)
from oidc_translator.errors import ErrorKind
from oidc_translator.translator.core import IdentityTranslator
from oidc_translator.translator.outcome import Allowed, Error, TranslationOutcome

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# ── Helpers ──────────────────────────────────────────────────────────────


def _error_json(error: str, message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse({"error": error, "message": message}, status_code=status_code)


def _get_translator(request: Request) -> IdentityTranslator:
    translator = getattr(request.app.state, "translator", None)
    if translator is None:
        raise RuntimeError("IdentityTranslator not found on app.state")
    return translator


def is_header_safe(value: str) -> bool:
    """True if *value* can be sent as an HTTP header value unchanged."""
    try:
        value.encode("latin-1")
    except UnicodeEncodeError:
        return False
    return not any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


def outcome_to_response(
    outcome: TranslationOutcome,
    subject_header: str,
    strip_headers: Sequence[str] = (),
) -> Response:
    """Render a :data:`TranslationOutcome` as a check response.

    *strip_headers* are listed in ``x-envoy-auth-headers-to-remove`` for
    every non-error outcome, in addition to the outcome's own removals.
    """
    if isinstance(outcome, Error):
        return _error_json(outcome.kind.value, outcome.message)

    headers: Dict[str, str] = {}
    to_remove: List[str] = [name.lower() for name in strip_headers]
    if isinstance(outcome, Allowed):
        headers.update(outcome.headers_to_set)
        subject = outcome.resolved_subject
        if subject is not None:
            if not is_header_safe(subject):
                logger.error("Resolved subject cannot be sent in header '%s'.", subject_header)
                return _error_json(
                    ErrorKind.USER_RESOLUTION.value,
                    f"Resolved subject cannot be sent in header '{subject_header}'",
                )
            headers[subject_header] = subject
        to_remove.extend(name.lower() for name in outcome.headers_to_remove)

    if to_remove:
        headers[HEADERS_TO_REMOVE_HEADER] = ",".join(dict.fromkeys(to_remove))
    return Response(status_code=200, headers=headers)


async def handle_health(request: Request) -> JSONResponse:
    """Liveness probe."""
    return JSONResponse({"status": "ok"})


# ── Ingress ──────────────────────────────────────────────────────────────


async def handle_ingress_check(request: Request) -> Response:
    translator = _get_translator(request)
    subject_header: str = request.app.state.subject_header

    subject_id = request.headers.get(subject_header, "").strip()
    if not subject_id:
        logger.warning("Ingress check without '%s' header. Deny request.", subject_header)
        return _error_json(
            "missing_subject", f"Header '{subject_header}' is required", status_code=403
        )

    outcome = await translator.ingress(subject_id, request)
    return outcome_to_response(outcome, subject_header)


# ── Egress ───────────────────────────────────────────────────────────────


async def handle_egress_check(request: Request) -> Response:
    translator = _get_translator(request)
    subject_header: str = request.app.state.subject_header
    outcome = await translator.egress(request.headers)
    return outcome_to_response(outcome, subject_header, strip_headers=(subject_header,))


# ── App factories ────────────────────────────────────────────────────────


def _create_app(
    translator: IdentityTranslator, subject_header: str, endpoint, direction: str
) -> Starlette:
    application = Starlette(
        routes=[
            Route(HEALTH_PATH, endpoint=handle_health, methods=["GET"]),
            Route("/{path:path}", endpoint=endpoint, methods=_ALL_METHODS),
        ],
    )
    application.state.translator = translator
    application.state.subject_header = subject_header.lower()
    logger.debug("Starlette %s check app created.", direction)
    return application


def create_ingress_app(
    translator: IdentityTranslator, subject_header: str = DEFAULT_SUBJECT_HEADER
) -> Starlette:
    """Create the ASGI app served on the ingress port."""
    return _create_app(translator, subject_header, handle_ingress_check, "ingress")


def create_egress_app(
    translator: IdentityTranslator, subject_header: str = DEFAULT_SUBJECT_HEADER
) -> Starlette:
    """Create the ASGI app served on the egress port."""
    return _create_app(translator, subject_header, handle_egress_check, "egress")
