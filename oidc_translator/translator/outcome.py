"""Per-request results handed back to the host runtime."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from oidc_translator.errors import ErrorKind


@dataclass(frozen=True)
class Allowed:
    """Let the request through, optionally rewriting headers / identity.

    ``headers_to_set`` may carry bearer tokens and is kept out of ``repr``.
    """

    headers_to_set: Tuple[Tuple[str, str], ...] = field(default=(), repr=False)
    resolved_subject: Optional[str] = None
    headers_to_remove: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Skip:
    """The request is not subject to translation."""


@dataclass(frozen=True)
class Error:
    """Translation failed; the host runtime must fail the request."""

    message: str
    kind: ErrorKind


TranslationOutcome = Union[Allowed, Skip, Error]
