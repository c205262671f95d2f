"""Configuration loading and validation.

Sources, lowest priority first:

1. an optional YAML file (``${ENV_VAR}`` placeholders are expanded),
2. environment variables named after the upper-cased field
   (``ISSUER``, ``CLIENT_ID``, ``INGRESS_PORT`` …),
3. explicit overrides, normally taken from the command line.

The public API is :func:`load_config`, which returns a validated
:class:`TranslatorConfig` or raises :class:`ConfigurationError`.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from oidc_translator.config.schema import TranslatorConfig
from oidc_translator.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})

# Regex for ${VAR_NAME} — captures the variable name inside ${}
_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


def expand_env_vars(value: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
    """Recursively expand ``${VAR}`` references in string values.

    - If the env var is not set, the placeholder is left unchanged.
    - Non-string leaves are returned as-is.
    - Dicts and lists are walked recursively.
    """
    env = os.environ if environ is None else environ
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: env.get(m.group(1), m.group(0)), value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item, env) for item in value]
    return value


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _from_environment(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect non-empty environment variables that match config fields."""
    values: Dict[str, Any] = {}
    for field_name in TranslatorConfig.model_fields:
        raw = environ.get(field_name.upper())
        if raw is not None and raw.strip() != "":
            values[field_name] = raw
    return values


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"]) or "config"
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


def load_config(
    path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TranslatorConfig:
    """Load, merge and validate the translator configuration."""
    env = os.environ if environ is None else environ

    merged: Dict[str, Any] = {}
    if path is not None:
        cfg_abs_path = os.path.abspath(path)
        logger.info("Loading configuration file: %s", cfg_abs_path)
        merged.update(expand_env_vars(_read_config_file(cfg_abs_path), env))

    merged.update(_from_environment(env))

    if overrides:
        merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        config = TranslatorConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(
            "Configuration validation failed:\n" + _format_validation_errors(exc)
        ) from exc

    logger.debug(
        "Configuration validated (issuer=%s, auth_type=%s).",
        config.issuer,
        config.auth_type.value,
    )
    return config
