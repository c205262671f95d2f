"""Logging configuration setup."""

import copy
import logging
import logging.config
import re
import sys
from typing import Optional, Set, Tuple  # noqa: UP035

# ── Secret redaction filter ──────────────────────────────────────────────

_REDACTED = "***REDACTED***"


class SecretRedactionFilter(logging.Filter):
    """Logging filter that replaces registered secret values with a placeholder.

    Call :meth:`register` to add values that should be scrubbed (the
    client secret is registered at startup).
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: Set[str] = set()
        self._pattern: re.Pattern[str] | None = None

    def register(self, value: Optional[str]) -> None:
        """Register a secret value for redaction."""
        if value and len(value) >= 4:  # skip trivially short values
            self._secrets.add(value)
            # Rebuild regex pattern with longest-first ordering
            escaped = sorted((re.escape(s) for s in self._secrets), key=len, reverse=True)
            self._pattern = re.compile("|".join(escaped))

    def clear(self) -> None:
        self._secrets.clear()
        self._pattern = None

    def filter(self, record: logging.LogRecord) -> bool:
        if self._pattern is not None:
            if isinstance(record.msg, str):
                record.msg = self._pattern.sub(_REDACTED, record.msg)
            if record.args:
                if isinstance(record.args, dict):
                    record.args = {
                        k: self._pattern.sub(_REDACTED, v) if isinstance(v, str) else v
                        for k, v in record.args.items()
                    }
                elif isinstance(record.args, tuple):
                    record.args = tuple(
                        self._pattern.sub(_REDACTED, a) if isinstance(a, str) else a
                        for a in record.args
                    )
        return True


# Module-level singleton so startup code can register values.
secret_redaction_filter = SecretRedactionFilter()

BASE_LOG_CFG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {
            "format": ("%(asctime)s - %(name)30s:%(lineno)-4d - " "%(levelname)-7s - %(message)s"),
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console_handler": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "simple",
            "stream": "ext://sys.stderr",
        },
    },
    "loggers": {
        "oidc_translator": {
            "handlers": ["console_handler"],
            "propagate": False,
            "level": "INFO",
        },
        "uvicorn": {
            "handlers": ["console_handler"],
            "propagate": False,
            "level": "INFO",
        },
        "uvicorn.access": {
            "handlers": ["console_handler"],
            "propagate": False,
            "level": "WARNING",
        },
        "httpx": {
            "handlers": ["console_handler"],
            "propagate": False,
            "level": "WARNING",
        },
    },
    "root": {
        "handlers": ["console_handler"],
        "level": "WARNING",
    },
}


def setup_logging(log_lvl_str: str, *, log_file: Optional[str] = None) -> Tuple[Optional[str], str]:
    """
    Set up the logging system.

    Logs go to stderr and, if *log_file* is given, to that file as well.

    Args:
        log_lvl_str: The desired log level string (e.g., 'debug', 'info').
        log_file: Optional path of an additional log file.

    Returns:
        A tuple of (log_file_path, validated_log_level).
    """
    log_lvl_valid = log_lvl_str.upper()
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if log_lvl_valid not in valid_levels:
        print(f"Warning: invalid log level '{log_lvl_str}'. Using 'INFO'.", file=sys.stderr)
        log_lvl_valid = "INFO"

    log_cfg: dict = copy.deepcopy(BASE_LOG_CFG)
    handler_names = ["console_handler"]
    if log_file:
        log_cfg["handlers"]["file_handler"] = {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "simple",
            "filename": log_file,
            "encoding": "utf-8",
        }
        handler_names.append("file_handler")

    for name in ("oidc_translator", "uvicorn"):
        log_cfg["loggers"][name]["level"] = log_lvl_valid
    # httpx logs every request line at INFO; only surface it when debugging
    log_cfg["loggers"]["httpx"]["level"] = "DEBUG" if log_lvl_valid == "DEBUG" else "WARNING"
    log_cfg["loggers"]["uvicorn.access"]["level"] = (
        "INFO" if log_lvl_valid == "DEBUG" else "WARNING"
    )
    for logger_cfg in log_cfg["loggers"].values():
        logger_cfg["handlers"] = list(handler_names)
    log_cfg["root"]["handlers"] = list(handler_names)

    logging.config.dictConfig(log_cfg)
    # Attach secret redaction filter to every configured handler
    seen = set()
    for name in [None, *log_cfg["loggers"]]:
        for handler in logging.getLogger(name).handlers:
            if id(handler) not in seen:
                seen.add(id(handler))
                handler.addFilter(secret_redaction_filter)

    return log_file, log_lvl_valid
