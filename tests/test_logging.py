"""Tests for logging setup and secret redaction."""

from __future__ import annotations

import logging

import pytest

from oidc_translator.display.logging_config import (
    SecretRedactionFilter,
    secret_redaction_filter,
    setup_logging,
)


def _record(msg, args=()) -> logging.LogRecord:
    return logging.LogRecord("oidc_translator.test", logging.INFO, __file__, 1, msg, args, None)


class TestSecretRedactionFilter:
    def test_redacts_message_and_args(self) -> None:
        flt = SecretRedactionFilter()
        flt.register("s3cr3t-client-secret")
        record = _record("secret=%s, again s3cr3t-client-secret", ("s3cr3t-client-secret",))
        assert flt.filter(record) is True
        assert "s3cr3t-client-secret" not in record.getMessage()
        assert "***REDACTED***" in record.getMessage()

    def test_redacts_dict_args(self) -> None:
        flt = SecretRedactionFilter()
        flt.register("s3cr3t-client-secret")
        record = _record("%(value)s", ({"value": "s3cr3t-client-secret"},))
        flt.filter(record)
        assert record.getMessage() == "***REDACTED***"

    def test_short_values_ignored(self) -> None:
        flt = SecretRedactionFilter()
        flt.register("abc")
        flt.register(None)
        record = _record("abc")
        flt.filter(record)
        assert record.getMessage() == "abc"

    def test_non_string_args_untouched(self) -> None:
        flt = SecretRedactionFilter()
        flt.register("s3cr3t")
        record = _record("%d", (42,))
        flt.filter(record)
        assert record.getMessage() == "42"


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def _reset(self):
        yield
        secret_redaction_filter.clear()
        for name in ("oidc_translator", "uvicorn", "uvicorn.access", "httpx", None):
            log = logging.getLogger(name)
            for handler in list(log.handlers):
                log.removeHandler(handler)
                handler.close()
            log.propagate = True

    def test_levels(self) -> None:
        _, level = setup_logging("debug")
        assert level == "DEBUG"
        assert logging.getLogger("oidc_translator").level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_invalid_level_falls_back(self, capsys) -> None:
        _, level = setup_logging("chatty")
        assert level == "INFO"
        assert logging.getLogger("httpx").level == logging.WARNING
        assert "invalid log level" in capsys.readouterr().err

    def test_file_output_is_redacted(self, tmp_path) -> None:
        log_file = tmp_path / "translator.log"
        secret_redaction_filter.register("s3cr3t-client-secret")
        setup_logging("info", log_file=str(log_file))
        logging.getLogger("oidc_translator.test").info("client secret %s", "s3cr3t-client-secret")
        for handler in logging.getLogger("oidc_translator").handlers:
            handler.flush()
        content = log_file.read_text(encoding="utf-8")
        assert "client secret ***REDACTED***" in content
        assert "s3cr3t-client-secret" not in content
