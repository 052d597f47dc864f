"""Tests for the structured logging system (books_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from books_kernel.exceptions import UnknownParentAccountError
from books_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from books_kernel.models.account import AccountType


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, restoring suite config afterwards."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "books_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("ledger_indexed", extra={"line_count": 42})

        assert _parse_log(stream)["line_count"] == 42

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info(
            "values",
            extra={
                "amount": Decimal("12.50"),
                "as_of": date(2024, 6, 30),
                "type": AccountType.BANK_ACCOUNT,
                "ids": ("a", "b"),
            },
        )

        record = _parse_log(stream)
        assert record["amount"] == "12.50"
        assert record["as_of"] == "2024-06-30"
        assert record["type"] == "Bank Account"
        assert record["ids"] == ["a", "b"]

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(company_id="acme", report_type="balance_sheet")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["company_id"] == "acme"
        assert record["report_type"] == "balance_sheet"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "company_id" not in record
        assert "report_id" not in record

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise UnknownParentAccountError("a1", "p9")
        except UnknownParentAccountError:
            get_logger("test").error("integrity_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "UNKNOWN_PARENT_ACCOUNT"
        assert record["exc_account_id"] == "a1"
        assert record["exc_parent_id"] == "p9"

    def test_level_filters_debug(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(company_id="x", report_id="y")
        assert LogContext.get_all() == {"company_id": "x", "report_id": "y"}

    def test_clear(self):
        LogContext.set(company_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(report_type="outer")
        with LogContext.bind(report_type="inner"):
            assert LogContext.get_all()["report_type"] == "inner"
        assert LogContext.get_all()["report_type"] == "outer"

    def test_bind_restores_none(self):
        with LogContext.bind(report_id="temp"):
            assert LogContext.get_all()["report_id"] == "temp"
        assert "report_id" not in LogContext.get_all()

    def test_bind_ignores_none_and_unknown_fields(self):
        with LogContext.bind(company_id=None, not_a_field="x"):
            assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("books_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("reporting.service").name == "books_kernel.reporting.service"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["logger"] == "books_kernel.deep.nested.module"
