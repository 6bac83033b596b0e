"""Tests for the structured logging system (gl_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from gl_kernel.exceptions import UnbalancedEntryError
from gl_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


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
        assert record["logger"] == "gl_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("posted", extra={"line_count": 2, "status": "posted"})

        record = _parse_log(stream)
        assert record["line_count"] == 2
        assert record["status"] == "posted"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", budget_id="bud-1")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["budget_id"] == "bud-1"

    def test_kernel_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        entry_id = uuid4()
        try:
            raise UnbalancedEntryError(entry_id, Decimal("100"), Decimal("90"))
        except UnbalancedEntryError:
            get_logger("test").error("posting_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "UnbalancedEntryError"
        assert record["exc_code"] == "UNBALANCED_ENTRY"
        assert record["exc_total_debit"] == "100"
        assert record["exc_total_credit"] == "90"
        assert "traceback" in record

    def test_decimal_and_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("values", extra={"amount": Decimal("12.50"), "account_id": uid})

        record = _parse_log(stream)
        assert record["amount"] == "12.50"
        assert record["account_id"] == str(uid)

    def test_level_filtering(self):
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
    def test_set_and_get(self):
        LogContext.set(correlation_id="x", entry_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "entry_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(actor_id="outer")
        with LogContext.bind(actor_id="inner"):
            assert LogContext.get_all()["actor_id"] == "inner"
        assert LogContext.get_all()["actor_id"] == "outer"

    def test_bind_stringifies_uuid(self):
        uid = uuid4()
        with LogContext.bind(entry_id=uid):
            assert LogContext.get_all()["entry_id"] == str(uid)
        assert "entry_id" not in LogContext.get_all()

    def test_bind_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(budget_id="b-1"):
                raise RuntimeError("boom")
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.set(tenant_id="t-1")


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("gl_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.journal").name == "gl_kernel.services.journal"


# ---------------------------------------------------------------------------
# Service log events
# ---------------------------------------------------------------------------


class TestServiceLogEvents:
    def test_posting_logs_carry_entry_context(
        self, captured_logs, standard_accounts, post_entry, deterministic_clock,
    ):
        entry = post_entry(
            deterministic_clock.today(),
            [("1000", "100", "0"), ("4000", "0", "100")],
        )

        posted = [r for r in captured_logs() if r["message"] == "journal_entry_posted"]
        assert len(posted) == 1
        assert posted[0]["entry_id"] == str(entry.id)
        assert posted[0]["entry_number"] == entry.entry_number
        assert Decimal(posted[0]["total"]) == Decimal("100")
