"""
Pytest fixtures for the GL kernel test suite.

Provides:
- One engine and schema per test session
- Per-test sessions that are rolled back at teardown
- A deterministic clock, a test actor, and seeded reference data
  (chart of accounts, departments, a FY2024 budget period)
- Captured structured logs

Environment Variables:
- GL_TEST_DATABASE_URL: SQLAlchemy URL for the test database.  Defaults to
  an in-memory SQLite database; point it at PostgreSQL to run the suite
  against the production backend.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from gl_kernel.db.base import Base
from gl_kernel.db.engine import init_engine_from_url, reset_engine
from gl_kernel.domain.clock import DeterministicClock
from gl_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from gl_kernel.models.account import AccountType
from gl_kernel.services.chart_service import ChartOfAccountsService
from gl_kernel.services.dimension_service import DimensionService
from gl_kernel.services.journal_service import JournalService
from gl_kernel.services.period_service import BudgetPeriodService
from gl_modules._orm_registry import create_all_tables
from gl_modules.budget.service import BudgetService
from gl_modules.budget.variance import VarianceService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

DEFAULT_TEST_DATABASE_URL = "sqlite://"

# 2024-06-30 12:00 UTC; FY2024 is half elapsed
TEST_NOW = datetime(2024, 6, 30, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture gl_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, journal_service):
            ...
            logs = captured_logs()
            assert any(r["message"] == "journal_entry_posted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("gl_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Session-scoped DB infrastructure (create engine + tables ONCE per suite)
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("GL_TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL)


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all kernel and module tables once per session."""
    Base.metadata.drop_all(db_engine)
    create_all_tables(db_engine)
    yield
    Base.metadata.drop_all(db_engine)


# =============================================================================
# Per-test session with automatic rollback
# =============================================================================


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    The session joins an outer transaction on a dedicated connection; any
    ``session.commit()`` inside the test only releases a savepoint.  The
    outer transaction is rolled back at teardown, undoing every change.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


@pytest.fixture
def deterministic_clock():
    """Clock pinned to 2024-06-30 12:00 UTC."""
    return DeterministicClock(TEST_NOW)


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def chart_service(session, deterministic_clock) -> ChartOfAccountsService:
    return ChartOfAccountsService(session, deterministic_clock)


@pytest.fixture
def dimension_service(session, deterministic_clock) -> DimensionService:
    return DimensionService(session, deterministic_clock)


@pytest.fixture
def period_service(session, deterministic_clock) -> BudgetPeriodService:
    return BudgetPeriodService(session, deterministic_clock)


@pytest.fixture
def journal_service(session, deterministic_clock) -> JournalService:
    return JournalService(session, deterministic_clock)


@pytest.fixture
def budget_service(session, deterministic_clock) -> BudgetService:
    return BudgetService(session, deterministic_clock)


@pytest.fixture
def variance_service(session, deterministic_clock) -> VarianceService:
    return VarianceService(session, deterministic_clock)


# =============================================================================
# Reference data
# =============================================================================


@pytest.fixture
def standard_accounts(chart_service, test_actor_id) -> dict:
    """
    A small chart of accounts keyed by code.

    1000 Cash, 2000 Accounts Payable, 3000 Owner's Equity, 4000 Sales,
    5000 Cost of Goods Sold, 6000 Travel, 6100 Office Supplies (requires a
    department), 1900 Fixed Assets (summary account, no direct posting).
    """
    rows = [
        ("1000", "Cash", AccountType.ASSET, {}),
        ("1900", "Fixed Assets", AccountType.ASSET, {"allow_direct_posting": False}),
        ("2000", "Accounts Payable", AccountType.LIABILITY, {}),
        ("3000", "Owner's Equity", AccountType.EQUITY, {}),
        ("4000", "Sales", AccountType.REVENUE, {}),
        ("5000", "Cost of Goods Sold", AccountType.COST_OF_SALES, {}),
        ("6000", "Travel", AccountType.EXPENSE, {}),
        ("6100", "Office Supplies", AccountType.EXPENSE, {"require_department": True}),
    ]
    return {
        code: chart_service.create_account(code, name, account_type, test_actor_id, **options)
        for code, name, account_type, options in rows
    }


@pytest.fixture
def departments(dimension_service, test_actor_id) -> dict:
    """Departments D1 (Sales) and D2 (Operations) keyed by code."""
    return {
        "D1": dimension_service.create_static("department", "D1", "Sales", test_actor_id),
        "D2": dimension_service.create_static("department", "D2", "Operations", test_actor_id),
    }


@pytest.fixture
def fy2024(period_service, test_actor_id):
    """Budget period FY2024 (2024-01-01 .. 2024-12-31), ACTIVE."""
    period = period_service.create_period(
        "FY2024", "Fiscal Year 2024", date(2024, 1, 1), date(2024, 12, 31), test_actor_id,
    )
    return period_service.activate(period.id, test_actor_id)


# =============================================================================
# Posting helpers
# =============================================================================


@pytest.fixture
def post_entry(journal_service, test_actor_id):
    """
    Factory: create, validate and post an entry in one call.

    Each line is ``(account_code, debit, credit)`` or
    ``(account_code, debit, credit, dimensions)``.
    """

    def _post(entry_date: date, lines, description: str | None = None):
        entry = journal_service.create_entry(entry_date, test_actor_id, description=description)
        for row in lines:
            code, debit, credit = row[:3]
            dimensions = row[3] if len(row) > 3 else None
            journal_service.add_line(
                entry.id, code, Decimal(debit), Decimal(credit), test_actor_id,
                dimensions=dimensions,
            )
        journal_service.validate(entry.id, test_actor_id)
        return journal_service.post(entry.id, test_actor_id)

    return _post
