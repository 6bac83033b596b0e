"""
Tests for the unit-of-work helpers in gl_kernel.db.engine.

run_in_transaction is exercised against a mocked session factory so that
transient failures can be injected deterministically; build_engine and
the module-level engine are exercised against throwaway SQLite databases.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from gl_kernel.db.engine import (
    build_engine,
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
    run_in_transaction,
    session_scope,
)
from gl_kernel.exceptions import DuplicateCodeError, UnbalancedEntryError
from gl_kernel.models.account import AccountType
from gl_kernel.selectors.account_selector import AccountSelector
from gl_kernel.services.chart_service import ChartOfAccountsService


def _transient() -> OperationalError:
    return OperationalError("UPDATE gl_accounts", {}, Exception("deadlock detected"))


class TestRunInTransaction:
    def test_commits_and_returns_result(self):
        factory = MagicMock()

        result = run_in_transaction(lambda s: "done", session_factory=factory, backoff_seconds=0)

        session = factory.return_value
        assert result == "done"
        session.commit.assert_called_once()
        session.close.assert_called_once()
        session.rollback.assert_not_called()

    def test_retries_transient_failure_then_succeeds(self):
        factory = MagicMock()
        work = MagicMock(side_effect=[_transient(), _transient(), 42])

        result = run_in_transaction(work, attempts=3, backoff_seconds=0, session_factory=factory)

        assert result == 42
        assert work.call_count == 3
        assert factory.call_count == 3
        assert factory.return_value.rollback.call_count == 2

    def test_exhausted_retries_reraise(self, captured_logs):
        factory = MagicMock()
        work = MagicMock(side_effect=_transient())

        with pytest.raises(OperationalError):
            run_in_transaction(work, attempts=2, backoff_seconds=0, session_factory=factory)

        assert work.call_count == 2
        messages = [r["message"] for r in captured_logs()]
        assert messages.count("transaction_retry") == 1
        assert "transaction_retries_exhausted" in messages

    def test_domain_errors_are_not_retried(self):
        factory = MagicMock()
        work = MagicMock(side_effect=UnbalancedEntryError("e-1", "100", "90"))

        with pytest.raises(UnbalancedEntryError):
            run_in_transaction(work, attempts=5, backoff_seconds=0, session_factory=factory)

        assert work.call_count == 1
        factory.return_value.rollback.assert_called_once()
        factory.return_value.commit.assert_not_called()

    def test_zero_attempts_rejected(self):
        with pytest.raises(RuntimeError):
            run_in_transaction(lambda s: None, attempts=0, session_factory=MagicMock())


class TestBuildEngine:
    def test_sqlite_enforces_foreign_keys(self):
        engine = build_engine("sqlite://")
        try:
            with engine.connect() as conn:
                assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        finally:
            engine.dispose()

    def test_sqlite_in_memory_shares_one_connection(self):
        engine = build_engine("sqlite://")
        try:
            with engine.begin() as conn:
                conn.execute(text("CREATE TABLE t (x INTEGER)"))
                conn.execute(text("INSERT INTO t VALUES (1)"))
            with engine.connect() as conn:
                assert conn.execute(text("SELECT count(*) FROM t")).scalar() == 1
        finally:
            engine.dispose()

    def test_rolled_back_transaction_leaves_no_rows(self):
        engine = build_engine("sqlite://")
        try:
            with engine.begin() as conn:
                conn.execute(text("CREATE TABLE t (x INTEGER)"))
            with engine.connect() as conn:
                trans = conn.begin()
                conn.execute(text("INSERT INTO t VALUES (1)"))
                trans.rollback()
            with engine.connect() as conn:
                assert conn.execute(text("SELECT count(*) FROM t")).scalar() == 0
        finally:
            engine.dispose()


class TestModuleEngine:
    """init_engine_from_url / session_scope / create_tables against a private database."""

    @pytest.fixture
    def module_engine(self, tmp_path):
        engine = init_engine_from_url(f"sqlite:///{tmp_path / 'scope.db'}")
        create_tables()
        yield engine
        drop_tables()
        reset_engine()

    def test_session_scope_commits(self, module_engine, test_actor_id):
        with session_scope() as session:
            ChartOfAccountsService(session).create_account("1000", "Cash", AccountType.ASSET, test_actor_id)

        with session_scope() as session:
            assert AccountSelector(session).get("1000").name == "Cash"

    def test_session_scope_rolls_back_on_error(self, module_engine, test_actor_id):
        with pytest.raises(DuplicateCodeError):
            with session_scope() as session:
                service = ChartOfAccountsService(session)
                service.create_account("1000", "Cash", AccountType.ASSET, test_actor_id)
                service.create_account("1000", "Cash again", AccountType.ASSET, test_actor_id)

        with session_scope() as session:
            assert AccountSelector(session).find_by_code("1000") is None

    def test_default_factory_is_used(self, module_engine, test_actor_id):
        def work(session):
            return ChartOfAccountsService(session).create_account(
                "2000", "Payables", AccountType.LIABILITY, test_actor_id,
            ).id

        account_id = run_in_transaction(work, backoff_seconds=0)

        with session_scope() as session:
            assert AccountSelector(session).get(account_id).code == "2000"
