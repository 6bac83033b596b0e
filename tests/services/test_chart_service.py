"""
Tests for ChartOfAccountsService and AccountSelector.

Covers:
- Account creation, normal balance defaults, duplicate codes
- Parent/child hierarchy and cycle rejection
- Deactivation and guarded deletion
- Lookups by id and by code
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from gl_kernel.exceptions import (
    AccountHierarchyError,
    AccountNotFoundError,
    AccountReferencedError,
    DuplicateCodeError,
)
from gl_kernel.models.account import AccountCategory, AccountType, NormalBalance
from gl_kernel.selectors.account_selector import AccountSelector


class TestCreateAccount:
    @pytest.mark.parametrize(
        "account_type, expected",
        [
            (AccountType.ASSET, NormalBalance.DEBIT),
            (AccountType.EXPENSE, NormalBalance.DEBIT),
            (AccountType.COST_OF_SALES, NormalBalance.DEBIT),
            (AccountType.LIABILITY, NormalBalance.CREDIT),
            (AccountType.EQUITY, NormalBalance.CREDIT),
            (AccountType.REVENUE, NormalBalance.CREDIT),
        ],
    )
    def test_normal_balance_defaults_from_type(self, chart_service, test_actor_id, account_type, expected):
        account = chart_service.create_account("9000", "Test", account_type, test_actor_id)

        assert account.normal_balance == expected.value
        assert account.current_balance == Decimal("0")
        assert account.is_active

    def test_explicit_normal_balance_and_category(self, chart_service, test_actor_id):
        account = chart_service.create_account(
            "1590", "Accumulated Depreciation", AccountType.ASSET, test_actor_id,
            normal_balance=NormalBalance.CREDIT,
            account_category=AccountCategory.FIXED_ASSET,
        )
        assert account.is_credit_normal
        assert account.account_category == "fixed_asset"

    def test_duplicate_code(self, chart_service, test_actor_id):
        chart_service.create_account("1000", "Cash", AccountType.ASSET, test_actor_id)
        with pytest.raises(DuplicateCodeError) as exc_info:
            chart_service.create_account("1000", "Cash again", AccountType.ASSET, test_actor_id)
        assert exc_info.value.code == "DUPLICATE_CODE"

    def test_required_dimensions(self, chart_service, test_actor_id):
        account = chart_service.create_account(
            "6200", "Rent", AccountType.EXPENSE, test_actor_id,
            require_department=True, require_cost_center=True,
        )
        assert account.required_dimensions == ("department", "cost_center")


class TestHierarchy:
    def test_children_and_ancestors(self, chart_service, session, test_actor_id):
        root = chart_service.create_account("1", "Assets", AccountType.ASSET, test_actor_id, allow_direct_posting=False)
        mid = chart_service.create_account("10", "Current", AccountType.ASSET, test_actor_id, parent=root.id)
        leaf = chart_service.create_account("100", "Cash", AccountType.ASSET, test_actor_id, parent="10")

        selector = AccountSelector(session)
        assert [a.code for a in selector.children(root.id)] == ["10"]
        assert [a.code for a in selector.descendants("1")] == ["10", "100"]
        assert [a.code for a in selector.ancestors(leaf.id)] == ["10", "1"]
        assert root in selector.roots()
        assert mid not in selector.roots()

    def test_cycle_rejected(self, chart_service, test_actor_id):
        root = chart_service.create_account("1", "Assets", AccountType.ASSET, test_actor_id)
        child = chart_service.create_account("10", "Current", AccountType.ASSET, test_actor_id, parent=root.id)

        with pytest.raises(AccountHierarchyError):
            chart_service.set_parent(root.id, child.id, test_actor_id)

    def test_self_parent_rejected(self, chart_service, test_actor_id):
        account = chart_service.create_account("1", "Assets", AccountType.ASSET, test_actor_id)
        with pytest.raises(AccountHierarchyError):
            chart_service.set_parent(account.id, account.id, test_actor_id)

    def test_move_to_root(self, chart_service, test_actor_id):
        root = chart_service.create_account("1", "Assets", AccountType.ASSET, test_actor_id)
        child = chart_service.create_account("10", "Current", AccountType.ASSET, test_actor_id, parent=root.id)

        moved = chart_service.set_parent(child.id, None, test_actor_id)
        assert moved.parent_id is None


class TestLookupAndLifecycle:
    def test_get_by_id_and_code(self, session, standard_accounts):
        selector = AccountSelector(session)
        cash = standard_accounts["1000"]
        assert selector.get(cash.id) is cash
        assert selector.get("1000") is cash

    def test_unknown_account(self, session):
        selector = AccountSelector(session)
        with pytest.raises(AccountNotFoundError):
            selector.get("no-such-code")
        with pytest.raises(AccountNotFoundError):
            selector.get(uuid4())

    def test_deactivate(self, chart_service, session, standard_accounts, test_actor_id):
        chart_service.deactivate_account("6000", test_actor_id)
        active_codes = [a.code for a in AccountSelector(session).list_active()]
        assert "6000" not in active_codes

    def test_delete_unused_account(self, chart_service, session, test_actor_id):
        chart_service.create_account("7000", "Unused", AccountType.EXPENSE, test_actor_id)
        chart_service.delete_account("7000")
        assert AccountSelector(session).find_by_code("7000") is None

    def test_delete_account_with_children(self, chart_service, test_actor_id):
        root = chart_service.create_account("1", "Assets", AccountType.ASSET, test_actor_id)
        chart_service.create_account("10", "Current", AccountType.ASSET, test_actor_id, parent=root.id)
        with pytest.raises(AccountReferencedError):
            chart_service.delete_account(root.id)

    def test_delete_account_with_journal_lines(
        self, chart_service, journal_service, standard_accounts, test_actor_id, deterministic_clock,
    ):
        entry = journal_service.create_entry(deterministic_clock.today(), test_actor_id)
        journal_service.add_line(entry.id, "6000", Decimal("10"), Decimal("0"), test_actor_id)

        with pytest.raises(AccountReferencedError) as exc_info:
            chart_service.delete_account("6000")
        assert exc_info.value.referenced_by == "journal lines"

    def test_delete_account_with_budget_lines(
        self, chart_service, budget_service, standard_accounts, fy2024, test_actor_id,
    ):
        from gl_modules.budget.models import BudgetType

        budget = budget_service.create_budget(None, fy2024.id, BudgetType.EXPENSE, "Opex", test_actor_id)
        budget_service.add_budget_line(budget.id, "6000", Decimal("100"), test_actor_id)

        with pytest.raises(AccountReferencedError) as exc_info:
            chart_service.delete_account("6000")
        assert exc_info.value.referenced_by == "budget lines"
