"""
ChartOfAccountsService -- administration of the account master.

Responsibility:
    Create accounts, re-parent them without forming cycles, deactivate
    them, and delete accounts that nothing references yet.  Balances are
    never written here; only JournalService.post moves current_balance.

Architecture position:
    Kernel > Services.

Failure modes:
    - DuplicateCodeError on an existing account code.
    - AccountNotFoundError when a parent reference does not resolve.
    - AccountHierarchyError when a re-parent would create a cycle.
    - AccountReferencedError on delete of an account that has child
      accounts, journal lines or budget lines.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Table, func, select

from gl_kernel.exceptions import (
    AccountHierarchyError,
    AccountReferencedError,
    DuplicateCodeError,
)
from gl_kernel.logging_config import get_logger
from gl_kernel.models.account import (
    DEFAULT_NORMAL_BALANCE,
    AccountCategory,
    AccountType,
    GLAccount,
    NormalBalance,
)
from gl_kernel.models.journal import JournalEntryLine
from gl_kernel.selectors.account_selector import AccountRef, AccountSelector
from gl_kernel.services.base import BaseService

logger = get_logger("services.chart")


class ChartOfAccountsService(BaseService[GLAccount]):
    """Write-side operations on GL accounts."""

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self._accounts = AccountSelector(session)

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        actor_id: UUID,
        normal_balance: NormalBalance | None = None,
        account_category: AccountCategory | None = None,
        parent: AccountRef | None = None,
        allow_direct_posting: bool = True,
        require_department: bool = False,
        require_cost_center: bool = False,
        require_business_object: bool = False,
        description: str | None = None,
        sort_order: int = 0,
    ) -> GLAccount:
        """
        Add an account to the chart.

        normal_balance defaults from the account type (DEBIT for assets,
        expenses and cost of sales; CREDIT otherwise).
        """
        if self._accounts.find_by_code(code) is not None:
            raise DuplicateCodeError("account", code)

        account_type = AccountType(account_type)
        side = NormalBalance(normal_balance) if normal_balance else DEFAULT_NORMAL_BALANCE[account_type.value]
        parent_id = self._accounts.get(parent).id if parent is not None else None

        account = GLAccount(
            code=code,
            name=name,
            description=description,
            account_type=account_type.value,
            account_category=AccountCategory(account_category).value if account_category else None,
            normal_balance=side.value,
            parent_id=parent_id,
            allow_direct_posting=allow_direct_posting,
            require_department=require_department,
            require_cost_center=require_cost_center,
            require_business_object=require_business_object,
            current_balance=Decimal("0"),
            is_active=True,
            sort_order=sort_order,
            created_by_id=actor_id,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "account_id": str(account.id),
                "account_code": code,
                "account_type": account_type.value,
                "normal_balance": side.value,
            },
        )
        return account

    def set_parent(
        self,
        account_ref: AccountRef,
        parent_ref: AccountRef | None,
        actor_id: UUID,
    ) -> GLAccount:
        """Move an account under a new parent (or to the root with None)."""
        account = self._accounts.get(account_ref)
        if parent_ref is None:
            account.parent_id = None
        else:
            parent = self._accounts.get(parent_ref)
            if parent.id == account.id or any(
                a.id == account.id for a in self._accounts.ancestors(parent.id)
            ):
                raise AccountHierarchyError(account.code, parent.code)
            account.parent_id = parent.id
        account.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "account_reparented",
            extra={"account_code": account.code, "parent_id": account.parent_id},
        )
        return account

    def deactivate_account(self, account_ref: AccountRef, actor_id: UUID) -> GLAccount:
        account = self._accounts.get(account_ref)
        account.is_active = False
        account.updated_by_id = actor_id
        self.session.flush()
        logger.info("account_deactivated", extra={"account_code": account.code})
        return account

    def delete_account(self, account_ref: AccountRef) -> None:
        """Hard delete of an account nothing refers to."""
        account = self._accounts.get(account_ref)

        if self._accounts.children(account.id):
            raise AccountReferencedError(account.code, "child accounts")

        if self._count_references(JournalEntryLine.__table__, account.id):
            raise AccountReferencedError(account.code, "journal lines")

        # Budget lines live in a module; look the table up by name
        budget_lines = GLAccount.metadata.tables.get("budget_lines")
        if budget_lines is not None and self._count_references(budget_lines, account.id):
            raise AccountReferencedError(account.code, "budget lines")

        self.session.delete(account)
        self.session.flush()
        logger.info("account_deleted", extra={"account_code": account.code})

    def _count_references(self, table: Table, account_id: UUID) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(table)
            .where(table.c.account_id == account_id)
        ).scalar_one()
