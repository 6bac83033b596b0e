"""
Module: gl_kernel.models.account
Responsibility: ORM persistence for the Chart of Accounts -- the target of
    every journal line and every budget line.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - code is unique (uq_gl_account_code).
    - current_balance is changed only through apply_net_amount(), which the
      posting step calls while holding a row lock on the account.
    - The parent chain never forms a cycle (enforced by
      ChartOfAccountsService.set_parent).

Failure modes:
    - AccountNotFoundError when a line references a non-existent account.
    - AccountInactiveError when a line targets an inactive account.
    - DirectPostingNotAllowedError when a line targets a header account.

Audit relevance:
    current_balance is a running total of every posted net amount, signed
    so that a positive balance is on the account's normal side.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gl_kernel.db.base import DecimalAmount, TrackedBase, UUIDString


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"
    COST_OF_SALES = "cost_of_sales"


class AccountCategory(str, Enum):
    """Financial statement grouping below the account type."""

    CURRENT_ASSET = "current_asset"
    FIXED_ASSET = "fixed_asset"
    CURRENT_LIABILITY = "current_liability"
    LONG_TERM_LIABILITY = "long_term_liability"
    EQUITY = "equity"
    OPERATING_REVENUE = "operating_revenue"
    OTHER_REVENUE = "other_revenue"
    OPERATING_EXPENSE = "operating_expense"
    FINANCIAL_EXPENSE = "financial_expense"
    OTHER_EXPENSE = "other_expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


# Default normal side per account type
DEFAULT_NORMAL_BALANCE: dict[str, NormalBalance] = {
    AccountType.ASSET.value: NormalBalance.DEBIT,
    AccountType.EXPENSE.value: NormalBalance.DEBIT,
    AccountType.COST_OF_SALES.value: NormalBalance.DEBIT,
    AccountType.LIABILITY.value: NormalBalance.CREDIT,
    AccountType.EQUITY.value: NormalBalance.CREDIT,
    AccountType.REVENUE.value: NormalBalance.CREDIT,
}


class GLAccount(TrackedBase):
    """
    Chart of Accounts entry -- a single node in the general ledger tree.

    Guarantees:
        - code is unique and non-null.
        - required_dimensions lists exactly the dimensions whose require_*
          flag is set, in a stable order.
        - is_debit_normal / is_credit_normal are mutually exclusive.
    """

    __tablename__ = "gl_accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_gl_account_code"),
        Index("idx_gl_account_type", "account_type"),
        Index("idx_gl_account_parent", "parent_id"),
        Index("idx_gl_account_active", "is_active"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    account_type: Mapped[str] = mapped_column(String(20), nullable=False)

    account_category: Mapped[str | None] = mapped_column(String(30), nullable=True)

    normal_balance: Mapped[str] = mapped_column(String(10), nullable=False)

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("gl_accounts.id", ondelete="RESTRICT"),
        nullable=True,
    )

    # False for header/summary accounts that only aggregate children
    allow_direct_posting: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False,
    )

    require_department: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )

    require_cost_center: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )

    require_business_object: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )

    current_balance: Mapped[Decimal] = mapped_column(
        DecimalAmount(), default=Decimal("0"), nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    parent: Mapped["GLAccount | None"] = relationship(
        remote_side="GLAccount.id",
        back_populates="children",
    )

    children: Mapped[list["GLAccount"]] = relationship(
        back_populates="parent",
        order_by="GLAccount.code",
    )

    def __repr__(self) -> str:
        return f"<GLAccount {self.code}: {self.name}>"

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.DEBIT.value

    @property
    def is_credit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.CREDIT.value

    @property
    def type(self) -> AccountType:
        return AccountType(self.account_type)

    @property
    def required_dimensions(self) -> tuple[str, ...]:
        """Dimension keys every line on this account must carry."""
        required = []
        if self.require_department:
            required.append("department")
        if self.require_cost_center:
            required.append("cost_center")
        if self.require_business_object:
            required.append("business_object")
        return tuple(required)

    def apply_net_amount(self, net_amount: Decimal) -> Decimal:
        """
        Move the running balance by a posted line's net (debit - credit).

        A debit-normal account grows with net debits; a credit-normal account
        grows with net credits.  Only the posting step may call this, with
        the account row locked.

        Returns:
            The new balance.
        """
        current = self.current_balance or Decimal("0")
        if self.is_debit_normal:
            self.current_balance = current + net_amount
        else:
            self.current_balance = current - net_amount
        return self.current_balance
