"""
SQLAlchemy ORM persistence models for the Budget module.

Responsibility
--------------
Persistence for budgets, their lines and the variance records computed
against them.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``BudgetService`` and
``VarianceService``.  Inherits from ``TrackedBase`` (kernel db layer) and
shares the kernel's dimension column layout.

Invariants enforced
-------------------
* All monetary fields are exact decimals -- NEVER float.
* Enum fields are stored as short strings.
* A budget owns its lines (``cascade="all, delete-orphan"``); deleting a
  budget deletes its lines and stored variances.
* ``total_amount`` is a fold over the lines, never a stored column.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gl_kernel.db.base import DecimalAmount, TrackedBase, UUIDString
from gl_kernel.models.dimensions import DimensionColumnsMixin


# ---------------------------------------------------------------------------
# BudgetModel
# ---------------------------------------------------------------------------


class BudgetModel(TrackedBase):
    """Budget header.  Maps to ``BudgetInfo``."""

    __tablename__ = "budgets"

    __table_args__ = (
        UniqueConstraint("code", name="uq_budget_code"),
        Index("idx_budget_period", "budget_period_id"),
        Index("idx_budget_status", "status"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    budget_period_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("budget_periods.id"), nullable=False,
    )
    budget_type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    lines: Mapped[list["BudgetLineModel"]] = relationship(
        back_populates="budget",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BudgetLineModel.line_number",
    )

    variances: Mapped[list["BudgetVarianceModel"]] = relationship(
        back_populates="budget",
        cascade="all, delete-orphan",
    )

    @property
    def total_amount(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))

    def to_dto(self):
        from gl_modules.budget.models import BudgetInfo, BudgetStatus, BudgetType

        return BudgetInfo(
            id=self.id,
            code=self.code,
            name=self.name,
            budget_period_id=self.budget_period_id,
            budget_type=BudgetType(self.budget_type),
            status=BudgetStatus(self.status),
            version=self.version,
            lines=tuple(line.to_dto() for line in self.lines),
            description=self.description,
            notes=self.notes,
            approved_at=self.approved_at,
            approved_by_id=self.approved_by_id,
        )

    def __repr__(self) -> str:
        return f"<BudgetModel {self.code} v{self.version} [{self.status}]>"


# ---------------------------------------------------------------------------
# BudgetLineModel
# ---------------------------------------------------------------------------


class BudgetLineModel(DimensionColumnsMixin, TrackedBase):
    """A planned amount for one account.  Maps to ``BudgetLineInfo``."""

    __tablename__ = "budget_lines"

    __table_args__ = (
        Index("idx_budget_line_budget", "budget_id"),
        Index("idx_budget_line_account", "account_id"),
    )

    budget_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("gl_accounts.id"), nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    budget: Mapped["BudgetModel"] = relationship(back_populates="lines")

    def to_dto(self):
        from gl_modules.budget.models import BudgetLineInfo

        return BudgetLineInfo(
            id=self.id,
            budget_id=self.budget_id,
            line_number=self.line_number,
            account_id=self.account_id,
            amount=self.amount,
            dimensions=self.dimensions,
            description=self.description,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<BudgetLineModel #{self.line_number} {self.amount}>"


# ---------------------------------------------------------------------------
# BudgetVarianceModel
# ---------------------------------------------------------------------------


class BudgetVarianceModel(DimensionColumnsMixin, TrackedBase):
    """
    Stored budget-vs-actual result for one budget line.

    The set for a budget is replaced wholesale on every calculation.
    """

    __tablename__ = "budget_variances"

    __table_args__ = (
        Index("idx_budget_variance_budget", "budget_id"),
        Index("idx_budget_variance_account", "account_id"),
        Index("idx_budget_variance_type", "variance_type"),
    )

    budget_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False,
    )
    budget_line_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("budget_lines.id", ondelete="SET NULL"), nullable=True,
    )
    account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("gl_accounts.id"), nullable=False,
    )
    variance_date: Mapped[date] = mapped_column(Date, nullable=False)
    budgeted_amount: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    actual_amount: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    variance_amount: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    variance_percentage: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    variance_type: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    budget: Mapped["BudgetModel"] = relationship(back_populates="variances")

    def to_dto(self):
        from gl_engines.variance import VarianceType
        from gl_modules.budget.models import BudgetVarianceInfo

        return BudgetVarianceInfo(
            id=self.id,
            budget_id=self.budget_id,
            budget_line_id=self.budget_line_id,
            account_id=self.account_id,
            variance_date=self.variance_date,
            budgeted_amount=self.budgeted_amount,
            actual_amount=self.actual_amount,
            variance_amount=self.variance_amount,
            variance_percentage=self.variance_percentage,
            variance_type=VarianceType(self.variance_type),
            dimensions=self.dimensions,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<BudgetVarianceModel {self.variance_amount} [{self.variance_type}]>"
