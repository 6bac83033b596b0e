"""
Module: gl_kernel.models.budget_period
Responsibility: ORM persistence for budget periods -- the date windows that
    budgets plan against and that journal entries may be tagged with.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - code is unique (uq_budget_period_code).
    - start_date <= end_date (checked by BudgetPeriodService.create_period).
    - Periods MAY overlap; lookups by date return zero or more periods.
"""

from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gl_kernel.db.base import TrackedBase


class PeriodType(str, Enum):
    YEAR = "year"
    QUARTER = "quarter"
    MONTH = "month"
    CUSTOM = "custom"


class PeriodStatus(str, Enum):
    """Lifecycle: DRAFT -> ACTIVE -> CLOSED -> ARCHIVED."""

    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"


class BudgetPeriod(TrackedBase):
    __tablename__ = "budget_periods"

    __table_args__ = (
        UniqueConstraint("code", name="uq_budget_period_code"),
        Index("idx_budget_period_dates", "start_date", "end_date"),
        Index("idx_budget_period_year", "fiscal_year"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)

    period_type: Mapped[str] = mapped_column(
        String(20), default=PeriodType.YEAR.value, nullable=False,
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=PeriodStatus.DRAFT.value, nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<BudgetPeriod {self.code} {self.start_date}..{self.end_date}>"

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
