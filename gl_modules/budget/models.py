"""
Budgeting Domain Models (``gl_modules.budget.models``).

Responsibility
--------------
Frozen dataclass value objects for budgets, budget lines and stored
variance records.  ``BudgetService`` and ``VarianceService`` return these
to callers instead of ORM rows.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``BudgetInfo.total_amount`` is a fold over the lines.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from gl_engines.variance import VarianceSummary, VarianceType
from gl_kernel.domain.dimensions import DimensionRefs


class BudgetStatus(Enum):
    """Budget approval lifecycle states."""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BudgetType(Enum):
    REVENUE = "revenue"
    EXPENSE = "expense"
    CAPITAL = "capital"
    CASH_FLOW = "cash_flow"
    COMPREHENSIVE = "comprehensive"


@dataclass(frozen=True)
class BudgetLineInfo:
    """A planned amount for one account / dimension combination."""
    id: UUID
    budget_id: UUID
    line_number: int
    account_id: UUID
    amount: Decimal
    dimensions: DimensionRefs
    description: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class BudgetInfo:
    id: UUID
    code: str
    name: str
    budget_period_id: UUID
    budget_type: BudgetType
    status: BudgetStatus
    version: int
    lines: tuple[BudgetLineInfo, ...] = ()
    description: str | None = None
    notes: str | None = None
    approved_at: datetime | None = None
    approved_by_id: UUID | None = None

    @property
    def total_amount(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class BudgetVarianceInfo:
    """One stored budget-vs-actual comparison for a budget line."""
    id: UUID
    budget_id: UUID
    budget_line_id: UUID | None
    account_id: UUID
    variance_date: date
    budgeted_amount: Decimal
    actual_amount: Decimal
    variance_amount: Decimal
    variance_percentage: Decimal
    variance_type: VarianceType
    dimensions: DimensionRefs
    notes: str | None = None

    @property
    def is_favorable(self) -> bool:
        return self.variance_type is VarianceType.FAVORABLE


__all__ = [
    "BudgetStatus",
    "BudgetType",
    "BudgetInfo",
    "BudgetLineInfo",
    "BudgetVarianceInfo",
    "VarianceSummary",
    "VarianceType",
]
