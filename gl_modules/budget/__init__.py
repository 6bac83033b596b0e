"""
Budgeting Module (``gl_modules.budget``).

Responsibility
--------------
Budgets planned against a budget period, their approval lifecycle, and
budget-vs-actual variance analysis over the posted ledger.

Architecture position
---------------------
**Modules layer** -- ORM models, frozen DTOs, a workflow declaration and
two services.  ``BudgetService`` maintains budgets; ``VarianceService``
reads posted journal lines through kernel selectors and delegates the
arithmetic to ``gl_engines.variance``.

Invariants enforced
-------------------
* Budget lines are editable only in DRAFT.
* Variances are computed only for ACTIVE budgets and only from POSTED
  journal entries.
* Neither service commits; the caller owns the transaction.
"""

from gl_modules.budget.models import (
    BudgetInfo,
    BudgetLineInfo,
    BudgetStatus,
    BudgetType,
    BudgetVarianceInfo,
    VarianceSummary,
    VarianceType,
)
from gl_modules.budget.service import BudgetService
from gl_modules.budget.variance import VarianceService
from gl_modules.budget.workflows import BUDGET_WORKFLOW

__all__ = [
    "BudgetInfo",
    "BudgetLineInfo",
    "BudgetStatus",
    "BudgetType",
    "BudgetVarianceInfo",
    "VarianceSummary",
    "VarianceType",
    "BudgetService",
    "VarianceService",
    "BUDGET_WORKFLOW",
]
