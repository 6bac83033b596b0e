"""
Budget-vs-actual Variance Service (``gl_modules.budget.variance``).

Responsibility
--------------
Compares every line of an ACTIVE budget with the posted ledger lines that
match it and stores one ``BudgetVarianceModel`` per budget line.  The
arithmetic lives in ``gl_engines.variance``; this service selects the
ledger lines, persists the results and answers read queries over them.

Matching rules
--------------
A ledger line counts toward a budget line when:

* it is on the same account,
* its journal entry is POSTED,
* its entry date lies in ``[period.start_date, as_of]`` (``as_of``
  defaults to the injected clock's today),
* for every configured filter dimension, the ledger line carries the same
  value as the budget line.  A filter dimension empty on the budget line
  matches anything.

Invariants enforced
-------------------
* Only ACTIVE budgets are analysed.
* ``calculate_variances`` replaces the stored set; running it twice with
  the same inputs yields the same records.
* Flush-only: the caller owns the transaction.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from gl_config import LedgerConfig
from gl_engines.variance import (
    VarianceResult,
    VarianceSummary,
    VarianceType,
    compute_variance,
    ratio_percentage,
    summarize,
)
from gl_kernel.db.types import ZERO
from gl_kernel.domain.clock import Clock, SystemClock
from gl_kernel.domain.dimensions import is_dimension_key
from gl_kernel.exceptions import BudgetNotActiveError, BudgetNotFoundError
from gl_kernel.logging_config import LogContext, get_logger
from gl_kernel.models.account import GLAccount
from gl_kernel.models.journal import JournalEntryStatus
from gl_kernel.selectors.account_selector import AccountRef, AccountSelector
from gl_kernel.selectors.journal_selector import JournalSelector
from gl_kernel.selectors.period_selector import PeriodSelector
from gl_modules.budget.models import BudgetStatus, BudgetVarianceInfo
from gl_modules.budget.orm import BudgetLineModel, BudgetModel, BudgetVarianceModel

logger = get_logger("modules.budget.variance")


class VarianceService:
    """
    Budget-vs-actual analysis over posted ledger lines.

    ``dimension_filters`` overrides ``config.variance.dimension_filters``
    when given.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        dimension_filters: Iterable[str] | None = None,
        config: LedgerConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        config = config or LedgerConfig()
        if dimension_filters is not None:
            filters = tuple(dimension_filters)
            for key in filters:
                if not is_dimension_key(key):
                    raise ValueError(f"Unknown dimension filter: {key!r}")
            if len(set(filters)) != len(filters):
                raise ValueError("Dimension filters contain duplicates")
            self._filters = filters
        else:
            self._filters = config.variance.dimension_filters
        self._accounts = AccountSelector(session)
        self._journal = JournalSelector(session)
        self._periods = PeriodSelector(session)

    @property
    def dimension_filters(self) -> tuple[str, ...]:
        return self._filters

    # =========================================================================
    # Calculation
    # =========================================================================

    def calculate_variances(
        self,
        budget_id: UUID,
        actor_id: UUID,
        as_of: date | None = None,
    ) -> list[BudgetVarianceInfo]:
        """
        Recompute and store one variance record per budget line.

        Raises:
            BudgetNotFoundError: Unknown budget.
            BudgetNotActiveError: Budget status is not ACTIVE.
        """
        budget = self._load(budget_id)
        if budget.status != BudgetStatus.ACTIVE.value:
            raise BudgetNotActiveError(budget.id, budget.status)

        period = self._periods.get(budget.budget_period_id)
        evaluation_date = as_of or self._clock.today()

        with LogContext.bind(budget_id=budget.id, actor_id=actor_id):
            removed = self._clear(budget)

            for line in budget.lines:
                result = self._evaluate(line, period.start_date, evaluation_date)
                record = BudgetVarianceModel(
                    budget_line_id=line.id,
                    account_id=line.account_id,
                    variance_date=evaluation_date,
                    budgeted_amount=result.budgeted_amount,
                    actual_amount=result.actual_amount,
                    variance_amount=result.variance_amount,
                    variance_percentage=result.variance_percentage,
                    variance_type=result.variance_type.value,
                    created_by_id=actor_id,
                )
                record.assign_dimensions(line.dimensions)
                budget.variances.append(record)

            self._session.flush()

            logger.info(
                "variances_calculated",
                extra={
                    "budget_code": budget.code,
                    "window_start": period.start_date,
                    "window_end": evaluation_date,
                    "record_count": len(budget.variances),
                    "replaced_count": removed,
                    "dimension_filters": list(self._filters),
                },
            )
        return [v.to_dto() for v in budget.variances]

    def refresh_variances(
        self,
        budget_id: UUID,
        actor_id: UUID,
        as_of: date | None = None,
    ) -> list[BudgetVarianceInfo]:
        """
        Recalculate the stored set. The existing records are kept when the
        budget is not ACTIVE.
        """
        budget = self._load(budget_id)
        if budget.status != BudgetStatus.ACTIVE.value:
            raise BudgetNotActiveError(budget.id, budget.status)
        return self.calculate_variances(budget_id, actor_id, as_of=as_of)

    def delete_variances(self, budget_id: UUID) -> int:
        budget = self._load(budget_id)
        removed = self._clear(budget)
        logger.info(
            "variances_deleted",
            extra={"budget_id": str(budget.id), "record_count": removed},
        )
        return removed

    def _evaluate(self, line: BudgetLineModel, start: date, end: date) -> VarianceResult:
        account = self._session.get(GLAccount, line.account_id)
        wanted = line.dimensions
        ledger_lines = self._journal.get_lines_for_account(
            line.account_id,
            status=JournalEntryStatus.POSTED,
            start_date=start,
            end_date=end,
        )
        nets = [
            l.net_amount for l in ledger_lines
            if wanted.matches(l.dimensions, self._filters)
        ]
        return compute_variance(account.account_type, line.amount, nets)

    def _clear(self, budget: BudgetModel) -> int:
        removed = len(budget.variances)
        if removed:
            budget.variances.clear()
            self._session.flush()
        return removed

    # =========================================================================
    # Queries
    # =========================================================================

    def get_variances(self, budget_id: UUID) -> list[BudgetVarianceInfo]:
        return [v.to_dto() for v in self._stored(budget_id)]

    def get_by_type(self, budget_id: UUID, variance_type: VarianceType) -> list[BudgetVarianceInfo]:
        wanted = VarianceType(variance_type).value
        return [v.to_dto() for v in self._stored(budget_id) if v.variance_type == wanted]

    def get_favorable(self, budget_id: UUID) -> list[BudgetVarianceInfo]:
        return self.get_by_type(budget_id, VarianceType.FAVORABLE)

    def get_unfavorable(self, budget_id: UUID) -> list[BudgetVarianceInfo]:
        return self.get_by_type(budget_id, VarianceType.UNFAVORABLE)

    def get_by_account(self, budget_id: UUID, account_ref: AccountRef) -> list[BudgetVarianceInfo]:
        account = self._accounts.get(account_ref)
        return [v.to_dto() for v in self._stored(budget_id) if v.account_id == account.id]

    def get_by_department(self, budget_id: UUID, department_id: UUID) -> list[BudgetVarianceInfo]:
        return [v.to_dto() for v in self._stored(budget_id) if v.department_id == department_id]

    def get_summary(self, budget_id: UUID) -> VarianceSummary:
        """Aggregate the stored records; an empty set summarizes to zeros."""
        return summarize(
            VarianceResult(
                budgeted_amount=v.budgeted_amount,
                actual_amount=v.actual_amount,
                variance_amount=v.variance_amount,
                variance_percentage=v.variance_percentage,
                variance_type=VarianceType(v.variance_type),
            )
            for v in self._stored(budget_id)
        )

    def get_budget_utilization(self, budget_id: UUID) -> Decimal:
        """Stored actual over budgeted, as a percentage."""
        rows = self._stored(budget_id)
        budgeted = sum((v.budgeted_amount for v in rows), ZERO)
        actual = sum((v.actual_amount for v in rows), ZERO)
        return ratio_percentage(actual, budgeted)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, budget_id: UUID) -> BudgetModel:
        budget = self._session.get(BudgetModel, budget_id)
        if budget is None:
            raise BudgetNotFoundError(budget_id)
        return budget

    def _stored(self, budget_id: UUID) -> list[BudgetVarianceModel]:
        self._load(budget_id)
        stmt = (
            select(BudgetVarianceModel)
            .join(BudgetLineModel, BudgetVarianceModel.budget_line_id == BudgetLineModel.id, isouter=True)
            .where(BudgetVarianceModel.budget_id == budget_id)
            .order_by(BudgetLineModel.line_number, BudgetVarianceModel.account_id)
        )
        return list(self._session.execute(stmt).scalars())
