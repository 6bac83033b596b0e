"""
BudgetPeriodService -- budget period reference data and its lifecycle.

Periods move DRAFT -> ACTIVE -> CLOSED -> ARCHIVED.  Overlapping periods
are allowed.
"""

from datetime import date
from uuid import UUID

from gl_kernel.exceptions import DuplicateCodeError, InvalidStateTransitionError
from gl_kernel.logging_config import get_logger
from gl_kernel.models.budget_period import BudgetPeriod, PeriodType
from gl_kernel.selectors.period_selector import PeriodSelector
from gl_kernel.services.base import BaseService
from gl_kernel.workflows import BUDGET_PERIOD_WORKFLOW

logger = get_logger("services.period")


class BudgetPeriodService(BaseService[BudgetPeriod]):
    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self._periods = PeriodSelector(session)

    def create_period(
        self,
        code: str,
        name: str,
        start_date: date,
        end_date: date,
        actor_id: UUID,
        fiscal_year: int | None = None,
        period_type: PeriodType = PeriodType.YEAR,
        description: str | None = None,
    ) -> BudgetPeriod:
        """
        Create a budget period in DRAFT.

        Raises:
            ValueError: If start_date > end_date.
            DuplicateCodeError: If the code is taken.
        """
        if start_date > end_date:
            raise ValueError(
                f"Start date {start_date} cannot be after end date {end_date}"
            )
        if self._periods.find_by_code(code) is not None:
            raise DuplicateCodeError("budget_period", code)

        period = BudgetPeriod(
            code=code,
            name=name,
            description=description,
            fiscal_year=fiscal_year if fiscal_year is not None else start_date.year,
            period_type=PeriodType(period_type).value,
            start_date=start_date,
            end_date=end_date,
            status=BUDGET_PERIOD_WORKFLOW.initial_state,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(period)
        self.session.flush()

        logger.info(
            "period_created",
            extra={
                "period_code": code,
                "start_date": str(start_date),
                "end_date": str(end_date),
            },
        )
        return period

    def activate(self, period_ref: UUID | str, actor_id: UUID) -> BudgetPeriod:
        return self._transition(period_ref, "activate", actor_id)

    def close(self, period_ref: UUID | str, actor_id: UUID) -> BudgetPeriod:
        return self._transition(period_ref, "close", actor_id)

    def archive(self, period_ref: UUID | str, actor_id: UUID) -> BudgetPeriod:
        period = self._transition(period_ref, "archive", actor_id)
        period.is_active = False
        self.session.flush()
        return period

    def _transition(self, period_ref: UUID | str, action: str, actor_id: UUID) -> BudgetPeriod:
        period = self._periods.get(period_ref)
        transition = BUDGET_PERIOD_WORKFLOW.find(period.status, action)
        if transition is None:
            raise InvalidStateTransitionError("budget_period", period.id, period.status, action)

        old_status = period.status
        period.status = transition.to_state
        period.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "period_status_changed",
            extra={
                "period_code": period.code,
                "from_status": old_status,
                "to_status": period.status,
            },
        )
        return period
