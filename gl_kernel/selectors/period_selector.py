"""Read-only lookups over budget periods."""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from gl_kernel.exceptions import BudgetPeriodNotFoundError
from gl_kernel.models.budget_period import BudgetPeriod
from gl_kernel.selectors.base import BaseSelector


class PeriodSelector(BaseSelector[BudgetPeriod]):
    def get(self, period_ref: UUID | str) -> BudgetPeriod:
        """Resolve a period by id or by code."""
        if isinstance(period_ref, UUID):
            period = self.session.get(BudgetPeriod, period_ref)
        else:
            period = self.session.execute(
                select(BudgetPeriod).where(BudgetPeriod.code == period_ref)
            ).scalar_one_or_none()
        if period is None:
            raise BudgetPeriodNotFoundError(period_ref)
        return period

    def find_by_code(self, code: str) -> BudgetPeriod | None:
        return self.session.execute(
            select(BudgetPeriod).where(BudgetPeriod.code == code)
        ).scalar_one_or_none()

    def periods_for_date(self, day: date) -> list[BudgetPeriod]:
        """Every period whose window contains ``day``.  Periods may overlap."""
        return list(
            self.session.execute(
                select(BudgetPeriod)
                .where(BudgetPeriod.start_date <= day)
                .where(BudgetPeriod.end_date >= day)
                .order_by(BudgetPeriod.start_date, BudgetPeriod.code)
            ).scalars()
        )

    def list_by_fiscal_year(self, fiscal_year: int) -> list[BudgetPeriod]:
        return list(
            self.session.execute(
                select(BudgetPeriod)
                .where(BudgetPeriod.fiscal_year == fiscal_year)
                .order_by(BudgetPeriod.start_date, BudgetPeriod.code)
            ).scalars()
        )
