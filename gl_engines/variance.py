"""
gl_engines.variance -- budget-vs-actual variance calculations.

Responsibility:
    Turn a budgeted amount and the ledger lines that match a budget line
    into an actual amount, a signed variance, a percentage and a
    favorable / unfavorable / neutral classification.  Also folds a set of
    variance results into a summary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Imports only kernel enums
    and the rounding helper.

Invariants enforced:
    - Identical inputs produce identical outputs; no clock access.
    - actual for EXPENSE and COST_OF_SALES accounts is the absolute value of
      the summed net, so spend is always positive.
    - variance = actual - budgeted.
    - percentage = round(variance / budgeted, 4, HALF_UP) * 100, or zero
      when budgeted is zero.
    - A zero variance is always NEUTRAL.  REVENUE: positive is FAVORABLE.
      EXPENSE / COST_OF_SALES: negative is FAVORABLE.  Any other account
      type is NEUTRAL regardless of sign.

Usage:
    from gl_engines.variance import compute_variance

    result = compute_variance(
        account_type=AccountType.EXPENSE,
        budgeted=Decimal("1000"),
        ledger_nets=[Decimal("800")],
    )
    result.variance_amount   # Decimal("-200")
    result.variance_type     # VarianceType.FAVORABLE
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from gl_kernel.db.types import RATIO_DECIMAL_PLACES, ZERO, round_money
from gl_kernel.models.account import AccountType

HUNDRED = Decimal("100")

REVENUE_LIKE = frozenset({AccountType.REVENUE.value})
EXPENSE_LIKE = frozenset({AccountType.EXPENSE.value, AccountType.COST_OF_SALES.value})


class VarianceType(str, Enum):
    FAVORABLE = "favorable"
    UNFAVORABLE = "unfavorable"
    NEUTRAL = "neutral"


def _type_value(account_type: AccountType | str) -> str:
    return AccountType(account_type).value


def actual_amount(account_type: AccountType | str, ledger_nets: Iterable[Decimal]) -> Decimal:
    """Sum of line nets (debit - credit); absolute for expense-like accounts."""
    total = sum(ledger_nets, ZERO)
    if _type_value(account_type) in EXPENSE_LIKE:
        return abs(total)
    return total


def ratio_percentage(numerator: Decimal, denominator: Decimal) -> Decimal:
    """round(numerator / denominator, 4 places, HALF_UP) * 100; zero on a zero denominator."""
    if denominator == ZERO:
        return ZERO
    return round_money(numerator / denominator, RATIO_DECIMAL_PLACES) * HUNDRED


def classify(account_type: AccountType | str, variance_amount: Decimal) -> VarianceType:
    if variance_amount == ZERO:
        return VarianceType.NEUTRAL
    kind = _type_value(account_type)
    if kind in REVENUE_LIKE:
        return VarianceType.FAVORABLE if variance_amount > ZERO else VarianceType.UNFAVORABLE
    if kind in EXPENSE_LIKE:
        return VarianceType.FAVORABLE if variance_amount < ZERO else VarianceType.UNFAVORABLE
    return VarianceType.NEUTRAL


@dataclass(frozen=True)
class VarianceResult:
    budgeted_amount: Decimal
    actual_amount: Decimal
    variance_amount: Decimal
    variance_percentage: Decimal
    variance_type: VarianceType


def compute_variance(
    account_type: AccountType | str,
    budgeted: Decimal,
    ledger_nets: Iterable[Decimal],
) -> VarianceResult:
    actual = actual_amount(account_type, ledger_nets)
    variance = actual - budgeted
    return VarianceResult(
        budgeted_amount=budgeted,
        actual_amount=actual,
        variance_amount=variance,
        variance_percentage=ratio_percentage(variance, budgeted),
        variance_type=classify(account_type, variance),
    )


@dataclass(frozen=True)
class VarianceSummary:
    """Aggregate over a budget's variance records.  Derived, never stored."""

    record_count: int
    total_budgeted: Decimal
    total_actual: Decimal
    total_variance: Decimal
    favorable_count: int
    unfavorable_count: int
    neutral_count: int
    variance_percentage: Decimal
    utilization_percentage: Decimal


def summarize(results: Iterable[VarianceResult]) -> VarianceSummary:
    items = list(results)
    total_budgeted = sum((r.budgeted_amount for r in items), ZERO)
    total_actual = sum((r.actual_amount for r in items), ZERO)
    total_variance = sum((r.variance_amount for r in items), ZERO)
    counts = {t: 0 for t in VarianceType}
    for r in items:
        counts[VarianceType(r.variance_type)] += 1
    return VarianceSummary(
        record_count=len(items),
        total_budgeted=total_budgeted,
        total_actual=total_actual,
        total_variance=total_variance,
        favorable_count=counts[VarianceType.FAVORABLE],
        unfavorable_count=counts[VarianceType.UNFAVORABLE],
        neutral_count=counts[VarianceType.NEUTRAL],
        variance_percentage=ratio_percentage(total_variance, total_budgeted),
        utilization_percentage=ratio_percentage(total_actual, total_budgeted),
    )
