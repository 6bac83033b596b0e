"""
Tests for the pure variance engine (gl_engines.variance).

Covers:
- Actual amount sign handling per account type
- Percentage rounding (4 places, half-up, then x100) and zero budget
- Favorable / unfavorable / neutral classification
- Summary folding
"""

from decimal import Decimal

import pytest

from gl_engines.variance import (
    VarianceResult,
    VarianceType,
    actual_amount,
    classify,
    compute_variance,
    ratio_percentage,
    summarize,
)
from gl_kernel.models.account import AccountType


class TestActualAmount:
    def test_expense_is_absolute(self):
        assert actual_amount(AccountType.EXPENSE, [Decimal("-300"), Decimal("-200")]) == Decimal("500")

    def test_cost_of_sales_is_absolute(self):
        assert actual_amount(AccountType.COST_OF_SALES, [Decimal("-75")]) == Decimal("75")

    def test_revenue_keeps_sign(self):
        assert actual_amount(AccountType.REVENUE, [Decimal("-1200")]) == Decimal("-1200")

    def test_no_lines_is_zero(self):
        assert actual_amount(AccountType.EXPENSE, []) == Decimal("0")


class TestRatioPercentage:
    def test_rounds_ratio_before_scaling(self):
        # 1/3 -> 0.3333 -> 33.33
        assert ratio_percentage(Decimal("1"), Decimal("3")) == Decimal("33.33")

    def test_half_up(self):
        # 0.00005 rounds up to 0.0001
        assert ratio_percentage(Decimal("0.5"), Decimal("10000")) == Decimal("0.01")

    def test_zero_denominator(self):
        assert ratio_percentage(Decimal("250"), Decimal("0")) == Decimal("0")


class TestClassify:
    @pytest.mark.parametrize(
        "account_type, variance, expected",
        [
            (AccountType.REVENUE, Decimal("10"), VarianceType.FAVORABLE),
            (AccountType.REVENUE, Decimal("-10"), VarianceType.UNFAVORABLE),
            (AccountType.EXPENSE, Decimal("-10"), VarianceType.FAVORABLE),
            (AccountType.EXPENSE, Decimal("10"), VarianceType.UNFAVORABLE),
            (AccountType.COST_OF_SALES, Decimal("-1"), VarianceType.FAVORABLE),
            (AccountType.COST_OF_SALES, Decimal("1"), VarianceType.UNFAVORABLE),
            (AccountType.ASSET, Decimal("10"), VarianceType.NEUTRAL),
            (AccountType.LIABILITY, Decimal("-10"), VarianceType.NEUTRAL),
            (AccountType.EQUITY, Decimal("5"), VarianceType.NEUTRAL),
            (AccountType.REVENUE, Decimal("0"), VarianceType.NEUTRAL),
            (AccountType.EXPENSE, Decimal("0"), VarianceType.NEUTRAL),
        ],
    )
    def test_classification(self, account_type, variance, expected):
        assert classify(account_type, variance) == expected

    def test_accepts_plain_string_type(self):
        assert classify("expense", Decimal("-1")) == VarianceType.FAVORABLE


class TestComputeVariance:
    @pytest.mark.parametrize(
        "account_type, nets, variance, expected",
        [
            (AccountType.REVENUE, ["1200"], "200", VarianceType.FAVORABLE),
            (AccountType.EXPENSE, ["1200"], "200", VarianceType.UNFAVORABLE),
            (AccountType.EXPENSE, ["800"], "-200", VarianceType.FAVORABLE),
            (AccountType.REVENUE, ["1000"], "0", VarianceType.NEUTRAL),
        ],
    )
    def test_budget_of_one_thousand(self, account_type, nets, variance, expected):
        result = compute_variance(account_type, Decimal("1000"), [Decimal(n) for n in nets])

        assert result.variance_amount == Decimal(variance)
        assert result.variance_type == expected

    def test_expense_under_budget(self):
        result = compute_variance(AccountType.EXPENSE, Decimal("1000"), [Decimal("800")])

        assert result.actual_amount == Decimal("800")
        assert result.variance_amount == Decimal("-200")
        assert result.variance_percentage == Decimal("-20")
        assert result.variance_type == VarianceType.FAVORABLE

    def test_expense_over_budget(self):
        result = compute_variance(AccountType.EXPENSE, Decimal("1000"), [Decimal("500"), Decimal("700")])

        assert result.actual_amount == Decimal("1200")
        assert result.variance_amount == Decimal("200")
        assert result.variance_percentage == Decimal("20")
        assert result.variance_type == VarianceType.UNFAVORABLE

    def test_revenue_credit_balance_reads_negative(self):
        # Sales are credits, so their net is negative and the variance is
        # reported unfavorable against a positive budget.
        result = compute_variance(AccountType.REVENUE, Decimal("5000"), [Decimal("-6000")])

        assert result.actual_amount == Decimal("-6000")
        assert result.variance_amount == Decimal("-11000")
        assert result.variance_type == VarianceType.UNFAVORABLE

    def test_zero_budget_percentage_is_zero(self):
        result = compute_variance(AccountType.EXPENSE, Decimal("0"), [Decimal("50")])

        assert result.variance_amount == Decimal("50")
        assert result.variance_percentage == Decimal("0")
        assert result.variance_type == VarianceType.UNFAVORABLE

    def test_exactly_on_budget_is_neutral(self):
        result = compute_variance(AccountType.EXPENSE, Decimal("400"), [Decimal("400")])
        assert result.variance_type == VarianceType.NEUTRAL
        assert result.variance_percentage == Decimal("0")


class TestSummarize:
    def test_totals_counts_and_ratios(self):
        results = [
            compute_variance(AccountType.EXPENSE, Decimal("1000"), [Decimal("800")]),
            compute_variance(AccountType.EXPENSE, Decimal("500"), [Decimal("700")]),
            compute_variance(AccountType.ASSET, Decimal("100"), [Decimal("100")]),
        ]

        summary = summarize(results)

        assert summary.record_count == 3
        assert summary.total_budgeted == Decimal("1600")
        assert summary.total_actual == Decimal("1600")
        assert summary.total_variance == Decimal("0")
        assert summary.favorable_count == 1
        assert summary.unfavorable_count == 1
        assert summary.neutral_count == 1
        assert summary.variance_percentage == Decimal("0")
        assert summary.utilization_percentage == Decimal("100")

    def test_empty(self):
        summary = summarize([])
        assert summary.record_count == 0
        assert summary.total_budgeted == Decimal("0")
        assert summary.utilization_percentage == Decimal("0")

    def test_accepts_string_variance_type(self):
        row = VarianceResult(
            budgeted_amount=Decimal("10"),
            actual_amount=Decimal("5"),
            variance_amount=Decimal("-5"),
            variance_percentage=Decimal("-50"),
            variance_type="favorable",
        )
        assert summarize([row]).favorable_count == 1
