"""Selectors for the GL kernel (read side)."""

from gl_kernel.selectors.account_selector import AccountSelector
from gl_kernel.selectors.journal_selector import JournalSelector
from gl_kernel.selectors.period_selector import PeriodSelector

__all__ = [
    "AccountSelector",
    "JournalSelector",
    "PeriodSelector",
]
