"""ORM models for the GL kernel."""

from gl_kernel.models.account import (
    AccountCategory,
    AccountType,
    GLAccount,
    NormalBalance,
)
from gl_kernel.models.budget_period import BudgetPeriod, PeriodStatus, PeriodType
from gl_kernel.models.dimensions import (
    STATIC_DIMENSION_MODELS,
    BusinessObject,
    BusinessObjectType,
    CostCenter,
    CostCenterType,
    Department,
    DimensionColumnsMixin,
    DimensionDataType,
    DimensionType,
    DimensionValue,
    Person,
    Series,
)
from gl_kernel.models.journal import (
    EntryType,
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    SourceType,
)
from gl_kernel.services.sequence_service import SequenceCounter

__all__ = [
    "GLAccount",
    "AccountType",
    "AccountCategory",
    "NormalBalance",
    "BudgetPeriod",
    "PeriodStatus",
    "PeriodType",
    "Department",
    "CostCenter",
    "CostCenterType",
    "BusinessObject",
    "BusinessObjectType",
    "Series",
    "Person",
    "DimensionType",
    "DimensionValue",
    "DimensionDataType",
    "DimensionColumnsMixin",
    "STATIC_DIMENSION_MODELS",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryStatus",
    "EntryType",
    "SourceType",
    "SequenceCounter",
]
