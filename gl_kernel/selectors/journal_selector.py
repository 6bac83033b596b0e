"""
Module: gl_kernel.selectors.journal_selector
Responsibility: Read-only query access to journal entries and their lines.
    Converts ORM models to frozen DTOs.
Architecture position: Kernel > Selectors.  May import from models/ and
    selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Read-only: no mutations performed on any queried data.
    - Lines are returned in line_number order.

Failure modes:
    - Returns None or an empty list when nothing matches; never raises on
      absence of data.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from gl_kernel.domain.dimensions import DimensionRefs
from gl_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
    SourceType,
)
from gl_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class JournalLineDTO:
    """A journal line together with the header fields needed to filter it."""

    id: UUID
    journal_entry_id: UUID
    entry_number: str
    entry_date: date
    entry_status: str
    line_number: int
    account_id: UUID
    debit_amount: Decimal
    credit_amount: Decimal
    dimensions: DimensionRefs
    description: str | None

    @property
    def net_amount(self) -> Decimal:
        return self.debit_amount - self.credit_amount


@dataclass(frozen=True)
class JournalEntryDTO:
    id: UUID
    entry_number: str
    entry_date: date
    posting_date: date | None
    entry_type: str
    source_type: str | None
    source_document_id: UUID | None
    source_document_number: str | None
    description: str | None
    status: str
    budget_period_id: UUID | None
    reversal_of_id: UUID | None
    posted_at: datetime | None
    lines: tuple[JournalLineDTO, ...]

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class JournalSelector(BaseSelector[JournalEntry]):
    """Query journal entries and lines."""

    @staticmethod
    def _line_to_dto(line: JournalEntryLine, entry: JournalEntry) -> JournalLineDTO:
        return JournalLineDTO(
            id=line.id,
            journal_entry_id=entry.id,
            entry_number=entry.entry_number,
            entry_date=entry.entry_date,
            entry_status=entry.status,
            line_number=line.line_number,
            account_id=line.account_id,
            debit_amount=line.debit_amount,
            credit_amount=line.credit_amount,
            dimensions=line.dimensions,
            description=line.description,
        )

    def _to_dto(self, entry: JournalEntry) -> JournalEntryDTO:
        return JournalEntryDTO(
            id=entry.id,
            entry_number=entry.entry_number,
            entry_date=entry.entry_date,
            posting_date=entry.posting_date,
            entry_type=entry.entry_type,
            source_type=entry.source_type,
            source_document_id=entry.source_document_id,
            source_document_number=entry.source_document_number,
            description=entry.description,
            status=entry.status,
            budget_period_id=entry.budget_period_id,
            reversal_of_id=entry.reversal_of_id,
            posted_at=entry.posted_at,
            lines=tuple(
                self._line_to_dto(line, entry)
                for line in sorted(entry.lines, key=lambda l: l.line_number)
            ),
        )

    def _entries(self, stmt) -> list[JournalEntryDTO]:
        return [self._to_dto(e) for e in self.session.execute(stmt).scalars()]

    def get_entry(self, entry_id: UUID) -> JournalEntryDTO | None:
        entry = self.session.get(JournalEntry, entry_id)
        return self._to_dto(entry) if entry is not None else None

    def get_entry_by_number(self, entry_number: str) -> JournalEntryDTO | None:
        entry = self.session.execute(
            select(JournalEntry).where(JournalEntry.entry_number == entry_number)
        ).scalar_one_or_none()
        return self._to_dto(entry) if entry is not None else None

    def get_entries_by_status(self, status: JournalEntryStatus) -> list[JournalEntryDTO]:
        return self._entries(
            select(JournalEntry)
            .where(JournalEntry.status == JournalEntryStatus(status).value)
            .order_by(JournalEntry.entry_number)
        )

    def get_entries_by_date_range(
        self,
        start_date: date,
        end_date: date,
        status: JournalEntryStatus | None = None,
    ) -> list[JournalEntryDTO]:
        stmt = (
            select(JournalEntry)
            .where(JournalEntry.entry_date >= start_date)
            .where(JournalEntry.entry_date <= end_date)
        )
        if status is not None:
            stmt = stmt.where(JournalEntry.status == JournalEntryStatus(status).value)
        return self._entries(stmt.order_by(JournalEntry.entry_date, JournalEntry.entry_number))

    def get_entries_by_source_document(
        self,
        source_type: SourceType,
        source_document_id: UUID,
    ) -> list[JournalEntryDTO]:
        return self._entries(
            select(JournalEntry)
            .where(JournalEntry.source_type == SourceType(source_type).value)
            .where(JournalEntry.source_document_id == source_document_id)
            .order_by(JournalEntry.entry_number)
        )

    def get_reversal_of(self, entry_id: UUID) -> JournalEntryDTO | None:
        """The entry that reversed ``entry_id``, if any."""
        entry = self.session.execute(
            select(JournalEntry).where(JournalEntry.reversal_of_id == entry_id)
        ).scalar_one_or_none()
        return self._to_dto(entry) if entry is not None else None

    def get_lines_for_account(
        self,
        account_id: UUID,
        status: JournalEntryStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[JournalLineDTO]:
        """
        Lines posted against ``account_id``, optionally restricted to an
        entry status and an inclusive entry-date window.
        """
        stmt = (
            select(JournalEntryLine, JournalEntry)
            .join(JournalEntry, JournalEntryLine.journal_entry_id == JournalEntry.id)
            .where(JournalEntryLine.account_id == account_id)
        )
        if status is not None:
            stmt = stmt.where(JournalEntry.status == JournalEntryStatus(status).value)
        if start_date is not None:
            stmt = stmt.where(JournalEntry.entry_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(JournalEntry.entry_date <= end_date)
        stmt = stmt.order_by(
            JournalEntry.entry_date, JournalEntry.entry_number, JournalEntryLine.line_number
        )
        return [self._line_to_dto(line, entry) for line, entry in self.session.execute(stmt)]

    def count_entries(self, status: JournalEntryStatus | None = None) -> int:
        stmt = select(func.count()).select_from(JournalEntry)
        if status is not None:
            stmt = stmt.where(JournalEntry.status == JournalEntryStatus(status).value)
        return self.session.execute(stmt).scalar_one()
