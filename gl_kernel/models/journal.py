"""
Module: gl_kernel.models.journal
Responsibility: ORM persistence for journal entries and their lines -- the
    double-entry records whose posting moves account balances.
Architecture position: Kernel > Models.  May import from db/ and the
    dimension column mixin.

Invariants enforced:
    - Entry totals (total_debit, total_credit) and is_balanced are pure
      folds over the current line set; there is no stored total to drift.
    - Every line has debit_amount >= 0 and credit_amount >= 0.
    - line_number is 1-based and contiguous within an entry (maintained by
      JournalService after every add/remove).
    - entry_number is unique (uq_journal_entry_number).

Failure modes:
    - IntegrityError on duplicate entry_number (sequence misuse).
    - IntegrityError on a line pointing at a missing account.

Audit relevance:
    POSTED and REVERSED entries are never edited.  A reversal is a separate
    entry whose reversal_of_id points back at the original.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gl_kernel.db.base import DecimalAmount, TrackedBase, UUIDString
from gl_kernel.models.dimensions import DimensionColumnsMixin

if TYPE_CHECKING:
    from gl_kernel.models.account import GLAccount


class JournalEntryStatus(str, Enum):
    """Lifecycle status of a journal entry.

    DRAFT -> VALIDATED -> POSTED -> REVERSED, and DRAFT -> DELETED.
    """

    DRAFT = "draft"
    VALIDATED = "validated"
    POSTED = "posted"
    REVERSED = "reversed"
    DELETED = "deleted"


class EntryType(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    ADJUSTMENT = "adjustment"
    CLOSING = "closing"
    OPENING = "opening"
    REVERSAL = "reversal"


class SourceType(str, Enum):
    """Kind of business document an entry was generated from."""

    ORDER = "order"
    INVOICE = "invoice"
    PAYMENT = "payment"
    RETURN = "return"
    CREDIT_TRANSACTION = "credit_transaction"
    INVENTORY = "inventory"
    MANUAL = "manual"


class JournalEntry(TrackedBase):
    """
    Journal entry header -- the atomic unit of double-entry accounting.

    Non-goals:
        - The model does not enforce balance on write; JournalService checks
          it at validate and again at post.  is_balanced is a read-side fold.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("entry_number", name="uq_journal_entry_number"),
        Index("idx_journal_entry_date", "entry_date"),
        Index("idx_journal_status", "status"),
        Index("idx_journal_source_document", "source_type", "source_document_id"),
    )

    entry_number: Mapped[str] = mapped_column(String(50), nullable=False)

    # Accounting date; drives variance windows
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Set when the entry is posted
    posting_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    entry_type: Mapped[str] = mapped_column(
        String(20), default=EntryType.MANUAL.value, nullable=False,
    )

    source_type: Mapped[str | None] = mapped_column(String(30), nullable=True)

    source_document_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    source_document_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=JournalEntryStatus.DRAFT.value, nullable=False,
    )

    budget_period_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("budget_periods.id"), nullable=True,
    )

    posted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    posted_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # If this is a reversal, points to the original entry
    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("journal_entries.id"), nullable=True,
    )

    lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalEntryLine.line_number",
    )

    reversal_of: Mapped["JournalEntry | None"] = relationship(
        remote_side="JournalEntry.id",
        foreign_keys=[reversal_of_id],
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} status={self.status}>"

    @property
    def is_draft(self) -> bool:
        return self.status == JournalEntryStatus.DRAFT.value

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED.value

    @property
    def is_reversed(self) -> bool:
        return self.status == JournalEntryStatus.REVERSED.value

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        """True iff total_debit == total_credit."""
        return self.total_debit == self.total_credit


class JournalEntryLine(DimensionColumnsMixin, TrackedBase):
    """
    One debit and/or credit posting within a journal entry.

    Guarantees:
        - debit_amount and credit_amount are both >= 0.
        - net_amount = debit_amount - credit_amount.
    """

    __tablename__ = "journal_entry_lines"

    __table_args__ = (
        Index("idx_journal_line_entry", "journal_entry_id"),
        Index("idx_journal_line_account", "account_id"),
        Index("idx_journal_line_department", "department_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False,
    )

    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("gl_accounts.id"), nullable=False,
    )

    debit_amount: Mapped[Decimal] = mapped_column(
        DecimalAmount(), default=Decimal("0"), nullable=False,
    )

    credit_amount: Mapped[Decimal] = mapped_column(
        DecimalAmount(), default=Decimal("0"), nullable=False,
    )

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")

    account: Mapped["GLAccount"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<JournalEntryLine #{self.line_number} "
            f"Dr {self.debit_amount} Cr {self.credit_amount}>"
        )

    @property
    def net_amount(self) -> Decimal:
        return self.debit_amount - self.credit_amount
