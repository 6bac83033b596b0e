"""
JournalService -- the journal entry lifecycle and the posting step.

Responsibility:
    Builds draft entries line by line, validates them, posts them to
    account balances, reverses posted entries and deletes drafts.  Every
    status change is checked against JOURNAL_ENTRY_WORKFLOW.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes only; the caller owns
    the transaction so that line changes, balance updates and status
    changes commit or roll back together.

Invariants enforced:
    - Lines can be added or removed only while the entry is DRAFT.
    - An entry reaches VALIDATED or POSTED only if it has at least one line
      and total_debit == total_credit.  Balance is re-checked at post.
    - Posting locks every touched account row (SELECT ... FOR UPDATE, fixed
      id order) before applying the line nets to current_balance.
    - A reversal is a new POSTED entry with debit and credit swapped on each
      line; the net effect of an entry plus its reversal on every account
      is zero.
    - Entry numbers come from the locked "journal_entry" sequence.

Failure modes:
    - InvalidStateTransitionError (and the EntryNotValidatedError /
      EntryNotPostedError specialisations) for illegal lifecycle actions.
    - EmptyEntryError, UnbalancedEntryError at validate and post.
    - AccountNotFoundError, AccountInactiveError,
      DirectPostingNotAllowedError, MissingRequiredDimensionError,
      DimensionNotFoundError, InvalidAmountError at add_line.

Audit relevance:
    Every transition is logged with the entry id and number.  A reversed
    entry keeps its lines; the reversal carries reversal_of_id.
"""

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select

from gl_kernel.db.types import ZERO, to_decimal
from gl_kernel.domain.clock import Clock
from gl_kernel.domain.dimensions import DimensionRefs
from gl_kernel.domain.workflow import Transition
from gl_kernel.exceptions import (
    AccountInactiveError,
    DirectPostingNotAllowedError,
    EmptyEntryError,
    EntryLineNotFoundError,
    EntryNotFoundError,
    EntryNotPostedError,
    EntryNotValidatedError,
    InvalidAmountError,
    InvalidStateTransitionError,
    MissingRequiredDimensionError,
    UnbalancedEntryError,
)
from gl_kernel.logging_config import LogContext, get_logger
from gl_kernel.models.journal import (
    EntryType,
    JournalEntry,
    JournalEntryLine,
    SourceType,
)
from gl_kernel.selectors.account_selector import AccountRef, AccountSelector
from gl_kernel.selectors.period_selector import PeriodSelector
from gl_kernel.services.base import BaseService
from gl_kernel.services.dimension_service import DimensionService
from gl_kernel.services.sequence_service import SequenceService
from gl_kernel.workflows import JOURNAL_ENTRY_WORKFLOW

logger = get_logger("services.journal")

DimensionsArg = DimensionRefs | Mapping[str, Any] | None


class JournalService(BaseService[JournalEntry]):
    """
    Write side of the journal.

    Usage:
        with session_scope() as session:
            journal = JournalService(session)
            entry = journal.create_entry(date(2024, 3, 1), actor_id)
            journal.add_line(entry.id, "1000", Decimal("100"), ZERO, actor_id)
            journal.add_line(entry.id, "4000", ZERO, Decimal("100"), actor_id)
            journal.validate(entry.id, actor_id)
            journal.post(entry.id, actor_id)
    """

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        entry_number_prefix: str = "JE-",
        number_width: int = 6,
    ):
        super().__init__(session, clock)
        self._prefix = entry_number_prefix
        self._width = number_width
        self._accounts = AccountSelector(session)
        self._periods = PeriodSelector(session)
        self._dimensions = DimensionService(session, self.clock)
        self._sequences = SequenceService(session)

    # =========================================================================
    # Draft construction
    # =========================================================================

    def create_entry(
        self,
        entry_date: date,
        actor_id: UUID,
        entry_type: EntryType = EntryType.MANUAL,
        budget_period: UUID | str | None = None,
        source_type: SourceType | None = None,
        source_document_id: UUID | None = None,
        source_document_number: str | None = None,
        description: str | None = None,
        notes: str | None = None,
    ) -> JournalEntry:
        """Open a DRAFT entry with the next entry number."""
        period_id = self._periods.get(budget_period).id if budget_period is not None else None

        entry = JournalEntry(
            entry_number=self._sequences.next_number(
                SequenceService.JOURNAL_ENTRY, self._prefix, self._width
            ),
            entry_date=entry_date,
            entry_type=EntryType(entry_type).value,
            source_type=SourceType(source_type).value if source_type else None,
            source_document_id=source_document_id,
            source_document_number=source_document_number,
            description=description,
            notes=notes,
            status=JOURNAL_ENTRY_WORKFLOW.initial_state,
            budget_period_id=period_id,
            created_by_id=actor_id,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "journal_entry_created",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "entry_type": entry.entry_type,
                "entry_date": str(entry_date),
            },
        )
        return entry

    def add_line(
        self,
        entry_id: UUID,
        account_ref: AccountRef,
        debit: Decimal | int | str,
        credit: Decimal | int | str,
        actor_id: UUID,
        dimensions: DimensionsArg = None,
        description: str | None = None,
        notes: str | None = None,
    ) -> JournalEntry:
        """
        Append a line to a DRAFT entry.

        The account must exist, be active and accept direct posting, and the
        line must carry every dimension the account requires.
        """
        entry = self._load(entry_id)
        self._require(entry, "add_line")

        debit_amount = to_decimal(debit, "debit_amount")
        credit_amount = to_decimal(credit, "credit_amount")
        if debit_amount < ZERO:
            raise InvalidAmountError("debit_amount", debit_amount)
        if credit_amount < ZERO:
            raise InvalidAmountError("credit_amount", credit_amount)

        account = self._accounts.get(account_ref)
        if not account.is_active:
            raise AccountInactiveError(account.code)
        if not account.allow_direct_posting:
            raise DirectPostingNotAllowedError(account.code)

        refs = dimensions if isinstance(dimensions, DimensionRefs) else DimensionRefs.from_mapping(dimensions)
        missing = refs.missing(account.required_dimensions)
        if missing:
            raise MissingRequiredDimensionError(missing[0], account.code)
        self._dimensions.ensure_exists(refs)

        line = JournalEntryLine(
            line_number=len(entry.lines) + 1,
            account_id=account.id,
            debit_amount=debit_amount,
            credit_amount=credit_amount,
            description=description,
            notes=notes,
            created_by_id=actor_id,
        )
        line.assign_dimensions(refs)
        entry.lines.append(line)
        entry.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "journal_line_added",
            extra={
                "entry_id": str(entry.id),
                "line_number": line.line_number,
                "account_code": account.code,
                "debit": debit_amount,
                "credit": credit_amount,
            },
        )
        return entry

    def remove_line(self, entry_id: UUID, line_id: UUID, actor_id: UUID) -> JournalEntry:
        """Drop a line from a DRAFT entry and close the numbering gap."""
        entry = self._load(entry_id)
        self._require(entry, "remove_line")

        line = next((l for l in entry.lines if l.id == line_id), None)
        if line is None:
            raise EntryLineNotFoundError(entry_id, line_id)

        entry.lines.remove(line)
        self.session.flush()
        for number, remaining in enumerate(entry.lines, start=1):
            remaining.line_number = number
        entry.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "journal_line_removed",
            extra={"entry_id": str(entry.id), "line_count": len(entry.lines)},
        )
        return entry

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def validate(self, entry_id: UUID, actor_id: UUID) -> JournalEntry:
        """DRAFT -> VALIDATED once the entry has lines and balances."""
        entry = self._load(entry_id)
        transition = self._require(entry, "validate")
        self._check_postable(entry)

        entry.status = transition.to_state
        entry.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "journal_entry_validated",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "total": entry.total_debit,
            },
        )
        return entry

    def post(self, entry_id: UUID, actor_id: UUID) -> JournalEntry:
        """
        VALIDATED -> POSTED.  Applies every line's net amount to its
        account's running balance under row locks.
        """
        entry = self._load(entry_id, for_update=True)
        transition = self._require(entry, "post")
        self._check_postable(entry)

        with LogContext.bind(entry_id=entry.id, actor_id=actor_id):
            accounts = {
                a.id: a
                for a in self._accounts.lock_for_posting(l.account_id for l in entry.lines)
            }
            for line in entry.lines:
                accounts[line.account_id].apply_net_amount(line.net_amount)
                accounts[line.account_id].updated_by_id = actor_id

            now = self.clock.now()
            entry.status = transition.to_state
            entry.posting_date = now.date()
            entry.posted_at = now
            entry.posted_by_id = actor_id
            entry.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "journal_entry_posted",
                extra={
                    "entry_number": entry.entry_number,
                    "line_count": len(entry.lines),
                    "total": entry.total_debit,
                    "account_count": len(accounts),
                },
            )
        return entry

    def reverse(
        self,
        entry_id: UUID,
        reason: str,
        actor_id: UUID,
        reversal_date: date | None = None,
    ) -> JournalEntry:
        """
        Cancel a POSTED entry with a new, posted, mirror-image entry.

        The original moves to REVERSED.  Returns the reversal entry.
        """
        original = self._load(entry_id, for_update=True)
        transition = self._require(original, "reverse")

        with LogContext.bind(entry_id=original.id, actor_id=actor_id):
            reversal = self.create_entry(
                entry_date=reversal_date or self.clock.today(),
                actor_id=actor_id,
                entry_type=EntryType.REVERSAL,
                budget_period=original.budget_period_id,
                source_type=original.source_type,
                source_document_id=original.source_document_id,
                source_document_number=original.source_document_number,
                description=f"Reversal of {original.entry_number}: {reason}",
            )
            reversal.reversal_of_id = original.id

            for line in original.lines:
                mirrored = JournalEntryLine(
                    line_number=line.line_number,
                    account_id=line.account_id,
                    debit_amount=line.credit_amount,
                    credit_amount=line.debit_amount,
                    description=line.description,
                    notes=line.notes,
                    created_by_id=actor_id,
                )
                mirrored.assign_dimensions(line.dimensions)
                reversal.lines.append(mirrored)
            self.session.flush()

            self.validate(reversal.id, actor_id)
            self.post(reversal.id, actor_id)

            original.status = transition.to_state
            original.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "journal_entry_reversed",
                extra={
                    "original_entry_number": original.entry_number,
                    "reversal_entry_id": str(reversal.id),
                    "reversal_entry_number": reversal.entry_number,
                    "reason": reason,
                },
            )
        return reversal

    def delete(self, entry_id: UUID, actor_id: UUID) -> JournalEntry:
        """
        DRAFT -> DELETED.  All owned lines are removed; the header stays so
        the consumed entry number remains traceable.
        """
        entry = self._load(entry_id)
        transition = self._require(entry, "delete")

        line_count = len(entry.lines)
        entry.lines.clear()
        entry.status = transition.to_state
        entry.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "journal_entry_deleted",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "lines_removed": line_count,
            },
        )
        return entry

    # =========================================================================
    # Helpers
    # =========================================================================

    def get_entry(self, entry_id: UUID) -> JournalEntry:
        return self._load(entry_id)

    def _load(self, entry_id: UUID, for_update: bool = False) -> JournalEntry:
        if for_update:
            entry = self.session.execute(
                select(JournalEntry)
                .where(JournalEntry.id == entry_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        else:
            entry = self.session.get(JournalEntry, entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    def _require(self, entry: JournalEntry, action: str) -> Transition:
        transition = JOURNAL_ENTRY_WORKFLOW.find(entry.status, action)
        if transition is not None:
            return transition
        if action == "post":
            raise EntryNotValidatedError(entry.id, entry.status)
        if action == "reverse":
            raise EntryNotPostedError(entry.id, entry.status)
        raise InvalidStateTransitionError("journal_entry", entry.id, entry.status, action)

    @staticmethod
    def _check_postable(entry: JournalEntry) -> None:
        if not entry.lines:
            raise EmptyEntryError(entry.id)
        if not entry.is_balanced:
            raise UnbalancedEntryError(entry.id, entry.total_debit, entry.total_credit)
