"""
SequenceService -- monotonic document numbering via locked counter rows.

Responsibility:
    Provides strictly increasing numbers per named series (journal entry
    numbers, generated budget codes).  A dedicated counter table with
    row-level locking (``SELECT ... FOR UPDATE``) serializes concurrent
    allocations for the same series.  Wall-clock timestamps are never used.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by JournalService (entry numbers) and BudgetService (budget codes).

Invariants enforced:
    - The locked counter row is the sole source of truth for the next value;
      MAX(number)+1 over the documents table is never used.
    - The increment is only visible after the caller's transaction commits.
      Rollback returns the value.

Failure modes:
    - IntegrityError on the first-use creation race, handled with a
      savepoint rollback and a locked re-read.
"""

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from gl_kernel.db.base import Base
from gl_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """One row per named series holding the last value handed out."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class SequenceService:
    """
    Allocates transactional sequence numbers.

    Non-goals:
        - Does NOT commit -- the caller controls transaction boundaries.

    Usage:
        number = SequenceService(session).next_number("journal_entry", "JE-", 6)
        # "JE-000001" on first use
    """

    JOURNAL_ENTRY = "journal_entry"
    BUDGET = "budget"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Lock the series row (creating it on first use), increment, return.

        Returns:
            An integer > 0, strictly greater than any value previously
            returned for ``sequence_name``.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use.  A concurrent caller may create the row at the same
            # time; the savepoint keeps the rest of the transaction intact.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def next_number(self, sequence_name: str, prefix: str, width: int = 6) -> str:
        """Next value formatted as ``<prefix><zero-padded value>``."""
        return f"{prefix}{self.next_value(sequence_name):0{width}d}"

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing; None if the series is unused."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def reset(self, sequence_name: str, value: int = 0) -> None:
        """
        Reset a series to ``value``.

        Only for tests and data migrations; resetting a live series hands
        out numbers that already exist.
        """
        counter = self._locked_counter(sequence_name)
        if counter is None:
            self._session.add(SequenceCounter(name=sequence_name, current_value=value))
        else:
            counter.current_value = value
        self._session.flush()
