"""
Budgeting Module Service (``gl_modules.budget.service``).

Responsibility
--------------
The budget approval lifecycle: create a budget against a period, edit its
lines while it is a draft, then submit, approve or reject, activate,
complete, cancel or delete it.

Architecture position
---------------------
**Modules layer** -- ``BudgetService`` is the sole public entry point for
budget maintenance.  Reads kernel reference data (accounts, periods,
dimensions) through kernel selectors and services; obtains generated
codes from the kernel ``SequenceService``.

Invariants enforced
-------------------
* Lines may be added or removed only while the budget is DRAFT.
* Header fields may be edited while DRAFT or SUBMITTED.
* Status changes follow ``BUDGET_WORKFLOW``; a budget cannot be submitted
  without lines.
* ``version`` increases by one on every edit.
* Flush-only: the caller owns the transaction.

Failure modes
-------------
* ``BudgetNotFoundError`` / ``BudgetLineNotFoundError`` on unknown ids.
* ``InvalidBudgetStateError`` for any operation illegal in the current
  status.
* ``EmptyBudgetError`` on submit without lines.
* ``DuplicateCodeError`` on an existing budget code.
* ``AccountNotFoundError`` / ``BudgetPeriodNotFoundError`` /
  ``DimensionNotFoundError`` on unresolved references.
* ``InvalidAmountError`` when a line amount is not a finite number.

Audit relevance
---------------
Structured log events for every lifecycle change, carrying budget id,
code, version and the status transition.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from gl_config import LedgerConfig
from gl_kernel.db.types import ZERO, to_decimal
from gl_kernel.domain.clock import Clock, SystemClock
from gl_kernel.domain.dimensions import DimensionRefs
from gl_kernel.domain.workflow import Transition
from gl_kernel.exceptions import (
    BudgetLineNotFoundError,
    BudgetNotFoundError,
    DuplicateCodeError,
    EmptyBudgetError,
    InvalidBudgetStateError,
)
from gl_kernel.logging_config import LogContext, get_logger
from gl_kernel.selectors.account_selector import AccountRef, AccountSelector
from gl_kernel.selectors.period_selector import PeriodSelector
from gl_kernel.services.dimension_service import DimensionService
from gl_kernel.services.sequence_service import SequenceService
from gl_modules.budget.models import BudgetInfo, BudgetLineInfo, BudgetStatus, BudgetType
from gl_modules.budget.orm import BudgetLineModel, BudgetModel
from gl_modules.budget.workflows import (
    BUDGET_WORKFLOW,
    DELETABLE_STATES,
    HEADER_EDIT_STATES,
    LINE_EDIT_STATES,
)

logger = get_logger("modules.budget.service")


class BudgetService:
    """
    Budget maintenance and approval.

    Contract
    --------
    * Every mutating method returns the budget as a frozen ``BudgetInfo``.
    * Clock is injectable for deterministic approval timestamps.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or LedgerConfig()
        self._accounts = AccountSelector(session)
        self._periods = PeriodSelector(session)
        self._dimensions = DimensionService(session, self._clock)
        self._sequences = SequenceService(session)

    # =========================================================================
    # Budget header
    # =========================================================================

    def create_budget(
        self,
        code: str | None,
        budget_period: UUID | str,
        budget_type: BudgetType,
        name: str,
        actor_id: UUID,
        description: str | None = None,
        notes: str | None = None,
    ) -> BudgetInfo:
        """
        Create a DRAFT budget at version 1.

        When ``code`` is None one is generated from the "budget" sequence
        (``BUD-000001`` with the default numbering config).
        """
        period = self._periods.get(budget_period)

        if code is None:
            numbering = self._config.numbering
            code = self._sequences.next_number(
                SequenceService.BUDGET, numbering.budget_code_prefix, numbering.number_width
            )
        elif self._find_by_code(code) is not None:
            raise DuplicateCodeError("budget", code)

        budget = BudgetModel(
            code=code,
            name=name,
            description=description,
            budget_period_id=period.id,
            budget_type=BudgetType(budget_type).value,
            status=BUDGET_WORKFLOW.initial_state,
            version=1,
            notes=notes,
            created_by_id=actor_id,
        )
        self._session.add(budget)
        self._session.flush()

        logger.info(
            "budget_created",
            extra={
                "budget_id": str(budget.id),
                "budget_code": code,
                "period_code": period.code,
                "budget_type": budget.budget_type,
            },
        )
        return budget.to_dto()

    def update_budget(
        self,
        budget_id: UUID,
        actor_id: UUID,
        name: str | None = None,
        description: str | None = None,
        budget_type: BudgetType | None = None,
        notes: str | None = None,
    ) -> BudgetInfo:
        """Edit header fields; allowed while DRAFT or SUBMITTED."""
        budget = self._load(budget_id)
        self._require_state(budget, HEADER_EDIT_STATES, "update")

        if name is not None:
            budget.name = name
        if description is not None:
            budget.description = description
        if budget_type is not None:
            budget.budget_type = BudgetType(budget_type).value
        if notes is not None:
            budget.notes = notes
        self._touch(budget, actor_id)

        logger.info(
            "budget_updated",
            extra={"budget_id": str(budget.id), "version": budget.version},
        )
        return budget.to_dto()

    # =========================================================================
    # Budget lines
    # =========================================================================

    def add_budget_line(
        self,
        budget_id: UUID,
        account_ref: AccountRef,
        amount: Decimal | int | str,
        actor_id: UUID,
        dimensions: DimensionRefs | Mapping[str, Any] | None = None,
        description: str | None = None,
        notes: str | None = None,
    ) -> BudgetInfo:
        """
        Append a planned amount for one account and dimension combination.

        ``amount`` is signed and follows the ledger convention used for
        actuals (debit - credit): expense lines are positive, revenue lines
        are negative.
        """
        budget = self._load(budget_id)
        self._require_state(budget, LINE_EDIT_STATES, "add_line")

        planned = to_decimal(amount)

        account = self._accounts.get(account_ref)
        refs = dimensions if isinstance(dimensions, DimensionRefs) else DimensionRefs.from_mapping(dimensions)
        self._dimensions.ensure_exists(refs)

        line = BudgetLineModel(
            line_number=len(budget.lines) + 1,
            account_id=account.id,
            amount=planned,
            description=description,
            notes=notes,
            created_by_id=actor_id,
        )
        line.assign_dimensions(refs)
        budget.lines.append(line)
        self._touch(budget, actor_id)

        logger.info(
            "budget_line_added",
            extra={
                "budget_id": str(budget.id),
                "line_number": line.line_number,
                "account_code": account.code,
                "amount": planned,
                "total_amount": budget.total_amount,
            },
        )
        return budget.to_dto()

    def remove_budget_line(self, budget_id: UUID, line_id: UUID, actor_id: UUID) -> BudgetInfo:
        budget = self._load(budget_id)
        self._require_state(budget, LINE_EDIT_STATES, "remove_line")

        line = next((l for l in budget.lines if l.id == line_id), None)
        if line is None:
            raise BudgetLineNotFoundError(budget_id, line_id)

        budget.lines.remove(line)
        self._session.flush()
        for number, remaining in enumerate(budget.lines, start=1):
            remaining.line_number = number
        self._touch(budget, actor_id)

        logger.info(
            "budget_line_removed",
            extra={"budget_id": str(budget.id), "total_amount": budget.total_amount},
        )
        return budget.to_dto()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def submit(self, budget_id: UUID, actor_id: UUID) -> BudgetInfo:
        budget = self._load(budget_id)
        transition = self._require_transition(budget, "submit")
        if not budget.lines:
            raise EmptyBudgetError(budget.id)
        return self._apply(budget, transition, actor_id)

    def approve(self, budget_id: UUID, actor_id: UUID) -> BudgetInfo:
        budget = self._load(budget_id)
        transition = self._require_transition(budget, "approve")
        budget.approved_at = self._clock.now()
        budget.approved_by_id = actor_id
        return self._apply(budget, transition, actor_id)

    def reject(self, budget_id: UUID, reason: str, actor_id: UUID) -> BudgetInfo:
        """SUBMITTED -> REJECTED; the reason is appended to the notes."""
        budget = self._load(budget_id)
        transition = self._require_transition(budget, "reject")
        rejection = f"Rejection: {reason}"
        budget.notes = f"{budget.notes}\n{rejection}" if budget.notes else rejection
        return self._apply(budget, transition, actor_id, reason=reason)

    def activate(self, budget_id: UUID, actor_id: UUID) -> BudgetInfo:
        budget = self._load(budget_id)
        return self._apply(budget, self._require_transition(budget, "activate"), actor_id)

    def complete(self, budget_id: UUID, actor_id: UUID) -> BudgetInfo:
        budget = self._load(budget_id)
        return self._apply(budget, self._require_transition(budget, "complete"), actor_id)

    def cancel(self, budget_id: UUID, actor_id: UUID) -> BudgetInfo:
        budget = self._load(budget_id)
        return self._apply(budget, self._require_transition(budget, "cancel"), actor_id)

    def delete(self, budget_id: UUID, actor_id: UUID) -> None:
        """Hard delete of a DRAFT budget and its lines."""
        budget = self._load(budget_id)
        self._require_state(budget, DELETABLE_STATES, "delete")

        code, line_count = budget.code, len(budget.lines)
        self._session.delete(budget)
        self._session.flush()

        logger.info(
            "budget_deleted",
            extra={
                "budget_id": str(budget_id),
                "budget_code": code,
                "lines_removed": line_count,
                "deleted_by": str(actor_id),
            },
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def get_budget(self, budget_ref: UUID | str) -> BudgetInfo:
        """Look a budget up by id or by code."""
        if isinstance(budget_ref, UUID):
            return self._load(budget_ref).to_dto()
        budget = self._find_by_code(budget_ref)
        if budget is None:
            raise BudgetNotFoundError(budget_ref)
        return budget.to_dto()

    def get_lines(self, budget_id: UUID) -> list[BudgetLineInfo]:
        return list(self._load(budget_id).to_dto().lines)

    def list_by_period(self, budget_period: UUID | str) -> list[BudgetInfo]:
        period = self._periods.get(budget_period)
        return self._list(select(BudgetModel).where(BudgetModel.budget_period_id == period.id))

    def list_by_status(self, status: BudgetStatus) -> list[BudgetInfo]:
        return self._list(select(BudgetModel).where(BudgetModel.status == BudgetStatus(status).value))

    def total_budgeted_for_account(self, account_ref: AccountRef) -> Decimal:
        """Sum of line amounts for ``account_ref`` across every ACTIVE budget."""
        account = self._accounts.get(account_ref)
        rows = self._session.execute(
            select(BudgetLineModel.amount)
            .join(BudgetModel, BudgetLineModel.budget_id == BudgetModel.id)
            .where(BudgetModel.status == BudgetStatus.ACTIVE.value)
            .where(BudgetLineModel.account_id == account.id)
        ).scalars()
        return sum(rows, ZERO)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _list(self, stmt) -> list[BudgetInfo]:
        return [b.to_dto() for b in self._session.execute(stmt.order_by(BudgetModel.code)).scalars()]

    def _find_by_code(self, code: str) -> BudgetModel | None:
        return self._session.execute(
            select(BudgetModel).where(BudgetModel.code == code)
        ).scalar_one_or_none()

    def _load(self, budget_id: UUID) -> BudgetModel:
        budget = self._session.get(BudgetModel, budget_id)
        if budget is None:
            raise BudgetNotFoundError(budget_id)
        return budget

    @staticmethod
    def _require_state(budget: BudgetModel, allowed: tuple[str, ...], action: str) -> None:
        if budget.status not in allowed:
            raise InvalidBudgetStateError(budget.id, budget.status, action)

    @staticmethod
    def _require_transition(budget: BudgetModel, action: str) -> Transition:
        transition = BUDGET_WORKFLOW.find(budget.status, action)
        if transition is None:
            raise InvalidBudgetStateError(budget.id, budget.status, action)
        return transition

    def _touch(self, budget: BudgetModel, actor_id: UUID) -> None:
        budget.version += 1
        budget.updated_by_id = actor_id
        self._session.flush()

    def _apply(
        self,
        budget: BudgetModel,
        transition: Transition,
        actor_id: UUID,
        **log_extra: Any,
    ) -> BudgetInfo:
        old_status = budget.status
        budget.status = transition.to_state
        budget.updated_by_id = actor_id
        self._session.flush()

        with LogContext.bind(budget_id=budget.id, actor_id=actor_id):
            logger.info(
                f"budget_{transition.action}",
                extra={
                    "budget_code": budget.code,
                    "from_status": old_status,
                    "to_status": budget.status,
                    "version": budget.version,
                    **log_extra,
                },
            )
        return budget.to_dto()
