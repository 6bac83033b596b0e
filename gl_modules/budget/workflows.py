"""Budget Workflows.

State machine for the budget approval lifecycle.
"""

from gl_kernel.domain.workflow import Guard, Transition, Workflow
from gl_kernel.logging_config import get_logger
from gl_modules.budget.models import BudgetStatus

logger = get_logger("modules.budget.workflows")

_S = BudgetStatus

BUDGET_HAS_LINES = Guard("budget_has_lines", "Budget has at least one line")
APPROVED_BY_AUTHORITY = Guard("approved_by_authority", "Budget approved by authorized approver")


BUDGET_WORKFLOW = Workflow(
    name="budget",
    description="Budget approval lifecycle",
    initial_state=_S.DRAFT.value,
    states=tuple(s.value for s in _S),
    transitions=(
        Transition(_S.DRAFT.value, _S.SUBMITTED.value, action="submit", guard=BUDGET_HAS_LINES),
        Transition(_S.DRAFT.value, _S.CANCELLED.value, action="cancel"),
        Transition(_S.SUBMITTED.value, _S.APPROVED.value, action="approve", guard=APPROVED_BY_AUTHORITY),
        Transition(_S.SUBMITTED.value, _S.REJECTED.value, action="reject"),
        Transition(_S.APPROVED.value, _S.ACTIVE.value, action="activate"),
        Transition(_S.ACTIVE.value, _S.COMPLETED.value, action="complete"),
    ),
    terminal_states=(_S.REJECTED.value, _S.COMPLETED.value, _S.CANCELLED.value),
)

# Non-transition operations and the states that permit them
LINE_EDIT_STATES: tuple[str, ...] = (_S.DRAFT.value,)
HEADER_EDIT_STATES: tuple[str, ...] = (_S.DRAFT.value, _S.SUBMITTED.value)
DELETABLE_STATES: tuple[str, ...] = (_S.DRAFT.value,)

logger.debug("budget_workflow_registered", extra={
    "workflow_name": BUDGET_WORKFLOW.name,
    "state_count": len(BUDGET_WORKFLOW.states),
})
