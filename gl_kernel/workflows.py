"""Kernel lifecycle workflows.

State machines for journal entries and budget periods.  Services consult
these before changing status and raise InvalidStateTransitionError when
the action is not declared from the current state.
"""

from gl_kernel.domain.workflow import Guard, Transition, Workflow
from gl_kernel.models.budget_period import PeriodStatus
from gl_kernel.models.journal import JournalEntryStatus

_E = JournalEntryStatus
_P = PeriodStatus

ENTRY_HAS_LINES = Guard("entry_has_lines", "Entry has at least one line")
ENTRY_IS_BALANCED = Guard("entry_is_balanced", "Total debit equals total credit")


JOURNAL_ENTRY_WORKFLOW = Workflow(
    name="journal_entry",
    description="Journal entry lifecycle",
    initial_state=_E.DRAFT.value,
    states=tuple(s.value for s in _E),
    transitions=(
        Transition(_E.DRAFT.value, _E.DRAFT.value, action="add_line"),
        Transition(_E.DRAFT.value, _E.DRAFT.value, action="remove_line"),
        Transition(_E.DRAFT.value, _E.VALIDATED.value, action="validate", guard=ENTRY_IS_BALANCED),
        Transition(_E.DRAFT.value, _E.DELETED.value, action="delete"),
        Transition(_E.VALIDATED.value, _E.POSTED.value, action="post", guard=ENTRY_IS_BALANCED, posts_entry=True),
        Transition(_E.POSTED.value, _E.REVERSED.value, action="reverse", posts_entry=True),
    ),
    terminal_states=(_E.REVERSED.value, _E.DELETED.value),
)


BUDGET_PERIOD_WORKFLOW = Workflow(
    name="budget_period",
    description="Budget period lifecycle",
    initial_state=_P.DRAFT.value,
    states=tuple(s.value for s in _P),
    transitions=(
        Transition(_P.DRAFT.value, _P.ACTIVE.value, action="activate"),
        Transition(_P.ACTIVE.value, _P.CLOSED.value, action="close"),
        Transition(_P.CLOSED.value, _P.ARCHIVED.value, action="archive"),
    ),
    terminal_states=(_P.ARCHIVED.value,),
)
