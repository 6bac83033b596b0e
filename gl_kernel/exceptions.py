"""
Typed Exception Hierarchy for the GL Kernel.

Every error raised by the kernel and the budget module is a typed exception
with a machine-readable ``code`` class attribute and the offending
identifiers stored as attributes. Callers catch by type and read structured
data; they never parse messages.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    GLKernelError (base)
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- EntryNotFoundError
    |   +-- EntryLineNotFoundError
    |   +-- BudgetNotFoundError
    |   +-- BudgetLineNotFoundError
    |   +-- BudgetPeriodNotFoundError
    |   +-- DimensionNotFoundError
    |
    +-- InvalidStateTransitionError
    |   +-- EntryNotValidatedError
    |   +-- EntryNotPostedError
    |   +-- InvalidBudgetStateError
    |
    +-- PostingError
    |   +-- UnbalancedEntryError
    |   +-- EmptyEntryError
    |   +-- MissingRequiredDimensionError
    |   +-- DirectPostingNotAllowedError
    |   +-- InvalidAmountError
    |
    +-- BudgetError
    |   +-- EmptyBudgetError
    |   +-- BudgetNotActiveError
    |
    +-- AccountError
    |   +-- AccountInactiveError
    |   +-- AccountHierarchyError
    |   +-- AccountReferencedError
    |
    +-- DimensionError
    |   +-- InvalidDimensionSlotError
    |
    +-- DuplicateCodeError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                        | When Raised
-----------|-----------------------------|-----------------------------------------
Not found  | ACCOUNT_NOT_FOUND           | Account id/code doesn't exist
           | ENTRY_NOT_FOUND             | Journal entry id/number doesn't exist
           | ENTRY_LINE_NOT_FOUND        | Line id not on the entry
           | BUDGET_NOT_FOUND            | Budget id/code doesn't exist
           | BUDGET_LINE_NOT_FOUND       | Line id not on the budget
           | BUDGET_PERIOD_NOT_FOUND     | Period id/code doesn't exist
           | DIMENSION_NOT_FOUND         | Referenced dimension row doesn't exist
-----------|-----------------------------|-----------------------------------------
State      | INVALID_STATE_TRANSITION    | Operation not allowed in current status
           | ENTRY_NOT_VALIDATED         | post() on an entry that isn't VALIDATED
           | ENTRY_NOT_POSTED            | reverse() on an entry that isn't POSTED
           | INVALID_BUDGET_STATE        | Budget operation not allowed in status
-----------|-----------------------------|-----------------------------------------
Posting    | UNBALANCED_ENTRY            | Debits != Credits
           | EMPTY_ENTRY                 | validate() on an entry with no lines
           | MISSING_REQUIRED_DIMENSION  | Account requires a dimension not given
           | DIRECT_POSTING_NOT_ALLOWED  | Line on a summary/header account
           | INVALID_AMOUNT              | Negative debit or credit amount
-----------|-----------------------------|-----------------------------------------
Budget     | EMPTY_BUDGET                | submit() on a budget with no lines
           | BUDGET_NOT_ACTIVE           | Variance analysis on non-ACTIVE budget
-----------|-----------------------------|-----------------------------------------
Account    | ACCOUNT_INACTIVE            | Line on a deactivated account
           | ACCOUNT_HIERARCHY_CYCLE     | Parent assignment would form a cycle
           | ACCOUNT_REFERENCED          | Delete of an account still in use
-----------|-----------------------------|-----------------------------------------
Dimension  | INVALID_DIMENSION_SLOT      | Generic slot outside 1..15
-----------|-----------------------------|-----------------------------------------
Codes      | DUPLICATE_CODE              | Business code already taken

===============================================================================
HANDLING PATTERNS
===============================================================================

1. CATCH SPECIFIC EXCEPTIONS:

    try:
        journal_service.validate(entry.id, actor_id)
    except UnbalancedEntryError as e:
        return {"error": e.code, "debit": e.total_debit, "credit": e.total_credit}
    except PostingError as e:
        log.error("validation_failed", extra={"code": e.code})

2. STATE ERRORS NAME BOTH STATES:

    except InvalidStateTransitionError as e:
        api_response(code=e.code, current=e.current_state, requested=e.requested_state)
"""

from typing import Any


class GLKernelError(Exception):
    """
    Base exception for all GL kernel errors.

    All subclasses have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "GL_KERNEL_ERROR"


# Lookup failures


class NotFoundError(GLKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account with given id or code was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ref: Any):
        self.account_ref = str(account_ref)
        super().__init__(f"Account not found: {account_ref}")


class EntryNotFoundError(NotFoundError):
    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_ref: Any):
        self.entry_ref = str(entry_ref)
        super().__init__(f"Journal entry not found: {entry_ref}")


class EntryLineNotFoundError(NotFoundError):
    code: str = "ENTRY_LINE_NOT_FOUND"

    def __init__(self, entry_id: Any, line_id: Any):
        self.entry_id = str(entry_id)
        self.line_id = str(line_id)
        super().__init__(f"Line {line_id} not found on journal entry {entry_id}")


class BudgetNotFoundError(NotFoundError):
    code: str = "BUDGET_NOT_FOUND"

    def __init__(self, budget_ref: Any):
        self.budget_ref = str(budget_ref)
        super().__init__(f"Budget not found: {budget_ref}")


class BudgetLineNotFoundError(NotFoundError):
    code: str = "BUDGET_LINE_NOT_FOUND"

    def __init__(self, budget_id: Any, line_id: Any):
        self.budget_id = str(budget_id)
        self.line_id = str(line_id)
        super().__init__(f"Line {line_id} not found on budget {budget_id}")


class BudgetPeriodNotFoundError(NotFoundError):
    code: str = "BUDGET_PERIOD_NOT_FOUND"

    def __init__(self, period_ref: Any):
        self.period_ref = str(period_ref)
        super().__init__(f"Budget period not found: {period_ref}")


class DimensionNotFoundError(NotFoundError):
    """A dimension reference on a line points at a row that does not exist."""

    code: str = "DIMENSION_NOT_FOUND"

    def __init__(self, dimension: str, value_id: Any):
        self.dimension = dimension
        self.value_id = str(value_id)
        super().__init__(f"Dimension {dimension} value not found: {value_id}")


# Lifecycle violations


class InvalidStateTransitionError(GLKernelError):
    """
    Operation is not permitted in the record's current lifecycle state.

    Carries both the current state and the state (or action) requested.
    """

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity: str,
        entity_id: Any,
        current_state: str,
        requested_state: str,
    ):
        self.entity = entity
        self.entity_id = str(entity_id)
        self.current_state = current_state
        self.requested_state = requested_state
        super().__init__(
            f"Cannot move {entity} {entity_id} from {current_state} "
            f"to {requested_state}"
        )


class EntryNotValidatedError(InvalidStateTransitionError):
    code: str = "ENTRY_NOT_VALIDATED"

    def __init__(self, entry_id: Any, current_state: str):
        super().__init__("journal_entry", entry_id, current_state, "posted")


class EntryNotPostedError(InvalidStateTransitionError):
    """Only posted entries can be reversed."""

    code: str = "ENTRY_NOT_POSTED"

    def __init__(self, entry_id: Any, current_state: str):
        super().__init__("journal_entry", entry_id, current_state, "reversed")


class InvalidBudgetStateError(InvalidStateTransitionError):
    code: str = "INVALID_BUDGET_STATE"

    def __init__(self, budget_id: Any, current_state: str, requested_state: str):
        super().__init__("budget", budget_id, current_state, requested_state)


# Posting failures


class PostingError(GLKernelError):
    """Base exception for posting-related errors."""

    code: str = "POSTING_ERROR"


class UnbalancedEntryError(PostingError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, entry_id: Any, total_debit: Any, total_credit: Any):
        self.entry_id = str(entry_id)
        self.total_debit = str(total_debit)
        self.total_credit = str(total_credit)
        super().__init__(
            f"Unbalanced entry {entry_id}: debits={total_debit}, "
            f"credits={total_credit}"
        )


class EmptyEntryError(PostingError):
    code: str = "EMPTY_ENTRY"

    def __init__(self, entry_id: Any):
        self.entry_id = str(entry_id)
        super().__init__(f"Journal entry {entry_id} has no lines")


class MissingRequiredDimensionError(PostingError):
    """Account requires a dimension that the line does not carry."""

    code: str = "MISSING_REQUIRED_DIMENSION"

    def __init__(self, dimension: str, account_code: str):
        self.dimension = dimension
        self.account_code = account_code
        super().__init__(
            f"Account {account_code} requires dimension '{dimension}'"
        )


class DirectPostingNotAllowedError(PostingError):
    code: str = "DIRECT_POSTING_NOT_ALLOWED"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account {account_code} does not allow direct posting")


class InvalidAmountError(PostingError):
    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: Any, reason: str = "must not be negative"):
        self.field = field
        self.amount = str(amount)
        self.reason = reason
        super().__init__(f"{field} {reason}: {amount}")


# Budget failures


class BudgetError(GLKernelError):
    """Base exception for budget-related errors."""

    code: str = "BUDGET_ERROR"


class EmptyBudgetError(BudgetError):
    code: str = "EMPTY_BUDGET"

    def __init__(self, budget_id: Any):
        self.budget_id = str(budget_id)
        super().__init__(f"Budget {budget_id} has no lines")


class BudgetNotActiveError(BudgetError):
    """Variance analysis requires an ACTIVE budget."""

    code: str = "BUDGET_NOT_ACTIVE"

    def __init__(self, budget_id: Any, status: str):
        self.budget_id = str(budget_id)
        self.status = status
        super().__init__(f"Budget {budget_id} is {status}, not active")


# Account failures


class AccountError(GLKernelError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountInactiveError(AccountError):
    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account {account_code} is inactive")


class AccountHierarchyError(AccountError):
    """Assigning the parent would create a cycle in the account tree."""

    code: str = "ACCOUNT_HIERARCHY_CYCLE"

    def __init__(self, account_code: str, parent_code: str):
        self.account_code = account_code
        self.parent_code = parent_code
        super().__init__(
            f"Making {parent_code} the parent of {account_code} creates a cycle"
        )


class AccountReferencedError(AccountError):
    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_code: str, referenced_by: str):
        self.account_code = account_code
        self.referenced_by = referenced_by
        super().__init__(
            f"Account {account_code} is referenced by {referenced_by} "
            f"and cannot be deleted"
        )


# Dimension failures


class DimensionError(GLKernelError):
    code: str = "DIMENSION_ERROR"


class InvalidDimensionSlotError(DimensionError):
    code: str = "INVALID_DIMENSION_SLOT"

    def __init__(self, slot: Any):
        self.slot = str(slot)
        super().__init__(f"Generic dimension slot must be 1..15, got {slot}")


class DuplicateCodeError(GLKernelError):
    """A business code (account, budget, period, dimension) is already in use."""

    code: str = "DUPLICATE_CODE"

    def __init__(self, entity: str, code_value: str):
        self.entity = entity
        self.code_value = code_value
        super().__init__(f"{entity} code already exists: {code_value}")
