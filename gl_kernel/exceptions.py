"""
Typed exception hierarchy for the GL kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP handlers, batch jobs, CLIs) translate ledger failures into
their own transport responses.  They need to branch on the KIND of failure,
not on message wording:

    try:
        ledger.post_journal_entry(entry_id, posted_by="u-42")
    except ClosedPeriodError as e:
        return {"error": e.code, "period": e.period_name}   # 409
    except NotFoundError as e:
        return {"error": e.code}                            # 404

Every exception has:
  1. A typed class (catch by type, never by message).
  2. A ``code`` class attribute (machine-readable, API-safe).
  3. Structured attributes carrying the data that caused the failure.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    GeneralLedgerError (base)
    |
    +-- ValidationError              malformed or invariant-violating input
    |   +-- InvalidAccountCodeError
    |   +-- InvalidAccountTypeError
    |   +-- InvalidPeriodRangeError
    |   +-- PeriodOverlapError
    |   +-- InvalidAmountError
    |   +-- InvalidLineError
    |   +-- TooFewLinesError
    |   +-- UnbalancedEntryError
    |   +-- InactiveAccountError
    |   +-- DuplicateAccountCodeError   (also a ConflictError)
    |
    +-- NotFoundError                unknown id / code
    |   +-- AccountNotFoundError
    |   +-- PeriodNotFoundError
    |   +-- EntryNotFoundError
    |
    +-- ConflictError                state-machine violation
        +-- ClosedPeriodError
        +-- PeriodAlreadyClosedError
        +-- EntryStatusError
        +-- EntryAlreadyReversedError
        +-- ReversalOfReversalError
        +-- AccountReferencedError
        +-- SystemAccountError
        +-- ImmutabilityViolationError
        +-- DuplicateAccountCodeError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                     | When Raised
------------|--------------------------|------------------------------------------
Validation  | INVALID_ACCOUNT_CODE     | Code empty, too long, bad characters
            | INVALID_ACCOUNT_TYPE     | Not one of the five account types
            | INVALID_PERIOD_RANGE     | start_date >= end_date
            | PERIOD_OVERLAP           | Date range intersects another period
            | INVALID_AMOUNT           | Float, negative, or sub-minor-unit amount
            | INVALID_LINE             | Line is not exactly one-sided
            | TOO_FEW_LINES            | Entry has fewer than two lines
            | UNBALANCED_ENTRY         | sum(debit) != sum(credit)
            | ACCOUNT_INACTIVE         | Line targets a deactivated account
            | DUPLICATE_ACCOUNT_CODE   | Account code already taken
------------|--------------------------|------------------------------------------
NotFound    | ACCOUNT_NOT_FOUND        | Unknown account id or code
            | PERIOD_NOT_FOUND         | Unknown period id / no current period
            | ENTRY_NOT_FOUND          | Unknown entry id or number
------------|--------------------------|------------------------------------------
Conflict    | CLOSED_PERIOD            | Posting into a closed or missing period
            | PERIOD_ALREADY_CLOSED    | Closing a closed period
            | ENTRY_STATUS_CONFLICT    | Entry not in the status the op needs
            | ENTRY_ALREADY_REVERSED   | Reversing a reversed entry
            | REVERSAL_OF_REVERSAL     | Reversing a reversing entry
            | ACCOUNT_REFERENCED       | Deleting an account that has lines
            | SYSTEM_ACCOUNT           | Deactivating/deleting a system account
            | IMMUTABILITY_VIOLATION   | ORM write to a posted entry or line

None of these leave partial state behind: every write path runs inside a
single unit of work that rolls back on any exception.
"""


class GeneralLedgerError(Exception):
    """
    Base exception for all GL kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "GENERAL_LEDGER_ERROR"


# =============================================================================
# Category bases
# =============================================================================


class ValidationError(GeneralLedgerError):
    """Malformed or invariant-violating input."""

    code: str = "VALIDATION_ERROR"


class NotFoundError(GeneralLedgerError):
    """Unknown account, period, or entry."""

    code: str = "NOT_FOUND"


class ConflictError(GeneralLedgerError):
    """Operation not allowed in the target's current state."""

    code: str = "CONFLICT"


# =============================================================================
# Validation
# =============================================================================


class InvalidAccountCodeError(ValidationError):
    """Account code fails the format rule."""

    code: str = "INVALID_ACCOUNT_CODE"

    def __init__(self, account_code: str, reason: str):
        self.account_code = account_code
        self.reason = reason
        super().__init__(f"Invalid account code {account_code!r}: {reason}")


class InvalidAccountTypeError(ValidationError):
    """Account type is not one of the recognized types."""

    code: str = "INVALID_ACCOUNT_TYPE"

    def __init__(self, account_type: str):
        self.account_type = account_type
        super().__init__(f"Invalid account type: {account_type!r}")


class DuplicateAccountCodeError(ValidationError, ConflictError):
    """Account code is already in use."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


class InvalidPeriodRangeError(ValidationError):
    """Period start date is not before its end date."""

    code: str = "INVALID_PERIOD_RANGE"

    def __init__(self, start_date: str, end_date: str):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Period start_date ({start_date}) must be before end_date ({end_date})"
        )


class PeriodOverlapError(ValidationError):
    """New period date range intersects an existing period."""

    code: str = "PERIOD_OVERLAP"

    def __init__(
        self,
        existing_period_id: str,
        overlap_start: str,
        overlap_end: str,
    ):
        self.existing_period_id = existing_period_id
        self.overlap_start = overlap_start
        self.overlap_end = overlap_end
        super().__init__(
            f"Period overlaps existing period {existing_period_id} "
            f"({overlap_start} to {overlap_end})"
        )


class InvalidAmountError(ValidationError):
    """Amount cannot be represented exactly in ledger minor units."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: str, reason: str):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount}: {reason}")


class InvalidLineError(ValidationError):
    """A journal line is not exactly one-sided."""

    code: str = "INVALID_LINE"

    def __init__(self, line_no: int, reason: str):
        self.line_no = line_no
        self.reason = reason
        super().__init__(f"Invalid line {line_no}: {reason}")


class TooFewLinesError(ValidationError):
    """Journal entry has fewer than two lines."""

    code: str = "TOO_FEW_LINES"

    def __init__(self, line_count: int):
        self.line_count = line_count
        super().__init__(
            f"Journal entry needs at least two lines, got {line_count}"
        )


class UnbalancedEntryError(ValidationError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(f"Unbalanced entry: debits={debits}, credits={credits}")


class InactiveAccountError(ValidationError):
    """Account is deactivated and accepts no new lines."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account is inactive: {account_code}")


# =============================================================================
# Not found
# =============================================================================


class AccountNotFoundError(NotFoundError):
    """Account was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ref: str):
        self.account_ref = account_ref
        super().__init__(f"Account not found: {account_ref}")


class PeriodNotFoundError(NotFoundError):
    """Period was not found, or no open period covers the date."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_ref: str):
        self.period_ref = period_ref
        super().__init__(f"Fiscal period not found: {period_ref}")


class EntryNotFoundError(NotFoundError):
    """Journal entry was not found."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_ref: str):
        self.entry_ref = entry_ref
        super().__init__(f"Journal entry not found: {entry_ref}")


# =============================================================================
# Conflict
# =============================================================================


class ClosedPeriodError(ConflictError):
    """Posting date falls in a closed period, or in no period at all."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, entry_date: str, period_name: str | None = None):
        self.entry_date = entry_date
        self.period_name = period_name
        if period_name is None:
            message = f"No open fiscal period covers {entry_date}"
        else:
            message = f"Cannot post to closed period {period_name} (entry_date: {entry_date})"
        super().__init__(message)


class PeriodAlreadyClosedError(ConflictError):
    """Period is already closed."""

    code: str = "PERIOD_ALREADY_CLOSED"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Period {period_id} is already closed")


class EntryStatusError(ConflictError):
    """Entry is not in the status the operation requires."""

    code: str = "ENTRY_STATUS_CONFLICT"

    def __init__(self, entry_id: str, status: str, expected: str):
        self.entry_id = entry_id
        self.status = status
        self.expected = expected
        super().__init__(
            f"Journal entry {entry_id} is {status}, expected {expected}"
        )


class EntryAlreadyReversedError(ConflictError):
    """Entry has already been reversed."""

    code: str = "ENTRY_ALREADY_REVERSED"

    def __init__(self, entry_id: str, reversed_by_id: str | None = None):
        self.entry_id = entry_id
        self.reversed_by_id = reversed_by_id
        super().__init__(f"Journal entry {entry_id} has already been reversed")


class ReversalOfReversalError(ConflictError):
    """A reversing entry can never itself be reversed."""

    code: str = "REVERSAL_OF_REVERSAL"

    def __init__(self, entry_id: str, reversal_of_id: str):
        self.entry_id = entry_id
        self.reversal_of_id = reversal_of_id
        super().__init__(
            f"Journal entry {entry_id} reverses {reversal_of_id} and cannot be reversed"
        )


class AccountReferencedError(ConflictError):
    """Account cannot be deleted because journal lines or sub-accounts reference it."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Account {account_code} cannot be deleted: it is still referenced"
        )


class SystemAccountError(ConflictError):
    """System accounts cannot be deactivated or deleted."""

    code: str = "SYSTEM_ACCOUNT"

    def __init__(self, account_code: str, operation: str):
        self.account_code = account_code
        self.operation = operation
        super().__init__(f"Cannot {operation} system account {account_code}")


class ImmutabilityViolationError(ConflictError):
    """Attempted to modify a posted journal entry or its lines."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")
