"""
ORM-level immutability enforcement.

Posted journal entries are permanent.  Corrections happen through reversal
entries, never by editing history.  The services already refuse such edits;
these listeners catch the same mistakes when they come from any other code
path that goes through the ORM.

    session.flush()
         |
         v
    [before_flush]  --> account deletions checked for line references
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Protected entities:

Entity        | Rule
--------------|-----------------------------------------------------------
JournalEntry  | DRAFT editable.  POSTED may only become REVERSED (stamping
              | reversed_by_id/reversed_at).  REVERSED is frozen.
              | Only DRAFT rows may be deleted.
JournalLine   | Frozen once the parent entry leaves DRAFT.
Account       | code and account_type never change.  Referenced accounts
              | are never deleted.
FiscalPeriod  | Frozen once CLOSED (no reopen), never deleted when closed.

updated_at/updated_by are audit metadata and may always change.

Usage:
    register_immutability_listeners()    # once at startup; idempotent
    unregister_immutability_listeners()  # tests only
"""

from sqlalchemy import event, inspect, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from gl_kernel.exceptions import AccountReferencedError, ImmutabilityViolationError
from gl_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by"})

# Fields a POSTED entry may change while becoming REVERSED
_REVERSAL_STAMP_FIELDS = frozenset({"status", "reversed_by_id", "reversed_at"})


def _changed_fields(target) -> list[str]:
    insp = inspect(target)
    return [
        attr.key
        for attr in insp.mapper.column_attrs
        if attr.key not in _AUDIT_FIELDS and insp.attrs[attr.key].history.has_changes()
    ]


def _previous_status(target):
    """Status as it was before this flush."""
    history = get_history(target, "status")
    if history.deleted:
        return history.deleted[0]
    return target.status


def _block(entity_type: str, entity_id, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "reason": reason,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_journal_entry_immutability(mapper, connection, target):
    """
    Prevent updates to posted and reversed JournalEntry records.

    DRAFT -> POSTED is the posting itself and is allowed.  POSTED -> REVERSED
    is allowed when only the reversal stamp changes.
    """
    from gl_kernel.models.journal import JournalEntryStatus

    old_status = JournalEntryStatus(_previous_status(target))
    if old_status == JournalEntryStatus.DRAFT:
        return

    changed = _changed_fields(target)
    if not changed:
        return

    if (
        old_status == JournalEntryStatus.POSTED
        and target.status == JournalEntryStatus.REVERSED
        and set(changed) <= _REVERSAL_STAMP_FIELDS
    ):
        return

    _block(
        "JournalEntry",
        target.id,
        "UPDATE",
        f"Cannot modify field '{changed[0]}' on {old_status.value} journal entry",
    )


def _check_journal_entry_delete(mapper, connection, target):
    """Only draft entries may be deleted."""
    from gl_kernel.models.journal import JournalEntryStatus

    old_status = JournalEntryStatus(_previous_status(target))
    if old_status != JournalEntryStatus.DRAFT:
        _block(
            "JournalEntry",
            target.id,
            "DELETE",
            f"{old_status.value.capitalize()} journal entries cannot be deleted",
        )


def _parent_is_frozen(connection, target) -> bool:
    from gl_kernel.models.journal import JournalEntry, JournalEntryStatus

    entry = target.entry
    if entry is not None:
        status = _previous_status(entry)
    elif target.journal_entry_id is not None:
        status = connection.execute(
            select(JournalEntry.status).where(JournalEntry.id == target.journal_entry_id)
        ).scalar()
    else:
        return False
    if status is None:
        return False
    return JournalEntryStatus(status) != JournalEntryStatus.DRAFT


def _check_journal_line_immutability(mapper, connection, target):
    if _parent_is_frozen(connection, target) and _changed_fields(target):
        _block(
            "JournalLine",
            target.id,
            "UPDATE",
            "Journal lines cannot be modified after the entry is posted",
        )


def _check_journal_line_delete(mapper, connection, target):
    if _parent_is_frozen(connection, target):
        _block(
            "JournalLine",
            target.id,
            "DELETE",
            "Journal lines cannot be deleted after the entry is posted",
        )


def _check_account_structural_immutability(mapper, connection, target):
    """Account code and type are fixed for the account's lifetime."""
    for field in ("code", "account_type"):
        if get_history(target, field).deleted:
            _block(
                "Account",
                target.id,
                "UPDATE",
                f"Account field '{field}' cannot be changed",
            )


def _check_account_deletion_before_flush(session, flush_context, instances):
    """
    Refuse deletion of any account referenced by a journal line.

    Runs in before_flush so the deletion never enters the flush plan.
    """
    from gl_kernel.models.account import Account
    from gl_kernel.models.journal import JournalLine

    for obj in list(session.deleted):
        if not isinstance(obj, Account):
            continue

        with session.no_autoflush:
            referenced = session.execute(
                select(JournalLine.id).where(JournalLine.account_id == obj.id).limit(1)
            ).first()

        if referenced is not None:
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "Account",
                    "entity_id": str(obj.id),
                    "operation": "DELETE",
                    "reason": "account_has_journal_lines",
                },
            )
            raise AccountReferencedError(account_code=obj.code)


def _check_fiscal_period_immutability(mapper, connection, target):
    from gl_kernel.models.fiscal_period import PeriodStatus

    old_status = PeriodStatus(_previous_status(target))
    if old_status == PeriodStatus.CLOSED and _changed_fields(target):
        _block(
            "FiscalPeriod",
            target.id,
            "UPDATE",
            "Closed fiscal periods cannot be modified or reopened",
        )


def _check_fiscal_period_delete(mapper, connection, target):
    from gl_kernel.models.fiscal_period import PeriodStatus

    if PeriodStatus(_previous_status(target)) == PeriodStatus.CLOSED:
        _block(
            "FiscalPeriod",
            target.id,
            "DELETE",
            "Closed fiscal periods cannot be deleted",
        )


def _listeners():
    from gl_kernel.models.account import Account
    from gl_kernel.models.fiscal_period import FiscalPeriod
    from gl_kernel.models.journal import JournalEntry, JournalLine

    return [
        (Session, "before_flush", _check_account_deletion_before_flush),
        (JournalEntry, "before_update", _check_journal_entry_immutability),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalLine, "before_update", _check_journal_line_immutability),
        (JournalLine, "before_delete", _check_journal_line_delete),
        (Account, "before_update", _check_account_structural_immutability),
        (FiscalPeriod, "before_update", _check_fiscal_period_immutability),
        (FiscalPeriod, "before_delete", _check_fiscal_period_delete),
    ]


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Safe to call more than once; a listener already registered is skipped.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that need to violate the rules on purpose.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
