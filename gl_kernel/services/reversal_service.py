"""
ReversalService -- journal entry reversals.

Responsibility:
    Validates reversal preconditions, creates and posts the mirrored
    reversing entry, and stamps the original REVERSED -- all in the
    caller's transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Consumes PeriodService and
    SequenceService.

Invariants enforced:
    - Only a POSTED original that is not itself a reversal may be reversed,
      and only once (row lock on the original plus the unique constraint on
      reversal_of_id).
    - The reversing entry mirrors every line (debit <-> credit, same account,
      same amount, same order) and is POSTED immediately with its own entry
      number from the sequence counter.
    - Every account on the original must still be active; an inactive
      account accepts no new lines, reversing ones included.
    - The reversing entry's date must fall in an OPEN period.  The original's
      own period may be closed; its lines are never touched.
    - Original and reversal are linked both ways (reversed_by_id,
      reversal_of_id) in the same flush sequence, so no reader sees one
      without the other after commit.

Failure modes:
    - EntryNotFoundError: unknown entry.
    - ReversalOfReversalError: the target is a reversing entry.
    - EntryAlreadyReversedError: the target was already reversed.
    - EntryStatusError: the target is still a draft.
    - ClosedPeriodError: no OPEN period covers the reversal date.
    - InactiveAccountError: a line of the original targets an account that
      has since been deactivated.
    - ValidationError: empty reason, bad reversal_date.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import select

from gl_kernel.config import ReversalDatePolicy
from gl_kernel.domain.dtos import PostedJournalEntry
from gl_kernel.exceptions import (
    EntryAlreadyReversedError,
    EntryNotFoundError,
    EntryStatusError,
    InactiveAccountError,
    ReversalOfReversalError,
    ValidationError,
)
from gl_kernel.logging_config import LogContext, get_logger
from gl_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine
from gl_kernel.services.base import BaseService
from gl_kernel.services.period_service import PeriodService
from gl_kernel.services.sequence_service import SequenceService

logger = get_logger("services.reversal")


class ReversalService(BaseService[JournalEntry]):
    """
    Reverses posted journal entries.

    Contract:
        ``reverse_journal_entry`` returns the new reversing entry.  The
        original can be re-read; it will be REVERSED with reversed_by_id
        pointing at the returned entry.

    Non-goals:
        - Does NOT handle partial (line-level) reversals.
        - Does NOT call ``session.commit()``.
    """

    def reverse_journal_entry(
        self,
        entry_id: UUID,
        reason: str,
        actor_id: str,
        reversal_date: date | None = None,
    ) -> PostedJournalEntry:
        """
        Reverse a POSTED entry.

        The reversal is dated ``reversal_date`` when given, otherwise by the
        configured policy: today (per the injected clock) for
        ``reversal_date``, the original entry date for ``original_date``.

        Postconditions:
            - New POSTED entry with mirrored lines and reversal_of_id set.
            - Original is REVERSED with reversed_by_id/reversed_at set.
        """
        if not isinstance(reason, str) or not reason.strip():
            raise ValidationError("A reversal reason is required")
        if reversal_date is not None and (
            not isinstance(reversal_date, date) or isinstance(reversal_date, datetime)
        ):
            raise ValidationError(f"reversal_date must be a date, got {reversal_date!r}")

        with LogContext.bind(entry_id=str(entry_id), actor_id=actor_id):
            original = self._load_and_validate(entry_id)
            for line in original.lines:
                if not line.account.is_active:
                    raise InactiveAccountError(line.account.code)
            effective_date = reversal_date or self._default_reversal_date(original)

            period = PeriodService(
                self.session, self.config, self._clock
            ).lock_open_period_for_date(effective_date)

            seq = SequenceService(self.session).next_value(SequenceService.JOURNAL_ENTRY)
            now = self._clock.now()
            reason = reason.strip()

            reversal = JournalEntry(
                entry_date=effective_date,
                description=f"Reversal of {original.entry_number}: {reason}",
                status=JournalEntryStatus.POSTED,
                seq=seq,
                entry_number=self.config.format_entry_number(seq),
                period_id=period.id,
                posted_at=now,
                posted_by=actor_id,
                created_by=actor_id,
                reversal_of_id=original.id,
                reversal_reason=reason,
                lines=[self._mirror(line) for line in original.lines],
            )
            self.session.add(reversal)
            # Reversal row must exist before the original can point at it
            self.session.flush()

            original.status = JournalEntryStatus.REVERSED
            original.reversed_by_id = reversal.id
            original.reversed_at = now
            self.session.flush()

            logger.info(
                "entry_reversed",
                extra={
                    "original_entry_number": original.entry_number,
                    "reversal_entry_id": str(reversal.id),
                    "reversal_entry_number": reversal.entry_number,
                    "reversal_date": str(effective_date),
                    "reason": reason,
                },
            )
            return PostedJournalEntry.from_model(reversal, self.places)

    def _default_reversal_date(self, original: JournalEntry) -> date:
        if self.config.reversal_date_policy == ReversalDatePolicy.ORIGINAL_DATE:
            return original.entry_date
        return self._clock.today()

    @staticmethod
    def _mirror(line: JournalLine) -> JournalLine:
        return JournalLine(
            account=line.account,
            account_id=line.account_id,
            debit_amount=line.credit_amount,
            credit_amount=line.debit_amount,
            memo=line.memo,
            line_order=line.line_order,
        )

    def _load_and_validate(self, entry_id: UUID) -> JournalEntry:
        """
        Load the original with a row lock and check it may be reversed.

        The lock serializes concurrent reversals of the same entry: the
        second caller sees REVERSED and fails cleanly.
        """
        original = self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .with_for_update(of=JournalEntry)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if original is None:
            raise EntryNotFoundError(str(entry_id))

        if original.reversal_of_id is not None:
            raise ReversalOfReversalError(str(original.id), str(original.reversal_of_id))

        if original.status == JournalEntryStatus.REVERSED:
            raise EntryAlreadyReversedError(
                str(original.id),
                str(original.reversed_by_id) if original.reversed_by_id else None,
            )

        if original.status != JournalEntryStatus.POSTED:
            raise EntryStatusError(
                str(original.id), original.status.value, JournalEntryStatus.POSTED.value
            )

        return original
