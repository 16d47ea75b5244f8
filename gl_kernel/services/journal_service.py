"""
JournalService -- draft journal entries and posting.

Responsibility:
    Creates, edits and discards DRAFT entries, and posts them.  Posting is
    the one step that makes an entry's lines count toward balances.

Architecture position:
    Kernel > Services -- imperative shell.  Pure checks live in
    domain/validation.py; this service adds the database-backed checks
    (accounts exist and are active, period is open) and the row locks.

Invariants enforced:
    - Every persisted entry has >= 2 lines, each exactly one-sided, with
      sum(debit) == sum(credit) in integer minor units.
    - Posting re-validates the balance and account state from the stored
      lines, under a row lock on the entry, so a concurrent edit or a
      second post cannot slip through.
    - Posting locks the covering period row and fails if it is not OPEN.
    - The entry number is allocated at posting from the locked sequence
      counter, so abandoned drafts leave no gaps.

Lock order (all writers): entry row -> period row -> sequence row.

Failure modes:
    - TooFewLinesError, InvalidLineError, UnbalancedEntryError,
      InactiveAccountError, ValidationError (all ValidationError).
    - EntryNotFoundError.
    - EntryStatusError: editing, discarding or posting a non-draft.
    - ClosedPeriodError: entry_date not inside an OPEN period.
"""

from datetime import date, datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import select

from gl_kernel.domain.dtos import DraftJournalEntry, LineSpec, PostedJournalEntry
from gl_kernel.domain.validation import (
    MIN_LINES,
    ValidatedLine,
    check_balanced,
    check_lines_balanced,
    validate_lines,
)
from gl_kernel.exceptions import (
    ClosedPeriodError,
    EntryNotFoundError,
    EntryStatusError,
    InactiveAccountError,
    InvalidLineError,
    TooFewLinesError,
    ValidationError,
)
from gl_kernel.logging_config import LogContext, get_logger
from gl_kernel.models.account import Account
from gl_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine
from gl_kernel.services.account_service import AccountService
from gl_kernel.services.base import BaseService
from gl_kernel.services.period_service import PeriodService
from gl_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal")


def _check_entry_date(entry_date) -> None:
    if not isinstance(entry_date, date) or isinstance(entry_date, datetime):
        raise ValidationError(f"entry_date must be a date, got {entry_date!r}")


def _check_description(description) -> None:
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("Journal entry description is required")


class JournalService(BaseService[JournalEntry]):
    """
    Service for the draft and posting stages of the entry lifecycle.

    Contract:
        Draft paths accept and return DraftJournalEntry; posting returns
        PostedJournalEntry.  Invalid input never reaches the session: all
        checks run before the first ``session.add``.

    Non-goals:
        - Does NOT reverse entries (ReversalService).
        - Does NOT call ``session.commit()``.
    """

    def _periods(self) -> PeriodService:
        return PeriodService(self.session, self.config, self._clock)

    # -------------------------------------------------------------------------
    # Line preparation
    # -------------------------------------------------------------------------

    def _prepare_lines(self, lines: Sequence[LineSpec]) -> list[JournalLine]:
        """
        Validate caller lines and build unsaved JournalLine rows.

        Order of checks: count, per-line shape, account existence and
        activity (in line order), balance.
        """
        validated = validate_lines(lines, self.places)
        accounts = AccountService(self.session, self.config).resolve_codes(
            [line.account_code for line in validated]
        )

        for line in validated:
            account = accounts.get(line.account_code)
            if account is None:
                raise InvalidLineError(
                    line.line_order + 1, f"unknown account code {line.account_code!r}"
                )
            if not account.is_active:
                raise InactiveAccountError(account.code)

        check_lines_balanced(validated, self.places)
        return [self._line_row(line, accounts[line.account_code]) for line in validated]

    @staticmethod
    def _line_row(line: ValidatedLine, account: Account) -> JournalLine:
        return JournalLine(
            account=account,
            account_id=account.id,
            debit_amount=line.debit_amount,
            credit_amount=line.credit_amount,
            memo=line.memo,
            line_order=line.line_order,
        )

    # -------------------------------------------------------------------------
    # Drafts
    # -------------------------------------------------------------------------

    def create_journal_entry(
        self,
        entry_date: date,
        description: str,
        lines: Sequence[LineSpec],
        created_by: str,
    ) -> DraftJournalEntry:
        """
        Create a DRAFT entry.  All-or-nothing: an invalid entry is never added.

        The period-open check is deferred to posting.

        Raises:
            ValidationError subclasses describing the first violation.
        """
        _check_entry_date(entry_date)
        _check_description(description)
        line_rows = self._prepare_lines(lines)

        entry = JournalEntry(
            entry_date=entry_date,
            description=description.strip(),
            status=JournalEntryStatus.DRAFT,
            created_by=created_by,
            lines=line_rows,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "entry_drafted",
            extra={
                "entry_id": str(entry.id),
                "entry_date": str(entry_date),
                "line_count": len(line_rows),
                "actor_id": created_by,
            },
        )
        return DraftJournalEntry.from_model(entry, self.places)

    def update_draft_entry(
        self,
        entry_id: UUID,
        actor_id: str,
        entry_date: date | None = None,
        description: str | None = None,
        lines: Sequence[LineSpec] | None = None,
    ) -> DraftJournalEntry:
        """
        Edit a DRAFT entry.  Omitted arguments keep their current values.

        Replacement lines are validated exactly as at creation.

        Raises:
            EntryNotFoundError, EntryStatusError, ValidationError subclasses.
        """
        entry = self._get_draft_for_update(entry_id)

        if entry_date is not None:
            _check_entry_date(entry_date)
        if description is not None:
            _check_description(description)
        new_lines = self._prepare_lines(lines) if lines is not None else None

        if entry_date is not None:
            entry.entry_date = entry_date
        if description is not None:
            entry.description = description.strip()
        if new_lines is not None:
            entry.lines.clear()
            entry.lines.extend(new_lines)
        entry.updated_by = actor_id
        self.session.flush()

        logger.info(
            "entry_draft_updated",
            extra={"entry_id": str(entry.id), "actor_id": actor_id},
        )
        return DraftJournalEntry.from_model(entry, self.places)

    def discard_draft_entry(self, entry_id: UUID, actor_id: str) -> None:
        """
        Delete a DRAFT entry and its lines.

        Raises:
            EntryNotFoundError, EntryStatusError.
        """
        entry = self._get_draft_for_update(entry_id)
        self.session.delete(entry)
        self.session.flush()

        logger.info(
            "entry_draft_discarded",
            extra={"entry_id": str(entry_id), "actor_id": actor_id},
        )

    # -------------------------------------------------------------------------
    # Posting
    # -------------------------------------------------------------------------

    def post_journal_entry(self, entry_id: UUID, posted_by: str) -> PostedJournalEntry:
        """
        Transition DRAFT -> POSTED.

        Preconditions:
            - Entry exists and is DRAFT at the moment its row lock is taken.
        Postconditions:
            - status POSTED, entry_number/seq/posted_at/posted_by/period_id set.
            - Nothing is visible to readers until the caller commits.

        Raises:
            EntryNotFoundError: unknown entry.
            EntryStatusError: entry is not a draft (already posted, reversed).
            TooFewLinesError, UnbalancedEntryError, InactiveAccountError:
                stored lines no longer pass validation.
            ClosedPeriodError: entry_date is not inside an OPEN period.
        """
        with LogContext.bind(entry_id=str(entry_id), actor_id=posted_by):
            entry = self._get_for_update(entry_id)
            if entry.status != JournalEntryStatus.DRAFT:
                raise EntryStatusError(
                    str(entry.id), entry.status.value, JournalEntryStatus.DRAFT.value
                )

            self._revalidate(entry)

            try:
                period = self._periods().lock_open_period_for_date(entry.entry_date)
            except ClosedPeriodError as exc:
                logger.warning(
                    "entry_post_rejected",
                    extra={
                        "entry_date": str(entry.entry_date),
                        "error_code": exc.code,
                        "period_name": exc.period_name,
                    },
                )
                raise

            seq = SequenceService(self.session).next_value(SequenceService.JOURNAL_ENTRY)

            entry.seq = seq
            entry.entry_number = self.config.format_entry_number(seq)
            entry.status = JournalEntryStatus.POSTED
            entry.posted_at = self._clock.now()
            entry.posted_by = posted_by
            entry.period_id = period.id
            entry.updated_by = posted_by
            self.session.flush()

            logger.info(
                "entry_posted",
                extra={
                    "entry_number": entry.entry_number,
                    "seq": seq,
                    "entry_date": str(entry.entry_date),
                    "period_id": str(period.id),
                },
            )
            return PostedJournalEntry.from_model(entry, self.places)

    def _revalidate(self, entry: JournalEntry) -> None:
        """Check the stored lines again, at the moment of posting."""
        if len(entry.lines) < MIN_LINES:
            raise TooFewLinesError(len(entry.lines))
        for line in entry.lines:
            if not line.account.is_active:
                raise InactiveAccountError(line.account.code)
        check_balanced(entry.total_debits, entry.total_credits, self.places)

    # -------------------------------------------------------------------------
    # Internal lookups
    # -------------------------------------------------------------------------

    def _get_for_update(self, entry_id: UUID) -> JournalEntry:
        entry = self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .with_for_update(of=JournalEntry)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def _get_draft_for_update(self, entry_id: UUID) -> JournalEntry:
        entry = self._get_for_update(entry_id)
        if entry.status != JournalEntryStatus.DRAFT:
            raise EntryStatusError(
                str(entry.id), entry.status.value, JournalEntryStatus.DRAFT.value
            )
        return entry
