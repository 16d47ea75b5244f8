"""
ReversalService tests.

Tests cover:
- Happy path: mirrored lines, immediate posting, two-way linkage
- Error paths: draft, already reversed, reversal of a reversal, unknown,
  line on a deactivated account
- Reversal dating: default policy, explicit date, original-date policy
- Closed original period with an open reversal period
- Ledger effect: the pair nets to zero
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from gl_kernel.config import LedgerConfig, ReversalDatePolicy
from gl_kernel.domain.dtos import LineSpec
from gl_kernel.exceptions import (
    ClosedPeriodError,
    ConflictError,
    EntryAlreadyReversedError,
    EntryNotFoundError,
    EntryStatusError,
    InactiveAccountError,
    ReversalOfReversalError,
    ValidationError,
)
from gl_kernel.models.journal import JournalEntry, JournalEntryStatus
from gl_kernel.services.reversal_service import ReversalService

JUNE_10 = date(2024, 6, 10)


@pytest.fixture
def posted_entry(post_entry, standard_accounts, current_period):
    """Debit Cash 100.00 / credit Revenue 100.00 on June 10."""
    return post_entry(
        [LineSpec.debit("1000", "100.00", memo="till"), LineSpec.credit("4000", "100.00")],
        entry_date=JUNE_10,
        description="Cash sale",
    )


class TestReverse:
    def test_creates_mirrored_posted_entry(self, reversal_service, posted_entry, test_actor_id):
        reversal = reversal_service.reverse_journal_entry(posted_entry.id, "Keyed twice", test_actor_id)

        assert reversal.status == JournalEntryStatus.POSTED
        assert reversal.reversal_of_id == posted_entry.id
        assert reversal.is_reversal
        assert reversal.reversal_reason == "Keyed twice"
        assert reversal.entry_number == "JE-000002"
        assert reversal.description == f"Reversal of {posted_entry.entry_number}: Keyed twice"

        assert [(l.account_code, l.debit, l.credit, l.memo) for l in reversal.lines] == [
            ("1000", Decimal("0.00"), Decimal("100.00"), "till"),
            ("4000", Decimal("100.00"), Decimal("0.00"), None),
        ]

    def test_marks_original_reversed(self, session, reversal_service, posted_entry, test_actor_id):
        reversal = reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)

        original = session.get(JournalEntry, posted_entry.id)
        assert original.status == JournalEntryStatus.REVERSED
        assert original.reversed_by_id == reversal.id
        assert original.reversed_at is not None

    def test_original_lines_untouched(self, session, reversal_service, posted_entry, test_actor_id):
        reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        original = session.get(JournalEntry, posted_entry.id)
        assert [(l.debit_amount, l.credit_amount) for l in original.lines] == [(10000, 0), (0, 10000)]

    def test_default_date_is_today(self, reversal_service, posted_entry, test_actor_id, deterministic_clock):
        reversal = reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        assert reversal.entry_date == deterministic_clock.today()

    def test_explicit_date(self, reversal_service, posted_entry, test_actor_id):
        reversal = reversal_service.reverse_journal_entry(
            posted_entry.id, "Error", test_actor_id, reversal_date=date(2024, 6, 28),
        )
        assert reversal.entry_date == date(2024, 6, 28)

    def test_original_date_policy(self, session, posted_entry, test_actor_id, deterministic_clock):
        service = ReversalService(
            session,
            LedgerConfig(reversal_date_policy=ReversalDatePolicy.ORIGINAL_DATE),
            deterministic_clock,
        )
        reversal = service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        assert reversal.entry_date == JUNE_10

    def test_nets_to_zero(self, reversal_service, report_service, posted_entry, test_actor_id):
        reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        assert report_service.get_account_balance("1000", date(2024, 6, 30)).balance == Decimal("0.00")
        assert report_service.get_account_balance("4000", date(2024, 6, 30)).balance == Decimal("0.00")

    def test_reason_required(self, reversal_service, posted_entry, test_actor_id):
        with pytest.raises(ValidationError, match="reason"):
            reversal_service.reverse_journal_entry(posted_entry.id, "  ", test_actor_id)

    def test_logs_reversal(self, reversal_service, posted_entry, test_actor_id, captured_logs):
        reversal = reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        records = [r for r in captured_logs() if r["message"] == "entry_reversed"]
        assert records[0]["reversal_entry_number"] == reversal.entry_number
        assert records[0]["entry_id"] == str(posted_entry.id)


class TestReverseRejections:
    def test_second_reversal_is_conflict(self, reversal_service, posted_entry, test_actor_id):
        first = reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        with pytest.raises(EntryAlreadyReversedError) as exc_info:
            reversal_service.reverse_journal_entry(posted_entry.id, "Again", test_actor_id)
        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.reversed_by_id == str(first.id)

    def test_reversal_cannot_be_reversed(self, reversal_service, posted_entry, test_actor_id):
        reversal = reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        with pytest.raises(ReversalOfReversalError) as exc_info:
            reversal_service.reverse_journal_entry(reversal.id, "Undo the undo", test_actor_id)
        assert isinstance(exc_info.value, ConflictError)

    def test_draft_cannot_be_reversed(self, reversal_service, journal_service, standard_accounts, test_actor_id):
        draft = journal_service.create_journal_entry(
            JUNE_10,
            "Draft",
            [LineSpec.debit("1000", "1.00"), LineSpec.credit("4000", "1.00")],
            created_by=test_actor_id,
        )
        with pytest.raises(EntryStatusError):
            reversal_service.reverse_journal_entry(draft.id, "Error", test_actor_id)

    def test_unknown_entry(self, reversal_service, test_actor_id):
        with pytest.raises(EntryNotFoundError):
            reversal_service.reverse_journal_entry(uuid4(), "Error", test_actor_id)

    def test_reversal_date_in_closed_period(
        self, reversal_service, period_service, posted_entry, current_period, test_actor_id, session,
    ):
        period_service.close_period(current_period.id, test_actor_id)
        with pytest.raises(ClosedPeriodError):
            reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        assert session.get(JournalEntry, posted_entry.id).status == JournalEntryStatus.POSTED

    def test_inactive_account_blocks_reversal(
        self, session, reversal_service, account_service, posted_entry, standard_accounts, test_actor_id,
    ):
        account_service.deactivate_account(standard_accounts["4000"].id, test_actor_id)
        with pytest.raises(InactiveAccountError) as exc_info:
            reversal_service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
        assert exc_info.value.account_code == "4000"
        assert session.get(JournalEntry, posted_entry.id).status == JournalEntryStatus.POSTED


class TestClosedOriginalPeriod:
    def test_reversal_into_next_open_period(
        self, reversal_service, period_service, posted_entry, current_period, next_period, test_actor_id,
    ):
        period_service.close_period(current_period.id, test_actor_id)
        reversal = reversal_service.reverse_journal_entry(
            posted_entry.id, "Found in audit", test_actor_id, reversal_date=date(2024, 7, 2),
        )
        assert reversal.period_id == next_period.id
        assert reversal.entry_date == date(2024, 7, 2)

    def test_original_date_policy_fails_on_closed_period(
        self, session, period_service, posted_entry, current_period, next_period, test_actor_id, deterministic_clock,
    ):
        period_service.close_period(current_period.id, test_actor_id)
        service = ReversalService(
            session,
            LedgerConfig(reversal_date_policy="original_date"),
            deterministic_clock,
        )
        with pytest.raises(ClosedPeriodError):
            service.reverse_journal_entry(posted_entry.id, "Error", test_actor_id)
