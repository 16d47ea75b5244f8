"""
Race tests for posting, reversal and period close.

These need real row locks, so they run only against PostgreSQL
(GL_KERNEL_DATABASE_URL).  Each worker goes through the GeneralLedger
facade, which opens its own session per call.

Expected behavior:
- A post racing a close either commits before the close or fails with
  ClosedPeriodError; nothing posts into the period after it closes.
- Of several concurrent reversals of one entry, exactly one wins.
- Concurrent posts receive distinct, gap-free entry numbers.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from threading import Barrier

import pytest

from gl_kernel import LineSpec
from gl_kernel.exceptions import (
    ClosedPeriodError,
    EntryAlreadyReversedError,
    PeriodAlreadyClosedError,
)
from gl_kernel.models.journal import JournalEntryStatus

pytestmark = pytest.mark.postgres

ACTOR = "race-actor"
ENTRY_DATE = date(2024, 6, 20)


def _lines(amount: str = "100.00"):
    return [LineSpec.debit("1000", amount), LineSpec.credit("4000", amount)]


class TestPostVersusClose:
    def test_close_and_posts_serialize(self, seeded_ledger):
        num_posts = 10
        drafts = [
            seeded_ledger.create_journal_entry(ENTRY_DATE, f"Race {i}", _lines(), created_by=ACTOR)
            for i in range(num_posts)
        ]
        period = seeded_ledger.get_period_for_date(ENTRY_DATE)
        barrier = Barrier(num_posts + 2, timeout=30)

        def post(entry_id):
            barrier.wait()
            try:
                return seeded_ledger.post_journal_entry(entry_id, ACTOR)
            except ClosedPeriodError:
                return None

        def close():
            barrier.wait()
            try:
                seeded_ledger.close_period(period.id, ACTOR)
                return "closed"
            except PeriodAlreadyClosedError:
                return "already_closed"

        with ThreadPoolExecutor(max_workers=num_posts + 2) as executor:
            post_futures = [executor.submit(post, d.id) for d in drafts]
            close_futures = [executor.submit(close) for _ in range(2)]
            posted = [f.result() for f in post_futures]
            closes = [f.result() for f in close_futures]

        assert sorted(closes) == ["already_closed", "closed"]

        assert seeded_ledger.get_period(period.id).is_closed
        succeeded = [entry for entry in posted if entry is not None]
        for entry in succeeded:
            assert seeded_ledger.get_entry(entry.id).status == JournalEntryStatus.POSTED

        rejected_ids = {d.id for d, entry in zip(drafts, posted) if entry is None}
        for entry_id in rejected_ids:
            assert seeded_ledger.get_entry(entry_id).status == JournalEntryStatus.DRAFT

        report = seeded_ledger.generate_trial_balance(date(2024, 6, 30))
        expected = Decimal("100.00") * len(succeeded)
        assert report.total_debits == report.total_credits == expected.quantize(Decimal("0.01"))


class TestConcurrentReversal:
    def test_exactly_one_reversal_wins(self, seeded_ledger):
        draft = seeded_ledger.create_journal_entry(ENTRY_DATE, "Original", _lines(), created_by=ACTOR)
        original = seeded_ledger.post_journal_entry(draft.id, ACTOR)
        workers = 5
        barrier = Barrier(workers, timeout=30)

        def reverse(i):
            barrier.wait()
            try:
                return seeded_ledger.reverse_journal_entry(original.id, f"Attempt {i}", ACTOR)
            except EntryAlreadyReversedError:
                return None

        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(reverse, range(workers)))

        winners = [r for r in results if r is not None]
        assert len(winners) == 1
        assert seeded_ledger.get_entry(original.id).reversed_by_id == winners[0].id

        report = seeded_ledger.generate_trial_balance(date(2024, 6, 30))
        assert report.line_for("1000").net_balance == Decimal("0.00")


class TestEntryNumberAllocation:
    def test_concurrent_posts_get_distinct_numbers(self, seeded_ledger):
        workers = 20
        drafts = [
            seeded_ledger.create_journal_entry(ENTRY_DATE, f"Entry {i}", _lines("1.00"), created_by=ACTOR)
            for i in range(workers)
        ]
        barrier = Barrier(workers, timeout=30)

        def post(entry_id):
            barrier.wait()
            return seeded_ledger.post_journal_entry(entry_id, ACTOR)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            posted = list(executor.map(post, [d.id for d in drafts]))

        assert sorted(entry.seq for entry in posted) == list(range(1, workers + 1))
        assert len({entry.entry_number for entry in posted}) == workers
