"""
Tests for JournalSelector and LedgerSelector.

Drafts never count toward balances; posted and reversed entries both do,
since a reversal cancels through its own mirrored lines.
"""

from datetime import date

from gl_kernel.domain.dtos import DraftJournalEntry, LineSpec, PostedJournalEntry
from gl_kernel.models.account import AccountType
from gl_kernel.models.journal import JournalEntryStatus
from gl_kernel.selectors import JournalSelector, LedgerSelector


def _sale(amount: str):
    return [LineSpec.debit("1000", amount), LineSpec.credit("4000", amount)]


class TestJournalSelector:
    def test_get_entry_returns_matching_dto(
        self, session, journal_service, post_entry, standard_accounts, current_period, test_actor_id
    ):
        posted = post_entry(_sale("10.00"))
        draft = journal_service.create_journal_entry(
            date(2024, 6, 10), "Pending", _sale("5.00"), created_by=test_actor_id
        )

        selector = JournalSelector(session)
        assert isinstance(selector.get_entry(posted.id), PostedJournalEntry)
        assert isinstance(selector.get_entry(draft.id), DraftJournalEntry)

    def test_get_entry_unknown_is_none(self, session):
        from uuid import uuid4

        assert JournalSelector(session).get_entry(uuid4()) is None

    def test_get_entry_by_number(self, session, post_entry, standard_accounts, current_period):
        posted = post_entry(_sale("10.00"))
        found = JournalSelector(session).get_entry_by_number(posted.entry_number)
        assert found.id == posted.id
        assert JournalSelector(session).get_entry_by_number("JE-999999") is None

    def test_date_range_ordering(
        self, session, journal_service, post_entry, standard_accounts, current_period, test_actor_id
    ):
        draft = journal_service.create_journal_entry(
            date(2024, 6, 10), "Draft on the 10th", _sale("1.00"), created_by=test_actor_id
        )
        later = post_entry(_sale("2.00"), entry_date=date(2024, 6, 20))
        first = post_entry(_sale("3.00"), entry_date=date(2024, 6, 10))
        second = post_entry(_sale("4.00"), entry_date=date(2024, 6, 10))

        entries = JournalSelector(session).list_by_date_range(date(2024, 6, 1), date(2024, 6, 30))

        assert [e.id for e in entries] == [first.id, second.id, draft.id, later.id]

    def test_date_range_bounds_inclusive(self, session, post_entry, standard_accounts, current_period):
        edge_start = post_entry(_sale("1.00"), entry_date=date(2024, 6, 1))
        edge_end = post_entry(_sale("1.00"), entry_date=date(2024, 6, 30))
        post_entry(_sale("1.00"), entry_date=date(2024, 6, 15))

        ids = {e.id for e in JournalSelector(session).list_by_date_range(date(2024, 6, 1), date(2024, 6, 14))}
        assert edge_start.id in ids
        assert edge_end.id not in ids

        ids = {e.id for e in JournalSelector(session).list_by_date_range(date(2024, 6, 30), date(2024, 6, 30))}
        assert ids == {edge_end.id}

    def test_status_filter_and_count(
        self, session, journal_service, post_entry, standard_accounts, current_period, test_actor_id
    ):
        post_entry(_sale("1.00"))
        journal_service.create_journal_entry(
            date(2024, 6, 12), "Draft", _sale("1.00"), created_by=test_actor_id
        )
        selector = JournalSelector(session)

        posted_only = selector.list_by_date_range(
            date(2024, 6, 1), date(2024, 6, 30), statuses=(JournalEntryStatus.POSTED,)
        )
        assert [e.status for e in posted_only] == [JournalEntryStatus.POSTED]
        assert selector.count_entries() == 2
        assert selector.count_entries(JournalEntryStatus.DRAFT) == 1
        assert selector.count_entries(JournalEntryStatus.REVERSED) == 0


class TestLedgerSelector:
    def test_drafts_excluded(
        self, session, journal_service, post_entry, standard_accounts, current_period, test_actor_id
    ):
        post_entry(_sale("100.00"))
        journal_service.create_journal_entry(
            date(2024, 6, 15), "Not yet", _sale("999.00"), created_by=test_actor_id
        )

        rows = {r.account_code: r for r in LedgerSelector(session).account_activity()}
        assert rows["1000"].debit_total == 10000
        assert rows["1000"].line_count == 1
        assert rows["4000"].credit_total == 10000

    def test_reversed_entries_net_to_zero(
        self, session, reversal_service, post_entry, standard_accounts, current_period, test_actor_id
    ):
        posted = post_entry(_sale("100.00"))
        reversal_service.reverse_journal_entry(posted.id, "Duplicate", test_actor_id)

        rows = {r.account_code: r for r in LedgerSelector(session).account_activity()}
        assert rows["1000"].debit_total == 10000
        assert rows["1000"].credit_total == 10000
        assert rows["1000"].balance == 0
        assert rows["1000"].line_count == 2

    def test_window_and_type_filters(self, session, post_entry, standard_accounts, current_period):
        post_entry(_sale("10.00"), entry_date=date(2024, 6, 5))
        post_entry(_sale("20.00"), entry_date=date(2024, 6, 25))
        selector = LedgerSelector(session)

        early = selector.account_activity(as_of_date=date(2024, 6, 10))
        assert {r.account_code: r.balance for r in early} == {"1000": 1000, "4000": -1000}

        late_revenue = selector.account_activity(
            start_date=date(2024, 6, 10), account_types=(AccountType.REVENUE,)
        )
        assert [(r.account_code, r.credit_total) for r in late_revenue] == [("4000", 2000)]

    def test_accounts_without_lines_omitted(self, session, post_entry, standard_accounts, current_period):
        post_entry(_sale("10.00"))
        codes = [r.account_code for r in LedgerSelector(session).account_activity()]
        assert codes == ["1000", "4000"]

    def test_account_balance(self, session, post_entry, standard_accounts, current_period):
        post_entry(_sale("10.00"))
        selector = LedgerSelector(session)
        assert selector.account_balance(standard_accounts["1000"].id).balance == 1000
        assert selector.account_balance(standard_accounts["2000"].id) is None

    def test_ledger_totals_equal(self, session, post_entry, standard_accounts, current_period):
        post_entry(_sale("10.00"))
        post_entry([LineSpec.debit("5000", "7.50"), LineSpec.credit("1000", "7.50")])
        assert LedgerSelector(session).total_debits_credits() == (1750, 1750)

    def test_empty_ledger(self, session):
        assert LedgerSelector(session).account_activity() == []
        assert LedgerSelector(session).total_debits_credits() == (0, 0)
