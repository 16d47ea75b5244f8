"""
Module: gl_kernel.selectors.ledger_selector
Responsibility: Per-account debit/credit aggregation over ledger lines -- the
    raw material of every report and balance query.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Only lines of POSTED and REVERSED entries count.  A reversed original
      stays in history; its reversing entry is POSTED and counts too, so the
      pair nets to zero.  DRAFT lines never count.
    - Totals are integer minor units.  Conversion to Decimal happens in the
      reporting layer.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from gl_kernel.models.account import Account, AccountType
from gl_kernel.models.journal import LEDGER_STATUSES, JournalEntry, JournalLine
from gl_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class AccountActivity:
    """Debit and credit totals for one account over some window."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debit_total: int
    credit_total: int
    line_count: int

    @property
    def balance(self) -> int:
        """Net balance, debits minus credits."""
        return self.debit_total - self.credit_total


class LedgerSelector(BaseSelector[JournalLine]):
    """
    Selector for ledger aggregation.

    Contract:
        Filters on entry_date: ``as_of_date`` is an inclusive upper bound,
        ``start_date`` an inclusive lower bound.  Results are ordered by
        account code and contain only accounts with at least one counted line.
    """

    def _filtered(self, query, as_of_date: date | None, start_date: date | None):
        query = query.where(JournalEntry.status.in_(LEDGER_STATUSES))
        if as_of_date is not None:
            query = query.where(JournalEntry.entry_date <= as_of_date)
        if start_date is not None:
            query = query.where(JournalEntry.entry_date >= start_date)
        return query

    def account_activity(
        self,
        as_of_date: date | None = None,
        start_date: date | None = None,
        account_types: tuple[AccountType, ...] | None = None,
        account_id: UUID | None = None,
    ) -> list[AccountActivity]:
        """
        Sum debits and credits per account.

        Args:
            as_of_date: Count lines dated on or before this date.
            start_date: Count lines dated on or after this date.
            account_types: Restrict to these account types.
            account_id: Restrict to one account.
        """
        debit_sum = func.coalesce(func.sum(JournalLine.debit_amount), 0).label("debit_total")
        credit_sum = func.coalesce(func.sum(JournalLine.credit_amount), 0).label("credit_total")
        line_count = func.count(JournalLine.id).label("line_count")

        query = (
            select(
                Account.id,
                Account.code,
                Account.name,
                Account.account_type,
                debit_sum,
                credit_sum,
                line_count,
            )
            .select_from(JournalLine)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .join(Account, JournalLine.account_id == Account.id)
            .group_by(Account.id, Account.code, Account.name, Account.account_type)
            .order_by(Account.code)
        )
        query = self._filtered(query, as_of_date, start_date)

        if account_types:
            query = query.where(Account.account_type.in_(account_types))
        if account_id is not None:
            query = query.where(Account.id == account_id)

        return [
            AccountActivity(
                account_id=row.id,
                account_code=row.code,
                account_name=row.name,
                account_type=AccountType(row.account_type),
                debit_total=int(row.debit_total),
                credit_total=int(row.credit_total),
                line_count=row.line_count,
            )
            for row in self.session.execute(query).all()
        ]

    def account_balance(
        self,
        account_id: UUID,
        as_of_date: date | None = None,
    ) -> AccountActivity | None:
        """Activity for one account, or None when it has no counted lines."""
        rows = self.account_activity(as_of_date=as_of_date, account_id=account_id)
        return rows[0] if rows else None

    def total_debits_credits(self, as_of_date: date | None = None) -> tuple[int, int]:
        """Ledger-wide totals; equal whenever every entry is balanced."""
        query = select(
            func.coalesce(func.sum(JournalLine.debit_amount), 0),
            func.coalesce(func.sum(JournalLine.credit_amount), 0),
        ).join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
        query = self._filtered(query, as_of_date, None)
        debits, credits = self.session.execute(query).one()
        return int(debits), int(credits)
