"""
Report Models (``gl_kernel.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects representing report outputs: trial balance,
income statement and balance sheet.

Architecture position
---------------------
**Kernel > Reporting** -- pure data definitions with ZERO I/O.  Built by
``gl_kernel.reporting.statements`` and returned by ``ReportService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` in major units -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from gl_kernel.models.account import AccountType, NormalBalance


class ReportType(str, Enum):
    """Types of ledger reports."""

    TRIAL_BALANCE = "trial_balance"
    INCOME_STATEMENT = "income_statement"
    BALANCE_SHEET = "balance_sheet"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    currency: str
    as_of_date: date
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLine:
    """
    One account in the trial balance.

    The account's figure sits in its normal-balance column; the other column
    is zero.  A balance opposite to the normal side shows as a negative
    figure in the normal column.
    """

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    normal_balance: NormalBalance
    debit_total: Decimal  # raw sum of debit lines
    credit_total: Decimal  # raw sum of credit lines
    debit_balance: Decimal
    credit_balance: Decimal

    @property
    def net_balance(self) -> Decimal:
        """Balance on the normal side (debit_balance or credit_balance)."""
        return self.debit_balance + self.credit_balance


@dataclass(frozen=True)
class TrialBalanceReport:
    """Complete trial balance."""

    metadata: ReportMetadata
    lines: tuple[TrialBalanceLine, ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool  # total_debits == total_credits

    def line_for(self, account_code: str) -> TrialBalanceLine | None:
        for line in self.lines:
            if line.account_code == account_code:
                return line
        return None


# =========================================================================
# Income Statement and Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class StatementLine:
    """An account's natural balance within a statement section."""

    account_id: UUID | None
    account_code: str
    account_name: str
    amount: Decimal


@dataclass(frozen=True)
class StatementSection:
    """A labelled group of statement lines with its total."""

    label: str
    lines: tuple[StatementLine, ...]
    total: Decimal

    def line_for(self, account_code: str) -> StatementLine | None:
        for line in self.lines:
            if line.account_code == account_code:
                return line
        return None


@dataclass(frozen=True)
class IncomeStatement:
    """
    Single-step income statement for a date window.

    Net Income = Total Revenue - Total Expenses
    """

    metadata: ReportMetadata
    revenue: StatementSection
    expenses: StatementSection
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    """
    Inception-to-date balance sheet.

    ``equity`` includes a computed "Current earnings" line carrying the
    cumulative revenue less expenses that has not been closed into an
    equity account.
    """

    metadata: ReportMetadata
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    current_earnings: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool  # total_assets == total_liabilities_and_equity


# =========================================================================
# Account Balance
# =========================================================================


@dataclass(frozen=True)
class AccountBalance:
    """A single account's inception-to-date balance."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    normal_balance: NormalBalance
    as_of_date: date
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal  # natural balance, positive on the normal side
