"""
Pure report transformation functions.

These functions turn per-account activity (integer minor units) into the
report models.  ZERO I/O. ZERO side effects.

- No database access
- No clock access (``metadata`` is built by the caller)
- Deterministic: same inputs always produce same outputs

All output amounts are Decimal in major units.  Totals are summed from the
quantized line figures, so report totals equal the sum of their lines.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from gl_kernel.db.types import from_minor_units
from gl_kernel.models.account import NORMAL_BALANCE_BY_TYPE, AccountType, NormalBalance
from gl_kernel.reporting.models import (
    BalanceSheet,
    IncomeStatement,
    ReportMetadata,
    StatementLine,
    StatementSection,
    TrialBalanceLine,
    TrialBalanceReport,
)
from gl_kernel.selectors.ledger_selector import AccountActivity

CURRENT_EARNINGS_CODE = "CURRENT-EARNINGS"
CURRENT_EARNINGS_NAME = "Current earnings"


# =========================================================================
# Helpers
# =========================================================================


def compute_natural_balance(
    debit_total: int | Decimal,
    credit_total: int | Decimal,
    normal_balance: NormalBalance,
) -> int | Decimal:
    """
    Compute balance adjusted for normal balance side.

    DEBIT-normal (ASSET, EXPENSE): balance = debit_total - credit_total
    CREDIT-normal (LIABILITY, EQUITY, REVENUE): balance = credit_total - debit_total

    Result is positive when the account has its expected normal direction.
    """
    if normal_balance == NormalBalance.DEBIT:
        return debit_total - credit_total
    return credit_total - debit_total


def _natural_amount(row: AccountActivity, places: int) -> Decimal:
    natural = compute_natural_balance(
        row.debit_total, row.credit_total, NORMAL_BALANCE_BY_TYPE[row.account_type],
    )
    return from_minor_units(natural, places)


def _make_section(
    label: str,
    rows: Iterable[AccountActivity],
    places: int,
) -> StatementSection:
    """Create a statement section of natural balances, ordered by code."""
    lines = tuple(
        StatementLine(
            account_id=row.account_id,
            account_code=row.account_code,
            account_name=row.account_name,
            amount=_natural_amount(row, places),
        )
        for row in sorted(rows, key=lambda r: r.account_code)
    )
    return StatementSection(
        label=label,
        lines=lines,
        total=sum((line.amount for line in lines), from_minor_units(0, places)),
    )


def _of_type(rows: Iterable[AccountActivity], account_type: AccountType) -> list[AccountActivity]:
    return [row for row in rows if row.account_type == account_type]


def compute_net_income(rows: Iterable[AccountActivity], places: int) -> Decimal:
    """
    Net income = sum(REVENUE natural balances) - sum(EXPENSE natural balances).

    Only REVENUE and EXPENSE accounts are considered.
    """
    revenue = expense = from_minor_units(0, places)
    for row in rows:
        if row.account_type == AccountType.REVENUE:
            revenue += _natural_amount(row, places)
        elif row.account_type == AccountType.EXPENSE:
            expense += _natural_amount(row, places)
    return revenue - expense


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def build_trial_balance_line(row: AccountActivity, places: int) -> TrialBalanceLine:
    """
    Place an account's balance in its normal-balance column.

    A debit-normal account with a net credit balance reports a negative
    debit figure, and vice versa; the other column is always zero.
    """
    normal = NORMAL_BALANCE_BY_TYPE[row.account_type]
    natural = from_minor_units(
        compute_natural_balance(row.debit_total, row.credit_total, normal), places,
    )
    zero = from_minor_units(0, places)
    return TrialBalanceLine(
        account_id=row.account_id,
        account_code=row.account_code,
        account_name=row.account_name,
        account_type=row.account_type,
        normal_balance=normal,
        debit_total=from_minor_units(row.debit_total, places),
        credit_total=from_minor_units(row.credit_total, places),
        debit_balance=natural if normal == NormalBalance.DEBIT else zero,
        credit_balance=natural if normal == NormalBalance.CREDIT else zero,
    )


def build_trial_balance(
    rows: list[AccountActivity],
    places: int,
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    """
    Build a trial balance from per-account activity.

    Every account with activity appears, including accounts whose activity
    nets to zero (e.g. after a reversal).  Debit-column total equals
    credit-column total whenever every counted entry is balanced.
    """
    lines = tuple(
        build_trial_balance_line(row, places)
        for row in sorted(rows, key=lambda r: r.account_code)
    )
    total_debits = sum((line.debit_balance for line in lines), from_minor_units(0, places))
    total_credits = sum((line.credit_balance for line in lines), from_minor_units(0, places))

    return TrialBalanceReport(
        metadata=metadata,
        lines=lines,
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=(total_debits == total_credits),
    )


# =========================================================================
# 2. INCOME STATEMENT
# =========================================================================


def build_income_statement(
    rows: list[AccountActivity],
    places: int,
    metadata: ReportMetadata,
) -> IncomeStatement:
    """
    Build a single-step income statement.

        Total Revenue - Total Expenses = Net Income

    ASSET, LIABILITY and EQUITY rows are ignored.
    """
    revenue = _make_section("Revenue", _of_type(rows, AccountType.REVENUE), places)
    expenses = _make_section("Expenses", _of_type(rows, AccountType.EXPENSE), places)

    return IncomeStatement(
        metadata=metadata,
        revenue=revenue,
        expenses=expenses,
        total_revenue=revenue.total,
        total_expenses=expenses.total,
        net_income=revenue.total - expenses.total,
    )


# =========================================================================
# 3. BALANCE SHEET
# =========================================================================


def build_balance_sheet(
    rows: list[AccountActivity],
    places: int,
    metadata: ReportMetadata,
) -> BalanceSheet:
    """
    Build an inception-to-date balance sheet.

    1. ASSET, LIABILITY and EQUITY rows form their sections
    2. Cumulative net income is appended to equity as "Current earnings"
    3. Verify A = L + E (reported, never forced)
    """
    assets = _make_section("Assets", _of_type(rows, AccountType.ASSET), places)
    liabilities = _make_section("Liabilities", _of_type(rows, AccountType.LIABILITY), places)
    equity_accounts = _make_section("Equity", _of_type(rows, AccountType.EQUITY), places)

    current_earnings = compute_net_income(rows, places)
    equity_lines = equity_accounts.lines
    if current_earnings != 0:
        equity_lines = equity_lines + (
            StatementLine(
                account_id=None,
                account_code=CURRENT_EARNINGS_CODE,
                account_name=CURRENT_EARNINGS_NAME,
                amount=current_earnings,
            ),
        )
    equity = StatementSection(
        label="Equity",
        lines=equity_lines,
        total=equity_accounts.total + current_earnings,
    )

    total_l_and_e = liabilities.total + equity.total

    return BalanceSheet(
        metadata=metadata,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        current_earnings=current_earnings,
        total_assets=assets.total,
        total_liabilities=liabilities.total,
        total_equity=equity.total,
        total_liabilities_and_equity=total_l_and_e,
        is_balanced=(assets.total == total_l_and_e),
    )
