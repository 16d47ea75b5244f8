"""
Tests for the pure report builders in gl_kernel/reporting/statements.py.

No database: per-account activity is built by hand, or generated by
Hypothesis from random balanced entries.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from uuid import NAMESPACE_URL, uuid5

from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from gl_kernel.models.account import AccountType, NormalBalance
from gl_kernel.reporting.models import ReportMetadata, ReportType
from gl_kernel.reporting.statements import (
    CURRENT_EARNINGS_CODE,
    build_balance_sheet,
    build_income_statement,
    build_trial_balance,
    compute_natural_balance,
    compute_net_income,
)
from gl_kernel.selectors.ledger_selector import AccountActivity

AS_OF = date(2024, 6, 30)

CHART = {
    "1000": ("Cash", AccountType.ASSET),
    "1200": ("Accounts Receivable", AccountType.ASSET),
    "1500": ("Accumulated Depreciation", AccountType.ASSET),
    "2000": ("Accounts Payable", AccountType.LIABILITY),
    "3000": ("Owner Capital", AccountType.EQUITY),
    "4000": ("Revenue", AccountType.REVENUE),
    "5000": ("Operating Expense", AccountType.EXPENSE),
}


def _metadata(report_type=ReportType.TRIAL_BALANCE) -> ReportMetadata:
    return ReportMetadata(
        report_type=report_type,
        currency="USD",
        as_of_date=AS_OF,
        generated_at="2024-06-30T12:00:00+00:00",
    )


def _row(code: str, debit: int, credit: int, lines: int = 1) -> AccountActivity:
    name, account_type = CHART[code]
    return AccountActivity(
        account_id=uuid5(NAMESPACE_URL, code),
        account_code=code,
        account_name=name,
        account_type=account_type,
        debit_total=debit,
        credit_total=credit,
        line_count=lines,
    )


@composite
def balanced_ledgers(draw):
    """Aggregate a random list of balanced two-line entries per account."""
    codes = sorted(CHART)
    totals = defaultdict(lambda: [0, 0])
    for _ in range(draw(st.integers(min_value=1, max_value=15))):
        debit_code = draw(st.sampled_from(codes))
        credit_code = draw(st.sampled_from(codes))
        amount = draw(st.integers(min_value=1, max_value=10**9))
        totals[debit_code][0] += amount
        totals[credit_code][1] += amount
    return [_row(code, debit, credit) for code, (debit, credit) in totals.items()]


class TestNaturalBalance:
    def test_debit_normal(self):
        assert compute_natural_balance(500, 200, NormalBalance.DEBIT) == 300

    def test_credit_normal(self):
        assert compute_natural_balance(500, 200, NormalBalance.CREDIT) == -300

    def test_net_income_ignores_balance_sheet_accounts(self):
        rows = [_row("1000", 10000, 0), _row("4000", 0, 10000), _row("5000", 2500, 0)]
        assert compute_net_income(rows, 2) == Decimal("75.00")


class TestTrialBalance:
    def test_normal_column_placement(self):
        rows = [_row("1000", 10000, 0), _row("4000", 0, 10000)]
        report = build_trial_balance(rows, 2, _metadata())

        cash = report.line_for("1000")
        assert (cash.debit_balance, cash.credit_balance) == (Decimal("100.00"), Decimal("0.00"))
        revenue = report.line_for("4000")
        assert (revenue.debit_balance, revenue.credit_balance) == (Decimal("0.00"), Decimal("100.00"))
        assert report.total_debits == report.total_credits == Decimal("100.00")
        assert report.is_balanced

    def test_contra_balance_negative_in_normal_column(self):
        rows = [_row("5000", 3000, 0), _row("1500", 0, 3000)]
        report = build_trial_balance(rows, 2, _metadata())

        contra = report.line_for("1500")
        assert contra.debit_balance == Decimal("-30.00")
        assert contra.credit_balance == Decimal("0.00")
        assert contra.net_balance == Decimal("-30.00")
        assert report.total_debits == report.total_credits == Decimal("0.00")

    def test_zero_net_account_still_listed(self):
        rows = [_row("1000", 10000, 10000, lines=2), _row("4000", 10000, 10000, lines=2)]
        report = build_trial_balance(rows, 2, _metadata())

        assert [line.account_code for line in report.lines] == ["1000", "4000"]
        assert report.line_for("1000").debit_total == Decimal("100.00")
        assert report.line_for("1000").net_balance == Decimal("0.00")

    def test_lines_sorted_by_code(self):
        rows = [_row("4000", 0, 100), _row("1000", 100, 0)]
        report = build_trial_balance(rows, 2, _metadata())
        assert [line.account_code for line in report.lines] == ["1000", "4000"]

    def test_empty(self):
        report = build_trial_balance([], 2, _metadata())
        assert report.lines == ()
        assert report.total_debits == Decimal("0.00")
        assert report.is_balanced

    def test_currency_places(self):
        report = build_trial_balance([_row("1000", 1500, 0), _row("4000", 0, 1500)], 0, _metadata())
        assert report.total_debits == Decimal("1500")


class TestIncomeStatement:
    def test_sections_and_net_income(self):
        rows = [
            _row("1000", 20000, 0),
            _row("4000", 0, 20000),
            _row("5000", 4550, 0),
            _row("2000", 0, 4550),
        ]
        statement = build_income_statement(rows, 2, _metadata(ReportType.INCOME_STATEMENT))

        assert [line.account_code for line in statement.revenue.lines] == ["4000"]
        assert [line.account_code for line in statement.expenses.lines] == ["5000"]
        assert statement.total_revenue == Decimal("200.00")
        assert statement.total_expenses == Decimal("45.50")
        assert statement.net_income == Decimal("154.50")

    def test_net_loss(self):
        rows = [_row("5000", 1000, 0), _row("1000", 0, 1000)]
        statement = build_income_statement(rows, 2, _metadata(ReportType.INCOME_STATEMENT))
        assert statement.net_income == Decimal("-10.00")
        assert statement.revenue.lines == ()


class TestBalanceSheet:
    def test_current_earnings_line(self):
        rows = [
            _row("1000", 50000 + 10000, 0),
            _row("3000", 0, 50000),
            _row("4000", 0, 10000),
        ]
        sheet = build_balance_sheet(rows, 2, _metadata(ReportType.BALANCE_SHEET))

        earnings = sheet.equity.line_for(CURRENT_EARNINGS_CODE)
        assert earnings.account_id is None
        assert earnings.amount == Decimal("100.00")
        assert sheet.current_earnings == Decimal("100.00")
        assert sheet.total_equity == Decimal("600.00")
        assert sheet.total_assets == sheet.total_liabilities_and_equity == Decimal("600.00")
        assert sheet.is_balanced

    def test_no_earnings_line_when_zero(self):
        rows = [_row("1000", 50000, 0), _row("3000", 0, 50000)]
        sheet = build_balance_sheet(rows, 2, _metadata(ReportType.BALANCE_SHEET))
        assert sheet.equity.line_for(CURRENT_EARNINGS_CODE) is None
        assert sheet.current_earnings == Decimal("0.00")

    def test_income_accounts_not_listed_as_sections(self):
        rows = [_row("1000", 100, 0), _row("4000", 0, 100)]
        sheet = build_balance_sheet(rows, 2, _metadata(ReportType.BALANCE_SHEET))
        codes = {line.account_code for section in (sheet.assets, sheet.liabilities, sheet.equity)
                 for line in section.lines}
        assert codes == {"1000", CURRENT_EARNINGS_CODE}


class TestBalancedLedgerProperties:
    @settings(max_examples=200)
    @given(rows=balanced_ledgers())
    def test_trial_balance_always_balances(self, rows):
        report = build_trial_balance(rows, 2, _metadata())
        assert report.total_debits == report.total_credits
        assert report.is_balanced

    @settings(max_examples=200)
    @given(rows=balanced_ledgers())
    def test_accounting_equation_holds(self, rows):
        sheet = build_balance_sheet(rows, 2, _metadata(ReportType.BALANCE_SHEET))
        assert sheet.total_assets == sheet.total_liabilities + sheet.total_equity
        assert sheet.is_balanced

    @settings(max_examples=100)
    @given(rows=balanced_ledgers())
    def test_net_income_matches_balance_sheet_earnings(self, rows):
        statement = build_income_statement(rows, 2, _metadata(ReportType.INCOME_STATEMENT))
        sheet = build_balance_sheet(rows, 2, _metadata(ReportType.BALANCE_SHEET))
        assert statement.net_income == sheet.current_earnings

    @settings(max_examples=100)
    @given(rows=balanced_ledgers())
    def test_one_column_per_line(self, rows):
        for line in build_trial_balance(rows, 2, _metadata()).lines:
            if line.normal_balance == NormalBalance.DEBIT:
                assert line.credit_balance == 0
            else:
                assert line.debit_balance == 0
