"""
Report Service (``gl_kernel.reporting.service``).

Responsibility
--------------
Orchestrates report generation -- trial balance, income statement, balance
sheet and single-account balances -- by bridging ``LedgerSelector`` to the
pure transformation functions in ``statements.py``.  Read-only.

Architecture position
---------------------
**Kernel > Reporting** -- thin glue.  Constructor: ``session`` + ``config``
+ ``clock``.

Invariants enforced
-------------------
* Read-only -- no mutations to the journal.
* Only lines of POSTED and REVERSED entries are counted (selector contract).
* All monetary amounts use ``Decimal`` -- NEVER ``float``.

Failure modes
-------------
* Invalid report parameters (non-date, start_date > end_date) ->
  ``ValidationError`` raised before query execution.
* Unknown account code in ``get_account_balance`` -> ``AccountNotFoundError``.
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy.orm import Session

from gl_kernel.config import LedgerConfig
from gl_kernel.db.types import from_minor_units
from gl_kernel.domain.clock import Clock, SystemClock
from gl_kernel.exceptions import AccountNotFoundError, ValidationError
from gl_kernel.logging_config import get_logger
from gl_kernel.models.account import Account
from gl_kernel.reporting.models import (
    AccountBalance,
    BalanceSheet,
    IncomeStatement,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from gl_kernel.reporting.statements import (
    build_balance_sheet,
    build_income_statement,
    build_trial_balance,
    compute_natural_balance,
)
from gl_kernel.selectors.ledger_selector import LedgerSelector

logger = get_logger("reporting.service")


def _require_date(value, label: str) -> None:
    if not isinstance(value, date) or isinstance(value, datetime):
        raise ValidationError(f"{label} must be a date, got {value!r}")


class ReportService:
    """
    Report generation service.

    Guarantees
    ----------
    * Report generation delegates to pure functions in ``statements.py``;
      no financial logic lives in this class.
    * Clock is injectable; it only stamps ``generated_at``.

    Non-goals
    ---------
    * Does NOT cache reports.  Each call reads the current posted lines.
    """

    def __init__(
        self,
        session: Session,
        config: LedgerConfig | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._config = config or LedgerConfig()
        self._clock = clock or SystemClock()
        self._ledger = LedgerSelector(session)

    @property
    def places(self) -> int:
        return self._config.minor_unit_places

    def _build_metadata(
        self,
        report_type: ReportType,
        as_of_date: date,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            currency=self._config.currency,
            as_of_date=as_of_date,
            generated_at=self._clock.now().isoformat(),
            period_start=period_start,
            period_end=period_end,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def generate_trial_balance(self, as_of_date: date) -> TrialBalanceReport:
        """
        Trial balance of every account with posted activity on or before
        ``as_of_date``.
        """
        _require_date(as_of_date, "as_of_date")
        rows = self._ledger.account_activity(as_of_date=as_of_date)
        report = build_trial_balance(
            rows, self.places, self._build_metadata(ReportType.TRIAL_BALANCE, as_of_date),
        )

        logger.info(
            "trial_balance_generated",
            extra={
                "as_of_date": as_of_date.isoformat(),
                "line_count": len(report.lines),
                "total_debits": str(report.total_debits),
                "total_credits": str(report.total_credits),
                "is_balanced": report.is_balanced,
            },
        )
        if not report.is_balanced:
            logger.error(
                "trial_balance_out_of_balance",
                extra={"as_of_date": as_of_date.isoformat()},
            )
        return report

    def generate_income_statement(
        self,
        start_date: date,
        end_date: date,
    ) -> IncomeStatement:
        """
        Revenue and expense activity dated within [start_date, end_date].

        Raises:
            ValidationError: start_date is after end_date.
        """
        _require_date(start_date, "start_date")
        _require_date(end_date, "end_date")
        if start_date > end_date:
            raise ValidationError(
                f"start_date {start_date} is after end_date {end_date}"
            )

        rows = self._ledger.account_activity(as_of_date=end_date, start_date=start_date)
        report = build_income_statement(
            rows,
            self.places,
            self._build_metadata(
                ReportType.INCOME_STATEMENT,
                end_date,
                period_start=start_date,
                period_end=end_date,
            ),
        )

        logger.info(
            "income_statement_generated",
            extra={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "net_income": str(report.net_income),
            },
        )
        return report

    def generate_balance_sheet(self, as_of_date: date) -> BalanceSheet:
        """Inception-to-date balance sheet with A = L + E verification."""
        _require_date(as_of_date, "as_of_date")
        rows = self._ledger.account_activity(as_of_date=as_of_date)
        report = build_balance_sheet(
            rows, self.places, self._build_metadata(ReportType.BALANCE_SHEET, as_of_date),
        )

        logger.info(
            "balance_sheet_generated",
            extra={
                "as_of_date": as_of_date.isoformat(),
                "total_assets": str(report.total_assets),
                "total_l_and_e": str(report.total_liabilities_and_equity),
                "is_balanced": report.is_balanced,
            },
        )
        if not report.is_balanced:
            logger.error(
                "balance_sheet_out_of_balance",
                extra={"as_of_date": as_of_date.isoformat()},
            )
        return report

    def get_account_balance(self, account_code: str, as_of_date: date) -> AccountBalance:
        """
        One account's balance from posted lines dated on or before
        ``as_of_date``.  An account with no activity has a zero balance.
        """
        _require_date(as_of_date, "as_of_date")
        account = self._session.query(Account).filter(Account.code == account_code).one_or_none()
        if account is None:
            raise AccountNotFoundError(account_code)

        activity = self._ledger.account_balance(account.id, as_of_date)
        debit_total = activity.debit_total if activity else 0
        credit_total = activity.credit_total if activity else 0

        return AccountBalance(
            account_id=account.id,
            account_code=account.code,
            account_name=account.name,
            account_type=account.account_type,
            normal_balance=account.normal_balance,
            as_of_date=as_of_date,
            debit_total=from_minor_units(debit_total, self.places),
            credit_total=from_minor_units(credit_total, self.places),
            balance=from_minor_units(
                compute_natural_balance(debit_total, credit_total, account.normal_balance),
                self.places,
            ),
        )
