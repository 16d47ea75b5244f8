"""Ledger reports derived from posted journal lines."""

from gl_kernel.reporting.models import (
    AccountBalance,
    BalanceSheet,
    IncomeStatement,
    ReportMetadata,
    ReportType,
    StatementLine,
    StatementSection,
    TrialBalanceLine,
    TrialBalanceReport,
)
from gl_kernel.reporting.service import ReportService

__all__ = [
    "AccountBalance",
    "BalanceSheet",
    "IncomeStatement",
    "ReportMetadata",
    "ReportService",
    "ReportType",
    "StatementLine",
    "StatementSection",
    "TrialBalanceLine",
    "TrialBalanceReport",
]
