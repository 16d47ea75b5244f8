"""Domain models for the general ledger."""

from gl_kernel.models.account import (
    NORMAL_BALANCE_BY_TYPE,
    Account,
    AccountType,
    NormalBalance,
)
from gl_kernel.models.fiscal_period import FiscalPeriod, PeriodStatus
from gl_kernel.models.journal import (
    LEDGER_STATUSES,
    JournalEntry,
    JournalEntryStatus,
    JournalLine,
)

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "NORMAL_BALANCE_BY_TYPE",
    "FiscalPeriod",
    "PeriodStatus",
    "JournalEntry",
    "JournalEntryStatus",
    "JournalLine",
    "LEDGER_STATUSES",
]
