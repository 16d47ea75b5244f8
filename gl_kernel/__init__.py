"""
GL Kernel - double-entry general ledger core.

A transactional accounting core with:
- Chart of accounts with derived normal balance sides
- Fiscal period calendar with one-way close
- Draft -> Posted -> Reversed journal entry lifecycle
- Trial balance, income statement and balance sheet derived from posted lines
- Exact integer minor-unit arithmetic
"""

__version__ = "0.1.0"

from gl_kernel.config import LedgerConfig, ReversalDatePolicy, load_config
from gl_kernel.domain.dtos import (
    AccountInfo,
    DraftJournalEntry,
    FiscalPeriodInfo,
    JournalLineInfo,
    LineSpec,
    PostedJournalEntry,
)
from gl_kernel.ledger import GeneralLedger
from gl_kernel.models.account import AccountType, NormalBalance
from gl_kernel.models.fiscal_period import PeriodStatus
from gl_kernel.models.journal import JournalEntryStatus

__all__ = [
    "AccountInfo",
    "AccountType",
    "DraftJournalEntry",
    "FiscalPeriodInfo",
    "GeneralLedger",
    "JournalEntryStatus",
    "JournalLineInfo",
    "LedgerConfig",
    "LineSpec",
    "NormalBalance",
    "PeriodStatus",
    "PostedJournalEntry",
    "ReversalDatePolicy",
    "load_config",
]
