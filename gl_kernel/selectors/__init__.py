"""Read-only selectors over journal entries and ledger lines."""

from gl_kernel.selectors.journal_selector import JournalSelector
from gl_kernel.selectors.ledger_selector import AccountActivity, LedgerSelector

__all__ = [
    "JournalSelector",
    "LedgerSelector",
    "AccountActivity",
]
