"""Services for the ledger kernel (write side)."""

from gl_kernel.services.account_service import AccountService
from gl_kernel.services.journal_service import JournalService
from gl_kernel.services.period_service import PeriodService
from gl_kernel.services.reversal_service import ReversalService
from gl_kernel.services.sequence_service import SequenceCounter, SequenceService

__all__ = [
    "AccountService",
    "JournalService",
    "PeriodService",
    "ReversalService",
    "SequenceCounter",
    "SequenceService",
]
