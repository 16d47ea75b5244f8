"""
Pure domain layer.

Frozen DTOs, entry validation, the clock abstraction, notifications and the
standard chart of accounts.  No sessions, no queries; SystemClock is the only
I/O boundary.
"""

from gl_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from gl_kernel.domain.dtos import (
    AccountInfo,
    DraftJournalEntry,
    FiscalPeriodInfo,
    JournalEntryInfo,
    JournalLineInfo,
    LineSpec,
    PostedJournalEntry,
    entry_from_model,
)
from gl_kernel.domain.notifications import (
    FiscalPeriodClosed,
    InMemoryPublisher,
    JournalEntryPosted,
    JournalEntryReversed,
    LoggingPublisher,
    NotificationPublisher,
    NullPublisher,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "LineSpec",
    "AccountInfo",
    "FiscalPeriodInfo",
    "JournalLineInfo",
    "DraftJournalEntry",
    "PostedJournalEntry",
    "JournalEntryInfo",
    "entry_from_model",
    "NotificationPublisher",
    "NullPublisher",
    "LoggingPublisher",
    "InMemoryPublisher",
    "JournalEntryPosted",
    "JournalEntryReversed",
    "FiscalPeriodClosed",
]
