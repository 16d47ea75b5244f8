"""
Domain notifications emitted after a unit of work commits.

The ledger announces postings, reversals and period closes to whoever is
listening (an audit store, a message bus).  Delivery is best effort: the
ledger never depends on it succeeding and never waits on it.  The
GeneralLedger facade publishes only after commit, so a listener never hears
about work that was rolled back.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol, Union, runtime_checkable
from uuid import UUID

from gl_kernel.logging_config import get_logger

logger = get_logger("domain.notifications")


@dataclass(frozen=True)
class JournalEntryPosted:
    entry_id: UUID
    entry_number: str
    entry_date: date
    posted_by: str
    occurred_at: datetime
    name: str = field(default="JournalEntryPosted", init=False)


@dataclass(frozen=True)
class JournalEntryReversed:
    original_entry_id: UUID
    reversal_entry_id: UUID
    reversal_entry_number: str
    reason: str
    actor_id: str
    occurred_at: datetime
    name: str = field(default="JournalEntryReversed", init=False)


@dataclass(frozen=True)
class FiscalPeriodClosed:
    period_id: UUID
    period_name: str
    closed_by: str
    occurred_at: datetime
    name: str = field(default="FiscalPeriodClosed", init=False)


Notification = Union[JournalEntryPosted, JournalEntryReversed, FiscalPeriodClosed]


@runtime_checkable
class NotificationPublisher(Protocol):
    """Anything with a ``publish(notification)`` method."""

    def publish(self, notification: Notification) -> None:
        ...


class NullPublisher:
    """Discards every notification."""

    def publish(self, notification: Notification) -> None:
        return None


class LoggingPublisher:
    """Writes each notification to the structured log at INFO."""

    def publish(self, notification: Notification) -> None:
        logger.info(
            "notification_published",
            extra={"notification": notification.name, **_payload(notification)},
        )


class InMemoryPublisher:
    """Collects notifications in a list.  Used by tests and local tooling."""

    def __init__(self):
        self.published: list[Notification] = []

    def publish(self, notification: Notification) -> None:
        self.published.append(notification)

    def of_type(self, notification_type: type) -> list[Notification]:
        return [n for n in self.published if isinstance(n, notification_type)]

    def clear(self) -> None:
        self.published.clear()


def _payload(notification: Notification) -> dict:
    return {
        key: value
        for key, value in vars(notification).items()
        if key != "name"
    }


def publish_all(publisher: NotificationPublisher, notifications: list[Notification]) -> None:
    """
    Deliver notifications, logging (not raising) any publisher failure.

    Called after commit; the ledger operation has already succeeded.
    """
    for notification in notifications:
        try:
            publisher.publish(notification)
        except Exception:
            logger.exception(
                "notification_publish_failed",
                extra={"notification": notification.name},
            )
