"""
Module: gl_kernel.selectors.journal_selector
Responsibility: Read-only journal entry lookups and date-range listings.
Architecture position: Kernel > Selectors.  Returns DraftJournalEntry or
    PostedJournalEntry DTOs according to each entry's status.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from gl_kernel.domain.dtos import JournalEntryInfo, entry_from_model
from gl_kernel.models.journal import JournalEntry, JournalEntryStatus
from gl_kernel.selectors.base import BaseSelector


class JournalSelector(BaseSelector[JournalEntry]):
    """
    Selector for journal entries.

    Contract:
        Listings are ordered by entry_date, then posting sequence; drafts
        (no sequence yet) follow the posted entries of the same date in
        creation order.
    """

    def __init__(self, session, places: int = 2):
        super().__init__(session)
        self._places = places

    def _to_dto(self, entry: JournalEntry) -> JournalEntryInfo:
        return entry_from_model(entry, self._places)

    def get_entry(self, entry_id: UUID) -> JournalEntryInfo | None:
        entry = self.session.get(JournalEntry, entry_id)
        return self._to_dto(entry) if entry else None

    def get_entry_by_number(self, entry_number: str) -> JournalEntryInfo | None:
        entry = self.session.execute(
            select(JournalEntry).where(JournalEntry.entry_number == entry_number)
        ).scalar_one_or_none()
        return self._to_dto(entry) if entry else None

    def list_by_date_range(
        self,
        start_date: date,
        end_date: date,
        statuses: tuple[JournalEntryStatus, ...] | None = None,
    ) -> list[JournalEntryInfo]:
        """Entries dated within [start_date, end_date], inclusive."""
        query = (
            select(JournalEntry)
            .where(
                JournalEntry.entry_date >= start_date,
                JournalEntry.entry_date <= end_date,
            )
            .order_by(
                JournalEntry.entry_date,
                JournalEntry.seq.is_(None),
                JournalEntry.seq,
                JournalEntry.created_at,
                JournalEntry.id,
            )
        )
        if statuses:
            query = query.where(JournalEntry.status.in_(statuses))

        return [self._to_dto(entry) for entry in self.session.execute(query).scalars()]

    def count_entries(self, status: JournalEntryStatus | None = None) -> int:
        query = select(func.count(JournalEntry.id))
        if status is not None:
            query = query.where(JournalEntry.status == status)
        return self.session.execute(query).scalar_one()
