"""
Module: gl_kernel.models.fiscal_period
Responsibility: ORM persistence for the fiscal period calendar -- controls
    which date ranges accept postings.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - start_date < end_date (ck_period_range); both bounds inclusive.
    - Periods never overlap (checked by PeriodService under a row lock).
    - OPEN -> CLOSED is the only transition and happens exactly once;
      closed_at/closed_by are set together with the status.

Failure modes:
    - ClosedPeriodError when posting into a closed period.
    - PeriodAlreadyClosedError on a redundant close.
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from gl_kernel.db.base import TrackedBase


class PeriodStatus(str, Enum):
    """Lifecycle status of a fiscal period.

    Contract: OPEN -> CLOSED, once, irreversibly.
    """

    OPEN = "open"
    CLOSED = "closed"


class FiscalPeriod(TrackedBase):
    """
    Fiscal period for posting control.

    Contract:
        Once a period is CLOSED, no entry dated inside it may be newly
        posted.  There is no reopen operation.
    """

    __tablename__ = "fiscal_periods"

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_period_range"),
        Index("idx_period_dates", "start_date", "end_date"),
        Index("idx_period_year", "fiscal_year"),
        Index("idx_period_status", "status"),
    )

    fiscal_year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Human-readable name (e.g. "FY2026 2026-01-01..2026-01-31")
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Period boundaries (inclusive)
    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    status: Mapped[PeriodStatus] = mapped_column(
        SAEnum(
            PeriodStatus,
            native_enum=False,
            length=10,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=PeriodStatus.OPEN,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    closed_by: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<FiscalPeriod {self.name}: {self.status.value}>"

    @property
    def is_open(self) -> bool:
        return self.status == PeriodStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return self.status == PeriodStatus.CLOSED

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this period (inclusive bounds)."""
        return self.start_date <= check_date <= self.end_date

    def close(self, actor_id: str, closed_at: datetime) -> None:
        """Close the period.

        Preconditions: Period must be OPEN (caller raises the typed error).
        Postconditions: status is CLOSED, closed_at and closed_by populated.

        Requires the timestamp from the injected clock.
        """
        if self.is_closed:
            raise ValueError(f"Period {self.name} is already closed")

        self.status = PeriodStatus.CLOSED
        self.closed_at = closed_at
        self.closed_by = actor_id
