"""
PeriodService -- fiscal period calendar and posting gate.

Responsibility:
    Creates non-overlapping fiscal periods, closes them (once, for good),
    and answers which period -- if any -- accepts a posting on a given date.

Architecture position:
    Kernel > Services -- imperative shell.  Returns FiscalPeriodInfo DTOs.
    JournalService and ReversalService call ``lock_open_period_for_date``
    inside their posting transaction.

Invariants enforced:
    - start_date < end_date; both bounds inclusive.
    - No two periods overlap, across all fiscal years.  Creation takes the
      "fiscal_period" sequence row lock so two concurrent creations cannot
      both pass the overlap check.
    - OPEN -> CLOSED exactly once.  There is no reopen.
    - Close and post serialize on the period row (SELECT ... FOR UPDATE):
      either the post commits first and stands, or the close commits first
      and the post fails with ClosedPeriodError.

Failure modes:
    - InvalidPeriodRangeError, PeriodOverlapError (validation).
    - PeriodNotFoundError: unknown id, or no open period covers today.
    - PeriodAlreadyClosedError: redundant close.
    - ClosedPeriodError: posting date in a closed period or in no period.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import select

from gl_kernel.domain.dtos import FiscalPeriodInfo
from gl_kernel.exceptions import (
    ClosedPeriodError,
    InvalidPeriodRangeError,
    PeriodAlreadyClosedError,
    PeriodNotFoundError,
    PeriodOverlapError,
    ValidationError,
)
from gl_kernel.logging_config import LogContext, get_logger
from gl_kernel.models.fiscal_period import FiscalPeriod, PeriodStatus
from gl_kernel.services.base import BaseService
from gl_kernel.services.sequence_service import SequenceService

logger = get_logger("services.period")


def default_period_name(fiscal_year: int, start_date: date, end_date: date) -> str:
    return f"FY{fiscal_year} {start_date.isoformat()}..{end_date.isoformat()}"


def _is_plain_date(value) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


class PeriodService(BaseService[FiscalPeriod]):
    """
    Service for the fiscal period lifecycle.

    Guarantees:
        - ``get_current_period`` uses the injected clock for "today".
        - Listing methods return periods ordered by start_date.

    Non-goals:
        - Does NOT call ``session.commit()``.
        - Does NOT reopen closed periods.
    """

    def _to_dto(self, period: FiscalPeriod) -> FiscalPeriodInfo:
        return FiscalPeriodInfo.from_model(period)

    def create_period(
        self,
        fiscal_year: int,
        start_date: date,
        end_date: date,
        created_by: str,
        name: str | None = None,
    ) -> FiscalPeriodInfo:
        """
        Create a new OPEN fiscal period.

        Raises:
            ValidationError: fiscal_year or dates of the wrong kind.
            InvalidPeriodRangeError: start_date >= end_date.
            PeriodOverlapError: range intersects any existing period.
        """
        if isinstance(fiscal_year, bool) or not isinstance(fiscal_year, int):
            raise ValidationError(f"fiscal_year must be an integer, got {fiscal_year!r}")
        if not _is_plain_date(start_date) or not _is_plain_date(end_date):
            raise ValidationError("start_date and end_date must be dates")
        if start_date >= end_date:
            raise InvalidPeriodRangeError(str(start_date), str(end_date))

        # Serializes concurrent creations across the whole calendar
        SequenceService(self.session).next_value(SequenceService.FISCAL_PERIOD)

        self._validate_no_overlap(start_date, end_date)

        period = FiscalPeriod(
            fiscal_year=fiscal_year,
            name=name or default_period_name(fiscal_year, start_date, end_date),
            start_date=start_date,
            end_date=end_date,
            status=PeriodStatus.OPEN,
            created_by=created_by,
        )
        self.session.add(period)
        self.session.flush()

        logger.info(
            "period_created",
            extra={
                "period_id": str(period.id),
                "fiscal_year": fiscal_year,
                "start_date": str(start_date),
                "end_date": str(end_date),
            },
        )
        return self._to_dto(period)

    def _validate_no_overlap(self, start_date: date, end_date: date) -> None:
        """
        Two inclusive ranges overlap if: start1 <= end2 AND start2 <= end1.
        """
        overlapping = self.session.execute(
            select(FiscalPeriod)
            .where(
                FiscalPeriod.start_date <= end_date,
                FiscalPeriod.end_date >= start_date,
            )
            .order_by(FiscalPeriod.start_date)
            .limit(1)
        ).scalar_one_or_none()

        if overlapping is not None:
            raise PeriodOverlapError(
                existing_period_id=str(overlapping.id),
                overlap_start=str(max(start_date, overlapping.start_date)),
                overlap_end=str(min(end_date, overlapping.end_date)),
            )

    def close_period(self, period_id: UUID, actor_id: str) -> FiscalPeriodInfo:
        """
        Close a fiscal period.  Irreversible.

        Uses SELECT FOR UPDATE so a concurrent post into this period either
        finishes first or sees the period CLOSED.

        Raises:
            PeriodNotFoundError: unknown period.
            PeriodAlreadyClosedError: period is already closed.
        """
        with LogContext.bind(period_id=str(period_id), actor_id=actor_id):
            period = self._get_period_for_update(period_id)

            if period.is_closed:
                raise PeriodAlreadyClosedError(str(period_id))

            period.close(actor_id, self._clock.now())
            period.updated_by = actor_id
            self.session.flush()

            logger.info("period_closed", extra={"period_name": period.name})
            return self._to_dto(period)

    # -------------------------------------------------------------------------
    # Posting gate
    # -------------------------------------------------------------------------

    def lock_open_period_for_date(self, entry_date: date) -> FiscalPeriod:
        """
        Return the period covering ``entry_date``, row-locked, if it is OPEN.

        The lock is held until the caller's transaction ends, so the period
        cannot be closed underneath an in-flight post.

        Raises:
            ClosedPeriodError: no period covers the date, or it is closed.
        """
        period = self.session.execute(
            select(FiscalPeriod)
            .where(
                FiscalPeriod.start_date <= entry_date,
                FiscalPeriod.end_date >= entry_date,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if period is None:
            raise ClosedPeriodError(str(entry_date))
        if period.is_closed:
            raise ClosedPeriodError(str(entry_date), period.name)
        return period

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _get_period_for_update(self, period_id: UUID) -> FiscalPeriod:
        period = self.session.execute(
            select(FiscalPeriod)
            .where(FiscalPeriod.id == period_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return period

    def get_period(self, period_id: UUID) -> FiscalPeriodInfo:
        period = self.session.get(FiscalPeriod, period_id)
        if period is None:
            raise PeriodNotFoundError(str(period_id))
        return self._to_dto(period)

    def get_period_for_date(self, check_date: date) -> FiscalPeriodInfo | None:
        """The period containing a date, open or closed, or None."""
        period = self.session.execute(
            select(FiscalPeriod).where(
                FiscalPeriod.start_date <= check_date,
                FiscalPeriod.end_date >= check_date,
            )
        ).scalar_one_or_none()
        return self._to_dto(period) if period else None

    def get_current_period(self) -> FiscalPeriodInfo:
        """
        The OPEN period whose range contains today (per the injected clock).

        Raises:
            PeriodNotFoundError: today falls in a gap or in a closed period.
        """
        today = self._clock.today()
        period = self.get_period_for_date(today)
        if period is None or not period.is_open:
            raise PeriodNotFoundError(f"current period for {today}")
        return period

    def list_by_year(self, fiscal_year: int) -> list[FiscalPeriodInfo]:
        rows = self.session.execute(
            select(FiscalPeriod)
            .where(FiscalPeriod.fiscal_year == fiscal_year)
            .order_by(FiscalPeriod.start_date)
        ).scalars()
        return [self._to_dto(period) for period in rows]

    def list_periods(self) -> list[FiscalPeriodInfo]:
        rows = self.session.execute(
            select(FiscalPeriod).order_by(FiscalPeriod.start_date)
        ).scalars()
        return [self._to_dto(period) for period in rows]
