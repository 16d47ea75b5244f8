"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Hands out strictly increasing integers per named sequence.  Journal
    entry numbers come from here at posting time, and period creation takes
    the "fiscal_period" counter to serialize overlap checks.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by JournalService, ReversalService and PeriodService.

Invariants enforced:
    - The locked counter row is the sole source of the next value.  The
      aggregate max()+1 pattern is never used; it races under concurrent
      posts.
    - Transactional: an increment is visible only after the caller commits.
      A rolled-back post returns its number, so abandoned work leaves no gap.

Failure modes:
    - IntegrityError: concurrent first use of a counter (handled with a
      savepoint rollback and a locked re-read).
"""

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from gl_kernel.db.base import Base
from gl_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """One row per named sequence, holding the last value handed out."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Transactional sequence numbers.

    Usage:
        seq = SequenceService(session).next_value(SequenceService.JOURNAL_ENTRY)
        # commit -> seq consumed; rollback -> seq returned

    Non-goals:
        - Does NOT call ``session.commit()``.
    """

    JOURNAL_ENTRY = "journal_entry"
    FISCAL_PERIOD = "fiscal_period"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Lock the counter row (creating it on first use), increment, return.

        The row stays locked until the caller's transaction ends, so two
        concurrent callers for the same sequence are strictly ordered.

        Returns:
            The next value, always > 0.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                # Another transaction created the counter first
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing, or None if never used."""
        return self._session.execute(
            select(SequenceCounter.current_value)
            .where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
