"""
gl_kernel.ledger -- GeneralLedger facade.

Responsibility:
    The single entry point callers use.  Each public method runs one
    operation in its own unit of work (``session_scope``): commit on
    success, full rollback on any failure.  Notifications are published
    only after the commit succeeds.

Architecture position:
    Kernel > top.  Composes AccountService, PeriodService, JournalService,
    ReversalService, JournalSelector and ReportService over a session
    factory.  Holds no ledger state of its own between calls.

Invariants enforced:
    - All-or-nothing per operation: a failed post, reversal or close leaves
      zero effect.
    - A listener never hears about work that was rolled back.
    - ORM immutability listeners are registered before the first operation.

Failure modes:
    - Typed GeneralLedgerError subclasses from the services, unchanged.
    - Unexpected persistence errors propagate after rollback.

Usage:
    from gl_kernel import GeneralLedger, LineSpec
    from gl_kernel.db import init_engine_from_url, create_tables

    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    ledger = GeneralLedger()
    ledger.create_account("1000", "Cash", "asset", created_by="admin")
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Generator, Sequence
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from gl_kernel.config import LedgerConfig
from gl_kernel.db.engine import get_session_factory, session_scope
from gl_kernel.db.immutability import register_immutability_listeners
from gl_kernel.domain.clock import Clock, SystemClock
from gl_kernel.domain.dtos import (
    AccountInfo,
    DraftJournalEntry,
    FiscalPeriodInfo,
    JournalEntryInfo,
    LineSpec,
    PostedJournalEntry,
)
from gl_kernel.domain.notifications import (
    FiscalPeriodClosed,
    JournalEntryPosted,
    JournalEntryReversed,
    NotificationPublisher,
    NullPublisher,
    publish_all,
)
from gl_kernel.exceptions import EntryNotFoundError, ValidationError
from gl_kernel.logging_config import get_logger
from gl_kernel.models.account import AccountType
from gl_kernel.models.journal import JournalEntryStatus
from gl_kernel.reporting.models import (
    AccountBalance,
    BalanceSheet,
    IncomeStatement,
    TrialBalanceReport,
)
from gl_kernel.reporting.service import ReportService
from gl_kernel.selectors.journal_selector import JournalSelector
from gl_kernel.services.account_service import AccountService
from gl_kernel.services.journal_service import JournalService
from gl_kernel.services.period_service import PeriodService
from gl_kernel.services.reversal_service import ReversalService

logger = get_logger("ledger")


class GeneralLedger:
    """
    Transactional facade over the ledger services.

    Contract:
        Arguments and return values are plain data (DTOs, dates, strings,
        Decimals).  No ORM object escapes.

    Non-goals:
        - Does NOT authorize actors.  Actor ids are recorded as given.
        - Does NOT retry on lock timeouts or serialization failures.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        config: LedgerConfig | None = None,
        clock: Clock | None = None,
        publisher: NotificationPublisher | None = None,
    ):
        self._session_factory = session_factory or get_session_factory()
        self._config = config or LedgerConfig()
        self._clock = clock or SystemClock()
        self._publisher = publisher or NullPublisher()
        register_immutability_listeners()
        logger.debug(
            "ledger_initialized",
            extra={
                "currency": self._config.currency,
                "publisher": type(self._publisher).__name__,
            },
        )

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @contextmanager
    def _unit_of_work(self) -> Generator[Session, None, None]:
        with session_scope(self._session_factory) as session:
            yield session

    def _accounts(self, session: Session) -> AccountService:
        return AccountService(session, self._config, self._clock)

    def _periods(self, session: Session) -> PeriodService:
        return PeriodService(session, self._config, self._clock)

    def _journal(self, session: Session) -> JournalService:
        return JournalService(session, self._config, self._clock)

    def _reports(self, session: Session) -> ReportService:
        return ReportService(session, self._config, self._clock)

    # =========================================================================
    # Chart of accounts
    # =========================================================================

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType | str,
        created_by: str,
        description: str | None = None,
        parent_code: str | None = None,
    ) -> AccountInfo:
        with self._unit_of_work() as session:
            return self._accounts(session).create_account(
                code=code,
                name=name,
                account_type=account_type,
                created_by=created_by,
                description=description,
                parent_code=parent_code,
            )

    def update_account(
        self,
        account_id: UUID,
        actor_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> AccountInfo:
        with self._unit_of_work() as session:
            return self._accounts(session).update_account(
                account_id, actor_id, name=name, description=description,
            )

    def deactivate_account(self, account_id: UUID, actor_id: str) -> AccountInfo:
        with self._unit_of_work() as session:
            return self._accounts(session).deactivate_account(account_id, actor_id)

    def delete_account(self, account_id: UUID, actor_id: str) -> None:
        with self._unit_of_work() as session:
            self._accounts(session).delete_account(account_id, actor_id)

    def seed_standard_chart(self, actor_id: str) -> tuple[list[AccountInfo], list[str]]:
        with self._unit_of_work() as session:
            return self._accounts(session).seed_standard_chart(actor_id)

    def get_account(self, account_id: UUID) -> AccountInfo:
        with self._unit_of_work() as session:
            return self._accounts(session).get_account(account_id)

    def get_account_by_code(self, code: str) -> AccountInfo:
        with self._unit_of_work() as session:
            return self._accounts(session).get_account_by_code(code)

    def list_accounts(self) -> list[AccountInfo]:
        with self._unit_of_work() as session:
            return self._accounts(session).list_accounts()

    def list_accounts_by_type(self, account_type: AccountType | str) -> list[AccountInfo]:
        with self._unit_of_work() as session:
            return self._accounts(session).list_by_type(account_type)

    def list_active_accounts(self) -> list[AccountInfo]:
        with self._unit_of_work() as session:
            return self._accounts(session).list_active()

    # =========================================================================
    # Fiscal periods
    # =========================================================================

    def create_period(
        self,
        fiscal_year: int,
        start_date: date,
        end_date: date,
        created_by: str,
        name: str | None = None,
    ) -> FiscalPeriodInfo:
        with self._unit_of_work() as session:
            return self._periods(session).create_period(
                fiscal_year, start_date, end_date, created_by, name=name,
            )

    def close_period(self, period_id: UUID, actor_id: str) -> FiscalPeriodInfo:
        """Close a period for good.  Publishes FiscalPeriodClosed after commit."""
        with self._unit_of_work() as session:
            period = self._periods(session).close_period(period_id, actor_id)

        publish_all(
            self._publisher,
            [
                FiscalPeriodClosed(
                    period_id=period.id,
                    period_name=period.name,
                    closed_by=actor_id,
                    occurred_at=period.closed_at or self._clock.now(),
                )
            ],
        )
        return period

    def get_period(self, period_id: UUID) -> FiscalPeriodInfo:
        with self._unit_of_work() as session:
            return self._periods(session).get_period(period_id)

    def get_current_period(self) -> FiscalPeriodInfo:
        with self._unit_of_work() as session:
            return self._periods(session).get_current_period()

    def get_period_for_date(self, check_date: date) -> FiscalPeriodInfo | None:
        with self._unit_of_work() as session:
            return self._periods(session).get_period_for_date(check_date)

    def get_periods_by_year(self, fiscal_year: int) -> list[FiscalPeriodInfo]:
        with self._unit_of_work() as session:
            return self._periods(session).list_by_year(fiscal_year)

    def list_periods(self) -> list[FiscalPeriodInfo]:
        with self._unit_of_work() as session:
            return self._periods(session).list_periods()

    # =========================================================================
    # Journal entries
    # =========================================================================

    def create_journal_entry(
        self,
        entry_date: date,
        description: str,
        lines: Sequence[LineSpec],
        created_by: str,
    ) -> DraftJournalEntry:
        with self._unit_of_work() as session:
            return self._journal(session).create_journal_entry(
                entry_date, description, lines, created_by,
            )

    def update_draft_entry(
        self,
        entry_id: UUID,
        actor_id: str,
        entry_date: date | None = None,
        description: str | None = None,
        lines: Sequence[LineSpec] | None = None,
    ) -> DraftJournalEntry:
        with self._unit_of_work() as session:
            return self._journal(session).update_draft_entry(
                entry_id,
                actor_id,
                entry_date=entry_date,
                description=description,
                lines=lines,
            )

    def discard_draft_entry(self, entry_id: UUID, actor_id: str) -> None:
        with self._unit_of_work() as session:
            self._journal(session).discard_draft_entry(entry_id, actor_id)

    def post_journal_entry(self, entry_id: UUID, posted_by: str) -> PostedJournalEntry:
        """Post a draft.  Publishes JournalEntryPosted after commit."""
        with self._unit_of_work() as session:
            entry = self._journal(session).post_journal_entry(entry_id, posted_by)

        publish_all(
            self._publisher,
            [
                JournalEntryPosted(
                    entry_id=entry.id,
                    entry_number=entry.entry_number,
                    entry_date=entry.entry_date,
                    posted_by=posted_by,
                    occurred_at=entry.posted_at,
                )
            ],
        )
        return entry

    def reverse_journal_entry(
        self,
        entry_id: UUID,
        reason: str,
        actor_id: str,
        reversal_date: date | None = None,
    ) -> PostedJournalEntry:
        """
        Reverse a posted entry; returns the new reversing entry.

        Publishes JournalEntryReversed and JournalEntryPosted (for the
        reversing entry) after commit.
        """
        with self._unit_of_work() as session:
            reversal = ReversalService(session, self._config, self._clock).reverse_journal_entry(
                entry_id, reason, actor_id, reversal_date=reversal_date,
            )

        publish_all(
            self._publisher,
            [
                JournalEntryReversed(
                    original_entry_id=entry_id,
                    reversal_entry_id=reversal.id,
                    reversal_entry_number=reversal.entry_number,
                    reason=reversal.reversal_reason or reason,
                    actor_id=actor_id,
                    occurred_at=reversal.posted_at,
                ),
                JournalEntryPosted(
                    entry_id=reversal.id,
                    entry_number=reversal.entry_number,
                    entry_date=reversal.entry_date,
                    posted_by=actor_id,
                    occurred_at=reversal.posted_at,
                ),
            ],
        )
        return reversal

    def get_entry(self, entry_id: UUID) -> JournalEntryInfo:
        with self._unit_of_work() as session:
            entry = JournalSelector(session, self._config.minor_unit_places).get_entry(entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def get_entry_by_number(self, entry_number: str) -> PostedJournalEntry:
        with self._unit_of_work() as session:
            entry = JournalSelector(
                session, self._config.minor_unit_places
            ).get_entry_by_number(entry_number)
        if entry is None:
            raise EntryNotFoundError(entry_number)
        return entry

    def list_entries_by_date_range(
        self,
        start_date: date,
        end_date: date,
        statuses: tuple[JournalEntryStatus, ...] | None = None,
    ) -> list[JournalEntryInfo]:
        """Entries dated within [start_date, end_date], by date then entry number."""
        for value in (start_date, end_date):
            if not isinstance(value, date) or isinstance(value, datetime):
                raise ValidationError(f"Date range bounds must be dates, got {value!r}")
        with self._unit_of_work() as session:
            return JournalSelector(
                session, self._config.minor_unit_places
            ).list_by_date_range(start_date, end_date, statuses)

    # =========================================================================
    # Reports
    # =========================================================================

    def generate_trial_balance(self, as_of_date: date) -> TrialBalanceReport:
        with self._unit_of_work() as session:
            return self._reports(session).generate_trial_balance(as_of_date)

    def generate_income_statement(self, start_date: date, end_date: date) -> IncomeStatement:
        with self._unit_of_work() as session:
            return self._reports(session).generate_income_statement(start_date, end_date)

    def generate_balance_sheet(self, as_of_date: date) -> BalanceSheet:
        with self._unit_of_work() as session:
            return self._reports(session).generate_balance_sheet(as_of_date)

    def get_account_balance(self, account_code: str, as_of_date: date) -> AccountBalance:
        with self._unit_of_work() as session:
            return self._reports(session).get_account_balance(account_code, as_of_date)
