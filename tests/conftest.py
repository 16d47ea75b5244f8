"""
Pytest fixtures for the GL kernel test suite.

Provides:
- Database engine and tables, created once per session
- Per-test sessions that roll back everything at teardown
- Services wired to a deterministic clock
- A small chart of accounts and an open current period
- A GeneralLedger facade over real commits, cleaned up after each test

Environment Variables:
- GL_KERNEL_DATABASE_URL: database URL.  Defaults to in-memory SQLite.
  Point it at PostgreSQL to run the ``postgres``-marked concurrency tests.
"""

import json
import logging
import os
from datetime import date, datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from gl_kernel.config import LedgerConfig
from gl_kernel.db.base import Base
from gl_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from gl_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from gl_kernel.domain.clock import DeterministicClock
from gl_kernel.domain.notifications import InMemoryPublisher
from gl_kernel.ledger import GeneralLedger
from gl_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from gl_kernel.reporting.service import ReportService
from gl_kernel.services.account_service import AccountService
from gl_kernel.services.journal_service import JournalService
from gl_kernel.services.period_service import PeriodService
from gl_kernel.services.reversal_service import ReversalService

DEFAULT_DATABASE_URL = "sqlite:///:memory:"

# Test actor ID for all test operations
TEST_ACTOR_ID = "test-actor"

# "Today" for every test that uses the deterministic clock
TODAY = date(2024, 6, 15)


def get_database_url() -> str:
    return os.environ.get("GL_KERNEL_DATABASE_URL", DEFAULT_DATABASE_URL)


def pytest_collection_modifyitems(config, items):
    """Skip ``postgres``-marked tests when running against SQLite."""
    if not get_database_url().startswith("sqlite"):
        return
    skip_pg = pytest.mark.skip(reason="requires PostgreSQL (set GL_KERNEL_DATABASE_URL)")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture gl_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, journal_service):
            ...
            logs = captured_logs()
            assert any(r["message"] == "entry_posted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("gl_kernel")
    previous_level = root.level
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Session-scoped DB infrastructure (create engine + tables ONCE per suite)
# =============================================================================


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(
        get_database_url(),
        echo=False,
        pool_size=30,
        max_overflow=20,
        pool_timeout=10,
    )
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session, drop once at end.

    Immutability listeners are registered once and remain active.
    """
    drop_tables(db_engine)
    create_tables(db_engine)
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()
    drop_tables(db_engine)


def _delete_all_rows(engine):
    """Remove every row.  Used after tests that really commit."""
    if engine.dialect.name == "postgresql":
        table_names = [t.name for t in reversed(Base.metadata.sorted_tables)]
        with engine.begin() as conn:
            conn.execute(text("TRUNCATE " + ", ".join(table_names) + " CASCADE"))
        return
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


# =============================================================================
# Per-test session with automatic rollback
# =============================================================================


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    Uses the SQLAlchemy 2.0 ``join_transaction_mode`` pattern:
    - Opens a dedicated connection with an outer transaction
    - Creates a session that *joins* the outer transaction
    - Any ``session.commit()`` inside the test releases a savepoint
    - At teardown the outer transaction is rolled back, undoing ALL data
      changes made during the test
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


# =============================================================================
# Clock and config
# =============================================================================


@pytest.fixture
def test_actor_id() -> str:
    return TEST_ACTOR_ID


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """A clock fixed at noon UTC on TODAY."""
    return DeterministicClock(datetime(TODAY.year, TODAY.month, TODAY.day, 12, tzinfo=timezone.utc))


@pytest.fixture
def ledger_config() -> LedgerConfig:
    return LedgerConfig()


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def account_service(session, ledger_config, deterministic_clock) -> AccountService:
    return AccountService(session, ledger_config, deterministic_clock)


@pytest.fixture
def period_service(session, ledger_config, deterministic_clock) -> PeriodService:
    return PeriodService(session, ledger_config, deterministic_clock)


@pytest.fixture
def journal_service(session, ledger_config, deterministic_clock) -> JournalService:
    return JournalService(session, ledger_config, deterministic_clock)


@pytest.fixture
def reversal_service(session, ledger_config, deterministic_clock) -> ReversalService:
    return ReversalService(session, ledger_config, deterministic_clock)


@pytest.fixture
def report_service(session, ledger_config, deterministic_clock) -> ReportService:
    return ReportService(session, ledger_config, deterministic_clock)


# =============================================================================
# Reference data
# =============================================================================

# (code, name, type)
TEST_CHART = [
    ("1000", "Cash", "asset"),
    ("1200", "Accounts Receivable", "asset"),
    ("2000", "Accounts Payable", "liability"),
    ("3000", "Owner Capital", "equity"),
    ("4000", "Revenue", "revenue"),
    ("5000", "Operating Expense", "expense"),
]


@pytest.fixture
def standard_accounts(account_service, test_actor_id) -> dict:
    """Create the test chart.  Returns code -> AccountInfo."""
    return {
        code: account_service.create_account(code, name, account_type, created_by=test_actor_id)
        for code, name, account_type in TEST_CHART
    }


@pytest.fixture
def current_period(period_service, test_actor_id):
    """June 2024, which contains TODAY."""
    return period_service.create_period(
        2024, date(2024, 6, 1), date(2024, 6, 30), created_by=test_actor_id, name="2024-06",
    )


@pytest.fixture
def next_period(period_service, test_actor_id):
    """July 2024."""
    return period_service.create_period(
        2024, date(2024, 7, 1), date(2024, 7, 31), created_by=test_actor_id, name="2024-07",
    )


@pytest.fixture
def post_entry(journal_service, test_actor_id):
    """
    Factory: create and post an entry in one call.

    Usage::

        entry = post_entry([LineSpec.debit("1000", "100.00"),
                            LineSpec.credit("4000", "100.00")])
    """

    def _post(lines, entry_date: date = TODAY, description: str = "Test entry"):
        draft = journal_service.create_journal_entry(
            entry_date, description, lines, created_by=test_actor_id,
        )
        return journal_service.post_journal_entry(draft.id, posted_by=test_actor_id)

    return _post


# =============================================================================
# GeneralLedger facade (real commits, rows deleted at teardown)
# =============================================================================


@pytest.fixture
def publisher() -> InMemoryPublisher:
    return InMemoryPublisher()


@pytest.fixture
def ledger(db_tables, db_engine, deterministic_clock, publisher) -> Generator[GeneralLedger, None, None]:
    """A GeneralLedger whose every call commits.  Do not mix with ``session``."""
    gl = GeneralLedger(
        session_factory=get_session_factory(),
        config=LedgerConfig(),
        clock=deterministic_clock,
        publisher=publisher,
    )
    try:
        yield gl
    finally:
        _delete_all_rows(db_engine)


@pytest.fixture
def seeded_ledger(ledger, test_actor_id) -> GeneralLedger:
    """Ledger with the test chart and June 2024 open."""
    for code, name, account_type in TEST_CHART:
        ledger.create_account(code, name, account_type, created_by=test_actor_id)
    ledger.create_period(2024, date(2024, 6, 1), date(2024, 6, 30), created_by=test_actor_id)
    return ledger
