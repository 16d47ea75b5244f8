"""
BaseService -- abstract base for all ledger write services.

Responsibility:
    Provides the common constructor and session-handling contract.  Every
    service receives a SQLAlchemy ``Session`` and persists through
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    Transaction boundaries belong to the caller (``session_scope`` or the
    GeneralLedger facade).  A post, reversal or close therefore lands fully
    or not at all.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from gl_kernel.config import LedgerConfig
from gl_kernel.db.base import Base
from gl_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all ledger services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide report queries -- those belong in selectors/.
    """

    def __init__(
        self,
        session: Session,
        config: LedgerConfig | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.config = config or LedgerConfig()
        self._clock = clock or SystemClock()

    @property
    def places(self) -> int:
        return self.config.minor_unit_places
