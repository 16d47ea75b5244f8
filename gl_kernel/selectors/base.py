"""
Module: gl_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/dtos.py.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - Session ownership: the caller owns the session and its transaction.
    - No stored balances.  Every figure is summed from journal lines at
      query time.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from gl_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Selectors accept a Session from the caller and only read through it."""

    def __init__(self, session: Session):
        self.session = session
