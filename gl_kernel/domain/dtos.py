"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the ledger's boundary:
    LineSpec (caller input), AccountInfo, FiscalPeriodInfo, JournalLineInfo,
    and the two journal entry read shapes, DraftJournalEntry and
    PostedJournalEntry.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods exist as boundary converters but are only
    invoked from the service layer (never from domain logic).

Invariants enforced:
    - Draft and posted entries are distinct types.  Draft-editing paths take
      and return DraftJournalEntry only; a PostedJournalEntry has no editing
      path at all, so "forgot to check status" cannot happen at a call site.
    - Amounts leave the kernel as Decimal in major units, quantized to the
      ledger's minor unit.  Never float.

Data flow:
    LineSpec -> (validation) -> JournalLine rows -> DraftJournalEntry
             -> (posting) -> PostedJournalEntry
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Union
from uuid import UUID

from gl_kernel.db.types import AmountLike, from_minor_units
from gl_kernel.models.account import AccountType, NormalBalance
from gl_kernel.models.fiscal_period import PeriodStatus
from gl_kernel.models.journal import JournalEntryStatus

if TYPE_CHECKING:
    from gl_kernel.models.account import Account as AccountModel
    from gl_kernel.models.fiscal_period import FiscalPeriod as FiscalPeriodModel
    from gl_kernel.models.journal import JournalEntry as JournalEntryModel
    from gl_kernel.models.journal import JournalLine as JournalLineModel

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LineSpec:
    """
    Specification for one journal line, as supplied by the caller.

    Contract:
        Names the account by code and carries raw debit/credit amounts in
        major units.  Nothing is validated here; JournalService validates
        the full line set and reports the first violation.

    Use the ``debit()`` / ``credit()`` constructors for single-sided lines.
    """

    account_code: str
    debit_amount: AmountLike = 0
    credit_amount: AmountLike = 0
    memo: str | None = None

    @classmethod
    def debit(cls, account_code: str, amount: AmountLike, memo: str | None = None) -> LineSpec:
        return cls(account_code=account_code, debit_amount=amount, memo=memo)

    @classmethod
    def credit(cls, account_code: str, amount: AmountLike, memo: str | None = None) -> LineSpec:
        return cls(account_code=account_code, credit_amount=amount, memo=memo)


@dataclass(frozen=True)
class AccountInfo:
    """
    Pure domain representation of an account.

    Guarantees:
        - normal_balance always agrees with account_type.
    """

    id: UUID
    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    is_active: bool
    is_system: bool = False
    description: str | None = None
    parent_id: UUID | None = None

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            account_type=AccountType(model.account_type),
            normal_balance=model.normal_balance,
            is_active=model.is_active,
            is_system=model.is_system,
            description=model.description,
            parent_id=model.parent_id,
        )


@dataclass(frozen=True)
class FiscalPeriodInfo:
    """Immutable snapshot of fiscal period state."""

    id: UUID
    fiscal_year: int
    name: str
    start_date: date
    end_date: date
    status: PeriodStatus
    closed_at: datetime | None = None
    closed_by: str | None = None

    @property
    def is_open(self) -> bool:
        return self.status == PeriodStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return self.status == PeriodStatus.CLOSED

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this period (inclusive bounds)."""
        return self.start_date <= check_date <= self.end_date

    @classmethod
    def from_model(cls, model: FiscalPeriodModel) -> FiscalPeriodInfo:
        return cls(
            id=model.id,
            fiscal_year=model.fiscal_year,
            name=model.name,
            start_date=model.start_date,
            end_date=model.end_date,
            status=PeriodStatus(model.status),
            closed_at=model.closed_at,
            closed_by=model.closed_by,
        )


@dataclass(frozen=True)
class JournalLineInfo:
    """One line of a journal entry.  Exactly one of debit/credit is non-zero."""

    line_order: int
    account_id: UUID
    account_code: str
    debit: Decimal
    credit: Decimal
    memo: str | None = None

    @property
    def is_debit(self) -> bool:
        return self.debit > _ZERO

    @classmethod
    def from_model(cls, model: JournalLineModel, places: int = 2) -> JournalLineInfo:
        return cls(
            line_order=model.line_order,
            account_id=model.account_id,
            account_code=model.account.code,
            debit=from_minor_units(model.debit_amount, places),
            credit=from_minor_units(model.credit_amount, places),
            memo=model.memo,
        )


def _lines_from_model(model: JournalEntryModel, places: int) -> tuple[JournalLineInfo, ...]:
    return tuple(
        JournalLineInfo.from_model(line, places)
        for line in sorted(model.lines, key=lambda x: x.line_order)
    )


@dataclass(frozen=True)
class DraftJournalEntry:
    """
    A journal entry that has not been posted.

    Contract:
        Mutable only through JournalService.update_draft_entry; this value is
        a snapshot.  Carries no entry number -- numbers are assigned at
        posting, so abandoned drafts leave no gaps.
    """

    id: UUID
    entry_date: date
    description: str
    lines: tuple[JournalLineInfo, ...]
    created_by: str
    created_at: datetime | None = None

    @property
    def status(self) -> JournalEntryStatus:
        return JournalEntryStatus.DRAFT

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), _ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), _ZERO)

    @classmethod
    def from_model(cls, model: JournalEntryModel, places: int = 2) -> DraftJournalEntry:
        if model.status != JournalEntryStatus.DRAFT:
            raise ValueError(f"Entry {model.id} is {model.status.value}, not draft")
        return cls(
            id=model.id,
            entry_date=model.entry_date,
            description=model.description,
            lines=_lines_from_model(model, places),
            created_by=model.created_by,
            created_at=model.created_at,
        )


@dataclass(frozen=True)
class PostedJournalEntry:
    """
    A posted journal entry -- permanent financial record.

    Contract:
        status is POSTED or REVERSED.  A REVERSED entry points to its
        reversing entry through reversed_by_id; a reversing entry points to
        its original through reversal_of_id.

    Guarantees:
        - sum(debit) == sum(credit) across lines.
        - entry_number and seq are always present.
    """

    id: UUID
    entry_number: str
    seq: int
    entry_date: date
    description: str
    status: JournalEntryStatus
    lines: tuple[JournalLineInfo, ...]
    created_by: str
    posted_by: str
    posted_at: datetime
    period_id: UUID | None = None
    reversal_of_id: UUID | None = None
    reversal_reason: str | None = None
    reversed_by_id: UUID | None = None
    reversed_at: datetime | None = None

    @property
    def is_reversed(self) -> bool:
        return self.status == JournalEntryStatus.REVERSED

    @property
    def is_reversal(self) -> bool:
        return self.reversal_of_id is not None

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), _ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), _ZERO)

    @classmethod
    def from_model(cls, model: JournalEntryModel, places: int = 2) -> PostedJournalEntry:
        if model.status == JournalEntryStatus.DRAFT:
            raise ValueError(f"Entry {model.id} is still a draft")
        return cls(
            id=model.id,
            entry_number=model.entry_number,
            seq=model.seq,
            entry_date=model.entry_date,
            description=model.description,
            status=JournalEntryStatus(model.status),
            lines=_lines_from_model(model, places),
            created_by=model.created_by,
            posted_by=model.posted_by,
            posted_at=model.posted_at,
            period_id=model.period_id,
            reversal_of_id=model.reversal_of_id,
            reversal_reason=model.reversal_reason,
            reversed_by_id=model.reversed_by_id,
            reversed_at=model.reversed_at,
        )


JournalEntryInfo = Union[DraftJournalEntry, PostedJournalEntry]


def entry_from_model(model: JournalEntryModel, places: int = 2) -> JournalEntryInfo:
    """Convert an entry row to the read shape matching its status."""
    if model.status == JournalEntryStatus.DRAFT:
        return DraftJournalEntry.from_model(model, places)
    return PostedJournalEntry.from_model(model, places)
