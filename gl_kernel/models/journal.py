"""
Module: gl_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal lines -- the
    single source of financial truth for the ledger.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Every line carries exactly one positive amount, on the debit or the
      credit side (ck_journal_line_one_side).
    - seq and entry_number are unique and assigned only at posting.
    - reversal_of_id is unique: an original has at most one reversal.
    - Immutability after POSTED (db/immutability.py): the only later change
      is the POSTED -> REVERSED stamp.

Failure modes:
    - IntegrityError on a duplicate seq/entry_number or a second reversal.
    - ImmutabilityViolationError on UPDATE/DELETE of a posted entry or line.

Audit relevance:
    JournalEntry and JournalLine rows are the authoritative financial record.
    Every report derives from these rows.
"""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gl_kernel.db.base import Base, TrackedBase, UUIDString

if TYPE_CHECKING:
    from gl_kernel.models.account import Account


class JournalEntryStatus(str, Enum):
    """Lifecycle status of a journal entry.

    Contract: Transitions are one-way: DRAFT -> POSTED -> REVERSED.
    """

    DRAFT = "draft"
    POSTED = "posted"
    REVERSED = "reversed"


# Statuses whose lines count toward balances and reports
LEDGER_STATUSES = (JournalEntryStatus.POSTED, JournalEntryStatus.REVERSED)


class JournalEntry(TrackedBase):
    """
    Journal entry header.

    Contract:
        A DRAFT may be edited or discarded.  POSTED and REVERSED entries are
        permanent; their lines never change.  A reversal entry is itself
        POSTED and points back through reversal_of_id.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("seq", name="uq_journal_seq"),
        UniqueConstraint("entry_number", name="uq_journal_entry_number"),
        UniqueConstraint("reversal_of_id", name="uq_journal_reversal_of"),
        Index("idx_journal_entry_date", "entry_date"),
        Index("idx_journal_status", "status"),
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    status: Mapped[JournalEntryStatus] = mapped_column(
        SAEnum(
            JournalEntryStatus,
            native_enum=False,
            length=10,
            values_callable=lambda e: [m.value for m in e],
        ),
        default=JournalEntryStatus.DRAFT,
        nullable=False,
    )

    # Posting order, allocated from the sequence counter at posting time
    seq: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
    )

    entry_number: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )

    period_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_periods.id"),
        nullable=True,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    posted_by: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    reversal_reason: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    reversed_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    reversed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.line_order",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        label = self.entry_number or str(self.id)
        return f"<JournalEntry {label} status={self.status.value}>"

    @property
    def is_draft(self) -> bool:
        return self.status == JournalEntryStatus.DRAFT

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    @property
    def is_reversed(self) -> bool:
        return self.status == JournalEntryStatus.REVERSED

    @property
    def is_reversal(self) -> bool:
        return self.reversal_of_id is not None

    @property
    def total_debits(self) -> int:
        """Sum of debit amounts in minor units."""
        return sum(line.debit_amount for line in self.lines)

    @property
    def total_credits(self) -> int:
        """Sum of credit amounts in minor units."""
        return sum(line.credit_amount for line in self.lines)

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits


class JournalLine(Base):
    """
    Individual debit or credit line within a journal entry.

    Contract:
        Exactly one of debit_amount/credit_amount is positive, the other is
        zero.  A line has no identity outside its entry.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        CheckConstraint(
            "debit_amount >= 0 AND credit_amount >= 0",
            name="ck_journal_line_non_negative",
        ),
        CheckConstraint(
            "(debit_amount > 0 AND credit_amount = 0) "
            "OR (debit_amount = 0 AND credit_amount > 0)",
            name="ck_journal_line_one_side",
        ),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id", ondelete="CASCADE"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    # Minor units
    debit_amount: Mapped[int] = mapped_column(
        BigInteger,
        default=0,
        nullable=False,
    )

    credit_amount: Mapped[int] = mapped_column(
        BigInteger,
        default=0,
        nullable=False,
    )

    memo: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    line_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    entry: Mapped["JournalEntry"] = relationship(
        back_populates="lines",
    )

    account: Mapped["Account"] = relationship(
        lazy="joined",
    )

    def __repr__(self) -> str:
        side = "Dr" if self.is_debit else "Cr"
        return f"<JournalLine {side} {self.amount} account={self.account_id}>"

    @property
    def is_debit(self) -> bool:
        return self.debit_amount > 0

    @property
    def is_credit(self) -> bool:
        return self.credit_amount > 0

    @property
    def amount(self) -> int:
        return self.debit_amount or self.credit_amount
