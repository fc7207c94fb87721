"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and their postings -- the
    double-entry record produced for every accounting-relevant inventory
    movement.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - entry_number is unique (uq_journal_entry_number).
    - Sum of debit postings == sum of credit postings == total_amount
      (asserted by JournalPostingEngine before flush; is_balanced is the
      read-side check).
    - Immutable once created (ORM listeners in db/immutability.py).

Failure modes:
    - IntegrityError on duplicate entry_number.
    - ImmutabilityViolationError on UPDATE/DELETE of an entry or posting.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import StrEnumType, TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account


class LineSide(str, Enum):
    """Which side of the entry a posting is on.

    Guarantees: amount is always positive; side determines sign convention.
    """

    DEBIT = "debit"
    CREDIT = "credit"


class JournalEntry(TrackedBase):
    """
    Journal entry header -- one balanced accounting event.

    Contract:
        Created fully formed (is_posted=True, posted_at set) together with
        its postings in a single unit of work.  Never updated afterwards.

    Guarantees:
        - Exactly one entry per posted movement (inventory_movement_id).
        - document_number is the movement's document number, or its
          movement number when none was supplied.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("entry_number", name="uq_journal_entry_number"),
        Index("idx_journal_entry_date", "entry_date"),
        Index("idx_journal_movement", "inventory_movement_id"),
    )

    entry_number: Mapped[str] = mapped_column(String(50), nullable=False)

    entry_date: Mapped[datetime] = mapped_column(nullable=False)

    # PURCHASE, COGS, SALE_RETURN, PURCHASE_RETURN, ADJUSTMENT, LOSS
    document_type: Mapped[str] = mapped_column(String(30), nullable=False)

    document_number: Mapped[str] = mapped_column(String(100), nullable=False)

    # Human-readable history line
    description: Mapped[str] = mapped_column(String(500), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    product_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    order_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # Plain reference; inventory_movements.journal_entry_id holds the FK
    inventory_movement_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    is_posted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    posted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    postings: Mapped[list["JournalPosting"]] = relationship(
        back_populates="entry",
        lazy="selectin",
        order_by="JournalPosting.line_seq",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} {self.document_type}>"

    @property
    def total_debits(self) -> Decimal:
        return sum(
            (p.amount for p in self.postings if p.side == LineSide.DEBIT),
            Decimal("0"),
        )

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (p.amount for p in self.postings if p.side == LineSide.CREDIT),
            Decimal("0"),
        )

    @property
    def is_balanced(self) -> bool:
        """True iff debits == credits == total_amount."""
        return self.total_debits == self.total_credits == self.total_amount


class JournalPosting(TrackedBase):
    """
    Individual debit or credit line within a journal entry.

    Contract:
        Belongs to exactly one JournalEntry, references exactly one Account,
        and records a positive amount on one side.  Created in balanced
        pairs; immutable.
    """

    __tablename__ = "journal_postings"

    __table_args__ = (
        Index("idx_posting_entry", "journal_entry_id"),
        Index("idx_posting_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    side: Mapped[LineSide] = mapped_column(StrEnumType(LineSide, 10), nullable=False)

    # Always positive; side determines debit/credit
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    # Location the movement touched (to_location, else from_location)
    cost_center: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Ordering within the entry: debit first
    line_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    entry: Mapped["JournalEntry"] = relationship(back_populates="postings")

    account: Mapped["Account"] = relationship(back_populates="postings")

    def __repr__(self) -> str:
        return f"<JournalPosting {self.side.value} {self.amount}>"

    @property
    def signed_amount(self) -> Decimal:
        """Debit positive, credit negative."""
        return self.amount if self.side == LineSide.DEBIT else -self.amount
