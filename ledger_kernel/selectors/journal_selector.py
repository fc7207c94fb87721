"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only query access to journal entries and their postings.
    Converts ORM models to frozen DTOs.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Postings are sorted by line_seq (debit first).

Failure modes:
    - Returns None or an empty list when nothing matches; never raises on
      absence of data.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.models.journal import JournalEntry, JournalPosting, LineSide
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class JournalPostingDTO:
    id: UUID
    journal_entry_id: UUID
    account_id: UUID
    side: LineSide
    amount: Decimal
    description: str
    cost_center: str | None
    line_seq: int


@dataclass(frozen=True)
class JournalEntryDTO:
    id: UUID
    entry_number: str
    entry_date: datetime
    document_type: str
    document_number: str
    description: str
    total_amount: Decimal
    product_id: UUID | None
    order_id: UUID | None
    inventory_movement_id: UUID | None
    is_posted: bool
    posted_at: datetime | None
    postings: tuple[JournalPostingDTO, ...]

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
        return self.total_debits == self.total_credits == self.total_amount


class JournalSelector(BaseSelector):
    """
    Selector for journal entry queries.

    Guarantees:
        - Read-only.
        - Postings load eagerly (selectin) with their entry.

    Non-goals:
        - Does NOT compute account balances; use LedgerSelector.
    """

    @staticmethod
    def posting_to_dto(posting: JournalPosting) -> JournalPostingDTO:
        return JournalPostingDTO(
            id=posting.id,
            journal_entry_id=posting.journal_entry_id,
            account_id=posting.account_id,
            side=posting.side,
            amount=posting.amount,
            description=posting.description,
            cost_center=posting.cost_center,
            line_seq=posting.line_seq,
        )

    def to_dto(self, entry: JournalEntry) -> JournalEntryDTO:
        postings = sorted(entry.postings, key=lambda p: p.line_seq)
        return JournalEntryDTO(
            id=entry.id,
            entry_number=entry.entry_number,
            entry_date=entry.entry_date,
            document_type=entry.document_type,
            document_number=entry.document_number,
            description=entry.description,
            total_amount=entry.total_amount,
            product_id=entry.product_id,
            order_id=entry.order_id,
            inventory_movement_id=entry.inventory_movement_id,
            is_posted=entry.is_posted,
            posted_at=entry.posted_at,
            postings=tuple(self.posting_to_dto(p) for p in postings),
        )

    def get_entry(self, entry_id: UUID) -> JournalEntryDTO | None:
        entry = self.session.get(JournalEntry, entry_id)
        return self.to_dto(entry) if entry is not None else None

    def get_postings(self, entry_id: UUID) -> list[JournalPostingDTO]:
        postings = self.session.execute(
            select(JournalPosting)
            .where(JournalPosting.journal_entry_id == entry_id)
            .order_by(JournalPosting.line_seq)
        ).scalars()
        return [self.posting_to_dto(p) for p in postings]

    def get_by_movement(self, movement_id: UUID) -> list[JournalEntryDTO]:
        entries = self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.inventory_movement_id == movement_id)
            .order_by(JournalEntry.entry_date)
        ).scalars()
        return [self.to_dto(e) for e in entries]

    def count_entries(self) -> int:
        return self.session.scalar(select(func.count()).select_from(JournalEntry)) or 0
