"""
Module: ledger_kernel.models.movement
Responsibility: ORM persistence for inventory movements -- the source record
    every journal entry and financial transaction is derived from.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - movement_number is unique (uq_movement_number).
    - total_cost == |quantity| * unit_cost, fixed at creation.
    - Only journal_entry_id and notes change after creation (ORM listeners
      in db/immutability.py).

Failure modes:
    - IntegrityError on duplicate movement_number.
    - ImmutabilityViolationError on changes to any other field, or delete.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import StrEnumType, TrackedBase, UUIDString


class MovementType(str, Enum):
    """Kinds of inventory change."""

    PURCHASE = "purchase"
    SALE = "sale"
    SALE_RETURN = "sale_return"
    PURCHASE_RETURN = "purchase_return"
    ADJUSTMENT = "adjustment"
    TRANSFER = "transfer"
    LOSS = "loss"
    RESERVATION = "reservation"
    RESERVATION_RELEASE = "reservation_release"
    FULFILLMENT = "fulfillment"

    @property
    def number_prefix(self) -> str:
        """Prefix used for this type's movement numbers."""
        return _MOVEMENT_PREFIXES[self]


_MOVEMENT_PREFIXES: dict[MovementType, str] = {
    MovementType.PURCHASE: "PURCH",
    MovementType.SALE: "SALE",
    MovementType.SALE_RETURN: "SALERET",
    MovementType.PURCHASE_RETURN: "PURRET",
    MovementType.ADJUSTMENT: "ADJ",
    MovementType.TRANSFER: "TRAN",
    MovementType.LOSS: "LOSS",
    MovementType.RESERVATION: "RES",
    MovementType.RESERVATION_RELEASE: "REL",
    MovementType.FULFILLMENT: "FULL",
}

# Fields that may change after the movement is stored
MUTABLE_MOVEMENT_FIELDS = frozenset({"journal_entry_id", "notes"})


class InventoryMovement(TrackedBase):
    """
    A single inventory change.

    Contract:
        Persisted (and committed) before any accounting is attempted.  A
        movement whose type requires accounting ends either linked to one
        journal entry or unlinked with an "Accounting error" note.

    Guarantees:
        - quantity is signed (negative = outbound).
        - total_cost is always non-negative.
    """

    __tablename__ = "inventory_movements"

    __table_args__ = (
        UniqueConstraint("movement_number", name="uq_movement_number"),
        Index("idx_movement_product", "product_id"),
        Index("idx_movement_date", "movement_date"),
        Index("idx_movement_type", "movement_type"),
    )

    movement_number: Mapped[str] = mapped_column(String(50), nullable=False)

    movement_date: Mapped[datetime] = mapped_column(nullable=False)

    movement_type: Mapped[MovementType] = mapped_column(
        StrEnumType(MovementType, 30),
        nullable=False,
    )

    product_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    product_sku: Mapped[str] = mapped_column(String(100), nullable=False)

    product_name: Mapped[str] = mapped_column(String(255), nullable=False)

    from_location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    to_location: Mapped[str | None] = mapped_column(String(100), nullable=True)

    quantity: Mapped[int] = mapped_column(nullable=False)

    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)

    total_cost: Mapped[Decimal] = mapped_column(nullable=False)

    order_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    document_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    journal_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<InventoryMovement {self.movement_number} {self.movement_type.value}>"

    @property
    def cost_center(self) -> str | None:
        """Location charged by the posting: destination, else origin."""
        return self.to_location or self.from_location

    @property
    def reference_number(self) -> str:
        """Document number, falling back to the movement number."""
        return self.document_number or self.movement_number
