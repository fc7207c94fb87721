"""
Module: ledger_kernel.selectors.movement_selector
Responsibility: Read-only queries over inventory movements.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Listings are newest first (movement_date descending).
    - get_by_period() includes both bounds.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.models.movement import InventoryMovement, MovementType
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class MovementDTO:
    id: UUID
    movement_number: str
    movement_date: datetime
    movement_type: MovementType
    product_id: UUID
    product_sku: str
    product_name: str
    from_location: str | None
    to_location: str | None
    quantity: int
    unit_cost: Decimal
    total_cost: Decimal
    order_id: UUID | None
    document_number: str | None
    notes: str | None
    journal_entry_id: UUID | None
    created_by_id: UUID

    @property
    def is_posted(self) -> bool:
        return self.journal_entry_id is not None


class MovementSelector(BaseSelector):
    """Movement history lookups."""

    @staticmethod
    def to_dto(movement: InventoryMovement) -> MovementDTO:
        return MovementDTO(
            id=movement.id,
            movement_number=movement.movement_number,
            movement_date=movement.movement_date,
            movement_type=movement.movement_type,
            product_id=movement.product_id,
            product_sku=movement.product_sku,
            product_name=movement.product_name,
            from_location=movement.from_location,
            to_location=movement.to_location,
            quantity=movement.quantity,
            unit_cost=movement.unit_cost,
            total_cost=movement.total_cost,
            order_id=movement.order_id,
            document_number=movement.document_number,
            notes=movement.notes,
            journal_entry_id=movement.journal_entry_id,
            created_by_id=movement.created_by_id,
        )

    def get(self, movement_id: UUID) -> MovementDTO | None:
        movement = self.session.get(InventoryMovement, movement_id)
        return self.to_dto(movement) if movement is not None else None

    def get_by_number(self, movement_number: str) -> MovementDTO | None:
        movement = self.session.execute(
            select(InventoryMovement).where(
                InventoryMovement.movement_number == movement_number
            )
        ).scalar_one_or_none()
        return self.to_dto(movement) if movement is not None else None

    def get_by_product(self, product_id: UUID) -> list[MovementDTO]:
        """Every movement of one product, newest first."""
        movements = self.session.execute(
            select(InventoryMovement)
            .where(InventoryMovement.product_id == product_id)
            .order_by(InventoryMovement.movement_date.desc())
        ).scalars()
        return [self.to_dto(m) for m in movements]

    def get_by_period(self, start: datetime, end: datetime) -> list[MovementDTO]:
        """Movements dated within [start, end], newest first."""
        movements = self.session.execute(
            select(InventoryMovement)
            .where(
                InventoryMovement.movement_date >= start,
                InventoryMovement.movement_date <= end,
            )
            .order_by(InventoryMovement.movement_date.desc())
        ).scalars()
        return [self.to_dto(m) for m in movements]

    def get_unposted(self) -> list[MovementDTO]:
        """Movements that carry no journal entry, oldest first."""
        movements = self.session.execute(
            select(InventoryMovement)
            .where(InventoryMovement.journal_entry_id.is_(None))
            .order_by(InventoryMovement.movement_date)
        ).scalars()
        return [self.to_dto(m) for m in movements]
