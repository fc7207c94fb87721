"""
Stock-transaction policy.

Pure business rules for inventory movements: which types need accounting,
the request limits every movement must meet, and supervisor-approval
thresholds.  Validators return a PolicyDecision instead of raising; the
recorder turns a rejection into InvalidMovementError.
"""

from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.domain.posting_rules import resolve_posting_rule
from ledger_kernel.models.movement import MovementType
from ledger_modules.inventory.config import DEFAULT_INVENTORY_POLICY, InventoryPolicyConfig


@dataclass(frozen=True)
class PolicyDecision:
    is_valid: bool
    error_message: str | None = None

    @classmethod
    def ok(cls) -> "PolicyDecision":
        return cls(True)

    @classmethod
    def reject(cls, message: str) -> "PolicyDecision":
        return cls(False, message)


def requires_accounting_entry(movement_type: MovementType, quantity: int = 0) -> bool:
    """True when the posting rules produce a journal entry for this movement."""
    return resolve_posting_rule(movement_type, quantity) is not None


def is_valid_notes(
    notes: str | None,
    config: InventoryPolicyConfig = DEFAULT_INVENTORY_POLICY,
) -> bool:
    """Notes are optional; when present they must fit max_notes_length."""
    if notes is None or not notes.strip():
        return True
    return len(notes) <= config.max_notes_length


def requires_supervisor_approval(
    movement_type: MovementType,
    quantity: int,
    total_cost: Decimal,
    config: InventoryPolicyConfig = DEFAULT_INVENTORY_POLICY,
) -> bool:
    movement_type = MovementType(movement_type)
    if total_cost > config.approval_value_threshold:
        return True
    if abs(quantity) > config.approval_quantity_threshold:
        return True
    if movement_type == MovementType.LOSS:
        return True
    if (
        movement_type == MovementType.ADJUSTMENT
        and abs(quantity) > config.approval_adjustment_quantity
    ):
        return True
    return False


def validate_movement_request(
    quantity: int,
    unit_cost: Decimal,
    notes: str | None,
    config: InventoryPolicyConfig = DEFAULT_INVENTORY_POLICY,
) -> PolicyDecision:
    """Checks applied to every movement before it is stored."""
    if unit_cost < 0:
        return PolicyDecision.reject("Unit cost cannot be negative")
    if unit_cost > config.max_unit_cost:
        return PolicyDecision.reject(
            f"Unit cost exceeds maximum allowed ({config.max_unit_cost})"
        )
    if abs(quantity) > config.max_transaction_quantity:
        return PolicyDecision.reject(
            f"Quantity exceeds maximum allowed ({config.max_transaction_quantity})"
        )
    if not is_valid_notes(notes, config):
        return PolicyDecision.reject(
            f"Notes exceed maximum length ({config.max_notes_length})"
        )
    return PolicyDecision.ok()
