"""
Inventory Policy Configuration Schema.

Limits used by the stock-transaction policy.  Defaults match the values
the warehouse has always used; override per deployment through
``ledger_config`` (``inventory_policy`` section).
"""

from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.inventory.config")


@dataclass(frozen=True)
class InventoryPolicyConfig:
    """
    Configuration schema for stock-transaction validation.

        config = InventoryPolicyConfig(max_transaction_quantity=50_000)
    """

    max_unit_cost: Decimal = Decimal("1000000")

    max_transaction_quantity: int = 100_000

    max_notes_length: int = 500

    # Supervisor approval thresholds
    approval_value_threshold: Decimal = Decimal("50000")
    approval_quantity_threshold: int = 1_000
    approval_adjustment_quantity: int = 100

    def __post_init__(self):
        if self.max_unit_cost < 0:
            raise ValueError("max_unit_cost cannot be negative")
        if self.max_transaction_quantity <= 0:
            raise ValueError("max_transaction_quantity must be positive")
        if self.max_notes_length <= 0:
            raise ValueError("max_notes_length must be positive")

    @classmethod
    def from_mapping(cls, values: dict) -> "InventoryPolicyConfig":
        """Build from a plain mapping (YAML section); unknown keys are rejected."""
        unknown = set(values) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown inventory policy settings: {sorted(unknown)}")
        coerced = {}
        for key, value in values.items():
            if cls.__dataclass_fields__[key].type in (Decimal, "Decimal"):
                value = Decimal(str(value))
            coerced[key] = value
        return cls(**coerced)


DEFAULT_INVENTORY_POLICY = InventoryPolicyConfig()
