"""
Tests for the stock-transaction policy.

Covers:
- Which movement types need a journal entry
- Supervisor approval thresholds
- Request limits applied before a movement is stored
"""

from decimal import Decimal

import pytest

from ledger_kernel.domain.posting_rules import resolve_posting_rule
from ledger_kernel.models.movement import MovementType
from ledger_modules.inventory.config import InventoryPolicyConfig
from ledger_modules.inventory.policy import (
    is_valid_notes,
    requires_accounting_entry,
    requires_supervisor_approval,
    validate_movement_request,
)


class TestClassification:

    @pytest.mark.parametrize(
        "movement_type,expected",
        [
            (MovementType.PURCHASE, True),
            (MovementType.SALE, True),
            (MovementType.FULFILLMENT, True),
            (MovementType.LOSS, True),
            (MovementType.TRANSFER, False),
            (MovementType.RESERVATION, False),
            (MovementType.RESERVATION_RELEASE, False),
        ],
    )
    def test_requires_accounting_entry(self, movement_type, expected):
        assert requires_accounting_entry(movement_type) is expected

    @pytest.mark.parametrize("movement_type", list(MovementType))
    @pytest.mark.parametrize("quantity", [-5, 0, 5])
    def test_agrees_with_posting_rules(self, movement_type, quantity):
        expected = resolve_posting_rule(movement_type, quantity) is not None

        assert requires_accounting_entry(movement_type, quantity) is expected

    def test_notes(self):
        assert is_valid_notes(None)
        assert is_valid_notes("   ")
        assert is_valid_notes("x" * 500)
        assert not is_valid_notes("x" * 501)


class TestSupervisorApproval:

    def test_small_purchase(self):
        assert not requires_supervisor_approval(MovementType.PURCHASE, 10, Decimal("100"))

    def test_high_value(self):
        assert requires_supervisor_approval(MovementType.PURCHASE, 1, Decimal("50000.01"))

    def test_high_quantity(self):
        assert requires_supervisor_approval(MovementType.SALE, 1001, Decimal("10"))

    def test_outbound_quantity_counts_by_size(self):
        assert requires_supervisor_approval(MovementType.SALE, -1001, Decimal("10"))

    def test_every_loss(self):
        assert requires_supervisor_approval(MovementType.LOSS, 1, Decimal("1"))

    def test_large_adjustment(self):
        assert requires_supervisor_approval(MovementType.ADJUSTMENT, -101, Decimal("1"))
        assert not requires_supervisor_approval(MovementType.ADJUSTMENT, -100, Decimal("1"))

    def test_custom_thresholds(self):
        config = InventoryPolicyConfig(approval_value_threshold=Decimal("10"))

        assert requires_supervisor_approval(MovementType.PURCHASE, 1, Decimal("11"), config)


class TestMovementRequest:

    def test_negative_cost(self):
        assert validate_movement_request(1, Decimal("-0.01"), None).error_message == (
            "Unit cost cannot be negative"
        )

    def test_zero_cost_allowed(self):
        assert validate_movement_request(1, Decimal("0"), None).is_valid

    def test_unit_cost_ceiling(self):
        assert validate_movement_request(1, Decimal("1000000"), None).is_valid
        assert validate_movement_request(1, Decimal("1000000.01"), None).error_message == (
            "Unit cost exceeds maximum allowed (1000000)"
        )

    @pytest.mark.parametrize("quantity", [100_001, -100_001])
    def test_quantity_ceiling(self, quantity):
        decision = validate_movement_request(quantity, Decimal("1"), None)

        assert not decision.is_valid
        assert decision.error_message == "Quantity exceeds maximum allowed (100000)"

    def test_limits_from_config(self):
        config = InventoryPolicyConfig(max_notes_length=10, max_transaction_quantity=5)

        assert not validate_movement_request(1, Decimal("1"), "x" * 11, config).is_valid
        assert not validate_movement_request(-6, Decimal("1"), None, config).is_valid
        assert validate_movement_request(-5, Decimal("1"), None, config).is_valid
