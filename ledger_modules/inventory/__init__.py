"""
Inventory Movements Module.

Records inventory movements, posts their journal entries, and cascades
purchases and sales into financial transactions.  Request validation
comes from the stock-transaction policy.
"""

from ledger_modules.inventory.config import InventoryPolicyConfig
from ledger_modules.inventory.models import (
    MovementRecordingResult,
    RecordingStage,
    StageOutcome,
    StageStatus,
)
from ledger_modules.inventory.policy import PolicyDecision
from ledger_modules.inventory.service import InventoryTransactionRecorder

__all__ = [
    "InventoryPolicyConfig",
    "InventoryTransactionRecorder",
    "MovementRecordingResult",
    "PolicyDecision",
    "RecordingStage",
    "StageOutcome",
    "StageStatus",
]
