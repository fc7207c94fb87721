"""
Inventory Recording Result Models (``ledger_modules.inventory.models``).

Responsibility
--------------
Typed results of the three recording stages.  A stage either succeeded,
was skipped (nothing to do for this movement type), or failed in a way the
recorder absorbed.  Fatal failures are never represented here; they are
raised.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from ledger_kernel.models.movement import InventoryMovement, MovementType


class RecordingStage(str, Enum):
    PERSIST = "persist"
    POSTING = "posting"
    FINANCIAL = "financial"


class StageStatus(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class MovementRef:
    """Identity of a stored movement, captured before any stage can expire it."""

    id: UUID
    movement_number: str
    movement_type: MovementType
    product_id: UUID

    @classmethod
    def of(cls, movement: InventoryMovement) -> "MovementRef":
        return cls(movement.id, movement.movement_number, movement.movement_type, movement.product_id)


@dataclass(frozen=True)
class StageOutcome:
    """
    Result of one recording stage.

    Guarantees:
        - error_code and message are set only when status is FAILED.
    """

    stage: RecordingStage
    status: StageStatus
    movement_id: UUID
    movement_type: MovementType
    product_id: UUID
    error_code: str | None = None
    message: str | None = None

    @classmethod
    def succeeded(cls, stage: RecordingStage, ref: MovementRef) -> "StageOutcome":
        return cls(stage, StageStatus.SUCCEEDED, ref.id, ref.movement_type, ref.product_id)

    @classmethod
    def skipped(cls, stage: RecordingStage, ref: MovementRef) -> "StageOutcome":
        return cls(stage, StageStatus.SKIPPED, ref.id, ref.movement_type, ref.product_id)

    @classmethod
    def failure(
        cls,
        stage: RecordingStage,
        ref: MovementRef,
        error: Exception,
    ) -> "StageOutcome":
        return cls(
            stage,
            StageStatus.FAILED,
            ref.id,
            ref.movement_type,
            ref.product_id,
            error_code=getattr(error, "code", type(error).__name__),
            message=str(error),
        )

    @property
    def is_failure(self) -> bool:
        return self.status == StageStatus.FAILED


@dataclass(frozen=True)
class MovementRecordingResult:
    """The stored movement plus what happened in the accounting stages."""

    movement: InventoryMovement
    posting: StageOutcome
    financial: StageOutcome
    requires_approval: bool = False

    @property
    def journal_entry_id(self) -> UUID | None:
        return self.movement.journal_entry_id

    @property
    def is_fully_recorded(self) -> bool:
        return not (self.posting.is_failure or self.financial.is_failure)
