"""
InventoryTransactionRecorder -- records an inventory movement and drives
its accounting.

Orchestrates three separately committed stages:

1. Persist the movement.  Failure is fatal: rolled back and raised as
   MovementPersistenceError.
2. For types the policy says need accounting, post the journal entry
   (JournalPostingEngine) in its own unit of work and link it to the
   movement.  Failure rolls back that unit only, appends
   " | Accounting error: {message}" to the movement's notes, commits the
   note, and carries on.
3. For purchases, sales and fulfillments that produced an entry, record the
   financial transactions (FinancialTransactionRecorder) in a third unit of
   work.  Failure rolls back that unit, is logged, and leaves the movement
   untouched.

Movements over the supervisor-approval thresholds are still recorded;
the result carries ``requires_approval`` and a warning is logged.

Stages 2 and 3 never undo an earlier stage.  Their results come back as
StageOutcome values on MovementRecordingResult; record_transaction()
returns just the movement, so callers detect an accounting failure through
``journal_entry_id is None`` and the notes.

Usage:
    recorder = InventoryTransactionRecorder(session, sequence, clock)
    movement = recorder.record_transaction(
        movement_type=MovementType.PURCHASE,
        product_id=product_id, product_sku="SKU-1", product_name="Widget",
        quantity=10, unit_cost=Decimal("5.00"), to_location="WH-1",
        actor_id=actor_id, document_number="PO-1001",
    )
"""

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_kernel.db.engine import unit_of_work
from ledger_kernel.db.types import round_money
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import InvalidMovementError, MovementPersistenceError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.models.movement import InventoryMovement, MovementType
from ledger_kernel.services.journal_posting import JournalPostingEngine
from ledger_kernel.services.sequence_service import (
    InMemorySequenceNumberGenerator,
    SequenceNumberGenerator,
)
from ledger_modules.financial.service import FinancialTransactionRecorder
from ledger_modules.inventory.config import DEFAULT_INVENTORY_POLICY, InventoryPolicyConfig
from ledger_modules.inventory.models import (
    MovementRecordingResult,
    MovementRef,
    RecordingStage,
    StageOutcome,
)
from ledger_modules.inventory.policy import (
    requires_accounting_entry,
    requires_supervisor_approval,
    validate_movement_request,
)

logger = get_logger("modules.inventory.service")

ACCOUNTING_ERROR_MARKER = "Accounting error"

# Column width of InventoryMovement.notes
NOTES_MAX_LENGTH = 2000

_FINANCIAL_TYPES = frozenset({
    MovementType.PURCHASE,
    MovementType.SALE,
    MovementType.FULFILLMENT,
})


class InventoryTransactionRecorder:
    """
    Records inventory movements and their accounting.

    Transaction boundary: this service commits.  Each stage is its own unit
    of work on the injected session; the session must not carry
    uncommitted work from the caller.
    """

    def __init__(
        self,
        session: Session,
        sequence: SequenceNumberGenerator | None = None,
        clock: Clock | None = None,
        posting_engine: JournalPostingEngine | None = None,
        financial_recorder: FinancialTransactionRecorder | None = None,
        policy: InventoryPolicyConfig = DEFAULT_INVENTORY_POLICY,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence = sequence or InMemorySequenceNumberGenerator(self._clock)
        self._policy = policy
        self._posting = posting_engine or JournalPostingEngine(
            session, self._sequence, self._clock
        )
        self._financial = financial_recorder or FinancialTransactionRecorder(
            session, self._sequence, self._clock
        )

    def record_transaction(self, **request) -> InventoryMovement:
        """
        Record a movement; see record_with_outcome() for the arguments.

        Returns the stored movement even when accounting failed.
        """
        return self.record_with_outcome(**request).movement

    def record_with_outcome(
        self,
        movement_type: MovementType,
        product_id: UUID,
        product_sku: str,
        product_name: str,
        quantity: int,
        unit_cost: Decimal,
        to_location: str | None,
        actor_id: UUID,
        from_location: str | None = None,
        order_id: UUID | None = None,
        document_number: str | None = None,
        notes: str | None = None,
    ) -> MovementRecordingResult:
        """
        Record a movement and report each accounting stage.

        Raises:
            InvalidMovementError: Unit cost or quantity outside the policy
                limits, or notes too long; nothing is stored.
            MovementPersistenceError: The movement could not be stored.
        """
        movement_type = MovementType(movement_type)
        unit_cost = Decimal(str(unit_cost))

        decision = validate_movement_request(quantity, unit_cost, notes, self._policy)
        if not decision.is_valid:
            logger.warning(
                "movement_rejected",
                extra={
                    "movement_type": movement_type.value,
                    "product_id": str(product_id),
                    "reason": decision.error_message,
                },
            )
            raise InvalidMovementError(movement_type.value, decision.error_message)

        total_cost = round_money(abs(quantity) * unit_cost)
        requires_approval = requires_supervisor_approval(
            movement_type, quantity, total_cost, self._policy
        )

        with LogContext.bind(actor_id=actor_id):
            movement = self._persist(
                movement_type=movement_type,
                product_id=product_id,
                product_sku=product_sku,
                product_name=product_name,
                quantity=quantity,
                unit_cost=unit_cost,
                total_cost=total_cost,
                to_location=to_location,
                from_location=from_location,
                order_id=order_id,
                document_number=document_number,
                notes=notes,
                actor_id=actor_id,
            )
            ref = MovementRef.of(movement)

            with LogContext.bind(movement_id=ref.id):
                entry, posting = self._post(movement, ref, quantity, actor_id)
                financial = self._record_financials(movement, entry, ref, actor_id)

                if requires_approval:
                    logger.warning(
                        "movement_requires_approval",
                        extra={
                            "movement_number": ref.movement_number,
                            "movement_type": ref.movement_type.value,
                            "quantity": quantity,
                            "total_cost": str(total_cost),
                        },
                    )

                logger.info(
                    "movement_recorded",
                    extra={
                        "movement_number": ref.movement_number,
                        "movement_type": ref.movement_type.value,
                        "product_id": str(ref.product_id),
                        "quantity": quantity,
                        "posting": posting.status.value,
                        "financial": financial.status.value,
                        "requires_approval": requires_approval,
                    },
                )

        return MovementRecordingResult(
            movement=movement,
            posting=posting,
            financial=financial,
            requires_approval=requires_approval,
        )

    # =========================================================================
    # Stage 1: persist
    # =========================================================================

    def _persist(self, actor_id: UUID, **fields) -> InventoryMovement:
        movement_type: MovementType = fields["movement_type"]
        movement_number = movement_type.number_prefix
        try:
            with unit_of_work(self._session):
                movement_number = self._sequence.next(movement_type.number_prefix)
                movement = InventoryMovement(
                    id=uuid4(),
                    movement_number=movement_number,
                    movement_date=self._clock.now(),
                    created_by_id=actor_id,
                    **fields,
                )
                self._session.add(movement)
        except SQLAlchemyError as exc:
            logger.error(
                "movement_persist_failed",
                extra={"movement_number": movement_number, "movement_type": movement_type.value},
                exc_info=True,
            )
            raise MovementPersistenceError(movement_number, str(exc)) from exc

        logger.info(
            "movement_persisted",
            extra={
                "movement_number": movement_number,
                "movement_id": str(movement.id),
                "total_cost": str(movement.total_cost),
            },
        )
        return movement

    # =========================================================================
    # Stage 2: journal posting
    # =========================================================================

    def _post(
        self,
        movement: InventoryMovement,
        ref: MovementRef,
        quantity: int,
        actor_id: UUID,
    ) -> tuple[JournalEntry | None, StageOutcome]:
        if not requires_accounting_entry(ref.movement_type, quantity):
            return None, StageOutcome.skipped(RecordingStage.POSTING, ref)

        try:
            with unit_of_work(self._session):
                entry = self._posting.post(movement, actor_id)
                if entry is not None:
                    movement.journal_entry_id = entry.id
                    movement.updated_by_id = actor_id
        except Exception as exc:
            outcome = StageOutcome.failure(RecordingStage.POSTING, ref, exc)
            self._log_stage_failure(outcome)
            self._annotate_accounting_error(movement, ref, exc, actor_id)
            return None, outcome

        if entry is None:
            return None, StageOutcome.skipped(RecordingStage.POSTING, ref)
        return entry, StageOutcome.succeeded(RecordingStage.POSTING, ref)

    def _annotate_accounting_error(
        self,
        movement: InventoryMovement,
        ref: MovementRef,
        error: Exception,
        actor_id: UUID,
    ) -> None:
        try:
            with unit_of_work(self._session):
                annotated = f"{movement.notes or ''} | {ACCOUNTING_ERROR_MARKER}: {error}"
                movement.notes = annotated[:NOTES_MAX_LENGTH]
                movement.updated_by_id = actor_id
        except SQLAlchemyError as exc:
            raise MovementPersistenceError(ref.movement_number, str(exc)) from exc

    # =========================================================================
    # Stage 3: financial transactions
    # =========================================================================

    def _record_financials(
        self,
        movement: InventoryMovement,
        entry: JournalEntry | None,
        ref: MovementRef,
        actor_id: UUID,
    ) -> StageOutcome:
        if entry is None or ref.movement_type not in _FINANCIAL_TYPES:
            return StageOutcome.skipped(RecordingStage.FINANCIAL, ref)

        try:
            with unit_of_work(self._session):
                if ref.movement_type == MovementType.PURCHASE:
                    self._financial.record_purchase(movement, entry, actor_id)
                else:
                    self._financial.record_sale(movement, entry, actor_id)
        except Exception as exc:
            outcome = StageOutcome.failure(RecordingStage.FINANCIAL, ref, exc)
            self._log_stage_failure(outcome)
            # Reload committed movement state expired by the rollback
            try:
                with unit_of_work(self._session):
                    self._session.refresh(movement)
            except SQLAlchemyError:
                logger.warning(
                    "movement_reload_failed",
                    extra={"movement_number": ref.movement_number},
                    exc_info=True,
                )
            return outcome

        return StageOutcome.succeeded(RecordingStage.FINANCIAL, ref)

    def _log_stage_failure(self, outcome: StageOutcome) -> None:
        logger.error(
            "accounting_stage_failed",
            extra={
                "stage": outcome.stage.value,
                "movement_id": str(outcome.movement_id),
                "movement_type": outcome.movement_type.value,
                "product_id": str(outcome.product_id),
                "error_code": outcome.error_code,
                "error_message": outcome.message,
            },
        )
