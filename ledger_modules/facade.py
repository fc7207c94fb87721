"""
LedgerFacade -- the caller-facing surface of the movement ledger.

Responsibility:
    Wires the recorders, selectors and reporting engine around one session
    and owns the transaction boundary for every call: writes commit on
    success and roll back on failure; reads run in their own short unit of
    work so no transaction is left open on the session.

Architecture position:
    Modules -- outermost layer.  Callers (HTTP handlers, jobs, tests) use
    this class and never touch kernel services directly.

Usage:
    config = get_active_config("ledger.yaml")
    ledger = LedgerFacade.from_config(config)
    movement = ledger.record_transaction(
        movement_type=MovementType.SALE, product_id=pid, product_sku="SKU-1",
        product_name="Widget", quantity=-2, unit_cost=Decimal("10.00"),
        to_location=None, from_location="WH-1", actor_id=actor_id,
        order_id=order_id,
    )
    ledger.get_cash_flow_summary(start, end)
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_config import LedgerConfig
from ledger_engines.fees import PaymentMethod
from ledger_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    unit_of_work,
)
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import configure_logging, get_logger
from ledger_kernel.models.financial_transaction import FinancialTransactionType
from ledger_kernel.models.movement import InventoryMovement
from ledger_kernel.selectors.financial_selector import (
    FinancialTransactionDTO,
    FinancialTransactionSelector,
)
from ledger_kernel.selectors.journal_selector import JournalEntryDTO, JournalSelector
from ledger_kernel.selectors.ledger_selector import (
    AccountBalance,
    LedgerSelector,
    TrialBalanceRow,
)
from ledger_kernel.selectors.movement_selector import MovementDTO, MovementSelector
from ledger_kernel.services.sequence_service import (
    DatabaseSequenceNumberGenerator,
    InMemorySequenceNumberGenerator,
    SequenceNumberGenerator,
)
from ledger_modules.financial.models import PaymentDetails
from ledger_modules.financial.reporting import FinancialReportingEngine
from ledger_modules.financial.service import FinancialTransactionRecorder
from ledger_modules.inventory.config import DEFAULT_INVENTORY_POLICY, InventoryPolicyConfig
from ledger_modules.inventory.models import MovementRecordingResult
from ledger_modules.inventory.service import InventoryTransactionRecorder

logger = get_logger("modules.facade")


def bootstrap(config: LedgerConfig) -> None:
    """
    Configure logging, the engine and the schema from ``config``.

    Postconditions: Tables exist and immutability listeners are registered.
    """
    configure_logging(level=config.logging.level)
    db = config.database
    init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )
    create_tables()
    register_immutability_listeners()


class LedgerFacade:
    """
    Record movements and payments, reconcile, and report.

    Contract:
        Every public method is one transaction on the facade's session.
        Query methods return frozen DTOs; record_transaction returns the
        stored InventoryMovement (detached from any open transaction).

    Non-goals:
        - Does NOT share its session across threads; build one facade per
          worker thread.
    """

    def __init__(
        self,
        session: Session,
        sequence: SequenceNumberGenerator | None = None,
        clock: Clock | None = None,
        policy: InventoryPolicyConfig = DEFAULT_INVENTORY_POLICY,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence = sequence or InMemorySequenceNumberGenerator(self._clock)

        self._financial = FinancialTransactionRecorder(session, self._sequence, self._clock)
        self._inventory = InventoryTransactionRecorder(
            session,
            self._sequence,
            self._clock,
            financial_recorder=self._financial,
            policy=policy,
        )
        self._reporting = FinancialReportingEngine(session, self._clock)

        self._movements = MovementSelector(session)
        self._transactions = FinancialTransactionSelector(session)
        self._journal = JournalSelector(session)
        self._ledger = LedgerSelector(session)

    @classmethod
    def from_config(
        cls,
        config: LedgerConfig,
        clock: Clock | None = None,
        sequence: SequenceNumberGenerator | None = None,
    ) -> "LedgerFacade":
        """Bootstrap from configuration and open a session."""
        bootstrap(config)
        session = get_session()
        clock = clock or SystemClock()
        if sequence is None and config.sequence.backend == "database":
            sequence = DatabaseSequenceNumberGenerator(session, clock)
        policy = InventoryPolicyConfig.from_mapping(dict(config.inventory_policy))
        return cls(session, sequence=sequence, clock=clock, policy=policy)

    @property
    def session(self) -> Session:
        return self._session

    def close(self) -> None:
        self._session.close()

    # =========================================================================
    # Inventory movements
    # =========================================================================

    def record_transaction(self, **request) -> InventoryMovement:
        """Record an inventory movement; see InventoryTransactionRecorder."""
        return self._inventory.record_transaction(**request)

    def record_with_outcome(self, **request) -> MovementRecordingResult:
        return self._inventory.record_with_outcome(**request)

    def get_product_movements(self, product_id: UUID) -> list[MovementDTO]:
        with unit_of_work(self._session):
            return self._movements.get_by_product(product_id)

    def get_movements_by_period(self, start: datetime, end: datetime) -> list[MovementDTO]:
        with unit_of_work(self._session):
            return self._movements.get_by_period(start, end)

    def get_movement(self, movement_id: UUID) -> MovementDTO | None:
        with unit_of_work(self._session):
            return self._movements.get(movement_id)

    def get_journal_entries(self, movement_id: UUID) -> list[JournalEntryDTO]:
        with unit_of_work(self._session):
            return self._journal.get_by_movement(movement_id)

    # =========================================================================
    # Payments and expenses
    # =========================================================================

    def record_customer_payment(
        self, payment: PaymentDetails, order_id: UUID, actor_id: UUID
    ) -> FinancialTransactionDTO:
        with unit_of_work(self._session):
            tx = self._financial.record_customer_payment(payment, order_id, actor_id)
            return FinancialTransactionSelector.to_dto(tx)

    def record_supplier_payment(
        self,
        amount: Decimal,
        supplier_name: str,
        actor_id: UUID,
        currency: str = "USD",
        reference_number: str | None = None,
        payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER,
        inventory_movement_id: UUID | None = None,
    ) -> FinancialTransactionDTO:
        with unit_of_work(self._session):
            tx = self._financial.record_supplier_payment(
                amount=amount,
                currency=currency,
                supplier_name=supplier_name,
                reference_number=reference_number,
                payment_method=payment_method,
                inventory_movement_id=inventory_movement_id,
                actor_id=actor_id,
            )
            return FinancialTransactionSelector.to_dto(tx)

    def record_customer_refund(
        self,
        payment: PaymentDetails,
        refund_amount: Decimal,
        reason: str,
        actor_id: UUID,
        inventory_movement_id: UUID | None = None,
    ) -> FinancialTransactionDTO:
        with unit_of_work(self._session):
            tx = self._financial.record_customer_refund(
                payment, refund_amount, reason, inventory_movement_id, actor_id
            )
            return FinancialTransactionSelector.to_dto(tx)

    def record_operating_expense(
        self,
        amount: Decimal,
        description: str,
        category: str,
        actor_id: UUID,
        currency: str = "USD",
        reference_number: str | None = None,
        order_id: UUID | None = None,
    ) -> FinancialTransactionDTO:
        with unit_of_work(self._session):
            tx = self._financial.record_operating_expense(
                amount=amount,
                currency=currency,
                description=description,
                category=category,
                reference_number=reference_number,
                order_id=order_id,
                actor_id=actor_id,
            )
            return FinancialTransactionSelector.to_dto(tx)

    def reconcile_transaction(
        self,
        transaction_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
    ) -> FinancialTransactionDTO:
        """
        Raises:
            FinancialTransactionNotFoundError: Unknown transaction id.
        """
        with unit_of_work(self._session):
            tx = self._financial.reconcile(transaction_id, actor_id, notes)
            return FinancialTransactionSelector.to_dto(tx)

    # =========================================================================
    # Financial queries and reports
    # =========================================================================

    def get_transaction(self, transaction_id: UUID) -> FinancialTransactionDTO | None:
        with unit_of_work(self._session):
            return self._transactions.get(transaction_id)

    def get_transactions_by_period(
        self, start: datetime, end: datetime
    ) -> list[FinancialTransactionDTO]:
        with unit_of_work(self._session):
            return self._transactions.get_by_period(start, end)

    def get_transactions_by_type(
        self,
        transaction_type: FinancialTransactionType,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[FinancialTransactionDTO]:
        with unit_of_work(self._session):
            return self._transactions.get_by_type(transaction_type, start, end)

    def get_unreconciled_transactions(self) -> list[FinancialTransactionDTO]:
        with unit_of_work(self._session):
            return self._transactions.get_unreconciled()

    def get_cash_flow_summary(self, start: datetime, end: datetime) -> dict[str, Decimal]:
        with unit_of_work(self._session):
            return self._reporting.cash_flow_summary(start, end)

    def get_accounts_receivable_summary(self) -> dict[str, Decimal]:
        with unit_of_work(self._session):
            return self._reporting.accounts_receivable_summary()

    def get_accounts_payable_summary(self) -> dict[str, Decimal]:
        with unit_of_work(self._session):
            return self._reporting.accounts_payable_summary()

    # =========================================================================
    # Ledger integrity
    # =========================================================================

    def trial_balance(self) -> list[TrialBalanceRow]:
        with unit_of_work(self._session):
            return self._ledger.trial_balance()

    def verify_account_balances(self) -> list[AccountBalance]:
        """
        Raises:
            AccountBalanceMismatchError: First account whose cached balance
                disagrees with its postings.
        """
        with unit_of_work(self._session):
            balances = self._ledger.verify_all_balances()
        logger.info("account_balances_verified", extra={"account_count": len(balances)})
        return balances
