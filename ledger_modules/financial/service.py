"""
FinancialTransactionRecorder -- cash-flow-level records derived from
inventory movements and payments.

Responsibility:
    Appends FinancialTransaction rows for sales, purchases, customer
    payments (with processor fees), supplier payments, refunds and
    operating expenses, and marks transactions reconciled.

Architecture position:
    Modules > Financial.  Called by InventoryTransactionRecorder (sales and
    purchases) inside its financial-recording unit of work, and by
    LedgerFacade for the rest.  Flush-only: the caller owns commit and
    rollback.

Invariants enforced:
    - Sign convention: inflows and receivable/payable balances positive,
      outflows and expenses negative.
    - net_amount == amount - fee_amount; only customer payments carry a
      fee.
    - Every row gets a unique "FIN-..." transaction number.
    - Reconciling twice is a no-op.

Failure modes:
    - FinancialTransactionNotFoundError from reconcile() for unknown ids.
    - SQLAlchemyError from the session.
"""

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from ledger_engines.fees import PaymentMethod, calculate_payment_fee
from ledger_kernel.db.types import ZERO, round_money
from ledger_kernel.domain.clock import Clock
from ledger_kernel.exceptions import FinancialTransactionNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.financial_transaction import (
    FinancialTransaction,
    FinancialTransactionType,
    TransactionStatus,
)
from ledger_kernel.models.journal import JournalEntry
from ledger_kernel.models.movement import InventoryMovement
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.sequence_service import SequenceNumberGenerator
from ledger_modules.financial.models import (
    PaymentDetails,
    PaymentStatus,
    expense_type_for_category,
)

logger = get_logger("modules.financial.service")

TRANSACTION_NUMBER_PREFIX = "FIN"
DEFAULT_CURRENCY = "USD"


class FinancialTransactionRecorder(BaseService):
    """
    Records financial transactions.

    Contract:
        Each record_* method adds its rows, flushes, and returns the primary
        row (revenue for sales, expense for purchases, the payment for
        customer payments).

    Non-goals:
        - Does NOT commit.
        - Does NOT settle AR/AP rows when payments arrive; they stay
          pending until reconciled externally.
    """

    def __init__(
        self,
        session: Session,
        sequence: SequenceNumberGenerator,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._sequence = sequence

    def _new_transaction(
        self,
        transaction_type: FinancialTransactionType,
        amount: Decimal,
        actor_id: UUID,
        **fields,
    ) -> FinancialTransaction:
        fields.setdefault("currency", DEFAULT_CURRENCY)
        fields.setdefault("transaction_date", self.clock.now())
        fields.setdefault("net_amount", amount)
        tx = FinancialTransaction(
            id=uuid4(),
            transaction_number=self._sequence.next(TRANSACTION_NUMBER_PREFIX),
            transaction_type=transaction_type,
            amount=amount,
            created_by_id=actor_id,
            **fields,
        )
        self.session.add(tx)
        return tx

    # =========================================================================
    # Movement-driven records
    # =========================================================================

    def record_sale(
        self,
        movement: InventoryMovement,
        journal_entry: JournalEntry,
        actor_id: UUID,
    ) -> FinancialTransaction:
        """Revenue (completed) plus receivable (pending) for a sale."""
        total = round_money(movement.total_cost)
        common = dict(
            transaction_date=movement.movement_date,
            order_id=movement.order_id,
            inventory_movement_id=movement.id,
            journal_entry_id=journal_entry.id,
            product_id=movement.product_id,
            reference_number=movement.document_number,
        )

        with LogContext.bind(movement_id=movement.id, entry_id=journal_entry.id):
            revenue = self._new_transaction(
                FinancialTransactionType.SALE_REVENUE,
                total,
                actor_id,
                description=(
                    f"Sale revenue - {movement.product_name} (Qty: {abs(movement.quantity)})"
                ),
                status=TransactionStatus.COMPLETED,
                **common,
            )
            receivable = self._new_transaction(
                FinancialTransactionType.ACCOUNTS_RECEIVABLE,
                total,
                actor_id,
                description=f"Accounts receivable - Order {movement.order_id}",
                status=TransactionStatus.PENDING,
                **common,
            )
            self.session.flush()

            logger.info(
                "sale_transactions_recorded",
                extra={
                    "revenue_number": revenue.transaction_number,
                    "receivable_number": receivable.transaction_number,
                    "amount": str(total),
                },
            )
        return revenue

    def record_purchase(
        self,
        movement: InventoryMovement,
        journal_entry: JournalEntry,
        actor_id: UUID,
    ) -> FinancialTransaction:
        """Expense (completed, negative) plus payable (pending) for a purchase."""
        total = round_money(movement.total_cost)
        common = dict(
            transaction_date=movement.movement_date,
            inventory_movement_id=movement.id,
            journal_entry_id=journal_entry.id,
            product_id=movement.product_id,
            reference_number=movement.document_number,
        )

        with LogContext.bind(movement_id=movement.id, entry_id=journal_entry.id):
            expense = self._new_transaction(
                FinancialTransactionType.PURCHASE_EXPENSE,
                -total,
                actor_id,
                description=(
                    f"Purchase expense - {movement.product_name} (Qty: {movement.quantity})"
                ),
                status=TransactionStatus.COMPLETED,
                **common,
            )
            payable = self._new_transaction(
                FinancialTransactionType.ACCOUNTS_PAYABLE,
                total,
                actor_id,
                description=f"Accounts payable - Purchase {movement.movement_number}",
                status=TransactionStatus.PENDING,
                **common,
            )
            self.session.flush()

            logger.info(
                "purchase_transactions_recorded",
                extra={
                    "expense_number": expense.transaction_number,
                    "payable_number": payable.transaction_number,
                    "amount": str(total),
                },
            )
        return expense

    # =========================================================================
    # Payments
    # =========================================================================

    def record_customer_payment(
        self,
        payment: PaymentDetails,
        order_id: UUID,
        actor_id: UUID,
    ) -> FinancialTransaction:
        """
        Customer payment, plus a payment_fee row when the processor charges
        one.

        Postconditions: The payment row's status is completed only when the
            processor reports the payment completed.
        """
        breakdown = calculate_payment_fee(
            amount=payment.amount,
            method=payment.method,
            provider=payment.provider,
        )
        transaction_date = payment.captured_at or self.clock.now()

        received = self._new_transaction(
            FinancialTransactionType.CUSTOMER_PAYMENT,
            payment.amount,
            actor_id,
            currency=payment.currency,
            transaction_date=transaction_date,
            description=f"Payment received for Order #{order_id}",
            order_id=order_id,
            payment_id=payment.id,
            reference_number=payment.transaction_id,
            payment_method=payment.method.value,
            payment_provider=payment.provider,
            status=(
                TransactionStatus.COMPLETED
                if payment.status == PaymentStatus.COMPLETED
                else TransactionStatus.PENDING
            ),
            tax_amount=ZERO,
            fee_amount=breakdown.fee,
            net_amount=breakdown.net,
        )

        if breakdown.fee > 0:
            self._new_transaction(
                FinancialTransactionType.PAYMENT_FEE,
                -breakdown.fee,
                actor_id,
                currency=payment.currency,
                transaction_date=transaction_date,
                description=f"Payment processing fee - {payment.provider or 'Provider'}",
                order_id=order_id,
                payment_id=payment.id,
                payment_provider=payment.provider,
                status=TransactionStatus.COMPLETED,
            )
            logger.info(
                "payment_fee_recorded",
                extra={"fee": str(breakdown.fee), "provider": payment.provider or "Unknown"},
            )

        self.session.flush()
        logger.info(
            "customer_payment_recorded",
            extra={
                "transaction_number": received.transaction_number,
                "order_id": str(order_id),
                "amount": str(payment.amount),
                "fee": str(breakdown.fee),
            },
        )
        return received

    def record_supplier_payment(
        self,
        amount: Decimal,
        currency: str,
        supplier_name: str,
        reference_number: str | None,
        payment_method: PaymentMethod,
        inventory_movement_id: UUID | None,
        actor_id: UUID,
    ) -> FinancialTransaction:
        tx = self._new_transaction(
            FinancialTransactionType.SUPPLIER_PAYMENT,
            -amount,
            actor_id,
            currency=currency,
            description=f"Payment to supplier - {supplier_name}",
            counterparty=supplier_name,
            inventory_movement_id=inventory_movement_id,
            reference_number=reference_number,
            payment_method=PaymentMethod(payment_method).value,
            status=TransactionStatus.COMPLETED,
        )
        self.session.flush()
        logger.info(
            "supplier_payment_recorded",
            extra={
                "transaction_number": tx.transaction_number,
                "supplier": supplier_name,
                "amount": str(amount),
            },
        )
        return tx

    def record_customer_refund(
        self,
        payment: PaymentDetails,
        refund_amount: Decimal,
        reason: str,
        inventory_movement_id: UUID | None,
        actor_id: UUID,
    ) -> FinancialTransaction:
        tx = self._new_transaction(
            FinancialTransactionType.CUSTOMER_REFUND,
            -refund_amount,
            actor_id,
            currency=payment.currency,
            description=f"Refund issued - {reason}",
            order_id=payment.order_id,
            payment_id=payment.id,
            inventory_movement_id=inventory_movement_id,
            reference_number=payment.transaction_id,
            payment_method=payment.method.value,
            payment_provider=payment.provider,
            status=TransactionStatus.COMPLETED,
            notes=reason,
        )
        self.session.flush()
        logger.info(
            "customer_refund_recorded",
            extra={
                "transaction_number": tx.transaction_number,
                "amount": str(refund_amount),
                "reason": reason,
            },
        )
        return tx

    def record_operating_expense(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        category: str,
        reference_number: str | None,
        order_id: UUID | None,
        actor_id: UUID,
    ) -> FinancialTransaction:
        """Expense typed by ``category`` (shipping, tax, discount, commission or other)."""
        transaction_type = expense_type_for_category(category)
        tx = self._new_transaction(
            transaction_type,
            -amount,
            actor_id,
            currency=currency,
            description=f"{category} - {description}",
            order_id=order_id,
            reference_number=reference_number,
            status=TransactionStatus.COMPLETED,
            notes=category,
        )
        self.session.flush()
        logger.info(
            "operating_expense_recorded",
            extra={
                "transaction_number": tx.transaction_number,
                "transaction_type": transaction_type.value,
                "amount": str(amount),
            },
        )
        return tx

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def reconcile(
        self,
        transaction_id: UUID,
        reconciler_id: UUID,
        notes: str | None = None,
    ) -> FinancialTransaction:
        """
        Mark a transaction reconciled.

        Postconditions: Already reconciled transactions are returned
            unchanged.  Otherwise is_reconciled, reconciled_at and
            reconciled_by_id are set and ``notes`` appended.

        Raises:
            FinancialTransactionNotFoundError: Unknown transaction id.
        """
        with LogContext.bind(transaction_id=transaction_id, actor_id=reconciler_id):
            tx = self.session.get(FinancialTransaction, transaction_id, with_for_update=True)
            if tx is None:
                raise FinancialTransactionNotFoundError(str(transaction_id))

            if tx.is_reconciled:
                logger.warning(
                    "transaction_already_reconciled",
                    extra={"transaction_number": tx.transaction_number},
                )
                return tx

            tx.is_reconciled = True
            tx.reconciled_at = self.clock.now()
            tx.reconciled_by_id = reconciler_id
            if notes:
                tx.notes = f"{tx.notes}\nReconciliation: {notes}" if tx.notes else notes
            tx.updated_by_id = reconciler_id
            self.session.flush()

            logger.info(
                "transaction_reconciled",
                extra={
                    "transaction_number": tx.transaction_number,
                    "reconciled_by": str(reconciler_id),
                },
            )
        return tx
