"""
Tests for FinancialTransactionRecorder.

Covers:
- Sale and purchase records derived from movements
- Customer payments with processor fees
- Supplier payments, refunds and operating expenses
- Reconciliation
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_engines.fees import PaymentMethod
from ledger_kernel.db.engine import unit_of_work
from ledger_kernel.exceptions import FinancialTransactionNotFoundError
from ledger_kernel.models.financial_transaction import (
    FinancialTransactionType as T,
    TransactionStatus,
)
from ledger_kernel.models.movement import MovementType
from ledger_kernel.selectors.financial_selector import FinancialTransactionSelector
from ledger_modules.financial.models import PaymentDetails, PaymentStatus
from ledger_modules.financial.service import FinancialTransactionRecorder


@pytest.fixture
def financial(session, sequence, deterministic_clock):
    return FinancialTransactionRecorder(session, sequence, deterministic_clock)


@pytest.fixture
def transactions(session):
    return FinancialTransactionSelector(session)


def stripe_payment(amount="100.00", status=PaymentStatus.COMPLETED, **overrides):
    fields = dict(
        id=uuid4(),
        amount=Decimal(amount),
        method=PaymentMethod.CREDIT_CARD,
        status=status,
        provider="Stripe",
        transaction_id="ch_123",
    )
    fields.update(overrides)
    return PaymentDetails(**fields)


class TestMovementRecords:

    def test_sale_records_revenue_and_receivable(self, record_movement, transactions):
        order_id = uuid4()
        result = record_movement(
            MovementType.SALE, -2, "10.00", order_id=order_id, document_number="INV-5"
        )

        revenue, receivable = transactions.get_by_movement(result.movement.id)

        assert revenue.transaction_type == T.SALE_REVENUE
        assert revenue.amount == Decimal("20.00")
        assert revenue.status == TransactionStatus.COMPLETED
        assert revenue.description == "Sale revenue - Widget (Qty: 2)"
        assert revenue.reference_number == "INV-5"
        assert revenue.journal_entry_id == result.journal_entry_id
        assert revenue.transaction_date == result.movement.movement_date
        assert revenue.net_amount == Decimal("20.00")

        assert receivable.transaction_type == T.ACCOUNTS_RECEIVABLE
        assert receivable.amount == Decimal("20.00")
        assert receivable.status == TransactionStatus.PENDING
        assert receivable.description == f"Accounts receivable - Order {order_id}"
        assert receivable.order_id == order_id

    def test_purchase_records_expense_and_payable(self, record_movement, transactions):
        result = record_movement(MovementType.PURCHASE, 10, "5.00", document_number="PO-1")

        expense, payable = transactions.get_by_movement(result.movement.id)

        assert expense.transaction_type == T.PURCHASE_EXPENSE
        assert expense.amount == Decimal("-50.00")
        assert expense.status == TransactionStatus.COMPLETED
        assert expense.description == "Purchase expense - Widget (Qty: 10)"

        assert payable.transaction_type == T.ACCOUNTS_PAYABLE
        assert payable.amount == Decimal("50.00")
        assert payable.status == TransactionStatus.PENDING
        assert payable.description == (
            f"Accounts payable - Purchase {result.movement.movement_number}"
        )
        assert payable.order_id is None

    @pytest.mark.parametrize(
        "movement_type,quantity",
        [
            (MovementType.SALE_RETURN, 1),
            (MovementType.PURCHASE_RETURN, -1),
            (MovementType.ADJUSTMENT, 2),
            (MovementType.LOSS, -1),
            (MovementType.TRANSFER, 1),
        ],
    )
    def test_other_types_record_nothing(self, record_movement, transactions, movement_type, quantity):
        result = record_movement(movement_type, quantity, "3.00", order_id=uuid4(), notes="x")

        assert transactions.get_by_movement(result.movement.id) == []
        assert result.financial.status.value == "skipped"

    def test_transaction_numbers_unique(self, record_movement, transactions):
        record_movement(MovementType.PURCHASE, 1, "1.00", document_number="PO-1")
        record_movement(MovementType.SALE, -1, "1.00", order_id=uuid4())

        numbers = [t.transaction_number for t in transactions.get_all()]

        assert len(numbers) == 4
        assert len(set(numbers)) == 4
        assert all(n.startswith("FIN-20240101-") for n in numbers)


class TestCustomerPayment:

    def test_payment_with_fee(self, session, financial, transactions):
        order_id = uuid4()
        payment = stripe_payment()

        with unit_of_work(session):
            received = financial.record_customer_payment(payment, order_id, uuid4())

        assert received.transaction_type == T.CUSTOMER_PAYMENT
        assert received.amount == Decimal("100.00")
        assert received.fee_amount == Decimal("3.20")
        assert received.net_amount == Decimal("96.80")
        assert received.status == TransactionStatus.COMPLETED
        assert received.reference_number == "ch_123"
        assert received.payment_method == "credit_card"
        assert received.description == f"Payment received for Order #{order_id}"

        fees = transactions.get_by_type(T.PAYMENT_FEE)
        assert len(fees) == 1
        assert fees[0].amount == Decimal("-3.20")
        assert fees[0].description == "Payment processing fee - Stripe"
        assert fees[0].payment_id == payment.id

    def test_fee_free_method_adds_no_fee_row(self, session, financial, transactions):
        payment = stripe_payment(method=PaymentMethod.BANK_TRANSFER)

        with unit_of_work(session):
            received = financial.record_customer_payment(payment, uuid4(), uuid4())

        assert received.fee_amount == Decimal("0")
        assert received.net_amount == Decimal("100.00")
        assert transactions.get_by_type(T.PAYMENT_FEE) == []

    def test_uncompleted_payment_is_pending(self, session, financial):
        with unit_of_work(session):
            received = financial.record_customer_payment(
                stripe_payment(status=PaymentStatus.PROCESSING), uuid4(), uuid4()
            )

        assert received.status == TransactionStatus.PENDING

    def test_dated_at_capture(self, session, financial):
        captured = datetime(2023, 12, 31, 23, 0, tzinfo=timezone.utc)

        with unit_of_work(session):
            received = financial.record_customer_payment(
                stripe_payment(captured_at=captured), uuid4(), uuid4()
            )

        assert received.transaction_date == captured


class TestOtherPayments:

    def test_supplier_payment(self, session, financial):
        with unit_of_work(session):
            tx = financial.record_supplier_payment(
                amount=Decimal("75.00"),
                currency="EUR",
                supplier_name="Acme Supply",
                reference_number="WIRE-1",
                payment_method=PaymentMethod.BANK_TRANSFER,
                inventory_movement_id=None,
                actor_id=uuid4(),
            )

        assert tx.transaction_type == T.SUPPLIER_PAYMENT
        assert tx.amount == Decimal("-75.00")
        assert tx.currency == "EUR"
        assert tx.counterparty == "Acme Supply"
        assert tx.description == "Payment to supplier - Acme Supply"
        assert tx.status == TransactionStatus.COMPLETED

    def test_customer_refund(self, session, financial):
        order_id = uuid4()
        payment = stripe_payment(order_id=order_id)

        with unit_of_work(session):
            tx = financial.record_customer_refund(
                payment, Decimal("25.00"), "Damaged on arrival", None, uuid4()
            )

        assert tx.transaction_type == T.CUSTOMER_REFUND
        assert tx.amount == Decimal("-25.00")
        assert tx.order_id == order_id
        assert tx.description == "Refund issued - Damaged on arrival"
        assert tx.notes == "Damaged on arrival"

    @pytest.mark.parametrize(
        "category,expected",
        [
            ("Shipping", T.SHIPPING_COST),
            ("tax", T.TAX_TRANSACTION),
            ("Discount", T.SALES_DISCOUNT),
            ("commission", T.COMMISSION_PAYMENT),
            ("Office rent", T.OPERATING_EXPENSE),
        ],
    )
    def test_operating_expense_category(self, session, financial, category, expected):
        with unit_of_work(session):
            tx = financial.record_operating_expense(
                amount=Decimal("12.00"),
                currency="USD",
                description="March",
                category=category,
                reference_number=None,
                order_id=None,
                actor_id=uuid4(),
            )

        assert tx.transaction_type == expected
        assert tx.amount == Decimal("-12.00")
        assert tx.description == f"{category} - March"


class TestReconciliation:

    def _supplier_payment(self, session, financial):
        with unit_of_work(session):
            return financial.record_supplier_payment(
                amount=Decimal("10.00"),
                currency="USD",
                supplier_name="Acme",
                reference_number=None,
                payment_method=PaymentMethod.BANK_TRANSFER,
                inventory_movement_id=None,
                actor_id=uuid4(),
            )

    def test_reconcile(self, session, financial, deterministic_clock):
        tx = self._supplier_payment(session, financial)
        reconciler = uuid4()

        with unit_of_work(session):
            reconciled = financial.reconcile(tx.id, reconciler, "matched to statement")

        assert reconciled.is_reconciled
        assert reconciled.reconciled_by_id == reconciler
        assert reconciled.reconciled_at == deterministic_clock.now()
        assert reconciled.notes == "matched to statement"

    def test_second_reconcile_is_noop(self, session, financial, deterministic_clock, captured_logs):
        tx = self._supplier_payment(session, financial)
        first_reconciler = uuid4()
        with unit_of_work(session):
            financial.reconcile(tx.id, first_reconciler, "first")
        first_at = deterministic_clock.now()

        deterministic_clock.advance(3600)
        with unit_of_work(session):
            again = financial.reconcile(tx.id, uuid4(), "second")

        assert again.reconciled_at == first_at
        assert again.reconciled_by_id == first_reconciler
        assert again.notes == "first"
        assert any(r["message"] == "transaction_already_reconciled" for r in captured_logs())

    def test_notes_appended(self, session, financial):
        with unit_of_work(session):
            tx = financial.record_customer_refund(
                stripe_payment(), Decimal("1.00"), "Late", None, uuid4()
            )
        with unit_of_work(session):
            reconciled = financial.reconcile(tx.id, uuid4(), "ok")

        assert reconciled.notes == "Late\nReconciliation: ok"

    def test_reconcile_without_notes_keeps_notes(self, session, financial, captured_logs):
        with unit_of_work(session):
            tx = financial.record_customer_refund(
                stripe_payment(), Decimal("1.00"), "Late", None, uuid4()
            )
        with unit_of_work(session):
            reconciled = financial.reconcile(tx.id, uuid4())

        assert reconciled.notes == "Late"
        record = next(r for r in captured_logs() if r["message"] == "transaction_reconciled")
        assert record["transaction_id"] == str(tx.id)

    def test_unknown_transaction(self, session, financial):
        with pytest.raises(FinancialTransactionNotFoundError):
            with unit_of_work(session):
                financial.reconcile(uuid4(), uuid4())
