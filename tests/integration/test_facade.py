"""
End-to-end tests through LedgerFacade.

Covers:
- Movements, payments, reconciliation and reports on one session
- Reads leave no transaction open
- Bootstrapping from configuration
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_config import get_active_config
from ledger_engines.fees import PaymentMethod
from ledger_kernel.db.engine import reset_engine
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.exceptions import AccountBalanceMismatchError, FinancialTransactionNotFoundError
from ledger_kernel.models.financial_transaction import FinancialTransactionType
from ledger_kernel.models.movement import MovementType
from ledger_kernel.services.sequence_service import DatabaseSequenceNumberGenerator
from ledger_modules.facade import LedgerFacade
from ledger_modules.financial.models import PaymentDetails, PaymentStatus

DAY_START = datetime(2024, 1, 1, tzinfo=timezone.utc)
DAY_END = DAY_START + timedelta(days=1)


@pytest.fixture
def ledger(session, sequence, deterministic_clock):
    return LedgerFacade(session, sequence=sequence, clock=deterministic_clock)


def purchase(ledger, product_id, actor_id, quantity=10, unit_cost="5.00"):
    return ledger.record_transaction(
        movement_type=MovementType.PURCHASE,
        product_id=product_id,
        product_sku="SKU-001",
        product_name="Widget",
        quantity=quantity,
        unit_cost=Decimal(unit_cost),
        to_location="WH-1",
        actor_id=actor_id,
        document_number="PO-1001",
    )


def sale(ledger, product_id, actor_id, order_id, quantity=-2, unit_cost="5.00"):
    return ledger.record_transaction(
        movement_type=MovementType.SALE,
        product_id=product_id,
        product_sku="SKU-001",
        product_name="Widget",
        quantity=quantity,
        unit_cost=Decimal(unit_cost),
        to_location=None,
        from_location="WH-1",
        actor_id=actor_id,
        order_id=order_id,
    )


class TestMovementFlow:

    def test_purchase_then_sale(self, ledger, product_id, test_actor_id):
        order_id = uuid4()
        purchase(ledger, product_id, test_actor_id)
        sale(ledger, product_id, test_actor_id, order_id)

        history = ledger.get_product_movements(product_id)
        assert {m.movement_type for m in history} == {MovementType.SALE, MovementType.PURCHASE}
        assert all(m.is_posted for m in history)

        rows = {r.account_code: r for r in ledger.trial_balance()}
        assert rows["1.1.03.001"].balance == Decimal("40.00")
        assert sum(r.debit_total for r in rows.values()) == sum(
            r.credit_total for r in rows.values()
        )

        balances = ledger.verify_account_balances()
        assert {b.account_code for b in balances} == {"1.1.03.001", "2.1.01.001", "3.1.01.001"}

    def test_journal_entries_for_movement(self, ledger, product_id, test_actor_id):
        movement = purchase(ledger, product_id, test_actor_id)

        entries = ledger.get_journal_entries(movement.id)

        assert len(entries) == 1
        assert entries[0].is_balanced
        assert entries[0].document_number == "PO-1001"

    def test_reads_leave_no_transaction_open(self, ledger, session, product_id, test_actor_id):
        movement = purchase(ledger, product_id, test_actor_id)

        ledger.get_movement(movement.id)
        ledger.get_movements_by_period(DAY_START, DAY_END)
        ledger.get_transactions_by_period(DAY_START, DAY_END)
        ledger.get_cash_flow_summary(DAY_START, DAY_END)
        ledger.get_accounts_payable_summary()

        assert not session.in_transaction()

    def test_movements_by_period(self, ledger, product_id, test_actor_id):
        purchase(ledger, product_id, test_actor_id)

        assert len(ledger.get_movements_by_period(DAY_START, DAY_END)) == 1
        assert ledger.get_movements_by_period(DAY_END, DAY_END + timedelta(days=1)) == []


class TestPaymentsAndReports:

    def test_customer_payment_flow(self, ledger, test_actor_id):
        order_id = uuid4()
        payment = PaymentDetails(
            id=uuid4(),
            amount=Decimal("100.00"),
            method=PaymentMethod.CREDIT_CARD,
            status=PaymentStatus.COMPLETED,
            provider="Stripe",
            transaction_id="ch_1",
            order_id=order_id,
        )

        received = ledger.record_customer_payment(payment, order_id, test_actor_id)
        refund = ledger.record_customer_refund(payment, Decimal("10.00"), "Late", test_actor_id)

        assert received.net_amount == Decimal("96.80")
        assert refund.amount == Decimal("-10.00")

        report = ledger.get_cash_flow_summary(DAY_START, DAY_END)
        assert report["TotalInflows"] == Decimal("100.00")
        assert report["TotalOutflows"] == Decimal("13.20")
        assert report["NetCashFlow"] == Decimal("86.80")

    def test_supplier_payment_and_expense(self, ledger, test_actor_id):
        ledger.record_supplier_payment(Decimal("60.00"), "Acme", test_actor_id)
        ledger.record_operating_expense(Decimal("8.00"), "Courier", "shipping", test_actor_id)

        shipping = ledger.get_transactions_by_type(FinancialTransactionType.SHIPPING_COST)
        report = ledger.get_cash_flow_summary(DAY_START, DAY_END)

        assert len(shipping) == 1
        assert report["SupplierPayments"] == Decimal("60.00")
        assert report["ShippingCosts"] == Decimal("8.00")
        assert report["NetCashFlow"] == Decimal("-68.00")

    def test_reconcile_flow(self, ledger, test_actor_id):
        tx = ledger.record_supplier_payment(Decimal("60.00"), "Acme", test_actor_id)
        assert [t.id for t in ledger.get_unreconciled_transactions()] == [tx.id]

        reconciled = ledger.reconcile_transaction(tx.id, test_actor_id, "bank line 12")

        assert reconciled.is_reconciled
        assert ledger.get_unreconciled_transactions() == []
        assert ledger.get_transaction(tx.id).notes == "bank line 12"

    def test_reconcile_unknown(self, ledger, test_actor_id):
        with pytest.raises(FinancialTransactionNotFoundError):
            ledger.reconcile_transaction(uuid4(), test_actor_id)

    def test_receivables_and_payables(self, ledger, product_id, test_actor_id):
        purchase(ledger, product_id, test_actor_id)
        sale(ledger, product_id, test_actor_id, uuid4())

        receivable = ledger.get_accounts_receivable_summary()
        payable = ledger.get_accounts_payable_summary()

        assert receivable["TotalReceivable"] == Decimal("10.00")
        assert receivable["Current_0_30"] == Decimal("10.00")
        assert payable["TotalPayable"] == Decimal("50.00")
        assert payable["Count"] == Decimal("1")


class TestIntegrity:

    def test_drift_reported(self, ledger, session, product_id, test_actor_id):
        from sqlalchemy import select

        from ledger_kernel.db.engine import unit_of_work
        from ledger_kernel.models.account import Account

        purchase(ledger, product_id, test_actor_id)
        with unit_of_work(session):
            account = session.execute(
                select(Account).where(Account.code == "2.1.01.001")
            ).scalar_one()
            account.balance = Decimal("1.00")

        with pytest.raises(AccountBalanceMismatchError):
            ledger.verify_account_balances()

        assert not session.in_transaction()


class TestBootstrap:

    @pytest.fixture
    def config(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text(
            f"database:\n  url: sqlite:///{tmp_path / 'boot.db'}\n"
            "sequence:\n  backend: database\n"
            "inventory_policy:\n  max_notes_length: 20\n"
        )
        return get_active_config(path, environ={})

    @pytest.fixture
    def booted(self, config):
        ledger = LedgerFacade.from_config(config, clock=DeterministicClock())
        yield ledger
        ledger.close()
        reset_engine()

    def test_numbers_come_from_counter_row(self, booted):
        purchase(booted, uuid4(), uuid4())

        counter = DatabaseSequenceNumberGenerator(booted.session)
        # movement, journal entry, expense and payable
        assert counter.current_value() == 4
        booted.session.rollback()

    def test_records_against_configured_database(self, booted):
        movement = purchase(booted, uuid4(), uuid4())

        assert movement.movement_number == "PURCH-20240101-000001"
        assert booted.get_movement(movement.id).journal_entry_id is not None

    def test_policy_from_config(self, booted):
        from ledger_kernel.exceptions import InvalidMovementError

        with pytest.raises(InvalidMovementError):
            booted.record_transaction(
                movement_type=MovementType.TRANSFER,
                product_id=uuid4(),
                product_sku="SKU-1",
                product_name="Widget",
                quantity=1,
                unit_cost=Decimal("1"),
                to_location="WH-2",
                from_location="WH-1",
                actor_id=uuid4(),
                notes="x" * 21,
            )
