"""
Tests for FinancialReportingEngine.

Covers:
- Cash flow over a half-open period
- Receivable and payable aging against the injected clock
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.db.engine import unit_of_work
from ledger_kernel.models.financial_transaction import FinancialTransactionType
from ledger_kernel.models.movement import MovementType
from ledger_kernel.selectors.financial_selector import FinancialTransactionSelector
from ledger_modules.financial.models import PaymentDetails
from ledger_modules.financial.reporting import FinancialReportingEngine
from ledger_modules.financial.service import FinancialTransactionRecorder

DAY_START = datetime(2024, 1, 1, tzinfo=timezone.utc)
DAY_END = DAY_START + timedelta(days=1)


@pytest.fixture
def financial(session, sequence, deterministic_clock):
    return FinancialTransactionRecorder(session, sequence, deterministic_clock)


@pytest.fixture
def reporting(session, deterministic_clock):
    return FinancialReportingEngine(session, deterministic_clock)


class TestCashFlow:

    def test_payment_and_fee(self, session, financial, reporting):
        with unit_of_work(session):
            financial.record_customer_payment(
                PaymentDetails(id=uuid4(), amount=Decimal("500.00"), method="credit_card"),
                uuid4(),
                uuid4(),
            )

        report = reporting.cash_flow_summary(DAY_START, DAY_END)

        assert report["TotalInflows"] == Decimal("500.00")
        assert report["TotalOutflows"] == Decimal("15.00")
        assert report["NetCashFlow"] == Decimal("485.00")
        assert report["CustomerPayments"] == Decimal("500.00")
        assert report["PaymentFees"] == Decimal("15.00")

    def test_period_end_is_exclusive(self, session, financial, reporting):
        with unit_of_work(session):
            financial.record_customer_payment(
                PaymentDetails(
                    id=uuid4(),
                    amount=Decimal("40.00"),
                    method="bank_transfer",
                    captured_at=DAY_END,
                ),
                uuid4(),
                uuid4(),
            )

        assert reporting.cash_flow(DAY_START, DAY_END).total_inflows == Decimal("0")
        assert reporting.cash_flow(DAY_END, DAY_END + timedelta(days=1)).total_inflows == Decimal(
            "40.00"
        )

    def test_movements_feed_accrual_buckets(self, record_movement, reporting):
        record_movement(MovementType.PURCHASE, 10, "5.00", document_number="PO-1")
        record_movement(MovementType.SALE, -2, "8.00", order_id=uuid4())

        summary = reporting.cash_flow(DAY_START, DAY_END)

        assert summary.purchase_expenses == Decimal("50.00")
        assert summary.sales_revenue == Decimal("16.00")
        assert summary.net_cash_flow == Decimal("0")

    def test_empty_period(self, reporting):
        report = reporting.cash_flow_summary(DAY_START, DAY_END)

        assert all(value == Decimal("0") for value in report.values())


class TestAging:

    def test_receivable_aged_by_clock(self, record_movement, reporting, deterministic_clock):
        record_movement(MovementType.SALE, -2, "10.00", order_id=uuid4())
        deterministic_clock.set_time(datetime(2024, 2, 5, 12, 0, tzinfo=timezone.utc))

        report = reporting.accounts_receivable_summary()

        assert report["TotalReceivable"] == Decimal("20.00")
        assert report["Aging_31_60"] == Decimal("20.00")
        assert report["Current_0_30"] == Decimal("0")
        assert report["Count"] == Decimal("1")

    def test_payables(self, record_movement, reporting, deterministic_clock):
        record_movement(MovementType.PURCHASE, 4, "25.00", document_number="PO-1")
        deterministic_clock.set_time(datetime(2024, 4, 15, 12, 0, tzinfo=timezone.utc))
        record_movement(MovementType.PURCHASE, 1, "10.00", document_number="PO-2")

        summary = reporting.payables_aging()

        assert summary.total == Decimal("110.00")
        assert summary.count == 2
        assert summary.bucket_total("Aging_Over90") == Decimal("100.00")
        assert summary.bucket_total("Current_0_30") == Decimal("10.00")
        assert reporting.accounts_payable_summary()["TotalPayable"] == Decimal("110.00")

    def test_reconciled_receivable_still_open(self, session, record_movement, reporting, financial):
        """Only status settles an item; reconciliation alone does not."""
        result = record_movement(MovementType.SALE, -1, "10.00", order_id=uuid4())
        receivable = [
            tx for tx in FinancialTransactionSelector(session).get_by_movement(result.movement.id)
            if tx.transaction_type == FinancialTransactionType.ACCOUNTS_RECEIVABLE
        ][0]
        with unit_of_work(session):
            financial.reconcile(receivable.id, uuid4())

        assert reporting.receivables_aging().count == 1
