"""
Module: ledger_engines.cash_flow
Responsibility:
    Classify financial transactions into cash-flow buckets and total the
    inflows and outflows for a period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The caller selects the
    transactions (FinancialTransactionSelector.get_by_period) and passes
    them in.

Invariants enforced:
    - net_cash_flow == total_inflows - total_outflows.
    - Sales revenue and purchase expenses are reported but never counted
      in the inflow/outflow totals (they are accrual records, not cash).
    - Outflow buckets hold absolute values; taxes keep their sign and go
      to inflows when positive, outflows otherwise.
    - Transaction types without a bucket are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Sequence

from ledger_kernel.db.types import ZERO
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.financial_transaction import FinancialTransactionType
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.cash_flow")


class CashFlowItem(Protocol):
    transaction_type: FinancialTransactionType
    amount: Decimal


@dataclass(frozen=True)
class CashFlowSummary:
    """Bucket totals for one reporting period."""

    customer_payments: Decimal = ZERO
    sales_revenue: Decimal = ZERO
    supplier_payments: Decimal = ZERO
    purchase_expenses: Decimal = ZERO
    refunds: Decimal = ZERO
    operating_expenses: Decimal = ZERO
    payment_fees: Decimal = ZERO
    shipping_costs: Decimal = ZERO
    taxes: Decimal = ZERO
    total_inflows: Decimal = ZERO
    total_outflows: Decimal = ZERO

    @property
    def net_cash_flow(self) -> Decimal:
        return self.total_inflows - self.total_outflows

    def to_dict(self) -> dict[str, Decimal]:
        """Report keys as published to callers."""
        return {
            "TotalInflows": self.total_inflows,
            "TotalOutflows": self.total_outflows,
            "NetCashFlow": self.net_cash_flow,
            "CustomerPayments": self.customer_payments,
            "SalesRevenue": self.sales_revenue,
            "SupplierPayments": self.supplier_payments,
            "PurchaseExpenses": self.purchase_expenses,
            "Refunds": self.refunds,
            "OperatingExpenses": self.operating_expenses,
            "PaymentFees": self.payment_fees,
            "ShippingCosts": self.shipping_costs,
            "Taxes": self.taxes,
        }


# Outflow buckets: type -> summary field, value added as abs(amount)
_OUTFLOW_BUCKETS: dict[FinancialTransactionType, str] = {
    FinancialTransactionType.SUPPLIER_PAYMENT: "supplier_payments",
    FinancialTransactionType.CUSTOMER_REFUND: "refunds",
    FinancialTransactionType.OPERATING_EXPENSE: "operating_expenses",
    FinancialTransactionType.PAYMENT_FEE: "payment_fees",
    FinancialTransactionType.SHIPPING_COST: "shipping_costs",
}


@traced_engine("cash_flow", "1.0", fingerprint_fields=("transactions",))
def summarize_cash_flow(transactions: Sequence[CashFlowItem]) -> CashFlowSummary:
    """
    Total ``transactions`` into a CashFlowSummary.

    Example:
        customer_payment +500 and payment_fee -15 ->
        inflows 500, outflows 15, net 485
    """
    totals: dict[str, Decimal] = {name: ZERO for name in CashFlowSummary.__dataclass_fields__}
    count = 0

    for tx in transactions:
        count += 1
        tx_type = FinancialTransactionType(tx.transaction_type)
        amount = tx.amount

        if tx_type == FinancialTransactionType.CUSTOMER_PAYMENT:
            totals["customer_payments"] += amount
            totals["total_inflows"] += amount
        elif tx_type == FinancialTransactionType.SALE_REVENUE:
            totals["sales_revenue"] += amount
        elif tx_type == FinancialTransactionType.PURCHASE_EXPENSE:
            totals["purchase_expenses"] += abs(amount)
        elif tx_type in _OUTFLOW_BUCKETS:
            totals[_OUTFLOW_BUCKETS[tx_type]] += abs(amount)
            totals["total_outflows"] += abs(amount)
        elif tx_type == FinancialTransactionType.TAX_TRANSACTION:
            totals["taxes"] += amount
            if amount > 0:
                totals["total_inflows"] += amount
            else:
                totals["total_outflows"] += abs(amount)

    summary = CashFlowSummary(**totals)
    logger.debug(
        "cash_flow_summarized",
        extra={
            "transaction_count": count,
            "total_inflows": str(summary.total_inflows),
            "total_outflows": str(summary.total_outflows),
            "net_cash_flow": str(summary.net_cash_flow),
        },
    )
    return summary
