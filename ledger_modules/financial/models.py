"""
Financial Domain Models (``ledger_modules.financial.models``).

Responsibility
--------------
Frozen value objects describing the inputs to the financial transaction
recorder that do not live in the ledger database: customer payments as
reported by the payment processor, and the category-to-type mapping for
operating expenses.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal``.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_engines.fees import PaymentMethod
from ledger_kernel.models.financial_transaction import FinancialTransactionType


class PaymentStatus(str, Enum):
    """Processor-side payment lifecycle."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    ON_HOLD = "on_hold"


@dataclass(frozen=True)
class PaymentDetails:
    """
    A customer payment as captured by the payment processor.

    ``transaction_id`` is the processor's own reference and becomes the
    financial transaction's reference_number.
    """

    id: UUID
    amount: Decimal
    currency: str = "USD"
    method: PaymentMethod = PaymentMethod.NOT_SPECIFIED
    status: PaymentStatus = PaymentStatus.PENDING
    provider: str | None = None
    transaction_id: str | None = None
    order_id: UUID | None = None
    captured_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", PaymentMethod(self.method))
        object.__setattr__(self, "status", PaymentStatus(self.status))


EXPENSE_CATEGORY_TYPES: dict[str, FinancialTransactionType] = {
    "shipping": FinancialTransactionType.SHIPPING_COST,
    "freight": FinancialTransactionType.SHIPPING_COST,
    "delivery": FinancialTransactionType.SHIPPING_COST,
    "tax": FinancialTransactionType.TAX_TRANSACTION,
    "taxes": FinancialTransactionType.TAX_TRANSACTION,
    "discount": FinancialTransactionType.SALES_DISCOUNT,
    "promotion": FinancialTransactionType.SALES_DISCOUNT,
    "commission": FinancialTransactionType.COMMISSION_PAYMENT,
    "affiliate": FinancialTransactionType.COMMISSION_PAYMENT,
}


def expense_type_for_category(category: str) -> FinancialTransactionType:
    """Case-insensitive category lookup; anything unknown is an operating expense."""
    return EXPENSE_CATEGORY_TYPES.get(
        category.strip().lower(), FinancialTransactionType.OPERATING_EXPENSE
    )
