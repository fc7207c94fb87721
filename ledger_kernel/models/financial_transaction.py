"""
Module: ledger_kernel.models.financial_transaction
Responsibility: ORM persistence for cash-flow-level financial transactions
    (revenue, receivables, payables, payments, fees, refunds, expenses).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - transaction_number is unique (uq_financial_transaction_number).
    - Sign convention: positive amount = inflow or asset/receivable
      increase; negative = outflow or expense.
    - net_amount = amount - fee_amount (tax_amount is informational).
    - Only is_reconciled, reconciled_at, reconciled_by_id and notes change
      after creation (ORM listeners in db/immutability.py).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import StrEnumType, TrackedBase, UUIDString


class FinancialTransactionType(str, Enum):
    """Cash-flow classification of a financial transaction."""

    CUSTOMER_PAYMENT = "customer_payment"
    SUPPLIER_PAYMENT = "supplier_payment"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    ACCOUNTS_PAYABLE = "accounts_payable"
    CUSTOMER_REFUND = "customer_refund"
    SALE_REVENUE = "sale_revenue"
    PURCHASE_EXPENSE = "purchase_expense"
    OPERATING_EXPENSE = "operating_expense"
    PAYMENT_FEE = "payment_fee"
    SHIPPING_COST = "shipping_cost"
    TAX_TRANSACTION = "tax_transaction"
    SALES_DISCOUNT = "sales_discount"
    ADJUSTMENT = "adjustment"
    BANK_TRANSFER = "bank_transfer"
    COMMISSION_PAYMENT = "commission_payment"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


MUTABLE_FINANCIAL_TRANSACTION_FIELDS = frozenset(
    {"is_reconciled", "reconciled_at", "reconciled_by_id", "notes"}
)


class FinancialTransaction(TrackedBase):
    """
    One cash-flow-level record.

    Contract:
        Appended by FinancialTransactionRecorder; mutated only by
        reconciliation.  AR/AP rows stay ``pending`` until settled.
    """

    __tablename__ = "financial_transactions"

    __table_args__ = (
        UniqueConstraint("transaction_number", name="uq_financial_transaction_number"),
        Index("idx_fin_tx_date", "transaction_date"),
        Index("idx_fin_tx_type", "transaction_type"),
        Index("idx_fin_tx_movement", "inventory_movement_id"),
        Index("idx_fin_tx_order", "order_id"),
    )

    transaction_number: Mapped[str] = mapped_column(String(50), nullable=False)

    transaction_type: Mapped[FinancialTransactionType] = mapped_column(
        StrEnumType(FinancialTransactionType, 30),
        nullable=False,
    )

    # Signed; see sign convention above
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    transaction_date: Mapped[datetime] = mapped_column(nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    counterparty: Mapped[str | None] = mapped_column(String(255), nullable=True)

    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    order_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    payment_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    inventory_movement_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_movements.id"),
        nullable=True,
    )

    journal_entry_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    product_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    payment_method: Mapped[str | None] = mapped_column(String(30), nullable=True)

    payment_provider: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[TransactionStatus] = mapped_column(
        StrEnumType(TransactionStatus, 20),
        nullable=False,
        default=TransactionStatus.PENDING,
    )

    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    tax_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    fee_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    net_amount: Mapped[Decimal] = mapped_column(nullable=False)

    is_reconciled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    reconciled_at: Mapped[datetime | None] = mapped_column(nullable=True)

    reconciled_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<FinancialTransaction {self.transaction_number} "
            f"{self.transaction_type.value} {self.amount}>"
        )

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING
