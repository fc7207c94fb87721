"""
Module: ledger_kernel.selectors.financial_selector
Responsibility: Read-only queries over financial transactions, used by the
    reporting engine and the facade.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - get_by_period() is half-open: start <= transaction_date < end.
    - get_by_type() bounds are inclusive and results are newest first.
    - get_unreconciled() is oldest first.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.models.financial_transaction import (
    FinancialTransaction,
    FinancialTransactionType,
    TransactionStatus,
)
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class FinancialTransactionDTO:
    id: UUID
    transaction_number: str
    transaction_type: FinancialTransactionType
    amount: Decimal
    currency: str
    transaction_date: datetime
    description: str
    counterparty: str | None
    reference_number: str | None
    order_id: UUID | None
    payment_id: UUID | None
    inventory_movement_id: UUID | None
    journal_entry_id: UUID | None
    product_id: UUID | None
    payment_method: str | None
    payment_provider: str | None
    status: TransactionStatus
    notes: str | None
    tax_amount: Decimal
    fee_amount: Decimal
    net_amount: Decimal
    is_reconciled: bool
    reconciled_at: datetime | None
    reconciled_by_id: UUID | None

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING


class FinancialTransactionSelector(BaseSelector):
    """
    Financial transaction lookups.

    Non-goals:
        - Does NOT aggregate; see ledger_engines.cash_flow and
          ledger_engines.aging.
    """

    @staticmethod
    def to_dto(tx: FinancialTransaction) -> FinancialTransactionDTO:
        return FinancialTransactionDTO(
            id=tx.id,
            transaction_number=tx.transaction_number,
            transaction_type=tx.transaction_type,
            amount=tx.amount,
            currency=tx.currency,
            transaction_date=tx.transaction_date,
            description=tx.description,
            counterparty=tx.counterparty,
            reference_number=tx.reference_number,
            order_id=tx.order_id,
            payment_id=tx.payment_id,
            inventory_movement_id=tx.inventory_movement_id,
            journal_entry_id=tx.journal_entry_id,
            product_id=tx.product_id,
            payment_method=tx.payment_method,
            payment_provider=tx.payment_provider,
            status=tx.status,
            notes=tx.notes,
            tax_amount=tx.tax_amount,
            fee_amount=tx.fee_amount,
            net_amount=tx.net_amount,
            is_reconciled=tx.is_reconciled,
            reconciled_at=tx.reconciled_at,
            reconciled_by_id=tx.reconciled_by_id,
        )

    def _list(self, stmt) -> list[FinancialTransactionDTO]:
        return [self.to_dto(tx) for tx in self.session.execute(stmt).scalars()]

    def get(self, transaction_id: UUID) -> FinancialTransactionDTO | None:
        tx = self.session.get(FinancialTransaction, transaction_id)
        return self.to_dto(tx) if tx is not None else None

    def get_by_period(self, start: datetime, end: datetime) -> list[FinancialTransactionDTO]:
        """Transactions dated within [start, end), oldest first."""
        return self._list(
            select(FinancialTransaction)
            .where(
                FinancialTransaction.transaction_date >= start,
                FinancialTransaction.transaction_date < end,
            )
            .order_by(FinancialTransaction.transaction_date)
        )

    def get_by_type(
        self,
        transaction_type: FinancialTransactionType,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[FinancialTransactionDTO]:
        """Transactions of one type, optionally within [start, end], newest first."""
        stmt = select(FinancialTransaction).where(
            FinancialTransaction.transaction_type == FinancialTransactionType(transaction_type).value
        )
        if start is not None:
            stmt = stmt.where(FinancialTransaction.transaction_date >= start)
        if end is not None:
            stmt = stmt.where(FinancialTransaction.transaction_date <= end)
        return self._list(stmt.order_by(FinancialTransaction.transaction_date.desc()))

    def get_pending_by_type(
        self, transaction_type: FinancialTransactionType
    ) -> list[FinancialTransactionDTO]:
        """Pending (unsettled) transactions of one type, oldest first."""
        return self._list(
            select(FinancialTransaction)
            .where(
                FinancialTransaction.transaction_type
                == FinancialTransactionType(transaction_type).value,
                FinancialTransaction.status == TransactionStatus.PENDING.value,
            )
            .order_by(FinancialTransaction.transaction_date)
        )

    def get_unreconciled(self) -> list[FinancialTransactionDTO]:
        return self._list(
            select(FinancialTransaction)
            .where(FinancialTransaction.is_reconciled.is_(False))
            .order_by(FinancialTransaction.transaction_date)
        )

    def get_all(self) -> list[FinancialTransactionDTO]:
        """Every transaction, newest first."""
        return self._list(
            select(FinancialTransaction).order_by(FinancialTransaction.transaction_date.desc())
        )

    def get_by_movement(self, movement_id: UUID) -> list[FinancialTransactionDTO]:
        return self._list(
            select(FinancialTransaction)
            .where(FinancialTransaction.inventory_movement_id == movement_id)
            .order_by(FinancialTransaction.transaction_number)
        )

    def get_by_order(self, order_id: UUID) -> list[FinancialTransactionDTO]:
        return self._list(
            select(FinancialTransaction)
            .where(FinancialTransaction.order_id == order_id)
            .order_by(FinancialTransaction.transaction_date.desc())
        )
