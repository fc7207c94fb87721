"""ORM models for the movement ledger."""

from ledger_kernel.models.account import Account, AccountType, NormalBalance
from ledger_kernel.models.financial_transaction import (
    FinancialTransaction,
    FinancialTransactionType,
    TransactionStatus,
)
from ledger_kernel.models.journal import JournalEntry, JournalPosting, LineSide
from ledger_kernel.models.movement import InventoryMovement, MovementType

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "JournalEntry",
    "JournalPosting",
    "LineSide",
    "InventoryMovement",
    "MovementType",
    "FinancialTransaction",
    "FinancialTransactionType",
    "TransactionStatus",
]
