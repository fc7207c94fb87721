"""Read-only selectors returning DTOs."""

from ledger_kernel.selectors.account_selector import AccountDTO, AccountSelector
from ledger_kernel.selectors.financial_selector import (
    FinancialTransactionDTO,
    FinancialTransactionSelector,
)
from ledger_kernel.selectors.journal_selector import (
    JournalEntryDTO,
    JournalPostingDTO,
    JournalSelector,
)
from ledger_kernel.selectors.ledger_selector import (
    AccountBalance,
    LedgerSelector,
    TrialBalanceRow,
)
from ledger_kernel.selectors.movement_selector import MovementDTO, MovementSelector

__all__ = [
    "AccountDTO",
    "AccountSelector",
    "AccountBalance",
    "FinancialTransactionDTO",
    "FinancialTransactionSelector",
    "JournalEntryDTO",
    "JournalPostingDTO",
    "JournalSelector",
    "LedgerSelector",
    "MovementDTO",
    "MovementSelector",
    "TrialBalanceRow",
]
