"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.account_directory import LedgerAccountDirectory
from ledger_kernel.services.journal_posting import JournalPostingEngine
from ledger_kernel.services.sequence_service import (
    DatabaseSequenceNumberGenerator,
    InMemorySequenceNumberGenerator,
    SequenceNumberGenerator,
)

__all__ = [
    "DatabaseSequenceNumberGenerator",
    "InMemorySequenceNumberGenerator",
    "JournalPostingEngine",
    "LedgerAccountDirectory",
    "SequenceNumberGenerator",
]
