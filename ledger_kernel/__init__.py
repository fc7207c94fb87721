"""
Ledger Kernel

Turns inventory movements into balanced double-entry journal entries:
- Human-readable, process-unique document numbering
- Lazily materialized chart of accounts
- Atomic journal posting with a debit == credit check
- Append-only persistence with ORM immutability guards
"""

__version__ = "0.1.0"
