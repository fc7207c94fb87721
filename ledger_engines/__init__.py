"""
Module: ledger_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines: payment
    fees, cash-flow classification, and receivable/payable aging.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import ledger_kernel types and logging only.
    MUST NOT import ledger_modules.

Invariants enforced:
    - Purity: engines never read the clock; "now" is a parameter.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical inputs always produce identical outputs.
"""

from ledger_engines.aging import (
    RECEIVABLE_PAYABLE_BUCKETS,
    AgeBucket,
    AgingCalculator,
    AgingSummary,
)
from ledger_engines.cash_flow import CashFlowSummary, summarize_cash_flow
from ledger_engines.fees import (
    DEFAULT_FEE_SCHEDULE,
    FeeBreakdown,
    FeeSchedule,
    PaymentMethod,
    calculate_payment_fee,
)

__all__ = [
    "AgeBucket",
    "AgingCalculator",
    "AgingSummary",
    "CashFlowSummary",
    "DEFAULT_FEE_SCHEDULE",
    "FeeBreakdown",
    "FeeSchedule",
    "PaymentMethod",
    "RECEIVABLE_PAYABLE_BUCKETS",
    "calculate_payment_fee",
    "summarize_cash_flow",
]
