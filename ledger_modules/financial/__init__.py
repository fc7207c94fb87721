"""
Financial Transactions Module.

Records cash-flow-level transactions (revenue, receivables, payables,
payments, fees, refunds, expenses) and reports on them.  Fee arithmetic,
cash-flow classification and aging come from ledger_engines.
"""

from ledger_modules.financial.models import PaymentDetails, PaymentStatus
from ledger_modules.financial.reporting import FinancialReportingEngine
from ledger_modules.financial.service import FinancialTransactionRecorder

__all__ = [
    "FinancialReportingEngine",
    "FinancialTransactionRecorder",
    "PaymentDetails",
    "PaymentStatus",
]
