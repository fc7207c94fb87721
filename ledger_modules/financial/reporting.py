"""
FinancialReportingEngine -- cash-flow and receivable/payable summaries.

Reads committed financial transactions through
FinancialTransactionSelector and hands them to the pure engines in
ledger_engines.  Never writes.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_engines.aging import AgingCalculator, AgingSummary
from ledger_engines.cash_flow import CashFlowSummary, summarize_cash_flow
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.financial_transaction import FinancialTransactionType
from ledger_kernel.selectors.financial_selector import FinancialTransactionSelector

logger = get_logger("modules.financial.reporting")


class FinancialReportingEngine:
    """
    Period and open-item reports.

    Guarantees:
        - Cash flow covers transactions dated in [start, end).
        - Receivable/payable summaries include pending rows only, aged as
          of the injected clock.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._selector = FinancialTransactionSelector(session)
        self._aging = AgingCalculator()

    def cash_flow(self, start: datetime, end: datetime) -> CashFlowSummary:
        transactions = self._selector.get_by_period(start, end)
        summary = summarize_cash_flow(transactions)
        logger.info(
            "cash_flow_summary_calculated",
            extra={
                "start": start,
                "end": end,
                "transaction_count": len(transactions),
                "net_cash_flow": str(summary.net_cash_flow),
            },
        )
        return summary

    def cash_flow_summary(self, start: datetime, end: datetime) -> dict[str, Decimal]:
        return self.cash_flow(start, end).to_dict()

    def _age_open_items(self, transaction_type: FinancialTransactionType) -> AgingSummary:
        open_items = self._selector.get_pending_by_type(transaction_type)
        return self._aging.summarize(open_items, as_of=self._clock.now())

    def receivables_aging(self) -> AgingSummary:
        summary = self._age_open_items(FinancialTransactionType.ACCOUNTS_RECEIVABLE)
        logger.info(
            "receivables_summary_calculated",
            extra={"total": str(summary.total), "count": summary.count},
        )
        return summary

    def payables_aging(self) -> AgingSummary:
        summary = self._age_open_items(FinancialTransactionType.ACCOUNTS_PAYABLE)
        logger.info(
            "payables_summary_calculated",
            extra={"total": str(summary.total), "count": summary.count},
        )
        return summary

    def accounts_receivable_summary(self) -> dict[str, Decimal]:
        return self.receivables_aging().to_dict("TotalReceivable")

    def accounts_payable_summary(self) -> dict[str, Decimal]:
        return self.payables_aging().to_dict("TotalPayable")
