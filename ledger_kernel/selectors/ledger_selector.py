"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Balances derived from journal postings -- trial balance and
    the consistency check between each account's cached running balance and
    its posting history.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - An account's cached balance equals the normal-balance-signed sum of
      its postings (debit-normal: debits - credits; credit-normal:
      credits - debits).  verify_account_balance() raises
      AccountBalanceMismatchError when it does not.
    - Sum of all debit totals equals sum of all credit totals.

Failure modes:
    - AccountNotFoundError for an unknown account code.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select

from ledger_kernel.db.types import ZERO, round_money
from ledger_kernel.exceptions import AccountBalanceMismatchError, AccountNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, NormalBalance
from ledger_kernel.models.journal import JournalPosting, LineSide
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.ledger")


@dataclass(frozen=True)
class TrialBalanceRow:
    """A single row in a trial balance report."""

    account_id: UUID
    account_code: str
    account_name: str
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        """Net balance (debits - credits)."""
        return self.debit_total - self.credit_total


@dataclass(frozen=True)
class AccountBalance:
    """Cached and derived balance for one account."""

    account_id: UUID
    account_code: str
    normal_balance: NormalBalance
    cached_balance: Decimal
    debit_total: Decimal
    credit_total: Decimal
    posting_count: int

    @property
    def derived_balance(self) -> Decimal:
        if self.normal_balance == NormalBalance.DEBIT:
            return self.debit_total - self.credit_total
        return self.credit_total - self.debit_total

    @property
    def is_consistent(self) -> bool:
        return self.cached_balance == self.derived_balance


_DEBIT_SUM = func.sum(
    case((JournalPosting.side == LineSide.DEBIT.value, JournalPosting.amount), else_=0)
)
_CREDIT_SUM = func.sum(
    case((JournalPosting.side == LineSide.CREDIT.value, JournalPosting.amount), else_=0)
)


class LedgerSelector(BaseSelector):
    """
    Balance computations over journal postings.

    Guarantees:
        - Amounts are returned as Decimal rounded to 2 places.
    """

    def trial_balance(self) -> list[TrialBalanceRow]:
        """
        Per-account debit and credit totals, ordered by account code.

        Postconditions: Only accounts with at least one posting appear.
        """
        rows = self.session.execute(
            select(
                Account.id,
                Account.code,
                Account.name,
                _DEBIT_SUM.label("debit_total"),
                _CREDIT_SUM.label("credit_total"),
            )
            .join(JournalPosting, JournalPosting.account_id == Account.id)
            .group_by(Account.id, Account.code, Account.name)
            .order_by(Account.code)
        ).all()

        return [
            TrialBalanceRow(
                account_id=row.id,
                account_code=row.code,
                account_name=row.name,
                debit_total=round_money(row.debit_total or ZERO),
                credit_total=round_money(row.credit_total or ZERO),
            )
            for row in rows
        ]

    def account_balance(self, account_code: str) -> AccountBalance:
        account = self.session.execute(
            select(Account).where(Account.code == account_code)
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(account_code)

        row = self.session.execute(
            select(
                _DEBIT_SUM.label("debit_total"),
                _CREDIT_SUM.label("credit_total"),
                func.count(JournalPosting.id).label("posting_count"),
            ).where(JournalPosting.account_id == account.id)
        ).one()

        return AccountBalance(
            account_id=account.id,
            account_code=account.code,
            normal_balance=account.normal_balance,
            cached_balance=round_money(account.balance),
            debit_total=round_money(row.debit_total or ZERO),
            credit_total=round_money(row.credit_total or ZERO),
            posting_count=row.posting_count,
        )

    def verify_account_balance(self, account_code: str) -> AccountBalance:
        """
        Re-derive an account's balance from its postings.

        Raises:
            AccountNotFoundError: Unknown account code.
            AccountBalanceMismatchError: Cached balance disagrees.
        """
        balance = self.account_balance(account_code)
        if not balance.is_consistent:
            logger.error(
                "account_balance_mismatch",
                extra={
                    "account_code": account_code,
                    "cached": str(balance.cached_balance),
                    "derived": str(balance.derived_balance),
                },
            )
            raise AccountBalanceMismatchError(
                account_code=account_code,
                cached=str(balance.cached_balance),
                derived=str(balance.derived_balance),
            )
        return balance

    def verify_all_balances(self) -> list[AccountBalance]:
        """verify_account_balance() for every account."""
        codes = self.session.execute(select(Account.code).order_by(Account.code)).scalars()
        return [self.verify_account_balance(code) for code in codes]
