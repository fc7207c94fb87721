"""Read-only access to chart-of-accounts entries."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.models.account import Account, AccountType, NormalBalance
from ledger_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class AccountDTO:
    id: UUID
    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    balance: Decimal
    is_active: bool
    is_analytic: bool
    description: str | None


class AccountSelector(BaseSelector):
    """Account lookups by code; never creates accounts."""

    @staticmethod
    def to_dto(account: Account) -> AccountDTO:
        return AccountDTO(
            id=account.id,
            code=account.code,
            name=account.name,
            account_type=account.account_type,
            normal_balance=account.normal_balance,
            balance=account.balance,
            is_active=account.is_active,
            is_analytic=account.is_analytic,
            description=account.description,
        )

    def get_by_code(self, code: str) -> AccountDTO | None:
        account = self.session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()
        return self.to_dto(account) if account is not None else None

    def list_accounts(self) -> list[AccountDTO]:
        """All accounts ordered by code."""
        accounts = self.session.execute(select(Account).order_by(Account.code)).scalars()
        return [self.to_dto(a) for a in accounts]
