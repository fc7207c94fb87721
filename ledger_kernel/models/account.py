"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts -- the target of
    every journal posting.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Account.code is unique (uq_account_code); concurrent creators of the
      same code collide here and the loser re-reads the winner's row.
    - normal_balance follows account_type (assets and expenses are debit
      normal; liabilities, equity and revenue are credit normal).
    - balance is a cached running total; it must equal the normal-balance
      signed sum of the account's postings (checked by LedgerSelector).

Failure modes:
    - IntegrityError on duplicate code.
    - ImmutabilityViolationError on delete (accounts are never deleted).
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import StrEnumType, TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.journal import JournalPosting


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def normal_balance(self) -> "NormalBalance":
        if self in (AccountType.ASSET, AccountType.EXPENSE):
            return NormalBalance.DEBIT
        return NormalBalance.CREDIT


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


class Account(TrackedBase):
    """
    Chart of accounts entry.

    Contract:
        Created lazily by LedgerAccountDirectory, never deleted.  Only
        ``balance`` (and audit metadata) changes after creation, and only
        inside a posting unit of work.

    Guarantees:
        - code is unique and non-null.
        - normal_balance is consistent with account_type.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_type", "account_type"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(
        StrEnumType(AccountType, 20),
        nullable=False,
    )

    normal_balance: Mapped[NormalBalance] = mapped_column(
        StrEnumType(NormalBalance, 10),
        nullable=False,
    )

    # Cached running balance, normal-balance signed
    balance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Accepts postings (leaf account) as opposed to a grouping node
    is_analytic: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    parent_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    postings: Mapped[list["JournalPosting"]] = relationship(
        back_populates="account",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.DEBIT

    def signed_effect(self, side: str, amount: Decimal) -> Decimal:
        """
        Balance change caused by posting ``amount`` on ``side``.

        Postconditions: positive when the posting is on the account's normal
            side, negative otherwise.
        """
        return amount if side == self.normal_balance.value else -amount
