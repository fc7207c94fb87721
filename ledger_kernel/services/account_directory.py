"""
LedgerAccountDirectory -- get-or-create lookup for chart-of-accounts entries.

Responsibility:
    Resolves account codes to Account rows, lazily creating well-known
    accounts the first time a posting needs them.

Architecture position:
    Kernel > Services.  Called by JournalPostingEngine inside the posting
    unit of work.

Invariants enforced:
    - One row per code.  Creation runs in a SAVEPOINT; a concurrent creator
      that loses the unique-constraint race rolls back only its savepoint
      and returns the winner's row instead of failing.

Failure modes:
    - IntegrityError propagates only if the row is still missing after the
      savepoint rollback (a genuine constraint problem, not a race).
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ledger_kernel.domain.posting_rules import STANDARD_ACCOUNTS, AccountKey
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account_directory")

# Actor recorded on rows the system creates on its own behalf
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000000")

AUTO_CREATED_DESCRIPTION = "Account automatically created by system"


class LedgerAccountDirectory(BaseService):
    """
    Idempotent account lookup.

    Guarantees:
        - get_or_create() with the same code returns the same account id,
          including under concurrent callers.
        - New accounts start with balance 0, active and analytic.
    """

    def get_by_code(self, code: str) -> Account | None:
        return self.session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()

    def get_or_create(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        actor_id: UUID = SYSTEM_ACTOR_ID,
    ) -> Account:
        """
        Look up ``code``; create it if absent.

        Preconditions: code is a non-empty chart-of-accounts code.
        Postconditions: Returns the single persisted Account for ``code``.
        """
        account = self.get_by_code(code)
        if account is not None:
            return account

        account_type = AccountType(account_type)
        savepoint = self.session.begin_nested()
        try:
            account = Account(
                code=code,
                name=name,
                account_type=account_type,
                normal_balance=account_type.normal_balance,
                is_active=True,
                is_analytic=True,
                description=AUTO_CREATED_DESCRIPTION,
                created_by_id=actor_id,
            )
            self.session.add(account)
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.info("account_creation_race_lost", extra={"account_code": code})
            account = self.get_by_code(code)
            if account is None:
                raise
            return account

        logger.info(
            "account_created",
            extra={
                "account_code": code,
                "account_name": name,
                "account_type": account_type.value,
            },
        )
        return account

    def get_standard(self, key: AccountKey) -> Account:
        """Resolve one of the well-known accounts, creating it if needed."""
        standard = STANDARD_ACCOUNTS[AccountKey(key)]
        return self.get_or_create(standard.code, standard.name, standard.account_type)

    def ensure_standard_accounts(self) -> dict[AccountKey, Account]:
        """Materialize every well-known account."""
        return {key: self.get_standard(key) for key in STANDARD_ACCOUNTS}
