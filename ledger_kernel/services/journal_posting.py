"""
JournalPostingEngine -- turns one inventory movement into one balanced
journal entry.

Responsibility:
    Selects the debit/credit account pair from the fixed posting table,
    writes the entry header and its two postings, and applies the
    normal-balance-signed effect to both account balances.

Architecture position:
    Kernel > Services.  Called by InventoryTransactionRecorder inside its
    posting unit of work.  Flush-only: account lookups, the entry, the two
    postings and both balance updates are committed (or rolled back)
    together by the caller.

Invariants enforced:
    - Sum of debits == sum of credits == total_amount, asserted before
      anything is flushed.
    - Accounts are read ``SELECT ... FOR UPDATE`` (ordered by code) before
      their balances change, so concurrent postings to the same account
      serialize in the database.

Failure modes:
    - UnsupportedMovementTypeError: no posting rule for the movement type.
    - UnbalancedEntryError: the built postings do not balance.
    - SQLAlchemyError from the session (lock timeouts, constraint errors).
"""

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import round_money
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.posting_rules import (
    PostingLineRule,
    movement_fields,
    resolve_posting_rule,
)
from ledger_kernel.exceptions import UnbalancedEntryError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalPosting, LineSide
from ledger_kernel.models.movement import InventoryMovement
from ledger_kernel.services.account_directory import LedgerAccountDirectory
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.sequence_service import SequenceNumberGenerator

logger = get_logger("services.journal_posting")


class JournalPostingEngine(BaseService):
    """
    Double-entry posting for inventory movements.

    Contract:
        ``post(movement, actor_id)`` returns the new JournalEntry, or None
        for movement types that carry no accounting (reservation,
        reservation release, transfer).

    Guarantees:
        - Exactly two postings, debit first, each equal to the movement's
          total cost.
        - document_number is the movement's document number or movement
          number (adjustments and losses always use the movement number).

    Non-goals:
        - Does NOT commit; does NOT link the entry back to the movement.
    """

    def __init__(
        self,
        session: Session,
        sequence: SequenceNumberGenerator,
        clock: Clock | None = None,
        accounts: LedgerAccountDirectory | None = None,
    ):
        super().__init__(session, clock)
        self._sequence = sequence
        self._accounts = accounts or LedgerAccountDirectory(session, self.clock)

    def post(self, movement: InventoryMovement, actor_id: UUID) -> JournalEntry | None:
        """
        Build and flush the journal entry for ``movement``.

        Preconditions: movement is persisted (has an id).
        Postconditions: On success the entry, both postings and both
            balance updates are flushed in the caller's transaction.

        Raises:
            UnsupportedMovementTypeError: Unknown movement type.
            UnbalancedEntryError: Debits, credits and total disagree.
        """
        rule = resolve_posting_rule(movement.movement_type, movement.quantity)
        if rule is None:
            logger.info(
                "journal_posting_skipped",
                extra={
                    "movement_id": str(movement.id),
                    "movement_type": movement.movement_type.value,
                },
            )
            return None

        debit_account = self._accounts.get_standard(rule.debit.account)
        credit_account = self._accounts.get_standard(rule.credit.account)
        self._lock_accounts(debit_account, credit_account)

        amount = round_money(movement.total_cost)
        fields = movement_fields(movement)
        now = self.clock.now()
        document_number = (
            movement.movement_number if rule.use_movement_number else movement.reference_number
        )

        entry = JournalEntry(
            id=uuid4(),
            entry_number=self._sequence.next(rule.document_type.value),
            entry_date=now,
            document_type=rule.document_type.value,
            document_number=document_number,
            description=rule.entry_description.format(**fields),
            total_amount=amount,
            product_id=movement.product_id,
            order_id=movement.order_id,
            inventory_movement_id=movement.id,
            is_posted=True,
            posted_at=now,
            created_by_id=actor_id,
        )

        with LogContext.bind(movement_id=movement.id, entry_id=entry.id):
            debit = self._build_posting(
                entry, debit_account, LineSide.DEBIT, rule.debit, amount, movement, fields, 0, actor_id
            )
            credit = self._build_posting(
                entry, credit_account, LineSide.CREDIT, rule.credit, amount, movement, fields, 1, actor_id
            )
            self._assert_balanced(entry, (debit, credit))

            self.session.add(entry)
            for posting, account in ((debit, debit_account), (credit, credit_account)):
                account.balance = account.balance + account.signed_effect(
                    posting.side.value, posting.amount
                )
            self.session.flush()

            logger.info(
                "journal_entry_posted",
                extra={
                    "entry_number": entry.entry_number,
                    "document_type": entry.document_type,
                    "document_number": entry.document_number,
                    "total_amount": str(amount),
                    "debit_account": debit_account.code,
                    "credit_account": credit_account.code,
                },
            )
        return entry

    def _build_posting(
        self,
        entry: JournalEntry,
        account: Account,
        side: LineSide,
        line_rule: PostingLineRule,
        amount: Decimal,
        movement: InventoryMovement,
        fields: dict[str, object],
        line_seq: int,
        actor_id: UUID,
    ) -> JournalPosting:
        return JournalPosting(
            id=uuid4(),
            entry=entry,
            account_id=account.id,
            side=side,
            amount=amount,
            description=line_rule.description.format(**fields),
            cost_center=movement.cost_center if line_rule.carries_location else None,
            line_seq=line_seq,
            created_by_id=actor_id,
        )

    def _assert_balanced(
        self, entry: JournalEntry, postings: tuple[JournalPosting, ...]
    ) -> None:
        debits = sum((p.amount for p in postings if p.side == LineSide.DEBIT), Decimal("0"))
        credits = sum((p.amount for p in postings if p.side == LineSide.CREDIT), Decimal("0"))
        balanced = debits == credits == entry.total_amount
        logger.debug(
            "balance_validated",
            extra={
                "sum_debit": str(debits),
                "sum_credit": str(credits),
                "total_amount": str(entry.total_amount),
                "balanced": balanced,
            },
        )
        if not balanced:
            raise UnbalancedEntryError(
                debits=str(debits),
                credits=str(credits),
                total=str(entry.total_amount),
            )

    def _lock_accounts(self, *accounts: Account) -> None:
        """Row-lock the accounts about to change, in code order."""
        ids = [a.id for a in sorted(accounts, key=lambda a: a.code)]
        self.session.execute(
            select(Account)
            .where(Account.id.in_(ids))
            .order_by(Account.code)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
