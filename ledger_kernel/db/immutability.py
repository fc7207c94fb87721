"""
ORM-level immutability enforcement.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners registered here inspect attribute history and raise
ImmutabilityViolationError before any SQL is sent; the flush aborts and the
caller's unit of work rolls back.

    session.flush()
         |
         v
    [before_update] --> _check_*_update() --> ImmutabilityViolationError
    [before_delete] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Entity               | Rule
---------------------|----------------------------------------------------
JournalEntry         | ALWAYS immutable (created fully posted)
JournalPosting       | ALWAYS immutable
Account              | Only balance may change; never deleted
InventoryMovement    | Only journal_entry_id and notes may change; never deleted
FinancialTransaction | Only reconciliation fields and notes may change;
                     | never deleted

Audit metadata (updated_at, updated_by_id) may always change.

Usage::

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

``unregister_immutability_listeners()`` exists for tests only.
"""

from sqlalchemy import event, inspect

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.financial_transaction import MUTABLE_FINANCIAL_TRANSACTION_FIELDS
from ledger_kernel.models.movement import MUTABLE_MOVEMENT_FIELDS

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id"})
_MUTABLE_ACCOUNT_FIELDS = frozenset({"balance"})


def _changed_fields(target) -> set[str]:
    """Column attributes with pending changes, excluding audit metadata."""
    state = inspect(target)
    changed = set()
    for attr in state.mapper.column_attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if state.attrs[attr.key].history.has_changes():
            changed.add(attr.key)
    return changed


def _block(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "reason": reason,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _guard_update(entity_type: str, allowed: frozenset[str]):
    def _check(mapper, connection, target):
        forbidden = _changed_fields(target) - allowed
        if forbidden:
            _block(
                entity_type,
                target,
                "UPDATE",
                f"fields {sorted(forbidden)} cannot change after creation",
            )

    _check.__name__ = f"_check_{entity_type.lower()}_update"
    return _check


def _guard_delete(entity_type: str):
    def _check(mapper, connection, target):
        _block(entity_type, target, "DELETE", f"{entity_type} records are never deleted")

    _check.__name__ = f"_check_{entity_type.lower()}_delete"
    return _check


def _listener_table():
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.financial_transaction import FinancialTransaction
    from ledger_kernel.models.journal import JournalEntry, JournalPosting
    from ledger_kernel.models.movement import InventoryMovement

    return [
        (JournalEntry, "before_update", _check_journal_entry_update),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalPosting, "before_update", _check_journal_posting_update),
        (JournalPosting, "before_delete", _check_journal_posting_delete),
        (Account, "before_update", _check_account_update),
        (Account, "before_delete", _check_account_delete),
        (InventoryMovement, "before_update", _check_movement_update),
        (InventoryMovement, "before_delete", _check_movement_delete),
        (FinancialTransaction, "before_update", _check_financial_transaction_update),
        (FinancialTransaction, "before_delete", _check_financial_transaction_delete),
    ]


_check_journal_entry_update = _guard_update("JournalEntry", frozenset())
_check_journal_entry_delete = _guard_delete("JournalEntry")
_check_journal_posting_update = _guard_update("JournalPosting", frozenset())
_check_journal_posting_delete = _guard_delete("JournalPosting")
_check_account_update = _guard_update("Account", _MUTABLE_ACCOUNT_FIELDS)
_check_account_delete = _guard_delete("Account")
_check_movement_update = _guard_update("InventoryMovement", MUTABLE_MOVEMENT_FIELDS)
_check_movement_delete = _guard_delete("InventoryMovement")
_check_financial_transaction_update = _guard_update(
    "FinancialTransaction", MUTABLE_FINANCIAL_TRANSACTION_FIELDS
)
_check_financial_transaction_delete = _guard_delete("FinancialTransaction")


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners (idempotent).

    Call once after models are importable and before database work begins.
    """
    for model, event_name, listener_fn in _listener_table():
        if not event.contains(model, event_name, listener_fn):
            event.listen(model, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that must violate the rules on purpose.
    """
    for model, event_name, listener_fn in _listener_table():
        if event.contains(model, event_name, listener_fn):
            event.remove(model, event_name, listener_fn)
