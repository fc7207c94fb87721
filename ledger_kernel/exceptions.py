"""
Typed exception hierarchy for the movement ledger.

Every error has its own class and a machine-readable ``code`` class
attribute, and carries structured data as instance attributes.  Callers
catch by type, never by message text; the JSON log formatter exports the
attributes as ``exc_*`` fields.

    LedgerKernelError (base)
    |
    +-- MovementError
    |   +-- MovementPersistenceError       fatal, propagated
    |   +-- InvalidMovementError           fatal, propagated
    |   +-- UnsupportedMovementTypeError   fatal inside the posting engine
    |
    +-- PostingError
    |   +-- UnbalancedEntryError
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |   +-- AccountBalanceMismatchError
    |
    +-- FinancialTransactionError
    |   +-- FinancialTransactionNotFoundError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConfigurationError

Handling policy
---------------
The inventory recorder treats MovementError raised while persisting the
movement as fatal.  Any LedgerKernelError or SQLAlchemy error raised while
posting the journal entry or recording financial transactions is absorbed
and reported as a StageOutcome failure.  Reconciling an already reconciled
transaction is not an error.
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Movement-related exceptions


class MovementError(LedgerKernelError):
    """Base exception for inventory movement errors."""

    code: str = "MOVEMENT_ERROR"


class MovementPersistenceError(MovementError):
    """The inventory movement could not be stored."""

    code: str = "MOVEMENT_PERSISTENCE_FAILED"

    def __init__(self, movement_number: str, reason: str):
        self.movement_number = movement_number
        self.reason = reason
        super().__init__(f"Failed to persist movement {movement_number}: {reason}")


class InvalidMovementError(MovementError):
    """Movement request rejected before anything was stored."""

    code: str = "INVALID_MOVEMENT"

    def __init__(self, movement_type: str, reason: str):
        self.movement_type = movement_type
        self.reason = reason
        super().__init__(f"Invalid {movement_type} movement: {reason}")


class UnsupportedMovementTypeError(MovementError):
    """No posting rule exists for the movement type."""

    code: str = "UNSUPPORTED_MOVEMENT_TYPE"

    def __init__(self, movement_type: str):
        self.movement_type = movement_type
        super().__init__(f"Unsupported movement type for posting: {movement_type}")


# Posting-related exceptions


class PostingError(LedgerKernelError):
    """Base exception for journal posting errors."""

    code: str = "POSTING_ERROR"


class UnbalancedEntryError(PostingError):
    """Journal entry debits do not equal credits (or the entry total)."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: str, credits: str, total: str):
        self.debits = debits
        self.credits = credits
        self.total = total
        super().__init__(
            f"Unbalanced entry: debits={debits}, credits={credits}, total={total}"
        )


# Account-related exceptions


class AccountError(LedgerKernelError):
    """Base exception for ledger account errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account with the given code does not exist."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account not found: {account_code}")


class AccountBalanceMismatchError(AccountError):
    """Cached account balance differs from the sum of its postings."""

    code: str = "ACCOUNT_BALANCE_MISMATCH"

    def __init__(self, account_code: str, cached: str, derived: str):
        self.account_code = account_code
        self.cached = cached
        self.derived = derived
        super().__init__(
            f"Balance mismatch on account {account_code}: "
            f"cached={cached}, derived from postings={derived}"
        )


# Financial-transaction exceptions


class FinancialTransactionError(LedgerKernelError):
    """Base exception for financial transaction errors."""

    code: str = "FINANCIAL_TRANSACTION_ERROR"


class FinancialTransactionNotFoundError(FinancialTransactionError):
    """Financial transaction with the given id does not exist."""

    code: str = "FINANCIAL_TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Financial transaction not found: {transaction_id}")


# Immutability-related exceptions


class ImmutabilityError(LedgerKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Journal entries and postings never change; movements and financial
    transactions only change in their designated mutable fields.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration


class ConfigurationError(LedgerKernelError):
    """Configuration file or environment override is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, reason: str, source: str | None = None):
        self.reason = reason
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(f"Invalid configuration{where}: {reason}")
