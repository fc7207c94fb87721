"""
Posting rules -- the fixed movement-type to debit/credit table.

Responsibility:
    Pure lookup from (movement type, quantity sign) to the account pair,
    document type and description templates used by JournalPostingEngine.
    Also defines the well-known chart-of-accounts entries the rules refer
    to.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  May import models' enums only.

Invariants enforced:
    - Every accounting-relevant movement type maps to exactly one rule;
      both postings of a rule carry the same amount, so the entry is
      balanced by construction.
    - Reservation, reservation release and transfer map to no rule.

Failure modes:
    - UnsupportedMovementTypeError for a value outside MovementType.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from ledger_kernel.exceptions import UnsupportedMovementTypeError
from ledger_kernel.models.account import AccountType
from ledger_kernel.models.movement import MovementType


class AccountKey(str, Enum):
    """Well-known accounts the posting rules refer to."""

    INVENTORY = "inventory"
    CASH = "cash"
    SUPPLIERS = "suppliers"
    COGS = "cogs"
    INVENTORY_LOSS = "inventory_loss"
    OTHER_EXPENSES = "other_expenses"
    OTHER_INCOME = "other_income"


@dataclass(frozen=True)
class StandardAccount:
    code: str
    name: str
    account_type: AccountType


STANDARD_ACCOUNTS: dict[AccountKey, StandardAccount] = {
    AccountKey.INVENTORY: StandardAccount("1.1.03.001", "Inventory", AccountType.ASSET),
    AccountKey.CASH: StandardAccount("1.1.01.001", "Cash", AccountType.ASSET),
    AccountKey.SUPPLIERS: StandardAccount(
        "2.1.01.001", "Accounts Payable - Suppliers", AccountType.LIABILITY
    ),
    AccountKey.COGS: StandardAccount("3.1.01.001", "Cost of Goods Sold", AccountType.EXPENSE),
    AccountKey.INVENTORY_LOSS: StandardAccount(
        "3.2.01.001", "Inventory Loss", AccountType.EXPENSE
    ),
    AccountKey.OTHER_EXPENSES: StandardAccount(
        "3.2.01.002", "Other Operating Expenses", AccountType.EXPENSE
    ),
    AccountKey.OTHER_INCOME: StandardAccount(
        "4.2.01.001", "Other Operating Income", AccountType.REVENUE
    ),
}


class DocumentType(str, Enum):
    """Journal entry document types; also the entry-number prefix."""

    PURCHASE = "PURCHASE"
    COGS = "COGS"
    SALE_RETURN = "SALE_RETURN"
    PURCHASE_RETURN = "PURCHASE_RETURN"
    ADJUSTMENT = "ADJUSTMENT"
    LOSS = "LOSS"


@dataclass(frozen=True)
class PostingLineRule:
    """
    One side of a rule.

    ``description`` is a str.format template over the fields produced by
    ``movement_fields``.  ``carries_location`` puts the movement's cost
    center on the posting.
    """

    account: AccountKey
    description: str
    carries_location: bool = False


@dataclass(frozen=True)
class PostingRule:
    document_type: DocumentType
    entry_description: str
    debit: PostingLineRule
    credit: PostingLineRule
    # Adjustment and loss entries are always numbered after the movement
    use_movement_number: bool = False


_PURCHASE = PostingRule(
    DocumentType.PURCHASE,
    "Purchase of goods - {name} ({sku})",
    debit=PostingLineRule(
        AccountKey.INVENTORY, "Purchase - {qty} units x {unit_cost}", carries_location=True
    ),
    credit=PostingLineRule(AccountKey.SUPPLIERS, "Supplier - Invoice {document}"),
)

_SALE = PostingRule(
    DocumentType.COGS,
    "Inventory withdrawal - Sale {name} ({sku})",
    debit=PostingLineRule(
        AccountKey.COGS, "Sale - {abs_qty} units x {unit_cost}", carries_location=True
    ),
    credit=PostingLineRule(
        AccountKey.INVENTORY, "Inventory withdrawal - Order {order}", carries_location=True
    ),
)

_SALE_RETURN = PostingRule(
    DocumentType.SALE_RETURN,
    "Sales return - {name} ({sku})",
    debit=PostingLineRule(AccountKey.INVENTORY, "Return - {qty} units", carries_location=True),
    credit=PostingLineRule(AccountKey.COGS, "COGS reversal - Order {order}"),
)

_PURCHASE_RETURN = PostingRule(
    DocumentType.PURCHASE_RETURN,
    "Purchase return - {name} ({sku})",
    debit=PostingLineRule(AccountKey.SUPPLIERS, "Return to supplier - Invoice {document}"),
    credit=PostingLineRule(
        AccountKey.INVENTORY, "Return - {abs_qty} units", carries_location=True
    ),
)

_ADJUSTMENT_SURPLUS = PostingRule(
    DocumentType.ADJUSTMENT,
    "Inventory adjustment - {name} ({sku})",
    debit=PostingLineRule(
        AccountKey.INVENTORY, "Adjustment - {qty} units | {notes}", carries_location=True
    ),
    credit=PostingLineRule(AccountKey.OTHER_INCOME, "Inventory adjustment - {sku}"),
    use_movement_number=True,
)

_ADJUSTMENT_SHORTAGE = PostingRule(
    DocumentType.ADJUSTMENT,
    "Inventory adjustment - {name} ({sku})",
    debit=PostingLineRule(AccountKey.OTHER_EXPENSES, "Inventory adjustment - {sku}"),
    credit=PostingLineRule(
        AccountKey.INVENTORY, "Adjustment - {qty} units | {notes}", carries_location=True
    ),
    use_movement_number=True,
)

_LOSS = PostingRule(
    DocumentType.LOSS,
    "Inventory loss/shrinkage - {name} ({sku})",
    debit=PostingLineRule(
        AccountKey.INVENTORY_LOSS,
        "Loss/shrinkage - {abs_qty} units | {notes}",
        carries_location=True,
    ),
    credit=PostingLineRule(
        AccountKey.INVENTORY, "Write-off for loss - {sku}", carries_location=True
    ),
    use_movement_number=True,
)

_RULES: dict[MovementType, PostingRule | None] = {
    MovementType.PURCHASE: _PURCHASE,
    MovementType.SALE: _SALE,
    MovementType.FULFILLMENT: _SALE,
    MovementType.SALE_RETURN: _SALE_RETURN,
    MovementType.PURCHASE_RETURN: _PURCHASE_RETURN,
    MovementType.LOSS: _LOSS,
    MovementType.RESERVATION: None,
    MovementType.RESERVATION_RELEASE: None,
    MovementType.TRANSFER: None,
}


def resolve_posting_rule(movement_type, quantity: int) -> PostingRule | None:
    """
    Select the rule for a movement.

    Preconditions: movement_type is a MovementType or its value.
    Postconditions: Returns None for types that produce no journal entry.
        Adjustments with quantity > 0 are surpluses; zero or negative
        quantities are shortages.

    Raises:
        UnsupportedMovementTypeError: movement_type is not a known type.
    """
    try:
        movement_type = MovementType(movement_type)
    except ValueError:
        raise UnsupportedMovementTypeError(str(movement_type)) from None

    if movement_type == MovementType.ADJUSTMENT:
        return _ADJUSTMENT_SURPLUS if quantity > 0 else _ADJUSTMENT_SHORTAGE
    if movement_type not in _RULES:
        raise UnsupportedMovementTypeError(movement_type.value)
    return _RULES[movement_type]


def movement_fields(movement) -> dict[str, object]:
    """Template fields for a movement's posting and entry descriptions."""
    return {
        "name": movement.product_name,
        "sku": movement.product_sku,
        "qty": movement.quantity,
        "abs_qty": abs(movement.quantity),
        "unit_cost": f"{Decimal(movement.unit_cost):.2f}",
        "document": movement.document_number or "",
        "order": movement.order_id or "",
        "notes": movement.notes or "",
    }
