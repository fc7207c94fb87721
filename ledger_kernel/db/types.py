"""
Module: ledger_kernel.db.types
Responsibility: Money rounding shared by every service, engine and selector.
Architecture position: Kernel > DB.  MUST NOT import from models/, domain/,
    services/ or selectors/.

Invariants enforced:
    - round_money() is the only rounding applied to monetary values: two
      places, half away from zero (ROUND_HALF_UP).  Columns keep more
      precision (Numeric(38, 9), see db/base.py); amounts are rounded
      before they are stored or compared.
    - No floats.  Amounts are Decimal end to end.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")

_CENT = Decimal("0.01")


def round_money(value: Decimal | int | str) -> Decimal:
    """
    Quantize to cents, half away from zero.

    2.345 -> 2.35, -2.345 -> -2.35, 1.5 * 0.03 -> 0.05.
    """
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)
