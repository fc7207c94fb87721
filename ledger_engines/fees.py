"""
Module: ledger_engines.fees
Responsibility:
    Payment-processing fee lookup.  Maps a payment method and provider to a
    fee schedule (percentage rate plus fixed charge) and splits a gross
    amount into fee and net.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic; the fee is rounded half away from zero to
      2 places.
    - fee + net == amount.
    - Bank transfers and cash on delivery carry no fee, whatever the
      provider.
    - Provider names match case-insensitively; unknown or missing
      providers get the default schedule.

Failure modes:
    - ValueError for a payment method string that is not a PaymentMethod.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from ledger_kernel.db.types import ZERO, round_money
from ledger_engines.tracer import traced_engine


class PaymentMethod(str, Enum):
    """How a customer paid."""

    NOT_SPECIFIED = "not_specified"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"
    CASH_ON_DELIVERY = "cash_on_delivery"
    PIX = "pix"
    BOLETO = "boleto"
    CRYPTOCURRENCY = "cryptocurrency"
    STORE_CREDIT = "store_credit"


@dataclass(frozen=True)
class FeeSchedule:
    """Percentage rate plus fixed charge per payment."""

    rate: Decimal
    fixed: Decimal

    def fee_for(self, amount: Decimal) -> Decimal:
        return round_money(amount * self.rate + self.fixed)


@dataclass(frozen=True)
class FeeBreakdown:
    """Result of splitting a gross payment amount."""

    amount: Decimal
    fee: Decimal
    net: Decimal


PROVIDER_FEE_SCHEDULES: dict[str, FeeSchedule] = {
    "stripe": FeeSchedule(rate=Decimal("0.029"), fixed=Decimal("0.30")),
    "paypal": FeeSchedule(rate=Decimal("0.0349"), fixed=Decimal("0.49")),
}

DEFAULT_FEE_SCHEDULE = FeeSchedule(rate=Decimal("0.03"), fixed=ZERO)

FEE_FREE_METHODS = frozenset({PaymentMethod.BANK_TRANSFER, PaymentMethod.CASH_ON_DELIVERY})


def fee_schedule_for(provider: str | None) -> FeeSchedule:
    """Schedule for ``provider``; the default when missing or unknown."""
    if not provider:
        return DEFAULT_FEE_SCHEDULE
    return PROVIDER_FEE_SCHEDULES.get(provider.strip().lower(), DEFAULT_FEE_SCHEDULE)


@traced_engine("fees", "1.0", fingerprint_fields=("amount", "method", "provider"))
def calculate_payment_fee(
    amount: Decimal,
    method: PaymentMethod | str,
    provider: str | None = None,
) -> FeeBreakdown:
    """
    Split ``amount`` into processing fee and net.

    Examples:
        100.00 via Stripe -> fee 3.20, net 96.80
        100.00 by bank transfer -> fee 0.00, net 100.00
    """
    method = PaymentMethod(method)
    if method in FEE_FREE_METHODS:
        return FeeBreakdown(amount=amount, fee=round_money(ZERO), net=amount)

    fee = fee_schedule_for(provider).fee_for(amount)
    return FeeBreakdown(amount=amount, fee=fee, net=amount - fee)
