"""
Module: ledger_engines.aging
Responsibility:
    Age open receivables and payables and total them into day buckets.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  "Now" is passed in by
    the caller; engines never read the clock.

Invariants enforced:
    - Age is whole days elapsed: (as_of - transaction_date).days.
    - Every item lands in exactly one bucket; items dated in the future
      (negative age) count as current.
    - Sum of bucket totals == total.

Failure modes:
    - ValueError when an age does not fall into any configured bucket.

Usage:
    from ledger_engines.aging import AgingCalculator

    calculator = AgingCalculator()
    summary = calculator.summarize(open_items, as_of=clock.now())
    summary.to_dict("TotalReceivable")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from ledger_kernel.db.types import ZERO
from ledger_kernel.logging_config import get_logger
from ledger_engines.tracer import traced_engine

logger = get_logger("engines.aging")


class AgeableItem(Protocol):
    transaction_date: datetime
    amount: Decimal


@dataclass(frozen=True)
class AgeBucket:
    """
    A contiguous range of ages in days.

    Guarantees:
        - min_days >= 0.
        - max_days >= min_days (when bounded).
    """

    name: str
    min_days: int
    max_days: int | None  # None = unbounded

    def __post_init__(self) -> None:
        if self.min_days < 0:
            raise ValueError("min_days cannot be negative")
        if self.max_days is not None and self.max_days < self.min_days:
            raise ValueError("max_days cannot be less than min_days")

    def contains(self, age_days: int) -> bool:
        if age_days < self.min_days:
            return False
        if self.max_days is None:
            return True
        return age_days <= self.max_days


RECEIVABLE_PAYABLE_BUCKETS: tuple[AgeBucket, ...] = (
    AgeBucket("Current_0_30", 0, 30),
    AgeBucket("Aging_31_60", 31, 60),
    AgeBucket("Aging_61_90", 61, 90),
    AgeBucket("Aging_Over90", 91, None),
)


@dataclass(frozen=True)
class AgingSummary:
    """Totals per bucket for a set of open items."""

    as_of: datetime
    total: Decimal
    bucket_totals: tuple[tuple[str, Decimal], ...]
    count: int

    def bucket_total(self, bucket_name: str) -> Decimal:
        return dict(self.bucket_totals)[bucket_name]

    def to_dict(self, total_key: str) -> dict[str, Decimal]:
        """Report keys as published to callers, e.g. total_key="TotalPayable"."""
        result: dict[str, Decimal] = {total_key: self.total}
        result.update(self.bucket_totals)
        result["Count"] = Decimal(self.count)
        return result


class AgingCalculator:
    """
    Bucket dated amounts by age.

    Contract:
        Pure functions; all data passed as parameters.
    """

    DEFAULT_BUCKETS = RECEIVABLE_PAYABLE_BUCKETS

    def calculate_age(self, transaction_date: datetime, as_of: datetime) -> int:
        """Whole days elapsed; negative when transaction_date is after as_of."""
        return (as_of - transaction_date).days

    def classify(
        self,
        age_days: int,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgeBucket:
        """
        The bucket containing ``age_days``; negative ages map to the first
        bucket.

        Raises:
            ValueError: If age doesn't fit any bucket.
        """
        if buckets is None:
            buckets = self.DEFAULT_BUCKETS

        if age_days < 0:
            return buckets[0]

        for bucket in buckets:
            if bucket.contains(age_days):
                return bucket

        logger.warning(
            "age_classification_no_bucket",
            extra={"age_days": age_days, "bucket_count": len(buckets)},
        )
        raise ValueError(f"Age {age_days} does not fit any bucket")

    @traced_engine("aging", "1.0", fingerprint_fields=("items", "as_of", "buckets"))
    def summarize(
        self,
        items: Sequence[AgeableItem],
        as_of: datetime,
        buckets: Sequence[AgeBucket] | None = None,
    ) -> AgingSummary:
        """Total ``items`` by age bucket as of ``as_of``."""
        if buckets is None:
            buckets = self.DEFAULT_BUCKETS

        totals: dict[str, Decimal] = {b.name: ZERO for b in buckets}
        total = ZERO
        count = 0
        for item in items:
            bucket = self.classify(self.calculate_age(item.transaction_date, as_of), buckets)
            totals[bucket.name] += item.amount
            total += item.amount
            count += 1

        return AgingSummary(
            as_of=as_of,
            total=total,
            bucket_totals=tuple((b.name, totals[b.name]) for b in buckets),
            count=count,
        )
