"""
Sequence numbers -- human-readable identifiers for movements, journal
entries and financial transactions.

Responsibility:
    ``next(prefix)`` returns ``"{prefix}-{UTC YYYYMMDD}-{counter:06d}"``.
    One counter is shared by all prefixes and is never reset daily; callers
    must not assume the numbers for a given prefix are gap-free.

Architecture position:
    Kernel > Services.  Injected into JournalPostingEngine,
    FinancialTransactionRecorder and InventoryTransactionRecorder.

Invariants enforced:
    - Uniqueness within the process: InMemorySequenceNumberGenerator
      serializes increments with a single ``threading.Lock``; the counter is
      the only in-process shared mutable state of the pipeline.
    - DatabaseSequenceNumberGenerator allocates from a locked counter row
      (``SELECT ... FOR UPDATE``) so several processes sharing one database
      also get unique numbers.

Failure modes:
    - The in-memory counter restarts at 1 with the process.  Numbers issued
      on the same UTC day before a restart can repeat; the unique
      constraints on the number columns then reject the insert.  Single-
      instance deployments accept this; others use the database generator.
    - IntegrityError on concurrent first use of the counter row (handled by
      savepoint rollback and re-read).
"""

import threading
from abc import ABC, abstractmethod

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from ledger_kernel.db.base import Base
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


def format_sequence_number(prefix: str, clock: Clock, value: int) -> str:
    return f"{prefix}-{clock.now():%Y%m%d}-{value:06d}"


class SequenceNumberGenerator(ABC):
    """
    Source of unique, increasing, human-readable numbers.

    Contract:
        ``next(prefix)`` may be called concurrently from many threads; no
        two calls on the same generator return the same string.
    """

    @abstractmethod
    def next(self, prefix: str) -> str:
        ...


class InMemorySequenceNumberGenerator(SequenceNumberGenerator):
    """
    Process-wide counter guarded by one lock (the default generator).

    Non-goals:
        - Does NOT persist or recover the counter across restarts.
        - Is NOT safe for several processes sharing one ledger.
    """

    def __init__(self, clock: Clock | None = None, start: int = 0):
        self._clock = clock or SystemClock()
        self._counter = start
        self._lock = threading.Lock()

    def next(self, prefix: str) -> str:
        with self._lock:
            self._counter += 1
            value = self._counter
        return format_sequence_number(prefix, self._clock, value)

    @property
    def current_value(self) -> int:
        with self._lock:
            return self._counter


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row is a named counter with its current value.  Row-level locking
    keeps allocations unique under concurrency.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class DatabaseSequenceNumberGenerator(SequenceNumberGenerator):
    """
    Storage-backed generator using a locked counter row.

    Contract:
        Allocations happen in the caller's transaction on ``session``: the
        increment becomes visible when the caller commits and is returned
        if the caller rolls back.

    Guarantees:
        - ``SELECT ... FOR UPDATE`` serializes concurrent allocations on
          PostgreSQL; SQLite serializes writers at BEGIN IMMEDIATE.

    Non-goals:
        - Does NOT call ``session.commit()``.
    """

    COUNTER_NAME = "ledger_numbers"

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def next(self, prefix: str) -> str:
        return format_sequence_number(prefix, self._clock, self.next_value())

    def next_value(self, sequence_name: str = COUNTER_NAME) -> int:
        """
        Lock the counter row (creating it on first use), increment, flush.

        Postconditions: Returns an integer > 0 strictly greater than any
            value previously committed for ``sequence_name``.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use; another session may create the row concurrently
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str = COUNTER_NAME) -> int | None:
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
