"""
BaseService -- abstract base for kernel and module services.

Responsibility:
    Common constructor and session-handling contract.  Services write via
    ``session.add()`` / ``session.flush()`` and never commit or roll back;
    the caller owns the unit of work (see ``db.engine.unit_of_work``).

Failure modes:
    - A subclass that commits breaks the atomicity of the posting unit
      (account lookups, entry, postings, balance updates).
"""

from abc import ABC

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Abstract base class for services.

    Guarantees:
        - Flush-only: never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Read-only queries belong in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
