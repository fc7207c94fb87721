"""Database layer - engine, base classes, money rounding, and immutability guards."""

from ledger_kernel.db.base import (
    Base,
    StrEnumType,
    TrackedBase,
    UTCDateTime,
    UUIDString,
)
from ledger_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    session_scope,
    unit_of_work,
)
from ledger_kernel.db.types import ZERO, round_money

__all__ = [
    "get_engine",
    "get_session",
    "create_tables",
    "session_scope",
    "unit_of_work",
    "Base",
    "TrackedBase",
    "UTCDateTime",
    "UUIDString",
    "StrEnumType",
    "ZERO",
    "round_money",
]
