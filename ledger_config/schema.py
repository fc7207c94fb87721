"""
Configuration Schema (``ledger_config.schema``).

Frozen dataclasses describing a validated ledger configuration.  Instances
are produced by ``ledger_config.loader``; nothing else constructs them at
runtime.

Invariants enforced
-------------------
* Every dataclass is ``frozen=True``.
* Invalid values raise ``ConfigurationError`` at construction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from ledger_kernel.exceptions import ConfigurationError

VALID_SEQUENCE_BACKENDS = frozenset({"memory", "database"})


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self) -> None:
        if not self.url or "://" not in self.url:
            raise ConfigurationError(f"database.url is not a SQLAlchemy URL: {self.url!r}")
        for name in ("pool_size", "pool_timeout", "pool_recycle"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"database.{name} must be positive")
        if self.max_overflow < 0:
            raise ConfigurationError("database.max_overflow cannot be negative")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def __post_init__(self) -> None:
        level = str(self.level).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError(f"logging.level is not a logging level: {self.level!r}")
        object.__setattr__(self, "level", level)


@dataclass(frozen=True)
class SequenceConfig:
    backend: str = "memory"

    def __post_init__(self) -> None:
        if self.backend not in VALID_SEQUENCE_BACKENDS:
            raise ConfigurationError(
                f"sequence.backend must be one of {sorted(VALID_SEQUENCE_BACKENDS)}, "
                f"got {self.backend!r}"
            )


@dataclass(frozen=True)
class LedgerConfig:
    """
    Complete runtime configuration.

    ``inventory_policy`` is kept as a read-only mapping; the inventory
    module turns it into its own policy dataclass.
    """

    database: DatabaseConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    sequence: SequenceConfig = field(default_factory=SequenceConfig)
    inventory_policy: Mapping[str, Any] = field(default_factory=dict)
    source: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "inventory_policy", MappingProxyType(dict(self.inventory_policy))
        )
