"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration: packaged defaults, an optional deployment YAML file,
    then the LEDGER_DATABASE_URL and LEDGER_LOG_LEVEL environment
    overrides, validated into frozen dataclasses.

Architecture position:
    Configuration sits beside ``ledger_kernel`` and below
    ``ledger_modules``.  The kernel never imports from ``ledger_config``.

Failure modes:
    - ``ConfigurationError`` for a missing file, bad YAML, unknown keys or
      invalid values.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from ledger_config.loader import load_config
from ledger_config.schema import DatabaseConfig, LedgerConfig, LoggingConfig, SequenceConfig
from ledger_kernel.logging_config import get_logger

_logger = get_logger("config")


def get_active_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerConfig:
    """
    Load and validate the active configuration.

    Args:
        path: Deployment YAML overlaying the packaged defaults.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        ConfigurationError: If any layer is missing or invalid.
    """
    if environ is None:
        environ = os.environ
    config = load_config(Path(path) if path is not None else None, environ)
    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "trace_type": "LEDGER_CONFIG_TRACE",
            "config_source": config.source,
            "dialect": config.database.url.split(":", 1)[0],
            "log_level": config.logging.level,
            "sequence_backend": config.sequence.backend,
        },
    )
    return config


__all__ = [
    "DatabaseConfig",
    "LedgerConfig",
    "LoggingConfig",
    "SequenceConfig",
    "get_active_config",
]
