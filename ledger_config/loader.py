"""
Configuration Loader (``ledger_config.loader``).

Reads the packaged defaults, overlays an optional deployment YAML file and
then environment overrides, and parses the result into
``ledger_config.schema`` dataclasses.  Callers go through
``ledger_config.get_active_config()``.

Failure modes
-------------
* Missing deployment file  -> ``ConfigurationError``.
* Malformed YAML  -> ``ConfigurationError`` wrapping ``yaml.YAMLError``.
* Unknown sections or keys  -> ``ConfigurationError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from ledger_config.schema import DatabaseConfig, LedgerConfig, LoggingConfig, SequenceConfig
from ledger_kernel.exceptions import ConfigurationError

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_DATABASE_URL = "LEDGER_DATABASE_URL"
ENV_LOG_LEVEL = "LEDGER_LOG_LEVEL"

_SECTIONS = ("database", "logging", "sequence", "inventory_policy")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load one YAML file as a dict (empty file -> {}).

    Raises:
        ConfigurationError: Missing file, bad YAML, or a non-mapping document.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigurationError("file not found", source=str(path)) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML: {exc}", source=str(path)) from exc

    if not isinstance(data, dict):
        raise ConfigurationError("top level must be a mapping", source=str(path))
    return data


def merge_sections(base: dict[str, Any], override: dict[str, Any], source: str) -> dict[str, Any]:
    """Overlay ``override`` on ``base`` one section deep."""
    unknown = set(override) - set(_SECTIONS)
    if unknown:
        raise ConfigurationError(f"unknown sections {sorted(unknown)}", source=source)

    merged = {name: dict(base.get(name) or {}) for name in _SECTIONS}
    for name, values in override.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigurationError(f"section {name!r} must be a mapping", source=source)
        merged[name].update(values)
    return merged


def apply_env_overrides(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    if environ.get(ENV_DATABASE_URL):
        data["database"]["url"] = environ[ENV_DATABASE_URL]
    if environ.get(ENV_LOG_LEVEL):
        data["logging"]["level"] = environ[ENV_LOG_LEVEL]
    return data


def _build(section_cls, values: dict[str, Any], name: str, source: str):
    try:
        return section_cls(**values)
    except TypeError as exc:
        raise ConfigurationError(f"bad {name} settings: {exc}", source=source) from exc


def parse_config(data: dict[str, Any], source: str) -> LedgerConfig:
    """Turn merged section dicts into a LedgerConfig."""
    return LedgerConfig(
        database=_build(DatabaseConfig, data["database"], "database", source),
        logging=_build(LoggingConfig, data["logging"], "logging", source),
        sequence=_build(SequenceConfig, data["sequence"], "sequence", source),
        inventory_policy=data["inventory_policy"],
        source=source,
    )


def load_config(path: Path | None, environ: Mapping[str, str]) -> LedgerConfig:
    data = load_yaml_file(DEFAULTS_PATH)
    data = merge_sections({}, data, str(DEFAULTS_PATH))
    source = str(DEFAULTS_PATH)
    if path is not None:
        source = str(path)
        data = merge_sections(data, load_yaml_file(Path(path)), source)
    data = apply_env_overrides(data, environ)
    return parse_config(data, source)
