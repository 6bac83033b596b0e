"""
Configuration Loader (``gl_config.loader``).

Responsibility
--------------
Loads a YAML file and parses it into the frozen ``gl_config.schema``
dataclasses.  Callers obtain configuration through
``gl_config.get_active_config()``; this module is the parsing step
behind it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key  -> ``ValueError``.
* Invalid value  -> ``ValueError`` from the schema ``__post_init__``.
"""

from __future__ import annotations

from dataclasses import fields, replace
from pathlib import Path
from typing import Any

import yaml

from gl_config.schema import (
    DatabaseConfig,
    LedgerConfig,
    LoggingConfig,
    NumberingConfig,
    VarianceConfig,
)

_SECTIONS: dict[str, type] = {
    "database": DatabaseConfig,
    "numbering": NumberingConfig,
    "variance": VarianceConfig,
    "logging": LoggingConfig,
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _parse_section(name: str, cls: type, data: Any):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ValueError(f"Section {name!r} must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in {name!r}: {sorted(unknown)}")
    values = dict(data)
    if name == "variance" and "dimension_filters" in values:
        values["dimension_filters"] = tuple(values["dimension_filters"] or ())
    return cls(**values)


def parse_config(data: dict[str, Any]) -> LedgerConfig:
    """Build a LedgerConfig from an already-loaded mapping."""
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")
    return LedgerConfig(
        **{name: _parse_section(name, cls, data.get(name)) for name, cls in _SECTIONS.items()}
    )


def load_config(path: Path) -> LedgerConfig:
    return parse_config(load_yaml_file(path))


def with_database_url(config: LedgerConfig, url: str) -> LedgerConfig:
    return replace(config, database=replace(config.database, url=url))
