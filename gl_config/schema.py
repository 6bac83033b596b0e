"""
Configuration schema (``gl_config.schema``).

Frozen dataclasses describing the runtime configuration of the ledger.
Every field has a working default so an empty YAML file is a valid
configuration.  Validation happens in ``__post_init__``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gl_kernel.domain.dimensions import is_dimension_key

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "postgresql://localhost:5432/gl_kernel"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    # Wholesale retries of a unit of work on transient OperationalError
    retry_attempts: int = 3

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url must not be empty")
        if self.pool_size < 1:
            raise ValueError("database.pool_size must be >= 1")
        if self.retry_attempts < 1:
            raise ValueError("database.retry_attempts must be >= 1")


@dataclass(frozen=True)
class NumberingConfig:
    entry_number_prefix: str = "JE-"
    budget_code_prefix: str = "BUD-"
    number_width: int = 6

    def __post_init__(self) -> None:
        if not 1 <= self.number_width <= 20:
            raise ValueError("numbering.number_width must be between 1 and 20")


@dataclass(frozen=True)
class VarianceConfig:
    """
    Dimensions a budget line filters ledger lines by.

    A dimension set on the budget line must match exactly on the ledger
    line; a dimension left empty on the budget line matches anything.
    """

    dimension_filters: tuple[str, ...] = ("department", "cost_center")

    def __post_init__(self) -> None:
        for key in self.dimension_filters:
            if not is_dimension_key(key):
                raise ValueError(f"variance.dimension_filters: unknown dimension {key!r}")
        if len(set(self.dimension_filters)) != len(self.dimension_filters):
            raise ValueError("variance.dimension_filters contains duplicates")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(f"logging.level must be one of {_VALID_LOG_LEVELS}")

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level.upper())


@dataclass(frozen=True)
class LedgerConfig:
    """Root configuration object returned by ``get_active_config()``."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    numbering: NumberingConfig = field(default_factory=NumberingConfig)
    variance: VarianceConfig = field(default_factory=VarianceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
