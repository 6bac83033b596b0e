"""
gl_config -- single public entrypoint for ledger configuration.

Responsibility:
    ``get_active_config()`` is the ONLY way to obtain configuration at
    runtime.  It reads, in order: an explicit path argument, else the file
    named by ``GL_KERNEL_CONFIG``, else the built-in defaults.  A
    ``DATABASE_URL`` environment variable overrides the database URL.

Architecture position:
    Configuration -- sits above ``gl_kernel`` and below ``gl_modules``.
    The kernel MUST NEVER import from ``gl_config``; callers pass the
    values in (entry number prefix, variance dimension filters, ...).

Audit relevance:
    Every call emits a ``GL_CONFIG_TRACE`` log entry naming the source
    and the effective numbering and variance settings.
"""

from __future__ import annotations

import os
from pathlib import Path

from gl_config.loader import load_config, load_yaml_file, parse_config, with_database_url
from gl_config.schema import (
    DatabaseConfig,
    LedgerConfig,
    LoggingConfig,
    NumberingConfig,
    VarianceConfig,
)
from gl_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_ENV_VAR = "GL_KERNEL_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> LedgerConfig:
    """Resolve the active configuration."""
    source = path or os.environ.get(CONFIG_ENV_VAR)
    config = load_config(Path(source)) if source else LedgerConfig()

    url_override = os.environ.get(DATABASE_URL_ENV_VAR)
    if url_override:
        config = with_database_url(config, url_override)

    _logger.info(
        "GL_CONFIG_TRACE",
        extra={
            "config_source": str(source) if source else "defaults",
            "database_url_overridden": bool(url_override),
            "entry_number_prefix": config.numbering.entry_number_prefix,
            "budget_code_prefix": config.numbering.budget_code_prefix,
            "variance_dimension_filters": list(config.variance.dimension_filters),
        },
    )
    return config


__all__ = [
    "get_active_config",
    "CONFIG_ENV_VAR",
    "DATABASE_URL_ENV_VAR",
    "load_config",
    "load_yaml_file",
    "parse_config",
    "LedgerConfig",
    "DatabaseConfig",
    "NumberingConfig",
    "VarianceConfig",
    "LoggingConfig",
]
