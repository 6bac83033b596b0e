"""
Config -> Kernel Bridges.

Functions that turn a ``LedgerConfig`` into kernel-ready objects.  These
live in gl_config (the producer) because the kernel must NEVER import
gl_config.

Usage:
    from gl_config import get_active_config
    from gl_config.bridges import init_engine_from_config, build_journal_service

    config = get_active_config()
    init_engine_from_config(config)
    with session_scope() as session:
        journal = build_journal_service(session, config)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from gl_config.schema import LedgerConfig
from gl_kernel.db.engine import init_engine_from_url, run_in_transaction
from gl_kernel.domain.clock import Clock
from gl_kernel.logging_config import configure_logging
from gl_kernel.services.journal_service import JournalService

T = TypeVar("T")


def configure_logging_from_config(config: LedgerConfig) -> None:
    configure_logging(level=config.logging.level_number)


def init_engine_from_config(config: LedgerConfig) -> Engine:
    """Configure logging, then initialize the kernel engine from ``config.database``."""
    configure_logging_from_config(config)
    db = config.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
    )


def build_journal_service(
    session: Session,
    config: LedgerConfig,
    clock: Clock | None = None,
) -> JournalService:
    """JournalService numbering entries per ``config.numbering``."""
    return JournalService(
        session,
        clock=clock,
        entry_number_prefix=config.numbering.entry_number_prefix,
        number_width=config.numbering.number_width,
    )


def run_unit_of_work(
    work: Callable[[Session], T],
    config: LedgerConfig,
    session_factory: sessionmaker[Session] | None = None,
) -> T:
    """``run_in_transaction`` with the configured retry budget."""
    return run_in_transaction(
        work,
        attempts=config.database.retry_attempts,
        session_factory=session_factory,
    )
