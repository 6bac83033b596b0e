"""Database layer - engine, base classes and column types."""

from gl_kernel.db.base import UUID, Base, DecimalAmount, TrackedBase, UUIDString
from gl_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    run_in_transaction,
    session_scope,
)
from gl_kernel.db.types import ZERO, round_money, to_decimal

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "run_in_transaction",
    "create_tables",
    "drop_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "DecimalAmount",
    "UUID",
    "ZERO",
    "round_money",
    "to_decimal",
]
