"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session-handling contract for every write-side
    service.  Services receive a SQLAlchemy ``Session`` and persist with
    ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    - Services flush within the caller's transaction and never commit or
      roll back themselves.  session_scope() / run_in_transaction() (or the
      test harness) own the boundary, so a failed step leaves nothing behind.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from gl_kernel.db.base import Base
from gl_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Read-only queries belong in ``gl_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
