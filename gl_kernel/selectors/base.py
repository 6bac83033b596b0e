"""
Module: gl_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.
Architecture position: Kernel > Selectors.  May import from db/ and models/.
    MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - Session ownership: the caller owns the session and its transaction.
      Lookups return ORM instances attached to that session so services
      can act on them inside the same unit of work.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from gl_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Abstract base class for all selectors."""

    def __init__(self, session: Session):
        self.session = session
