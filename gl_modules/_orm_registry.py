"""
Module ORM Registry (``gl_modules._orm_registry``).

Ensures kernel and module ORM models are imported so ``Base.metadata``
holds every table before ``create_all()`` runs.  Scripts and
``tests/conftest.py`` call ``create_all_tables()``.

MUST NOT be imported by ``gl_kernel``.
"""

from sqlalchemy.engine import Engine


def import_all_orm_models() -> None:
    """Import kernel models, then every module's ORM.  Idempotent."""
    import gl_kernel.models  # noqa: F401
    import gl_modules.budget.orm  # noqa: F401


def create_all_tables(engine: Engine | None = None) -> None:
    """Create the complete schema on ``engine`` (default: the kernel engine)."""
    from gl_kernel.db.base import Base
    from gl_kernel.db.engine import get_engine

    import_all_orm_models()
    Base.metadata.create_all(engine or get_engine())
