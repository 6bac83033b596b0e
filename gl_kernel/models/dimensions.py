"""
Module: gl_kernel.models.dimensions
Responsibility: ORM persistence for analysis dimensions.  Five static
    dimension tables (departments, cost centers, business objects, series,
    persons) plus the generic DimensionType / DimensionValue pair backing
    the fifteen generic slots.  Also provides DimensionColumnsMixin, the
    shared column layout for every row that carries dimension tags.
Architecture position: Kernel > Models.  Imports db/ and the pure
    domain.dimensions value object.

Invariants enforced:
    - Static dimension codes are unique per table.
    - DimensionValue.code is unique within its DimensionType.

Failure modes:
    - IntegrityError on a static dimension FK pointing at a missing row.
    - DimensionNotFoundError raised by DimensionService.ensure_exists()
      before a line is written.
"""

from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gl_kernel.db.base import TrackedBase, UUIDString
from gl_kernel.domain.dimensions import DimensionRefs


class CostCenterType(str, Enum):
    COST_CENTER = "cost_center"
    PROFIT_CENTER = "profit_center"
    INVESTMENT_CENTER = "investment_center"


class BusinessObjectType(str, Enum):
    PROJECT = "project"
    CONTRACT = "contract"
    ASSET = "asset"
    INITIATIVE = "initiative"
    OTHER = "other"


class DimensionDataType(str, Enum):
    TEXT = "text"
    NUMERIC = "numeric"
    DATE = "date"
    BOOLEAN = "boolean"


class _StaticDimension(TrackedBase):
    """Columns shared by every static dimension table."""

    __abstract__ = True

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code}>"


class Department(_StaticDimension):
    __tablename__ = "departments"
    __table_args__ = (UniqueConstraint("code", name="uq_department_code"),)

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("departments.id"), nullable=True,
    )
    manager_name: Mapped[str | None] = mapped_column(String(255), nullable=True)


class CostCenter(_StaticDimension):
    __tablename__ = "cost_centers"
    __table_args__ = (UniqueConstraint("code", name="uq_cost_center_code"),)

    center_type: Mapped[str] = mapped_column(
        String(30), default=CostCenterType.COST_CENTER.value, nullable=False,
    )
    department_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("departments.id"), nullable=True,
    )


class BusinessObject(_StaticDimension):
    __tablename__ = "business_objects"
    __table_args__ = (UniqueConstraint("code", name="uq_business_object_code"),)

    object_type: Mapped[str] = mapped_column(
        String(30), default=BusinessObjectType.OTHER.value, nullable=False,
    )


class Series(_StaticDimension):
    """Document series used as an analysis dimension (e.g. an invoice series)."""

    __tablename__ = "series"
    __table_args__ = (UniqueConstraint("code", name="uq_series_code"),)

    series_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    prefix: Mapped[str | None] = mapped_column(String(20), nullable=True)


class Person(_StaticDimension):
    __tablename__ = "persons"
    __table_args__ = (UniqueConstraint("code", name="uq_person_code"),)

    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


# Static dimension key -> model
STATIC_DIMENSION_MODELS: dict[str, type[_StaticDimension]] = {
    "department": Department,
    "cost_center": CostCenter,
    "business_object": BusinessObject,
    "series": Series,
    "person": Person,
}


class DimensionType(TrackedBase):
    """A user-defined analysis axis that can be placed in a generic slot."""

    __tablename__ = "dimension_types"
    __table_args__ = (UniqueConstraint("code", name="uq_dimension_type_code"),)

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    data_type: Mapped[str] = mapped_column(
        String(20), default=DimensionDataType.TEXT.value, nullable=False,
    )
    is_hierarchical: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    values: Mapped[list["DimensionValue"]] = relationship(
        back_populates="dimension_type",
        cascade="all, delete-orphan",
        order_by="DimensionValue.code",
    )


class DimensionValue(TrackedBase):
    __tablename__ = "dimension_values"
    __table_args__ = (
        UniqueConstraint("dimension_type_id", "code", name="uq_dimension_value_code"),
        Index("idx_dimension_value_type", "dimension_type_id"),
    )

    dimension_type_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("dimension_types.id", ondelete="CASCADE"), nullable=False,
    )
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("dimension_values.id"), nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    dimension_type: Mapped[DimensionType] = relationship(back_populates="values")


class DimensionColumnsMixin:
    """
    Dimension tag columns for journal lines, budget lines and variances.

    Static dimensions are real foreign keys; generic slots are a JSON map
    of slot number (as a string) to DimensionValue id.
    """

    department_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("departments.id"), nullable=True,
    )
    cost_center_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("cost_centers.id"), nullable=True,
    )
    business_object_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("business_objects.id"), nullable=True,
    )
    series_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("series.id"), nullable=True,
    )
    person_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("persons.id"), nullable=True,
    )
    dimension_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    @property
    def dimensions(self) -> DimensionRefs:
        return DimensionRefs.from_columns(
            self.department_id,
            self.cost_center_id,
            self.business_object_id,
            self.series_id,
            self.person_id,
            self.dimension_values,
        )

    def assign_dimensions(self, refs: DimensionRefs) -> None:
        for column, value in refs.as_columns().items():
            setattr(self, column, value)
