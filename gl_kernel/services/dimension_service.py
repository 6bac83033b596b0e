"""
DimensionService -- maintenance of analysis dimensions and reference checks.

Creates static dimension rows (departments, cost centers, business objects,
series, persons), generic dimension types and their values, and checks
that every id in a DimensionRefs resolves before a line is written.
"""

from uuid import UUID

from sqlalchemy import select

from gl_kernel.domain.dimensions import STATIC_DIMENSIONS, DimensionRefs
from gl_kernel.exceptions import DimensionNotFoundError, DuplicateCodeError
from gl_kernel.logging_config import get_logger
from gl_kernel.models.dimensions import (
    STATIC_DIMENSION_MODELS,
    DimensionDataType,
    DimensionType,
    DimensionValue,
)
from gl_kernel.services.base import BaseService

logger = get_logger("services.dimension")


class DimensionService(BaseService[DimensionType]):
    def create_static(
        self,
        kind: str,
        code: str,
        name: str,
        actor_id: UUID,
        **attributes,
    ):
        """
        Create a static dimension row.

        Args:
            kind: One of department, cost_center, business_object, series,
                person.
            attributes: Kind-specific columns (parent_id, center_type,
                department_id, object_type, series_type, prefix, email,
                description, sort_order).
        """
        if kind not in STATIC_DIMENSIONS:
            raise ValueError(f"Unknown static dimension: {kind!r}")
        model = STATIC_DIMENSION_MODELS[kind]

        existing = self.session.execute(
            select(model).where(model.code == code)
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateCodeError(kind, code)

        row = model(code=code, name=name, is_active=True, created_by_id=actor_id, **attributes)
        self.session.add(row)
        self.session.flush()

        logger.info(
            "dimension_created",
            extra={"dimension": kind, "code": code, "dimension_id": str(row.id)},
        )
        return row

    def deactivate_static(self, kind: str, row_id: UUID, actor_id: UUID):
        model = STATIC_DIMENSION_MODELS[kind]
        row = self.session.get(model, row_id)
        if row is None:
            raise DimensionNotFoundError(kind, row_id)
        row.is_active = False
        row.updated_by_id = actor_id
        self.session.flush()
        return row

    def create_dimension_type(
        self,
        code: str,
        name: str,
        actor_id: UUID,
        data_type: DimensionDataType = DimensionDataType.TEXT,
        is_hierarchical: bool = False,
        description: str | None = None,
    ) -> DimensionType:
        existing = self.session.execute(
            select(DimensionType).where(DimensionType.code == code)
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateCodeError("dimension_type", code)

        dimension_type = DimensionType(
            code=code,
            name=name,
            description=description,
            data_type=DimensionDataType(data_type).value,
            is_hierarchical=is_hierarchical,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(dimension_type)
        self.session.flush()
        logger.info("dimension_type_created", extra={"code": code})
        return dimension_type

    def create_dimension_value(
        self,
        dimension_type_id: UUID,
        code: str,
        name: str,
        actor_id: UUID,
        parent_id: UUID | None = None,
    ) -> DimensionValue:
        dimension_type = self.session.get(DimensionType, dimension_type_id)
        if dimension_type is None:
            raise DimensionNotFoundError("dimension_type", dimension_type_id)

        existing = self.session.execute(
            select(DimensionValue)
            .where(DimensionValue.dimension_type_id == dimension_type_id)
            .where(DimensionValue.code == code)
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateCodeError(f"dimension_value:{dimension_type.code}", code)

        value = DimensionValue(
            dimension_type_id=dimension_type_id,
            code=code,
            name=name,
            parent_id=parent_id,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(value)
        self.session.flush()
        logger.info(
            "dimension_value_created",
            extra={"dimension_type": dimension_type.code, "code": code},
        )
        return value

    def ensure_exists(self, refs: DimensionRefs) -> None:
        """Raise DimensionNotFoundError for the first id that does not resolve."""
        for kind in STATIC_DIMENSIONS:
            value_id = getattr(refs, kind)
            if value_id is not None and self.session.get(STATIC_DIMENSION_MODELS[kind], value_id) is None:
                raise DimensionNotFoundError(kind, value_id)
        for slot, value_id in refs.generic:
            if self.session.get(DimensionValue, value_id) is None:
                raise DimensionNotFoundError(f"dimension_{slot}", value_id)
