"""
Tests for DimensionService: static dimension rows, generic dimension
types and values, and reference checks.
"""

from uuid import uuid4

import pytest

from gl_kernel.domain.dimensions import DimensionRefs
from gl_kernel.exceptions import DimensionNotFoundError, DuplicateCodeError
from gl_kernel.models.dimensions import CostCenterType, Department


class TestStaticDimensions:
    def test_create_department(self, dimension_service, test_actor_id):
        dept = dimension_service.create_static("department", "FIN", "Finance", test_actor_id)
        assert isinstance(dept, Department)
        assert dept.is_active

    def test_kind_specific_attributes(self, dimension_service, departments, test_actor_id):
        center = dimension_service.create_static(
            "cost_center", "CC-1", "Sales floor", test_actor_id,
            center_type=CostCenterType.PROFIT_CENTER.value,
            department_id=departments["D1"].id,
        )
        assert center.department_id == departments["D1"].id

    def test_unknown_kind(self, dimension_service, test_actor_id):
        with pytest.raises(ValueError):
            dimension_service.create_static("region", "EU", "Europe", test_actor_id)

    def test_duplicate_code_per_kind(self, dimension_service, departments, test_actor_id):
        with pytest.raises(DuplicateCodeError):
            dimension_service.create_static("department", "D1", "Again", test_actor_id)
        # Same code under another kind is fine
        dimension_service.create_static("series", "D1", "Series D1", test_actor_id)

    def test_deactivate(self, dimension_service, departments, test_actor_id):
        row = dimension_service.deactivate_static("department", departments["D2"].id, test_actor_id)
        assert not row.is_active


class TestGenericDimensions:
    def test_values_unique_per_type(self, dimension_service, test_actor_id):
        project = dimension_service.create_dimension_type("PROJECT", "Project", test_actor_id)
        dimension_service.create_dimension_value(project.id, "A", "Alpha", test_actor_id)

        with pytest.raises(DuplicateCodeError):
            dimension_service.create_dimension_value(project.id, "A", "Alpha again", test_actor_id)

    def test_unknown_type(self, dimension_service, test_actor_id):
        with pytest.raises(DimensionNotFoundError):
            dimension_service.create_dimension_value(uuid4(), "A", "Alpha", test_actor_id)


class TestEnsureExists:
    def test_known_refs_pass(self, dimension_service, departments):
        dimension_service.ensure_exists(DimensionRefs(department=departments["D1"].id))

    def test_unknown_static(self, dimension_service):
        with pytest.raises(DimensionNotFoundError) as exc_info:
            dimension_service.ensure_exists(DimensionRefs(cost_center=uuid4()))
        assert exc_info.value.dimension == "cost_center"

    def test_unknown_generic(self, dimension_service):
        with pytest.raises(DimensionNotFoundError) as exc_info:
            dimension_service.ensure_exists(DimensionRefs(generic=((2, uuid4()),)))
        assert exc_info.value.dimension == "dimension_2"
