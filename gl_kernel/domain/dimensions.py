"""
Dimension references (``gl_kernel.domain.dimensions``).

Responsibility
--------------
Pure value object describing which analysis dimensions a journal line,
budget line or variance record is tagged with.  Five dimensions are
static (department, cost center, business object, series, person); up to
fifteen more are generic slots keyed ``dimension_1`` .. ``dimension_15``,
each holding a dimension value id.

Invariants enforced
-------------------
* Generic slots are in 1..15 and appear at most once.
* Matching is equal-or-wildcard: a key left empty on the filtering side
  imposes no constraint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping
from uuid import UUID

from gl_kernel.exceptions import InvalidDimensionSlotError

STATIC_DIMENSIONS: tuple[str, ...] = (
    "department",
    "cost_center",
    "business_object",
    "series",
    "person",
)

MAX_GENERIC_SLOTS = 15

_GENERIC_PREFIX = "dimension_"


def generic_key(slot: int) -> str:
    return f"{_GENERIC_PREFIX}{slot}"


def parse_generic_key(key: str) -> int | None:
    """Return the slot number for ``dimension_<n>`` keys, None otherwise.

    Raises InvalidDimensionSlotError when the suffix is not in 1..15.
    """
    if not key.startswith(_GENERIC_PREFIX):
        return None
    suffix = key[len(_GENERIC_PREFIX):]
    if not suffix.isdigit() or not 1 <= int(suffix) <= MAX_GENERIC_SLOTS:
        raise InvalidDimensionSlotError(suffix)
    return int(suffix)


def is_dimension_key(key: str) -> bool:
    if key in STATIC_DIMENSIONS:
        return True
    try:
        return parse_generic_key(key) is not None
    except InvalidDimensionSlotError:
        return False


def _as_uuid(value: Any) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


@dataclass(frozen=True)
class DimensionRefs:
    """The dimension tags carried by one line."""

    department: UUID | None = None
    cost_center: UUID | None = None
    business_object: UUID | None = None
    series: UUID | None = None
    person: UUID | None = None
    generic: tuple[tuple[int, UUID], ...] = field(default=())

    def __post_init__(self) -> None:
        seen: set[int] = set()
        for slot, _ in self.generic:
            if not isinstance(slot, int) or not 1 <= slot <= MAX_GENERIC_SLOTS:
                raise InvalidDimensionSlotError(slot)
            if slot in seen:
                raise ValueError(f"Generic dimension slot {slot} given twice")
            seen.add(slot)
        object.__setattr__(self, "generic", tuple(sorted(self.generic)))

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> DimensionRefs:
        """
        Build from a flat mapping such as
        ``{"department": <uuid>, "dimension_3": <uuid>}``.

        None values are skipped.  Unknown keys raise ValueError.
        """
        if not values:
            return cls()
        static: dict[str, UUID] = {}
        generic: list[tuple[int, UUID]] = []
        for key, value in values.items():
            if value is None:
                continue
            if key in STATIC_DIMENSIONS:
                static[key] = _as_uuid(value)
                continue
            slot = parse_generic_key(key)
            if slot is None:
                raise ValueError(f"Unknown dimension key: {key!r}")
            generic.append((slot, _as_uuid(value)))
        return cls(**static, generic=tuple(generic))

    @classmethod
    def from_columns(
        cls,
        department_id: UUID | None,
        cost_center_id: UUID | None,
        business_object_id: UUID | None,
        series_id: UUID | None,
        person_id: UUID | None,
        generic_values: Mapping[str, str] | None,
    ) -> DimensionRefs:
        generic = tuple(
            (int(slot), _as_uuid(value_id))
            for slot, value_id in (generic_values or {}).items()
        )
        return cls(
            department=department_id,
            cost_center=cost_center_id,
            business_object=business_object_id,
            series=series_id,
            person=person_id,
            generic=generic,
        )

    def get(self, key: str) -> UUID | None:
        if key in STATIC_DIMENSIONS:
            return getattr(self, key)
        slot = parse_generic_key(key)
        if slot is None:
            raise ValueError(f"Unknown dimension key: {key!r}")
        for s, value_id in self.generic:
            if s == slot:
                return value_id
        return None

    def keys(self) -> tuple[str, ...]:
        """Keys that carry a value, static first then generic by slot."""
        present = [k for k in STATIC_DIMENSIONS if getattr(self, k) is not None]
        present.extend(generic_key(slot) for slot, _ in self.generic)
        return tuple(present)

    def missing(self, required: Iterable[str]) -> tuple[str, ...]:
        return tuple(k for k in required if self.get(k) is None)

    def matches(self, other: DimensionRefs, keys: Iterable[str]) -> bool:
        """
        True when ``other`` agrees with every value set on ``self`` for the
        given keys.  Keys empty on ``self`` are wildcards.
        """
        for key in keys:
            wanted = self.get(key)
            if wanted is not None and other.get(key) != wanted:
                return False
        return True

    def generic_values(self) -> dict[str, str] | None:
        """JSON-ready generic slot map, or None when no slot is set."""
        if not self.generic:
            return None
        return {str(slot): str(value_id) for slot, value_id in self.generic}

    def as_dict(self) -> dict[str, UUID]:
        return {key: self.get(key) for key in self.keys()}

    def as_columns(self) -> dict[str, Any]:
        """Column values for a row carrying DimensionColumnsMixin."""
        columns: dict[str, Any] = {f"{k}_id": getattr(self, k) for k in STATIC_DIMENSIONS}
        columns["dimension_values"] = self.generic_values()
        return columns
