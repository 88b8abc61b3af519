"""Signal K path alias table.

Upstream producers spell the same quantity differently (with or without the
group prefix, ``angleTrueWater`` vs ``angleTrueGround``, ...). Every accepted
spelling resolves to one snapshot ``Field``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping


class Unit(enum.Enum):
    ANGLE = "angle"  # radians on the wire
    SPEED = "speed"  # m/s on the wire


class Field(enum.Enum):
    """Snapshot fields reachable from the wire, with attribute name and unit."""

    COURSE_OVER_GROUND = ("course_over_ground_deg", Unit.ANGLE)
    SPEED_OVER_GROUND = ("speed_over_ground_kn", Unit.SPEED)
    SPEED_THROUGH_WATER = ("boat_speed_kn", Unit.SPEED)
    TRUE_WIND_SPEED = ("true_wind_speed_kn", Unit.SPEED)
    TRUE_WIND_ANGLE = ("true_wind_angle_deg", Unit.ANGLE)
    APPARENT_WIND_SPEED = ("apparent_wind_speed_kn", Unit.SPEED)
    APPARENT_WIND_ANGLE = ("apparent_wind_angle_deg", Unit.ANGLE)
    TRUE_WIND_DIRECTION = ("true_wind_direction_deg", Unit.ANGLE)
    TARGET_SPEED = ("target_speed_kn", Unit.SPEED)

    def __init__(self, attribute: str, unit: Unit) -> None:
        self.attribute = attribute
        self.unit = unit


TRUE_WIND_FIELDS = frozenset({Field.TRUE_WIND_SPEED, Field.TRUE_WIND_ANGLE})
APPARENT_WIND_FIELDS = frozenset({Field.APPARENT_WIND_SPEED, Field.APPARENT_WIND_ANGLE})

# Canonical path written by the encoder for each field.
CANONICAL_PATHS: Mapping[Field, str] = MappingProxyType({
    Field.COURSE_OVER_GROUND: "navigation.courseOverGroundTrue",
    Field.SPEED_OVER_GROUND: "navigation.speedOverGround",
    Field.SPEED_THROUGH_WATER: "navigation.speedThroughWater",
    Field.TRUE_WIND_SPEED: "environment.wind.speedTrue",
    Field.TRUE_WIND_ANGLE: "environment.wind.angleTrueWater",
    Field.APPARENT_WIND_SPEED: "environment.wind.speedApparent",
    Field.APPARENT_WIND_ANGLE: "environment.wind.angleApparent",
    Field.TRUE_WIND_DIRECTION: "environment.wind.directionTrue",
    Field.TARGET_SPEED: "performance.polarSpeed",
})


@dataclass(frozen=True)
class PathAliasTable:
    """Immutable path -> Field lookup. Extend with :meth:`with_alias`."""

    _entries: Mapping[str, Field]

    @classmethod
    def from_mapping(cls, entries: Mapping[str, Field]) -> PathAliasTable:
        return cls(MappingProxyType(dict(entries)))

    def resolve(self, path: str) -> Field | None:
        return self._entries.get(path)

    def with_alias(self, path: str, field: Field) -> PathAliasTable:
        entries = dict(self._entries)
        entries[path] = field
        return PathAliasTable.from_mapping(entries)

    def aliases(self, field: Field) -> tuple[str, ...]:
        """All spellings accepted for ``field``, in table order."""
        return tuple(path for path, f in self._entries.items() if f is field)

    def items(self):
        return self._entries.items()

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_PATH_ALIASES = PathAliasTable.from_mapping({
    # Navigation
    "navigation.courseOverGroundTrue": Field.COURSE_OVER_GROUND,
    "courseOverGroundTrue": Field.COURSE_OVER_GROUND,
    "navigation.speedOverGround": Field.SPEED_OVER_GROUND,
    "speedOverGround": Field.SPEED_OVER_GROUND,
    "navigation.speedThroughWater": Field.SPEED_THROUGH_WATER,
    "speedThroughWater": Field.SPEED_THROUGH_WATER,
    # Wind
    "environment.wind.speedTrue": Field.TRUE_WIND_SPEED,
    "wind.speedTrue": Field.TRUE_WIND_SPEED,
    "environment.wind.angleTrueWater": Field.TRUE_WIND_ANGLE,
    "environment.wind.angleTrueGround": Field.TRUE_WIND_ANGLE,
    "wind.angleTrueWater": Field.TRUE_WIND_ANGLE,
    "environment.wind.speedApparent": Field.APPARENT_WIND_SPEED,
    "wind.speedApparent": Field.APPARENT_WIND_SPEED,
    "environment.wind.angleApparent": Field.APPARENT_WIND_ANGLE,
    "wind.angleApparent": Field.APPARENT_WIND_ANGLE,
    "environment.wind.directionTrue": Field.TRUE_WIND_DIRECTION,
    "wind.directionTrue": Field.TRUE_WIND_DIRECTION,
    # Performance
    "performance.polarSpeed": Field.TARGET_SPEED,
    "performance.targetSpeed": Field.TARGET_SPEED,
})
