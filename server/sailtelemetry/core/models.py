"""Sailing telemetry: core internal data models.

These are plain dataclasses with no framework dependencies.
Wire JSON is converted to/from these at the codec boundary.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

from sailtelemetry.core.polar import performance_pct


@dataclass
class TelemetrySnapshot:
    """Current boat telemetry. Angles in degrees, speeds in knots.

    Wind angles are signed relative to the bow: negative means the wind
    comes from port, positive from starboard.
    """

    course_over_ground_deg: float = 0.0
    speed_over_ground_kn: float = 0.0
    boat_speed_kn: float = 0.0
    true_wind_speed_kn: float = 0.0
    true_wind_angle_deg: float = 0.0
    apparent_wind_speed_kn: float = 0.0
    apparent_wind_angle_deg: float = 0.0
    true_wind_direction_deg: float = 0.0
    target_speed_kn: float = 0.0
    timestamp: datetime | None = None

    @property
    def performance_pct(self) -> int:
        return performance_pct(self.boat_speed_kn, self.target_speed_kn)

    @property
    def velocity_made_good_kn(self) -> float:
        """Speed component along the true wind axis (positive upwind)."""
        return self.boat_speed_kn * math.cos(math.radians(self.true_wind_angle_deg))

    def copy(self) -> TelemetrySnapshot:
        return dataclasses.replace(self)

    def to_dict(self) -> dict:
        """Return a JSON-serializable view, including derived values."""
        return {
            "course_over_ground_deg": self.course_over_ground_deg,
            "speed_over_ground_kn": self.speed_over_ground_kn,
            "boat_speed_kn": self.boat_speed_kn,
            "true_wind_speed_kn": self.true_wind_speed_kn,
            "true_wind_angle_deg": self.true_wind_angle_deg,
            "apparent_wind_speed_kn": self.apparent_wind_speed_kn,
            "apparent_wind_angle_deg": self.apparent_wind_angle_deg,
            "true_wind_direction_deg": self.true_wind_direction_deg,
            "target_speed_kn": self.target_speed_kn,
            "performance_pct": self.performance_pct,
            "velocity_made_good_kn": self.velocity_made_good_kn,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    # Sample states for development and tests.

    @classmethod
    def upwind_sample(cls) -> TelemetrySnapshot:
        return cls(
            course_over_ground_deg=45, speed_over_ground_kn=6.5, boat_speed_kn=6.8,
            true_wind_speed_kn=12.5, true_wind_angle_deg=42,
            apparent_wind_speed_kn=15.2, apparent_wind_angle_deg=35,
            true_wind_direction_deg=0, target_speed_kn=7.5,
        )

    @classmethod
    def downwind_sample(cls) -> TelemetrySnapshot:
        return cls(
            course_over_ground_deg=135, speed_over_ground_kn=5.0, boat_speed_kn=5.2,
            true_wind_speed_kn=8.0, true_wind_angle_deg=150,
            apparent_wind_speed_kn=4.5, apparent_wind_angle_deg=125,
            true_wind_direction_deg=345, target_speed_kn=7.0,
        )

    @classmethod
    def reaching_sample(cls) -> TelemetrySnapshot:
        return cls(
            course_over_ground_deg=90, speed_over_ground_kn=8.2, boat_speed_kn=8.5,
            true_wind_speed_kn=15.0, true_wind_angle_deg=90,
            apparent_wind_speed_kn=18.0, apparent_wind_angle_deg=75,
            true_wind_direction_deg=0, target_speed_kn=8.2,
        )


# ---------------------------------------------------------------------------
# Delta message values: one class per JSON value shape.
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NumberValue:
    value: float


@dataclass(frozen=True)
class IntegerValue:
    value: int


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class NullValue:
    pass


@dataclass(frozen=True)
class MapValue:
    """Flat object whose members are all numbers (e.g. a position)."""
    values: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class OpaqueValue:
    """Anything else. Kept so the message still parses; never applied."""
    raw: Any = None


DeltaValue = Union[NumberValue, IntegerValue, StringValue, BoolValue, NullValue, MapValue, OpaqueValue]


def _is_number(raw: Any) -> bool:
    return isinstance(raw, (int, float)) and not isinstance(raw, bool)


def value_from_json(raw: Any) -> DeltaValue:
    """Classify a decoded JSON value. Never raises."""
    if raw is None:
        return NullValue()
    # bool before int: True is an int in Python.
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, float):
        return NumberValue(raw)
    if isinstance(raw, int):
        return IntegerValue(raw)
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, dict) and all(isinstance(k, str) and _is_number(v) for k, v in raw.items()):
        return MapValue({k: float(v) for k, v in raw.items()})
    return OpaqueValue(raw)


def value_to_json(value: DeltaValue) -> Any:
    if isinstance(value, (NumberValue, IntegerValue, StringValue, BoolValue)):
        return value.value
    if isinstance(value, MapValue):
        return dict(value.values)
    # NullValue and OpaqueValue both go out as null.
    return None


def numeric_value(value: DeltaValue) -> float | None:
    """Extract a number, or None for every non-numeric shape."""
    if isinstance(value, NumberValue):
        return value.value
    if isinstance(value, IntegerValue):
        return float(value.value)
    if isinstance(value, (StringValue, BoolValue, NullValue, MapValue, OpaqueValue)):
        return None
    raise TypeError(f"not a delta value: {value!r}")


@dataclass(frozen=True)
class SourceInfo:
    label: str | None = None
    type: str | None = None
    talker: str | None = None
    src: str | None = None
    pgn: int | None = None
    sentence: str | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in dataclasses.asdict(self).items() if v is not None}


@dataclass(frozen=True)
class PathValue:
    path: str
    value: DeltaValue


@dataclass(frozen=True)
class UpdateGroup:
    source: SourceInfo | None = None
    timestamp: str | None = None
    values: tuple[PathValue, ...] = ()


@dataclass(frozen=True)
class DeltaMessage:
    """One inbound or outbound wire update."""

    context: str | None = None
    updates: tuple[UpdateGroup, ...] = ()

    def iter_values(self):
        """Yield every PathValue in message order."""
        for update in self.updates:
            yield from update.values

    def to_dict(self) -> dict:
        updates = []
        for update in self.updates:
            entry: dict[str, Any] = {}
            if update.source is not None:
                entry["source"] = update.source.to_dict()
            if update.timestamp is not None:
                entry["timestamp"] = update.timestamp
            entry["values"] = [
                {"path": pv.path, "value": value_to_json(pv.value)} for pv in update.values
            ]
            updates.append(entry)

        result: dict[str, Any] = {}
        if self.context is not None:
            result["context"] = self.context
        result["updates"] = updates
        return result
