"""Advisory inputs derived from a snapshot.

``CoachContext`` is what the coaching layer receives. The rule-based
recommendations are the local fallback used when no coach is reachable.
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass

from sailtelemetry.core.models import TelemetrySnapshot


class PointOfSail(enum.Enum):
    IN_IRONS = "In Irons"
    CLOSE_HAULED = "Close Hauled"
    CLOSE_REACH = "Close Reach"
    BEAM_REACH = "Beam Reach"
    BROAD_REACH = "Broad Reach"
    RUNNING = "Running"

    @classmethod
    def from_true_wind_angle(cls, twa_deg: float) -> PointOfSail:
        angle = abs(twa_deg)
        if angle < 30:
            return cls.IN_IRONS
        if angle < 60:
            return cls.CLOSE_HAULED
        if angle < 80:
            return cls.CLOSE_REACH
        if angle < 100:
            return cls.BEAM_REACH
        if angle < 150:
            return cls.BROAD_REACH
        return cls.RUNNING


class Headsail(enum.Enum):
    GENOA = "genoa"
    CODE0 = "code0"
    GENNAKER = "gennaker"

    @classmethod
    def for_true_wind_angle(cls, twa_deg: float) -> Headsail:
        angle = abs(twa_deg)
        if angle < 50:
            return cls.GENOA
        if angle < 90:
            return cls.CODE0
        return cls.GENNAKER


class Steering(enum.Enum):
    STEADY = "steady"
    HEAD_UP = "headUp"
    BEAR_AWAY = "bearAway"


class SailTrim(enum.Enum):
    HOLD = "hold"
    SHEET_IN = "sheetIn"
    EASE = "ease"


@dataclass(frozen=True)
class Recommendations:
    headsail: Headsail = Headsail.GENOA
    steering: Steering = Steering.STEADY
    sail_trim: SailTrim = SailTrim.HOLD

    def to_dict(self) -> dict:
        return {
            "recommended_headsail": self.headsail.value,
            "steering": self.steering.value,
            "sail_trim": self.sail_trim.value,
        }


def fallback_recommendations(snapshot: TelemetrySnapshot) -> Recommendations:
    """Rule-based recommendations from wind angle and speed vs target."""
    headsail = Headsail.for_true_wind_angle(snapshot.true_wind_angle_deg)

    # Under target: bear away to build speed.
    steering = Steering.STEADY if snapshot.performance_pct >= 90 else Steering.BEAR_AWAY

    target = snapshot.target_speed_kn
    if snapshot.boat_speed_kn >= target * 0.95:
        trim = SailTrim.HOLD
    elif snapshot.boat_speed_kn < target * 0.85:
        # Very slow: ease to reduce drag.
        trim = SailTrim.EASE
    else:
        trim = SailTrim.SHEET_IN

    return Recommendations(headsail=headsail, steering=steering, sail_trim=trim)


@dataclass(frozen=True)
class CoachContext:
    """Summary of current conditions handed to the coaching layer."""

    boat_speed_kn: float
    target_speed_kn: float
    performance_pct: int
    true_wind_speed_kn: float
    true_wind_angle_deg: float
    apparent_wind_angle_deg: float
    course_over_ground_deg: float
    point_of_sail: str

    @classmethod
    def from_snapshot(cls, snapshot: TelemetrySnapshot) -> CoachContext:
        return cls(
            boat_speed_kn=snapshot.boat_speed_kn,
            target_speed_kn=snapshot.target_speed_kn,
            performance_pct=snapshot.performance_pct,
            true_wind_speed_kn=snapshot.true_wind_speed_kn,
            true_wind_angle_deg=snapshot.true_wind_angle_deg,
            apparent_wind_angle_deg=snapshot.apparent_wind_angle_deg,
            course_over_ground_deg=snapshot.course_over_ground_deg,
            point_of_sail=PointOfSail.from_true_wind_angle(snapshot.true_wind_angle_deg).value,
        )

    def describe(self) -> str:
        return "\n".join([
            "Current sailing conditions:",
            f"- Point of sail: {self.point_of_sail}",
            f"- Boat speed: {self.boat_speed_kn:.1f} kts (target: {self.target_speed_kn:.1f} kts)",
            f"- Performance: {self.performance_pct}%",
            f"- True wind: {self.true_wind_speed_kn:.1f} kts at {int(self.true_wind_angle_deg)}°",
            f"- Apparent wind angle: {int(self.apparent_wind_angle_deg)}°",
            f"- Course over ground: {int(self.course_over_ground_deg)}°",
        ])

    def to_dict(self) -> dict:
        return asdict(self)
