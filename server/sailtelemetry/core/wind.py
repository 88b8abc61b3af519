"""True/apparent wind vector math in the boat's reference frame.

A wind of speed ``s`` at signed angle ``a`` off the bow decomposes to
``(x, y) = (s*sin(a), s*cos(a))``; ``y`` runs along the heading. Boat motion
adds a headwind equal to boat speed on the ``y`` axis.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sailtelemetry.core.units import degrees_to_radians, normalize_angle_0_360, radians_to_degrees

if TYPE_CHECKING:
    from sailtelemetry.core.models import TelemetrySnapshot


@dataclass(frozen=True)
class WindVector:
    speed_kn: float
    angle_deg: float  # signed, relative to the bow

    @property
    def display_angle_deg(self) -> float:
        """Angle in [0, 360) for instrument display."""
        return normalize_angle_0_360(self.angle_deg)


class WindAuthority(enum.Enum):
    """Which wind measurement the current data source supplied authoritatively."""
    APPARENT = "apparent"
    TRUE = "true"


def apparent_from_true(tws_kn: float, twa_deg: float, boat_speed_kn: float) -> WindVector:
    twa_rad = degrees_to_radians(twa_deg)
    x = tws_kn * math.sin(twa_rad)
    y = tws_kn * math.cos(twa_rad) + boat_speed_kn
    return WindVector(math.hypot(x, y), radians_to_degrees(math.atan2(x, y)))


def true_from_apparent(aws_kn: float, awa_deg: float, boat_speed_kn: float) -> WindVector:
    """Inverse of :func:`apparent_from_true`.

    The resulting angle takes the sign of ``awa_deg`` (port stays port),
    whatever ``atan2`` returns. For ``awa_deg`` outside (-180, 180] this can
    disagree with the geometry; callers store signed angles.
    """
    awa_rad = degrees_to_radians(awa_deg)
    x = aws_kn * math.sin(awa_rad)
    y = aws_kn * math.cos(awa_rad) - boat_speed_kn
    twa = abs(radians_to_degrees(math.atan2(x, y)))
    if awa_deg < 0:
        twa = -twa
    return WindVector(math.hypot(x, y), twa)


def reconcile_wind(snapshot: TelemetrySnapshot, authority: WindAuthority = WindAuthority.APPARENT) -> bool:
    """Make true and apparent wind agree, in place.

    With APPARENT authority, true wind is recomputed from apparent wind when
    both boat speed and apparent wind speed are positive. With TRUE
    authority, apparent wind is recomputed from true wind whenever there is
    any boat or wind speed. Returns True if a value was recomputed.
    """
    if authority is WindAuthority.APPARENT:
        if snapshot.boat_speed_kn > 0 and snapshot.apparent_wind_speed_kn > 0:
            true_wind = true_from_apparent(
                snapshot.apparent_wind_speed_kn,
                snapshot.apparent_wind_angle_deg,
                snapshot.boat_speed_kn,
            )
            snapshot.true_wind_speed_kn = true_wind.speed_kn
            snapshot.true_wind_angle_deg = true_wind.angle_deg
            return True
        return False

    if snapshot.boat_speed_kn > 0 or snapshot.true_wind_speed_kn > 0:
        apparent = apparent_from_true(
            snapshot.true_wind_speed_kn,
            snapshot.true_wind_angle_deg,
            snapshot.boat_speed_kn,
        )
        snapshot.apparent_wind_speed_kn = apparent.speed_kn
        snapshot.apparent_wind_angle_deg = apparent.angle_deg
        return True
    return False
