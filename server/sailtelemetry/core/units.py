"""Unit conversions used at the wire boundary and by the wind math.

Pure functions, no validation: NaN and infinities propagate.
"""

from __future__ import annotations

import math

# 1 m/s expressed in knots.
KNOTS_PER_MPS = 1.94384


def radians_to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def degrees_to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def mps_to_knots(mps: float) -> float:
    return mps * KNOTS_PER_MPS


def knots_to_mps(knots: float) -> float:
    return knots / KNOTS_PER_MPS


def normalize_angle_0_360(angle: float) -> float:
    """Reduce an angle in degrees to [0, 360)."""
    normalized = angle % 360.0
    if normalized < 0:
        normalized += 360.0
    # Tiny negative inputs round up to exactly 360.0.
    if normalized >= 360.0:
        normalized = 0.0
    return normalized


def normalize_angle_180(angle: float) -> float:
    """Reduce an angle in degrees to (-180, 180], keeping port/starboard sign."""
    normalized = normalize_angle_0_360(angle)
    if normalized > 180.0:
        normalized -= 360.0
    return normalized
