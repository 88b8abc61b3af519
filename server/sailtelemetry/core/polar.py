"""Polar performance model: target boat speed from true wind.

The default table is a step function over |TWA| tuned for a 35-40 ft
displacement keelboat. Other hull types plug in their own ``PolarModel``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol


class PolarModel(Protocol):
    """Strategy: theoretical best boat speed (kn) for a true wind."""

    def target_speed(self, tws_kn: float, twa_deg: float) -> float: ...


@dataclass(frozen=True)
class PolarBucket:
    """Half-open |TWA| range [min_twa_deg, max_twa_deg) and its speed ratio."""
    min_twa_deg: float
    max_twa_deg: float
    speed_ratio: float

    def contains(self, twa_deg: float) -> bool:
        return self.min_twa_deg <= twa_deg < self.max_twa_deg


@dataclass(frozen=True)
class StepPolarTable:
    """Target speed = TWS x bucket ratio, capped at ``max_speed_kn``."""

    buckets: tuple[PolarBucket, ...]
    fallback_ratio: float
    max_speed_kn: float

    def ratio_for(self, twa_deg: float) -> float:
        angle = abs(twa_deg)
        for bucket in self.buckets:
            if bucket.contains(angle):
                return bucket.speed_ratio
        return self.fallback_ratio

    def target_speed(self, tws_kn: float, twa_deg: float) -> float:
        return min(tws_kn * self.ratio_for(twa_deg), self.max_speed_kn)

    def with_max_speed(self, max_speed_kn: float) -> StepPolarTable:
        return StepPolarTable(self.buckets, self.fallback_ratio, max_speed_kn)


KEELBOAT_POLAR = StepPolarTable(
    buckets=(
        PolarBucket(0, 30, 0.20),     # in irons / pinching
        PolarBucket(30, 45, 0.60),    # close hauled
        PolarBucket(45, 60, 0.70),    # close reach
        PolarBucket(60, 90, 0.80),    # beam reach
        PolarBucket(90, 120, 0.75),   # broad reach
        PolarBucket(120, 150, 0.65),  # deep broad reach
        PolarBucket(150, 180, 0.55),  # dead downwind
    ),
    fallback_ratio=0.40,
    max_speed_kn=10.0,
)


def estimate_target_speed(tws_kn: float, twa_deg: float, model: PolarModel = KEELBOAT_POLAR) -> float:
    """Target boat speed for the given true wind speed and angle."""
    return model.target_speed(tws_kn, twa_deg)


def performance_pct(boat_speed_kn: float, target_speed_kn: float) -> int:
    """Boat speed as a rounded percentage of target; 0 without a target."""
    if not target_speed_kn > 0:
        return 0
    ratio = boat_speed_kn / target_speed_kn * 100.0
    if not math.isfinite(ratio):
        return 0
    # Half-up rounding (not banker's), never below zero.
    return max(0, int(math.floor(ratio + 0.5)))
