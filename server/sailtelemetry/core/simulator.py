"""Scenario simulator: synthetic sailing telemetry for six maneuvers.

Each tick advances elapsed time by one interval and produces a snapshot from
the scenario's base values plus time-varying perturbations. True wind is the
simulated quantity; apparent wind is derived by the same reconciliation pass
the live codec uses.

Phase offsets are re-drawn on every ``start()`` and ``set_scenario()``, so
two runs of a scenario differ but stay within the same envelope.
"""

from __future__ import annotations

import enum
import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import structlog

from sailtelemetry.core.models import TelemetrySnapshot
from sailtelemetry.core.units import normalize_angle_0_360
from sailtelemetry.core.wind import WindAuthority, reconcile_wind

log = structlog.get_logger()

DEFAULT_TICK_INTERVAL_S = 0.5

# Race start: one maneuver sequence every 30 s, two full S-turns per sequence.
RACE_START_PERIOD_S = 30.0
RACE_START_SWING_DEG = 45.0

# Gust: 3 s build, 3 s peak, 3 s decay, 3 s lull.
GUST_PERIOD_S = 12.0
GUST_MAX_WIND_KN = 6.0
GUST_MAX_BOAT_SPEED_KN = 1.5

# Wind shift: +/-15 deg, sin(0.05 t) gives a ~126 s period.
WIND_SHIFT_MAX_DEG = 15.0


class UnknownScenarioError(ValueError):
    pass


class Scenario(enum.Enum):
    UPWIND = "upwind"
    DOWNWIND = "downwind"
    REACHING = "reaching"
    RACE_START = "race_start"
    WIND_SHIFT = "wind_shift"
    GUST = "gust"

    @classmethod
    def parse(cls, name: str | Scenario) -> Scenario:
        """Accept enum values, member names and labels ("race-start", "Race Start")."""
        if isinstance(name, Scenario):
            return name
        if not isinstance(name, str):
            raise UnknownScenarioError(f"unknown scenario {name!r}")
        key = name.strip().lower().replace("-", "_").replace(" ", "_")
        for scenario in cls:
            if key in (scenario.value, scenario.label.lower().replace(" ", "_")):
                return scenario
        raise UnknownScenarioError(f"unknown scenario {name!r}")

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_LABELS = {
    Scenario.UPWIND: "Upwind",
    Scenario.DOWNWIND: "Downwind",
    Scenario.REACHING: "Reaching",
    Scenario.RACE_START: "Race Start",
    Scenario.WIND_SHIFT: "Wind Shift",
    Scenario.GUST: "Gust Response",
}

_DESCRIPTIONS = {
    Scenario.UPWIND: "Close-hauled sailing with good VMG",
    Scenario.DOWNWIND: "Running/broad reach with spinnaker",
    Scenario.REACHING: "Beam reach at maximum speed",
    Scenario.RACE_START: "Pre-start maneuvering sequence",
    Scenario.WIND_SHIFT: "Progressive wind shift scenario",
    Scenario.GUST: "Gust and lull variations",
}


@dataclass(frozen=True)
class ScenarioParams:
    base_cog_deg: float
    base_twa_deg: float
    base_tws_kn: float
    base_boat_speed_kn: float
    base_target_speed_kn: float


SCENARIO_PARAMS: dict[Scenario, ScenarioParams] = {
    Scenario.UPWIND: ScenarioParams(45, 42, 12.5, 6.8, 7.5),
    Scenario.DOWNWIND: ScenarioParams(180, 150, 8.0, 5.8, 7.0),
    Scenario.REACHING: ScenarioParams(90, 90, 15.0, 8.5, 8.2),
    Scenario.RACE_START: ScenarioParams(0, 45, 10.0, 4.0, 6.5),
    Scenario.WIND_SHIFT: ScenarioParams(45, 42, 12.0, 6.5, 7.2),
    Scenario.GUST: ScenarioParams(60, 50, 14.0, 7.0, 7.8),
}


def gust_intensity(elapsed_s: float) -> float:
    """Gust envelope in [0, 1] over the 12 s cycle."""
    cycle = elapsed_s % GUST_PERIOD_S
    if cycle < 3.0:
        return cycle / 3.0
    if cycle < 6.0:
        return 1.0
    if cycle < 9.0:
        return 1.0 - (cycle - 6.0) / 3.0
    return 0.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScenarioSimulator:
    """Produces one TelemetrySnapshot per tick for the current scenario."""

    def __init__(
        self,
        tick_interval_s: float = DEFAULT_TICK_INTERVAL_S,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if tick_interval_s <= 0:
            raise ValueError("tick_interval_s must be positive")
        self.tick_interval_s = tick_interval_s
        self._rng = rng or random.Random()
        self._clock = clock
        self._scenario = Scenario.UPWIND
        self._elapsed_s = 0.0
        self._running = False
        self._wind_shift_phase = 0.0
        self._gust_phase = 0.0
        self._wave_phase = 0.0

    @property
    def scenario(self) -> Scenario:
        return self._scenario

    @property
    def elapsed_s(self) -> float:
        return self._elapsed_s

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, scenario: Scenario | str = Scenario.UPWIND) -> None:
        self._scenario = Scenario.parse(scenario)
        self._elapsed_s = 0.0
        self._draw_phases()
        self._running = True
        log.info("simulator_started", scenario=self._scenario.value,
                 tick_interval_s=self.tick_interval_s)

    def set_scenario(self, scenario: Scenario | str) -> None:
        """Switch scenario without resetting elapsed time."""
        self._scenario = Scenario.parse(scenario)
        self._draw_phases()
        log.info("simulator_scenario_changed", scenario=self._scenario.value,
                 elapsed_s=self._elapsed_s)

    def stop(self) -> None:
        self._running = False
        log.info("simulator_stopped", elapsed_s=self._elapsed_s)

    def tick(self) -> TelemetrySnapshot:
        self._elapsed_s += self.tick_interval_s
        return self.sample(self._elapsed_s)

    def sample(self, elapsed_s: float) -> TelemetrySnapshot:
        """Snapshot for the current scenario and phases at ``elapsed_s``."""
        params = SCENARIO_PARAMS[self._scenario]
        if self._scenario is Scenario.RACE_START:
            snapshot = self._race_start(params, elapsed_s)
        elif self._scenario is Scenario.WIND_SHIFT:
            snapshot = self._wind_shift(params, elapsed_s)
        elif self._scenario is Scenario.GUST:
            snapshot = self._gust(params, elapsed_s)
        else:
            snapshot = self._standard(params, elapsed_s)

        reconcile_wind(snapshot, WindAuthority.TRUE)
        snapshot.timestamp = self._clock()
        return snapshot

    def _draw_phases(self) -> None:
        two_pi = 2.0 * math.pi
        self._wind_shift_phase = self._rng.uniform(0.0, two_pi)
        self._gust_phase = self._rng.uniform(0.0, two_pi)
        self._wave_phase = self._rng.uniform(0.0, two_pi)

    def _standard(self, p: ScenarioParams, t: float) -> TelemetrySnapshot:
        wind_noise = math.sin(self._wind_shift_phase + t * 0.1) * 3.0
        speed_noise = math.sin(self._wave_phase + t * 0.3) * 0.3
        gust_noise = math.sin(self._gust_phase + t * 0.5) * 1.0

        return TelemetrySnapshot(
            course_over_ground_deg=normalize_angle_0_360(p.base_cog_deg + wind_noise * 0.5),
            speed_over_ground_kn=max(0.0, p.base_boat_speed_kn + speed_noise - 0.2),
            boat_speed_kn=max(0.0, p.base_boat_speed_kn + speed_noise),
            true_wind_speed_kn=max(0.0, p.base_tws_kn + gust_noise),
            true_wind_angle_deg=p.base_twa_deg + wind_noise,
            true_wind_direction_deg=normalize_angle_0_360(p.base_cog_deg - p.base_twa_deg),
            target_speed_kn=p.base_target_speed_kn,
        )

    def _race_start(self, p: ScenarioParams, t: float) -> TelemetrySnapshot:
        phase = (t % RACE_START_PERIOD_S) / RACE_START_PERIOD_S
        variation = math.sin(phase * math.pi * 4.0) * RACE_START_SWING_DEG
        # Slows down through each turn.
        speed_factor = 0.5 + 0.5 * abs(math.cos(phase * math.pi * 4.0))

        return TelemetrySnapshot(
            course_over_ground_deg=normalize_angle_0_360(p.base_cog_deg + variation),
            speed_over_ground_kn=p.base_boat_speed_kn * speed_factor * 0.9,
            boat_speed_kn=p.base_boat_speed_kn * speed_factor,
            true_wind_speed_kn=p.base_tws_kn + math.sin(t * 0.2) * 1.5,
            true_wind_angle_deg=p.base_twa_deg + variation,
            target_speed_kn=p.base_target_speed_kn,
        )

    def _wind_shift(self, p: ScenarioParams, t: float) -> TelemetrySnapshot:
        shift = math.sin(t * 0.05) * WIND_SHIFT_MAX_DEG
        # The helmsman follows the header/lift.
        cog_adjustment = shift * 0.8
        boat_speed = p.base_boat_speed_kn - abs(shift) * 0.02

        return TelemetrySnapshot(
            course_over_ground_deg=normalize_angle_0_360(p.base_cog_deg + cog_adjustment),
            speed_over_ground_kn=boat_speed,
            boat_speed_kn=boat_speed,
            true_wind_speed_kn=p.base_tws_kn + math.sin(t * 0.3) * 1.0,
            true_wind_angle_deg=p.base_twa_deg + shift,
            true_wind_direction_deg=normalize_angle_0_360(-shift),
            target_speed_kn=p.base_target_speed_kn,
        )

    def _gust(self, p: ScenarioParams, t: float) -> TelemetrySnapshot:
        intensity = gust_intensity(t)
        boat_speed = p.base_boat_speed_kn + intensity * GUST_MAX_BOAT_SPEED_KN

        return TelemetrySnapshot(
            course_over_ground_deg=p.base_cog_deg + math.sin(t * 0.2) * 2.0,
            speed_over_ground_kn=boat_speed - 0.2,
            boat_speed_kn=boat_speed,
            true_wind_speed_kn=p.base_tws_kn + intensity * GUST_MAX_WIND_KN,
            # Wind frees in the gust.
            true_wind_angle_deg=p.base_twa_deg - intensity * 3.0,
            target_speed_kn=p.base_target_speed_kn + intensity * 0.5,
        )
