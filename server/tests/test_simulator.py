"""Tests for the scenario simulator."""

from __future__ import annotations

import math
import random

import pytest

from sailtelemetry.core.simulator import (
    SCENARIO_PARAMS,
    Scenario,
    ScenarioSimulator,
    UnknownScenarioError,
    gust_intensity,
)
from sailtelemetry.core.wind import apparent_from_true


def _tick_to(simulator: ScenarioSimulator, elapsed_s: float):
    snap = None
    while simulator.elapsed_s < elapsed_s:
        snap = simulator.tick()
    return snap


def test_gust_build_phase(simulator):
    simulator.start(Scenario.GUST)
    snap = _tick_to(simulator, 1.5)
    assert simulator.elapsed_s == 1.5
    base = SCENARIO_PARAMS[Scenario.GUST].base_tws_kn
    assert base < snap.true_wind_speed_kn < base + 6.0


def test_gust_peak_is_exact(simulator):
    simulator.start("gust")
    snap = _tick_to(simulator, 4.5)
    assert simulator.elapsed_s == 4.5
    assert snap.true_wind_speed_kn == SCENARIO_PARAMS[Scenario.GUST].base_tws_kn + 6.0
    assert snap.boat_speed_kn == pytest.approx(7.0 + 1.5)
    assert snap.true_wind_angle_deg == pytest.approx(50.0 - 3.0)
    assert snap.target_speed_kn == pytest.approx(7.8 + 0.5)


@pytest.mark.parametrize("t, expected", [
    (0.0, 0.0), (1.5, 0.5), (3.0, 1.0), (4.5, 1.0), (7.5, 0.5), (9.0, 0.0), (10.5, 0.0), (13.5, 0.5),
])
def test_gust_envelope(t, expected):
    assert gust_intensity(t) == pytest.approx(expected)


def test_standard_scenario_stays_in_envelope(simulator):
    simulator.start(Scenario.UPWIND)
    p = SCENARIO_PARAMS[Scenario.UPWIND]
    for _ in range(400):
        snap = simulator.tick()
        assert abs(snap.true_wind_angle_deg - p.base_twa_deg) <= 3.0 + 1e-9
        assert abs(snap.true_wind_speed_kn - p.base_tws_kn) <= 1.0 + 1e-9
        assert abs(snap.boat_speed_kn - p.base_boat_speed_kn) <= 0.3 + 1e-9
        assert snap.speed_over_ground_kn == pytest.approx(snap.boat_speed_kn - 0.2)
        assert abs(snap.course_over_ground_deg - p.base_cog_deg) <= 1.5 + 1e-9
        assert snap.true_wind_direction_deg == pytest.approx(3.0)
        assert snap.target_speed_kn == p.base_target_speed_kn


def test_race_start_turn(simulator):
    simulator.start(Scenario.RACE_START)
    # A quarter of the way into the 30 s cycle the first turn peaks.
    snap = simulator.sample(3.75)
    assert snap.true_wind_angle_deg == pytest.approx(45.0 + 45.0)
    assert snap.course_over_ground_deg == pytest.approx(45.0)
    assert snap.boat_speed_kn == pytest.approx(2.0)
    assert snap.speed_over_ground_kn == pytest.approx(1.8)


def test_race_start_straight(simulator):
    simulator.start(Scenario.RACE_START)
    snap = simulator.sample(7.5)
    assert snap.boat_speed_kn == pytest.approx(4.0)
    assert snap.true_wind_angle_deg == pytest.approx(45.0, abs=1e-9)


def test_race_start_cycle_repeats(simulator):
    simulator.start(Scenario.RACE_START)
    a, b = simulator.sample(5.0), simulator.sample(35.0)
    assert a.course_over_ground_deg == pytest.approx(b.course_over_ground_deg)
    assert a.boat_speed_kn == pytest.approx(b.boat_speed_kn)


def test_wind_shift_peak(simulator):
    simulator.start(Scenario.WIND_SHIFT)
    snap = simulator.sample(10 * math.pi)  # sin(0.05 t) == 1
    assert snap.true_wind_angle_deg == pytest.approx(42.0 + 15.0)
    assert snap.course_over_ground_deg == pytest.approx(45.0 + 12.0)
    assert snap.boat_speed_kn == pytest.approx(6.5 - 0.3)
    assert snap.true_wind_direction_deg == pytest.approx(345.0)


def test_apparent_wind_derived_from_true(simulator):
    for scenario in Scenario:
        simulator.start(scenario)
        for _ in range(20):
            snap = simulator.tick()
            expected = apparent_from_true(snap.true_wind_speed_kn, snap.true_wind_angle_deg, snap.boat_speed_kn)
            assert snap.apparent_wind_speed_kn == pytest.approx(expected.speed_kn)
            assert snap.apparent_wind_angle_deg == pytest.approx(expected.angle_deg)


def test_timestamp_from_clock(simulator, fixed_time):
    simulator.start()
    assert simulator.tick().timestamp == fixed_time


def test_start_resets_elapsed_and_set_scenario_keeps_it(simulator):
    simulator.start(Scenario.UPWIND)
    _tick_to(simulator, 5.0)
    simulator.set_scenario(Scenario.REACHING)
    assert simulator.elapsed_s == 5.0
    assert simulator.scenario is Scenario.REACHING
    simulator.start(Scenario.DOWNWIND)
    assert simulator.elapsed_s == 0.0
    assert simulator.tick().boat_speed_kn > 0


def test_phases_redrawn_on_start_and_set_scenario():
    simulator = ScenarioSimulator(rng=random.Random(7))
    simulator.start(Scenario.UPWIND)
    first = simulator.sample(10.0)
    simulator.start(Scenario.UPWIND)
    second = simulator.sample(10.0)
    simulator.set_scenario(Scenario.UPWIND)
    third = simulator.sample(10.0)
    assert first.true_wind_angle_deg != second.true_wind_angle_deg
    assert second.true_wind_angle_deg != third.true_wind_angle_deg


def test_seeded_runs_are_reproducible():
    a = ScenarioSimulator(rng=random.Random(3))
    b = ScenarioSimulator(rng=random.Random(3))
    a.start(Scenario.REACHING)
    b.start(Scenario.REACHING)
    for _ in range(10):
        assert a.tick().true_wind_speed_kn == b.tick().true_wind_speed_kn


def test_stop_marks_not_running(simulator):
    simulator.start()
    assert simulator.is_running
    simulator.stop()
    assert not simulator.is_running


@pytest.mark.parametrize("name, expected", [
    ("upwind", Scenario.UPWIND),
    ("race-start", Scenario.RACE_START),
    ("Race Start", Scenario.RACE_START),
    ("WIND_SHIFT", Scenario.WIND_SHIFT),
    ("Gust Response", Scenario.GUST),
])
def test_scenario_parse(name, expected):
    assert Scenario.parse(name) is expected


def test_unknown_scenario(simulator):
    with pytest.raises(UnknownScenarioError):
        simulator.start("capsize")
    with pytest.raises(UnknownScenarioError):
        Scenario.parse(3)  # type: ignore[arg-type]


def test_invalid_tick_interval():
    with pytest.raises(ValueError):
        ScenarioSimulator(tick_interval_s=0)
