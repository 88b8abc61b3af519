"""Tests for the Signal K delta codec."""

from __future__ import annotations

import json
import math

import pytest

from sailtelemetry.core.codec import DecodeError, DeltaCodec, MalformedMessageError
from sailtelemetry.core.models import TelemetrySnapshot
from sailtelemetry.core.paths import DEFAULT_PATH_ALIASES, Field
from sailtelemetry.core.units import degrees_to_radians, knots_to_mps
from sailtelemetry.core.wind import WindAuthority, reconcile_wind, true_from_apparent


def _delta(*values, context="vessels.self") -> str:
    return json.dumps({
        "context": context,
        "updates": [{"values": [{"path": p, "value": v} for p, v in values]}],
    })


def test_end_to_end_example(codec, fixed_time):
    buffer = (
        '{"context":"vessels.self","updates":[{"values":['
        '{"path":"navigation.speedThroughWater","value":3.601},'
        '{"path":"environment.wind.speedApparent","value":7.717},'
        '{"path":"environment.wind.angleApparent","value":0.610}]}]}'
    )
    result = codec.decode(buffer)
    snap = result.snapshot

    assert result.is_delta
    assert result.reconciled
    assert snap.boat_speed_kn == pytest.approx(7.0, abs=0.01)
    assert snap.apparent_wind_speed_kn == pytest.approx(15.0, abs=0.01)
    assert snap.apparent_wind_angle_deg == pytest.approx(35.0, abs=0.1)

    expected = true_from_apparent(snap.apparent_wind_speed_kn, snap.apparent_wind_angle_deg, snap.boat_speed_kn)
    assert snap.true_wind_speed_kn == pytest.approx(expected.speed_kn)
    assert snap.true_wind_angle_deg == pytest.approx(expected.angle_deg)
    assert snap.timestamp == fixed_time


def test_target_estimated_from_polar_when_not_supplied(codec):
    result = codec.decode(_delta(
        ("navigation.speedThroughWater", 3.601),
        ("environment.wind.speedApparent", 7.717),
        ("environment.wind.angleApparent", 0.610),
    ))
    snap = result.snapshot
    assert result.target_estimated
    # TWA ~58 deg falls in the close-reach bucket.
    assert 45 <= snap.true_wind_angle_deg < 60
    assert snap.target_speed_kn == pytest.approx(min(snap.true_wind_speed_kn * 0.70, 10.0))
    assert snap.performance_pct > 0


def test_supplied_target_speed_is_kept(codec):
    result = codec.decode(_delta(
        ("navigation.speedThroughWater", 3.0),
        ("environment.wind.speedApparent", 7.0),
        ("environment.wind.angleApparent", 0.6),
        ("performance.targetSpeed", knots_to_mps(6.2)),
    ))
    assert not result.target_estimated
    assert result.snapshot.target_speed_kn == pytest.approx(6.2)


def test_missing_updates_is_not_a_delta(codec):
    start = TelemetrySnapshot.upwind_sample()
    result = codec.decode('{"name":"signalk-server","version":"2.0","self":"vessels.urn"}', start)
    assert result.is_delta is False
    assert result.reconciled is False
    assert result.snapshot == start


@pytest.mark.parametrize("buffer", [
    b"not json at all",
    b"\xc3\x28",
    "[1, 2, 3]",
    '"updates"',
    '{"updates": {"values": []}}',
])
def test_malformed_buffers_raise(codec, buffer):
    with pytest.raises(MalformedMessageError):
        codec.decode(buffer)


def test_malformed_is_a_decode_error():
    assert issubclass(MalformedMessageError, DecodeError)


def test_malformed_does_not_touch_snapshot(codec):
    start = TelemetrySnapshot.reaching_sample()
    before = start.copy()
    with pytest.raises(MalformedMessageError):
        codec.decode("{broken", start)
    assert start == before


def test_input_snapshot_never_mutated(codec):
    start = TelemetrySnapshot()
    result = codec.decode(_delta(("navigation.speedOverGround", 2.0)), start)
    assert start.speed_over_ground_kn == 0.0
    assert result.snapshot.speed_over_ground_kn == pytest.approx(2.0 * 1.94384)


def test_unknown_path_and_garbage_value_only_update_recognized_field(codec):
    result = codec.decode(_delta(
        ("navigation.courseOverGroundTrue", math.pi / 2),
        ("navigation.headingMagnetic", 1.0),
        ("navigation.speedOverGround", {"nested": {"deep": 1}}),
    ))
    snap = result.snapshot
    assert snap.course_over_ground_deg == pytest.approx(90.0)
    assert snap.speed_over_ground_kn == 0.0
    assert result.applied_paths == ("navigation.courseOverGroundTrue",)
    assert result.ignored_paths == ("navigation.headingMagnetic",)
    assert result.dropped_paths == ("navigation.speedOverGround",)


def test_non_numeric_shapes_are_dropped(codec):
    result = codec.decode(_delta(
        ("navigation.speedOverGround", "3.2"),
        ("navigation.speedThroughWater", True),
        ("environment.wind.speedTrue", None),
        ("environment.wind.speedApparent", {"value": 3.0}),
    ))
    assert result.applied_paths == ()
    assert len(result.dropped_paths) == 4


def test_integer_values_are_numeric(codec):
    result = codec.decode(_delta(("navigation.speedOverGround", 2)))
    assert result.snapshot.speed_over_ground_kn == pytest.approx(2 * 1.94384)


def test_path_aliases_resolve_to_same_field(codec):
    for path in DEFAULT_PATH_ALIASES.aliases(Field.TRUE_WIND_ANGLE):
        result = codec.decode(_delta((path, degrees_to_radians(120.0))))
        assert result.snapshot.true_wind_angle_deg == pytest.approx(120.0)


def test_every_field_has_two_or_more_spellings():
    for field in Field:
        assert len(DEFAULT_PATH_ALIASES.aliases(field)) >= 2


def test_custom_alias_table():
    aliases = DEFAULT_PATH_ALIASES.with_alias("nav.stw", Field.SPEED_THROUGH_WATER)
    codec = DeltaCodec(aliases=aliases)
    result = codec.decode(_delta(("nav.stw", 2.0)))
    assert result.snapshot.boat_speed_kn == pytest.approx(2.0 * 1.94384)
    assert "nav.stw" not in DEFAULT_PATH_ALIASES


def test_complete_true_wind_pair_derives_apparent(codec):
    start = TelemetrySnapshot(boat_speed_kn=6.0, apparent_wind_speed_kn=1.0, apparent_wind_angle_deg=5.0)
    result = codec.decode(_delta(
        ("environment.wind.speedTrue", knots_to_mps(12.0)),
        ("environment.wind.angleTrueWater", degrees_to_radians(45.0)),
    ), start)
    snap = result.snapshot
    assert result.reconciled
    assert snap.true_wind_speed_kn == pytest.approx(12.0)
    assert snap.true_wind_angle_deg == pytest.approx(45.0)
    assert snap.apparent_wind_speed_kn > 12.0
    assert 0 < snap.apparent_wind_angle_deg < 45.0


def test_lone_true_wind_speed_keeps_measured_apparent(codec):
    start = TelemetrySnapshot(boat_speed_kn=7.0, apparent_wind_speed_kn=15.0, apparent_wind_angle_deg=35.0)
    result = codec.decode(_delta(("environment.wind.speedTrue", knots_to_mps(30.0))), start)
    snap = result.snapshot

    assert snap.apparent_wind_speed_kn == 15.0
    assert snap.apparent_wind_angle_deg == 35.0
    expected = true_from_apparent(15.0, 35.0, 7.0)
    assert snap.true_wind_speed_kn == pytest.approx(expected.speed_kn)
    assert snap.true_wind_angle_deg == pytest.approx(expected.angle_deg)


def test_lone_true_wind_angle_keeps_measured_apparent(codec):
    start = TelemetrySnapshot.upwind_sample()
    result = codec.decode(_delta(("environment.wind.angleTrueWater", degrees_to_radians(120.0))), start)
    snap = result.snapshot

    assert snap.apparent_wind_speed_kn == start.apparent_wind_speed_kn
    assert snap.apparent_wind_angle_deg == start.apparent_wind_angle_deg
    assert snap.true_wind_angle_deg == pytest.approx(
        true_from_apparent(start.apparent_wind_speed_kn, start.apparent_wind_angle_deg, start.boat_speed_kn).angle_deg,
    )


def test_lone_true_wind_speed_without_apparent_derives_nothing(codec):
    result = codec.decode(_delta(("environment.wind.speedTrue", knots_to_mps(12.0))))
    snap = result.snapshot
    assert not result.reconciled
    assert snap.true_wind_speed_kn == pytest.approx(12.0)
    assert snap.apparent_wind_speed_kn == 0.0


def test_both_winds_supplied_recomputes_true_from_apparent(codec):
    result = codec.decode(_delta(
        ("navigation.speedThroughWater", knots_to_mps(7.0)),
        ("environment.wind.speedTrue", knots_to_mps(30.0)),
        ("environment.wind.angleTrueWater", degrees_to_radians(170.0)),
        ("environment.wind.speedApparent", knots_to_mps(15.0)),
        ("environment.wind.angleApparent", degrees_to_radians(35.0)),
    ))
    expected = true_from_apparent(15.0, 35.0, 7.0)
    assert result.snapshot.true_wind_speed_kn == pytest.approx(expected.speed_kn)
    assert result.snapshot.true_wind_angle_deg == pytest.approx(expected.angle_deg)


def test_later_values_in_message_win(codec):
    result = codec.decode(json.dumps({"updates": [
        {"values": [{"path": "navigation.speedOverGround", "value": 1.0}]},
        {"values": [{"path": "speedOverGround", "value": 2.0}]},
    ]}))
    assert result.snapshot.speed_over_ground_kn == pytest.approx(2.0 * 1.94384)


def test_non_finite_and_negative_speeds_dropped(codec):
    result = codec.decode(
        '{"updates":[{"values":['
        '{"path":"navigation.speedOverGround","value":NaN},'
        '{"path":"navigation.speedThroughWater","value":-1.5},'
        '{"path":"navigation.courseOverGroundTrue","value":Infinity},'
        '{"path":"environment.wind.angleApparent","value":-0.5}]}]}'
    )
    assert result.applied_paths == ("environment.wind.angleApparent",)
    assert result.snapshot.apparent_wind_angle_deg == pytest.approx(math.degrees(-0.5))


def test_trusting_codec_lets_values_through():
    codec = DeltaCodec(drop_non_finite=False, reject_negative_speeds=False)
    result = codec.decode(_delta(("navigation.speedThroughWater", -1.0)))
    assert result.snapshot.boat_speed_kn == pytest.approx(-1.94384)
    assert result.snapshot.performance_pct == 0


def test_lenient_structure(codec):
    buffer = json.dumps({
        "updates": [
            "not an object",
            {"source": "n2k", "values": [{"value": 1.0}, 7, {"path": 3, "value": 1.0}]},
            {"source": {"label": "n2k", "pgn": 130306, "extra": [1]}, "values": "oops"},
            {"timestamp": "2025-06-01T12:00:00Z", "unknown": True,
             "values": [{"path": "navigation.speedOverGround", "value": 1.0, "meta": {}}]},
        ],
        "extra": {"anything": 1},
    })
    message = codec.parse(buffer)
    assert message is not None
    assert len(message.updates) == 3
    assert message.updates[1].source.pgn == 130306
    assert message.updates[1].values == ()
    result = codec.decode(buffer)
    assert result.applied_paths == ("navigation.speedOverGround",)


def test_known_paths_recorded_per_instance(codec):
    codec.decode(_delta(("navigation.speedOverGround", 1.0), ("a.b.c", 2)))
    codec.decode(_delta(("a.b.c", 3)))
    assert codec.known_paths == {"navigation.speedOverGround", "a.b.c"}
    assert DeltaCodec().known_paths == frozenset()


def test_encode_has_eight_fixed_paths_in_wire_units(codec, fixed_time):
    snap = TelemetrySnapshot.upwind_sample()
    snap.timestamp = fixed_time
    message = codec.encode(snap)

    assert message.context == "vessels.self"
    assert len(message.updates) == 1
    update = message.updates[0]
    assert update.source.label == "sailtelemetry"
    assert update.source.type == "simulator"
    assert update.timestamp == "2025-06-01T12:00:00Z"

    values = {pv.path: pv.value.value for pv in update.values}
    assert list(values) == [
        "navigation.courseOverGroundTrue",
        "navigation.speedOverGround",
        "navigation.speedThroughWater",
        "environment.wind.speedTrue",
        "environment.wind.angleTrueWater",
        "environment.wind.speedApparent",
        "environment.wind.angleApparent",
        "performance.polarSpeed",
    ]
    assert values["navigation.courseOverGroundTrue"] == pytest.approx(math.radians(45))
    assert values["navigation.speedThroughWater"] == pytest.approx(6.8 / 1.94384)
    assert values["performance.polarSpeed"] == pytest.approx(7.5 / 1.94384)


def test_encoded_bytes_decode_back(codec):
    snap = TelemetrySnapshot(
        course_over_ground_deg=200.0, speed_over_ground_kn=5.5, boat_speed_kn=6.0,
        true_wind_speed_kn=14.0, true_wind_angle_deg=-50.0,
    )
    reconcile_wind(snap, WindAuthority.TRUE)
    snap.target_speed_kn = 7.1

    result = codec.decode(codec.encode_bytes(snap))
    out = result.snapshot
    assert out.course_over_ground_deg == pytest.approx(200.0)
    assert out.boat_speed_kn == pytest.approx(6.0)
    assert out.true_wind_speed_kn == pytest.approx(14.0)
    assert out.true_wind_angle_deg == pytest.approx(-50.0)
    assert out.target_speed_kn == pytest.approx(7.1)
    assert not result.target_estimated
