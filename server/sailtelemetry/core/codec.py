"""Signal K delta codec.

Decodes delta messages into ``TelemetrySnapshot`` updates and encodes
snapshots back into the same wire format. Wire units are radians and m/s;
everything past this module is degrees and knots.

Decoding favours robustness over strictness: unknown keys and paths are
ignored and values of unexpected shape are dropped, so one bad field never
blocks the rest of a message.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

import structlog

from sailtelemetry.core.models import (
    DeltaMessage,
    NumberValue,
    PathValue,
    SourceInfo,
    TelemetrySnapshot,
    UpdateGroup,
    numeric_value,
    value_from_json,
)
from sailtelemetry.core.paths import (
    APPARENT_WIND_FIELDS,
    CANONICAL_PATHS,
    DEFAULT_PATH_ALIASES,
    TRUE_WIND_FIELDS,
    Field,
    PathAliasTable,
    Unit,
)
from sailtelemetry.core.polar import KEELBOAT_POLAR, PolarModel
from sailtelemetry.core.units import degrees_to_radians, knots_to_mps, mps_to_knots, radians_to_degrees
from sailtelemetry.core.wind import WindAuthority, reconcile_wind

log = structlog.get_logger()

# Fields written by encode(), in wire order.
ENCODED_FIELDS = (
    Field.COURSE_OVER_GROUND,
    Field.SPEED_OVER_GROUND,
    Field.SPEED_THROUGH_WATER,
    Field.TRUE_WIND_SPEED,
    Field.TRUE_WIND_ANGLE,
    Field.APPARENT_WIND_SPEED,
    Field.APPARENT_WIND_ANGLE,
    Field.TARGET_SPEED,
)


class DecodeError(Exception):
    """A buffer could not be applied as a delta."""


class MalformedMessageError(DecodeError):
    """The buffer is not JSON, or not shaped like a delta at all."""


@dataclass(frozen=True)
class DecodeResult:
    snapshot: TelemetrySnapshot
    is_delta: bool = True
    reconciled: bool = False
    target_estimated: bool = False
    applied_paths: tuple[str, ...] = ()
    ignored_paths: tuple[str, ...] = ()   # path not in the alias table
    dropped_paths: tuple[str, ...] = ()   # known path, unusable value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso8601(stamp: datetime) -> str:
    """UTC ISO-8601 with a Z suffix; naive datetimes are taken as UTC."""
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _choose_authority(supplied: set[Field]) -> WindAuthority:
    """True wind is authoritative only for a complete TWS + TWA pair without apparent wind.

    A lone TWS or TWA would be paired with a stale value from an earlier
    message, so partial true wind is recomputed from apparent instead.
    """
    if TRUE_WIND_FIELDS <= supplied and not supplied & APPARENT_WIND_FIELDS:
        return WindAuthority.TRUE
    return WindAuthority.APPARENT


def _parse_source(data: Any) -> SourceInfo | None:
    if not isinstance(data, dict):
        return None
    pgn = data.get("pgn")
    return SourceInfo(
        label=data.get("label") if isinstance(data.get("label"), str) else None,
        type=data.get("type") if isinstance(data.get("type"), str) else None,
        talker=data.get("talker") if isinstance(data.get("talker"), str) else None,
        src=data.get("src") if isinstance(data.get("src"), str) else None,
        pgn=pgn if isinstance(pgn, int) and not isinstance(pgn, bool) else None,
        sentence=data.get("sentence") if isinstance(data.get("sentence"), str) else None,
    )


def _parse_update(data: dict) -> UpdateGroup:
    values = []
    raw_values = data.get("values", [])
    if isinstance(raw_values, list):
        for entry in raw_values:
            if not isinstance(entry, dict) or not isinstance(entry.get("path"), str):
                continue
            values.append(PathValue(entry["path"], value_from_json(entry.get("value"))))

    timestamp = data.get("timestamp")
    return UpdateGroup(
        source=_parse_source(data.get("source")),
        timestamp=timestamp if isinstance(timestamp, str) else None,
        values=tuple(values),
    )


class DeltaCodec:
    """Translates between the delta wire format and ``TelemetrySnapshot``.

    Each instance owns its alias table and its set of discovered paths.
    """

    def __init__(
        self,
        aliases: PathAliasTable = DEFAULT_PATH_ALIASES,
        polar: PolarModel = KEELBOAT_POLAR,
        *,
        context: str = "vessels.self",
        source_label: str = "sailtelemetry",
        source_type: str = "simulator",
        drop_non_finite: bool = True,
        reject_negative_speeds: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._aliases = aliases
        self._polar = polar
        self._context = context
        self._source_label = source_label
        self._source_type = source_type
        self._drop_non_finite = drop_non_finite
        self._reject_negative_speeds = reject_negative_speeds
        self._clock = clock
        self._known_paths: set[str] = set()

    @property
    def aliases(self) -> PathAliasTable:
        return self._aliases

    @property
    def known_paths(self) -> frozenset[str]:
        return frozenset(self._known_paths)

    # -- decode -------------------------------------------------------------

    def parse(self, buffer: bytes | str) -> DeltaMessage | None:
        """Parse a buffer into a DeltaMessage; None if it is not a delta."""
        try:
            body = json.loads(buffer)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedMessageError(f"invalid JSON: {exc}") from exc

        if not isinstance(body, dict):
            raise MalformedMessageError(f"expected a JSON object, got {type(body).__name__}")
        if "updates" not in body:
            # Hello messages, subscriptions replies, ... are not deltas.
            return None

        updates = body["updates"]
        if not isinstance(updates, list):
            raise MalformedMessageError("'updates' is not a list")

        context = body.get("context")
        return DeltaMessage(
            context=context if isinstance(context, str) else None,
            updates=tuple(_parse_update(u) for u in updates if isinstance(u, dict)),
        )

    def decode(self, buffer: bytes | str, snapshot: TelemetrySnapshot | None = None) -> DecodeResult:
        """Apply one buffer on top of ``snapshot`` (never mutated).

        Raises MalformedMessageError if the buffer cannot be parsed.
        """
        base = snapshot.copy() if snapshot is not None else TelemetrySnapshot()
        message = self.parse(buffer)
        if message is None:
            return DecodeResult(snapshot=base, is_delta=False)
        return self.apply(message, base)

    def apply(self, message: DeltaMessage, snapshot: TelemetrySnapshot) -> DecodeResult:
        """Apply a parsed message to ``snapshot`` in place, then reconcile."""
        applied: list[str] = []
        ignored: list[str] = []
        dropped: list[str] = []
        supplied: set[Field] = set()

        for pv in message.iter_values():
            self._discover(pv)

            target = self._aliases.resolve(pv.path)
            if target is None:
                ignored.append(pv.path)
                continue

            number = self._wire_number(pv, target)
            if number is None:
                dropped.append(pv.path)
                continue

            if target.unit is Unit.ANGLE:
                setattr(snapshot, target.attribute, radians_to_degrees(number))
            else:
                setattr(snapshot, target.attribute, mps_to_knots(number))
            supplied.add(target)
            applied.append(pv.path)

        authority = _choose_authority(supplied)
        reconciled = reconcile_wind(snapshot, authority)

        target_estimated = False
        if Field.TARGET_SPEED not in supplied and snapshot.true_wind_speed_kn > 0:
            snapshot.target_speed_kn = self._polar.target_speed(
                snapshot.true_wind_speed_kn, abs(snapshot.true_wind_angle_deg),
            )
            target_estimated = True

        snapshot.timestamp = self._clock()

        if applied:
            log.debug("delta_applied", applied=len(applied), ignored=len(ignored),
                      dropped=len(dropped), authority=authority.value,
                      reconciled=reconciled)

        return DecodeResult(
            snapshot=snapshot,
            is_delta=True,
            reconciled=reconciled,
            target_estimated=target_estimated,
            applied_paths=tuple(applied),
            ignored_paths=tuple(ignored),
            dropped_paths=tuple(dropped),
        )

    def _discover(self, pv: PathValue) -> None:
        if pv.path not in self._known_paths:
            self._known_paths.add(pv.path)
            log.info("signalk_path_discovered", path=pv.path, value=repr(pv.value))

    def _wire_number(self, pv: PathValue, target: Field) -> float | None:
        number = numeric_value(pv.value)
        if number is None:
            return None
        if self._drop_non_finite and not math.isfinite(number):
            log.debug("value_dropped", path=pv.path, reason="non_finite")
            return None
        if self._reject_negative_speeds and target.unit is Unit.SPEED and number < 0:
            log.debug("value_dropped", path=pv.path, reason="negative_speed")
            return None
        return number

    # -- encode -------------------------------------------------------------

    def encode(self, snapshot: TelemetrySnapshot) -> DeltaMessage:
        """Build a delta carrying the eight core fields of ``snapshot``."""
        values = []
        for f in ENCODED_FIELDS:
            raw = getattr(snapshot, f.attribute)
            wire = degrees_to_radians(raw) if f.unit is Unit.ANGLE else knots_to_mps(raw)
            values.append(PathValue(CANONICAL_PATHS[f], NumberValue(wire)))

        update = UpdateGroup(
            source=SourceInfo(label=self._source_label, type=self._source_type),
            timestamp=_iso8601(snapshot.timestamp or self._clock()),
            values=tuple(values),
        )
        return DeltaMessage(context=self._context, updates=(update,))

    def encode_bytes(self, snapshot: TelemetrySnapshot) -> bytes:
        return json.dumps(self.encode(snapshot).to_dict(), separators=(",", ":")).encode("utf-8")
