"""Telemetry processor: single owner of the current snapshot.

Decoded deltas and simulator ticks both go through here. Each update is
computed on a private copy, swapped in as the current snapshot, then
published as a copy to every subscriber queue, so readers never observe a
half-applied batch.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable

import structlog

from sailtelemetry.core.codec import MalformedMessageError
from sailtelemetry.core.models import TelemetrySnapshot
from sailtelemetry.queue.asyncio_queue import AsyncioSnapshotQueue

if TYPE_CHECKING:
    from sailtelemetry.core.codec import DecodeResult, DeltaCodec
    from sailtelemetry.core.stats import TelemetryStats
    from sailtelemetry.queue.base import SnapshotQueue

log = structlog.get_logger()


class TelemetryProcessor:
    """Applies deltas and ticks to the current snapshot and publishes the result."""

    def __init__(
        self,
        codec: DeltaCodec,
        stats: TelemetryStats,
        queue_factory: Callable[[], SnapshotQueue] = AsyncioSnapshotQueue,
    ) -> None:
        self._codec = codec
        self._stats = stats
        self._queue_factory = queue_factory
        self._lock = threading.Lock()
        self._current = TelemetrySnapshot()
        self._subscribers: list[SnapshotQueue] = []

    @property
    def codec(self) -> DeltaCodec:
        return self._codec

    def latest(self) -> TelemetrySnapshot:
        with self._lock:
            return self._current.copy()

    def process_delta(self, buffer: bytes | str) -> DecodeResult:
        """Decode one inbound message and publish the updated snapshot.

        Raises MalformedMessageError (after counting it); the current
        snapshot is left untouched in that case.
        """
        size = len(buffer)
        self._stats.record_message(size)

        with self._lock:
            try:
                result = self._codec.decode(buffer, self._current)
            except MalformedMessageError as exc:
                self._stats.record_malformed()
                log.warning("delta_malformed", error=str(exc), size_bytes=size)
                raise
            if result.is_delta:
                self._current = result.snapshot.copy()

        if not result.is_delta:
            self._stats.record_ignored()
            log.debug("message_not_a_delta", size_bytes=size)
            return result

        self._stats.record_applied(
            len(result.applied_paths), len(result.ignored_paths), len(result.dropped_paths),
            reconciled=result.reconciled, target_estimated=result.target_estimated,
        )
        self._publish(result.snapshot)
        return result

    def process_tick(self, snapshot: TelemetrySnapshot) -> None:
        """Replace the current snapshot with simulator output and publish it."""
        with self._lock:
            self._current = snapshot.copy()
        self._stats.record_tick()
        self._publish(snapshot)

    def subscribe(self) -> SnapshotQueue:
        queue = self._queue_factory()
        with self._lock:
            self._subscribers.append(queue)
            count = len(self._subscribers)
        self._stats.update_subscribers(count)
        return queue

    def unsubscribe(self, queue: SnapshotQueue) -> None:
        with self._lock:
            if queue in self._subscribers:
                self._subscribers.remove(queue)
            count = len(self._subscribers)
        self._stats.update_subscribers(count)

    def _publish(self, snapshot: TelemetrySnapshot) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        dropped = 0
        for queue in subscribers:
            dropped += queue.offer(snapshot.copy())
        self._stats.record_published(dropped)
        if dropped:
            log.debug("publish_dropped_stale", dropped=dropped, subscribers=len(subscribers))
