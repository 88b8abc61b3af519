"""Telemetry pipeline statistics.

In-memory counters for decoded messages, simulator ticks and publication.
No framework dependencies.
"""

from __future__ import annotations

import threading
import time


class TelemetryStats:
    """Thread-safe counters for the telemetry pipeline.

    A message is "applied" when it parsed as a delta, "ignored" when it was
    valid JSON without ``updates``, and "malformed" when it could not be
    parsed at all. Per-value counters split paths into applied, ignored
    (unknown path) and dropped (known path, unusable value).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()

        # Messages
        self.messages_received: int = 0
        self.messages_applied: int = 0
        self.messages_ignored: int = 0
        self.messages_malformed: int = 0
        self.bytes_received: int = 0

        # Values
        self.values_applied: int = 0
        self.values_ignored: int = 0
        self.values_dropped: int = 0

        # Derived passes
        self.reconciliations: int = 0
        self.target_estimations: int = 0

        # Simulator and publication
        self.simulator_ticks: int = 0
        self.snapshots_published: int = 0
        self.publish_drops: int = 0
        self.subscribers: int = 0
        self.last_update_at: float | None = None

    def record_message(self, size_bytes: int) -> None:
        with self._lock:
            self.messages_received += 1
            self.bytes_received += size_bytes

    def record_applied(self, applied: int, ignored: int, dropped: int, *,
                       reconciled: bool, target_estimated: bool) -> None:
        with self._lock:
            self.messages_applied += 1
            self.values_applied += applied
            self.values_ignored += ignored
            self.values_dropped += dropped
            if reconciled:
                self.reconciliations += 1
            if target_estimated:
                self.target_estimations += 1
            self.last_update_at = time.time()

    def record_ignored(self) -> None:
        with self._lock:
            self.messages_ignored += 1

    def record_malformed(self) -> None:
        with self._lock:
            self.messages_malformed += 1

    def record_tick(self) -> None:
        with self._lock:
            self.simulator_ticks += 1
            self.last_update_at = time.time()

    def record_published(self, dropped: int = 0) -> None:
        with self._lock:
            self.snapshots_published += 1
            self.publish_drops += dropped

    def update_subscribers(self, count: int) -> None:
        with self._lock:
            self.subscribers = count

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all stats."""
        now = time.time()
        with self._lock:
            last_age = round(now - self.last_update_at, 1) if self.last_update_at else None
            return {
                "uptime_seconds": round(now - self._started_at, 1),
                "messages": {
                    "received": self.messages_received,
                    "applied": self.messages_applied,
                    "ignored": self.messages_ignored,
                    "malformed": self.messages_malformed,
                    "bytes_received": self.bytes_received,
                },
                "values": {
                    "applied": self.values_applied,
                    "ignored": self.values_ignored,
                    "dropped": self.values_dropped,
                },
                "reconciliations": self.reconciliations,
                "target_estimations": self.target_estimations,
                "simulator_ticks": self.simulator_ticks,
                "snapshots_published": self.snapshots_published,
                "publish_drops": self.publish_drops,
                "subscribers": self.subscribers,
                "seconds_since_last_update": last_age,
            }
