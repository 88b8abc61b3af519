"""Queue interface (port) for publishing snapshots to consumers."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from sailtelemetry.core.models import TelemetrySnapshot


class SnapshotQueue(Protocol):
    """Port: receives published snapshots and delivers them to one consumer."""

    def offer(self, snapshot: TelemetrySnapshot) -> int:
        """Enqueue without blocking. Returns how many stale snapshots were dropped."""
        ...

    async def get(self) -> TelemetrySnapshot: ...

    def qsize(self) -> int: ...
