"""In-process asyncio queue implementation of SnapshotQueue."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sailtelemetry.core.models import TelemetrySnapshot


class AsyncioSnapshotQueue:
    """SnapshotQueue backed by asyncio.Queue.

    A slow consumer only cares about the latest state, so when the queue is
    full the oldest snapshot is discarded to make room.
    """

    def __init__(self, max_size: int = 64) -> None:
        self._queue: asyncio.Queue[TelemetrySnapshot] = asyncio.Queue(maxsize=max_size)

    def offer(self, snapshot: TelemetrySnapshot) -> int:
        dropped = 0
        while True:
            try:
                self._queue.put_nowait(snapshot)
                return dropped
            except asyncio.QueueFull:
                self._queue.get_nowait()
                dropped += 1

    async def get(self) -> TelemetrySnapshot:
        return await self._queue.get()

    def qsize(self) -> int:
        return self._queue.qsize()
