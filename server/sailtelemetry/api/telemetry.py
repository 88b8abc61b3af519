"""Telemetry API endpoints.

This is the thin FastAPI adapter. It hands raw delta buffers to the
processor and renders snapshots as JSON.
"""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, Request, WebSocket
from fastapi.responses import JSONResponse

from sailtelemetry.core.advisory import CoachContext, fallback_recommendations
from sailtelemetry.core.codec import MalformedMessageError

log = structlog.get_logger()

router = APIRouter(prefix="/api/v1")


@router.post("/deltas")
async def receive_delta(request: Request) -> JSONResponse:
    """Apply one Signal K delta message to the current snapshot.

    Messages without ``updates`` (hello, subscription replies) are accepted
    and ignored. Unparseable bodies get a 400.
    """
    from sailtelemetry.main import get_processor

    processor = get_processor()
    body_bytes = await request.body()

    try:
        result = processor.process_delta(body_bytes)
    except MalformedMessageError as exc:
        return JSONResponse(
            content={"applied": False, "error": str(exc)},
            status_code=400,
        )

    if not result.is_delta:
        return JSONResponse(content={"applied": False, "reason": "not_a_delta"})

    return JSONResponse(content={
        "applied": True,
        "reconciled": result.reconciled,
        "target_estimated": result.target_estimated,
        "applied_paths": list(result.applied_paths),
        "ignored_paths": list(result.ignored_paths),
        "dropped_paths": list(result.dropped_paths),
        "snapshot": result.snapshot.to_dict(),
    })


@router.get("/telemetry")
async def get_telemetry() -> dict:
    """Latest published snapshot."""
    from sailtelemetry.main import get_processor

    return get_processor().latest().to_dict()


@router.get("/telemetry/delta")
async def get_telemetry_delta() -> dict:
    """Latest snapshot re-encoded in the wire format (radians, m/s)."""
    from sailtelemetry.main import get_processor

    processor = get_processor()
    return processor.codec.encode(processor.latest()).to_dict()


@router.get("/telemetry/advice")
async def get_advice() -> dict:
    """Coach context and local fallback recommendations for the latest snapshot."""
    from sailtelemetry.main import get_processor

    snapshot = get_processor().latest()
    context = CoachContext.from_snapshot(snapshot)
    return {
        "context": context.to_dict(),
        "summary": context.describe(),
        "recommendations": fallback_recommendations(snapshot).to_dict(),
    }


def _release_futures(*futures: asyncio.Future | None) -> None:
    """Cancel pending futures and retrieve the exception of finished ones."""
    for future in futures:
        if future is None:
            continue
        if not future.done():
            future.cancel()
        elif not future.cancelled():
            future.exception()


@router.websocket("/telemetry/stream")
async def stream_telemetry(websocket: WebSocket) -> None:
    """Push every published snapshot; text frames received are applied as deltas."""
    from sailtelemetry.main import get_processor

    processor = get_processor()
    await websocket.accept()
    queue = processor.subscribe()
    receiver = asyncio.ensure_future(websocket.receive())
    getter: asyncio.Future | None = None
    try:
        await websocket.send_json(processor.latest().to_dict())
        while True:
            if getter is None:
                getter = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({receiver, getter}, return_when=asyncio.FIRST_COMPLETED)

            if receiver in done:
                message = receiver.result()
                if message["type"] == "websocket.disconnect":
                    break
                payload = message.get("text") or message.get("bytes")
                if payload:
                    try:
                        processor.process_delta(payload)
                    except MalformedMessageError:
                        pass  # counted and logged by the processor
                receiver = asyncio.ensure_future(websocket.receive())

            if getter in done:
                await websocket.send_json(getter.result().to_dict())
                getter = None
    finally:
        _release_futures(receiver, getter)
        processor.unsubscribe(queue)
        log.debug("stream_closed")
