"""Health check and monitoring endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from sailtelemetry import __version__
from sailtelemetry.core.simulator import Scenario

router = APIRouter(prefix="/api/v1")


@router.get("/health")
async def health() -> dict:
    """Basic health check."""
    from sailtelemetry.main import get_runner, get_stats

    snapshot = get_stats().snapshot()
    return {
        "status": "ok",
        "version": __version__,
        "uptime_seconds": snapshot["uptime_seconds"],
        "simulator_running": get_runner().is_running,
        "seconds_since_last_update": snapshot["seconds_since_last_update"],
    }


@router.get("/stats")
async def stats() -> dict:
    """Pipeline counters.

    ``messages.ignored`` counts valid JSON that was not a delta;
    ``values.ignored`` counts unknown paths and ``values.dropped`` known
    paths whose value could not be used.
    """
    from sailtelemetry.main import get_stats

    return get_stats().snapshot()


@router.get("/paths")
async def paths() -> dict:
    """Paths seen on the wire so far, and the aliases the codec understands."""
    from sailtelemetry.main import get_processor

    codec = get_processor().codec
    known = sorted(codec.known_paths)
    return {
        "discovered": known,
        "unmapped": [p for p in known if p not in codec.aliases],
        "aliases": {path: field.name.lower() for path, field in codec.aliases.items()},
    }


@router.get("/config")
async def get_client_config() -> dict:
    """Parameters a display client needs to interpret the feed."""
    from sailtelemetry.main import get_config

    config = get_config()
    return {
        "context": config.codec.context,
        "tick_interval_s": config.simulator.tick_interval_s,
        "max_target_speed_kn": config.polar.max_target_speed_kn,
        "scenarios": [s.value for s in Scenario],
        "units": {"angle": "deg", "speed": "kn"},
    }
