"""Simulator control endpoints."""

from __future__ import annotations

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sailtelemetry.core.simulator import Scenario, UnknownScenarioError

router = APIRouter(prefix="/api/v1")


async def _read_scenario(request: Request, default: str | None = None) -> str | None:
    body_bytes = await request.body()
    if not body_bytes:
        return default
    body = json.loads(body_bytes)
    if not isinstance(body, dict):
        return default
    return body.get("scenario", default)


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse(content={"ok": False, "error": error}, status_code=422)


@router.get("/simulator")
async def simulator_status() -> dict:
    from sailtelemetry.main import get_runner

    return get_runner().status()


@router.get("/simulator/scenarios")
async def list_scenarios() -> dict:
    return {
        "scenarios": [
            {"name": s.value, "label": s.label, "description": s.description}
            for s in Scenario
        ],
    }


@router.post("/simulator/start")
async def start_simulator(request: Request) -> JSONResponse:
    """Start (or restart) the simulator. Body: {"scenario": "gust"} (optional)."""
    from sailtelemetry.main import get_config, get_runner

    runner = get_runner()
    try:
        scenario = await _read_scenario(request, default=get_config().simulator.scenario)
        runner.start(scenario)
    except (json.JSONDecodeError, UnknownScenarioError) as exc:
        return _bad_request(str(exc))
    return JSONResponse(content=runner.status())


@router.put("/simulator/scenario")
async def set_scenario(request: Request) -> JSONResponse:
    """Switch scenario without resetting elapsed time. Body: {"scenario": "..."}."""
    from sailtelemetry.main import get_runner

    runner = get_runner()
    try:
        scenario = await _read_scenario(request)
        if scenario is None:
            return _bad_request("scenario is required")
        runner.set_scenario(scenario)
    except (json.JSONDecodeError, UnknownScenarioError) as exc:
        return _bad_request(str(exc))
    return JSONResponse(content=runner.status())


@router.post("/simulator/stop")
async def stop_simulator() -> dict:
    from sailtelemetry.main import get_runner

    runner = get_runner()
    await runner.stop()
    return runner.status()
