"""Sailing telemetry service: main entry point.

This is the only file that knows about concrete implementations.
It wires together the codec, simulator, processor and API layers.
"""

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from pathlib import Path
from typing import IO

import structlog
from fastapi import FastAPI

from sailtelemetry import __version__
from sailtelemetry.api.monitoring import router as monitoring_router
from sailtelemetry.api.simulator import router as simulator_router
from sailtelemetry.api.telemetry import router as telemetry_router
from sailtelemetry.config import AppConfig, load_config
from sailtelemetry.core.codec import DeltaCodec
from sailtelemetry.core.polar import KEELBOAT_POLAR
from sailtelemetry.core.processor import TelemetryProcessor
from sailtelemetry.core.runner import SimulatorRunner
from sailtelemetry.core.simulator import ScenarioSimulator
from sailtelemetry.core.stats import TelemetryStats
from sailtelemetry.queue.asyncio_queue import AsyncioSnapshotQueue

log = structlog.get_logger()

# Module-level singletons (set during startup)
_processor: TelemetryProcessor | None = None
_runner: SimulatorRunner | None = None
_stats: TelemetryStats | None = None
_config: AppConfig | None = None
_log_file: IO[str] | None = None


def get_processor() -> TelemetryProcessor:
    assert _processor is not None, "Server not initialized"
    return _processor


def get_runner() -> SimulatorRunner:
    assert _runner is not None, "Server not initialized"
    return _runner


def get_stats() -> TelemetryStats:
    assert _stats is not None, "Server not initialized"
    return _stats


def get_config() -> AppConfig:
    assert _config is not None, "Server not initialized"
    return _config


def _setup_logging(config: AppConfig) -> None:
    """Configure structlog based on the logging config."""
    global _log_file

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.logging.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=not config.logging.file))

    _close_log_file()
    logger_factory = structlog.PrintLoggerFactory()
    if config.logging.file:
        log_path = Path(config.logging.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _log_file = log_path.open("a", encoding="utf-8")
        logger_factory = structlog.WriteLoggerFactory(file=_log_file)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level.upper()),
        ),
        logger_factory=logger_factory,
    )


def _close_log_file() -> None:
    """Point structlog back at stdout and close the log file, if one is open."""
    global _log_file

    if _log_file is None:
        return
    structlog.configure(logger_factory=structlog.PrintLoggerFactory())
    _log_file.close()
    _log_file = None


def build_components(config: AppConfig) -> tuple[TelemetryProcessor, SimulatorRunner, TelemetryStats]:
    """Create the codec, processor, simulator and runner from config."""
    polar = KEELBOAT_POLAR.with_max_speed(config.polar.max_target_speed_kn)
    codec = DeltaCodec(
        polar=polar,
        context=config.codec.context,
        source_label=config.codec.source_label,
        source_type=config.codec.source_type,
        drop_non_finite=config.codec.drop_non_finite,
        reject_negative_speeds=config.codec.reject_negative_speeds,
    )
    stats = TelemetryStats()
    processor = TelemetryProcessor(
        codec=codec,
        stats=stats,
        queue_factory=lambda: AsyncioSnapshotQueue(max_size=config.publish.max_queue_size),
    )
    rng = random.Random(config.simulator.seed) if config.simulator.seed is not None else None
    simulator = ScenarioSimulator(tick_interval_s=config.simulator.tick_interval_s, rng=rng)
    runner = SimulatorRunner(simulator, processor)
    return processor, runner, stats


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _processor, _runner, _stats, _config

    _config = load_config()
    _setup_logging(_config)

    log.info("server_starting",
             env=_config.server.env,
             simulator_enabled=_config.simulator.enabled,
             scenario=_config.simulator.scenario)

    _processor, _runner, _stats = build_components(_config)

    if _config.simulator.enabled:
        _runner.start(_config.simulator.scenario)

    log.info("server_started",
             host=_config.server.host,
             port=_config.server.port)

    yield

    # Shutdown
    await _runner.stop()
    log.info("server_stopped")
    _close_log_file()


app = FastAPI(
    title="Sailing Telemetry",
    description="Signal K telemetry normalization and scenario simulation",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(telemetry_router)
app.include_router(simulator_router)
app.include_router(monitoring_router)


if __name__ == "__main__":
    import uvicorn

    _boot_config = load_config()
    uvicorn.run(
        "sailtelemetry.main:app",
        host=_boot_config.server.host,
        port=_boot_config.server.port,
        log_level=_boot_config.logging.level,
    )
