"""Periodic driver for the scenario simulator.

Ticks the simulator on a fixed period and hands each snapshot to the
processor. The simulator and processor are passed in at construction; the
runner holds no telemetry state of its own.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sailtelemetry.core.processor import TelemetryProcessor
    from sailtelemetry.core.simulator import Scenario, ScenarioSimulator

log = structlog.get_logger()


class SimulatorRunner:
    """Owns the asyncio task that ticks the simulator."""

    def __init__(self, simulator: ScenarioSimulator, processor: TelemetryProcessor) -> None:
        self._simulator = simulator
        self._processor = processor
        self._task: asyncio.Task | None = None

    @property
    def simulator(self) -> ScenarioSimulator:
        return self._simulator

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, scenario: Scenario | str) -> None:
        """(Re)start the simulator on ``scenario``. Needs a running event loop."""
        self._simulator.start(scenario)
        if not self.is_running:
            self._task = asyncio.get_running_loop().create_task(self.run())

    def set_scenario(self, scenario: Scenario | str) -> None:
        self._simulator.set_scenario(scenario)

    async def stop(self) -> None:
        self._simulator.stop()
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def run(self) -> None:
        """Tick until the simulator is stopped. Runs as a background task."""
        log.info("simulator_runner_started", scenario=self._simulator.scenario.value)
        while self._simulator.is_running:
            snapshot = self._simulator.tick()
            self._processor.process_tick(snapshot)
            await asyncio.sleep(self._simulator.tick_interval_s)
        log.info("simulator_runner_finished", elapsed_s=self._simulator.elapsed_s)

    def status(self) -> dict:
        sim = self._simulator
        return {
            "running": self.is_running and sim.is_running,
            "scenario": sim.scenario.value,
            "label": sim.scenario.label,
            "description": sim.scenario.description,
            "elapsed_s": sim.elapsed_s,
            "tick_interval_s": sim.tick_interval_s,
        }
