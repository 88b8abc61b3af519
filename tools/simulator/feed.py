#!/usr/bin/env python3
"""Sailing telemetry delta feed.

Runs the scenario simulator locally, encodes every tick as a Signal K delta
and posts it to a running server, the same way a live feed would arrive.

Usage:
    # Two minutes of gusty conditions at the default 2 Hz
    python -m tools.simulator.feed --server http://localhost:8000 --scenario gust --duration 120

    # Fast replay: 10 Hz, reproducible phases
    python -m tools.simulator.feed --scenario race_start --interval 0.1 --seed 7
"""

from __future__ import annotations

import argparse
import asyncio
import random
import time
from dataclasses import dataclass

import httpx

from sailtelemetry.core.codec import DeltaCodec
from sailtelemetry.core.simulator import Scenario, ScenarioSimulator


@dataclass
class FeedCounters:
    sent: int = 0
    errors: int = 0


async def run_feed(
    client: httpx.AsyncClient,
    simulator: ScenarioSimulator,
    codec: DeltaCodec,
    server_url: str,
    duration_seconds: float,
    counters: FeedCounters,
) -> None:
    """Tick the simulator and post each encoded snapshot."""
    end_time = time.monotonic() + duration_seconds

    while time.monotonic() < end_time:
        payload = codec.encode_bytes(simulator.tick())
        try:
            resp = await client.post(
                f"{server_url}/api/v1/deltas",
                content=payload,
                headers={"content-type": "application/json"},
            )
            if resp.status_code == 200:
                counters.sent += 1
            else:
                counters.errors += 1
        except httpx.RequestError:
            counters.errors += 1

        await asyncio.sleep(simulator.tick_interval_s)


async def run_simulation(args: argparse.Namespace) -> None:
    """Run the full feed."""
    rng = random.Random(args.seed) if args.seed is not None else None
    simulator = ScenarioSimulator(tick_interval_s=args.interval, rng=rng)
    simulator.start(args.scenario)
    codec = DeltaCodec(source_label=args.source_label, source_type="simulator")
    counters = FeedCounters()

    print(f"Starting feed: scenario={simulator.scenario.value} ({simulator.scenario.description})")
    print(f"  Interval: {args.interval}s")
    print(f"  Duration: {args.duration}s")
    print(f"  Server: {args.server}")
    print()

    start = time.monotonic()

    async with httpx.AsyncClient(timeout=10.0) as client:
        await run_feed(client, simulator, codec, args.server, args.duration, counters)

        elapsed = time.monotonic() - start
        print(f"\nFeed complete in {elapsed:.1f}s")
        print(f"  Deltas sent: {counters.sent}")
        print(f"  Errors: {counters.errors}")

        # Check server stats
        try:
            resp = await client.get(f"{args.server}/api/v1/stats")
            if resp.status_code == 200:
                stats = resp.json()
                print(f"\nServer stats:")
                print(f"  Messages applied: {stats['messages']['applied']}")
                print(f"  Malformed: {stats['messages']['malformed']}")
                print(f"  Reconciliations: {stats['reconciliations']}")
                print(f"  Snapshots published: {stats['snapshots_published']}")
        except httpx.RequestError as exc:
            print(f"\nCould not fetch server stats: {exc}")


def main():
    parser = argparse.ArgumentParser(description="Sailing telemetry delta feed")
    parser.add_argument("--server", default="http://localhost:8000", help="Server URL")
    parser.add_argument("--scenario", default="upwind",
                        choices=[s.value for s in Scenario], help="Simulated scenario")
    parser.add_argument("--duration", type=float, default=60, help="Feed duration in seconds")
    parser.add_argument("--interval", type=float, default=0.5, help="Seconds between deltas")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for phase offsets")
    parser.add_argument("--source-label", default="sailtelemetry-feed",
                        help="Source label written into each delta")

    args = parser.parse_args()
    asyncio.run(run_simulation(args))


if __name__ == "__main__":
    main()
