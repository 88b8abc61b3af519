"""Shared test fixtures."""

from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient

import sailtelemetry.main as main_module
from sailtelemetry.config import AppConfig
from sailtelemetry.core.codec import DeltaCodec
from sailtelemetry.core.simulator import ScenarioSimulator

FIXED_TIME = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _init_server():
    """Initialize server singletons for every test."""
    config = AppConfig()
    config.logging.level = "warning"
    config.simulator.seed = 1234

    processor, runner, stats = main_module.build_components(config)

    # Patch module-level singletons
    main_module._config = config
    main_module._stats = stats
    main_module._processor = processor
    main_module._runner = runner

    yield

    # Cleanup
    main_module._config = None
    main_module._stats = None
    main_module._processor = None
    main_module._runner = None


@pytest.fixture
async def client():
    from sailtelemetry.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def codec():
    return DeltaCodec(clock=lambda: FIXED_TIME)


@pytest.fixture
def simulator():
    return ScenarioSimulator(rng=random.Random(42), clock=lambda: FIXED_TIME)


@pytest.fixture
def fixed_time():
    return FIXED_TIME
