"""
Shared pytest fixtures for aggregator tests.

Provides fixtures for:
- Settings with test-sized intervals
- EnergyGrid API simulator (httpx.MockTransport)
- EnergyGrid client wired to the simulator
- Mock transports for unit tests
"""
import os
from typing import Any, Callable

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from grid_aggregator.config import (
    AggregatorSettings,
    ApiSettings,
    DeviceSettings,
    OutputSettings,
    RateLimitSettings,
    RetrySettings,
)
from grid_aggregator.models import DeviceRecord
from grid_aggregator.transport.api_client import EnergyGridClient
from tests.simulators import EnergyGridSimulator

# Test environment configuration
os.environ.setdefault("ENERGYGRID_LOG_LEVEL", "DEBUG")


# ============================================================================
# Settings Fixtures
# ============================================================================

@pytest.fixture
def make_settings(tmp_path) -> Callable[..., AggregatorSettings]:
    """
    Build settings with fast intervals.

    Usage:
        settings = make_settings(total=23, batch_size=10)
    """
    def _make(
        total: int = 23,
        batch_size: int = 10,
        request_interval: float = 0.01,
        max_retries: int = 3,
        retry_delay: float = 0.01,
        prefix: str = "SN-",
        **api: Any,
    ) -> AggregatorSettings:
        return AggregatorSettings(
            api=ApiSettings(base_url="http://energygrid.test", **api),
            devices=DeviceSettings(total=total, serial_prefix=prefix),
            rate_limit=RateLimitSettings(
                batch_size=batch_size, request_interval=request_interval
            ),
            retry=RetrySettings(max_retries=max_retries, retry_delay=retry_delay),
            output=OutputSettings(file=tmp_path / "results" / "aggregated_data.json"),
        )

    return _make


@pytest.fixture
def settings(make_settings) -> AggregatorSettings:
    """Default test settings: 23 devices, batches of 10."""
    return make_settings()


# ============================================================================
# Simulator Fixtures
# ============================================================================

@pytest.fixture
def simulator() -> EnergyGridSimulator:
    """EnergyGrid API simulator with the default endpoint and token."""
    return EnergyGridSimulator()


@pytest_asyncio.fixture
async def client(settings, simulator):
    """EnergyGrid client connected to the simulator."""
    api_client = EnergyGridClient(settings, transport=simulator.transport)
    await api_client.connect()
    yield api_client
    await api_client.disconnect()


# ============================================================================
# Mock Transport Fixtures
# ============================================================================

def _records_for(serial_numbers):
    return [DeviceRecord(sn=sn, status="Online", power="1.00 kW") for sn in serial_numbers]


@pytest.fixture
def mock_client() -> AsyncMock:
    """Mock transport returning one record per requested serial."""
    transport = AsyncMock()
    transport.fetch_device_data = AsyncMock(side_effect=lambda sns: _records_for(sns))
    return transport
