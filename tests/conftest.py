"""
pytest configuration and shared fixtures for rpc-bench tests.

Provides common test fixtures and configuration that can be used
across all test modules.
"""

import random

import pytest

from rpc_bench.config import Backend, BackendClass
from rpc_bench.metrics import MetricsAggregator
from tests.fixtures import (
    BASELINE_URLS,
    CANDIDATE_URL,
    ConfigFactory,
    FakeTransport,
    three_method_catalog,
)


@pytest.fixture
def candidate() -> Backend:
    return Backend(BackendClass.CANDIDATE, CANDIDATE_URL)


@pytest.fixture
def baselines():
    return [Backend(BackendClass.BASELINE, url) for url in BASELINE_URLS]


@pytest.fixture
def catalog():
    """Three-method Sui catalog with deterministic addresses."""
    return three_method_catalog()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible baseline selection."""
    return random.Random(1234)


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Transport answering every call with HTTP 200 after 50ms."""
    return FakeTransport()


@pytest.fixture
def aggregator() -> MetricsAggregator:
    return MetricsAggregator()


@pytest.fixture
def scenario_config():
    """Reference scenario: 10 calls/s for 2s, 50 slots, 1 candidate + 2 baselines."""
    return ConfigFactory.scenario()


@pytest.fixture
def fast_config():
    return ConfigFactory.fast()


# pytest configuration

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow running (real-time scheduler runs)"
    )
