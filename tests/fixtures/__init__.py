"""
Test fixtures for rpc-bench.

Provides fake implementations of external dependencies for isolated testing:
- FakeTransport: scripted in-memory HTTP transport
- HangingTransport: transport whose calls never finish
- FakeClock: virtual monotonic clock for scheduler runs
- sequential_addresses: deterministic replacement for random addresses
- make_result / ConfigFactory: builders for results and run configurations
"""

from .fake_transport import FakeTransport, HangingTransport, rpc_ok, rpc_error
from .fake_clock import FakeClock
from .builders import (
    CANDIDATE_URL,
    BASELINE_URLS,
    ConfigFactory,
    make_result,
    sequential_addresses,
    three_method_catalog,
)

__all__ = [
    # Transport fakes
    "FakeTransport",
    "HangingTransport",
    "rpc_ok",
    "rpc_error",

    # Clock
    "FakeClock",

    # Builders
    "CANDIDATE_URL",
    "BASELINE_URLS",
    "ConfigFactory",
    "make_result",
    "sequential_addresses",
    "three_method_catalog",
]
