"""
rpc-bench: comparative load testing for JSON-RPC endpoints

Components:
- TargetSelector: picks backend and method per iteration
- RequestExecutor: sends one call and classifies it
- MetricsAggregator: streaming per-dimension latency statistics
- RateScheduler: fixed arrival rate with bounded concurrency
- generate: reduces a metrics snapshot into a comparison Report
"""

from .catalog import MethodSpec, build_envelope, generate_random_address, sui_catalog
from .config import Backend, BackendClass, BenchConfig, ConfigurationError
from .executor import CallResult, RequestExecutor
from .metrics import DistributionStats, MetricsAggregator
from .report import Report, generate
from .scheduler import RateScheduler, RunSummary, SchedulerState
from .selector import TargetSelector
from .transport import AiohttpTransport, TransportResponse

__all__ = [
    "MethodSpec",
    "build_envelope",
    "generate_random_address",
    "sui_catalog",
    "Backend",
    "BackendClass",
    "BenchConfig",
    "ConfigurationError",
    "CallResult",
    "RequestExecutor",
    "DistributionStats",
    "MetricsAggregator",
    "Report",
    "generate",
    "RateScheduler",
    "RunSummary",
    "SchedulerState",
    "TargetSelector",
    "AiohttpTransport",
    "TransportResponse",
]
