"""
Run configuration for rpc-bench.

Holds the backends under comparison and the traffic-shaping knobs for a
single load run. Values come from keyword arguments in tests and from
RPC_BENCH_* environment variables when launched as a process.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


DEFAULT_CANDIDATE_URL = "https://sui.obsuidian.xyz"
DEFAULT_BASELINE_URLS = [
    "https://fullnode.mainnet.sui.io:443",
    "https://sui-mainnet.nodeinfra.com",
]

ENV_PREFIX = "RPC_BENCH_"


class ConfigurationError(ValueError):
    """Raised when a run cannot start because its configuration is invalid"""


class BackendClass(str, Enum):
    """Which side of the comparison a backend belongs to"""
    CANDIDATE = "candidate"
    BASELINE = "baseline"


@dataclass(frozen=True)
class Backend:
    backend_class: BackendClass
    url: str

    @property
    def is_candidate(self) -> bool:
        return self.backend_class is BackendClass.CANDIDATE


@dataclass
class BenchConfig:
    """Configuration for one comparative load run."""
    candidate_url: str = DEFAULT_CANDIDATE_URL
    baseline_urls: List[str] = field(default_factory=lambda: list(DEFAULT_BASELINE_URLS))

    # Traffic shaping
    rate: float = 10.0  # calls per second
    duration_s: float = 30.0
    max_in_flight: int = 50
    pacing_delay_s: float = 0.1
    admission_grace_s: float = 1.0
    drain_timeout_s: float = 30.0

    # Transport
    request_timeout_s: float = 60.0

    # Presentation
    candidate_label: str = "Candidate"
    report_format: str = "text"
    log_level: str = "INFO"
    log_format: str = "console"
    metrics_port: int = 0

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "BenchConfig":
        """
        Build a configuration from RPC_BENCH_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            BenchConfig with unset variables left at their defaults
        """
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default)

        try:
            baseline_raw = get("BASELINE_URLS", ",".join(DEFAULT_BASELINE_URLS))
            return cls(
                candidate_url=get("CANDIDATE_URL", DEFAULT_CANDIDATE_URL).strip(),
                baseline_urls=[u.strip() for u in baseline_raw.split(",") if u.strip()],
                rate=float(get("RATE", "10")),
                duration_s=float(get("DURATION_S", "30")),
                max_in_flight=int(get("MAX_IN_FLIGHT", "50")),
                pacing_delay_s=float(get("PACING_DELAY_S", "0.1")),
                admission_grace_s=float(get("ADMISSION_GRACE_S", "1.0")),
                drain_timeout_s=float(get("DRAIN_TIMEOUT_S", "30")),
                request_timeout_s=float(get("REQUEST_TIMEOUT_S", "60")),
                candidate_label=get("CANDIDATE_LABEL", "Candidate"),
                report_format=get("REPORT_FORMAT", "text").lower(),
                log_level=get("LOG_LEVEL", "INFO").upper(),
                log_format=get("LOG_FORMAT", "console").lower(),
                metrics_port=int(get("METRICS_PORT", "0")),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

    def validate(self) -> "BenchConfig":
        """Check the configuration, raising ConfigurationError on the first problem."""
        if not self.candidate_url:
            raise ConfigurationError("A candidate URL is required")
        if not self.baseline_urls:
            raise ConfigurationError("At least one baseline URL is required")
        if self.rate <= 0:
            raise ConfigurationError(f"rate must be > 0, got {self.rate}")
        if self.duration_s <= 0:
            raise ConfigurationError(f"duration_s must be > 0, got {self.duration_s}")
        if self.max_in_flight < 1:
            raise ConfigurationError(f"max_in_flight must be >= 1, got {self.max_in_flight}")
        for name in ("pacing_delay_s", "admission_grace_s", "drain_timeout_s"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.request_timeout_s <= 0:
            raise ConfigurationError(f"request_timeout_s must be > 0, got {self.request_timeout_s}")
        if self.report_format not in ("text", "json"):
            raise ConfigurationError(f"Unknown report format: {self.report_format}")
        if self.log_format not in ("console", "json"):
            raise ConfigurationError(f"Unknown log format: {self.log_format}")
        return self

    @property
    def candidate(self) -> Backend:
        return Backend(BackendClass.CANDIDATE, self.candidate_url)

    @property
    def baselines(self) -> List[Backend]:
        return [Backend(BackendClass.BASELINE, url) for url in self.baseline_urls]
