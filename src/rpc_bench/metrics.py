"""
Streaming latency aggregation

Every completed call is folded into exactly three buckets: the overall
bucket, its endpoint-class bucket and its class+method bucket. Buckets keep
running count/error/min/max figures plus a sorted sample list so the
median is exact. Each bucket has its own lock; completions may arrive from
any number of concurrent tasks or threads, in any order.
"""

import threading
from bisect import insort
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .config import BackendClass
from .executor import CallResult

OVERALL_KEY = "overall"


def class_key(backend_class: BackendClass) -> str:
    return f"class:{backend_class.value}"


def method_key(backend_class: BackendClass, method_name: str) -> str:
    return f"{class_key(backend_class)}+method:{method_name}"


def dimension_keys(result: CallResult) -> Tuple[str, str, str]:
    """The three bucket keys a call result belongs to"""
    backend_class = result.backend.backend_class
    return (
        OVERALL_KEY,
        class_key(backend_class),
        method_key(backend_class, result.method.name),
    )


@dataclass(frozen=True)
class DistributionStats:
    """Point-in-time descriptive statistics for one bucket"""
    count: int
    error_count: int
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None
    median: Optional[float] = None

    @property
    def error_rate(self) -> Optional[float]:
        if self.count == 0:
            return None
        return self.error_count / self.count

    @property
    def empty(self) -> bool:
        return self.count == 0


EMPTY_STATS = DistributionStats(count=0, error_count=0)


def median_of_sorted(samples: List[float]) -> Optional[float]:
    n = len(samples)
    if n == 0:
        return None
    mid = n // 2
    if n % 2:
        return samples[mid]
    return (samples[mid - 1] + samples[mid]) / 2.0


class DistributionBucket:
    """Running latency distribution for a single dimension key"""

    def __init__(self):
        self._lock = threading.Lock()
        self.count = 0
        self.error_count = 0
        self.min: Optional[float] = None
        self.max: Optional[float] = None
        self.samples: List[float] = []

    def add(self, duration_ms: float, success: bool):
        with self._lock:
            self.count += 1
            if not success:
                self.error_count += 1
            if self.min is None or duration_ms < self.min:
                self.min = duration_ms
            if self.max is None or duration_ms > self.max:
                self.max = duration_ms
            insort(self.samples, duration_ms)

    def stats(self) -> DistributionStats:
        with self._lock:
            count = self.count
            error_count = self.error_count
            minimum, maximum = self.min, self.max
            samples = list(self.samples)

        if count == 0:
            return EMPTY_STATS

        # Summing the sorted copy keeps the average independent of arrival order
        return DistributionStats(
            count=count,
            error_count=error_count,
            min=minimum,
            max=maximum,
            avg=sum(samples) / count,
            median=median_of_sorted(samples),
        )


class MetricsAggregator:
    """Owns all per-dimension buckets and run bookkeeping for one run"""

    def __init__(self):
        self._buckets: Dict[str, DistributionBucket] = {}
        self._registry_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self.dropped_iterations = 0
        self.abandoned_calls = 0

    def _bucket(self, key: str) -> DistributionBucket:
        bucket = self._buckets.get(key)
        if bucket is None:
            with self._registry_lock:
                bucket = self._buckets.setdefault(key, DistributionBucket())
        return bucket

    def record(self, result: CallResult):
        """Fold one completed call into its three buckets"""
        for key in dimension_keys(result):
            self._bucket(key).add(result.duration_ms, result.success)

    def record_dropped(self, count: int = 1):
        with self._counter_lock:
            self.dropped_iterations += count

    def record_abandoned(self, count: int = 1):
        with self._counter_lock:
            self.abandoned_calls += count

    def snapshot(self) -> Dict[str, DistributionStats]:
        """
        Read the current statistics of every bucket.

        Buckets are copied one at a time under their own lock, so recording
        on other buckets is never held up by a snapshot in progress.
        """
        with self._registry_lock:
            buckets = list(self._buckets.items())
        return {key: bucket.stats() for key, bucket in sorted(buckets)}

    def counters(self) -> Dict[str, int]:
        with self._counter_lock:
            return {
                "dropped_iterations": self.dropped_iterations,
                "abandoned_calls": self.abandoned_calls,
            }
