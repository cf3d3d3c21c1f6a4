"""
Comparison report

Reduces an aggregator snapshot into plain data: overall figures, candidate
vs baseline figures and per-method overhead. Overhead is
(candidate_avg - baseline_avg) / baseline_avg * 100, so a positive value
means the candidate is slower. It is None whenever either side has no
samples.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .config import BackendClass
from .metrics import EMPTY_STATS, OVERALL_KEY, DistributionStats, class_key, method_key

SLOWER = "slower"
FASTER = "faster"
SAME = "same"


@dataclass(frozen=True)
class Comparison:
    candidate: DistributionStats
    baseline: DistributionStats
    overhead_pct: Optional[float]

    @property
    def verdict(self) -> Optional[str]:
        """Direction of the candidate relative to the baseline"""
        if self.overhead_pct is None:
            return None
        if self.overhead_pct > 0:
            return SLOWER
        if self.overhead_pct < 0:
            return FASTER
        return SAME


@dataclass(frozen=True)
class MethodComparison:
    method: str
    comparison: Comparison


@dataclass(frozen=True)
class Report:
    overall: DistributionStats
    classes: Comparison
    methods: List[MethodComparison] = field(default_factory=list)
    dropped_iterations: int = 0
    abandoned_calls: int = 0

    @property
    def candidate(self) -> DistributionStats:
        return self.classes.candidate

    @property
    def baseline(self) -> DistributionStats:
        return self.classes.baseline

    def method(self, name: str) -> MethodComparison:
        for entry in self.methods:
            if entry.method == name:
                return entry
        raise KeyError(name)


def overhead_pct(candidate: DistributionStats, baseline: DistributionStats) -> Optional[float]:
    if candidate.avg is None or baseline.avg is None or baseline.avg == 0:
        return None
    return (candidate.avg - baseline.avg) / baseline.avg * 100.0


def compare(candidate: DistributionStats, baseline: DistributionStats) -> Comparison:
    return Comparison(candidate=candidate, baseline=baseline,
                      overhead_pct=overhead_pct(candidate, baseline))


def generate(snapshot: Mapping[str, DistributionStats], method_names: Sequence[str],
             counters: Optional[Dict[str, int]] = None) -> Report:
    """
    Build the comparison report from a metrics snapshot.

    Args:
        snapshot: Dimension key -> stats, as returned by MetricsAggregator.snapshot()
        method_names: Catalog method names, in catalog order
        counters: Run bookkeeping from MetricsAggregator.counters()

    Returns:
        Report covering every catalog method, sampled or not
    """
    counters = counters or {}

    def stats(key: str) -> DistributionStats:
        return snapshot.get(key, EMPTY_STATS)

    classes = compare(
        stats(class_key(BackendClass.CANDIDATE)),
        stats(class_key(BackendClass.BASELINE)),
    )

    methods = [
        MethodComparison(
            method=name,
            comparison=compare(
                stats(method_key(BackendClass.CANDIDATE, name)),
                stats(method_key(BackendClass.BASELINE, name)),
            ),
        )
        for name in method_names
    ]

    return Report(
        overall=stats(OVERALL_KEY),
        classes=classes,
        methods=methods,
        dropped_iterations=counters.get("dropped_iterations", 0),
        abandoned_calls=counters.get("abandoned_calls", 0),
    )
