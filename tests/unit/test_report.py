"""
Tests for report generation from metrics snapshots.
"""

import math

import pytest

from rpc_bench.config import BackendClass
from rpc_bench.metrics import DistributionStats, MetricsAggregator
from rpc_bench.report import FASTER, SAME, SLOWER, compare, generate, overhead_pct
from tests.fixtures import make_result

CANDIDATE = BackendClass.CANDIDATE
BASELINE = BackendClass.BASELINE
METHODS = ["a", "b", "c"]


def _stats(avg, count=1):
    return DistributionStats(count=count, error_count=0, min=avg, max=avg, avg=avg, median=avg)


def _aggregate(results):
    aggregator = MetricsAggregator()
    for result in results:
        aggregator.record(result)
    return aggregator


class TestOverhead:
    """Test overhead percentage and its sign convention"""

    def test_candidate_slower_is_positive(self):
        comparison = compare(_stats(150.0), _stats(100.0))

        assert comparison.overhead_pct == pytest.approx(50.0)
        assert comparison.verdict == SLOWER

    def test_candidate_faster_is_negative(self):
        comparison = compare(_stats(75.0), _stats(100.0))

        assert comparison.overhead_pct == pytest.approx(-25.0)
        assert comparison.verdict == FASTER

    def test_equal_latency(self):
        comparison = compare(_stats(50.0), _stats(50.0))

        assert comparison.overhead_pct == 0.0
        assert comparison.verdict == SAME

    @pytest.mark.parametrize("candidate, baseline", [
        (DistributionStats(0, 0), _stats(10.0)),
        (_stats(10.0), DistributionStats(0, 0)),
        (DistributionStats(0, 0), DistributionStats(0, 0)),
        (_stats(10.0), _stats(0.0)),
    ])
    def test_not_available(self, candidate, baseline):
        assert overhead_pct(candidate, baseline) is None
        assert compare(candidate, baseline).verdict is None


class TestGenerate:
    """Test generate() over aggregator snapshots"""

    def test_full_report(self):
        aggregator = _aggregate([
            make_result(CANDIDATE, "a", 120.0),
            make_result(CANDIDATE, "b", 60.0, success=False, status=500),
            make_result(BASELINE, "a", 100.0),
            make_result(BASELINE, "b", 40.0),
        ])

        report = generate(aggregator.snapshot(), METHODS)

        assert report.overall.count == 4
        assert report.overall.error_rate == 0.25
        assert report.candidate.avg == 90.0
        assert report.baseline.avg == 70.0
        assert report.classes.overhead_pct == pytest.approx((90.0 - 70.0) / 70.0 * 100)
        assert report.method("a").comparison.overhead_pct == pytest.approx(20.0)
        assert report.method("b").comparison.overhead_pct == pytest.approx(50.0)

    def test_every_catalog_method_reported(self):
        aggregator = _aggregate([make_result(CANDIDATE, "a", 10.0), make_result(BASELINE, "a", 10.0)])

        report = generate(aggregator.snapshot(), METHODS)

        assert [m.method for m in report.methods] == METHODS
        assert report.method("c").comparison.candidate.empty
        assert report.method("c").comparison.overhead_pct is None

    def test_empty_snapshot_does_not_crash(self):
        report = generate({}, METHODS)

        assert report.overall.count == 0
        assert report.candidate.empty
        assert report.baseline.empty
        assert report.classes.overhead_pct is None
        assert all(m.comparison.overhead_pct is None for m in report.methods)

    def test_no_candidate_samples(self):
        aggregator = _aggregate([make_result(BASELINE, "a", 30.0), make_result(BASELINE, "b", 50.0)])

        report = generate(aggregator.snapshot(), METHODS)

        assert report.candidate.empty
        assert report.baseline.avg == 40.0
        assert report.classes.overhead_pct is None
        for entry in report.methods:
            value = entry.comparison.overhead_pct
            assert value is None or not math.isnan(value)

    def test_counters_carried_through(self):
        report = generate({}, METHODS, {"dropped_iterations": 4, "abandoned_calls": 2})

        assert report.dropped_iterations == 4
        assert report.abandoned_calls == 2

    def test_report_reproducible_from_snapshot(self):
        aggregator = _aggregate([make_result(CANDIDATE, "a", float(i)) for i in range(1, 11)])
        snapshot = aggregator.snapshot()

        assert generate(snapshot, METHODS) == generate(snapshot, METHODS)

    def test_unknown_method_lookup(self):
        with pytest.raises(KeyError):
            generate({}, METHODS).method("missing")
