"""
Report rendering

Turns a Report into console text or JSON. Rendering never changes values;
numbers are only rounded for display.
"""

import json
from typing import Any, Dict, List, Optional

from .metrics import DistributionStats
from .report import SAME, Comparison, Report

NOT_AVAILABLE = "N/A"
RULE = "=" * 33


def _fmt(value: Optional[float]) -> str:
    return NOT_AVAILABLE if value is None else f"{value:.2f}"


def _fmt_pct(value: Optional[float]) -> str:
    return NOT_AVAILABLE if value is None else f"{value:.2f}%"


def _fmt_ms(value: Optional[float]) -> str:
    return NOT_AVAILABLE if value is None else f"{value:.2f}ms"


def _verdict_text(comparison: Comparison, subject: str) -> str:
    verdict = comparison.verdict
    if verdict is None:
        return ""
    if verdict == SAME:
        return " (no difference)"
    return f" ({subject} is {verdict})"


def _stats_lines(label: str, stats: DistributionStats) -> List[str]:
    if stats.empty:
        return [f"{label}:", "  No samples"]
    return [
        f"{label}:",
        f"  Calls: {stats.count} (errors: {stats.error_count}, {stats.error_rate * 100:.2f}%)",
        f"  Avg: {_fmt_ms(stats.avg)}",
        f"  Min: {_fmt_ms(stats.min)}",
        f"  Max: {_fmt_ms(stats.max)}",
        f"  Med: {_fmt_ms(stats.median)}",
    ]


def render_text(report: Report, candidate_label: str = "Candidate",
                title: str = "RPC PERFORMANCE TEST RESULTS") -> str:
    """Console summary of a run"""
    overall = report.overall
    error_rate = overall.error_rate or 0.0

    lines = [
        "",
        title,
        RULE,
        "",
        "OVERALL STATISTICS:",
        f"Total RPC Calls: {overall.count}",
        f"Error Rate: {error_rate * 100:.2f}%",
    ]
    if report.dropped_iterations or report.abandoned_calls:
        lines.append(f"Dropped Iterations: {report.dropped_iterations}")
        lines.append(f"Abandoned Calls: {report.abandoned_calls}")

    lines += ["", "LATENCY STATISTICS (ms):"]
    if overall.empty:
        lines.append("No samples")
    else:
        lines += [
            f"Min: {_fmt(overall.min)}",
            f"Max: {_fmt(overall.max)}",
            f"Avg: {_fmt(overall.avg)}",
            f"Med: {_fmt(overall.median)}",
        ]

    lines += ["", f"{candidate_label.upper()} VS BASELINE RPCS COMPARISON:", ""]
    lines += _stats_lines(f"{candidate_label} RPC", report.candidate)
    lines += _stats_lines("Baseline RPCs", report.baseline)
    lines.append(
        f"Overhead: {_fmt_pct(report.classes.overhead_pct)}"
        f"{_verdict_text(report.classes, candidate_label)}"
    )

    lines += ["", "Method-by-Method Comparison:"]
    for entry in report.methods:
        comparison = entry.comparison
        lines += [
            "",
            f"{entry.method}:",
            f"  {candidate_label}: {_fmt_ms(comparison.candidate.avg)} avg "
            f"({comparison.candidate.count} calls)",
            f"  Baseline: {_fmt_ms(comparison.baseline.avg)} avg "
            f"({comparison.baseline.count} calls)",
            f"  Overhead: {_fmt_pct(comparison.overhead_pct)}"
            f"{_verdict_text(comparison, candidate_label)}",
        ]

    lines += ["", RULE]
    return "\n".join(lines)


def _stats_dict(stats: DistributionStats) -> Dict[str, Any]:
    return {
        "count": stats.count,
        "error_count": stats.error_count,
        "error_rate": stats.error_rate,
        "min_ms": stats.min,
        "max_ms": stats.max,
        "avg_ms": stats.avg,
        "median_ms": stats.median,
    }


def _comparison_dict(comparison: Comparison) -> Dict[str, Any]:
    return {
        "candidate": _stats_dict(comparison.candidate),
        "baseline": _stats_dict(comparison.baseline),
        "overhead_pct": comparison.overhead_pct,
        "verdict": comparison.verdict,
    }


def report_to_dict(report: Report) -> Dict[str, Any]:
    return {
        "overall": _stats_dict(report.overall),
        "comparison": _comparison_dict(report.classes),
        "methods": {
            entry.method: _comparison_dict(entry.comparison) for entry in report.methods
        },
        "dropped_iterations": report.dropped_iterations,
        "abandoned_calls": report.abandoned_calls,
    }


def render_json(report: Report) -> str:
    return json.dumps(report_to_dict(report), indent=2)
