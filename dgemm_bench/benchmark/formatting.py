"""Plain-text rendering of reports.

Throughput columns are ``2*m*n*k / elapsed_ns``, i.e. GFLOP/s.
"""

from __future__ import annotations

from typing import List

from dgemm_bench.benchmark.models import Report


def _gflops(ops: float, nanos: float) -> float:
    if nanos <= 0:
        return float("inf")
    return ops / nanos


def summary(report: Report) -> str:
    stats = report.statistics
    ops = report.ops
    lines: List[str] = []
    if stats.median is not None:
        lines.append(f"Median\t {stats.median_ms:.6f}ms \t {_gflops(ops, stats.median)}")
    lines.append(f"Average\t {stats.average_ms:.6f}ms \t({_gflops(ops, stats.average_ms * 1000.0 * 1000.0)})")
    lines.append(f"Worst\t {stats.maximum_ms:.6f}ms \t {_gflops(ops, stats.maximum)}")
    lines.append(f"Best\t {stats.minimum_ms:.6f}ms \t {_gflops(ops, stats.minimum)}")
    lines.append(f"Deviation\t {stats.deviation_ms}")
    return "\n".join(lines)


def full(report: Report) -> str:
    m, n, k = report.dimensions
    trans_a, trans_b = report.transpose_pair
    lines = [
        f"=== {report.name} ===",
        f"M: {m}, N: {n}, K: {k}",
        f"alpha: {report.alpha:.4f}, beta: {report.beta:.4f}",
        f"Layout: {report.layout.display_name}",
        f"TransA: {trans_a.to_wire()}",
        f"TransB: {trans_b.to_wire()}",
        f"Repeats: {report.repeat_count}",
        summary(report),
    ]
    return "\n".join(lines)
