"""Benchmark data model, statistics, verification and report handling."""

from dgemm_bench.benchmark.exceptions import BenchmarkError
from dgemm_bench.benchmark.merge import merge_reports
from dgemm_bench.benchmark.models import Layout, Report, Statistics, Transpose
from dgemm_bench.benchmark.reduction import average
from dgemm_bench.benchmark.statistics import from_samples

__all__ = [
    "BenchmarkError",
    "Layout",
    "Report",
    "Statistics",
    "Transpose",
    "average",
    "from_samples",
    "merge_reports",
]
