"""Tests for report rendering."""

import sys
from pathlib import Path

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from dgemm_bench.benchmark.formatting import full, summary
from dgemm_bench.benchmark.models import Layout, Report, Statistics, Transpose


def _report(median=2_000_000):
    return Report(
        name="naive.c",
        dimensions=(100, 100, 100),
        repeat_count=5,
        alpha=1.0,
        beta=0.0,
        layout=Layout.COL,
        transpose_pair=(Transpose.NONE, Transpose.CONJ),
        statistics=Statistics(
            median=median,
            maximum=4_000_000,
            minimum=1_000_000,
            average_ms=2.0,
            deviation_ms=0.5,
        ),
    )


class TestSummary:
    """summary() lines."""

    def test_lines_with_median(self):
        lines = summary(_report()).split("\n")
        assert [line.split("\t")[0] for line in lines] == ["Median", "Average", "Worst", "Best", "Deviation"]
        assert "2.000000ms" in lines[0]
        assert "4.000000ms" in lines[2]
        assert "1.000000ms" in lines[3]

    def test_gflops_columns(self):
        lines = summary(_report()).split("\n")
        # 2 * 100^3 flops in 1 ms is 2 GFLOP/s.
        assert lines[3].endswith(" 2.0")
        assert "(1.0)" in lines[1]

    def test_median_omitted_after_merge(self):
        text = summary(_report(median=None))
        assert "Median" not in text
        assert text.startswith("Average")


class TestFull:
    """full() header block."""

    def test_header(self):
        text = full(_report())
        assert text.startswith("=== naive.c ===")
        assert "M: 100, N: 100, K: 100" in text
        assert "alpha: 1.0000, beta: 0.0000" in text
        assert "Layout: Column-major" in text
        assert "TransA: False" in text
        assert "TransB: CONJ" in text
        assert "Repeats: 5" in text
        assert text.endswith(summary(_report()))
