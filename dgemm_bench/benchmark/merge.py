"""Combine independently collected reports into one aggregate report.

Raw samples are gone once a report is persisted, so every merged field is
derived from the per-report statistics:

- order statistics reduce by min/max; a median survives only a single-report
  merge because there is no middle sample across runs
- the mean is the repeat-weighted mean of the per-report means
- the deviation is the pooled population deviation, derived from each
  report's (repeat_count, average, deviation) triple
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from dgemm_bench.benchmark.exceptions import MergeIncompatibleError
from dgemm_bench.benchmark.models import Report, Statistics

logger = logging.getLogger(__name__)

_PARAMETER_FIELDS = ("dimensions", "alpha", "beta", "layout", "transpose_pair")


def check_mergeable(first: Report, other: Report) -> None:
    """Raise MergeIncompatibleError if ``other`` was run with different parameters."""
    for field in _PARAMETER_FIELDS:
        expected = getattr(first, field)
        actual = getattr(other, field)
        if expected != actual:
            raise MergeIncompatibleError(
                f"cannot merge reports that have different parameters: "
                f"'{other.name}' has {field}={actual!r}, expected {expected!r}",
                report_name=other.name,
                field=field,
                expected=expected,
                actual=actual,
            )


def merge_reports(reports: Sequence[Report]) -> Report:
    """Merge reports that share identical benchmark parameters.

    Args:
        reports: Non-empty sequence of reports.

    Returns:
        A new Report; the name and parameters are taken from the first report.

    Raises:
        ValueError: If ``reports`` is empty.
        MergeIncompatibleError: If any report's parameters differ from the first.
    """
    if not reports:
        raise ValueError("merge requires at least one report")

    first = reports[0]
    for report in reports[1:]:
        check_mergeable(first, report)

    total = 0
    mean = 0.0
    # Sum of squared deviations from the running mean, in ms^2.
    m2 = 0.0
    for report in reports:
        count = report.repeat_count
        report_mean = report.statistics.average_ms
        total += count
        delta = report_mean - mean
        mean = mean + delta * (count / total)
        m2 += report.statistics.deviation_ms ** 2 * count
        m2 += delta * delta * count * ((total - count) / total)

    statistics = Statistics(
        median=first.statistics.median if len(reports) == 1 else None,
        maximum=max(r.statistics.maximum for r in reports),
        minimum=min(r.statistics.minimum for r in reports),
        average_ms=max(mean, 0.0),
        deviation_ms=math.sqrt(max(m2 / total, 0.0)),
    )
    logger.debug("Merged %d report(s) covering %d repeats", len(reports), total)

    return Report(
        name=first.name,
        dimensions=first.dimensions,
        repeat_count=total,
        alpha=first.alpha,
        beta=first.beta,
        layout=first.layout,
        transpose_pair=first.transpose_pair,
        statistics=statistics,
    )
