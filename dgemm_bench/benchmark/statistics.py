"""Reduce raw timing samples into summary statistics."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence, Tuple

import numpy as np

from dgemm_bench.benchmark.models import Sample, Statistics
from dgemm_bench.benchmark.reduction import average


def _order_statistics(samples: np.ndarray) -> Tuple[int, int, int]:
    ordered = np.sort(samples, kind="stable")
    return int(ordered[len(ordered) // 2]), int(ordered[0]), int(ordered[-1])


def _mean_ms(samples_ms: np.ndarray) -> float:
    mean = average(samples_ms)
    assert mean is not None
    return mean


def from_samples(samples: Sequence[Sample]) -> Statistics:
    """Compute median/min/max, mean and population deviation of ``samples``.

    Sorting and the mean pass are independent and run concurrently; both
    finish before the deviation pass (which needs the mean) starts.

    Args:
        samples: Non-empty sequence of nanosecond durations.

    Returns:
        Statistics with ``average_ms``/``deviation_ms`` in milliseconds.

    Raises:
        ValueError: If ``samples`` is empty.
    """
    if len(samples) == 0:
        raise ValueError("cannot compute statistics of an empty sample set")

    raw = np.asarray(samples, dtype=np.uint64)
    samples_ms = raw.astype(np.float64) / 1000.0 / 1000.0

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="stats") as pool:
        order_future = pool.submit(_order_statistics, raw)
        mean_future = pool.submit(_mean_ms, samples_ms)
        median, minimum, maximum = order_future.result()
        average_ms = mean_future.result()

    variance = average((samples_ms - average_ms) ** 2)
    assert variance is not None

    return Statistics(
        median=median,
        maximum=maximum,
        minimum=minimum,
        average_ms=average_ms,
        deviation_ms=math.sqrt(variance),
    )
