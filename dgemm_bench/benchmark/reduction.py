"""Overflow-safe mean of floating-point sequences.

Naive ``sum(values) / len(values)`` overflows for large magnitudes and its
absolute error grows with the number of terms. ``average`` instead folds the
sequence pairwise, halving each value before adding it to its neighbour, so
every intermediate stays within the magnitude of the inputs.

Each level of the fold is a single vectorised numpy operation over disjoint
pairs; the levels themselves are walked iteratively so very long inputs never
hit the recursion limit.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

import numpy as np


def average(values: Iterable[float]) -> Optional[float]:
    """Calculate the mean of ``values`` without overflow.

    Args:
        values: Finite floating-point values (any iterable or numpy array).

    Returns:
        The mean, or None if ``values`` is empty.
    """
    level = np.asarray(values if isinstance(values, np.ndarray) else list(values), dtype=np.float64).ravel()
    if level.size == 0:
        return None

    # (trailing element, number of paired elements at that level)
    leftovers: List[Tuple[float, int]] = []
    while level.size > 1:
        paired = (level.size // 2) * 2
        if level.size % 2 == 1:
            leftovers.append((float(level[-1]), paired))
        level = level[0:paired:2] / 2.0 + level[1:paired:2] / 2.0

    result = float(level[0])
    # Innermost level first: each leftover weighs as one of paired + 1 values.
    for last, paired in reversed(leftovers):
        result = result * (paired / (paired + 1)) + last / (paired + 1)
    return result
