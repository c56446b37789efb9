"""Deterministic pseudo-random input matrices.

The buffer is split into chunks of ``chunk_size`` cells. Chunk ``t`` runs its
own 64-bit linear congruential generator::

    x0      = (t * 1034871 + 10581) * seed
    x       = x * 192499 + 6837199      (mod 2**64)

skipping ``50 + t`` steps before emitting one value per cell, scaled to
``[low, high]``. All chunks advance in lockstep as numpy uint64 vectors; the
per-chunk skip is applied with a jump-ahead (power of the affine map) instead
of stepping each chunk individually.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

LCG_MUL = 192499
LCG_ADD = 6837199
SEED_MUL = 1034871
SEED_ADD = 10581
SKIP_BASE = 50
U64_MAX_AS_FLOAT = float(2 ** 64 - 1)


def _jump_ahead(steps: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Coefficients (A, C) with f^steps(x) = A*x + C (mod 2**64), per element."""
    steps = steps.astype(np.uint64, copy=True)
    acc_mul = np.ones_like(steps)
    acc_add = np.zeros_like(steps)
    base_mul = np.full_like(steps, LCG_MUL)
    base_add = np.full_like(steps, LCG_ADD)
    one = np.uint64(1)
    while np.any(steps):
        bit = (steps & one).astype(bool)
        acc_mul = np.where(bit, base_mul * acc_mul, acc_mul)
        acc_add = np.where(bit, base_mul * acc_add + base_add, acc_add)
        base_add = base_mul * base_add + base_add
        base_mul = base_mul * base_mul
        steps >>= one
    return acc_mul, acc_add


def fill_rand(
    size: int,
    seed: int,
    low: float,
    high: float,
    chunk_size: int = 2048,
) -> np.ndarray:
    """Return ``size`` float64 values generated chunk-wise from ``seed``."""
    if size < 0:
        raise ValueError(f"size must be non-negative, got {size}")
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if size == 0:
        return np.empty(0, dtype=np.float64)

    chunks = -(-size // chunk_size)
    tid = np.arange(chunks, dtype=np.uint64)
    state = (tid * np.uint64(SEED_MUL) + np.uint64(SEED_ADD)) * np.uint64(seed % 2 ** 64)

    skip_mul, skip_add = _jump_ahead(tid + np.uint64(SKIP_BASE))
    state = skip_mul * state + skip_add

    mul = np.uint64(LCG_MUL)
    add = np.uint64(LCG_ADD)
    width = min(chunk_size, size)
    out = np.empty((chunks, width), dtype=np.float64)
    for column in range(width):
        state = state * mul + add
        out[:, column] = state

    scaling = (high - low) / U64_MAX_AS_FLOAT
    out *= scaling
    out += low
    # Chunk rows are laid end to end; the last chunk may be partial.
    return np.ascontiguousarray(out.reshape(-1)[:size])
