"""Correctness gate for timed DGEMM kernels.

The kernel's output is compared against a reference computed with numpy on
the same operands. The gate passes iff the Euclidean norm of
``reference - output`` is at most an absolute tolerance (``1e-4``). The
tolerance does not scale with problem size or value magnitude.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from dgemm_bench.benchmark.exceptions import VerificationFailedError
from dgemm_bench.benchmark.models import Layout, Transpose

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-4


@dataclass
class DgemmOperands:
    """Flat operand buffers as handed to the kernel.

    ``c`` must hold the contents of C *before* the kernel ran; the reference
    is ``alpha * op(A) @ op(B) + beta * c``.
    """
    a: np.ndarray
    lda: int
    b: np.ndarray
    ldb: int
    c: np.ndarray
    ldc: int


def as_matrix(buffer: np.ndarray, rows: int, cols: int, ld: int, layout: Layout) -> np.ndarray:
    """Read-only ``rows x cols`` view of a flat buffer with leading dimension ``ld``."""
    flat = np.ascontiguousarray(buffer, dtype=np.float64).reshape(-1)
    if rows == 0 or cols == 0:
        return np.zeros((rows, cols), dtype=np.float64)

    if layout is Layout.ROW:
        if ld < cols:
            raise ValueError(f"leading dimension {ld} < {cols} columns for row-major matrix")
        required = (rows - 1) * ld + cols
        strides = (ld * flat.itemsize, flat.itemsize)
    else:
        if ld < rows:
            raise ValueError(f"leading dimension {ld} < {rows} rows for column-major matrix")
        required = (cols - 1) * ld + rows
        strides = (flat.itemsize, ld * flat.itemsize)

    if flat.size < required:
        raise ValueError(f"buffer holds {flat.size} values, {required} required for {rows}x{cols} (ld={ld})")
    return np.lib.stride_tricks.as_strided(flat, shape=(rows, cols), strides=strides, writeable=False)


def reference_dgemm(
    m: int,
    n: int,
    k: int,
    layout: Layout,
    transpose_pair: Tuple[Transpose, Transpose],
    alpha: float,
    beta: float,
    operands: DgemmOperands,
) -> np.ndarray:
    """Compute ``alpha * op(A) @ op(B) + beta * C`` as an ``m x n`` array."""
    trans_a, trans_b = transpose_pair
    a_shape = (k, m) if trans_a.is_transposed else (m, k)
    b_shape = (n, k) if trans_b.is_transposed else (k, n)
    a = as_matrix(operands.a, *a_shape, operands.lda, layout)
    b = as_matrix(operands.b, *b_shape, operands.ldb, layout)
    op_a = a.T if trans_a.is_transposed else a
    op_b = b.T if trans_b.is_transposed else b

    result = alpha * (op_a @ op_b)
    # BLAS semantics: beta == 0 means C is not read.
    if beta != 0.0:
        result = result + beta * as_matrix(operands.c, m, n, operands.ldc, layout)
    return result


def verify_dgemm(
    kernel_output: np.ndarray,
    m: int,
    n: int,
    k: int,
    layout: Layout,
    transpose_pair: Tuple[Transpose, Transpose],
    alpha: float,
    beta: float,
    operands: DgemmOperands,
    tolerance: float = DEFAULT_TOLERANCE,
) -> float:
    """Check ``kernel_output`` against the reference result.

    Returns:
        Euclidean norm of the difference.

    Raises:
        VerificationFailedError: If the norm exceeds ``tolerance`` or is not finite.
    """
    reference = reference_dgemm(m, n, k, layout, transpose_pair, alpha, beta, operands)
    output = as_matrix(kernel_output, m, n, operands.ldc, layout)
    norm = float(np.linalg.norm(reference - output))

    if not norm <= tolerance:
        raise VerificationFailedError(
            f"WRONG RESULT! ||reference - output|| = {norm:.6e} exceeds tolerance {tolerance:.1e}",
            norm=norm,
            tolerance=tolerance,
        )
    logger.info("Verification passed (norm %.3e <= %.1e)", norm, tolerance)
    return norm
