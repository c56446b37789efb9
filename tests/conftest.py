"""Shared test doubles for driver and CLI tests."""

from pathlib import Path

import numpy as np
import pytest

from dgemm_bench.benchmark.models import Layout
from dgemm_bench.benchmark.verification import as_matrix


class NumpyKernel:
    """Reference DGEMM that writes its result back into the flat C buffer.

    ``error`` is added to C[0, 0] on every call to simulate a wrong kernel.
    """

    name = "numpy"

    def __init__(self, error=0.0):
        self.error = error
        self.calls = 0
        self.closed = False

    def call(self, layout, transpose_pair, dims, alpha, a, lda, b, ldb, beta, c, ldc):
        m, n, k = dims
        trans_a, trans_b = transpose_pair
        stored_a = as_matrix(a, *((k, m) if trans_a.is_transposed else (m, k)), lda, layout)
        stored_b = as_matrix(b, *((n, k) if trans_b.is_transposed else (k, n)), ldb, layout)
        op_a = stored_a.T if trans_a.is_transposed else stored_a
        op_b = stored_b.T if trans_b.is_transposed else stored_b
        current = np.array(as_matrix(c, m, n, ldc, layout))
        result = alpha * (op_a @ op_b) + beta * current
        if result.size:
            result[0, 0] += self.error
        order = "C" if layout is Layout.ROW else "F"
        c[:] = result.ravel(order=order)
        self.calls += 1

    def close(self):
        self.closed = True


class Recorder:
    """Loader and compiler doubles that record what the driver asked for."""

    def __init__(self, kernel):
        self.kernel = kernel
        self.compiled = []
        self.loaded = []

    def compile(self, compiler, source, output, extra_args):
        self.compiled.append((compiler, Path(source), Path(output), list(extra_args)))
        Path(output).write_text("artifact")
        return Path(output)

    def load(self, path):
        self.loaded.append(Path(path))
        return self.kernel


@pytest.fixture
def make_recorder():
    """Factory for a Recorder wrapping a NumpyKernel."""

    def _make(error=0.0):
        return Recorder(NumpyKernel(error=error))

    return _make
