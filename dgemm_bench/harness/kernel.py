"""Kernel capability interface and the ctypes loader for compiled kernels.

A loaded artifact must export::

    void call_dgemm(int layout, int trans_a, int trans_b,
                    size_t m, size_t n, size_t k, double alpha,
                    const double *A, size_t lda,
                    const double *B, size_t ldb,
                    double beta, double *C, size_t ldc);

with CBLAS enum values for ``layout`` (101/102) and the transposes
(111/112/113). The driver only talks to :class:`NumericKernel`, so statistics,
verification and build logic never depend on loader mechanics.
"""

from __future__ import annotations

import ctypes
import logging
from pathlib import Path
from typing import Callable, Protocol, Tuple, Union

import numpy as np

from dgemm_bench.benchmark.exceptions import ArtifactLoadError, SymbolNotFoundError
from dgemm_bench.benchmark.models import Layout, Transpose

logger = logging.getLogger(__name__)

KERNEL_SYMBOL = "call_dgemm"

_DOUBLE_P = ctypes.POINTER(ctypes.c_double)

DGEMM_ARGTYPES = [
    ctypes.c_int,
    ctypes.c_int,
    ctypes.c_int,
    ctypes.c_size_t,
    ctypes.c_size_t,
    ctypes.c_size_t,
    ctypes.c_double,
    _DOUBLE_P,
    ctypes.c_size_t,
    _DOUBLE_P,
    ctypes.c_size_t,
    ctypes.c_double,
    _DOUBLE_P,
    ctypes.c_size_t,
]


class NumericKernel(Protocol):
    """Anything that can run one DGEMM call in place on ``c``."""

    name: str

    def call(
        self,
        layout: Layout,
        transpose_pair: Tuple[Transpose, Transpose],
        dims: Tuple[int, int, int],
        alpha: float,
        a: np.ndarray,
        lda: int,
        b: np.ndarray,
        ldb: int,
        beta: float,
        c: np.ndarray,
        ldc: int,
    ) -> None:
        ...

    def close(self) -> None:
        ...


def _as_pointer(buffer: np.ndarray, writable: bool = False):
    if buffer.dtype != np.float64 or not buffer.flags["C_CONTIGUOUS"]:
        raise ValueError("kernel buffers must be C-contiguous float64 arrays")
    if writable and not buffer.flags["WRITEABLE"]:
        raise ValueError("output buffer must be writable")
    return buffer.ctypes.data_as(_DOUBLE_P)


class SharedLibraryKernel:
    """DGEMM kernel exported by a shared object."""

    def __init__(self, path: Union[str, Path], symbol: str = KERNEL_SYMBOL):
        self.path = Path(path)
        self.name = self.path.name
        self.symbol = symbol
        try:
            # A bare file name would make dlopen search the library path.
            self._library = ctypes.CDLL(str(self.path.resolve()))
        except OSError as exc:
            raise ArtifactLoadError(
                f"failed to load compiled object {self.path}: {exc}",
                path=str(self.path),
                reason=str(exc),
            ) from exc
        try:
            function = getattr(self._library, symbol)
        except AttributeError as exc:
            raise SymbolNotFoundError(
                f"compiled object {self.path} does not contain symbol {symbol}",
                path=str(self.path),
                symbol=symbol,
            ) from exc
        function.argtypes = DGEMM_ARGTYPES
        function.restype = None
        self._function: Callable[..., None] = function
        logger.debug("Loaded %s from %s", symbol, self.path)

    def call(
        self,
        layout: Layout,
        transpose_pair: Tuple[Transpose, Transpose],
        dims: Tuple[int, int, int],
        alpha: float,
        a: np.ndarray,
        lda: int,
        b: np.ndarray,
        ldb: int,
        beta: float,
        c: np.ndarray,
        ldc: int,
    ) -> None:
        m, n, k = dims
        trans_a, trans_b = transpose_pair
        self._function(
            layout.cblas_value,
            trans_a.cblas_value,
            trans_b.cblas_value,
            m,
            n,
            k,
            alpha,
            _as_pointer(a),
            lda,
            _as_pointer(b),
            ldb,
            beta,
            _as_pointer(c, writable=True),
            ldc,
        )

    def close(self) -> None:
        # ctypes has no portable dlclose.
        self._function = None  # type: ignore[assignment]
        self._library = None  # type: ignore[assignment]


def load_kernel(path: Union[str, Path], symbol: str = KERNEL_SYMBOL) -> SharedLibraryKernel:
    """Load ``symbol`` from the shared object at ``path``.

    Raises:
        ArtifactLoadError: If the file cannot be loaded.
        SymbolNotFoundError: If the symbol is missing.
    """
    return SharedLibraryKernel(path, symbol=symbol)
