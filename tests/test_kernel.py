"""Tests for the shared-object kernel loader."""

import sys
from pathlib import Path

import numpy as np
import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from dgemm_bench.benchmark.exceptions import ArtifactLoadError
from dgemm_bench.harness.kernel import DGEMM_ARGTYPES, KERNEL_SYMBOL, _as_pointer, load_kernel


class TestLoadKernel:
    """Loader error mapping."""

    def test_not_a_shared_object(self, tmp_path):
        bogus = tmp_path / "bogus.so"
        bogus.write_text("not an ELF file")
        with pytest.raises(ArtifactLoadError) as exc_info:
            load_kernel(bogus)
        assert exc_info.value.path == str(bogus)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ArtifactLoadError):
            load_kernel(tmp_path / "absent.so")

    def test_abi(self):
        assert KERNEL_SYMBOL == "call_dgemm"
        assert len(DGEMM_ARGTYPES) == 14


class TestBufferPointers:
    """Buffers handed to the kernel must be contiguous float64."""

    def test_accepts_float64(self):
        assert _as_pointer(np.zeros(4)) is not None

    def test_rejects_float32(self):
        with pytest.raises(ValueError):
            _as_pointer(np.zeros(4, dtype=np.float32))

    def test_rejects_strided(self):
        with pytest.raises(ValueError):
            _as_pointer(np.zeros(8)[::2])

    def test_rejects_read_only_output(self):
        buffer = np.zeros(4)
        buffer.setflags(write=False)
        with pytest.raises(ValueError):
            _as_pointer(buffer, writable=True)
