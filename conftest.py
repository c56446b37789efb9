"""Global pytest configuration.

Plugin auto-loading is disabled so environment-provided plugins cannot change
capture or discovery for this repository's tests.
"""

import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("PYTEST_DISABLE_PLUGIN_AUTOLOAD", "1")

repo_root = Path(__file__).parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from dgemm_bench.benchmark.defaults import BenchmarkDefaults, get_defaults, set_defaults


@pytest.fixture(autouse=True)
def _restore_defaults():
    """Tests may override the global defaults; put the originals back afterwards."""
    saved = get_defaults()
    yield
    set_defaults(saved)


@pytest.fixture
def small_defaults():
    """Defaults sized for in-process runs."""
    defaults = BenchmarkDefaults(repeats=3, m=4, n=3, k=5)
    set_defaults(defaults)
    return defaults
