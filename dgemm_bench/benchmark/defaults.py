"""Centralized default values for benchmark configuration.

This module provides a single source of truth for the defaults used by the
benchmark driver and the command line tools. Values are overridden by passing
them to BenchmarkConfig directly or via CLI flags (e.g. --repeats, --warmup).
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field
from typing import List


def default_compiler() -> str:
    """armclang on ARM hosts, the system clang elsewhere."""
    machine = platform.machine().lower()
    if machine.startswith(("arm", "aarch64")):
        return "armclang"
    return "/usr/bin/clang"


@dataclass
class BenchmarkDefaults:
    """Centralized default values for benchmark configuration."""

    # Execution defaults
    repeats: int = 10
    warmup: int = 0

    # Problem defaults
    m: int = 10000
    n: int = 10000
    k: int = 10000
    alpha: float = 1.0
    beta: float = 1.0
    layout: str = "ROW"
    trans_a: str = "N"
    trans_b: str = "N"

    # Input generation: A and B are filled from independent seeds over [low, high).
    seed_a: int = 100
    seed_b: int = 200
    value_low: float = 0.0
    value_high: float = 2.0
    chunk_size: int = 2048

    # Verification
    tolerance: float = 1e-4

    # Build defaults
    compiler: str = field(default_factory=default_compiler)
    compiler_args: List[str] = field(default_factory=list)
    scratch_path: str = ".temp"

    def to_dict(self) -> dict:
        """Convert defaults to dictionary."""
        return {
            "repeats": self.repeats,
            "warmup": self.warmup,
            "m": self.m,
            "n": self.n,
            "k": self.k,
            "alpha": self.alpha,
            "beta": self.beta,
            "layout": self.layout,
            "trans_a": self.trans_a,
            "trans_b": self.trans_b,
            "seed_a": self.seed_a,
            "seed_b": self.seed_b,
            "value_low": self.value_low,
            "value_high": self.value_high,
            "chunk_size": self.chunk_size,
            "tolerance": self.tolerance,
            "compiler": self.compiler,
            "compiler_args": list(self.compiler_args),
            "scratch_path": self.scratch_path,
        }


# Global instance - can be overridden for testing or custom configurations
_defaults = BenchmarkDefaults()


def get_defaults() -> BenchmarkDefaults:
    """Get the global BenchmarkDefaults instance."""
    return _defaults


def set_defaults(defaults: BenchmarkDefaults) -> None:
    """Set the global BenchmarkDefaults instance (useful for testing)."""
    global _defaults
    _defaults = defaults
