"""Benchmark driver: build, load, verify, time and summarize one kernel.

Pipeline for one run::

    plan_build -> compile_kernel (if needed) -> load kernel
        -> generate A, B, zeroed C -> warm-up calls (untimed)
        -> timed repeats, correctness gate after the first repeat
        -> Statistics -> Report -> optional report / history files

The timed loop is strictly sequential. The kernel owns A, B and C for the
duration of each call. A scratch artifact is removed when the run ends,
whether it succeeded or not.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from dgemm_bench.benchmark import statistics as stats_engine
from dgemm_bench.benchmark.defaults import get_defaults
from dgemm_bench.benchmark.exceptions import ConfigurationError
from dgemm_bench.benchmark.models import Layout, Report, Sample, Transpose, leading_dimensions, ns_to_ms
from dgemm_bench.benchmark.storage import save_history, save_report
from dgemm_bench.benchmark.verification import DgemmOperands, verify_dgemm
from dgemm_bench.harness.build import BuildPlan, compile_kernel, plan_build
from dgemm_bench.harness.kernel import NumericKernel, load_kernel
from dgemm_bench.harness.matrices import fill_rand
from dgemm_bench.utils.logger import log_benchmark_complete, log_benchmark_error, log_benchmark_start

logger = logging.getLogger(__name__)

KernelLoader = Callable[[Path], NumericKernel]
Compiler = Callable[[str, Path, Path, Sequence[str]], Path]


def _default(name: str):
    return field(default_factory=lambda: getattr(get_defaults(), name))


@dataclass
class BenchmarkConfig:
    """Configuration for one benchmark run; unset fields come from BenchmarkDefaults."""

    kernel_source: Path
    output_path: Optional[Path] = None
    compile: Optional[bool] = None
    compiler: str = _default("compiler")
    compiler_args: List[str] = field(default_factory=lambda: list(get_defaults().compiler_args))
    scratch_path: Path = field(default_factory=lambda: Path(get_defaults().scratch_path))
    repeats: int = _default("repeats")
    warmup: int = _default("warmup")
    m: int = _default("m")
    n: int = _default("n")
    k: int = _default("k")
    alpha: float = _default("alpha")
    beta: float = _default("beta")
    layout: Layout = field(default_factory=lambda: Layout.parse(get_defaults().layout))
    trans_a: Transpose = field(default_factory=lambda: Transpose.parse(get_defaults().trans_a))
    trans_b: Transpose = field(default_factory=lambda: Transpose.parse(get_defaults().trans_b))
    skip_verification: bool = False
    tolerance: float = _default("tolerance")
    save_as: Optional[Path] = None
    save_history_as: Optional[Path] = None

    def __post_init__(self) -> None:
        self.kernel_source = Path(self.kernel_source)
        if self.output_path is not None:
            self.output_path = Path(self.output_path)
        self.scratch_path = Path(self.scratch_path)
        self.layout = Layout.parse(self.layout)
        self.trans_a = Transpose.parse(self.trans_a)
        self.trans_b = Transpose.parse(self.trans_b)

        if self.repeats < 1:
            raise ConfigurationError(
                "repeats should be a positive integer",
                config_key="repeats",
                config_value=self.repeats,
                reason="must be >= 1",
            )
        if self.warmup < 0:
            raise ConfigurationError(
                "warmup cannot be negative",
                config_key="warmup",
                config_value=self.warmup,
                reason="must be >= 0",
            )
        for key in ("m", "n", "k"):
            value = getattr(self, key)
            if value < 0:
                raise ConfigurationError(
                    f"dimension {key} cannot be negative",
                    config_key=key,
                    config_value=value,
                    reason="must be >= 0",
                )

    @property
    def dimensions(self) -> Tuple[int, int, int]:
        return (self.m, self.n, self.k)

    @property
    def transpose_pair(self) -> Tuple[Transpose, Transpose]:
        return (self.trans_a, self.trans_b)


@dataclass
class BenchmarkOutcome:
    """Report of a run plus the raw samples it was reduced from."""
    report: Report
    samples: List[Sample]
    verification_norm: Optional[float] = None


class BenchmarkDriver:
    """Runs one kernel benchmark described by a :class:`BenchmarkConfig`.

    ``loader`` and ``compiler`` default to the ctypes loader and the external
    compiler; tests substitute in-process kernels.
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        loader: KernelLoader = load_kernel,
        compiler: Compiler = compile_kernel,
    ):
        self.config = config
        self.loader = loader
        self.compiler = compiler

    def run(self) -> BenchmarkOutcome:
        config = self.config
        name = config.kernel_source.name
        log_benchmark_start(logger, name)
        try:
            plan = plan_build(config.kernel_source, config.output_path, config.compile, config.scratch_path)
            try:
                samples, norm = self._build_and_measure(plan)
            finally:
                if plan.is_scratch:
                    plan.artifact.unlink(missing_ok=True)
                    logger.debug("Removed scratch artifact %s", plan.artifact)
        except Exception as exc:
            log_benchmark_error(logger, name, str(exc))
            raise

        report = Report(
            name=name,
            dimensions=config.dimensions,
            repeat_count=len(samples),
            alpha=config.alpha,
            beta=config.beta,
            layout=config.layout,
            transpose_pair=config.transpose_pair,
            statistics=stats_engine.from_samples(samples),
        )
        log_benchmark_complete(logger, name, report.statistics.average_ms)

        if config.save_as is not None:
            save_report(report, config.save_as)
        if config.save_history_as is not None:
            save_history(samples, config.save_history_as)
        return BenchmarkOutcome(report=report, samples=samples, verification_norm=norm)

    def _build_and_measure(self, plan: BuildPlan) -> Tuple[List[Sample], Optional[float]]:
        config = self.config
        if plan.needs_build:
            self.compiler(config.compiler, config.kernel_source, plan.artifact, config.compiler_args)

        kernel = self.loader(plan.artifact)
        try:
            return self._measure(kernel)
        finally:
            kernel.close()

    def _measure(self, kernel: NumericKernel) -> Tuple[List[Sample], Optional[float]]:
        config = self.config
        defaults = get_defaults()
        m, n, k = config.dimensions
        lda, ldb, ldc = leading_dimensions(config.layout, config.transpose_pair, m, n, k)

        logger.info("M: %d, N: %d, K: %d", m, n, k)
        logger.info("alpha: %.4f, beta: %.4f", config.alpha, config.beta)
        logger.info("Layout: %s", config.layout.display_name)
        logger.info("TransA: %s, TransB: %s", config.trans_a.to_wire(), config.trans_b.to_wire())

        a = fill_rand(m * k, defaults.seed_a, defaults.value_low, defaults.value_high, defaults.chunk_size)
        b = fill_rand(k * n, defaults.seed_b, defaults.value_low, defaults.value_high, defaults.chunk_size)
        c = np.zeros(m * n, dtype=np.float64)

        def invoke() -> Sample:
            start = time.perf_counter_ns()
            kernel.call(config.layout, config.transpose_pair, config.dimensions,
                        config.alpha, a, lda, b, ldb, config.beta, c, ldc)
            return time.perf_counter_ns() - start

        for _ in range(config.warmup):
            invoke()

        verify = not config.skip_verification
        samples: List[Sample] = []
        norm: Optional[float] = None
        for i in range(config.repeats):
            c_before = c.copy() if i == 0 and verify else None
            elapsed = invoke()
            logger.info("Duration: %.6fms", ns_to_ms(elapsed))
            samples.append(elapsed)

            if c_before is not None:
                operands = DgemmOperands(a=a, lda=lda, b=b, ldb=ldb, c=c_before, ldc=ldc)
                norm = verify_dgemm(c, m, n, k, config.layout, config.transpose_pair,
                                    config.alpha, config.beta, operands, tolerance=config.tolerance)
        return samples, norm
