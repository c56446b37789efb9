"""``dgemm-bench``: build, verify and time one DGEMM kernel.

Examples::

    dgemm-bench kernels/naive.c -r 20 --save-as results/naive.json
    dgemm-bench kernels/blocked.c -o build/blocked.so -m 2048 -n 2048 -k 2048
    dgemm-bench build/prebuilt.so --no-compile --trans-a T
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from dgemm_bench.benchmark.defaults import get_defaults
from dgemm_bench.benchmark.exceptions import BenchmarkError
from dgemm_bench.benchmark.formatting import summary
from dgemm_bench.harness.driver import BenchmarkConfig, BenchmarkDriver
from dgemm_bench.utils.logger import setup_logging

logger = logging.getLogger(__name__)

_DEFAULTS = get_defaults()

app = typer.Typer(help="Benchmark a DGEMM kernel compiled as a shared object.", add_completion=False)


@app.command()
def run(
    kernel: Path = typer.Argument(..., help="Kernel source file (or shared object with --no-compile)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to place the compiled shared object"),
    compile: Optional[bool] = typer.Option(
        None,
        "--compile/--no-compile",
        help="Force (or forbid) recompilation; default rebuilds only when the output is stale",
    ),
    compiler: str = typer.Option(_DEFAULTS.compiler, "--compiler", "-c", help="Compiler executable"),
    compiler_arg: List[str] = typer.Option([], "--compiler-arg", help="Extra compiler argument (repeatable)"),
    repeats: int = typer.Option(_DEFAULTS.repeats, "--repeats", "-r", help="Number of timed repeats"),
    warmup: int = typer.Option(_DEFAULTS.warmup, "--warmup", "-w", help="Untimed calls before measuring"),
    m: int = typer.Option(_DEFAULTS.m, "-m", help="Rows of op(A) and C"),
    n: int = typer.Option(_DEFAULTS.n, "-n", help="Columns of op(B) and C"),
    k: int = typer.Option(_DEFAULTS.k, "-k", help="Columns of op(A), rows of op(B)"),
    alpha: float = typer.Option(_DEFAULTS.alpha, "--alpha", help="Scale of op(A) @ op(B)"),
    beta: float = typer.Option(_DEFAULTS.beta, "--beta", help="Scale of the incoming C"),
    layout: str = typer.Option(_DEFAULTS.layout, "--layout", "-l", help="Storage order: ROW or COL"),
    trans_a: str = typer.Option(_DEFAULTS.trans_a, "--trans-a", help="Transpose A: N, T or C"),
    trans_b: str = typer.Option(_DEFAULTS.trans_b, "--trans-b", help="Transpose B: N, T or C"),
    save_as: Optional[Path] = typer.Option(None, "--save-as", help="Write the JSON report to this path"),
    save_history_as: Optional[Path] = typer.Option(
        None, "--save-history-as", help="Write per-repeat durations (ms) to this path"
    ),
    skip_verification: bool = typer.Option(False, "--skip-verification", help="Do not check the first result"),
    scratch_path: Path = typer.Option(
        Path(_DEFAULTS.scratch_path), "--scratch-path", help="Temporary artifact used when --output is not given"
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also log to this file"),
    log_format: str = typer.Option("text", "--log-format", help="Log file format: text or json"),
) -> None:
    """Compile (if needed), verify and time KERNEL, then print a summary."""
    setup_logging(level=log_level, log_file=log_file, log_format=log_format)

    try:
        config = BenchmarkConfig(
            kernel_source=kernel,
            output_path=output,
            compile=compile,
            compiler=compiler,
            compiler_args=list(compiler_arg),
            scratch_path=scratch_path,
            repeats=repeats,
            warmup=warmup,
            m=m,
            n=n,
            k=k,
            alpha=alpha,
            beta=beta,
            layout=layout,
            trans_a=trans_a,
            trans_b=trans_b,
            skip_verification=skip_verification,
            save_as=save_as,
            save_history_as=save_history_as,
        )
        outcome = BenchmarkDriver(config).run()
    except ValueError as exc:
        logger.error("Invalid argument: %s", exc)
        raise typer.Exit(code=1)
    except (BenchmarkError, OSError) as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1)

    typer.echo(summary(outcome.report))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
