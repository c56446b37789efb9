"""``dgemm-report``: merge saved reports and print or save the aggregate.

Examples::

    dgemm-report 'results/naive-*.json'
    dgemm-report results/a.json results/b.json -o results/merged.json
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from dgemm_bench.benchmark.exceptions import BenchmarkError
from dgemm_bench.benchmark.formatting import full
from dgemm_bench.benchmark.merge import merge_reports
from dgemm_bench.benchmark.storage import load_reports, save_report
from dgemm_bench.utils.logger import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(help="Merge benchmark reports recorded with identical parameters.", add_completion=False)


@app.command()
def merge(
    patterns: List[str] = typer.Argument(..., help="Report files or glob patterns"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the merged report here instead of printing"),
    log_level: str = typer.Option("WARNING", "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
) -> None:
    """Merge every report matched by PATTERNS."""
    setup_logging(level=log_level)

    reports = load_reports(patterns)
    if not reports:
        logger.error("No readable reports matched %s", " ".join(patterns))
        raise typer.Exit(code=1)

    try:
        merged = merge_reports(reports)
        if output is not None:
            save_report(merged, output)
        else:
            typer.echo(full(merged))
    except (BenchmarkError, OSError) as exc:
        logger.error("%s", exc)
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
