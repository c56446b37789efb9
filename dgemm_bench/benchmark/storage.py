"""Persistence of reports and per-repeat history files."""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from pydantic import ValidationError

from dgemm_bench.benchmark.exceptions import ReportParseError
from dgemm_bench.benchmark.models import Report, Sample, ns_to_ms

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def save_report(report: Report, path: PathLike) -> Path:
    """Write ``report`` as JSON. I/O errors propagate to the caller."""
    target = Path(path)
    if target.parent != Path("."):
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(report.to_json(), encoding="utf-8")
    logger.info("Saved report to %s", target)
    return target


def save_history(samples: Sequence[Sample], path: PathLike) -> Path:
    """Write one millisecond duration per line (six decimals)."""
    target = Path(path)
    if target.parent != Path("."):
        target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text("\n".join(f"{ns_to_ms(s):.6f}" for s in samples), encoding="utf-8")
    logger.info("Saved history of %d repeats to %s", len(samples), target)
    return target


def load_report(path: PathLike) -> Report:
    """Read a persisted report.

    Raises:
        ReportParseError: If the file cannot be read or is not a valid report.
    """
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReportParseError(
            f"could not open report {source}: {exc}", path=str(source), reason=str(exc)
        ) from exc
    try:
        return Report.from_json(text)
    except ValidationError as exc:
        raise ReportParseError(
            f"unknown report format in {source}", path=str(source), reason=str(exc)
        ) from exc


def expand_patterns(patterns: Iterable[str]) -> List[Path]:
    """Resolve glob patterns to files, in sorted order per pattern, without duplicates."""
    seen = set()
    matches: List[Path] = []
    for pattern in patterns:
        for match in sorted(glob.glob(pattern, recursive=True)):
            path = Path(match)
            if path in seen or not path.is_file():
                continue
            seen.add(path)
            matches.append(path)
        if not glob.has_magic(pattern) and Path(pattern) not in seen:
            logger.warning("No report found at %s", pattern)
    return matches


def load_reports(patterns: Iterable[str]) -> List[Report]:
    """Load every report matched by ``patterns``.

    A file that cannot be read or parsed is logged and skipped; it does not
    abort the load of the remaining files.
    """
    reports: List[Report] = []
    for path in expand_patterns(patterns):
        try:
            reports.append(load_report(path))
        except ReportParseError as exc:
            logger.warning("Skipping %s: %s", exc.path, exc)
    return reports
