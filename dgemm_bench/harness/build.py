"""Decide whether a kernel must be (re)compiled, and compile it.

The decision is a pure function of the CLI inputs plus two filesystem facts
(artifact exists, source newer than artifact), so it can be tested without
touching the disk:

    out given | compile | decision
    ----------+---------+--------------------------------------------------
    yes       | True    | rebuild out
    yes       | False   | reuse out (artifact must exist)
    yes       | None    | reuse out if it exists and source is not newer
    no        | True    | rebuild scratch
    no        | False   | reuse source (source itself is a shared object)
    no        | None    | rebuild scratch
"""

from __future__ import annotations

import logging
import os
import platform
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from dgemm_bench.benchmark.exceptions import (
    ArtifactNotFoundError,
    CompilationFailedError,
    KernelSourceNotFoundError,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

COMPILE_TIMEOUT_SECONDS = 600


class BuildAction(Enum):
    REUSE = "reuse"
    REBUILD = "rebuild"


@dataclass(frozen=True)
class BuildPlan:
    """Outcome of the build decision.

    Attributes:
        action: Whether to compile before loading
        artifact: Shared object the driver loads
        is_scratch: True when ``artifact`` is the scratch path and must be removed after the run
    """
    action: BuildAction
    artifact: Path
    is_scratch: bool = False

    @property
    def needs_build(self) -> bool:
        return self.action is BuildAction.REBUILD


def decide_build(
    source: PathLike,
    output: Optional[PathLike],
    compile_flag: Optional[bool],
    scratch_path: PathLike,
    *,
    artifact_exists: bool = False,
    source_is_newer: bool = False,
) -> BuildPlan:
    """Pick the build action for one benchmark run.

    Args:
        source: Kernel source file
        output: Explicit artifact path, or None
        compile_flag: True (always build), False (never build) or None (auto)
        scratch_path: Caller-supplied artifact path used when no output is given
        artifact_exists: Whether ``output`` exists (ignored without output)
        source_is_newer: Whether ``source`` is newer than ``output`` (auto mode only)

    Raises:
        ArtifactNotFoundError: If reuse of an absent explicit output is requested.
    """
    if output is None:
        if compile_flag is False:
            return BuildPlan(BuildAction.REUSE, Path(source))
        return BuildPlan(BuildAction.REBUILD, Path(scratch_path), is_scratch=True)

    out = Path(output)
    if compile_flag is True:
        return BuildPlan(BuildAction.REBUILD, out)
    if compile_flag is False:
        if not artifact_exists:
            raise ArtifactNotFoundError(
                f"compiled artifact {out} does not exist and recompilation is disabled",
                path=str(out),
            )
        return BuildPlan(BuildAction.REUSE, out)
    if artifact_exists and not source_is_newer:
        return BuildPlan(BuildAction.REUSE, out)
    return BuildPlan(BuildAction.REBUILD, out)


def _creation_time(stat: os.stat_result) -> float:
    return getattr(stat, "st_birthtime", stat.st_ctime)


def is_source_newer(source: PathLike, artifact: PathLike) -> bool:
    """True if the source was last accessed after the artifact was created."""
    return os.stat(source).st_atime > _creation_time(os.stat(artifact))


def plan_build(
    source: PathLike,
    output: Optional[PathLike],
    compile_flag: Optional[bool],
    scratch_path: PathLike,
) -> BuildPlan:
    """Query the filesystem and run :func:`decide_build`.

    Raises:
        KernelSourceNotFoundError: If ``source`` does not exist.
        ArtifactNotFoundError: See :func:`decide_build`.
    """
    source_path = Path(source)
    if not source_path.is_file():
        raise KernelSourceNotFoundError(f"kernel not found: {source_path}", path=str(source_path))

    artifact_exists = output is not None and Path(output).is_file()
    source_is_newer = artifact_exists and compile_flag is None and is_source_newer(source_path, output)
    plan = decide_build(
        source_path,
        output,
        compile_flag,
        scratch_path,
        artifact_exists=artifact_exists,
        source_is_newer=source_is_newer,
    )
    logger.debug("Build plan: %s %s", plan.action.value, plan.artifact)
    return plan


def arch_flags(machine: Optional[str] = None) -> List[str]:
    """Target-specific flags: Arm Performance Libraries on ARM, MKL on x86."""
    machine = (machine or platform.machine()).lower()
    if machine.startswith(("arm", "aarch64")):
        return ["-armpl", "-mcpu=native"]
    if machine in ("x86_64", "amd64", "i386", "i686", "x86"):
        return ["-lmkl_rt", "-march=native"]
    return []


def compiler_command(
    compiler: str,
    source: PathLike,
    output: PathLike,
    extra_args: Sequence[str] = (),
    machine: Optional[str] = None,
) -> List[str]:
    """Build the compiler command line producing a shared object."""
    return [
        compiler,
        "-O3",
        "-fopenmp",
        "-lm",
        "-lnuma",
        *arch_flags(machine),
        "-Wall",
        "-Werror",
        "-shared",
        "-fPIC",
        "-o",
        str(output),
        str(source),
        *extra_args,
    ]


def compile_kernel(
    compiler: str,
    source: PathLike,
    output: PathLike,
    extra_args: Sequence[str] = (),
) -> Path:
    """Compile ``source`` into the shared object ``output``.

    Raises:
        CompilationFailedError: If the compiler cannot be started, times out or
            exits with a non-zero status.
    """
    command = compiler_command(compiler, source, output, extra_args)
    logger.info("Compiling %s -> %s", source, output)
    logger.debug("Compiler command: %s", " ".join(command))
    try:
        completed = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            timeout=COMPILE_TIMEOUT_SECONDS,
        )
    except FileNotFoundError as exc:
        raise CompilationFailedError(
            f"failed to run compiler {compiler}: {exc}",
            command=command,
            returncode=None,
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise CompilationFailedError(
            f"compilation exceeded {COMPILE_TIMEOUT_SECONDS} seconds",
            command=command,
            returncode=None,
        ) from exc

    if completed.returncode != 0:
        raise CompilationFailedError(
            f"compilation failed (exit status {completed.returncode})\n"
            f"stdout:\n{completed.stdout}\n"
            f"stderr:\n{completed.stderr}",
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
    return Path(output)
