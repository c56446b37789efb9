"""Custom exception hierarchy for kernel benchmarking.

Provides specific exception types for each failure mode so the CLI layer can
report a precise diagnostic and decide between aborting the run and skipping
a single input.
"""

from __future__ import annotations

from typing import Any, Optional


class BenchmarkError(Exception):
    """Base exception for all benchmark-related errors."""
    pass


class ConfigurationError(BenchmarkError):
    """Raised when benchmark configuration is invalid.

    Attributes:
        config_key: Configuration key that is invalid
        config_value: Invalid value
        reason: Reason for invalidity
    """

    def __init__(
        self,
        message: str,
        config_key: str,
        config_value: Any,
        reason: str,
    ):
        super().__init__(message)
        self.config_key = config_key
        self.config_value = config_value
        self.reason = reason


class KernelSourceNotFoundError(BenchmarkError):
    """Raised when the kernel source file does not exist.

    Attributes:
        path: Path of the missing kernel source
    """

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class CompilationFailedError(BenchmarkError):
    """Raised when the external compiler exits with a non-zero status.

    Attributes:
        command: Full compiler command line
        returncode: Compiler exit status (None if the compiler could not start)
        stdout: Captured compiler stdout
        stderr: Captured compiler stderr
    """

    def __init__(
        self,
        message: str,
        command: list,
        returncode: Optional[int],
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class ArtifactLoadError(BenchmarkError):
    """Raised when a compiled artifact cannot be loaded as a shared object.

    Attributes:
        path: Path to the artifact
        reason: Reason for failure
    """

    def __init__(self, message: str, path: str, reason: str):
        super().__init__(message)
        self.path = path
        self.reason = reason


class ArtifactNotFoundError(ArtifactLoadError):
    """Raised when reuse of an artifact is requested but the file is absent."""

    def __init__(self, message: str, path: str):
        super().__init__(message, path=path, reason="artifact does not exist")


class SymbolNotFoundError(BenchmarkError):
    """Raised when a loaded artifact does not export the kernel symbol.

    Attributes:
        path: Path to the artifact
        symbol: Name of the missing symbol
    """

    def __init__(self, message: str, path: str, symbol: str):
        super().__init__(message)
        self.path = path
        self.symbol = symbol


class VerificationFailedError(BenchmarkError):
    """Raised when kernel output deviates from the reference result.

    Attributes:
        norm: Euclidean norm of (reference - kernel output)
        tolerance: Absolute tolerance that was exceeded
    """

    def __init__(self, message: str, norm: float, tolerance: float):
        super().__init__(message)
        self.norm = norm
        self.tolerance = tolerance


class ReportError(BenchmarkError):
    """Base exception for persisted report handling."""
    pass


class ReportParseError(ReportError):
    """Raised when a persisted report cannot be read or decoded.

    Attributes:
        path: Path of the offending file
        reason: Reason for failure
    """

    def __init__(self, message: str, path: str, reason: str):
        super().__init__(message)
        self.path = path
        self.reason = reason


class MergeIncompatibleError(ReportError):
    """Raised when reports with different benchmark parameters are merged.

    Attributes:
        report_name: Name of the first report that does not match
        field: Parameter that differs
        expected: Value from the first report
        actual: Value from the mismatching report
    """

    def __init__(
        self,
        message: str,
        report_name: str,
        field: str,
        expected: Any,
        actual: Any,
    ):
        super().__init__(message)
        self.report_name = report_name
        self.field = field
        self.expected = expected
        self.actual = actual
