"""DGEMM kernel benchmarking: build, verify, time and merge reports."""

__version__ = "0.1.0"
