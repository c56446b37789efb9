"""Kernel build, loading, input generation and the benchmark driver."""
