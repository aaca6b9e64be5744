"""Utility helpers for typecase."""

import time
from typing import Any


class Timer:
    """High-resolution timer for generation and benchmark timing."""

    def __init__(self):
        self.start_ns = 0
        self.end_ns = 0

    def __enter__(self):
        self.start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, *exc):
        self.end_ns = time.perf_counter_ns()

    @property
    def elapsed_ns(self) -> int:
        return self.end_ns - self.start_ns


def format_ns(ns: float) -> str:
    """Format nanoseconds into a human-readable string."""
    if ns < 1_000:
        return f"{ns:.0f} ns"
    elif ns < 1_000_000:
        return f"{ns / 1_000:.1f} µs"
    elif ns < 1_000_000_000:
        return f"{ns / 1_000_000:.2f} ms"
    else:
        return f"{ns / 1_000_000_000:.3f} s"


def format_speedup(baseline_ns: float, optimized_ns: float) -> str:
    """Format a speedup ratio."""
    if optimized_ns <= 0:
        return "∞x"
    ratio = baseline_ns / optimized_ns
    if ratio >= 1:
        return f"{ratio:.2f}x faster"
    else:
        return f"{1/ratio:.2f}x slower"


def format_type(descriptor: Any) -> str:
    """
    Readable name for a type descriptor in diagnostics.

    Builtins print bare (``str``), other classes module-qualified
    (``collections.abc.Sequence``), everything else through ``repr``.
    """
    if isinstance(descriptor, type):
        if descriptor.__module__ == 'builtins':
            return descriptor.__qualname__
        return f"{descriptor.__module__}.{descriptor.__qualname__}"
    if isinstance(descriptor, str):
        return descriptor
    return repr(descriptor)
