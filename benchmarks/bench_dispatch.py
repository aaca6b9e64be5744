"""
Typecase Dispatch Benchmarks
============================

Compares generic element access through ``elt()`` against the same
functions dispatched over their common representations.

Usage:
    python benchmarks/bench_dispatch.py
"""

import gc
import statistics
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import numpy

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from typecase import elt, string_dispatch, vector_dispatch
from typecase.utils.helpers import format_ns, format_speedup


ITERATIONS = 30      # Benchmark iterations
WARMUP = 5           # Warmup iterations


# ---------- Workloads ----------

def count_vowels(s):
    n = 0
    for i in range(len(s)):
        if elt(s, i) in ('a', 'e', 'i', 'o', 'u', 97, 101, 105, 111, 117):
            n += 1
    return n


def dot(v, w):
    acc = 0
    for i in range(len(v)):
        acc += elt(v, i) * elt(w, i)
    return acc


def prefix_sums(v):
    out = []
    acc = 0
    for i in range(len(v)):
        acc += elt(v, i)
        out.append(acc)
    return out


fast_count_vowels = string_dispatch('s', bytearray)(count_vowels)
fast_dot = vector_dispatch('v', tuple)(dot)
fast_prefix_sums = vector_dispatch('v', tuple, numpy.ndarray)(prefix_sums)


def get_benchmarks() -> Dict[str, Tuple[Callable, Callable, tuple]]:
    text = 'the quick brown fox jumps over the lazy dog ' * 200
    data = list(range(5_000))
    return {
        'count_vowels[str]': (count_vowels, fast_count_vowels, (text,)),
        'count_vowels[bytes]': (count_vowels, fast_count_vowels, (text.encode(),)),
        'count_vowels[bytearray]': (count_vowels, fast_count_vowels, (bytearray(text.encode()),)),
        'dot[list]': (dot, fast_dot, (data, data)),
        'dot[tuple]': (dot, fast_dot, (tuple(data), data)),
        'prefix_sums[list]': (prefix_sums, fast_prefix_sums, (data,)),
        'prefix_sums[ndarray]': (prefix_sums, fast_prefix_sums, (numpy.array(data),)),
        'prefix_sums[range]': (prefix_sums, fast_prefix_sums, (range(5_000),)),
    }


def time_function(func: Callable, args: tuple, iterations: int, warmup: int) -> List[int]:
    """Time a function call over multiple iterations, returning list of ns times."""
    for _ in range(warmup):
        func(*args)

    times = []
    for _ in range(iterations):
        gc.disable()
        start = time.perf_counter_ns()
        func(*args)
        end = time.perf_counter_ns()
        gc.enable()
        times.append(end - start)
    return times


def run_all_benchmarks(iterations: int = ITERATIONS, warmup: int = WARMUP) -> List[Dict[str, Any]]:
    results = []
    benchmarks = get_benchmarks()
    for i, (name, (generic, dispatched, args)) in enumerate(benchmarks.items(), 1):
        print(f"  [{i}/{len(benchmarks)}] {name}...", end=" ", flush=True)
        correct = generic(*args) == dispatched(*args)
        baseline = statistics.median(time_function(generic, args, iterations, warmup))
        optimized = statistics.median(time_function(dispatched, args, iterations, warmup))
        print(
            f"generic={format_ns(baseline)}, dispatched={format_ns(optimized)}, "
            f"{format_speedup(baseline, optimized)} [{'OK' if correct else 'MISMATCH'}]"
        )
        results.append({
            'name': name,
            'baseline_ns': baseline,
            'optimized_ns': optimized,
            'correct': correct,
        })
    return results


if __name__ == '__main__':
    print(f"{'=' * 60}")
    print("  typecase dispatch benchmarks")
    print(f"{'=' * 60}")
    run_all_benchmarks()
