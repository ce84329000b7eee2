"""
Benchmark suite for the bigprimes library.

Benchmarks:
1. Candidate Generation: random odd integers of several widths
2. Primality Testing: Miller-Rabin on known primes and random candidates
3. Divisor Counting: Numba JIT vs NumPy blocks vs pure Python
4. Prime Search: worker pool scaling at a fixed bit length
"""

import time
import sys
import statistics
from typing import List, Callable

from bigprimes import (
    random_odd_integer, is_probable_prime, count_divisors,
    generate_primes, default_worker_count,
)
from vector_ops import count_odd_divisors


# ============================================================================
# BENCHMARK UTILITIES
# ============================================================================

class BenchmarkResult:
    """Timing statistics for one benchmarked call."""

    def __init__(self, name: str, times: List[float]):
        self.name = name
        self.times = sorted(times)

        self.min = min(times)
        self.max = max(times)
        self.mean = statistics.mean(times)
        self.median = statistics.median(times)
        self.stdev = statistics.stdev(times) if len(times) > 1 else 0

    def __str__(self):
        return (f"{self.name:40} | "
                f"Mean: {self.mean*1000:9.3f}ms | "
                f"Median: {self.median*1000:9.3f}ms | "
                f"StdDev: {self.stdev*1000:8.3f}ms | "
                f"Min: {self.min*1000:9.3f}ms | "
                f"Max: {self.max*1000:9.3f}ms")


def benchmark(func: Callable, *args, iterations: int = 5, **kwargs) -> BenchmarkResult:
    """
    Time `iterations` calls of func after one warm-up call.

    Returns:
        BenchmarkResult with timing statistics
    """
    times = []

    func(*args, **kwargs)

    for _ in range(iterations):
        start = time.perf_counter()
        func(*args, **kwargs)
        times.append(time.perf_counter() - start)

    return BenchmarkResult(func.__name__, times)


def _header(title: str) -> None:
    print("\n" + "="*100)
    print(title)
    print("="*100)


# ============================================================================
# 1. CANDIDATE GENERATION
# ============================================================================

def benchmark_generation():
    _header("CANDIDATE GENERATION BENCHMARKS")

    for bits in (32, 256, 1024, 4096):
        result = benchmark(random_odd_integer, bits, iterations=200)
        result.name = f"random_odd_integer({bits})"
        print(result)


# ============================================================================
# 2. PRIMALITY TESTING
# ============================================================================

def benchmark_primality():
    """Miller-Rabin on known primes (all rounds run) and on random candidates."""
    _header("PRIMALITY TESTING BENCHMARKS")

    known_primes = [
        (2**31 - 1, "Mersenne prime 2^31-1"),
        (2**61 - 1, "Mersenne prime 2^61-1"),
        (2**127 - 1, "Mersenne prime 2^127-1"),
        (2**521 - 1, "Mersenne prime 2^521-1"),
    ]
    for p, description in known_primes:
        result = benchmark(is_probable_prime, p, iterations=20)
        result.name = description
        print(result)

    # Random candidates mostly exit early on the fast path or the first round
    print("\n[Random odd candidates]")
    for bits in (64, 512, 2048):
        candidates = [random_odd_integer(bits) for _ in range(200)]
        times = []
        for n in candidates:
            start = time.perf_counter()
            is_probable_prime(n)
            times.append(time.perf_counter() - start)
        print(BenchmarkResult(f"Random {bits}-bit candidates", times))


# ============================================================================
# 3. DIVISOR COUNTING
# ============================================================================

def benchmark_divisor_counting():
    """Compare the three divisor-counting paths on the same 32- and 40-bit values."""
    _header("DIVISOR COUNTING BENCHMARKS")

    count_odd_divisors(9)  # JIT warm-up

    for bits in (32, 40):
        n = random_odd_integer(bits)
        print(f"\n[{bits}-bit value {n}]")

        result_jit = benchmark(count_odd_divisors, n, use_jit=True, iterations=5)
        result_jit.name = "Numba JIT"
        print(result_jit)

        result_np = benchmark(count_odd_divisors, n, use_jit=False, iterations=5)
        result_np.name = "NumPy blocks"
        print(result_np)

        result_py = benchmark(count_divisors, n, use_simd=False, iterations=3)
        result_py.name = "Pure Python"
        print(result_py)

        print(f"  → JIT speedup: {result_py.mean / result_jit.mean:.1f}x, "
              f"NumPy speedup: {result_py.mean / result_np.mean:.1f}x")


# ============================================================================
# 4. PRIME SEARCH
# ============================================================================

def benchmark_prime_search():
    """Time generate_primes with growing pools."""
    _header("PRIME SEARCH BENCHMARKS")

    bits, count = 256, 8
    pools = sorted({1, 2, 4, default_worker_count()})
    for workers in pools:
        result = benchmark(generate_primes, bits, count, num_workers=workers, iterations=3)
        result.name = f"{count} x {bits}-bit primes, {workers} workers"
        print(result)


# ============================================================================
# MAIN BENCHMARK SUITE
# ============================================================================

def run_all_benchmarks():
    """Run all benchmarks."""
    print("\n")
    print("╔" + "="*98 + "╗")
    print("║" + " "*30 + "BIGPRIMES BENCHMARK SUITE" + " "*43 + "║")
    print("║" + f" Default workers: {default_worker_count():<80}" + "║")
    print("╚" + "="*98 + "╝")

    try:
        benchmark_generation()
        benchmark_primality()
        benchmark_divisor_counting()
        benchmark_prime_search()

        print("\n" + "="*100)
        print("BENCHMARK COMPLETE")
        print("="*100 + "\n")

    except KeyboardInterrupt:
        print("\nBenchmark interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    run_all_benchmarks()
