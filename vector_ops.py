"""
Accelerated kernels for exact divisor counting.

This module contains vectorized and JIT-compiled scans over odd trial divisors
using NumPy and Numba. Both kernels work on signed 64-bit machine integers, so
they only accept values up to INT64_MAX; larger values go through the
pure-Python loop in bigprimes.count_divisors.

OPTIMIZATION TARGETS:
1. Odd divisor scan: Numba JIT (removes interpreter overhead per candidate)
2. Odd divisor scan: NumPy blocks (one vectorized modulo per block)

bigprimes.count_divisors always uses the JIT kernel. The NumPy block kernel
is reached through count_odd_divisors(n, use_jit=False) only, as the
independent cross-check in the tests and the comparison point in benchmark.py.
"""

import math
from typing import List

import numpy as np
from numba import njit

INT64_MAX: int = (1 << 63) - 1

# Odd candidates tested per NumPy block (keeps temporaries around 1 MiB)
BLOCK_SIZE: int = 1 << 17


# ============================================================================
# PART 1: ODD DIVISOR SCAN (Numba JIT)
# ============================================================================

@njit
def _count_odd_divisors_jit(n: int, limit: int) -> int:
    """
    JIT-compiled scan of odd divisors 1, 3, 5, ... up to limit.

    Each divisor i found below the square root stands for the pair (i, n // i),
    so it adds 2; the square root itself adds 1.

    Args:
        n: Odd number to scan (must fit int64)
        limit: isqrt(n)

    Returns:
        Number of positive divisors of n
    """
    count = 0
    i = 1
    while i <= limit:
        if n % i == 0:
            if i * i == n:
                count += 1
            else:
                count += 2
        i += 2
    return count


# ============================================================================
# PART 2: ODD DIVISOR SCAN (NumPy Vectorization)
# ============================================================================

def _count_odd_divisors_blocks(n: int, limit: int, block_size: int = BLOCK_SIZE) -> int:
    """
    Vectorized scan of odd divisors in fixed-size blocks.

    Every block is an arange of odd candidates; a single array modulo finds the
    divisors in the block, and the square root (if present) is counted once.

    Args:
        n: Odd number to scan (must fit int64)
        limit: isqrt(n)
        block_size: Number of odd candidates per block

    Returns:
        Number of positive divisors of n
    """
    n64: np.int64 = np.int64(n)
    count: int = 0
    step: int = 2 * block_size

    for start in range(1, limit + 1, step):
        stop: int = min(start + step, limit + 1)
        candidates: np.ndarray = np.arange(start, stop, 2, dtype=np.int64)
        divisors: np.ndarray = candidates[n64 % candidates == 0]
        if len(divisors) == 0:
            continue
        squares: int = int(np.count_nonzero(divisors * divisors == n64))
        count += 2 * len(divisors) - squares

    return count


# ============================================================================
# DISPATCH
# ============================================================================

def fits_int64(n: int) -> bool:
    """Check whether n can be handed to the machine-integer kernels."""
    return 0 < n <= INT64_MAX


def count_odd_divisors(n: int, use_jit: bool = True) -> int:
    """
    Count the positive divisors of an odd number with an accelerated kernel.

    Args:
        n: Positive odd integer, at most INT64_MAX
        use_jit: Use the Numba kernel (True) or the NumPy block kernel (False)

    Returns:
        Number of positive divisors of n, including 1 and n

    Raises:
        ValueError: If n is not a positive odd integer within int64 range
    """
    if n < 1 or n % 2 == 0:
        raise ValueError(f"expected a positive odd integer, got {n}")
    if not fits_int64(n):
        raise ValueError(f"{n} does not fit in a signed 64-bit integer")

    limit: int = math.isqrt(n)
    if use_jit:
        return int(_count_odd_divisors_jit(n, limit))
    return _count_odd_divisors_blocks(n, limit)


__all__: List[str] = [
    'INT64_MAX',
    'BLOCK_SIZE',
    '_count_odd_divisors_jit',
    '_count_odd_divisors_blocks',
    'fits_int64',
    'count_odd_divisors',
]
