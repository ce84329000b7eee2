"""
Random large integers, probable primes and exact divisor counts.

Two modes of operation:
1. Prime search: a fixed pool of worker threads races to find `count`
   probable primes of a given bit length. Results go through one critical
   section that assigns ranks, and the worker that fills the last slot raises
   the cancellation signal for the rest of the pool.
2. Odd numbers: random odd integers of a given bit length are generated one
   at a time and their divisors are counted exactly by trial division.

ALGORITHMS:
- Candidates: `bit_length / 8` bytes from the OS entropy source (secrets), top
  bit forced so the value is exactly `bit_length` bits wide, bottom bit forced
  for odd candidates.
- Primality: Miller-Rabin with DEFAULT_ROUNDS random witnesses, preceded by a
  fast path over SMALL_PRIMES. False positive rate <= 4^-rounds.
- Divisor count: odd trial divisors up to isqrt(n). Values that fit int64 use
  the Numba/NumPy kernels from vector_ops.

DEPENDENCIES:
- NumPy, Numba: accelerated divisor-counting kernels (vector_ops)
"""
import argparse
import logging
import os
import secrets
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, List, Optional

from vector_ops import count_odd_divisors, fits_int64

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS: int = 10

# Trial division fast path before Miller-Rabin
SMALL_PRIMES: tuple[int, ...] = (3, 5, 7, 11, 13, 17, 19, 23, 29, 31)

# Pool size is WORKER_MULTIPLIER * available CPUs
WORKER_MULTIPLIER: int = 2

MIN_BIT_LENGTH: int = 32

# Witnesses are reduced from a random integer of this width
WITNESS_BITS: int = 32


# ============================================================================
# RANDOM CANDIDATES
# ============================================================================

def random_integer(bit_length: int, force_odd: bool = False) -> int:
    """
    Generate a uniformly random integer that is exactly `bit_length` bits wide.

    `bit_length` must be a positive multiple of 8; this is not checked here.
    Entropy source failures (OSError) propagate to the caller.

    Args:
        bit_length: Width of the result in bits
        force_odd: Also set the lowest bit

    Returns:
        Non-negative integer whose highest set bit is bit `bit_length - 1`
    """
    buf = bytearray(secrets.token_bytes(bit_length // 8))
    buf[0] |= 0x80  # top bit: full width
    if force_odd:
        buf[-1] |= 0x01
    return int.from_bytes(buf, byteorder="big", signed=False)


def random_odd_integer(bit_length: int) -> int:
    """Random odd integer of exactly `bit_length` bits."""
    return random_integer(bit_length, force_odd=True)


# ============================================================================
# PRIMALITY TESTING
# ============================================================================

def _random_witness(n: int) -> int:
    """
    Random Miller-Rabin base in [2, n - 2]; callers guarantee n >= 5.

    r is a signed WITNESS_BITS-wide integer with its sign bit forced, so
    |r| lies in [1, 2^(WITNESS_BITS-1)], and the base is (|r| mod (n - 3)) + 2.
    """
    buf = bytearray(secrets.token_bytes(WITNESS_BITS // 8))
    buf[0] |= 0x80
    r: int = abs(int.from_bytes(buf, byteorder="big", signed=True))
    return (r % (n - 3)) + 2


def is_probable_prime(n: int, rounds: int = DEFAULT_ROUNDS) -> bool:
    """
    Miller-Rabin probabilistic primality test.

    Every round picks a fresh random witness, so repeated calls on a composite
    can only disagree by wrongly answering True, with probability at most
    4^-rounds. Primes always return True.

    Args:
        n: Number to test (any integer; values below 2 are not prime)
        rounds: Number of witnesses to try

    Returns:
        True if n is a probable prime, False if n is definitely composite
    """
    if n < 2:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0:
        return False

    for p in SMALL_PRIMES:
        if n == p:
            return True
        if n % p == 0:
            return False

    # write n-1 as d * 2^s with d odd
    d: int = n - 1
    s: int = 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for _ in range(rounds):
        a = _random_witness(n)
        x: int = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue

        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False

    return True


# ============================================================================
# DIVISOR COUNTING
# ============================================================================

def count_divisors(n: int, use_simd: bool = True) -> int:
    """
    Count all positive divisors of an odd number by odd trial division.

    Only odd candidates 1, 3, 5, ... up to isqrt(n) are tried, which is why n
    must be odd. Values that fit int64 are scanned by the JIT kernel unless
    `use_simd` is False.

    Args:
        n: Positive odd integer
        use_simd: Allow the vector_ops kernels for int64-sized values

    Returns:
        Number of positive divisors of n, including 1 and n

    Raises:
        ValueError: If n is not a positive odd integer
    """
    if n < 1 or n % 2 == 0:
        raise ValueError(f"expected a positive odd integer, got {n}")

    if use_simd and fits_int64(n):
        return count_odd_divisors(n)

    logger.debug("Counting divisors of %d-bit value in pure Python", n.bit_length())
    count: int = 0
    i: int = 1
    while i * i <= n:
        if n % i == 0:
            count += 1 if i * i == n else 2
        i += 2
    return count


# ============================================================================
# CONCURRENT PRIME SEARCH
# ============================================================================

@dataclass(frozen=True)
class SearchResult:
    """A probable prime accepted into the result slots, with its 1-based rank."""
    rank: int
    value: int


@dataclass(frozen=True)
class OddResult:
    """An odd-mode value with its exact divisor count."""
    index: int
    value: int
    divisors: int


def default_worker_count() -> int:
    """Twice the number of available CPUs."""
    return WORKER_MULTIPLIER * (os.cpu_count() or 1)


class PrimeSearch:
    """
    Search for `count` probable primes of `bit_length` bits with a worker pool.

    Shared state is the list of accepted results and the cancellation event.
    Accepting a result (check the count, assign the next rank, emit, and raise
    cancellation on the last slot) happens as one step under a single lock, so
    every rank from 1 to `count` goes to exactly one candidate.

    Cancellation is polled, never preemptive: a worker finishes the primality
    test it is running before it sees the signal. A successful test that
    arrives after the target was reached is discarded.

    Args:
        bit_length: Width of every candidate in bits (positive multiple of 8)
        count: Number of probable primes to find
        num_workers: Pool size (default: default_worker_count())
        rounds: Miller-Rabin rounds per candidate
        emit: Called with each SearchResult inside the critical section
    """

    def __init__(
        self,
        bit_length: int,
        count: int,
        num_workers: Optional[int] = None,
        rounds: int = DEFAULT_ROUNDS,
        emit: Optional[Callable[[SearchResult], None]] = None,
    ):
        if bit_length <= 0 or bit_length % 8 != 0:
            raise ValueError(f"bit length must be a positive multiple of 8, got {bit_length}")
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")
        if num_workers is None:
            num_workers = default_worker_count()
        if num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")

        self.bit_length = bit_length
        self.count = count
        self.num_workers = num_workers
        self.rounds = rounds
        self._emit = emit

        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._results: List[SearchResult] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def results(self) -> List[SearchResult]:
        """Snapshot of accepted results in rank order."""
        with self._lock:
            return list(self._results)

    def _accept(self, candidate: int) -> Optional[SearchResult]:
        """Claim the next rank for a probable prime, or None if the slots are full."""
        with self._lock:
            if len(self._results) >= self.count:
                logger.debug("Discarding stale probable prime, %d results already accepted",
                             len(self._results))
                return None

            result = SearchResult(rank=len(self._results) + 1, value=candidate)
            self._results.append(result)
            logger.debug("Accepted rank %d from %s", result.rank, threading.current_thread().name)
            if self._emit is not None:
                self._emit(result)

            if result.rank >= self.count:
                self._cancelled.set()
            return result

    def _worker(self) -> None:
        try:
            while not self._cancelled.is_set():
                candidate = random_odd_integer(self.bit_length)
                # composites never touch shared state
                while not is_probable_prime(candidate, self.rounds):
                    if self._cancelled.is_set():
                        return
                    candidate = random_odd_integer(self.bit_length)
                self._accept(candidate)
        except BaseException:
            # stop the rest of the pool, the exception surfaces from run()
            self._cancelled.set()
            raise
        finally:
            logger.debug("%s exiting", threading.current_thread().name)

    def run(self) -> List[SearchResult]:
        """
        Start the pool and block until every worker has exited.

        Returns:
            Accepted results in rank order (exactly `count` of them)

        Raises:
            Whatever the first failing worker raised (e.g. OSError from the
            entropy source); the other workers are cancelled first. An
            interrupt in the calling thread (KeyboardInterrupt) also cancels
            the pool before it propagates.
        """
        logger.debug("Searching for %d probable primes of %d bits with %d workers",
                     self.count, self.bit_length, self.num_workers)

        with ThreadPoolExecutor(max_workers=self.num_workers,
                                thread_name_prefix="PrimeSearchWorker") as executor:
            try:
                futures = [executor.submit(self._worker) for _ in range(self.num_workers)]
                for future in as_completed(futures):
                    future.result()
            except BaseException:
                # executor shutdown joins the workers, they only stop on the signal
                self._cancelled.set()
                raise

        results = self.results()
        logger.info("Prime search finished with %d results", len(results))
        return results


def generate_primes(
    bit_length: int,
    count: int,
    emit: Optional[Callable[[SearchResult], None]] = None,
    num_workers: Optional[int] = None,
) -> List[SearchResult]:
    """Find `count` probable primes of `bit_length` bits in parallel."""
    search = PrimeSearch(bit_length, count, num_workers=num_workers, emit=emit)
    return search.run()


def generate_odd_numbers(
    bit_length: int,
    count: int,
    emit: Optional[Callable[[OddResult], None]] = None,
) -> List[OddResult]:
    """
    Generate `count` random odd integers and count their divisors, sequentially.

    Args:
        bit_length: Width of every value in bits (positive multiple of 8)
        count: Number of values to generate
        emit: Called with each OddResult as soon as it is computed

    Returns:
        OddResults in generation order, indexed from 1
    """
    results: List[OddResult] = []
    for index in range(1, count + 1):
        value = random_odd_integer(bit_length)
        result = OddResult(index=index, value=value, divisors=count_divisors(value))
        logger.debug("Odd value %d has %d divisors", index, result.divisors)
        results.append(result)
        if emit is not None:
            emit(result)
    return results


# ============================================================================
# COMMAND LINE
# ============================================================================

MODES: tuple[str, ...] = ("prime", "odd")


def validate_bit_length(raw: str) -> int:
    """
    Parse and check the <bits> argument.

    Raises:
        ValueError: If it is not an integer, not a multiple of 8, or below MIN_BIT_LENGTH
    """
    try:
        bits = int(raw)
    except (TypeError, ValueError):
        bits = None
    if bits is None or bits % 8 != 0 or bits < MIN_BIT_LENGTH:
        raise ValueError(f"Error: <bits> must be a multiple of 8 and at least {MIN_BIT_LENGTH}.")
    return bits


def validate_mode(raw: str) -> str:
    mode = raw.lower()
    if mode not in MODES:
        raise ValueError("Error: <option> must be 'prime' or 'odd'.")
    return mode


def parse_count(raw: Optional[str]) -> int:
    """Result count; absent, unparsable or non-positive values fall back to 1."""
    if raw is None:
        return 1
    try:
        count = int(raw)
    except ValueError:
        return 1
    return count if count > 0 else 1


def format_elapsed(seconds: float) -> str:
    """Format a duration as HH:MM:SS.fffffff."""
    ticks: int = round(seconds * 10_000_000)
    whole, fraction = divmod(ticks, 10_000_000)
    hours, rem = divmod(whole, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{fraction:07d}"


def _print_prime(count: int) -> Callable[[SearchResult], None]:
    def emit(result: SearchResult) -> None:
        print(f"{result.rank}: {result.value}")
        if result.rank != count:
            print()
    return emit


def _print_odd(result: OddResult) -> None:
    if result.index > 1:
        print()
    print(f"{result.index}: {result.value}")
    print(f"Number of factors: {result.divisors}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bigprimes",
        description="Generate probable primes or odd numbers with divisor counts.",
    )
    parser.add_argument("bits", help="bit length, a multiple of 8 and at least 32")
    parser.add_argument("option", help="'prime' or 'odd'")
    parser.add_argument("count", nargs="?", default=None, help="number of results (default 1)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging on stderr")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s:%(levelname)s:%(threadName)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )

    try:
        bit_length = validate_bit_length(args.bits)
        mode = validate_mode(args.option)
    except ValueError as e:
        print(e, file=sys.stderr)
        return 1
    count = parse_count(args.count)

    print(f"BitLength: {bit_length} bits")
    start = time.perf_counter()

    if mode == "prime":
        generate_primes(bit_length, count, emit=_print_prime(count))
    else:
        generate_odd_numbers(bit_length, count, emit=_print_odd)

    elapsed = time.perf_counter() - start
    print(f"Time to Generate: {format_elapsed(elapsed)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
