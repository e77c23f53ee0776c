#!/usr/bin/env python3
"""
Nine Decimal Digits of π at an Arbitrary Position
=================================================

This module computes blocks of nine decimal digits of π starting at any
position, without computing the preceding digits. It follows Simon Plouffe's
method ("On the computation of the n'th decimal digit of various
transcendental numbers", 1996) as improved by Fabrice Bellard to run in
O(n²) time with very little memory.

Formula:
    π + 3 = Σ_{k=1}^∞ k·2^k·k!² / (2k)!

    The sum is truncated to N = ⌊(n+20)·log₂10⌋ terms. For every odd prime
    a ≤ 2N, the partial sum is reduced modulo the prime power a^vmax, which
    is coprime to everything except its own prime. Each modular residue is
    scaled by 10^(n-1) and folded into a floating-point fraction:

        {10^(n-1)·π} ≈ Σ_a  (s_a · 10^(n-1) mod a^vmax) / a^vmax   (mod 1)

Key insight: the integer arithmetic happens modulo small prime powers, so
the only floating-point state is a single accumulator in [0, 1).

Precision: the accumulator collects one rounding error per prime, so the
digits are reliable for positions into the low millions only. Beyond that,
blocks may silently be wrong.

Complexity: O(N²/log N) per block.
"""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Callable, Iterator
import argparse
import math
import time

__all__ = [
    'mul_mod',
    'inv_mod',
    'pow_mod',
    'not_prime',
    'next_prime',
    'odd_primes',
    'series_length',
    'nine_digits_at',
    'format_block',
    'extract_digits',
    'calc_pi',
    'compute_pi_reference',
    'verify_against_reference',
    'validate_known_blocks',
    'benchmark',
]

BLOCK_SIZE = 9

# Moduli are kept below 2^31 so every product fits in 62 bits.
MAX_MODULUS = 2 ** 31 - 1

# Largest digit count the command line accepts.
MAX_DIGITS = 9_000_000

ProgressCallback = Callable[[int], bool]


# ---------------------------------------------------------------------------
# Modular arithmetic
# ---------------------------------------------------------------------------

def mul_mod(a: int, b: int, m: int) -> int:
    """Return (a·b) mod m."""
    return (a * b) % m


def inv_mod(x: int, y: int) -> int:
    """
    Compute the inverse of x modulo y with the extended Euclidean algorithm.

    Args:
        x: The value to invert (must be coprime to y)
        y: The modulus

    Returns:
        r in [0, y) with (r·x) mod y == 1
    """
    u, v = x, y
    a, c = 0, 1

    while u != 0:
        q = v // u
        c, a = a - q * c, c
        u, v = v - q * u, u

    # v now holds gcd(x, y)
    assert v == 1, f"{x} is not invertible modulo {y}"

    return a % y


def pow_mod(a: int, b: int, m: int) -> int:
    """
    Compute a^b mod m using right-to-left binary exponentiation.

    Time complexity: O(log b) multiplications

    Args:
        a: The base
        b: The exponent (must be non-negative)
        m: The modulus (must be positive)

    Returns:
        a^b mod m, in [0, m)
    """
    result = 1 % m
    base = a % m

    while b > 0:
        if b & 1:
            result = mul_mod(result, base, m)
        b >>= 1
        base = mul_mod(base, base, m)

    return result


# ---------------------------------------------------------------------------
# Primes
# ---------------------------------------------------------------------------

def not_prime(n: int) -> bool:
    """Return True if n is composite, by trial division with odd numbers."""
    if n & 1 == 0:
        return True

    for i in range(3, math.isqrt(n) + 1, 2):
        if n % i == 0:
            return True

    return False


def next_prime(n: int) -> int:
    """Return the smallest odd prime greater than n."""
    n += 1
    while not_prime(n):
        n += 1
    return n


def odd_primes(limit: int) -> Iterator[int]:
    """
    Yield the odd primes 3, 5, 7, ... up to and including limit.

    Example:
        >>> list(odd_primes(20))
        [3, 5, 7, 11, 13, 17, 19]
    """
    a = 3
    while a <= limit:
        yield a
        a = next_prime(a)


# ---------------------------------------------------------------------------
# Digit extraction
# ---------------------------------------------------------------------------

def series_length(n: int) -> int:
    """Number of series terms needed for the block at position n."""
    return int((n + 20) * math.log(10) / math.log(2))


def _prime_term(a: int, n: int, N: int) -> float:
    """
    Contribution of the prime a to {10^(n-1)·π}, as a fraction in [0, 1).

    The factors of a are stripped from every numerator k and every
    denominator (2k-1); the net valuation v tells how many powers of a
    the running product owes. Only terms with v > 0 survive modulo a^vmax.
    """
    vmax = int(math.log(2 * N) / math.log(a))
    av = a ** vmax

    if av > MAX_MODULUS:
        raise OverflowError(
            f"modulus {av} exceeds {MAX_MODULUS}; position {n} is too large"
        )
    if av == 1:
        return 0.0

    s = 0
    num = 1
    den = 1
    v = 0
    kq = 1   # k mod a, counted from 1
    kq2 = 1  # (2k-1) mod a, counted from 1

    for k in range(1, N + 1):
        t = k
        if kq >= a:
            while True:
                t //= a
                v -= 1
                if t % a:
                    break
            kq = 0
        kq += 1
        num = mul_mod(num, t, av)

        t = 2 * k - 1
        if kq2 >= a:
            if kq2 == a:
                while True:
                    t //= a
                    v += 1
                    if t % a:
                        break
            kq2 -= a
        den = mul_mod(den, t, av)
        kq2 += 2

        if v > 0:
            t = inv_mod(den, av)
            t = mul_mod(t, num, av)
            t = mul_mod(t, k, av)
            for _ in range(v, vmax):
                t = mul_mod(t, a, av)
            s += t
            if s >= av:
                s -= av

    t = pow_mod(10, n - 1, av)
    return mul_mod(s, t, av) / av


def nine_digits_at(n: int) -> int:
    """
    Compute the nine decimal digits of π starting at position n.

    π = 3.141592653 589793238 ...
          ^-position 1
                    ^-position 10

    Args:
        n: Position of the first digit (1-indexed, must be ≥ 1)

    Returns:
        The nine digits as an integer in [0, 10^9). Leading zeros are
        implied; use format_block() to render them.

    Raises:
        ValueError: If n < 1
        OverflowError: If n is so large the prime moduli exceed MAX_MODULUS

    Examples:
        >>> nine_digits_at(1)
        141592653
        >>> nine_digits_at(10)
        589793238
    """
    if n < 1:
        raise ValueError(f"n must be at least 1, got {n}")

    N = series_length(n)
    total = 0.0

    for a in odd_primes(2 * N):
        total = math.fmod(total + _prime_term(a, n, N), 1.0)

    return int(total * 1e9)


def format_block(value: int, count: int = BLOCK_SIZE) -> str:
    """Render a block as nine zero-padded digits and keep the first count."""
    return f"{value:09d}"[:count]


def extract_digits(start: int, count: int) -> str:
    """
    Extract a run of decimal digits of π.

    Args:
        start: First position (1-indexed)
        count: Number of digits to return

    Returns:
        The digits as a string, without the leading "3."

    Example:
        >>> extract_digits(1, 12)
        '141592653589'
    """
    if start < 1:
        raise ValueError(f"start must be at least 1, got {start}")
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")

    blocks = []
    for offset in range(0, count, BLOCK_SIZE):
        take = min(count - offset, BLOCK_SIZE)
        blocks.append(format_block(nine_digits_at(start + offset), take))

    return ''.join(blocks)


def calc_pi(digits: int, progress: ProgressCallback | None = None) -> str | None:
    """
    Compute π as "3." followed by the requested number of decimals.

    The digits are assembled nine at a time. After every block, progress is
    called with the number of decimals produced so far; if it returns a
    false value the calculation stops.

    Args:
        digits: Number of decimals after the point (0 or less gives "3.")
        progress: Optional callback, progress(done) -> keep_going

    Returns:
        The digit string, or None if progress cancelled the calculation
    """
    pi = ['3.']

    for offset in range(0, digits, BLOCK_SIZE):
        count = min(digits - offset, BLOCK_SIZE)
        pi.append(format_block(nine_digits_at(offset + 1), count))

        if progress is not None and not progress(offset + count):
            return None

    return ''.join(pi)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

def compute_pi_reference(digits: int) -> str:
    """
    Compute π using Machin's formula for verification.

    π = 4(4·arctan(1/5) - arctan(1/239))

    This is a straightforward O(N²) Decimal computation used only for
    testing. The result is truncated, not rounded, to the requested number
    of decimals.
    """
    with localcontext() as ctx:
        ctx.prec = digits + 30
        eps = Decimal(10) ** (-(digits + 20))

        def arctan(x: Decimal) -> Decimal:
            result = Decimal(0)
            power = x
            x_sq = x * x
            k = 0
            while True:
                term = power / Decimal(2 * k + 1)
                result += term if k % 2 == 0 else -term
                if term < eps:
                    break
                power *= x_sq
                k += 1
            return result

        pi = 4 * (4 * arctan(Decimal(1) / 5) - arctan(Decimal(1) / 239))
        whole, frac = str(pi).split('.')

    return f"{whole}.{frac[:digits]}"


def verify_against_reference(max_digits: int = 100, verbose: bool = True) -> bool:
    """
    Verify the block extractor against a reference π computation.

    Args:
        max_digits: Number of decimals to verify (default 100)
        verbose: Whether to print progress

    Returns:
        True if all blocks match, False otherwise
    """
    if verbose:
        print(f"Computing π to {max_digits} digits for verification...")

    expected = compute_pi_reference(max_digits)[2:]

    if verbose:
        print(f"π = 3.{expected}")
        print()
        print("Verifying nine-digit block extraction:")
        print("-" * 60)

    all_correct = True

    for offset in range(0, max_digits, BLOCK_SIZE):
        count = min(max_digits - offset, BLOCK_SIZE)
        want = expected[offset:offset + count]
        got = format_block(nine_digits_at(offset + 1), count)

        if got != want:
            all_correct = False
            if verbose:
                print(f"block {offset + 1:>6}: {got} (expected {want}) MISMATCH")
        elif verbose:
            print(f"block {offset + 1:>6}: {got} ✓")

    if verbose:
        print("-" * 60)
        if all_correct:
            print("All blocks verified correctly.")
        else:
            print("Some blocks were incorrect.")

    return all_correct


def benchmark(positions: list[int] | None = None,
              verbose: bool = True) -> dict[int, tuple[int, float]]:
    """
    Benchmark block extraction at various positions.

    Args:
        positions: Positions to test (default: [1, 10, 100, 500, 1000])
        verbose: Whether to print results

    Returns:
        Dictionary mapping position -> (block, time_in_seconds)
    """
    if positions is None:
        positions = [1, 10, 100, 500, 1000]

    results = {}

    if verbose:
        print("\nBenchmark: Nine-Digit Block Extraction")
        print("-" * 60)
        print(f"{'Position':>10} | {'Block':>10} | {'Time (s)':>12}")
        print("-" * 60)

    for n in positions:
        start = time.perf_counter()
        block = nine_digits_at(n)
        elapsed = time.perf_counter() - start

        results[n] = (block, elapsed)

        if verbose:
            print(f"{n:>10} | {format_block(block):>10} | {elapsed:>12.4f}")

    if verbose:
        print("-" * 60)

    return results


# Known correct blocks at various positions for validation
KNOWN_BLOCKS = {
    1: 141592653,
    10: 589793238,
    19: 462643383,
    28: 279502884,
    37: 197169399,
    46: 375105820,
    55: 974944592,
    100: 982148086,
}


def validate_known_blocks(verbose: bool = True) -> bool:
    """
    Validate against known correct blocks at various positions.

    Returns:
        True if all known blocks match
    """
    all_correct = True

    if verbose:
        print("Validating against known blocks:")
        print("-" * 50)

    for pos, expected in sorted(KNOWN_BLOCKS.items()):
        computed = nine_digits_at(pos)
        correct = computed == expected
        all_correct = all_correct and correct

        if verbose:
            status = "✓" if correct else "FAIL"
            print(f"  Position {pos:>5}: {format_block(computed)} "
                  f"(expected {format_block(expected)}) {status}")

    if verbose:
        print("-" * 50)

    return all_correct


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Compute decimal digits of π nine at a time.")
    p.add_argument("digits", type=int, nargs="?", default=100,
                   help="Number of decimals to print (default 100)")
    p.add_argument("--verify", type=int, default=0, metavar="N",
                   help="Check the first N decimals against Machin's formula")
    p.add_argument("--known", action="store_true",
                   help="Check the table of known blocks")
    p.add_argument("--benchmark", action="store_true",
                   help="Time block extraction at a few positions")
    p.add_argument("--background", action="store_true",
                   help="Run the calculation on a worker thread")
    p.add_argument("--quiet", action="store_true",
                   help="Only print the digits")
    args = p.parse_args(argv)

    if not 1 <= args.digits <= MAX_DIGITS:
        p.error(f"digits must be between 1 and {MAX_DIGITS}, got {args.digits}")

    return args


def main(argv: list[str] | None = None) -> int:
    """Main entry point for command-line usage."""
    args = _parse_args(argv)
    verbose = not args.quiet

    if args.verify and not verify_against_reference(args.verify, verbose):
        return 1
    if args.known and not validate_known_blocks(verbose):
        return 1
    if args.benchmark:
        benchmark(verbose=verbose)

    def report(done: int) -> bool:
        if verbose:
            print(f"\r{done}/{args.digits} digits", end="", flush=True)
        return True

    if args.background:
        from pi_worker import PiCalculation

        with PiCalculation(on_progress=report) as calculation:
            calculation.start(args.digits)
            pi = calculation.wait()
    else:
        pi = calc_pi(args.digits, report)

    if verbose:
        print()
    print(pi)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
