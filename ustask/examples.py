"""Small numeric workloads: a table fill, three independent series and a
midpoint integration of pi, with a command to run them."""

from __future__ import annotations

import argparse
import struct
import time
from concurrent.futures import ThreadPoolExecutor

SQUARE_TABLE_SIZE = 1000
SIMD_STEPS = 100_000_000
SIN_ARGUMENT = 3.14 / 6

_F32 = struct.Struct("f")


def _f32(value: float) -> float:
    """Round to single precision."""
    return _F32.unpack(_F32.pack(value))[0]


def square_table(n: int = SQUARE_TABLE_SIZE) -> list[float]:
    """Return ``[i * i for i in range(n)]`` as floats."""
    if n < 0:
        raise ValueError("n must not be negative")
    return [float(i * i) for i in range(n)]


def wallis_pi() -> float:
    """Approximate pi by 5000 factors of the Wallis product in single precision."""
    result = 1.0
    for n in range(2, 10001, 2):
        term = _f32(_f32(n * n) / _f32((n - 1) * (n + 1)))
        result = _f32(result * term)
    return 2 * result


def e_series() -> float:
    """Sum 1/k! in single precision until the term drops below 1e-10."""
    e = 1.0
    n = 1.0
    i = 1
    while (inverse := _f32(1 / n)) > 1e-10:
        e = _f32(e + inverse)
        i += 1
        n = _f32(i * n)
    return e


def sin_taylor(x: float = SIN_ARGUMENT) -> float:
    """Taylor series of sin(x), stopping once a term is within 1e-15."""
    negation = 1
    power = x
    factorial = 1.0
    total = x
    i = 1
    while True:
        factorial = factorial * (i + 1) * (i + 2)
        power *= x * x
        negation = -negation
        term = power / factorial * negation
        total += term
        i += 2
        if not abs(term) > 1e-15:
            return total


def integrate_pi(steps: int = SIMD_STEPS) -> float:
    """Midpoint rule for the integral of 4/(1+x^2) over [0, 1]."""
    if steps < 1:
        raise ValueError("steps must be positive")
    step = 1.0 / steps
    xs = ((i + 0.5) * step for i in range(steps))
    return sum(4.0 / (1.0 + x * x) for x in xs) * step


def run_sections() -> tuple[float, float, float]:
    """Compute pi, e and sin(3.14/6) concurrently; return them in that order."""
    with ThreadPoolExecutor(max_workers=3) as pool:
        futures = (pool.submit(wallis_pi), pool.submit(e_series), pool.submit(sin_taylor))
        pi, e, sine = (future.result() for future in futures)
    return pi, e, sine


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="ustask-examples")
    parser.add_argument("example", choices=("for", "sections", "simd"))
    parser.add_argument("--size", type=int, default=SQUARE_TABLE_SIZE)
    parser.add_argument("--steps", type=int, default=SIMD_STEPS)
    args = parser.parse_args(argv)

    if args.example == "for":
        square_table(args.size)
    elif args.example == "sections":
        pi, e, sine = run_sections()
        print(f"pi的值为：{pi:f}")
        print(f"e的值是：{e:f}")
        print(f"sin(π/6)的值是：{sine:f}")
    else:
        start = time.perf_counter_ns()
        pi = integrate_pi(args.steps)
        time_used = (time.perf_counter_ns() - start) // 1000
        print(f"time_used={time_used}")
        print(f"PI={pi:.6g}")
    return 0