# src/sharedfactor/bench.py
from __future__ import annotations

import random
from time import perf_counter

import gmpy2


def gcd_pair(a: int, b: int) -> int:
    return int(gmpy2.gcd(a, b))


def time_gcd(bits_a: int, bits_b: int, rng: random.Random | None = None) -> tuple[int, float]:
    """
    gcd of two random integers of the given widths and the seconds it took.
    Shows that gcd cost follows operand size: a 256000-bit by 256-bit gcd is
    still fast, which is what makes the batch trick worthwhile.
    """
    if bits_a < 1 or bits_b < 1:
        raise ValueError("bit widths must be positive")
    rng = rng or random.Random()
    a = gmpy2.mpz(rng.getrandbits(bits_a))
    b = gmpy2.mpz(rng.getrandbits(bits_b))
    t0 = perf_counter()
    g = gmpy2.gcd(a, b)
    return int(g), perf_counter() - t0
