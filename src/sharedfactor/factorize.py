# src/sharedfactor/factorize.py
"""
Trial division of shared gcd values into their distinct prime factors.

Shared factors are small or reused primes by hypothesis, so plain trial
division is enough: 2 is removed first, then odd candidates 3, 5, 7, ...,
each confirmed factor divided out completely before moving on.

Modes:
  full  no width limit; cost grows with the size of the smallest factor.
  word  legacy/fast: a gcd wider than WORD_BITS is not factored at all and
        contributes nothing (its factors are silently missed).

`ceiling` bounds the largest candidate tried. If the ceiling is reached with a
residual that could still be composite, that residual is dropped (and logged),
so the owning number can never be declared fully explained by it.
"""

from __future__ import annotations

import logging

import gmpy2

logger = logging.getLogger(__name__)

FACTOR_MODES = ("full", "word")
DEFAULT_WORD_BITS = 64


def prime_factors(value: int, *, mode: str = "full", ceiling: int | None = None,
                  word_bits: int = DEFAULT_WORD_BITS) -> list[int]:
    """
    Return the distinct primes dividing `value`, in ascending order.

    >>> prime_factors(1)
    []
    >>> prime_factors(360)
    [2, 3, 5]
    """
    if mode not in FACTOR_MODES:
        raise ValueError(f"factor mode must be one of {FACTOR_MODES}, got {mode!r}")
    if value < 1:
        raise ValueError(f"cannot factor {value}; gcd values are >= 1")
    if ceiling is not None and ceiling < 2:
        raise ValueError(f"candidate ceiling must be >= 2 or None, got {ceiling}")

    if mode == "word" and value >= (1 << word_bits):
        logger.debug("word mode: gcd of %d bits exceeds %d-bit word, not factored", value.bit_length(), word_bits)
        return []

    n = gmpy2.mpz(value)
    factors: list[int] = []

    if n % 2 == 0:
        factors.append(2)
        while n % 2 == 0:
            n //= 2

    i = 3
    while i * i <= n:
        if ceiling is not None and i > ceiling:
            logger.warning(
                "trial division stopped at ceiling %d; unresolved residual of %d bits dropped",
                ceiling, n.bit_length(),
            )
            return factors
        if n % i == 0:
            factors.append(i)
            while n % i == 0:
                n //= i
        i += 2

    # No candidate up to sqrt(n) divides it, so what is left is prime
    if n > 1:
        factors.append(int(n))
    return factors
