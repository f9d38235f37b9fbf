# src/sharedfactor/generate.py
"""
Test-corpus fabricators.

  random    odd integers of exactly `bits` bits; shared factors only by chance.
  insecure  products of primes drawn from ONE pool, so factors repeat all over
            the corpus (a broken generator: most numbers end up fully explained).
  secure    each number starts from its own prime of the first pool and is
            padded with primes of a second pool, so every number keeps a
            private factor.

These numbers exercise the engine. They are not keys and must not be used as such.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from pathlib import Path

from sympy import nextprime

from sharedfactor.corpus import load_corpus

logger = logging.getLogger(__name__)

GENERATOR_MODES = ("random", "insecure", "secure")


def _check(count: int, bits: int) -> None:
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")
    if bits < 2:
        raise ValueError(f"bits must be >= 2, got {bits}")


def random_odd_corpus(count: int, bits: int, rng: random.Random) -> list[int]:
    _check(count, bits)
    top = 1 << (bits - 1)
    return [rng.getrandbits(bits) | top | 1 for _ in range(count)]


def prime_pool(size: int, *, start: int = 2) -> list[int]:
    """`size` consecutive primes, the first one being the smallest prime >= start."""
    if size < 0:
        raise ValueError(f"pool size must be >= 0, got {size}")
    pool: list[int] = []
    p = int(nextprime(start - 1))
    while len(pool) < size:
        pool.append(p)
        p = int(nextprime(p))
    return pool


def load_primes(path: str | Path, max_count: int | None = None) -> list[int]:
    """Prime pool stored in the corpus format (one decimal per line)."""
    return list(load_corpus(path, max_count=max_count))


def _pad_to_bits(n: int, bits: int, pool: Sequence[int], rng: random.Random) -> int:
    while n.bit_length() < bits:
        n *= pool[rng.randrange(len(pool))]
    return n


def insecure_corpus(count: int, bits: int, pool: Sequence[int], rng: random.Random) -> list[int]:
    """
    Number 0 is pool[0]*pool[1]*... up to `bits`; number i (for every pool prime
    number 0 consumed) starts from pool[i-1]; the remainder are products of
    random pool primes.
    """
    _check(count, bits)
    if any(p < 2 for p in pool) or len(pool) < 2:
        raise ValueError("insecure generation needs a pool of at least two primes")
    if count == 0:
        return []

    first = pool[0]
    used = 1
    while first.bit_length() < bits:
        if used >= len(pool):
            raise ValueError(f"pool of {len(pool)} primes too small to reach {bits} bits")
        first *= pool[used]
        used += 1

    out = [first]
    for i in range(1, min(used, count)):
        out.append(_pad_to_bits(pool[i - 1], bits, pool, rng))
    while len(out) < count:
        out.append(_pad_to_bits(1, bits, pool, rng))

    logger.debug("insecure corpus: %d numbers, first built from %d pool primes", len(out), used)
    return out


def secure_corpus(count: int, bits: int, pool1: Sequence[int], pool2: Sequence[int],
                  rng: random.Random) -> list[int]:
    """Number i = pool1[i] times random pool2 primes until it reaches `bits`."""
    _check(count, bits)
    if len(pool1) < count:
        raise ValueError(f"first pool holds {len(pool1)} primes, need {count}")
    if not pool2 or any(p < 2 for p in pool2):
        raise ValueError("second pool must hold primes")
    return [_pad_to_bits(pool1[i], bits, pool2, rng) for i in range(count)]


def generate(mode: str, count: int, bits: int, *, seed: int | None = None, pool_size: int = 1000,
             primes: Sequence[int] | None = None, primes2: Sequence[int] | None = None) -> list[int]:
    """
    One entry point for the three generators.

    Missing pools are synthesized with sympy: small consecutive primes for the
    shared pool, and for `secure` a private pool of primes around half the
    target width.
    """
    if mode not in GENERATOR_MODES:
        raise ValueError(f"mode must be one of {GENERATOR_MODES}, got {mode!r}")
    rng = random.Random(seed)

    if mode == "random":
        return random_odd_corpus(count, bits, rng)

    if mode == "insecure":
        pool = list(primes) if primes else prime_pool(pool_size, start=3)
        return insecure_corpus(count, bits, pool, rng)

    if primes:
        pool1 = list(primes)
    else:
        half = max(2, bits // 2)
        pool1 = prime_pool(count, start=(1 << (half - 1)) + rng.getrandbits(half - 1))
    pool2 = list(primes2) if primes2 else prime_pool(pool_size, start=3)
    return secure_corpus(count, bits, pool1, pool2, rng)
