# tests/test_generate.py
"""
Tests for the corpus fabricators and the gcd timing probe.

Run: pytest -v
"""

from __future__ import annotations

import random

import pytest
from sympy import isprime

from sharedfactor.bench import gcd_pair, time_gcd
from sharedfactor.corpus import write_corpus
from sharedfactor.generate import (
    generate,
    insecure_corpus,
    load_primes,
    prime_pool,
    random_odd_corpus,
    secure_corpus,
)

# ---------- prime pools ---------------------------------------------------------


def test_prime_pool():
    assert prime_pool(5, start=3) == [3, 5, 7, 11, 13]
    assert prime_pool(3, start=14) == [17, 19, 23]
    assert prime_pool(3, start=17) == [17, 19, 23]
    assert prime_pool(0) == []


def test_load_primes(tmp_path):
    path = tmp_path / "primes.txt"
    write_corpus([3, 5, 7, 11], path)
    assert load_primes(path) == [3, 5, 7, 11]
    assert load_primes(path, max_count=2) == [3, 5]


# ---------- random --------------------------------------------------------------


def test_random_corpus_width_and_parity():
    values = random_odd_corpus(50, 128, random.Random(1))
    assert len(values) == 50
    assert all(v.bit_length() == 128 for v in values)
    assert all(v % 2 == 1 for v in values)


def test_seed_makes_output_reproducible():
    assert generate("random", 10, 64, seed=42) == generate("random", 10, 64, seed=42)
    assert generate("random", 10, 64, seed=42) != generate("random", 10, 64, seed=43)


# ---------- insecure ------------------------------------------------------------


def test_insecure_first_number_uses_consecutive_pool_primes():
    pool = prime_pool(30, start=3)
    values = insecure_corpus(10, 16, pool, random.Random(0))
    assert values[0] == 3 * 5 * 7 * 11 * 13 * 17
    # numbers 1..5 start from pool[0..4]
    for i, p in enumerate(pool[:5], start=1):
        assert values[i] % p == 0
    assert all(v.bit_length() >= 16 for v in values)
    assert len(values) == 10


def test_insecure_numbers_only_use_pool_primes():
    pool = prime_pool(20, start=3)
    for v in insecure_corpus(20, 40, pool, random.Random(3)):
        for p in pool:
            while v % p == 0:
                v //= p
        assert v == 1


@pytest.mark.parametrize("pool", [[3], [3, 5, 7]])
def test_insecure_pool_too_small(pool):
    with pytest.raises(ValueError):
        insecure_corpus(5, 64, pool, random.Random(0))


def test_insecure_zero_count():
    assert insecure_corpus(0, 64, [3, 5], random.Random(0)) == []


# ---------- secure --------------------------------------------------------------


def test_secure_numbers_keep_their_private_prime():
    pool1 = prime_pool(8, start=10**9)
    pool2 = prime_pool(10, start=3)
    values = secure_corpus(8, 80, pool1, pool2, random.Random(5))
    for v, p in zip(values, pool1):
        assert v % p == 0
        assert v.bit_length() >= 80
        rest = v // p
        for q in pool2:
            while rest % q == 0:
                rest //= q
        assert rest == 1


def test_secure_needs_enough_private_primes():
    with pytest.raises(ValueError):
        secure_corpus(5, 64, [101, 103], [3, 5], random.Random(0))


def test_generate_secure_synthesizes_pools():
    values = generate("secure", 6, 64, seed=9, pool_size=10)
    assert len(values) == 6
    assert all(v.bit_length() >= 64 for v in values)


# ---------- argument checks -----------------------------------------------------


@pytest.mark.parametrize("mode,count,bits", [
    ("weird", 5, 64),
    ("random", -1, 64),
    ("random", 5, 1),
    ("insecure", 5, 1),
])
def test_generate_rejects(mode, count, bits):
    with pytest.raises(ValueError):
        generate(mode, count, bits, seed=0)


# ---------- gcd probe -----------------------------------------------------------


def test_gcd_pair():
    assert gcd_pair(12, 18) == 6
    assert gcd_pair(97, 101) == 1
    assert gcd_pair(0, 5) == 5
    p = 2**127 - 1
    assert isprime(p)
    assert gcd_pair(p * 3, p * 5) == p


def test_time_gcd():
    g, secs = time_gcd(4096, 256, random.Random(1))
    assert g >= 1
    assert secs >= 0.0
    with pytest.raises(ValueError):
        time_gcd(0, 256)
