# src/sharedfactor/extractor.py
"""
Batch GCD: for every n_i in the corpus, gcd(n_i, product of all the others).

Two renditions with identical results:

  shared_gcds       one running product P, then exact P / n_i and a gcd per index.
  shared_gcds_tree  product tree + remainder tree (P mod n_i^2), which keeps the
                    operands of the per-index step at about twice the size of n_i.

A result of 1 means n_i shares nothing with the rest of the corpus. A result
above 1 says n_i shares *something* with *someone*; which partner it is can only
be told by the pairwise matrix.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from time import perf_counter

import gmpy2

from sharedfactor.utility import ArithmeticInvariantViolation

logger = logging.getLogger(__name__)


def _check_operands(numbers: Sequence[int]) -> list[gmpy2.mpz]:
    out = []
    for i, n in enumerate(numbers):
        if n == 0:
            raise ArithmeticInvariantViolation("zero operand; the corpus product would vanish", phase="batch", index=i)
        out.append(gmpy2.mpz(n))
    return out


def corpus_product(numbers: Sequence[int]) -> gmpy2.mpz:
    p = gmpy2.mpz(1)
    for n in numbers:
        p = gmpy2.mul(p, n)
    return p


def shared_gcds(numbers: Sequence[int]) -> list[int]:
    """Per-index gcd with the rest of the corpus via one running product."""
    if not numbers:
        return []
    xs = _check_operands(numbers)

    t0 = perf_counter()
    product = corpus_product(xs)
    logger.debug("corpus product: %d numbers, %d bits (%.3fs)", len(xs), product.bit_length(), perf_counter() - t0)

    out: list[int] = []
    for i, n in enumerate(xs):
        rest, rem = gmpy2.t_divmod(product, n)
        if rem != 0:
            raise ArithmeticInvariantViolation(
                f"corpus product not divisible by its own member (remainder {rem})",
                phase="batch",
                index=i,
            )
        out.append(int(gmpy2.gcd(n, rest)))

    logger.debug("batch gcds done in %.3fs, %d nontrivial", perf_counter() - t0, sum(1 for g in out if g > 1))
    return out


# --- product / remainder tree ---------------------------------------------------

def product_tree(xs: Sequence[gmpy2.mpz]) -> list[list[gmpy2.mpz]]:
    """Leaves first; the last level holds the single full product."""
    tree = [list(xs)]
    level = tree[0]
    while len(level) > 1:
        level = [
            gmpy2.mul(level[k], level[k + 1]) if k + 1 < len(level) else level[k]
            for k in range(0, len(level), 2)
        ]
        tree.append(level)
    return tree


def shared_gcds_tree(numbers: Sequence[int]) -> list[int]:
    """Same contract as shared_gcds, computed through a remainder tree."""
    if not numbers:
        return []
    xs = _check_operands(numbers)

    t0 = perf_counter()
    tree = product_tree(xs)
    logger.debug("product tree: %d levels (%.3fs)", len(tree), perf_counter() - t0)

    rems = tree.pop()
    while tree:
        level = tree.pop()
        rems = [gmpy2.f_mod(rems[k // 2], gmpy2.mul(x, x)) for k, x in enumerate(level)]

    out: list[int] = []
    for i, (r, n) in enumerate(zip(rems, xs)):
        quotient, rem = gmpy2.t_divmod(r, n)
        if rem != 0:
            raise ArithmeticInvariantViolation(
                f"remainder tree value not divisible by its leaf (remainder {rem})",
                phase="batch",
                index=i,
            )
        out.append(int(gmpy2.gcd(quotient, n)))

    logger.debug("tree gcds done in %.3fs", perf_counter() - t0)
    return out
