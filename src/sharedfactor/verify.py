# src/sharedfactor/verify.py
from __future__ import annotations

from collections.abc import Iterable

import gmpy2


def residual_after(n: int, factors: Iterable[int]) -> int:
    """
    Divide `n` by each distinct factor for as long as the division is exact.
    Factors <= 1 carry no information and are ignored.
    """
    work = gmpy2.mpz(n)
    seen: set[int] = set()
    for f in factors:
        f = int(f)
        if f <= 1 or f in seen:
            continue
        seen.add(f)
        while work != 0:
            q, r = gmpy2.t_divmod(work, f)
            if r != 0:
                break
            work = q
    return int(work)


def is_fully_explained(n: int, factors: Iterable[int]) -> bool:
    """
    True when `n` is consumed entirely by its combined factors, i.e. it has no
    private factor left. An empty factor set explains nothing.
    """
    factors = list(factors)
    if not any(int(f) > 1 for f in factors):
        return False
    return residual_after(n, factors) == 1
