# src/sharedfactor/combine.py
from __future__ import annotations

from collections.abc import Iterable

import gmpy2

from sharedfactor.utility import dec_str


def _token(x: int | str) -> str:
    """Canonical decimal token: '007', ' 7' and 7 all become '7'."""
    return dec_str(x if isinstance(x, int) else gmpy2.mpz(str(x).strip()))


class CombinedFactors:
    """
    Union of every factor discovered for one number, in order of first
    appearance. Adding a factor that is already present is a no-op.
    """

    def __init__(self, factors: Iterable[int | str] = ()):
        self._tokens: dict[str, None] = {}
        self.add(factors)

    def add(self, factors: Iterable[int | str]) -> None:
        for f in factors:
            self._tokens.setdefault(_token(f), None)

    @property
    def tokens(self) -> list[str]:
        return list(self._tokens)

    @property
    def values(self) -> list[int]:
        return [int(gmpy2.mpz(t)) for t in self._tokens]

    def joined(self, sep: str = ",") -> str:
        return sep.join(self._tokens)

    def __contains__(self, f: object) -> bool:
        try:
            return _token(f) in self._tokens
        except (TypeError, ValueError):
            return False

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self):
        return iter(self.values)

    def __bool__(self) -> bool:
        return bool(self._tokens)

    def __eq__(self, other: object) -> bool:
        # Order-insensitive: two unions are equal when they hold the same factors
        if isinstance(other, CombinedFactors):
            return set(self._tokens) == set(other._tokens)
        return NotImplemented

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"CombinedFactors({self.joined()!r})"


def combine_factor_lists(lists: Iterable[Iterable[int | str]]) -> CombinedFactors:
    combined = CombinedFactors()
    for lst in lists:
        combined.add(lst)
    return combined
