# src/sharedfactor/corpus.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from sharedfactor.utility import AllocationFailure, MalformedInput, dec_str, parse_decimal

logger = logging.getLogger(__name__)

ON_MALFORMED_CHOICES = ("abort", "skip")


@dataclass(frozen=True)
class Corpus(Sequence):
    """
    Ordered, read-only sequence of the integers under analysis.

    Worker threads receive the same instance; nothing ever mutates it.
    """
    values: tuple[int, ...]

    @classmethod
    def from_iterable(cls, values: Iterable[int]) -> Corpus:
        out = []
        for v in values:
            if not isinstance(v, int) or isinstance(v, bool):
                v = parse_decimal(v) if isinstance(v, str) else int(v)
            if v < 0:
                raise ValueError(f"corpus values must be nonnegative, got {v}")
            out.append(v)
        return cls(tuple(out))

    def __getitem__(self, i):
        return self.values[i]

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)


def read_corpus(stream: IO[str], *, max_count: int | None = None, on_malformed: str = "abort") -> Corpus:
    """
    Read newline-delimited decimal integers from a text stream.

    - At most `max_count` values are kept (None = no cap); later lines are
      ignored with a warning.
    - Blank lines are skipped; surrounding whitespace is not significant.
    - A malformed line either aborts (MalformedInput carrying the 1-based line
      number) or is dropped with a warning, depending on `on_malformed`.
    """
    if on_malformed not in ON_MALFORMED_CHOICES:
        raise ValueError(f"on_malformed must be one of {ON_MALFORMED_CHOICES}, got {on_malformed!r}")
    if max_count is not None and max_count < 0:
        raise AllocationFailure(f"cannot size a corpus for {max_count} numbers", phase="load")

    values: list[int] = []
    skipped = 0
    try:
        for line_no, raw_line in enumerate(stream, start=1):
            line = raw_line.strip()
            if not line:
                continue
            if max_count is not None and len(values) >= max_count:
                logger.warning("corpus capped at %d numbers; line %d and later were not read", max_count, line_no)
                break
            try:
                values.append(parse_decimal(line))
            except ValueError as e:
                if on_malformed == "abort":
                    raise MalformedInput(str(e), phase="load", index=line_no) from None
                skipped += 1
                logger.warning("skipping malformed corpus line %d: %s", line_no, e)
    except MemoryError:
        raise AllocationFailure(f"out of memory after {len(values)} numbers", phase="load") from None

    if skipped:
        logger.info("read %d numbers, skipped %d malformed line(s)", len(values), skipped)
    else:
        logger.debug("read %d numbers", len(values))
    return Corpus(tuple(values))


def load_corpus(path: str | Path, *, max_count: int | None = None, on_malformed: str = "abort") -> Corpus:
    with Path(path).expanduser().open("r", encoding="utf-8") as fh:
        return read_corpus(fh, max_count=max_count, on_malformed=on_malformed)


def write_corpus(values: Iterable[int], path: str | Path) -> int:
    """Write values one per line; returns the number written."""
    p = Path(path).expanduser()
    if p.parent:
        p.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with p.open("w", encoding="utf-8") as fh:
        for v in values:
            fh.write(dec_str(v) + "\n")
            count += 1
    return count
