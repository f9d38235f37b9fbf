# src/sharedfactor/pairwise.py
"""
Pairwise gcd matrix over canonical pairs (i < j).

Rows are split across W worker threads by striding: worker t owns rows
t, t+W, t+2W, ... and fills every column j > i of each row it owns. Each row
is a separate dict that only its owner ever writes, so the matrix needs no
lock. The coordinator joins all workers before anyone reads it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Sequence
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from time import perf_counter

import gmpy2

from sharedfactor.utility import ArithmeticInvariantViolation, WorkerFailure

logger = logging.getLogger(__name__)


class _Absent:
    """Marker for a cell that was never computed (never confused with gcd 1)."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


def canonical_pair(i: int, j: int) -> tuple[int, int]:
    if i == j:
        raise ValueError(f"self pair ({i}, {j}) has no meaning here")
    return (i, j) if i < j else (j, i)


def stride_rows(worker: int, workers: int, size: int, rows: Iterable[int] | None = None) -> list[int]:
    """Rows owned by `worker` out of `workers`, optionally restricted to `rows`."""
    owned = range(worker, size, workers)
    if rows is None:
        return list(owned)
    wanted = set(rows)
    return [i for i in owned if i in wanted]


class PairwiseGCDMatrix:
    def __init__(self, size: int):
        if size < 0:
            raise ValueError(f"matrix size must be >= 0, got {size}")
        self.size = size
        self._rows: list[dict[int, int] | None] = [None] * size

    def _check(self, i: int) -> None:
        if not 0 <= i < self.size:
            raise IndexError(f"index {i} outside [0, {self.size})")

    def row(self, i: int) -> dict[int, int]:
        """Writable row i; created on first use. Only the row's owner may call this."""
        self._check(i)
        r = self._rows[i]
        if r is None:
            r = {}
            self._rows[i] = r
        return r

    def get(self, i: int, j: int) -> int | _Absent:
        i, j = canonical_pair(i, j)
        self._check(i)
        self._check(j)
        r = self._rows[i]
        if r is None:
            return ABSENT
        return r.get(j, ABSENT)

    def has_row(self, i: int) -> bool:
        self._check(i)
        return self._rows[i] is not None

    def is_complete(self, rows: Iterable[int] | None = None) -> bool:
        """True when every canonical cell of `rows` (default: all) is present."""
        for i in (range(self.size) if rows is None else rows):
            r = self._rows[i]
            expected = self.size - i - 1
            if expected == 0:
                continue
            if r is None or len(r) != expected:
                return False
        return True

    def items(self) -> Iterator[tuple[tuple[int, int], int]]:
        """Computed cells in row-major canonical order."""
        for i, r in enumerate(self._rows):
            if r is None:
                continue
            for j in sorted(r):
                yield (i, j), r[j]

    def nontrivial(self) -> Iterator[tuple[tuple[int, int], int]]:
        return ((k, g) for k, g in self.items() if g > 1)

    def __len__(self) -> int:
        return sum(len(r) for r in self._rows if r is not None)


def _fill_rows(
    numbers: Sequence[int],
    matrix: PairwiseGCDMatrix,
    owned: list[int],
    stop: threading.Event,
    tick: Callable[[int], None] | None,
) -> int:
    # Worker-private mpz copies; nothing here is shared with other workers
    local = [gmpy2.mpz(n) for n in numbers]
    size = len(local)
    done = 0
    for i in owned:
        if stop.is_set():
            break
        a = local[i]
        if a == 0:
            raise ArithmeticInvariantViolation("zero operand in pairwise gcd", phase="pairwise", index=i)
        row = matrix.row(i)
        for j in range(i + 1, size):
            b = local[j]
            if b == 0:
                raise ArithmeticInvariantViolation("zero operand in pairwise gcd", phase="pairwise", index=j)
            row[j] = int(gmpy2.gcd(a, b))
        done += 1
        if tick is not None:
            tick(i)
    return done


def compute_pairwise(
    numbers: Sequence[int],
    *,
    workers: int = 1,
    rows: Iterable[int] | None = None,
    progress: Callable[[int, int], None] | None = None,
) -> PairwiseGCDMatrix:
    """
    Fill gcd(numbers[i], numbers[j]) for every i in `rows` (default: all) and j > i.

    `progress(done_rows, total_rows)` is called from worker threads; it must be
    cheap and thread-tolerant. Any worker failure stops the others and raises
    WorkerFailure; no partially filled matrix is ever returned.
    """
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")

    size = len(numbers)
    matrix = PairwiseGCDMatrix(size)
    row_set = None if rows is None else sorted(set(rows))
    if row_set is not None:
        for i in row_set:
            matrix._check(i)

    plan = [stride_rows(t, workers, size, row_set) for t in range(workers)]
    total = sum(len(p) for p in plan)
    t0 = perf_counter()

    tick = None
    if progress is not None:
        counter = {"done": 0}
        lock = threading.Lock()  # guards the progress counter only, never the matrix

        def tick(_row: int) -> None:
            with lock:
                counter["done"] += 1
                n = counter["done"]
            progress(n, total)

    stop = threading.Event()
    if workers == 1:
        try:
            _fill_rows(numbers, matrix, plan[0], stop, tick)
        except Exception as e:
            raise _as_worker_failure(e, 0) from e
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gcd-row") as pool:
            futures = {
                pool.submit(_fill_rows, numbers, matrix, owned, stop, tick): t
                for t, owned in enumerate(plan)
                if owned
            }
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            failed = [f for f in done if f.exception() is not None]
            if failed:
                stop.set()
                # wait for the remaining workers before abandoning the matrix
                wait(futures)
                first = failed[0]
                e = first.exception()
                raise _as_worker_failure(e, futures[first]) from e

    logger.debug(
        "pairwise: %d cells over %d rows with %d worker(s) in %.3fs",
        len(matrix), total, workers, perf_counter() - t0,
    )
    return matrix


def _as_worker_failure(e: BaseException, worker: int) -> WorkerFailure:
    index = getattr(e, "index", None)
    return WorkerFailure(f"worker {worker}: {type(e).__name__}: {e}", phase="pairwise", index=index)
