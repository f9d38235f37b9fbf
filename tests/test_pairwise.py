# tests/test_pairwise.py
"""
Tests for the pairwise gcd matrix and its strided worker pool.

Run: pytest -v
"""

from __future__ import annotations

import random
from math import gcd

import pytest

from sharedfactor.pairwise import ABSENT, PairwiseGCDMatrix, canonical_pair, compute_pairwise, stride_rows
from sharedfactor.utility import ArithmeticInvariantViolation, WorkerFailure

# ---------- helpers -----------------------------------------------------------


def _random_corpus(n: int, seed: int) -> list[int]:
    rng = random.Random(seed)
    small = [3, 5, 7, 11, 13, 17, 19, 23]
    out = []
    for _ in range(n):
        x = rng.getrandbits(48) | 1
        if rng.random() < 0.5:
            x *= rng.choice(small)
        out.append(x)
    return out


# ---------- matrix basics -----------------------------------------------------


def test_concrete_matrix_cells():
    m = compute_pairwise([15, 21, 35])
    assert m.get(0, 1) == 3
    assert m.get(0, 2) == 5
    assert m.get(1, 2) == 7
    # either order reads the canonical cell
    assert m.get(2, 0) == 5
    assert len(m) == 3
    assert list(m.items()) == [((0, 1), 3), ((0, 2), 5), ((1, 2), 7)]


def test_coprime_cells_are_one_not_absent():
    m = compute_pairwise([97, 101])
    assert m.get(0, 1) == 1
    assert m.get(0, 1) is not ABSENT
    assert list(m.nontrivial()) == []


def test_uncomputed_rows_are_absent():
    m = compute_pairwise([15, 21, 35, 77], rows=[1])
    assert m.get(0, 1) is ABSENT
    assert m.get(0, 3) is ABSENT
    assert m.get(1, 2) == 7
    assert m.get(1, 3) == 7
    assert not m.has_row(0)
    assert m.has_row(1)
    assert m.is_complete(rows=[1])
    assert not m.is_complete()


def test_absent_is_falsy_singleton():
    assert not ABSENT
    assert repr(ABSENT) == "ABSENT"
    assert type(ABSENT)() is ABSENT


def test_self_pair_rejected():
    with pytest.raises(ValueError):
        canonical_pair(3, 3)
    m = PairwiseGCDMatrix(4)
    with pytest.raises(ValueError):
        m.get(2, 2)


def test_out_of_range_index():
    m = PairwiseGCDMatrix(3)
    with pytest.raises(IndexError):
        m.get(0, 3)
    with pytest.raises(IndexError):
        compute_pairwise([1, 2, 3], rows=[5])


def test_empty_and_single():
    assert len(compute_pairwise([])) == 0
    m = compute_pairwise([42])
    assert len(m) == 0
    assert m.is_complete()


# ---------- partitioning ------------------------------------------------------

STRIDE_CASES = [
    (0, 1, 5, None, [0, 1, 2, 3, 4]),
    (1, 3, 10, None, [1, 4, 7]),
    (2, 3, 10, None, [2, 5, 8]),
    (0, 4, 3, None, [0]),
    (3, 4, 3, None, []),
    (1, 2, 10, [1, 2, 3, 9], [1, 3, 9]),
]


@pytest.mark.parametrize("worker,workers,size,rows,expected", STRIDE_CASES)
def test_stride_rows(worker, workers, size, rows, expected):
    assert stride_rows(worker, workers, size, rows) == expected


def test_strides_cover_every_row_exactly_once():
    size, workers = 23, 5
    owned = [i for t in range(workers) for i in stride_rows(t, workers, size)]
    assert sorted(owned) == list(range(size))


@pytest.mark.parametrize("workers", [1, 2, 3, 8, 50])
def test_worker_count_does_not_change_the_matrix(workers):
    numbers = _random_corpus(40, seed=11)
    reference = list(compute_pairwise(numbers, workers=1).items())
    got = list(compute_pairwise(numbers, workers=workers).items())
    assert got == reference
    assert len(got) == 40 * 39 // 2


def test_cells_match_math_gcd():
    numbers = _random_corpus(15, seed=3)
    m = compute_pairwise(numbers, workers=4)
    for (i, j), g in m.items():
        assert g == gcd(numbers[i], numbers[j])


def test_progress_reports_every_row():
    seen = []
    compute_pairwise(list(range(1, 11)), workers=3, progress=lambda done, total: seen.append((done, total)))
    assert len(seen) == 10
    assert max(seen) == (10, 10)
    assert {t for _, t in seen} == {10}


def test_invalid_worker_count():
    with pytest.raises(ValueError):
        compute_pairwise([1, 2], workers=0)


# ---------- failures ------------------------------------------------------------


@pytest.mark.parametrize("workers", [1, 4])
def test_zero_operand_fails_the_whole_phase(workers):
    numbers = [15, 21, 35, 77, 91, 0, 11, 13]
    with pytest.raises(WorkerFailure) as ei:
        compute_pairwise(numbers, workers=workers)
    err = ei.value
    assert err.phase == "pairwise"
    assert err.index == 5
    assert isinstance(err.__cause__, ArithmeticInvariantViolation)
