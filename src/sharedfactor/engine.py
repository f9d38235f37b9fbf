# src/sharedfactor/engine.py
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from time import perf_counter

from sharedfactor.combine import CombinedFactors
from sharedfactor.corpus import Corpus
from sharedfactor.extractor import shared_gcds, shared_gcds_tree
from sharedfactor.factorize import DEFAULT_WORD_BITS, FACTOR_MODES, prime_factors
from sharedfactor.pairwise import PairwiseGCDMatrix, compute_pairwise
from sharedfactor.runtime import CFG
from sharedfactor.utility import EngineError
from sharedfactor.verify import is_fully_explained

logger = logging.getLogger(__name__)

MSG_ALL_PRIVATE = "every number has at least one unexplained (private) factor"
MSG_SOME_EXPLAINED = "at least one number is fully explained by shared factors"

DEFAULT_CEILING = 1_000_000


class Strategy(str, Enum):
    BATCH = "batch"
    BATCH_TREE = "batch-tree"
    PAIRWISE = "pairwise"
    PAIRWISE_THREADED = "pairwise-threaded"

    @classmethod
    def parse(cls, value: str | Strategy) -> Strategy:
        if isinstance(value, Strategy):
            return value
        key = str(value).strip().lower().replace("_", "-")
        for s in cls:
            if s.value == key:
                return s
        raise ValueError(f"unknown strategy {value!r}; choose from {', '.join(s.value for s in cls)}")

    @property
    def is_pairwise(self) -> bool:
        return self in (Strategy.PAIRWISE, Strategy.PAIRWISE_THREADED)


@dataclass
class EngineConfig:
    strategy: Strategy = Strategy.BATCH
    workers: int = 1
    factor_mode: str = "full"
    candidate_ceiling: int | None = DEFAULT_CEILING
    word_bits: int = DEFAULT_WORD_BITS

    def __post_init__(self):
        self.strategy = Strategy.parse(self.strategy)
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.factor_mode not in FACTOR_MODES:
            raise ValueError(f"factor mode must be one of {FACTOR_MODES}, got {self.factor_mode!r}")
        if self.candidate_ceiling is not None and self.candidate_ceiling < 2:
            raise ValueError(f"candidate ceiling must be >= 2 (or unbounded), got {self.candidate_ceiling}")
        if self.word_bits < 1:
            raise ValueError(f"word bits must be positive, got {self.word_bits}")

    @property
    def effective_workers(self) -> int:
        """Only the threaded pairwise strategy uses more than one thread."""
        return self.workers if self.strategy is Strategy.PAIRWISE_THREADED else 1

    @classmethod
    def from_runtime(cls, **overrides) -> EngineConfig:
        """Build from the active profile; keyword overrides that are not None win."""
        ceiling = CFG("FACTORING.CANDIDATE_CEILING", DEFAULT_CEILING)
        values = {
            "strategy": CFG("ENGINE.STRATEGY", Strategy.BATCH.value),
            "workers": int(CFG("ENGINE.WORKERS", 1)),
            "factor_mode": str(CFG("FACTORING.MODE", "full")).lower(),
            "candidate_ceiling": int(ceiling) if ceiling else None,
            "word_bits": int(CFG("FACTORING.WORD_BITS", DEFAULT_WORD_BITS)),
        }
        for k, v in overrides.items():
            if v is not None:
                values[k] = v
        if values["candidate_ceiling"] == 0:
            values["candidate_ceiling"] = None
        return cls(**values)


@dataclass
class NumberResult:
    index: int
    value: int
    factors: CombinedFactors
    verdict: bool
    gcd: int | None = None  # batch strategies only


@dataclass
class Analysis:
    corpus: Corpus
    strategy: Strategy
    results: list[NumberResult]
    gcds: list[int] | None = None
    matrix: PairwiseGCDMatrix | None = None
    timings: dict[str, float] = field(default_factory=dict)

    @property
    def explained(self) -> list[NumberResult]:
        return [r for r in self.results if r.verdict]

    @property
    def any_explained(self) -> bool:
        return any(r.verdict for r in self.results)

    @property
    def aggregate_message(self) -> str:
        return MSG_SOME_EXPLAINED if self.any_explained else MSG_ALL_PRIVATE

    @property
    def shared(self) -> list[NumberResult]:
        """Numbers that share at least one discovered factor with the corpus."""
        return [r for r in self.results if r.factors]


class _FactorCache:
    """Identical gcd values (common when one prime is reused) are factored once."""

    def __init__(self, config: EngineConfig):
        self.config = config
        self._cache: dict[int, list[int]] = {}

    def __call__(self, g: int) -> list[int]:
        if g == 1:
            return []
        hit = self._cache.get(g)
        if hit is None:
            hit = prime_factors(
                g,
                mode=self.config.factor_mode,
                ceiling=self.config.candidate_ceiling,
                word_bits=self.config.word_bits,
            )
            self._cache[g] = hit
        return hit


def _combine_batch(gcds: Sequence[int], factor: _FactorCache) -> list[CombinedFactors]:
    return [CombinedFactors(factor(g)) for g in gcds]


def _combine_pairwise(size: int, matrix: PairwiseGCDMatrix, factor: _FactorCache) -> list[CombinedFactors]:
    combined = [CombinedFactors() for _ in range(size)]
    for (i, j), g in matrix.nontrivial():
        fl = factor(g)
        combined[i].add(fl)
        combined[j].add(fl)
    return combined


def analyze(
    corpus: Corpus | Sequence[int],
    config: EngineConfig | None = None,
    *,
    progress: Callable[[int, int], None] | None = None,
) -> Analysis:
    """
    Run the whole pipeline: gcds → prime factors → combined sets → verdicts.

    Any failure is an EngineError naming the phase; nothing partial is returned.
    """
    config = config or EngineConfig()
    if not isinstance(corpus, Corpus):
        corpus = Corpus.from_iterable(corpus)
    timings: dict[str, float] = {}
    factor = _FactorCache(config)

    t0 = perf_counter()
    gcds: list[int] | None = None
    matrix: PairwiseGCDMatrix | None = None
    if config.strategy is Strategy.BATCH:
        gcds = shared_gcds(corpus)
    elif config.strategy is Strategy.BATCH_TREE:
        gcds = shared_gcds_tree(corpus)
    else:
        matrix = compute_pairwise(corpus, workers=config.effective_workers, progress=progress)
        if not matrix.is_complete():
            raise EngineError("matrix has absent cells after join", phase="pairwise")
    timings["gcd"] = perf_counter() - t0

    t1 = perf_counter()
    try:
        if gcds is not None:
            combined = _combine_batch(gcds, factor)
        else:
            combined = _combine_pairwise(len(corpus), matrix, factor)
    except ValueError as e:
        raise EngineError(str(e), phase="factor") from e
    timings["factor"] = perf_counter() - t1

    t2 = perf_counter()
    results = [
        NumberResult(
            index=i,
            value=n,
            factors=combined[i],
            verdict=is_fully_explained(n, combined[i].values),
            gcd=gcds[i] if gcds is not None else None,
        )
        for i, n in enumerate(corpus)
    ]
    timings["verify"] = perf_counter() - t2

    analysis = Analysis(
        corpus=corpus,
        strategy=config.strategy,
        results=results,
        gcds=gcds,
        matrix=matrix,
        timings=timings,
    )
    logger.info(
        "%s: %d numbers, %d share factors, %d fully explained (gcd %.3fs, factor %.3fs, verify %.3fs)",
        config.strategy.value, len(corpus), len(analysis.shared), len(analysis.explained),
        timings["gcd"], timings["factor"], timings["verify"],
    )
    return analysis
