from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("sharedfactor")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .combine import CombinedFactors, combine_factor_lists
from .config import has_profile, load_settings, read_current_profile
from .corpus import Corpus, load_corpus, read_corpus, write_corpus
from .engine import Analysis, EngineConfig, NumberResult, Strategy, analyze
from .extractor import shared_gcds, shared_gcds_tree
from .factorize import prime_factors
from .pairwise import ABSENT, PairwiseGCDMatrix, compute_pairwise
from .runtime import APPLY, CFG
from .utility import (
    AllocationFailure,
    ArithmeticInvariantViolation,
    EngineError,
    MalformedInput,
    UserInputError,
    WorkerFailure,
)
from .verify import is_fully_explained
from .workspace import workspace_dir

__all__ = [
    "ABSENT",
    "APPLY",
    "AllocationFailure",
    "Analysis",
    "ArithmeticInvariantViolation",
    "CFG",
    "CombinedFactors",
    "Corpus",
    "EngineConfig",
    "EngineError",
    "MalformedInput",
    "NumberResult",
    "PairwiseGCDMatrix",
    "Strategy",
    "UserInputError",
    "WorkerFailure",
    "__version__",
    "analyze",
    "combine_factor_lists",
    "compute_pairwise",
    "has_profile",
    "is_fully_explained",
    "load_corpus",
    "load_settings",
    "prime_factors",
    "read_corpus",
    "read_current_profile",
    "shared_gcds",
    "shared_gcds_tree",
    "workspace_dir",
    "write_corpus",
]
