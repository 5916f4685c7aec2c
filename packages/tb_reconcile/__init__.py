"""Public interface for the ``tb_reconcile`` package.

Symbol re-exports only; no runtime logic lives here. The engine pieces are
usable on their own (``normalize`` → ``aggregate`` → ``match`` →
``summarize``) or through the orchestration helpers in :mod:`.api`.
"""

from .aggregate import aggregate
from .amounts import AmountParseError, parse_amount
from .api import (
    CleanResult,
    ComparisonReport,
    clean_grid,
    compare_grids,
    compare_snapshots,
)
from .matching import VersionStrategy, YearStrategy, description_similarity, match
from .models import (
    CanonicalRow,
    ComparisonMode,
    MatchResult,
    MatchStatus,
    RawGrid,
    Snapshot,
    Summary,
)
from .normalizer import MalformedInputError, NormalizationStats, normalize
from .settings import EngineSettings, load_settings
from .summary import rank_by_delta, summarize

__all__ = [
    # Engine
    "normalize",
    "aggregate",
    "match",
    "summarize",
    "rank_by_delta",
    "parse_amount",
    "description_similarity",
    "VersionStrategy",
    "YearStrategy",
    # Orchestration
    "clean_grid",
    "compare_grids",
    "compare_snapshots",
    "CleanResult",
    "ComparisonReport",
    # Models / types
    "RawGrid",
    "CanonicalRow",
    "Snapshot",
    "ComparisonMode",
    "MatchStatus",
    "MatchResult",
    "Summary",
    "NormalizationStats",
    # Errors / config
    "MalformedInputError",
    "AmountParseError",
    "EngineSettings",
    "load_settings",
]
