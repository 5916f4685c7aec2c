"""Public API and orchestration for the ``tb_reconcile`` package.

Two entry points cover the product's flows:

- :func:`clean_grid`: one raw grid → cleaned :class:`Snapshot` (+ drop stats).
- :func:`compare_grids`: two raw grids → :class:`ComparisonReport`. Both
  sides are normalized and aggregated concurrently, then joined for matching
  and summarizing.

Neither performs file or network I/O; see :mod:`tb_reconcile.ingest`,
:mod:`tb_reconcile.report` and :mod:`tb_reconcile.insights` for those.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .aggregate import aggregate
from .logging_setup import get_logger
from .matching import MatchStrategy, match
from .models import ComparisonMode, MatchResult, RawGrid, Snapshot, Summary
from .normalizer import MalformedInputError, NormalizationStats, normalize
from .pmap import p_map
from .settings import EngineSettings
from .summary import rank_by_delta, summarize

_logger = get_logger("tb_reconcile.api")


@dataclass(frozen=True, slots=True)
class CleanResult:
    snapshot: Snapshot
    stats: NormalizationStats


@dataclass(frozen=True, slots=True)
class ComparisonReport:
    """Everything one comparison produced; read-only once built."""

    mode: ComparisonMode
    results: tuple[MatchResult, ...]
    summary: Summary
    snapshot_a: Snapshot
    snapshot_b: Snapshot
    stats_a: NormalizationStats | None = None
    stats_b: NormalizationStats | None = None

    def top_variances(self, n: int = 10) -> list[MatchResult]:
        return rank_by_delta(self.results, n)


def clean_grid(grid: RawGrid, settings: EngineSettings | None = None) -> CleanResult:
    """Normalize and aggregate a single raw grid."""

    settings = settings or EngineSettings()
    stats = NormalizationStats()
    rows = normalize(grid, settings, stats=stats)
    snapshot = aggregate(rows, tolerance=settings.balance_tolerance)
    _logger.info(
        "clean_grid:done rows=%d sum=%s balanced=%s dropped=%d",
        len(snapshot),
        snapshot.sum,
        snapshot.is_balanced,
        stats.dropped,
    )
    return CleanResult(snapshot=snapshot, stats=stats)


def compare_snapshots(
    a: Snapshot,
    b: Snapshot,
    mode: ComparisonMode | str = ComparisonMode.VERSION,
    *,
    settings: EngineSettings | None = None,
    strategy: MatchStrategy | None = None,
) -> ComparisonReport:
    mode = ComparisonMode.parse(mode)
    results = match(a, b, mode, settings=settings, strategy=strategy)
    return ComparisonReport(
        mode=mode,
        results=tuple(results),
        summary=summarize(results, a, b),
        snapshot_a=a,
        snapshot_b=b,
    )


def compare_grids(
    grid_a: RawGrid,
    grid_b: RawGrid,
    mode: ComparisonMode | str = ComparisonMode.VERSION,
    *,
    settings: EngineSettings | None = None,
) -> ComparisonReport:
    """Clean both grids in parallel, then match and summarize.

    A :class:`MalformedInputError` from either side aborts the comparison and
    names the side ("TB A" / "TB B") in its message.
    """

    settings = settings or EngineSettings()

    def _clean_side(item: tuple[str, RawGrid]) -> CleanResult:
        label, grid = item
        try:
            return clean_grid(grid, settings)
        except MalformedInputError as exc:
            raise MalformedInputError(f"{label}: {exc}") from exc

    side_a, side_b = p_map([("TB A", grid_a), ("TB B", grid_b)], _clean_side, concurrency=2)
    report = compare_snapshots(side_a.snapshot, side_b.snapshot, mode, settings=settings)
    return replace(report, stats_a=side_a.stats, stats_b=side_b.stats)


__all__ = [
    "CleanResult",
    "ComparisonReport",
    "clean_grid",
    "compare_snapshots",
    "compare_grids",
]
