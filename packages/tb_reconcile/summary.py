"""Summary building and variance ranking over match results."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .models import MatchResult, MatchStatus, Snapshot, Summary


def summarize(results: Iterable[MatchResult], a: Snapshot, b: Snapshot) -> Summary:
    """Count results per status and carry the snapshot totals through.

    ``net_delta`` is ``b.sum - a.sum`` rather than a sum of row deltas, so it
    stays exact regardless of which rows carry a delta.
    """

    counts = Counter(r.status for r in results)
    return Summary(
        new=counts[MatchStatus.NEW],
        removed=counts[MatchStatus.REMOVED],
        changed=counts[MatchStatus.CHANGED],
        renamed=counts[MatchStatus.RENAMED],
        unchanged=counts[MatchStatus.UNCHANGED],
        net_delta=b.sum - a.sum,
        sum_a=a.sum,
        sum_b=b.sum,
        is_balanced_a=a.is_balanced,
        is_balanced_b=b.is_balanced,
    )


def rank_by_delta(results: Sequence[MatchResult], n: int | None = 10) -> list[MatchResult]:
    """Return up to ``n`` results ordered by descending ``|delta|``.

    The sort is stable: equal magnitudes keep their input order. Results
    without a delta go last. ``n=None`` returns the full ranking.
    """

    if n is not None and n < 0:
        raise ValueError("n must be non-negative")
    ranked = sorted(
        results,
        key=lambda r: (r.delta is None, -abs(r.delta if r.delta is not None else Decimal(0))),
    )
    return ranked if n is None else ranked[:n]


__all__ = ["summarize", "rank_by_delta"]
