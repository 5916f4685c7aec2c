"""Snapshot aggregation: canonical rows → immutable :class:`Snapshot`."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from .amounts import from_cents, to_cents
from .models import CanonicalRow, Snapshot

DEFAULT_TOLERANCE = Decimal("0.01")


def is_balanced(total: Decimal, tolerance: Decimal = DEFAULT_TOLERANCE) -> bool:
    return abs(total) <= tolerance


def aggregate(
    rows: Iterable[CanonicalRow], *, tolerance: Decimal = DEFAULT_TOLERANCE
) -> Snapshot:
    """Materialize ``rows`` and compute their exact sum and balance flag.

    The sum is accumulated in integer cents so thousands of additions cannot
    drift; it is exposed as a two-place ``Decimal``.
    """

    materialized = tuple(rows)
    cents = sum(to_cents(r.amount) for r in materialized)
    total = from_cents(cents)
    return Snapshot(rows=materialized, sum=total, is_balanced=is_balanced(total, tolerance))


__all__ = ["DEFAULT_TOLERANCE", "aggregate", "is_balanced"]
