"""Data models and type aliases for ``tb_reconcile``.

Everything here is immutable once constructed. Rows are produced by the
normalizer, snapshots by the aggregator, and match results/summaries by the
matcher and summary builder; none of them is shared or mutated across
comparisons.

Amounts are ``Decimal`` values quantized to two places. Floats never enter the
model: raw numeric cells are converted through ``str`` in
:mod:`tb_reconcile.amounts` before they reach a :class:`CanonicalRow`.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Raw input
# ---------------------------------------------------------------------------

type RawGrid = Sequence[Sequence[Any]]
"""A rectangular-ish grid of raw cell values as read from a spreadsheet/CSV.

Cells may be ``str``, ``int``, ``float``, ``Decimal`` or ``None`` (blank).
Ragged rows are tolerated; missing trailing cells read as blank. The grid is
never mutated.
"""

_ACCOUNT_NUMBER_RE = re.compile(r"\d{3,10}")
_CENT = Decimal("0.01")


# ---------------------------------------------------------------------------
# Closed enumerations
# ---------------------------------------------------------------------------


class ComparisonMode(Enum):
    """Which matching strategy a comparison uses.

    ``VERSION`` compares two revisions of the same period (stable chart of
    accounts). ``YEAR`` compares fiscal periods and enables rename detection
    for renumbered accounts.
    """

    VERSION = "VERSION"
    YEAR = "YEAR"

    @classmethod
    def parse(cls, value: str | ComparisonMode) -> ComparisonMode:
        if isinstance(value, ComparisonMode):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError as exc:
            allowed = ", ".join(m.value.lower() for m in cls)
            raise ValueError(f"unknown comparison mode: {value!r} (allowed: {allowed})") from exc


class MatchStatus(Enum):
    NEW = "NEW"
    REMOVED = "REMOVED"
    CHANGED = "CHANGED"
    RENAMED = "RENAMED"
    UNCHANGED = "UNCHANGED"


# ---------------------------------------------------------------------------
# Canonical rows and snapshots
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CanonicalRow:
    """A single cleaned Trial Balance line.

    Attributes
    ----------
    account_number:
        The 3–10 digit account identifier, or ``""`` for the Rounding
        Gain/Loss pseudo-account.
    description:
        Human-readable account description (may be empty).
    amount:
        Signed balance, two decimal places. Never zero.
    """

    account_number: str
    description: str
    amount: Decimal

    def __post_init__(self) -> None:
        if self.account_number and not _ACCOUNT_NUMBER_RE.fullmatch(self.account_number):
            raise ValueError(
                f"CanonicalRow.account_number must be 3-10 digits or empty: {self.account_number!r}"
            )
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite():
            raise ValueError(f"CanonicalRow.amount must be a finite Decimal: {self.amount!r}")
        if self.amount == 0:
            raise ValueError("CanonicalRow.amount must be non-zero")
        try:
            two_places = self.amount == self.amount.quantize(_CENT)
        except InvalidOperation:
            two_places = False
        if not two_places:
            raise ValueError(
                f"CanonicalRow.amount must have at most two decimal places: {self.amount!r}"
            )


@dataclass(frozen=True, slots=True)
class Snapshot:
    """An aggregated Trial Balance: rows plus their exact sum and balance flag."""

    rows: tuple[CanonicalRow, ...]
    sum: Decimal
    is_balanced: bool

    def __len__(self) -> int:
        return len(self.rows)


# ---------------------------------------------------------------------------
# Match results and summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Classification of one account line across snapshots A and B.

    Side fields are ``None`` when the status has no such side: ``NEW`` carries
    only the B side and ``REMOVED`` only the A side. ``delta`` is always
    ``amount_b - amount_a`` with a missing side counted as zero.
    """

    status: MatchStatus
    account_a: str | None = None
    account_b: str | None = None
    description_a: str | None = None
    description_b: str | None = None
    amount_a: Decimal | None = None
    amount_b: Decimal | None = None
    delta: Decimal | None = None

    @property
    def account(self) -> str:
        """Display key: the B-side account when present, else the A side."""

        if self.account_b is not None:
            return self.account_b
        return self.account_a or ""

    @property
    def description(self) -> str:
        return self.description_b or self.description_a or ""


@dataclass(frozen=True, slots=True)
class Summary:
    """Aggregate view of one comparison.

    ``net_delta`` is ``sum_b - sum_a`` by construction, not a re-summation of
    per-row deltas.
    """

    new: int
    removed: int
    changed: int
    renamed: int
    unchanged: int
    net_delta: Decimal
    sum_a: Decimal
    sum_b: Decimal
    is_balanced_a: bool
    is_balanced_b: bool

    @property
    def total_rows(self) -> int:
        return self.new + self.removed + self.changed + self.renamed + self.unchanged

    def count(self, status: MatchStatus) -> int:
        return {
            MatchStatus.NEW: self.new,
            MatchStatus.REMOVED: self.removed,
            MatchStatus.CHANGED: self.changed,
            MatchStatus.RENAMED: self.renamed,
            MatchStatus.UNCHANGED: self.unchanged,
        }[status]


__all__ = [
    "RawGrid",
    "ComparisonMode",
    "MatchStatus",
    "CanonicalRow",
    "Snapshot",
    "MatchResult",
    "Summary",
]
