"""Reconciliation matcher: two snapshots → per-account classifications.

Each side is first collapsed to an ordered ``account_number → entry`` map
(duplicate keys sum their amounts and keep the first non-blank description).
A strategy is then chosen once per comparison:

- :class:`VersionStrategy` walks the union of keys (A's order, then B-only
  keys in B's order) and emits UNCHANGED / CHANGED / NEW / REMOVED.
- :class:`YearStrategy` does the same for shared keys, then pairs leftover A
  and B rows by description similarity. Candidates at or above the threshold
  are claimed greedily, best score first (ties broken by smaller amount gap,
  then by A/B position), each row at most once. Claimed pairs are RENAMED and
  appear at the A row's position; the rest are REMOVED / NEW.

Output is fully determined by the inputs: no hashing order, no clocks.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import NamedTuple, Protocol

from rapidfuzz import fuzz

from .amounts import from_cents, to_cents
from .logging_setup import get_logger
from .models import ComparisonMode, MatchResult, MatchStatus, Snapshot
from .pmap import p_map
from .settings import EngineSettings

_logger = get_logger("tb_reconcile.matching")

# Upper bound on threads used to score rename candidates.
_SCORING_CONCURRENCY: int = 4

type Scorer = Callable[[str, str], float]


# ---- Keyed side view ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SideEntry:
    """One account on one side after duplicate keys are merged."""

    key: str
    description: str
    cents: int
    position: int

    @property
    def amount(self) -> Decimal:
        return from_cents(self.cents)


def key_snapshot(snapshot: Snapshot) -> dict[str, SideEntry]:
    """Collapse a snapshot to an insertion-ordered ``key → SideEntry`` map."""

    cents: dict[str, int] = {}
    descriptions: dict[str, str] = {}
    for row in snapshot.rows:
        key = row.account_number
        cents[key] = cents.get(key, 0) + to_cents(row.amount)
        if not descriptions.get(key):
            descriptions[key] = row.description
    return {
        key: SideEntry(key=key, description=descriptions[key], cents=total, position=pos)
        for pos, (key, total) in enumerate(cents.items())
    }


# ---- Similarity --------------------------------------------------------------


def _similarity_text(description: str) -> str:
    tokens = description.lower().split()
    return " ".join(t for t in tokens if t.strip("-–—/"))


def description_similarity(a: str, b: str) -> float:
    """Order-insensitive edit-distance ratio in ``[0, 1]``.

    Descriptions are lower-cased, whitespace-normalized and stripped of bare
    separator tokens, then compared with rapidfuzz's ``token_sort_ratio``.
    Blank descriptions never match anything.
    """

    na, nb = _similarity_text(a), _similarity_text(b)
    if not na or not nb:
        return 0.0
    return fuzz.token_sort_ratio(na, nb) / 100.0


# ---- Result constructors -----------------------------------------------------


def _shared(ea: SideEntry, eb: SideEntry, tolerance: Decimal) -> MatchResult:
    diff = eb.cents - ea.cents
    status = MatchStatus.UNCHANGED if abs(from_cents(diff)) <= tolerance else MatchStatus.CHANGED
    return MatchResult(
        status=status,
        account_a=ea.key,
        account_b=eb.key,
        description_a=ea.description,
        description_b=eb.description,
        amount_a=ea.amount,
        amount_b=eb.amount,
        delta=from_cents(diff),
    )


def _renamed(ea: SideEntry, eb: SideEntry) -> MatchResult:
    return MatchResult(
        status=MatchStatus.RENAMED,
        account_a=ea.key,
        account_b=eb.key,
        description_a=ea.description,
        description_b=eb.description,
        amount_a=ea.amount,
        amount_b=eb.amount,
        delta=from_cents(eb.cents - ea.cents),
    )


def _removed(ea: SideEntry) -> MatchResult:
    return MatchResult(
        status=MatchStatus.REMOVED,
        account_a=ea.key,
        description_a=ea.description,
        amount_a=ea.amount,
        delta=from_cents(-ea.cents),
    )


def _new(eb: SideEntry) -> MatchResult:
    return MatchResult(
        status=MatchStatus.NEW,
        account_b=eb.key,
        description_b=eb.description,
        amount_b=eb.amount,
        delta=eb.amount,
    )


# ---- Strategies --------------------------------------------------------------


class MatchStrategy(Protocol):
    def match(
        self, a: Mapping[str, SideEntry], b: Mapping[str, SideEntry]
    ) -> list[MatchResult]: ...


class VersionStrategy:
    """Same chart of accounts on both sides: match strictly by account number."""

    def __init__(self, *, tolerance: Decimal = Decimal("0.01")) -> None:
        self._tolerance = tolerance

    def match(
        self, a: Mapping[str, SideEntry], b: Mapping[str, SideEntry]
    ) -> list[MatchResult]:
        out: list[MatchResult] = []
        for key, ea in a.items():
            eb = b.get(key)
            out.append(_removed(ea) if eb is None else _shared(ea, eb, self._tolerance))
        out.extend(_new(eb) for key, eb in b.items() if key not in a)
        return out


class RenameCandidate(NamedTuple):
    score: float
    amount_gap: int
    a_index: int
    b_index: int


class YearStrategy(VersionStrategy):
    """Year-over-year: account-number matches first, then rename detection."""

    def __init__(
        self,
        *,
        tolerance: Decimal = Decimal("0.01"),
        threshold: float = 0.6,
        scorer: Scorer = description_similarity,
        concurrency: int = _SCORING_CONCURRENCY,
    ) -> None:
        super().__init__(tolerance=tolerance)
        self._threshold = threshold
        self._scorer = scorer
        self._concurrency = concurrency

    def candidates(
        self, unmatched_a: list[SideEntry], unmatched_b: list[SideEntry]
    ) -> list[RenameCandidate]:
        """Score every A×B pair and return the accepted ones in claim order."""

        if not unmatched_a or not unmatched_b:
            return []

        def score_row(item: tuple[int, SideEntry]) -> list[RenameCandidate]:
            ia, ea = item
            row: list[RenameCandidate] = []
            for ib, eb in enumerate(unmatched_b):
                score = self._scorer(ea.description, eb.description)
                if score >= self._threshold:
                    row.append(RenameCandidate(score, abs(eb.cents - ea.cents), ia, ib))
            return row

        scored = p_map(enumerate(unmatched_a), score_row, concurrency=self._concurrency)
        flat = [c for row in scored for c in row]
        flat.sort(key=lambda c: (-c.score, c.amount_gap, c.a_index, c.b_index))
        return flat

    def assign(
        self, unmatched_a: list[SideEntry], unmatched_b: list[SideEntry]
    ) -> dict[str, SideEntry]:
        """Greedy one-to-one assignment; returns ``A key → claimed B entry``."""

        taken_a: set[int] = set()
        taken_b: set[int] = set()
        pairs: dict[str, SideEntry] = {}
        for c in self.candidates(unmatched_a, unmatched_b):
            if c.a_index in taken_a or c.b_index in taken_b:
                continue
            taken_a.add(c.a_index)
            taken_b.add(c.b_index)
            pairs[unmatched_a[c.a_index].key] = unmatched_b[c.b_index]
        return pairs

    def match(
        self, a: Mapping[str, SideEntry], b: Mapping[str, SideEntry]
    ) -> list[MatchResult]:
        unmatched_a = [ea for key, ea in a.items() if key not in b]
        unmatched_b = [eb for key, eb in b.items() if key not in a]
        renames = self.assign(unmatched_a, unmatched_b)
        claimed_b = {eb.key for eb in renames.values()}

        out: list[MatchResult] = []
        for key, ea in a.items():
            eb = b.get(key)
            if eb is not None:
                out.append(_shared(ea, eb, self._tolerance))
            elif key in renames:
                out.append(_renamed(ea, renames[key]))
            else:
                out.append(_removed(ea))
        out.extend(_new(eb) for key, eb in b.items() if key not in a and key not in claimed_b)
        return out


def strategy_for(mode: ComparisonMode, settings: EngineSettings | None = None) -> MatchStrategy:
    settings = settings or EngineSettings()
    if mode is ComparisonMode.YEAR:
        return YearStrategy(
            tolerance=settings.balance_tolerance, threshold=settings.rename_threshold
        )
    return VersionStrategy(tolerance=settings.balance_tolerance)


def match(
    a: Snapshot,
    b: Snapshot,
    mode: ComparisonMode,
    *,
    settings: EngineSettings | None = None,
    strategy: MatchStrategy | None = None,
) -> list[MatchResult]:
    """Classify every account line of ``a`` and ``b`` under ``mode``.

    ``strategy`` overrides the mode's default strategy (e.g. a custom scorer).
    """

    mode = ComparisonMode.parse(mode)
    strategy = strategy or strategy_for(mode, settings)
    results = strategy.match(key_snapshot(a), key_snapshot(b))
    counts = Counter(r.status for r in results)
    _logger.info(
        "match:done mode=%s %s",
        mode.value,
        " ".join(f"{s.value.lower()}={counts[s]}" for s in MatchStatus),
    )
    return results


__all__ = [
    "SideEntry",
    "key_snapshot",
    "description_similarity",
    "MatchStrategy",
    "VersionStrategy",
    "YearStrategy",
    "RenameCandidate",
    "strategy_for",
    "match",
]
