"""Raw grid → canonical Trial Balance rows.

The normalizer is a deterministic rule engine over an in-memory cell grid:

1. **Header detection**: the first row (within ``header_scan_rows``) having a
   cell that mentions account/description/amount/debit/credit and yielding an
   account column plus an amount (or debit/credit) column. Rows above it are
   ignored. No header → :class:`MalformedInputError`.
2. **Column roles**: each header cell gets at most one role by keyword
   containment. Unmatched columns are ignored.
3. **Per row**: total/subtotal lines are dropped; the account number and a
   description come from :mod:`tb_reconcile.accounts`; the amount is the
   AMOUNT cell or DEBIT − CREDIT. Zero, blank and unparseable amounts drop the
   row. Rows without an account number survive only as the Rounding
   Gain/Loss pseudo-account.

Dropped rows are not errors. They are tallied per reason on a
:class:`NormalizationStats` instance that callers can pass in.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from .accounts import format_description, normalize_whitespace, split_account_cell
from .amounts import AmountParseError, parse_amount
from .logging_setup import get_logger
from .models import CanonicalRow, RawGrid
from .settings import EngineSettings

_logger = get_logger("tb_reconcile.normalizer")


class MalformedInputError(ValueError):
    """The grid has no recognizable Trial Balance header."""


class ColumnRole(Enum):
    ACCOUNT = "account"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    DEBIT = "debit"
    CREDIT = "credit"


# Checked in this order so "Account Description" is a description column and
# "Debit Amount" is a debit column.
_ROLE_PRECEDENCE: tuple[ColumnRole, ...] = (
    ColumnRole.DESCRIPTION,
    ColumnRole.DEBIT,
    ColumnRole.CREDIT,
    ColumnRole.AMOUNT,
    ColumnRole.ACCOUNT,
)


class DropReason(Enum):
    BLANK = "blank"
    TOTAL_LINE = "total_line"
    NO_ACCOUNT = "no_account"
    BAD_AMOUNT = "bad_amount"
    ZERO_AMOUNT = "zero_amount"


@dataclass(slots=True)
class NormalizationStats:
    """Counters filled while :func:`normalize` is consumed.

    ``data_rows`` counts rows below the header; ``kept + dropped`` equals it
    once the generator is exhausted.
    """

    header_row: int | None = None
    data_rows: int = 0
    kept: int = 0
    drops: Counter[DropReason] = field(default_factory=Counter)

    @property
    def dropped(self) -> int:
        return sum(self.drops.values())


def _cell_text(cell: Any) -> str:
    if cell is None:
        return ""
    return normalize_whitespace(str(cell))


def _cell(row: Sequence[Any], idx: int | None) -> Any:
    if idx is None or idx >= len(row):
        return None
    return row[idx]


def assign_column_roles(header: Sequence[Any]) -> dict[ColumnRole, int]:
    """Map each role to the first header column whose text contains its keyword."""

    roles: dict[ColumnRole, int] = {}
    for idx, cell in enumerate(header):
        text = _cell_text(cell).lower()
        if not text:
            continue
        for role in _ROLE_PRECEDENCE:
            if role.value in text:
                roles.setdefault(role, idx)
                break
    return roles


def _validate_roles(roles: Mapping[ColumnRole, int], header_row: int) -> None:
    if ColumnRole.ACCOUNT not in roles:
        raise MalformedInputError(f"header row {header_row} has no Account column")
    has_amount = ColumnRole.AMOUNT in roles
    has_dr_cr = ColumnRole.DEBIT in roles or ColumnRole.CREDIT in roles
    if not (has_amount or has_dr_cr):
        raise MalformedInputError(
            f"header row {header_row} has neither an Amount nor Debit/Credit columns"
        )


def _mentions_header_keyword(row: Sequence[Any]) -> bool:
    keywords = [r.value for r in ColumnRole]
    for cell in row:
        text = _cell_text(cell).lower()
        if text and any(k in text for k in keywords):
            return True
    return False


def find_header(grid: RawGrid, *, scan_rows: int = 50) -> tuple[int, dict[ColumnRole, int]]:
    """Locate the header row and its column roles.

    A row mentioning a header keyword but lacking a usable column set (a
    title line such as ``"Account: Acme Corp"``) is skipped in favour of a
    later candidate; when no candidate is usable, the first candidate's
    problem is reported.
    """

    first_error: MalformedInputError | None = None
    for i, row in enumerate(grid[:scan_rows]):
        if not _mentions_header_keyword(row):
            continue
        roles = assign_column_roles(row)
        try:
            _validate_roles(roles, i)
        except MalformedInputError as exc:
            first_error = first_error or exc
            continue
        return i, roles
    if first_error is not None:
        raise first_error
    raise MalformedInputError(
        f"no header row found in the first {scan_rows} rows "
        "(expected a cell mentioning Account, Description, Amount, Debit or Credit)"
    )


def _row_amount(row: Sequence[Any], roles: Mapping[ColumnRole, int]) -> Decimal | None:
    if ColumnRole.AMOUNT in roles:
        return parse_amount(_cell(row, roles[ColumnRole.AMOUNT]))
    debit = parse_amount(_cell(row, roles.get(ColumnRole.DEBIT)))
    credit = parse_amount(_cell(row, roles.get(ColumnRole.CREDIT)))
    if debit is None and credit is None:
        return None
    return (debit or Decimal("0.00")) - (credit or Decimal("0.00"))


def normalize(
    grid: RawGrid,
    settings: EngineSettings | None = None,
    *,
    stats: NormalizationStats | None = None,
) -> Iterator[CanonicalRow]:
    """Yield canonical rows from ``grid`` in first-seen order.

    The header is located eagerly, so :class:`MalformedInputError` is raised
    by this call rather than on first iteration. Duplicate account numbers are
    yielded as-is; merging is the matcher's job.
    """

    settings = settings or EngineSettings()
    stats = stats if stats is not None else NormalizationStats()

    header_idx, roles = find_header(grid, scan_rows=settings.header_scan_rows)
    stats.header_row = header_idx
    _logger.debug(
        "normalize:header_found row=%d roles=%s",
        header_idx,
        ",".join(f"{r.value}={i}" for r, i in sorted(roles.items(), key=lambda kv: kv[1])),
    )

    return _iter_rows(grid[header_idx + 1 :], roles, settings, stats)


def _iter_rows(
    rows: RawGrid,
    roles: Mapping[ColumnRole, int],
    settings: EngineSettings,
    stats: NormalizationStats,
) -> Iterator[CanonicalRow]:
    account_idx = roles[ColumnRole.ACCOUNT]
    desc_idx = roles.get(ColumnRole.DESCRIPTION)

    def drop(reason: DropReason) -> None:
        stats.drops[reason] += 1

    for row in rows:
        stats.data_rows += 1
        if all(_cell_text(c) == "" for c in row):
            drop(DropReason.BLANK)
            continue

        account_text = _cell_text(_cell(row, account_idx))
        column_desc = _cell_text(_cell(row, desc_idx))
        row_text = f"{account_text} {column_desc}".lower()

        # Covers "subtotal" as well.
        if "total" in row_text:
            drop(DropReason.TOTAL_LINE)
            continue

        cell = split_account_cell(account_text)
        if not cell.account_number and "rounding" not in row_text:
            drop(DropReason.NO_ACCOUNT)
            continue

        try:
            amount = _row_amount(row, roles)
        except AmountParseError as exc:
            _logger.debug("normalize:bad_amount row=%d error=%s", stats.data_rows, exc)
            drop(DropReason.BAD_AMOUNT)
            continue
        if amount is None or amount == 0:
            drop(DropReason.ZERO_AMOUNT)
            continue

        if column_desc:
            description = column_desc
        else:
            description = format_description(cell.description, settings.abbreviations)

        stats.kept += 1
        yield CanonicalRow(
            account_number=cell.account_number,
            description=description,
            amount=amount,
        )

    _logger.info(
        "normalize:done rows=%d kept=%d dropped=%d",
        stats.data_rows,
        stats.kept,
        stats.dropped,
    )


__all__ = [
    "MalformedInputError",
    "ColumnRole",
    "DropReason",
    "NormalizationStats",
    "find_header",
    "assign_column_roles",
    "normalize",
]
