"""Workbook rendering for cleaned snapshots and comparisons (``openpyxl``).

The engine hands over read-only structures; this module only lays them out:

- ``TB_Clean``: balance banner, header, rows sorted by account number (the
  Rounding row, which has no number, goes last).
- ``TB_Compare``: a summary block, then one row per match result grouped by
  status (CHANGED, RENAMED, NEW, REMOVED, UNCHANGED; input order within a
  group), each group with its own fill colour. YEAR comparisons show both
  account numbers.

The ``*_rows`` helpers return the plain cell values so layouts can be checked
without opening a workbook.
"""

from __future__ import annotations

from collections.abc import Sequence
from os import PathLike
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from .logging_setup import get_logger
from .models import ComparisonMode, MatchResult, MatchStatus, Snapshot, Summary

_logger = get_logger("tb_reconcile.report")

CLEAN_SHEET_NAME = "TB_Clean"
COMPARE_SHEET_NAME = "TB_Compare"
AMOUNT_FORMAT = "#,##0.00"

STATUS_ORDER: tuple[MatchStatus, ...] = (
    MatchStatus.CHANGED,
    MatchStatus.RENAMED,
    MatchStatus.NEW,
    MatchStatus.REMOVED,
    MatchStatus.UNCHANGED,
)

# Light tints per status; UNCHANGED stays unfilled.
STATUS_FILLS: dict[MatchStatus, str | None] = {
    MatchStatus.NEW: "ECFDF5",
    MatchStatus.REMOVED: "FFF1F2",
    MatchStatus.CHANGED: "FFFBEB",
    MatchStatus.RENAMED: "EFF6FF",
    MatchStatus.UNCHANGED: None,
}

_BOLD = Font(bold=True)


def balance_banner(total: Any, balanced: bool) -> str:
    label = "Balanced" if balanced else "Not Balanced"
    return f"{label}: Sum = {total:.2f}"


def _account_sort_key(account_number: str) -> tuple[bool, int, str]:
    return (account_number == "", int(account_number) if account_number else 0, account_number)


# ---- TB_Clean ----------------------------------------------------------------


def clean_rows(snapshot: Snapshot) -> list[list[Any]]:
    ordered = sorted(snapshot.rows, key=lambda r: _account_sort_key(r.account_number))
    return [
        [balance_banner(snapshot.sum, snapshot.is_balanced)],
        ["Account Number", "Account Description", "Amount"],
        *([r.account_number, r.description, r.amount] for r in ordered),
    ]


def write_clean_workbook(path: str | PathLike[str], snapshot: Snapshot) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = CLEAN_SHEET_NAME
    for row in clean_rows(snapshot):
        ws.append(row)
    ws["A1"].font = _BOLD
    for cell in ws[2]:
        cell.font = _BOLD
    for (cell,) in ws.iter_rows(min_row=3, min_col=3, max_col=3):
        cell.number_format = AMOUNT_FORMAT
    _autosize(ws)

    out = Path(path)
    wb.save(out)
    _logger.info("report:clean_written path=%s rows=%d", out.name, len(snapshot))
    return out


# ---- TB_Compare --------------------------------------------------------------


def _mode_title(mode: ComparisonMode) -> str:
    if mode is ComparisonMode.YEAR:
        return "TB Compare - Year Compare (YoY)"
    return "TB Compare - Version Compare"


def summary_rows(summary: Summary, mode: ComparisonMode) -> list[list[Any]]:
    return [
        [_mode_title(mode)],
        ["TB A Sum", summary.sum_a, "Balanced" if summary.is_balanced_a else "Not Balanced"],
        ["TB B Sum", summary.sum_b, "Balanced" if summary.is_balanced_b else "Not Balanced"],
        ["Net Delta", summary.net_delta],
        *([s.value.title(), summary.count(s)] for s in STATUS_ORDER),
        ["Total Rows", summary.total_rows],
    ]


def comparison_header(mode: ComparisonMode) -> list[str]:
    if mode is ComparisonMode.YEAR:
        accounts = ["Account A", "Account B"]
    else:
        accounts = ["Account"]
    return ["Status", *accounts, "Description A", "Description B", "Amount A", "Amount B", "Delta"]


def grouped_results(results: Sequence[MatchResult]) -> list[MatchResult]:
    rank = {s: i for i, s in enumerate(STATUS_ORDER)}
    return sorted(results, key=lambda r: rank[r.status])


def comparison_rows(results: Sequence[MatchResult], mode: ComparisonMode) -> list[list[Any]]:
    rows: list[list[Any]] = []
    for r in grouped_results(results):
        if mode is ComparisonMode.YEAR:
            accounts = [r.account_a, r.account_b]
        else:
            accounts = [r.account]
        rows.append(
            [
                r.status.value,
                *accounts,
                r.description_a,
                r.description_b,
                r.amount_a,
                r.amount_b,
                r.delta,
            ]
        )
    return rows


def write_comparison_workbook(
    path: str | PathLike[str],
    results: Sequence[MatchResult],
    summary: Summary,
    mode: ComparisonMode,
) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = COMPARE_SHEET_NAME

    for row in summary_rows(summary, mode):
        ws.append(row)
    ws["A1"].font = _BOLD
    for row_cells in ws.iter_rows(min_row=2, max_row=4, min_col=2, max_col=2):
        row_cells[0].number_format = AMOUNT_FORMAT
    ws.append([])

    header = comparison_header(mode)
    ws.append(header)
    header_row = ws.max_row
    for cell in ws[header_row]:
        cell.font = _BOLD
    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    first_amount_col = len(header) - 2
    for r, values in zip(grouped_results(results), comparison_rows(results, mode), strict=True):
        ws.append(values)
        fill_hex = STATUS_FILLS[r.status]
        for col, cell in enumerate(ws[ws.max_row], start=1):
            if fill_hex:
                cell.fill = PatternFill(start_color=fill_hex, end_color=fill_hex, fill_type="solid")
            if col >= first_amount_col:
                cell.number_format = AMOUNT_FORMAT
    _autosize(ws)

    out = Path(path)
    wb.save(out)
    _logger.info(
        "report:compare_written path=%s mode=%s rows=%d", out.name, mode.value, len(results)
    )
    return out


def _autosize(ws: Worksheet, *, max_width: int = 60) -> None:
    widths: dict[str, int] = {}
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is None:
                continue
            width = len(str(cell.value))
            letter = cell.column_letter
            widths[letter] = max(widths.get(letter, 0), width)
    for letter, width in widths.items():
        ws.column_dimensions[letter].width = min(max_width, width + 2)


__all__ = [
    "CLEAN_SHEET_NAME",
    "COMPARE_SHEET_NAME",
    "STATUS_ORDER",
    "balance_banner",
    "clean_rows",
    "write_clean_workbook",
    "summary_rows",
    "comparison_header",
    "grouped_results",
    "comparison_rows",
    "write_comparison_workbook",
]
