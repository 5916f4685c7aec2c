"""Read Trial Balance exports from disk into raw grids.

Supported inputs:

- ``.csv``: read with the stdlib :mod:`csv` module (UTF-8, BOM tolerated).
  Cells stay text; the normalizer parses amounts.
- ``.xlsx`` / ``.xlsm``: first worksheet via ``openpyxl`` in read-only,
  values-only mode. Numeric cells arrive as ``int``/``float``, blanks as
  ``None``.

``max_rows`` is the caller-level cutoff (the engine itself never truncates).
"""

from __future__ import annotations

import csv
from itertools import islice
from os import PathLike
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from .logging_setup import get_logger

_logger = get_logger("tb_reconcile.ingest")

CSV_SUFFIXES: frozenset[str] = frozenset({".csv", ".txt"})
EXCEL_SUFFIXES: frozenset[str] = frozenset({".xlsx", ".xlsm"})


def _read_csv(path: Path, max_rows: int | None) -> list[list[Any]]:
    with path.open(encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f)
        return [list(row) for row in islice(reader, max_rows)]


def _read_excel(path: Path, max_rows: int | None) -> list[list[Any]]:
    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        return [list(row) for row in islice(ws.iter_rows(values_only=True), max_rows)]
    finally:
        wb.close()


def read_grid(path: str | PathLike[str], *, max_rows: int | None = None) -> list[list[Any]]:
    """Load the first sheet (or the CSV) at ``path`` as a list of rows.

    Raises ``ValueError`` for unsupported extensions; file-system errors
    (``FileNotFoundError``, ``PermissionError``) propagate unchanged.
    """

    p = Path(path)
    suffix = p.suffix.lower()
    if suffix in CSV_SUFFIXES:
        grid = _read_csv(p, max_rows)
    elif suffix in EXCEL_SUFFIXES:
        grid = _read_excel(p, max_rows)
    else:
        supported = ", ".join(sorted(CSV_SUFFIXES | EXCEL_SUFFIXES))
        raise ValueError(f"unsupported file type {suffix or '(none)'!r}; expected one of: {supported}")
    _logger.info("read_grid:done path=%s rows=%d", p.name, len(grid))
    return grid


__all__ = ["read_grid"]
