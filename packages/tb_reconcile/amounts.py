"""Amount parsing and fixed-point helpers.

Raw amount cells arrive as text (``"$1,200.50"``, ``"(500)"``), as numbers
from spreadsheet readers, or blank. :func:`parse_amount` turns any of those
into a two-place ``Decimal`` (or ``None`` for blank) and raises
:class:`AmountParseError` for anything else.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
_CURRENCY_SYMBOLS = "$€£¥"


class AmountParseError(ValueError):
    """A non-blank amount cell could not be read as a finite number."""


def _clean_amount_text(raw: str) -> tuple[str, bool]:
    s = raw.strip()
    negative = False

    # Strip leading sign, currency symbol and surrounding parentheses until
    # stable so any ordering ("-$(1,234.56)", "$(500)") is accepted.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s[:1] and s[0] in _CURRENCY_SYMBOLS:
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    # Thousands separators and stray inner whitespace (incl. NBSP).
    s = "".join(s.replace(",", "").split())
    return s, negative


def parse_amount(cell: Any) -> Decimal | None:
    """Parse a raw amount cell into a two-place ``Decimal``.

    Returns ``None`` for blank cells (``None`` or whitespace-only text).
    Raises :class:`AmountParseError` for unparseable or non-finite values.
    """

    if cell is None:
        return None
    if isinstance(cell, bool):
        raise AmountParseError(f"invalid amount: {cell!r}")
    if isinstance(cell, Decimal):
        d = cell
    elif isinstance(cell, int):
        d = Decimal(cell)
    elif isinstance(cell, float):
        if not math.isfinite(cell):
            raise AmountParseError(f"non-finite amount: {cell!r}")
        # str() keeps the shortest round-tripping repr (0.1 -> "0.1").
        d = Decimal(str(cell))
    else:
        text = str(cell)
        if not text.strip():
            return None
        s, negative = _clean_amount_text(text)
        if not s:
            raise AmountParseError(f"invalid amount: {cell!r}")
        try:
            d = Decimal(s)
        except InvalidOperation as exc:
            raise AmountParseError(f"invalid amount: {cell!r}") from exc
        if negative:
            d = -abs(d)

    if not d.is_finite():
        raise AmountParseError(f"non-finite amount: {cell!r}")
    try:
        return d.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        # More integer digits than the decimal context can hold at two places.
        raise AmountParseError(f"amount out of range: {cell!r}") from exc


def to_cents(d: Decimal) -> int:
    return int(d.quantize(CENT, rounding=ROUND_HALF_UP).scaleb(2))


def from_cents(cents: int) -> Decimal:
    return Decimal(cents).scaleb(-2)


def fmt_amount(d: Decimal | None) -> str:
    """Format for display: thousands separators, exactly two decimals."""

    if d is None:
        return ""
    return f"{d.quantize(CENT, rounding=ROUND_HALF_UP):,.2f}"


__all__ = [
    "CENT",
    "AmountParseError",
    "parse_amount",
    "to_cents",
    "from_cents",
    "fmt_amount",
]
