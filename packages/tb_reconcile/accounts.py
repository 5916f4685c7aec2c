"""Account-cell parsing: account-number extraction and description cleanup.

Ledger exports often pack several identifiers and a label into one "Account"
cell (``"10000 - PNC - Money Market 11100"``). The rules here pick the account
number and recover a description from the surrounding text:

- The account number is the **last** maximal run of 3–10 digits.
- The description is taken from the text *after* that run; failing that, from
  the text *between* it and the previous run; failing that, from all text
  *before* it.
- Derived descriptions are title-cased, abbreviations from the allow-list are
  forced upper case, and separator runs collapse to ``" - "``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from .settings import DEFAULT_ABBREVIATIONS

# A maximal digit run: 11+ digit runs never match partially.
_DIGIT_RUN_RE = re.compile(r"(?<!\d)\d{3,10}(?!\d)")
_SEPARATOR_RUN_RE = re.compile(r"\s*[-–—/][-–—/\s]*")
_SEPARATOR_CHARS = " \t\r\n -–—/"
_TOKEN_PUNCT = ".,;:()[]&'\""


@dataclass(frozen=True, slots=True)
class AccountCell:
    """Result of splitting an account cell.

    ``account_number`` is ``""`` when the cell holds no 3–10 digit run; in
    that case ``description`` is the whole cell text.
    """

    account_number: str
    description: str


def _strip_separators(s: str, *, leading: bool = True, trailing: bool = True) -> str:
    if leading:
        s = s.lstrip(_SEPARATOR_CHARS)
    if trailing:
        s = s.rstrip(_SEPARATOR_CHARS)
    return s


def normalize_whitespace(value: str) -> str:
    """Trim and collapse all internal whitespace (tabs, newlines) to single spaces."""

    return " ".join(value.split())


def split_account_cell(text: str) -> AccountCell:
    """Pick the account number and the raw (unformatted) derived description."""

    s = text.strip()
    runs = list(_DIGIT_RUN_RE.finditer(s))
    if not runs:
        return AccountCell(account_number="", description=_strip_separators(s))

    last = runs[-1]
    start, end = last.span()

    after = _strip_separators(s[end:])
    if after:
        return AccountCell(account_number=last.group(), description=after)

    if len(runs) >= 2:
        between = _strip_separators(s[runs[-2].end() : start])
        if between:
            return AccountCell(account_number=last.group(), description=between)

    before = _strip_separators(s[:start])
    return AccountCell(account_number=last.group(), description=before)


def _title_token(token: str, abbreviations: frozenset[str]) -> str:
    core = token.strip(_TOKEN_PUNCT)
    if core and core.upper() in abbreviations:
        return token.upper()
    for i, ch in enumerate(token):
        if ch.isalpha():
            return token[:i] + ch.upper() + token[i + 1 :].lower()
    return token


def format_description(
    text: str, abbreviations: Iterable[str] = DEFAULT_ABBREVIATIONS
) -> str:
    """Clean a derived description for display.

    Whitespace collapses, separator runs become ``" - "``, each word is
    title-cased, and allow-listed abbreviations are upper-cased regardless of
    input case.

    >>> format_description("pnc  -- money market")
    'PNC - Money Market'
    """

    abbrevs = abbreviations if isinstance(abbreviations, frozenset) else frozenset(abbreviations)
    s = _strip_separators(normalize_whitespace(text))
    s = _SEPARATOR_RUN_RE.sub(" - ", s)
    return " ".join(
        tok if tok == "-" else _title_token(tok, abbrevs) for tok in s.split(" ") if tok
    )


__all__ = [
    "AccountCell",
    "normalize_whitespace",
    "split_account_cell",
    "format_description",
]
