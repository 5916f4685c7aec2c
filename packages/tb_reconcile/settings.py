"""Engine configuration for ``tb_reconcile``.

Settings are a validated, immutable ``pydantic`` model. Defaults match the
documented constants; :func:`load_settings` overlays ``TB_*`` environment
variables (the CLI loads a local ``.env`` first via ``python-dotenv``).

Environment variables
---------------------
- ``TB_BALANCE_TOLERANCE``: absolute tolerance for balance/equality checks.
- ``TB_RENAME_THRESHOLD``: minimum similarity (0..1) to accept a rename.
- ``TB_EXTRA_ABBREVIATIONS``: comma-separated tokens added to the
  abbreviation allow-list (e.g. ``"CPA,FICA"``).
- ``TB_HEADER_SCAN_ROWS``: how many leading rows to search for the header.
- ``TB_TOP_N``: number of variances handed to the insight generator.
- ``TB_MAX_ROWS``: caller-level row cutoff applied when reading files.
- ``TB_INSIGHT_MODEL``: model name for the narrative insight call.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_ABBREVIATIONS: frozenset[str] = frozenset(
    {"PNC", "LLC", "INC", "USA", "LLP", "LTD", "IRS", "VAT"}
)


class EngineSettings(BaseModel):
    """Tunable constants shared by the normalizer, matcher and collaborators."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    balance_tolerance: Decimal = Decimal("0.01")
    rename_threshold: float = 0.6
    abbreviations: frozenset[str] = DEFAULT_ABBREVIATIONS
    header_scan_rows: int = 50
    top_n: int = 10
    max_rows: int = 3000
    insight_model: str = "gpt-5"

    @field_validator("balance_tolerance")
    @classmethod
    def _tolerance_non_negative(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < 0:
            raise ValueError("balance_tolerance must be a finite, non-negative amount")
        return v

    @field_validator("rename_threshold")
    @classmethod
    def _threshold_in_unit_interval(cls, v: float) -> float:
        if 0.0 <= v <= 1.0:
            return v
        raise ValueError("rename_threshold must be within [0,1]")

    @field_validator("abbreviations", mode="before")
    @classmethod
    def _upper_abbreviations(cls, v: Iterable[str]) -> frozenset[str]:
        if isinstance(v, str):
            v = v.split(",")
        return frozenset(t.strip().upper() for t in v if t and t.strip())

    @field_validator("header_scan_rows", "top_n", "max_rows")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v


def _env_int(env: Mapping[str, str], name: str) -> int | None:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(env: Mapping[str, str] | None = None) -> EngineSettings:
    """Build :class:`EngineSettings` from defaults plus ``TB_*`` overrides.

    ``env`` defaults to ``os.environ``. Unset or blank variables keep the
    default. Malformed values raise ``ValueError`` naming the variable.
    """

    env = os.environ if env is None else env
    values: dict[str, object] = {}

    tol = (env.get("TB_BALANCE_TOLERANCE") or "").strip()
    if tol:
        try:
            values["balance_tolerance"] = Decimal(tol)
        except InvalidOperation as exc:
            raise ValueError(f"TB_BALANCE_TOLERANCE must be a number, got {tol!r}") from exc

    threshold = (env.get("TB_RENAME_THRESHOLD") or "").strip()
    if threshold:
        try:
            values["rename_threshold"] = float(threshold)
        except ValueError as exc:
            raise ValueError(f"TB_RENAME_THRESHOLD must be a number, got {threshold!r}") from exc

    extra = (env.get("TB_EXTRA_ABBREVIATIONS") or "").strip()
    if extra:
        values["abbreviations"] = DEFAULT_ABBREVIATIONS | {
            t.strip().upper() for t in extra.split(",") if t.strip()
        }

    for field, name in (
        ("header_scan_rows", "TB_HEADER_SCAN_ROWS"),
        ("top_n", "TB_TOP_N"),
        ("max_rows", "TB_MAX_ROWS"),
    ):
        parsed = _env_int(env, name)
        if parsed is not None:
            values[field] = parsed

    model = (env.get("TB_INSIGHT_MODEL") or "").strip()
    if model:
        values["insight_model"] = model

    return EngineSettings(**values)


__all__ = ["DEFAULT_ABBREVIATIONS", "EngineSettings", "load_settings"]
