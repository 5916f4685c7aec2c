"""Narrative variance insight via the OpenAI Responses API.

The engine's part is deterministic: :func:`build_insight_payload` ranks the
top-N variances by ``|delta|`` and serializes them, together with the
summary, into a fixed-order JSON block embedded in the prompt. Only
:func:`generate_variance_insight` touches the network, and callers opt into
it explicitly (``--insight`` on the CLI).
"""

from __future__ import annotations

import json
import time
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from openai import OpenAI

from .logging_setup import get_logger
from .models import ComparisonMode, MatchResult, Summary
from .settings import EngineSettings
from .summary import rank_by_delta

_logger = get_logger("tb_reconcile.insights")

BEGIN = "BEGIN_VARIANCE_JSON\n"
END = "\nEND_VARIANCE_JSON"

VARIANCE_FIELD_ORDER: tuple[str, ...] = (
    "status",
    "account_a",
    "account_b",
    "description_a",
    "description_b",
    "amount_a",
    "amount_b",
    "delta",
)


def _num(d: Decimal | None) -> str | None:
    return None if d is None else f"{d:.2f}"


def _variance_dict(r: MatchResult) -> dict[str, Any]:
    values = {
        "status": r.status.value,
        "account_a": r.account_a,
        "account_b": r.account_b,
        "description_a": r.description_a,
        "description_b": r.description_b,
        "amount_a": _num(r.amount_a),
        "amount_b": _num(r.amount_b),
        "delta": _num(r.delta),
    }
    return {k: values[k] for k in VARIANCE_FIELD_ORDER}


def build_insight_payload(
    summary: Summary, results: Sequence[MatchResult], *, top_n: int = 10
) -> dict[str, Any]:
    return {
        "summary": {
            "changed": summary.changed,
            "renamed": summary.renamed,
            "new": summary.new,
            "removed": summary.removed,
            "unchanged": summary.unchanged,
            "total_rows": summary.total_rows,
            "net_delta": _num(summary.net_delta),
            "sum_a": _num(summary.sum_a),
            "sum_b": _num(summary.sum_b),
            "is_balanced_a": summary.is_balanced_a,
            "is_balanced_b": summary.is_balanced_b,
        },
        "top_variances": [_variance_dict(r) for r in rank_by_delta(results, top_n)],
    }


def build_system_instructions(mode: ComparisonMode) -> str:
    context = (
        "two fiscal years of the same entity (accounts may have been renumbered)"
        if mode is ComparisonMode.YEAR
        else "two versions of the same period's trial balance"
    )
    return (
        "You are a senior accountant reviewing a trial balance comparison between "
        f"{context}. Write a short variance commentary (at most 5 bullet points): "
        "call out the largest movements, any accounts added or removed, renamed "
        "accounts, and whether each trial balance is balanced. Use only the figures "
        "provided; do not invent accounts or amounts."
    )


def build_insight_prompt(
    summary: Summary,
    results: Sequence[MatchResult],
    mode: ComparisonMode,
    *,
    top_n: int = 10,
) -> str:
    payload = build_insight_payload(summary, results, top_n=top_n)
    body = json.dumps(payload, ensure_ascii=False, indent=2)
    return (
        f"Comparison mode: {mode.value}\n"
        f"Top {len(payload['top_variances'])} variances by absolute delta and the "
        "comparison summary follow.\n\n"
        f"{BEGIN}{body}{END}\n"
    )


def _create_client() -> OpenAI:
    return OpenAI()


def generate_variance_insight(
    summary: Summary,
    results: Sequence[MatchResult],
    mode: ComparisonMode,
    *,
    top_n: int = 10,
    model: str | None = None,
    client: OpenAI | None = None,
) -> str:
    """Ask the model for a narrative commentary and return its text.

    ``model`` defaults to ``EngineSettings().insight_model``. Raises
    ``RuntimeError`` when the call fails or returns no text.
    """

    model = model or EngineSettings().insight_model
    client = client or _create_client()
    user_content = build_insight_prompt(summary, results, mode, top_n=top_n)
    t0 = time.perf_counter()
    try:
        resp = client.responses.create(
            model=model,
            instructions=build_system_instructions(mode),
            input=user_content,
        )
    except Exception as e:
        _logger.error(
            "insight:failed latency_ms=%.2f error=%s",
            (time.perf_counter() - t0) * 1000.0,
            e.__class__.__name__,
        )
        raise RuntimeError(f"variance insight request failed: {e}") from e

    text = getattr(resp, "output_text", None)
    if not isinstance(text, str) or not text.strip():
        raise RuntimeError("variance insight response contained no text output")
    _logger.info("insight:done latency_ms=%.2f", (time.perf_counter() - t0) * 1000.0)
    return text.strip()


__all__ = [
    "build_insight_payload",
    "build_system_instructions",
    "build_insight_prompt",
    "generate_variance_insight",
]
