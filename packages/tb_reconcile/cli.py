"""CLI for the ``tb_reconcile`` package.

Command handlers (``cmd_clean``, ``cmd_compare``) hold the logic and return a
process exit status; the Typer commands below are thin wrappers. The root
callback loads a local ``.env`` (``python-dotenv``) and configures logging
before any command runs, so ``TB_*`` settings and ``OPENAI_API_KEY`` can live
there.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .amounts import fmt_amount
from .logging_setup import configure_logging

# ---- Output helpers ----------------------------------------------------------


def _err(msg: str) -> None:
    typer.echo(f"Error: {msg}", err=True)


def _balance_word(balanced: bool) -> str:
    return "balanced" if balanced else "NOT balanced"


# ---- Command handlers --------------------------------------------------------


def cmd_clean(input_path: str, *, output_path: str | None = None) -> int:
    """Clean one Trial Balance export and optionally write ``TB_Clean``.

    Prints ``kept``/``dropped`` counts and the balance check to stdout.
    Errors go to stderr with a non-zero exit status.
    """

    from .api import clean_grid
    from .ingest import read_grid
    from .normalizer import MalformedInputError
    from .report import write_clean_workbook
    from .settings import load_settings

    try:
        settings = load_settings()
        grid = read_grid(input_path, max_rows=settings.max_rows)
        result = clean_grid(grid, settings)
    except FileNotFoundError:
        _err(f"File not found: {input_path}")
        return 1
    except PermissionError:
        _err(f"Permission denied: {input_path}")
        return 1
    except MalformedInputError as e:
        _err(f"Malformed trial balance: {e}")
        return 1
    except ValueError as e:
        _err(str(e))
        return 1

    snap = result.snapshot
    typer.echo(f"rows\t{len(snap)}")
    typer.echo(f"dropped\t{result.stats.dropped}")
    typer.echo(f"sum\t{fmt_amount(snap.sum)}\t{_balance_word(snap.is_balanced)}")

    if output_path:
        try:
            written = write_clean_workbook(output_path, snap)
        except OSError as e:
            _err(f"failed to write workbook '{output_path}': {e}")
            return 1
        typer.echo(f"written\t{written}")
    return 0


def cmd_compare(
    file_a: str,
    file_b: str,
    *,
    mode: str = "version",
    output_path: str | None = None,
    insight: bool = False,
    top_n: int | None = None,
) -> int:
    """Compare two Trial Balance exports and print the summary.

    With ``output_path`` the ``TB_Compare`` workbook is written; with
    ``insight`` the top variances are sent to OpenAI for a narrative note
    (requires ``OPENAI_API_KEY``).
    """

    from .api import compare_grids
    from .ingest import read_grid
    from .models import ComparisonMode
    from .normalizer import MalformedInputError
    from .report import write_comparison_workbook
    from .settings import load_settings

    try:
        settings = load_settings()
        parsed_mode = ComparisonMode.parse(mode)
    except ValueError as e:
        _err(str(e))
        return 1

    if top_n is not None and top_n < 1:
        _err(f"--top-n must be a positive integer, got {top_n}")
        return 1

    if insight and not os.getenv("OPENAI_API_KEY"):
        _err("OPENAI_API_KEY is not set in the environment.")
        return 1

    grids = []
    for path in (file_a, file_b):
        try:
            grids.append(read_grid(path, max_rows=settings.max_rows))
        except FileNotFoundError:
            _err(f"File not found: {path}")
            return 1
        except PermissionError:
            _err(f"Permission denied: {path}")
            return 1
        except ValueError as e:
            _err(str(e))
            return 1

    try:
        report = compare_grids(grids[0], grids[1], parsed_mode, settings=settings)
    except MalformedInputError as e:
        _err(f"Malformed trial balance: {e}")
        return 1

    s = report.summary
    typer.echo(f"mode\t{parsed_mode.value}")
    typer.echo(f"sum_a\t{fmt_amount(s.sum_a)}\t{_balance_word(s.is_balanced_a)}")
    typer.echo(f"sum_b\t{fmt_amount(s.sum_b)}\t{_balance_word(s.is_balanced_b)}")
    typer.echo(f"net_delta\t{fmt_amount(s.net_delta)}")
    typer.echo(
        f"changed\t{s.changed}\trenamed\t{s.renamed}\tnew\t{s.new}"
        f"\tremoved\t{s.removed}\tunchanged\t{s.unchanged}"
    )

    if output_path:
        try:
            written = write_comparison_workbook(output_path, report.results, s, parsed_mode)
        except OSError as e:
            _err(f"failed to write workbook '{output_path}': {e}")
            return 1
        typer.echo(f"written\t{written}")

    if insight:
        from .insights import generate_variance_insight

        try:
            text = generate_variance_insight(
                s,
                report.results,
                parsed_mode,
                top_n=settings.top_n if top_n is None else top_n,
                model=settings.insight_model,
            )
        except RuntimeError as e:
            _err(str(e))
            return 1
        typer.echo("")
        typer.echo(text)

    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Clean and compare Trial Balance exports (CSV/XLSX). "
        "Loads TB_* settings and OPENAI_API_KEY from a local .env before running."
    ),
)


@app.command("clean")
def clean_cmd(
    input_path: Annotated[
        Path, typer.Option("--input", "-i", help="Trial Balance export (.csv or .xlsx)")
    ],
    output_path: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write a TB_Clean workbook here")
    ] = None,
) -> None:
    """Normalize one Trial Balance and report its balance check."""

    raise typer.Exit(
        code=cmd_clean(str(input_path), output_path=str(output_path) if output_path else None)
    )


@app.command("compare")
def compare_cmd(
    file_a: Annotated[Path, typer.Option("--file-a", help="Baseline / prior-year TB (A)")],
    file_b: Annotated[Path, typer.Option("--file-b", help="New version / current-year TB (B)")],
    mode: Annotated[
        str, typer.Option("--mode", "-m", help="Comparison mode: version or year")
    ] = "version",
    output_path: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write a TB_Compare workbook here")
    ] = None,
    insight: Annotated[
        bool, typer.Option("--insight", help="Generate an AI variance commentary")
    ] = False,
    top_n: Annotated[
        int | None, typer.Option("--top-n", help="Variances sent for commentary (TB_TOP_N)")
    ] = None,
) -> None:
    """Compare two Trial Balances and print a classified summary."""

    raise typer.Exit(
        code=cmd_compare(
            str(file_a),
            str(file_b),
            mode=mode,
            output_path=str(output_path) if output_path else None,
            insight=insight,
            top_n=top_n,
        )
    )


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
