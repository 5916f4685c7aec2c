from pathlib import Path

from openpyxl import load_workbook
from typer.testing import CliRunner

import tb_reconcile.insights as insights
from tb_reconcile.cli import app
from tests.helpers.openai_stub import OpenAIStub, extract_payload

runner = CliRunner()

TB_A_CSV = """Trial Balance FY2023
Account,Description,Amount
1000 Cash,,100.00
5000 Office Supplies,,100.00
6000 Travel,,50.00
2000 Payables,,-250.00
Total,,0.00
"""

TB_B_CSV = """Account,Description,Amount
1000 Cash,,90.00
5050 Office Supplies Expense,,120.00
7000 Legal Fees,,30.00
2000 Payables,,-250.00
"""


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_clean_prints_counts_and_writes_workbook(tmp_path):
    src = _write(tmp_path, "a.csv", TB_A_CSV)
    out = tmp_path / "clean.xlsx"

    result = runner.invoke(app, ["clean", "--input", str(src), "--output", str(out)])

    assert result.exit_code == 0, result.output
    assert "rows\t4" in result.output
    assert "dropped\t1" in result.output
    assert "sum\t0.00\tbalanced" in result.output
    assert out.exists()
    assert load_workbook(out)["TB_Clean"]["A1"].value == "Balanced: Sum = 0.00"


def test_clean_missing_file(tmp_path):
    result = runner.invoke(app, ["clean", "-i", str(tmp_path / "nope.csv")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_clean_malformed_input(tmp_path):
    src = _write(tmp_path, "bad.csv", "Name,Value\nCash,1\n")
    result = runner.invoke(app, ["clean", "-i", str(src)])
    assert result.exit_code == 1
    assert "Malformed trial balance" in result.output


def test_compare_year_mode_with_workbook(tmp_path):
    a = _write(tmp_path, "a.csv", TB_A_CSV)
    b = _write(tmp_path, "b.csv", TB_B_CSV)
    out = tmp_path / "compare.xlsx"

    result = runner.invoke(
        app,
        ["compare", "--file-a", str(a), "--file-b", str(b), "--mode", "year", "-o", str(out)],
    )

    assert result.exit_code == 0, result.output
    assert "mode\tYEAR" in result.output
    assert "sum_b\t-10.00\tNOT balanced" in result.output
    assert "net_delta\t-10.00" in result.output
    assert "changed\t1\trenamed\t1\tnew\t1\tremoved\t1\tunchanged\t1" in result.output
    assert load_workbook(out)["TB_Compare"]["A1"].value == "TB Compare - Year Compare (YoY)"


def test_compare_rejects_unknown_mode(tmp_path):
    a = _write(tmp_path, "a.csv", TB_A_CSV)
    result = runner.invoke(
        app, ["compare", "--file-a", str(a), "--file-b", str(a), "--mode", "quarter"]
    )
    assert result.exit_code == 1
    assert "unknown comparison mode" in result.output


def test_compare_names_malformed_side(tmp_path):
    a = _write(tmp_path, "a.csv", TB_A_CSV)
    b = _write(tmp_path, "b.csv", "nothing,useful\n")
    result = runner.invoke(app, ["compare", "--file-a", str(a), "--file-b", str(b)])
    assert result.exit_code == 1
    assert "TB B" in result.output


def test_compare_insight_requires_api_key(tmp_path):
    a = _write(tmp_path, "a.csv", TB_A_CSV)
    result = runner.invoke(app, ["compare", "--file-a", str(a), "--file-b", str(a), "--insight"])
    assert result.exit_code == 1
    assert "OPENAI_API_KEY" in result.output


def test_compare_insight_uses_client(tmp_path, monkeypatch):
    a = _write(tmp_path, "a.csv", TB_A_CSV)
    b = _write(tmp_path, "b.csv", TB_B_CSV)
    calls: list[dict] = []
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(
        insights, "_create_client", lambda: OpenAIStub("Cash fell by 10.00.", calls_out=calls)
    )

    result = runner.invoke(
        app,
        ["compare", "--file-a", str(a), "--file-b", str(b), "--insight", "--top-n", "2"],
    )

    assert result.exit_code == 0, result.output
    assert "Cash fell by 10.00." in result.output
    assert len(calls) == 1


def test_dotenv_settings_are_loaded_from_working_directory(tmp_path):
    src = _write(tmp_path, "a.csv", TB_B_CSV)
    (Path.cwd() / ".env").write_text("TB_BALANCE_TOLERANCE=20\n", encoding="utf-8")

    result = runner.invoke(app, ["clean", "-i", str(src)])

    assert result.exit_code == 0, result.output
    assert "sum\t-10.00\tbalanced" in result.output


def test_compare_rejects_non_positive_top_n(tmp_path, monkeypatch):
    a = _write(tmp_path, "a.csv", TB_A_CSV)
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(insights, "_create_client", lambda: OpenAIStub("unused"))
    result = runner.invoke(
        app,
        ["compare", "--file-a", str(a), "--file-b", str(a), "--insight", "--top-n", "0"],
    )
    assert result.exit_code == 1
    assert "--top-n must be a positive integer" in result.output


def test_compare_insight_defaults_top_n_from_settings(tmp_path, monkeypatch):
    a = _write(tmp_path, "a.csv", TB_A_CSV)
    b = _write(tmp_path, "b.csv", TB_B_CSV)
    calls: list[dict] = []
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("TB_TOP_N", "1")
    monkeypatch.setattr(insights, "_create_client", lambda: OpenAIStub("ok", calls_out=calls))

    result = runner.invoke(app, ["compare", "--file-a", str(a), "--file-b", str(b), "--insight"])

    assert result.exit_code == 0, result.output
    assert len(extract_payload(calls[0]["input"])["top_variances"]) == 1
