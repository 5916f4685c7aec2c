from decimal import Decimal

import pytest

from tb_reconcile import CanonicalRow, aggregate
from tb_reconcile.aggregate import is_balanced


def _row(account: str, amount: str) -> CanonicalRow:
    return CanonicalRow(account, f"Account {account}", Decimal(amount))


def test_sum_is_exact_over_many_rows():
    rows = [_row(str(1000 + i), "0.10") for i in range(3000)]
    snap = aggregate(rows)
    assert snap.sum == Decimal("300.00")
    assert str(snap.sum) == "300.00"
    assert len(snap) == 3000
    assert not snap.is_balanced


def test_offsetting_rows_are_balanced():
    snap = aggregate([_row("1000", "1200.50"), _row("2000", "-1200.50")])
    assert snap.sum == Decimal("0.00")
    assert snap.is_balanced


@pytest.mark.parametrize(
    ("total", "balanced"),
    [
        ("0.00", True),
        ("0.01", True),
        ("-0.01", True),
        ("0.02", False),
        ("-0.02", False),
    ],
)
def test_balance_tolerance_edges(total, balanced):
    assert is_balanced(Decimal(total)) is balanced


def test_custom_tolerance():
    rows = [_row("1000", "5.00")]
    assert not aggregate(rows).is_balanced
    assert aggregate(rows, tolerance=Decimal("5")).is_balanced


def test_empty_snapshot_is_balanced():
    snap = aggregate([])
    assert snap.rows == ()
    assert snap.sum == 0
    assert snap.is_balanced


def test_rows_are_materialized_from_a_generator():
    snap = aggregate(_row(str(n), "1") for n in (100, 200))
    assert [r.account_number for r in snap.rows] == ["100", "200"]
    assert snap.sum == Decimal("2.00")


def test_sum_equals_sum_of_row_amounts():
    rows = [_row("1000", "0.07"), _row("2000", "-1234.56"), _row("3000", "99.5")]
    assert aggregate(rows).sum == sum(r.amount for r in rows)
