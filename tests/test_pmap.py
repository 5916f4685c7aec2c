import threading
import time

import pytest

from tb_reconcile.pmap import p_map


def test_preserves_input_order():
    def slow_inverse(n: int) -> int:
        time.sleep(0.01 * (5 - n))
        return n * 10

    assert p_map(range(5), slow_inverse, concurrency=5) == [0, 10, 20, 30, 40]


def test_respects_concurrency_bound():
    active = 0
    peak = 0
    lock = threading.Lock()

    def work(_: int) -> None:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.01)
        with lock:
            active -= 1

    p_map(range(12), work, concurrency=3)
    assert 1 <= peak <= 3


def test_empty_and_serial():
    assert p_map([], lambda x: x, concurrency=4) == []
    assert p_map([1, 2], lambda x: x + 1, concurrency=1) == [2, 3]


def test_first_error_propagates():
    def boom(n: int) -> int:
        if n == 2:
            raise RuntimeError("bad item")
        return n

    with pytest.raises(RuntimeError, match="bad item"):
        p_map(range(4), boom, concurrency=2)


def test_collects_all_errors_when_not_stopping():
    def boom(n: int) -> int:
        if n % 2:
            raise ValueError(str(n))
        return n

    with pytest.raises(ExceptionGroup) as excinfo:
        p_map(range(4), boom, concurrency=2, stop_on_error=False)
    assert sorted(str(e) for e in excinfo.value.exceptions) == ["1", "3"]


@pytest.mark.parametrize("bad", [0, -1, 1.5])
def test_rejects_bad_concurrency(bad):
    with pytest.raises(ValueError):
        p_map([1], lambda x: x, concurrency=bad)
