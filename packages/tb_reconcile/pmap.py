"""Order-preserving bounded-concurrency map over a thread pool.

``p_map(items, mapper, concurrency=N)`` runs ``mapper`` on each item with at
most ``N`` calls in flight and returns results in input order. With
``stop_on_error=True`` (default) the first failure propagates and pending work
is cancelled; otherwise every call finishes and failures are raised together
as an ``ExceptionGroup``.

Used for the independent halves of a comparison (normalizing snapshot A and
B) and for per-row rename scoring; callers that need sequential semantics
(greedy assignment) run those steps after the join.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
    stop_on_error: bool = True,
) -> list[OutT]:
    if not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    items = list(iterable)
    if not items:
        return []
    # Not worth a pool for a single item or a serial cap.
    if concurrency == 1 or len(items) == 1:
        return [mapper(item) for item in items]

    with ThreadPoolExecutor(max_workers=min(concurrency, len(items))) as pool:
        futures: list[Future[OutT]] = [pool.submit(mapper, item) for item in items]
        results: list[OutT] = []
        errors: list[Exception] = []
        for fut in futures:
            try:
                results.append(fut.result())
            except Exception as e:  # noqa: BLE001
                if stop_on_error:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise
                errors.append(e)

    if errors:
        raise ExceptionGroup("p_map: one or more mapper calls failed", errors)
    return results


__all__ = ["p_map"]
