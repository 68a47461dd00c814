"""Row-range parallel-for on a bounded thread pool."""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from quicklens import defaults


def resolve_num_threads(num_threads: int | None = None) -> int:
    """Thread count to use; None falls back to the configured default, then CPU count."""
    if num_threads is None:
        num_threads = defaults.DEFAULT_NUM_THREADS
    if num_threads is None:
        num_threads = os.cpu_count() or 1
    return max(1, int(num_threads))


def split_rows(n_rows: int, n_chunks: int) -> list[tuple[int, int]]:
    """Split [0, n_rows) into at most n_chunks contiguous (start, end) ranges."""
    if n_rows <= 0:
        return []
    n_chunks = max(1, min(n_chunks, n_rows))
    base, extra = divmod(n_rows, n_chunks)
    ranges = []
    start = 0
    for k in range(n_chunks):
        end = start + base + (1 if k < extra else 0)
        ranges.append((start, end))
        start = end
    return ranges


def parallel_for(
    n_rows: int,
    body: Callable[[int, int], None],
    num_threads: int | None = None,
) -> None:
    """
    Run body(start, end) over disjoint row ranges covering [0, n_rows).

    Blocks until every range has finished. The first exception raised by a
    worker is re-raised here. Bodies must only write to their own rows.

    Args:
        n_rows: Number of rows to process
        body: Callable over a half-open row range
        num_threads: Worker count (None = auto)
    """
    threads = resolve_num_threads(num_threads)
    ranges = split_rows(n_rows, threads)
    if not ranges:
        return

    if len(ranges) == 1:
        body(*ranges[0])
        return

    with ThreadPoolExecutor(max_workers=len(ranges)) as executor:
        futures = [executor.submit(body, start, end) for start, end in ranges]
        for future in futures:
            future.result()
