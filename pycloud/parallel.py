"""
Data-parallel map/filter/reduce over point sequences.

The sequence is cut into contiguous chunks, each chunk is handled by one worker
of a thread pool and the per-chunk results are combined in chunk order. The
functions passed in must be free of side effects; reducers must be associative
and commutative.
"""
import math
from concurrent.futures import ThreadPoolExecutor
from functools import reduce
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .config import PARALLEL

T = TypeVar("T")
U = TypeVar("U")


def _chunk_bounds(length: int, workers: int, min_chunk_size: int) -> List[Tuple[int, int]]:
    size = max(min_chunk_size, math.ceil(length / workers), 1)
    return [(start, min(start + size, length)) for start in range(0, length, size)]


def _run_chunked(
    work: Callable[[Sequence, int, int], U],
    items: Sequence,
    max_workers: Optional[int],
    min_chunk_size: Optional[int],
) -> List[U]:
    workers = max_workers or PARALLEL.MAX_WORKERS
    min_chunk = PARALLEL.MIN_CHUNK_SIZE if min_chunk_size is None else min_chunk_size
    length = len(items)
    if length <= min_chunk or workers <= 1:
        return [work(items, 0, length)]

    bounds = _chunk_bounds(length, workers, min_chunk)
    with ThreadPoolExecutor(max_workers=min(workers, len(bounds))) as executor:
        return list(executor.map(lambda b: work(items, b[0], b[1]), bounds))


def parallel_map(
    func: Callable[[T], U],
    items: Sequence[T],
    max_workers: Optional[int] = None,
    min_chunk_size: Optional[int] = None,
) -> List[U]:
    """Apply ``func`` to every item; output has one entry per input item."""
    if not isinstance(items, Sequence):
        items = list(items)
    parts = _run_chunked(
        lambda seq, lo, hi: [func(seq[i]) for i in range(lo, hi)],
        items, max_workers, min_chunk_size,
    )
    return [value for part in parts for value in part]


def parallel_filter(
    predicate: Callable[[T], bool],
    items: Sequence[T],
    max_workers: Optional[int] = None,
    min_chunk_size: Optional[int] = None,
) -> List[T]:
    """Keep the items for which ``predicate`` is true."""
    if not isinstance(items, Sequence):
        items = list(items)
    parts = _run_chunked(
        lambda seq, lo, hi: [seq[i] for i in range(lo, hi) if predicate(seq[i])],
        items, max_workers, min_chunk_size,
    )
    return [value for part in parts for value in part]


def parallel_reduce(
    mapper: Callable[[T], U],
    reducer: Callable[[U, U], U],
    items: Sequence[T],
    max_workers: Optional[int] = None,
    min_chunk_size: Optional[int] = None,
) -> Optional[U]:
    """Map every item and fold the results pairwise; ``None`` for no items."""
    if not isinstance(items, Sequence):
        items = list(items)
    if len(items) == 0:
        return None
    partials = _run_chunked(
        lambda seq, lo, hi: reduce(reducer, (mapper(seq[i]) for i in range(lo, hi))),
        items, max_workers, min_chunk_size,
    )
    return reduce(reducer, partials)
