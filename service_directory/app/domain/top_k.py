"""
Bounded top-K selection over employee records.
"""

import heapq
from operator import attrgetter
from typing import Callable, Iterable, List, Tuple, TypeVar

T = TypeVar("T")

by_salary = attrgetter("salary")


def select_top_k(records: Iterable[T], k: int, key: Callable[[T], int] = by_salary) -> List[T]:
    """Return the ``k`` records with the largest ``key``, largest first.

    Keeps a min-heap of at most ``k`` entries, so the cost is O(n log k)
    rather than a full sort. Equal keys keep their input order: each heap
    entry carries the negated input position, which makes the later of two
    equal records the smaller entry and therefore the first one evicted.
    """
    if k < 0:
        raise ValueError("k must be >= 0")
    if k == 0:
        return []

    heap: List[Tuple[int, int, T]] = []
    for index, record in enumerate(records):
        entry = (key(record), -index, record)
        if len(heap) < k:
            heapq.heappush(heap, entry)
        else:
            # push then evict the minimum in one step
            heapq.heappushpop(heap, entry)

    heap.sort(key=lambda entry: (-entry[0], -entry[1]))
    return [record for _, _, record in heap]
