"""
Final merge of the sorted worker replies into the result table.

Each worker reply is sorted by key but may repeat keys, and different
replies overlap freely. Merging yields one non-decreasing run; reducing then
collapses each run of equal keys into a single entry carrying the summed
count.
"""

import heapq
from typing import Callable, Dict, Iterable, List, Sequence

from wordcount.common.records import Entry, entry_key


def heap_merge(runs: Sequence[Iterable[Entry]]) -> List[Entry]:
    """k-way merge of sorted runs, O(n log k)"""
    return list(heapq.merge(*runs, key=entry_key))


def insertion_merge(runs: Sequence[Iterable[Entry]]) -> List[Entry]:
    """
    Merge by inserting every entry before the first strictly greater key

    Quadratic in the number of entries. Entries with equal keys keep their
    arrival order, same as heap_merge.
    """
    merged: List[Entry] = []
    keys: List[bytes] = []
    for run in runs:
        for entry in run:
            key = entry_key(entry)
            for i, existing in enumerate(keys):
                if key < existing:
                    merged.insert(i, entry)
                    keys.insert(i, key)
                    break
            else:
                merged.append(entry)
                keys.append(key)
    return merged


def reduce_adjacent(entries: Iterable[Entry]) -> List[Entry]:
    """
    Collapse adjacent entries with equal keys, summing their counts

    The first entry of each run absorbs the counts of the rest, so the input
    must already be sorted for the result to have unique keys.
    """
    reduced: List[Entry] = []
    for entry in entries:
        if reduced and reduced[-1].key == entry.key:
            reduced[-1].count += entry.count
        else:
            reduced.append(entry)
    return reduced


MERGE_STRATEGIES: Dict[str, Callable[[Sequence[Iterable[Entry]]], List[Entry]]] = {
    'heap': heap_merge,
    'insertion': insertion_merge,
}


def merge_reduce(runs: Sequence[Iterable[Entry]], strategy: str = 'heap') -> List[Entry]:
    """Merge sorted runs and reduce them to strictly increasing keys"""
    try:
        merge = MERGE_STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown merge strategy {strategy!r}, expected one of {sorted(MERGE_STRATEGIES)}")
    return reduce_adjacent(merge(runs))
