"""
Order-preserving split of a sequence across workers.
"""

from typing import List, Sequence


def partition(items: Sequence, worker_count: int) -> List[list]:
    """
    Split items into worker_count contiguous slices

    Every slice but the last holds len(items) // worker_count elements; the
    last one takes the remainder. When there are fewer items than workers the
    leading slices are empty. Concatenating the slices in order gives back
    the input.

    Args:
        items: Tokens or entries, in coordinator order
        worker_count: Number of workers, at least 1

    Returns:
        List of worker_count lists
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be at least 1, got {worker_count}")

    per_worker = len(items) // worker_count
    slices = []
    for i in range(worker_count):
        start = i * per_worker
        end = (i + 1) * per_worker if i != worker_count - 1 else len(items)
        slices.append(list(items[start:end]))
    return slices
