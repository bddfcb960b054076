#!/usr/bin/env python3
"""
Worker stages
The transform stage turns tokens into unit-count entries; the sort stage
orders a slice of entries by key. Both are pure and share no state.
"""

from typing import Iterable, List

from wordcount.common.records import Entry, entry_key


def transform(tokens: Iterable[str]) -> List[Entry]:
    """One Entry(token, 1) per token, in input order"""
    return [Entry(token, 1) for token in tokens]


def sort_entries(entries: Iterable[Entry]) -> List[Entry]:
    """
    Sort entries by key

    Equal keys stay separate entries; collapsing them is the coordinator's
    job after the final merge.
    """
    return sorted(entries, key=entry_key)
