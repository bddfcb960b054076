"""
Coordinator for the distributed word count.
Drives the phases in order, scattering slices to workers and waiting for
every reply before moving on, then merges the sorted replies.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence

from wordcount.common.errors import ProtocolError
from wordcount.common.partition import partition
from wordcount.common.records import ENTRY, TOKEN, Entry, RecordType
from wordcount.common.storage import read_tokens, write_table
from wordcount.common.transport import Transport
from wordcount.coordinator.merge import merge_reduce
from wordcount.coordinator.metrics import RunMetrics

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Coordinator phases, in the only order they may occur"""
    LOAD = "load"
    SCATTER_TOKENS = "scatter_tokens"
    GATHER_ENTRIES = "gather_entries"
    SCATTER_ENTRIES = "scatter_entries"
    GATHER_SORTED = "gather_sorted"
    MERGE_REDUCE = "merge_reduce"
    WRITE = "write"
    DONE = "done"


PHASE_ORDER = list(Phase)


class Coordinator:
    """Owns the token list and runs the scatter/gather/merge protocol"""

    def __init__(self, transport: Transport, merge_strategy: str = 'heap'):
        self.transport = transport
        self.merge_strategy = merge_strategy
        self.worker_ranks = range(transport.self_id + 1, transport.peer_count)
        self.phase: Optional[Phase] = None
        self.metrics = RunMetrics(worker_count=self.worker_count, merge_strategy=merge_strategy)

    @property
    def worker_count(self) -> int:
        return len(self.worker_ranks)

    def advance(self, phase: Phase):
        """Move to the next phase. Skipping or repeating a phase is an error."""
        if self.phase is None:
            expected = PHASE_ORDER[0]
        elif self.phase is Phase.DONE:
            expected = None
        else:
            expected = PHASE_ORDER[PHASE_ORDER.index(self.phase) + 1]
        if phase is not expected:
            current = self.phase.name if self.phase else "start"
            raise ValueError(f"Cannot transition from {current} to {phase.name}")

        if self.phase is not None:
            self.metrics.end_phase(self.phase.value)
        self.phase = phase
        if phase is Phase.DONE:
            self.metrics.finish()
        else:
            self.metrics.start_phase(phase.value)
        logger.info(f"Coordinator entered {phase.name}")

    def scatter(self, items: Sequence, record_type: RecordType) -> List[int]:
        """Send one contiguous slice to each worker. Returns the slice sizes."""
        slices = partition(items, self.worker_count)
        for rank, chunk in zip(self.worker_ranks, slices):
            self.transport.send(rank, chunk, record_type)
        sizes = [len(chunk) for chunk in slices]
        logger.info(f"Scattered {len(items)} {record_type.name} records: {sizes}")
        return sizes

    def gather(self, record_type: RecordType, expected_sizes: Optional[Sequence[int]] = None) -> List[list]:
        """Wait for one reply from every worker, returned in rank order"""
        replies = []
        for i, rank in enumerate(self.worker_ranks):
            reply = self.transport.receive(rank, record_type)
            if expected_sizes is not None and len(reply) != expected_sizes[i]:
                raise ProtocolError(
                    f"Worker {rank} returned {len(reply)} {record_type.name} records, "
                    f"expected {expected_sizes[i]}"
                )
            replies.append(reply)
        logger.info(f"Gathered {sum(len(r) for r in replies)} {record_type.name} records "
                    f"from {self.worker_count} workers")
        return replies

    def run(self, tokens: Sequence[str]) -> List[Entry]:
        """Run every phase between LOAD and WRITE and return the result table"""
        if self.phase is None:
            self.advance(Phase.LOAD)
        self.metrics.token_count = len(tokens)

        self.advance(Phase.SCATTER_TOKENS)
        token_sizes = self.scatter(tokens, TOKEN)

        self.advance(Phase.GATHER_ENTRIES)
        entries = [entry for reply in self.gather(ENTRY, token_sizes) for entry in reply]

        self.advance(Phase.SCATTER_ENTRIES)
        entry_sizes = self.scatter(entries, ENTRY)

        self.advance(Phase.GATHER_SORTED)
        sorted_runs = self.gather(ENTRY, entry_sizes)

        self.advance(Phase.MERGE_REDUCE)
        table = merge_reduce(sorted_runs, self.merge_strategy)
        self.metrics.unique_key_count = len(table)
        logger.info(f"Reduced {len(entries)} entries to {len(table)} unique words")
        return table


def run_job(coordinator: Coordinator, input_path: str, output_path: str,
            metrics_path: Optional[str] = None) -> List[Entry]:
    """Read the input, run the protocol, write the result table"""
    coordinator.advance(Phase.LOAD)
    tokens = read_tokens(input_path)

    table = coordinator.run(tokens)

    coordinator.advance(Phase.WRITE)
    write_table(output_path, table)
    coordinator.advance(Phase.DONE)

    logger.info(f"Job finished in {coordinator.metrics.total_time_seconds:.3f}s")
    if metrics_path:
        coordinator.metrics.save_to_file(metrics_path)
    return table
