"""
Worker participant.
Receives a token slice, replies with unit-count entries, then receives an
entry slice and replies with it sorted.
"""

import time
import psutil
import logging

from wordcount.common.config import COORDINATOR_RANK
from wordcount.common.records import ENTRY, TOKEN
from wordcount.common.transport import Transport
from wordcount.worker.stages import sort_entries, transform

logger = logging.getLogger(__name__)


class Worker:
    """Runs both worker stages against the coordinator"""

    def __init__(self, transport: Transport, coordinator_id: int = COORDINATOR_RANK):
        self.transport = transport
        self.coordinator_id = coordinator_id
        self.rank = transport.self_id
        self.process = psutil.Process()

    def get_memory_usage(self) -> float:
        """Get current memory usage in bytes."""
        return self.process.memory_info().rss

    def run_transform_stage(self) -> int:
        tokens = self.transport.receive(self.coordinator_id, TOKEN)
        entries = transform(tokens)
        self.transport.send(self.coordinator_id, entries, ENTRY)
        logger.info(f"Worker {self.rank}: transformed {len(tokens)} tokens")
        return len(entries)

    def run_sort_stage(self) -> int:
        entries = self.transport.receive(self.coordinator_id, ENTRY)
        start = time.time()
        ordered = sort_entries(entries)
        self.transport.send(self.coordinator_id, ordered, ENTRY)
        logger.info(f"Worker {self.rank}: sorted {len(ordered)} entries in "
                    f"{(time.time() - start) * 1000:.1f}ms")
        return len(ordered)

    def run(self):
        """Serve one full job, then return"""
        logger.info(f"Worker {self.rank} waiting for tokens from rank {self.coordinator_id}")
        self.run_transform_stage()
        self.run_sort_stage()
        logger.info(f"Worker {self.rank} done, rss={self.get_memory_usage() / (1024 * 1024):.1f}MB")
