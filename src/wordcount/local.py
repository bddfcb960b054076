"""
Single-process runs: the coordinator on the calling thread, each worker on
its own pool thread, all connected through an in-process network.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from wordcount.common.config import COORDINATOR_RANK, Topology
from wordcount.common.records import Entry
from wordcount.common.transport import LocalNetwork
from wordcount.coordinator.server import Coordinator, run_job
from wordcount.worker.server import Worker

logger = logging.getLogger(__name__)


def _abort_on_failure(network: LocalNetwork, rank: int) -> Callable[[Future], None]:
    def check(future: Future):
        error = future.exception()
        if error is not None:
            logger.error(f"Worker {rank} failed: {error}")
            network.abort(f"worker {rank} failed: {error}")
    return check


def _run_with_workers(worker_count: int, merge_strategy: str, receive_timeout: Optional[float],
                      drive: Callable[[Coordinator], List[Entry]]) -> List[Entry]:
    topology = Topology(self_id=COORDINATOR_RANK, peer_count=worker_count + 1)
    network = LocalNetwork(topology.peer_count, receive_timeout=receive_timeout)
    coordinator = Coordinator(network.transport(COORDINATOR_RANK), merge_strategy)

    with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix='worker') as executor:
        pending = []
        for rank in topology.worker_ranks:
            future = executor.submit(Worker(network.transport(rank)).run)
            # a dead worker wakes the coordinator out of gather
            future.add_done_callback(_abort_on_failure(network, rank))
            pending.append(future)
        try:
            table = drive(coordinator)
        except BaseException as e:
            # workers would otherwise block forever on their next receive
            network.abort(f"coordinator failed: {e}")
            raise
        for future in pending:
            future.result()

    logger.info(f"Local run with {worker_count} workers produced {len(table)} entries")
    return table


def run_local(tokens: Sequence[str], worker_count: int, merge_strategy: str = 'heap',
              receive_timeout: Optional[float] = None) -> List[Entry]:
    """Count tokens with worker_count threaded workers and return the result table"""
    return _run_with_workers(worker_count, merge_strategy, receive_timeout,
                             lambda coordinator: coordinator.run(tokens))


def run_local_job(input_path: str, output_path: str, worker_count: int, merge_strategy: str = 'heap',
                  metrics_path: Optional[str] = None,
                  receive_timeout: Optional[float] = None) -> List[Entry]:
    """Read input_path, count over threaded workers, write output_path"""
    return _run_with_workers(
        worker_count, merge_strategy, receive_timeout,
        lambda coordinator: run_job(coordinator, input_path, output_path, metrics_path),
    )
