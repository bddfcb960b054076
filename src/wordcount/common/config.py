"""
Runtime settings and process topology.

Settings come from WORDCOUNT_* environment variables; the CLI overrides them
with explicit flags.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from wordcount.common.errors import ConfigurationError

COORDINATOR_RANK = 0
MERGE_STRATEGY_NAMES = ('heap', 'insertion')


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"Expected a number of seconds, got {value!r}")


def parse_peers(value: str) -> List[str]:
    """Parse 'host:port,host:port,...' into a list ordered by rank"""
    peers = [p.strip() for p in value.split(',') if p.strip()]
    for peer in peers:
        host, sep, port = peer.rpartition(':')
        if not sep or not host or not port.isdigit():
            raise ConfigurationError(f"Peer address must be host:port, got {peer!r}")
    return peers


@dataclass
class Topology:
    """Who this process is and who its peers are"""
    self_id: int
    peer_count: int

    def __post_init__(self):
        if self.peer_count < 2:
            raise ConfigurationError(
                f"Need a coordinator and at least one worker, got {self.peer_count} participant(s)"
            )
        if not 0 <= self.self_id < self.peer_count:
            raise ConfigurationError(f"Rank {self.self_id} outside 0..{self.peer_count - 1}")

    @property
    def worker_count(self) -> int:
        return self.peer_count - 1

    @property
    def worker_ranks(self) -> range:
        return range(COORDINATOR_RANK + 1, self.peer_count)

    @property
    def is_coordinator(self) -> bool:
        return self.self_id == COORDINATOR_RANK


@dataclass
class Settings:
    rank: int = 0
    peers: List[str] = field(default_factory=list)
    bind_host: str = '[::]'
    merge_strategy: str = 'heap'
    send_timeout: Optional[float] = None
    receive_timeout: Optional[float] = None
    log_level: str = 'INFO'
    metrics_path: Optional[str] = None

    def __post_init__(self):
        if self.merge_strategy not in MERGE_STRATEGY_NAMES:
            raise ConfigurationError(
                f"Unknown merge strategy {self.merge_strategy!r}, expected one of {MERGE_STRATEGY_NAMES}"
            )

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        env = os.environ if environ is None else environ
        try:
            rank = int(env.get('WORDCOUNT_RANK', '0'))
        except ValueError:
            raise ConfigurationError(f"WORDCOUNT_RANK must be an integer, got {env['WORDCOUNT_RANK']!r}")
        return cls(
            rank=rank,
            peers=parse_peers(env.get('WORDCOUNT_PEERS', '')),
            bind_host=env.get('WORDCOUNT_BIND_HOST', '[::]'),
            merge_strategy=env.get('WORDCOUNT_MERGE_STRATEGY', 'heap'),
            send_timeout=_optional_float(env.get('WORDCOUNT_SEND_TIMEOUT')),
            receive_timeout=_optional_float(env.get('WORDCOUNT_RECEIVE_TIMEOUT')),
            log_level=env.get('WORDCOUNT_LOG_LEVEL', 'INFO').upper(),
            metrics_path=env.get('WORDCOUNT_METRICS_PATH') or None,
        )

    def topology(self) -> Topology:
        return Topology(self_id=self.rank, peer_count=len(self.peers))
