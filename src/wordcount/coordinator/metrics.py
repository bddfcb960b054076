"""
Performance metrics for a word count run.
"""

import time
import json
import psutil
from dataclasses import dataclass, asdict, field
from typing import Dict, Optional


@dataclass
class PhaseTiming:
    start: float
    end: float = 0.0

    @property
    def seconds(self) -> float:
        return self.end - self.start if self.end else 0.0


@dataclass
class RunMetrics:
    """Metrics for a single coordinator run."""

    worker_count: int
    merge_strategy: str
    start_time: float = field(default_factory=time.time)
    end_time: float = 0.0
    token_count: int = 0
    unique_key_count: int = 0
    peak_rss_bytes: int = 0
    phases: Dict[str, PhaseTiming] = field(default_factory=dict)

    @property
    def total_time_seconds(self) -> float:
        """Total run time in seconds."""
        return self.end_time - self.start_time if self.end_time else 0.0

    def start_phase(self, name: str):
        self._sample_memory()
        self.phases[name] = PhaseTiming(start=time.time())

    def end_phase(self, name: str):
        self._sample_memory()
        timing = self.phases.get(name)
        if timing is not None:
            timing.end = time.time()

    def finish(self):
        self._sample_memory()
        self.end_time = time.time()

    def phase_seconds(self, name: str) -> Optional[float]:
        timing = self.phases.get(name)
        return timing.seconds if timing else None

    def _sample_memory(self):
        rss = psutil.Process().memory_info().rss
        self.peak_rss_bytes = max(self.peak_rss_bytes, rss)

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['phases'] = {name: {'start': t.start, 'end': t.end, 'seconds': t.seconds}
                          for name, t in self.phases.items()}
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)
