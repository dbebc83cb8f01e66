"""
Folds the unordered stream of per-port outcomes into one Result.
"""

import threading
import time
from typing import List, Optional

from core.models import PortResult, Result
from probers.l4_tcp import SKIPPED, PortOutcome


class ResultAggregator:
    def __init__(self, target: str, total_ports: int):
        self.target = target
        self.total_ports = total_ports
        self._lock = threading.Lock()
        self._open: List[PortResult] = []
        self._seen = 0
        self._skipped = 0
        self._started: Optional[float] = None
        self._last_fold: Optional[float] = None

    def start(self):
        self._started = time.perf_counter()

    def add(self, outcome: PortOutcome):
        with self._lock:
            self._seen += 1
            if outcome.is_open:
                self._open.append(PortResult(port=outcome.port, banner=outcome.banner))
            elif outcome.status == SKIPPED:
                self._skipped += 1
            self._last_fold = time.perf_counter()

    @property
    def seen(self) -> int:
        return self._seen

    @property
    def skipped(self) -> int:
        return self._skipped

    def result(self, cancelled: bool = False) -> Result:
        with self._lock:
            open_ports = sorted(self._open, key=lambda p: p.port)
            if self._started is None:
                duration = 0.0
            else:
                end = self._last_fold if self._last_fold is not None else time.perf_counter()
                duration = end - self._started
        return Result(
            target=self.target,
            open_ports=open_ports,
            total_ports=self.total_ports,
            open_count=len(open_ports),
            duration=duration,
            cancelled=cancelled,
        )
