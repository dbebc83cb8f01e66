"""
Shared port queue and the fixed-size worker pool that drains it.

Workers coordinate only through the queue and the publish callback; a
worker exits as soon as the queue is empty, and run() returns after every
worker thread has been joined.
"""

import logging
import queue
import threading
from typing import Callable, Iterable, Optional

from probers.l4_tcp import PortOutcome

log = logging.getLogger(__name__)


class PortQueue:
    def __init__(self, ports: Iterable[int]):
        self.q: "queue.Queue[int]" = queue.Queue()
        self.size = 0
        for port in ports:
            self.q.put(port)
            self.size += 1

    def claim(self) -> Optional[int]:
        try:
            return self.q.get_nowait()
        except queue.Empty:
            return None


class WorkerPool:
    def __init__(self, workers: int, stop_event: Optional[threading.Event] = None, name: str = "scan"):
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.workers = workers
        self.stop_event = stop_event or threading.Event()
        self.name = name

    def run(
        self,
        tasks: PortQueue,
        handler: Callable[[int], PortOutcome],
        publish: Callable[[PortOutcome], None],
    ):
        threads = [
            threading.Thread(
                target=self._work,
                args=(tasks, handler, publish),
                name=f"{self.name}-worker-{i}",
                daemon=True,
            )
            for i in range(self.workers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    def _work(self, tasks: PortQueue, handler, publish):
        while True:
            port = tasks.claim()
            if port is None:
                return
            if self.stop_event.is_set():
                outcome = PortOutcome.skipped(port)
            else:
                outcome = self._handle(handler, port)
            try:
                publish(outcome)
            except Exception:  # noqa: BLE001
                log.exception("publishing outcome for port %s failed", port)

    @staticmethod
    def _handle(handler, port: int) -> PortOutcome:
        try:
            return handler(port)
        except Exception:  # noqa: BLE001
            log.exception("probe for port %s failed unexpectedly", port)
            return PortOutcome.closed(port)
