"""
Progress sinks observed by the scan engine.

The engine calls on_port_processed() exactly once per submitted port and
close() exactly once when the scan returns or fails. Sinks must not block
the calling worker; the base class is the no-op sink.
"""

import queue
import threading
from typing import Iterator


class ProgressSink:
    def on_port_processed(self) -> None:
        pass

    def close(self) -> None:
        pass


NullProgress = ProgressSink


class CountingProgress(ProgressSink):
    def __init__(self):
        self._lock = threading.Lock()
        self.count = 0
        self.closed = False

    def on_port_processed(self) -> None:
        with self._lock:
            self.count += 1

    def close(self) -> None:
        self.closed = True


class QueueProgress(ProgressSink):
    """
    Unbounded queue of unit ticks for a renderer running on another thread.
    Iterating yields one 1 per processed port and stops after close().
    """

    _CLOSED = object()

    def __init__(self, total: int):
        self.total = total
        self._q: "queue.Queue[object]" = queue.Queue()

    def on_port_processed(self) -> None:
        self._q.put_nowait(1)

    def close(self) -> None:
        self._q.put_nowait(self._CLOSED)

    def get(self, timeout: float):
        """Next tick, None when closed; raises queue.Empty on timeout."""
        item = self._q.get(timeout=timeout)
        if item is self._CLOSED:
            return None
        return item

    def __iter__(self) -> Iterator[int]:
        while True:
            item = self._q.get()
            if item is self._CLOSED:
                return
            yield item
