"""
Scan engine for a single target.

Each ScanEngine owns its queue, worker pool and aggregator, so separate
engines can run side by side without sharing state. Configuration is
checked before any worker thread starts.
"""

import logging
import socket
import threading
from typing import Callable, Optional

from core.errors import ScanConfigError, ScanIncompleteError
from core.models import Result, ScanConfig
from core.progress import ProgressSink
from core.queue import PortQueue, WorkerPool
from core.targets import resolve_target
from pipeline.aggregator import ResultAggregator
from probers.banner import grab_banner
from probers.l4_tcp import PortOutcome, probe_port, tcp_connect

log = logging.getLogger(__name__)


class ScanEngine:
    def __init__(
        self,
        config: ScanConfig,
        progress: Optional[ProgressSink] = None,
        stop_event: Optional[threading.Event] = None,
        connector: Callable[[str, int, float], socket.socket] = tcp_connect,
        grabber: Callable[[socket.socket, int], str] = grab_banner,
        sleep: Optional[Callable[[float], object]] = None,
    ):
        self.config = config
        self.progress = progress or ProgressSink()
        self.stop_event = stop_event or threading.Event()
        self.connector = connector
        self.grabber = grabber
        # backoff wakes early on cancellation unless a sleeper is injected
        self.sleep = sleep or self.stop_event.wait

    def _validate(self):
        cfg = self.config
        if cfg.workers < 1:
            raise ScanConfigError("workers must be >= 1")
        if not cfg.ports:
            raise ScanConfigError("port list must not be empty")
        resolve_target(cfg.target)

    def _probe(self, port: int) -> PortOutcome:
        cfg = self.config
        return probe_port(
            cfg.target,
            port,
            timeout=cfg.timeout,
            max_retries=cfg.max_retries,
            backoff_base=cfg.backoff_base,
            connector=self.connector,
            grabber=self.grabber,
            sleep=self.sleep,
            stop_event=self.stop_event,
        )

    def run(self) -> Result:
        cfg = self.config
        try:
            self._validate()
            tasks = PortQueue(cfg.ports)
            aggregator = ResultAggregator(cfg.target, total_ports=len(cfg.ports))
            pool = WorkerPool(cfg.workers, stop_event=self.stop_event, name=cfg.target)

            def publish(outcome: PortOutcome):
                aggregator.add(outcome)
                try:
                    self.progress.on_port_processed()
                except Exception:  # noqa: BLE001
                    log.exception("progress sink failed on port %s", outcome.port)

            log.info("scan start target=%s ports=%d workers=%d", cfg.target, tasks.size, cfg.workers)
            aggregator.start()
            pool.run(tasks, self._probe, publish)
            if aggregator.seen != tasks.size:
                raise ScanIncompleteError(
                    f"{cfg.target}: {aggregator.seen} of {tasks.size} port outcomes collected"
                )
            result = aggregator.result(cancelled=self.stop_event.is_set())
            log.info(
                "scan done target=%s open=%d/%d skipped=%d in %s",
                cfg.target,
                result.open_count,
                result.total_ports,
                aggregator.skipped,
                result.duration_display,
            )
            return result
        finally:
            self.progress.close()


def scan_target(
    config: ScanConfig,
    progress: Optional[ProgressSink] = None,
    stop_event: Optional[threading.Event] = None,
) -> Result:
    return ScanEngine(config, progress=progress, stop_event=stop_event).run()
