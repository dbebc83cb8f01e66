"""
In-memory store of finished scan results with an optional JSON cache.
Also writes the timestamped ScanOutput file used by `portsweep scan --json`.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import threading
from pathlib import Path
from typing import List, Optional

from core.config import settings
from core.models import Result, ScanOutput

log = logging.getLogger(__name__)


class StateManager:
    def __init__(self, cache_path: Optional[str] = None):
        self.results: List[Result] = []
        self._lock = threading.Lock()
        path = cache_path or settings.json_cache_path
        self.cache_path = Path(path) if path else None
        self._load_cache()

    def _load_cache(self):
        if self.cache_path and self.cache_path.exists():
            try:
                data = json.loads(self.cache_path.read_text())
                self.results = [Result.model_validate(r) for r in data.get("results", [])]
            except Exception:  # noqa: BLE001
                log.warning("failed to load cache from %s", self.cache_path)

    def _persist(self):
        if not self.cache_path:
            return
        snapshot = {"results": [r.model_dump() for r in self.results]}
        try:
            self.cache_path.write_text(json.dumps(snapshot, indent=2, default=str))
        except Exception:  # noqa: BLE001
            log.warning("failed to persist cache to %s", self.cache_path)

    def record_result(self, result: Result):
        # each cache snapshot holds every result appended before it
        with self._lock:
            self.results.append(result)
            self._persist()

    def list_results(self, target: Optional[str] = None) -> List[Result]:
        with self._lock:
            results = list(self.results)
        if target:
            return [r for r in results if r.target == target]
        return results

    def build_output(self, results: Optional[List[Result]] = None) -> ScanOutput:
        results = self.results if results is None else results
        targets = list(dict.fromkeys(r.target for r in results))
        total = results[0].total_ports if results else 0
        return ScanOutput(targets=targets, total_ports=total, results=list(results))

    def write_json(self, out_dir: Optional[str] = None, results: Optional[List[Result]] = None) -> Path:
        """Write a ScanOutput document to <out_dir>/DDMMYY-HHMMSS-cli-pscan.json."""
        directory = Path(out_dir or settings.output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / (dt.datetime.now().strftime("%d%m%y-%H%M%S") + "-cli-pscan.json")
        output = self.build_output(results)
        path.write_text(output.model_dump_json(indent=2))
        log.info("wrote %d results to %s", len(output.results), path)
        return path
