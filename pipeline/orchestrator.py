"""
Multi-target orchestrator: builds a validated ScanConfig per target, runs
one ScanEngine per target and hands each Result to the local state store
and, when configured, Elasticsearch.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from core.config import settings
from core.errors import ScanConfigError
from core.models import Result, ScanConfig
from core.progress import ProgressSink
from core.state import StateManager
from core.targets import resolve_target
from elk.adapter import ElasticsearchAdapter
from pipeline.engine import ScanEngine

log = logging.getLogger(__name__)


def build_config(target: str, ports: Iterable[int], **overrides: Any) -> ScanConfig:
    """ScanConfig from loose inputs; None overrides fall back to settings."""
    params = {k: v for k, v in overrides.items() if v is not None}
    try:
        return ScanConfig(target=target, ports=tuple(ports), **params)
    except ValidationError as exc:
        errors = "; ".join(f"{'.'.join(str(x) for x in e['loc'])}: {e['msg']}" for e in exc.errors())
        raise ScanConfigError(errors) from exc


class Orchestrator:
    def __init__(self, state: Optional[StateManager] = None) -> None:
        self.state = state or StateManager()
        self.elk = ElasticsearchAdapter() if settings.elasticsearch_url else None
        self.degraded = False

    def _emit(self, result: Result) -> None:
        self.state.record_result(result)
        if not self.elk:
            return
        try:
            self.elk.index_result(result)
            self.degraded = False
        except Exception as e:  # noqa: BLE001
            log.exception("ELK export failed | target=%s | err=%s", result.target, e)
            self.degraded = True

    def scan(
        self,
        config: ScanConfig,
        progress: Optional[ProgressSink] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> Result:
        result = ScanEngine(config, progress=progress, stop_event=stop_event).run()
        self._emit(result)
        return result

    def scan_many(
        self,
        targets: List[str],
        ports: List[int],
        progress_factory: Optional[Callable[[ScanConfig], ProgressSink]] = None,
        stop_event: Optional[threading.Event] = None,
        on_result: Optional[Callable[[Result], None]] = None,
        **overrides: Any,
    ) -> List[Result]:
        if not targets:
            raise ScanConfigError("no target specified")
        configs = [build_config(t, ports, **overrides) for t in targets]
        # every target must resolve before the first scan starts
        for cfg in configs:
            resolve_target(cfg.target)

        results: List[Result] = []
        for cfg in configs:
            if stop_event is not None and stop_event.is_set():
                break
            progress = progress_factory(cfg) if progress_factory else None
            result = self.scan(cfg, progress=progress, stop_event=stop_event)
            results.append(result)
            if on_result:
                on_result(result)
        return results

    def report(self, target: str) -> List[Dict[str, Any]]:
        if self.elk and target:
            docs = self.elk.search_by_target(target)
            if docs:
                return docs
        return [r.model_dump() for r in self.state.list_results(target)]

    def verify(self) -> Dict[str, bool]:
        elk_ok = self.elk.ping() if self.elk else False
        return {
            "elk_configured": self.elk is not None,
            "elk": elk_ok,
            "cache": self.state.cache_path is not None,
            "degraded": self.degraded,
        }
