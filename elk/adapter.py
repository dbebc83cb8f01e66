"""
Elasticsearch adapter for exporting scan results and reading them back.
Uses the official client; retries bulk writes with a short jittered backoff.
"""

from __future__ import annotations

import datetime as dt
import random
import time
from typing import Dict, Iterable, List

from elasticsearch import Elasticsearch, helpers

from core.config import settings
from core.models import Result

RESULTS_INDEX = "portscan-results"
OPEN_PORTS_INDEX = "portscan-open-ports"


def result_docs(result: Result) -> List[Dict]:
    ts = dt.datetime.now(dt.timezone.utc).isoformat()
    doc = result.model_dump()
    doc["timestamp"] = ts
    return [doc]


def open_port_docs(result: Result) -> List[Dict]:
    ts = dt.datetime.now(dt.timezone.utc).isoformat()
    return [
        {"timestamp": ts, "target": result.target, "port": p.port, "banner": p.banner}
        for p in result.open_ports
    ]


class ElasticsearchAdapter:
    def __init__(self):
        if not settings.elasticsearch_url:
            raise ValueError("PORTSWEEP_ELASTICSEARCH_URL is required for ElasticsearchAdapter")

        client_args: Dict = {
            "hosts": [settings.elasticsearch_url],
            "verify_certs": settings.elasticsearch_verify_certs,
        }

        if settings.elasticsearch_api_key:
            client_args["api_key"] = settings.elasticsearch_api_key
        elif settings.elasticsearch_user and settings.elasticsearch_pass:
            client_args["basic_auth"] = (settings.elasticsearch_user, settings.elasticsearch_pass)

        if settings.elasticsearch_ca_cert:
            client_args["ca_certs"] = settings.elasticsearch_ca_cert

        self.client = Elasticsearch(**client_args)
        self.batch_size = settings.bulk_batch_size

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except Exception:  # noqa: BLE001
            return False

    def bulk_index(self, index: str, docs: Iterable[Dict], max_attempts: int = 3, backoff_base: float = 1.0):
        doc_list = list(docs)
        if not doc_list:
            return

        for start in range(0, len(doc_list), self.batch_size):
            chunk = doc_list[start : start + self.batch_size]
            actions = [{"_index": index, "_source": doc} for doc in chunk]
            for attempt in range(1, max_attempts + 1):
                try:
                    helpers.bulk(
                        self.client,
                        actions,
                        stats_only=True,
                        request_timeout=30,
                        raise_on_error=True,
                        max_retries=0,
                    )
                    break
                except Exception:  # noqa: BLE001
                    if attempt >= max_attempts:
                        raise
                    time.sleep(backoff_base * (2 ** (attempt - 1)) + random.random())

    def index_result(self, result: Result):
        self.bulk_index(RESULTS_INDEX, result_docs(result))
        self.bulk_index(OPEN_PORTS_INDEX, open_port_docs(result))

    def search_by_target(self, target: str, size: int = 50) -> List[Dict]:
        try:
            res = self.client.search(
                index=RESULTS_INDEX,
                size=size,
                query={"term": {"target.keyword": target}},
                sort=[{"timestamp": {"order": "desc"}}],
            )
            hits = res.get("hits", {}).get("hits", [])
            return [h.get("_source", {}) for h in hits]
        except Exception:  # noqa: BLE001
            return []
