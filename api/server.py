"""
FastAPI surface over the orchestrator: run a scan, read stored results,
check exporter health.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from core.errors import ScanConfigError
from core.models import Result
from pipeline.orchestrator import Orchestrator, build_config

log = logging.getLogger(__name__)

app = FastAPI(title="portsweep API", version="0.1")
orch = Orchestrator()


class ScanPayload(BaseModel):
    target: str
    ports: List[int] = Field(default_factory=list)
    workers: Optional[int] = None
    timeout: Optional[float] = None
    max_retries: Optional[int] = None


@app.post("/api/scan", response_model=Result)
def api_scan(payload: ScanPayload):
    try:
        cfg = build_config(
            payload.target,
            payload.ports,
            workers=payload.workers,
            timeout=payload.timeout,
            max_retries=payload.max_retries,
        )
        return orch.scan(cfg)
    except ScanConfigError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        log.exception("scan failed")
        raise HTTPException(status_code=500, detail="scan failed") from exc


@app.get("/api/results")
def api_results(target: str = Query(...)):
    try:
        return {"results": orch.report(target)}
    except Exception as exc:  # noqa: BLE001
        log.exception("results lookup failed")
        raise HTTPException(status_code=500, detail="results lookup failed") from exc


@app.get("/api/health")
def api_health():
    try:
        return orch.verify()
    except Exception as exc:  # noqa: BLE001
        log.exception("health check failed")
        raise HTTPException(status_code=500, detail="health check failed") from exc
