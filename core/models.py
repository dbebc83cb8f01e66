"""
Shared data models for the scan engine, exporters and the API.
ScanConfig goes in, Result comes out; ScanOutput wraps several Results for
the JSON file written by the CLI.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.config import settings


class ScanConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    ports: Tuple[int, ...]
    workers: int = Field(default_factory=lambda: settings.default_workers, ge=1)
    timeout: float = Field(default_factory=lambda: settings.default_timeout_s, gt=0)
    max_retries: int = Field(default_factory=lambda: settings.default_max_retries, ge=1)
    backoff_base: float = Field(default_factory=lambda: settings.backoff_base_s, ge=0)

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("target must not be empty")
        return v

    @field_validator("ports")
    @classmethod
    def validate_ports(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        if not v:
            raise ValueError("port list must not be empty")
        for port in v:
            if port < 1 or port > 65535:
                raise ValueError(f"invalid port: {port}")
        return v


class PortResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int
    banner: str = ""


class Result(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: str
    open_ports: List[PortResult] = Field(default_factory=list)
    total_ports: int
    open_count: int
    duration: float
    cancelled: bool = False

    @model_validator(mode="after")
    def check_open_count(self) -> "Result":
        if self.open_count != len(self.open_ports):
            raise ValueError("open_count must equal the number of open ports")
        return self

    @property
    def duration_display(self) -> str:
        return f"{self.duration:.3f}s"

    def open_port_numbers(self) -> List[int]:
        return [p.port for p in self.open_ports]


class ScanOutput(BaseModel):
    timestamp: str = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()
    )
    targets: List[str] = Field(default_factory=list)
    total_ports: int = 0
    results: List[Result] = Field(default_factory=list)
