"""
Pydantic-based configuration for the scan engine and its outer surfaces.

Every knob can be overridden through PORTSWEEP_* environment variables or a
local .env file, so the CLI, the API and the tests share one source of
defaults.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, env_file=".env", env_prefix="PORTSWEEP_")

    # Scan defaults
    default_workers: int = Field(100, description="worker threads per target")
    default_timeout_s: float = Field(5.0, description="connect timeout in seconds")
    default_max_retries: int = Field(3, description="connect attempts per port")
    backoff_base_s: float = Field(1.0, description="backoff unit, doubled per attempt")
    default_start_port: int = Field(1)
    default_end_port: int = Field(1024)

    # Banner reading
    banner_read_timeout_s: float = Field(1.0)
    banner_idle_timeout_s: float = Field(0.1)
    banner_max_bytes: int = Field(4096)
    http_banner_ports: List[int] = Field(default_factory=lambda: [80])

    # Output
    output_dir: str = Field("scan-results")
    json_cache_path: Optional[str] = Field(None)
    log_level: str = Field("WARNING")

    # Elasticsearch
    elasticsearch_url: Optional[str] = Field(None)
    elasticsearch_user: Optional[str] = Field(None)
    elasticsearch_pass: Optional[str] = Field(None)
    elasticsearch_api_key: Optional[str] = Field(None)
    elasticsearch_verify_certs: bool = Field(True)
    elasticsearch_ca_cert: Optional[str] = Field(None)
    bulk_batch_size: int = Field(500)

    @field_validator("default_workers", "default_max_retries", "banner_max_bytes", "bulk_batch_size")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("default_timeout_s", "banner_read_timeout_s", "banner_idle_timeout_s")
    @classmethod
    def validate_positive_float(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
