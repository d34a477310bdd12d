"""
Application settings using Pydantic.

Provides environment-based configuration loading with PROMRDF_ prefix.
"""

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def default_store_path() -> Path:
    """Well-known location of the durable graph store."""
    return Path(tempfile.gettempdir()) / "promrdf" / "graph.db"


class Settings(BaseSettings):
    """Application settings."""

    # Graph store
    store_path: Path = Field(default_factory=default_store_path)

    # Discovery
    namespace: str | None = None
    annotation_prefix: str = "prometheus.io/"
    kubeconfig: str | None = None
    kube_context: str | None = None

    # Scraping
    scrape_concurrency: int = Field(default=16, ge=1)
    scrape_timeout: float = Field(default=10.0, gt=0)
    scrape_max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    scrape_retries: int = Field(default=1, ge=0)
    cancel_policy: Literal["all_or_nothing", "best_effort"] = "all_or_nothing"

    # Identifiers
    workload_base: str = "https://promrdf.dev/workload/"
    metric_base: str = "https://promrdf.dev/metric/"

    # Export
    triples_file: Path = Path("metrics.nt")
    turtle_file: Path = Path("metrics.ttl")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_format: Literal["console", "json"] = "console"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "PROMRDF_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
