"""
Application configuration via environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from reachout.models import MergePolicy, ScanConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "ReachOut API"
    debug: bool = False
    api_prefix: str = "/api/v1"
    port: int = 8000

    # Storage: sqlite:///path.db, a plain path, or mongodb:// / mongodb+srv://
    database_url: str = "sqlite:///reachout.db"
    merge_policy: MergePolicy = MergePolicy.SKIP

    # Listing source (Adzuna)
    adzuna_app_id: str = ""
    adzuna_app_key: str = ""
    adzuna_country: str = "gb"
    adzuna_what: str = ""

    # Run shape
    start_page: int = 1
    max_pages: int = 1
    results_per_page: int = 20
    max_candidates: int = 5
    search_suffix: str = "company website"

    # Politeness
    min_interval_ms: int = 1000
    max_attempts: int = 3
    retry_base_delay_ms: int = 1000
    job_delay_s: float = 5.0
    request_timeout_s: int = 15

    # Scheduling
    scan_interval_hours: int = 24
    run_on_startup: bool = True

    # Self-ping keeps free-tier hosts from idling the process between runs.
    public_url: Optional[str] = None
    self_ping_minutes: int = 10

    @field_validator("merge_policy", mode="before")
    @classmethod
    def parse_merge_policy(cls, v):
        if isinstance(v, str):
            return MergePolicy.from_text(v)
        return v

    @field_validator("public_url", mode="before")
    @classmethod
    def strip_public_url(cls, v):
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            return v or None
        return v

    def scan_config(self) -> ScanConfig:
        """Core run configuration from these settings."""
        return ScanConfig(
            start_page=self.start_page,
            max_pages=self.max_pages,
            results_per_page=self.results_per_page,
            country=self.adzuna_country,
            what=self.adzuna_what,
            search_suffix=self.search_suffix,
            max_candidates=self.max_candidates,
            min_interval_ms=self.min_interval_ms,
            max_attempts=self.max_attempts,
            retry_base_delay_ms=self.retry_base_delay_ms,
            job_delay_s=self.job_delay_s,
            request_timeout_s=self.request_timeout_s,
            merge_policy=self.merge_policy,
        )

    class Config:
        env_prefix = "REACHOUT_"
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
