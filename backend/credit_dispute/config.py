"""
Credit Dispute Engine - Configuration
Runtime settings read from environment variables
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    # Base URL of the remote template repository; None disables remote lookup
    template_repository_url: Optional[str]
    template_fetch_timeout: float
    # Seconds a failed template source is skipped before it is tried again
    template_retry_seconds: float
    allow_sample_data: bool
    salvage_max_pages: int
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process. Call get_settings.cache_clear() to reload."""
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./credit_dispute.db"),
        template_repository_url=os.getenv("TEMPLATE_REPOSITORY_URL") or None,
        template_fetch_timeout=float(os.getenv("TEMPLATE_FETCH_TIMEOUT", "5")),
        template_retry_seconds=float(os.getenv("TEMPLATE_RETRY_SECONDS", "60")),
        allow_sample_data=_env_bool("ALLOW_SAMPLE_DATA", False),
        salvage_max_pages=int(os.getenv("SALVAGE_MAX_PAGES", "50")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
