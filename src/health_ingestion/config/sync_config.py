# ============================================================================
# src/health_ingestion/config/sync_config.py
# ============================================================================
"""
WHOOP Sync Settings
- API endpoint and credentials
- Pagination limits
- Throttling and retry budget
"""

from typing import Optional
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

class SyncSettings(BaseSettings):
    WHOOP_API_BASE: str = Field(
        default="https://api.prod.whoop.com/developer/v1",
        description="Base URL of the WHOOP developer API"
    )
    WHOOP_ACCESS_TOKEN: Optional[str] = Field(
        default=None,
        description="Fallback bearer token when the request carries none"
    )
    USER_AGENT: str = Field(
        default="HealthIngestion/1.0",
        description="User-Agent header sent to the WHOOP API"
    )
    PAGE_SIZE: int = Field(
        default=25,
        ge=1, le=25,
        description="Records requested per page (WHOOP maximum is 25)"
    )
    MAX_PAGES: int = Field(
        default=100,
        ge=1,
        description="Hard cap on pages fetched per data type per sync"
    )
    INTER_PAGE_DELAY_SECONDS: float = Field(
        default=0.75,
        ge=0.0,
        description="Pause between consecutive page requests"
    )
    INTER_TYPE_DELAY_SECONDS: float = Field(
        default=1.0,
        ge=0.0,
        description="Pause between data types in an all-type sync"
    )
    RATE_LIMIT_DELAY_SECONDS: float = Field(
        default=2.0,
        ge=0.0,
        description="First wait after HTTP 429; doubles on each retry"
    )
    MAX_RATE_LIMIT_RETRIES: int = Field(
        default=5,
        ge=0,
        description="Retries allowed per page on HTTP 429"
    )
    MAX_SERVER_ERROR_RETRIES: int = Field(
        default=3,
        ge=0,
        description="Retries allowed per page on HTTP 5xx or connection errors"
    )
    BACKOFF_MAX_SECONDS: float = Field(
        default=30.0,
        ge=0.0,
        description="Upper bound for a single backoff wait"
    )
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        gt=0.0,
        description="Total timeout for one HTTP request"
    )

    @model_validator(mode="after")
    def validate_backoff(self):
        if self.BACKOFF_MAX_SECONDS < self.RATE_LIMIT_DELAY_SECONDS:
            raise ValueError("BACKOFF_MAX_SECONDS must be >= RATE_LIMIT_DELAY_SECONDS")
        return self

sync_settings = SyncSettings()
