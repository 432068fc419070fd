from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self


class CustomFieldSetting(BaseModel):
    """Definition of one configurable job field."""

    name: str
    type: Literal["string", "number", "date", "boolean"] = "string"
    required: bool = False
    default: Any = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "LineStart"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = "sqlite:///./linestart.db"
    SQL_ECHO: bool = False

    # Observability
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "console"

    # Change feed consumers
    RUN_CONSUMERS: bool = False
    CHANGEFEED_BATCH_SIZE: int = 100
    CHANGEFEED_POLL_INTERVAL_SECONDS: float = 1.0
    CONSUMER_BACKOFF_BASE_SECONDS: float = 0.5
    CONSUMER_BACKOFF_MAX_SECONDS: float = 30.0

    # Compare-and-set retries for last-writer-wins updates (downtime toggling)
    CAS_MAX_ATTEMPTS: int = 5

    # Jobs that own downtime work orders
    MAINTENANCE_JOB_CRITICAL: str = "MAINT-CRITICAL"
    MAINTENANCE_JOB_STANDARD: str = "MAINT-STANDARD"

    JOB_CUSTOM_FIELDS: list[CustomFieldSetting] = []

    @model_validator(mode="after")
    def _check_batching(self) -> Self:
        if self.CHANGEFEED_BATCH_SIZE < 1:
            raise ValueError("CHANGEFEED_BATCH_SIZE must be at least 1")
        if self.CAS_MAX_ATTEMPTS < 1:
            raise ValueError("CAS_MAX_ATTEMPTS must be at least 1")
        if self.MAINTENANCE_JOB_CRITICAL == self.MAINTENANCE_JOB_STANDARD:
            raise ValueError("Maintenance job ids must differ")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()

