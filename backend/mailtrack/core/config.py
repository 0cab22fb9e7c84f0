"""Application configuration using Pydantic BaseSettings"""
import logging
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Setup logging
logger = logging.getLogger("config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Runtime
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"

    # OpenTelemetry
    OTEL_EXPORTER_OTLP_ENDPOINT: str = ""
    OTEL_SERVICE_NAME: str = "mailtrack"
    OTEL_ENVIRONMENT: str = "development"

    # Event logs
    DATA_DIR: Path = Path("data").resolve()
    SENT_LOG_FILENAME: str = "sent.jsonl"
    OPEN_LOG_FILENAME: str = "opens.jsonl"
    FSYNC_WRITES: bool = True

    # Admin
    # Only enforced when ENVIRONMENT == "production"
    ADMIN_TOKEN: str = ""

    # CORS (the pixel and API are fetched from arbitrary mail clients)
    CORS_ORIGINS: List[str] = ["*"]

    # Queries
    DEFAULT_RECENT_WINDOW_HOURS: float = 24
    REPORT_RECENT_OPENS: int = 10

    # Pydantic V2 Config
    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("REPORT_RECENT_OPENS")
    @classmethod
    def check_report_recent_opens(cls, v):
        if v < 0:
            raise ValueError("REPORT_RECENT_OPENS must be >= 0")
        return v

    @property
    def sent_log_path(self) -> Path:
        return Path(self.DATA_DIR) / self.SENT_LOG_FILENAME

    @property
    def open_log_path(self) -> Path:
        return Path(self.DATA_DIR) / self.OPEN_LOG_FILENAME

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


# Create global settings instance
settings = Settings()

if settings.is_production and not settings.ADMIN_TOKEN:
    logger.warning("ADMIN_TOKEN is not set - admin endpoints will reject every request")
