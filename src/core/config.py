from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Ignore unrelated env keys so local/dev .env can carry frontend settings too.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Master Report Service"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    master_report_api_url: str = Field(default="http://localhost:5000", alias="MASTER_REPORT_API_URL")
    master_report_api_token: Optional[str] = Field(default=None, alias="MASTER_REPORT_API_TOKEN")
    master_report_timeout_seconds: float = Field(default=30.0, alias="MASTER_REPORT_TIMEOUT_SECONDS")

    fiscal_year_start_month: int = Field(default=7, ge=1, le=12, alias="FISCAL_YEAR_START_MONTH")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
