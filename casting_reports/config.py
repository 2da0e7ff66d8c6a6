"""
Runtime configuration helpers for the report case service.

Loads DATABASE_URL and the remaining variables from the process environment,
falling back to the .env file located in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required; comes from the environment or .env
    database_url: str = Field(..., alias="DATABASE_URL")

    app_name: str = Field(default="Casting Reports", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    cors_origins: str | None = Field(default=None, alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Case filing limits
    report_max_evidence: int = Field(default=5, alias="REPORT_MAX_EVIDENCE")
    report_title_max_length: int = Field(default=200, alias="REPORT_TITLE_MAX_LENGTH")
    report_description_max_length: int = Field(default=2000, alias="REPORT_DESCRIPTION_MAX_LENGTH")
    report_message_max_length: int = Field(default=4000, alias="REPORT_MESSAGE_MAX_LENGTH")
    report_note_max_length: int = Field(default=2000, alias="REPORT_NOTE_MAX_LENGTH")
    report_duplicate_window_hours: int = Field(default=24, alias="REPORT_DUPLICATE_WINDOW_HOURS")

    # Content lookup collaborator (castings, blogs, news, applications)
    content_api_base_url: str | None = Field(default=None, alias="CONTENT_API_BASE_URL")
    content_api_timeout: float = Field(default=5.0, alias="CONTENT_API_TIMEOUT")

    # S3-compatible evidence storage; key/secret are read via require_secret
    storage_region: str | None = Field(default=None, alias="STORAGE_REGION")
    storage_bucket: str | None = Field(default=None, alias="STORAGE_BUCKET")
    storage_endpoint_url: str | None = Field(default=None, alias="STORAGE_ENDPOINT_URL")
    storage_public_base_url: str | None = Field(default=None, alias="STORAGE_PUBLIC_BASE_URL")
    storage_folder: str = Field(default="report-evidence", alias="STORAGE_FOLDER")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        if not self.cors_origins:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
