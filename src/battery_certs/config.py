"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables
  - Fall back to .env file
  - Validate types and constraints at startup
  - Keep the operator password out of source control

Architecture: Only AppSettings is a BaseSettings instance. Sub-settings are plain
BaseModel classes populated by AppSettings via env_nested_delimiter="__", so the env
var API__BASE_URL maps to api.base_url, BATCH__UPLOAD_PAUSE_SECONDS maps to
batch.upload_pause_seconds, etc.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

MAX_UPLOAD_BYTES = 16 * 1024 * 1024


class ApiSettings(BaseModel):
    """
    Certificate service endpoints.

    One base URL plus the four paths the service exposes. The timeout
    applies to every call; None waits indefinitely.
    """

    base_url: str = Field(description="Certificate service base URL, e.g. https://certs.example.com")
    login_path: str = Field(default="/api/login")
    reference_table_path: str = Field(default="/api/car-data")
    extract_path: str = Field(default="/api/extract-pdf")
    render_path: str = Field(default="/api/generate-certificate")
    timeout_seconds: float | None = Field(default=60.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"


class BatchSettings(BaseModel):
    """
    Pacing and limits for the batch pipelines.

    The pauses throttle load on the remote service between sequential
    submissions. Set them to 0 only once the service's real rate limit is known.
    """

    upload_pause_seconds: float = Field(default=0.3, ge=0)
    generation_pause_seconds: float = Field(default=0.5, ge=0)
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, ge=1)


class AppSettings(BaseSettings):
    """
    Root application settings — aggregates all sub-settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    api: ApiSettings
    batch: BatchSettings = Field(default_factory=lambda: BatchSettings())

    output_dir: Path = Field(default=Path("certificates"))
    password: SecretStr | None = Field(default=None)
    log_level: str = Field(default="INFO")
