"""
Configuration and settings for the campus backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="")

    # MongoDB
    mongo_uri: Optional[str] = Field(default=None)
    db_name: str = Field(default="campus")
    mongo_server_selection_timeout_ms: int = Field(default=5000)

    # Image hosting
    image_provider: Literal["imgbb", "s3", "memory"] = Field(default="imgbb")
    imgbb_api_key: Optional[str] = Field(default=None)
    imgbb_upload_url: str = Field(default="https://api.imgbb.com/1/upload")
    upload_timeout_seconds: float = Field(default=30)

    # S3-compatible media bucket
    s3_bucket: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_endpoint: Optional[str] = Field(default=None)
    s3_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="CAMPUS_USE_IN_MEMORY_BACKENDS"
    )

    # HTTP
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
