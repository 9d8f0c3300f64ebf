"""
Configuration and settings for the teams backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Document store (MongoDB)
    mongo_url: str = Field(default="mongodb://127.0.0.1:27017", env="MONGO_URL")
    mongo_db_name: str = Field(default="languagenest-teams", env="MONGO_DB_NAME")
    mongo_timeout_ms: int = Field(default=5000, env="MONGO_TIMEOUT_MS")

    # Binary object store; GridFS bucket name and upload category tag
    media_bucket: str = Field(default="photos", env="MEDIA_BUCKET")
    media_chunk_size: int = Field(default=255 * 1024, env="MEDIA_CHUNK_SIZE")

    # Optional S3-compatible media storage (Tencent COS)
    cos_endpoint: Optional[str] = Field(default=None, env="COS_ENDPOINT")
    cos_region: Optional[str] = Field(default=None, env="COS_REGION")
    cos_bucket: Optional[str] = Field(default=None, env="COS_BUCKET")
    aws_access_key_id: Optional[str] = Field(
        default=None, env="AWS_ACCESS_KEY_ID"
    )
    aws_secret_access_key: Optional[str] = Field(
        default=None, env="AWS_SECRET_ACCESS_KEY"
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, env="USE_IN_MEMORY_BACKENDS"
    )

    # Keep the previous photo when a member update carries no new file.
    preserve_member_image_on_update: bool = Field(
        default=False, env="PRESERVE_MEMBER_IMAGE_ON_UPDATE"
    )

    # HTTP server
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    host: str = Field(default="0.0.0.0", env="HOST")
    port: int = Field(default=8000, env="PORT")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
