from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    name: str = "indexkit"
    env: str = "development"
    log_level: str = "INFO"
    log_json: bool = False
    # Transport settings for FastMCP: "stdio" (default), "http", or "sse"
    transport: Literal["stdio", "http", "sse"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000


class SearchConfig(BaseModel):
    """Search service connection and indexing behaviour."""

    base_url: Optional[str] = None
    app_id: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 30.0
    verify_ssl: bool = True
    # Maximum number of entries sent in one batch request
    batch_size: int = Field(default=1000, ge=1)
    # Base polling unit in seconds; grows by one unit every 10 polls
    wait_task_time_before_retry: float = Field(default=0.1, ge=0)
    # None means the forwardToReplicas flag is omitted entirely
    default_forward_to_replicas: Optional[bool] = None
    # None means wait_task polls until the task is published
    max_wait_attempts: Optional[int] = Field(default=None, ge=1)


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="INDEXKIT_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    search: SearchConfig = SearchConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only."""
    return Settings()  # type: ignore[call-arg]
