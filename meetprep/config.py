"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Meeting Prep Discovery"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Database (Turso / local libSQL file)
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)

    # Anthropic (relevance classification and summarization)
    anthropic_api_key: str | None = Field(default=None)
    anthropic_model: str = Field(default="claude-sonnet-4-5")
    llm_timeout_seconds: float = Field(default=90.0, gt=0)

    # Workspace Graph
    graph_base_url: str = Field(default="https://graph.microsoft.com/v1.0")
    graph_timeout_seconds: float = Field(default=30.0, gt=0)

    # Discovery pipeline
    discovery_cache_ttl_minutes: int = Field(default=30, ge=1)
    discovery_window_days: int = Field(default=30, ge=1, le=365)
    channel_fetch_threshold: int = Field(default=50, ge=0, le=100)
    keyword_boost: int = Field(default=30, ge=0, le=100)
    source_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Independent timeout for each Graph source call",
    )
    classification_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout for one category's relevance classification",
    )
    classification_batch_size: int = Field(default=50, ge=1, le=200)

    # Source limits
    message_fetch_limit: int = Field(default=200, ge=1, le=1000)
    recent_files_limit: int = Field(default=100, ge=1)
    insights_limit: int = Field(default=50, ge=1)
    search_limit: int = Field(default=25, ge=1)
    channel_messages_limit: int = Field(default=50, ge=1)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
