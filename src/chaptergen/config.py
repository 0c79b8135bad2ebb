"""Configuration management for chaptergen."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Input limits
    max_srt_bytes: int = 420 * 1024
    min_timestamp_count: int = 1
    max_timestamp_count: int = 100

    # Chunking
    chunk_target_minutes: float = 6.0
    chunk_max_minutes: float = 8.0
    chunk_min_minutes: float = 4.0
    chunk_overlap_seconds: float = 30.0

    # Selection
    duplicate_tolerance_seconds: float = 5.0

    # Moment proposer
    proposer: str = "auto"
    anthropic_api_key: str | None = None
    claude_model: str = "claude-sonnet-4-20250514"
    google_api_key: str | None = None
    gemini_model: str = "gemini-2.5-pro"
    gemini_fallback_model: str | None = "gemini-2.5-flash"
    proposer_max_retries: int = 2

    # Fan-out
    max_concurrent_chunks: int = 4
    chunk_timeout_seconds: float = 120.0


# Global settings instance
settings = Settings()
