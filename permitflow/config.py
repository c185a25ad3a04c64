"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # Database (unset -> in-memory repository)
    database_url: str | None = None

    # Document analysis
    analysis_provider: str = "simulated"  # "simulated" | "rules"
    analysis_timeout_ms: int = 30_000
    analysis_min_delay_ms: int = 1000
    analysis_max_delay_ms: int = 3000
    analysis_issue_rate: float = 0.8
    analysis_rng_seed: int | None = None

    # Upload limits
    max_document_size_bytes: int = 25 * 1024 * 1024
    allowed_mime_types: list[str] = [
        "application/pdf",
        "image/jpeg",
        "image/png",
        "image/tiff",
        "image/vnd.dwg",
    ]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
