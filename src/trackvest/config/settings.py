"""Application settings and configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "TrackVest Market Data"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # Upstream proxy
    upstream_base_url: str = "http://localhost:3001"
    polygon_api_key: Optional[str] = None
    request_timeout_seconds: float = 10.0

    # Trading calendar
    fallback_trading_date: str = "2025-01-31"
    # Known upstream data gaps: resolved date -> substitute date (both YYYY-MM-DD)
    trading_date_overrides: dict[str, str] = {}
    # Ad-hoc full-day closures not covered by the holiday rules
    market_closures: list[str] = []
    calendar_max_attempts: int = 15

    # Batch enrichment
    batch_price_limit: int = 5
    batch_stagger_seconds: float = 0.1

    # Cache behavior
    prefetch_crypto: bool = False
    coalesce_requests: bool = True

    # Offline operation / simulation
    offline_mode: bool = False
    simulation_seed: Optional[int] = None


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
