"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SMC_",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql://localhost/smc_signals"
    use_memory_store: bool = False  # In-process repository instead of the database

    # Signals
    default_user_id: str | None = None  # Owner whose tracked signals are loaded at startup
    symbols: list[str] = ["XAUUSD", "EURUSD", "GBPUSD", "BTCUSD"]
    candle_granularity: str = "M15"
    candle_buffer_size: int = 200

    # Periodic generation over `symbols` from the candle feed (off by default)
    auto_generate: bool = False
    auto_generate_interval: float = 300.0  # Seconds between rounds
    auto_generate_pause: float = 1.0  # Seconds between symbols within a round

    # Analysis detector toggles (YAML)
    analysis_config_path: str | None = None

    # Tracker persistence retry (bounded exponential backoff)
    persist_retry_attempts: int = 3
    persist_retry_base_delay: float = 0.5
    persist_retry_max_delay: float = 5.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
