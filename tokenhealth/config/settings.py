"""
Application settings loaded from environment variables.

Uses pydantic-settings for automatic loading from .env file.
All settings have sensible defaults; every data provider works without
an API key on its free tier except the social profile lookup.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration.

    All values are loaded from environment variables.
    Copy .env.example to .env and fill in your values.

    Attributes:
        telegram_bot_token: Bot token from @BotFather (bot entry point only)
        environment: Runtime environment (development/production)
        log_level: Logging verbosity
        *_api_key / *_token: Provider credentials (optional)
        *_timeout: Per-call timeout of each provider, seconds
        aggregation_deadline: Overall fan-out deadline, seconds
        max_retries: Extra attempts on transport failure
        retry_backoff: First retry delay, seconds
        backoff_multiplier: Delay growth factor between retries
        metrics_ttl_seconds: Lifetime of computed health reports
        identity_ttl_seconds: Lifetime of resolved identities and profiles
    """

    # Bot
    telegram_bot_token: str = ""

    # Environment
    environment: Literal["development", "production"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Provider credentials
    coingecko_api_key: str = ""
    etherscan_api_key: str = ""
    twitter_bearer_token: str = ""
    github_token: str = ""

    # Provider base URLs
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    geckoterminal_base_url: str = "https://api.geckoterminal.com/api/v2"
    etherscan_base_url: str = "https://api.etherscan.io/v2/api"
    goplus_base_url: str = "https://api.gopluslabs.io/api/v1"
    defillama_base_url: str = "https://api.llama.fi"
    twitter_base_url: str = "https://api.twitter.com/2"
    github_base_url: str = "https://api.github.com"

    # Timeouts (seconds)
    market_data_timeout: float = 12.0
    search_timeout: float = 8.0
    pools_timeout: float = 8.0
    explorer_timeout: float = 8.0
    security_timeout: float = 10.0
    tvl_timeout: float = 10.0
    social_timeout: float = 10.0
    code_timeout: float = 10.0
    aggregation_deadline: float = 25.0

    # Retries
    max_retries: int = 1
    retry_backoff: float = 1.0
    backoff_multiplier: float = 1.5

    # Caches
    metrics_ttl_seconds: int = 300
    identity_ttl_seconds: int = 86_400

    # Pydantic settings config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # Case-insensitive env var names
        case_sensitive=False,
        # Don't fail if .env doesn't exist
        env_ignore_empty=True,
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to avoid re-reading .env file on every call.
    Settings are loaded once and reused throughout the application.

    Returns:
        Settings instance with all configuration values.
    """
    return Settings()
