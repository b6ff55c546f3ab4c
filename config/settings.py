"""
Application Configuration Module

Centralizes all application settings using Pydantic Settings.
Environment variables are loaded from .env file automatically.

Usage:
    from config.settings import settings

    print(settings.BROWSER_TYPE)
    print(settings.THREAD)
"""

from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict
from typing import List, Optional
from functools import lru_cache

from config.constants import SUPPORTED_BROWSER_TYPES, HEADLESS_WITHOUT_USERAGENT
from utils.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Variable names are case-insensitive. The command line flags accepted
    by main.py override these values at startup.
    """

    # ==========================================================================
    # Browser Configuration
    # ==========================================================================
    HEADLESS: bool = Field(
        default=True,
        description="Run the browsers in headless mode"
    )
    USERAGENT: Optional[str] = Field(
        default=None,
        description="Custom User-Agent passed to every browser"
    )
    BROWSER_TYPE: str = Field(
        default="chromium",
        description="Browser engine (chromium, firefox, webkit)"
    )
    THREAD: int = Field(
        default=1,
        description="Number of browsers in the worker pool"
    )

    # ==========================================================================
    # Proxy Configuration
    # ==========================================================================
    PROXY: bool = Field(
        default=False,
        description="Pick a random proxy from PROXIES_FILE for each task"
    )
    PROXIES_FILE: str = Field(
        default="proxies.txt",
        description="Newline-delimited proxy list"
    )

    # ==========================================================================
    # Storage
    # ==========================================================================
    RESULTS_FILE: str = Field(
        default="results.json",
        description="JSON file holding resolved task results"
    )

    # ==========================================================================
    # Server
    # ==========================================================================
    HOST: str = Field(
        default="127.0.0.1",
        description="API bind host"
    )
    PORT: int = Field(
        default=5000,
        description="API bind port"
    )
    RATE_LIMIT_SOLVE: str = Field(
        default="60/minute",
        description="Per-client limit on solve submissions"
    )

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )
    LOG_JSON: bool = Field(
        default=False,
        description="Emit JSON log lines instead of coloured console output"
    )
    APP_NAME: str = Field(
        default="Turnstile Solver",
        description="Application name for OpenAPI docs"
    )
    APP_VERSION: str = Field(
        default="1.0.0",
        description="Application version"
    )

    @property
    def browser_args(self) -> List[str]:
        """Launch arguments shared by every browser in the pool."""
        if self.USERAGENT:
            return [f"--user-agent={self.USERAGENT}"]
        return []

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )


def check_startup_config(config: Settings) -> None:
    """
    Reject configurations the solver cannot start with.

    Raises:
        ConfigurationError: On an unknown browser type, a headless launch
            without a User-Agent for engines that need one, or an empty pool.
    """
    if config.BROWSER_TYPE not in SUPPORTED_BROWSER_TYPES:
        raise ConfigurationError(
            f"Unknown browser type: {config.BROWSER_TYPE}",
            setting="BROWSER_TYPE",
        )

    if (
        config.HEADLESS
        and not config.USERAGENT
        and config.BROWSER_TYPE not in HEADLESS_WITHOUT_USERAGENT
    ):
        raise ConfigurationError(
            "You must specify a User-Agent when using headless mode",
            setting="USERAGENT",
        )

    if config.THREAD < 1:
        raise ConfigurationError(
            f"Worker pool size must be at least 1, got {config.THREAD}",
            setting="THREAD",
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()


# Singleton instance for easy import
settings = get_settings()
