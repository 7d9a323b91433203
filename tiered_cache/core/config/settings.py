#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

Type-safe, environment-based configuration for the tiered cache core.
All tunables (Redis connection, tier sizes and TTLs, logging) live here so
that the façade, the stores and the metrics reporter read one source of truth.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with reload_settings()
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """
    Redis configuration for the shared L2 tier.

    STAGE-REDIS.0: Redis connection configuration
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: float = Field(default=2.0, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(default=2.0, description="Connect timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Two-tier cache configuration.

    STAGE-C.0: Tier sizing and default TTLs

    Per-region TTLs come from the region registry; the values here are the
    L1 ceiling and the fallbacks used when a region does not say otherwise.
    """

    ENABLE_CACHING: bool = Field(default=True, description="Master switch for both tiers")
    CACHE_L1_MAX_SIZE: int = Field(default=1000, description="L1 entries per region")
    CACHE_L1_TTL: int = Field(default=300, description="L1 TTL ceiling in seconds (5 minutes)")
    CACHE_L2_DEFAULT_TTL: int = Field(default=900, description="L2 default TTL in seconds (15 minutes)")
    CACHE_KEY_PREFIX: str = Field(default="cache", description="Namespace prefix for L2 keys")
    CACHE_METRICS_INTERVAL: float = Field(default=60.0, description="Metrics sampling interval in seconds")
    CACHE_REGION_CONFIG_FILE: str | None = Field(
        default=None, description="Optional JSON file overriding region policies"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """General application settings."""

    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Tiered Cache Core", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    Usage:
        from tiered_cache.core.config.settings import get_settings

        settings = get_settings()
        l1_size = settings.cache.CACHE_L1_MAX_SIZE
        redis_host = settings.redis.REDIS_HOST
    """

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum pooled connections")
    REDIS_SOCKET_TIMEOUT: float = Field(default=2.0, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: float = Field(default=2.0, description="Connect timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    # Cache settings
    ENABLE_CACHING: bool = Field(default=True, description="Master switch for both tiers")
    CACHE_L1_MAX_SIZE: int = Field(default=1000, description="L1 entries per region")
    CACHE_L1_TTL: int = Field(default=300, description="L1 TTL ceiling in seconds (5 minutes)")
    CACHE_L2_DEFAULT_TTL: int = Field(default=900, description="L2 default TTL in seconds (15 minutes)")
    CACHE_KEY_PREFIX: str = Field(default="cache", description="Namespace prefix for L2 keys")
    CACHE_METRICS_INTERVAL: float = Field(default=60.0, description="Metrics sampling interval in seconds")
    CACHE_REGION_CONFIG_FILE: str | None = Field(
        default=None, description="Optional JSON file overriding region policies"
    )

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment"
    )
    APP_NAME: str = Field(default="Tiered Cache Core", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("CACHE_L1_MAX_SIZE", "CACHE_L1_TTL", "CACHE_L2_DEFAULT_TTL")
    @classmethod
    def validate_positive(cls, v):
        """Sizes and TTLs must be positive."""
        if v <= 0:
            raise ValueError("cache sizes and TTLs must be positive")
        return v

    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            ENABLE_CACHING=self.ENABLE_CACHING,
            CACHE_L1_MAX_SIZE=self.CACHE_L1_MAX_SIZE,
            CACHE_L1_TTL=self.CACHE_L1_TTL,
            CACHE_L2_DEFAULT_TTL=self.CACHE_L2_DEFAULT_TTL,
            CACHE_KEY_PREFIX=self.CACHE_KEY_PREFIX,
            CACHE_METRICS_INTERVAL=self.CACHE_METRICS_INTERVAL,
            CACHE_REGION_CONFIG_FILE=self.CACHE_REGION_CONFIG_FILE,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    @property
    def app(self) -> ApplicationSettings:
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (lazily created).

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
