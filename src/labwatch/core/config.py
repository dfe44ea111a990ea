"""
Configuration management for the Labwatch inventory service.

Uses Pydantic Settings for environment variable validation and type safety.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class DatabaseConfig(BaseSettings):
    """Inventory database configuration."""

    path: str = Field(
        default="/data/labwatch.db",
        description="Path to the SQLite inventory database"
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a write lock before failing"
    )

    class Config:
        env_prefix = "LABWATCH_DB_"


class MonitorConfig(BaseSettings):
    """Reconciliation and liveness configuration."""

    stale_after_hours: int = Field(
        default=24,
        ge=1,
        description="Hours without contact before an active device is marked offline"
    )
    change_window_days: int = Field(
        default=7,
        ge=1,
        description="Rolling window for the per-device change count in listings"
    )
    recent_changes_limit: int = Field(
        default=10,
        ge=1,
        description="Number of recent change records returned with a device"
    )

    class Config:
        env_prefix = "LABWATCH_"


class ApiConfig(BaseSettings):
    """HTTP API configuration."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")
    reload: bool = Field(default=False, description="Enable uvicorn auto-reload")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins (reporting agents post cross-origin)"
    )

    class Config:
        env_prefix = "API_"


class AppConfig(BaseSettings):
    """Main application configuration."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # Nested configurations
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global configuration instance.

    Lazily loads configuration on first access.

    Returns:
        AppConfig: The global configuration instance
    """
    global _config
    if _config is None:
        _config = AppConfig(
            database=DatabaseConfig(),
            monitor=MonitorConfig(),
            api=ApiConfig(),
        )
    return _config


def reload_config() -> AppConfig:
    """
    Reload configuration from environment variables.

    Useful for testing or when environment changes.

    Returns:
        AppConfig: The reloaded configuration instance
    """
    global _config
    _config = None
    return get_config()
