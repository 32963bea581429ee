"""
Settings Module for Deployment Monitor

Configuration management using Pydantic Settings.
Supports environment variables, .env files, and runtime configuration.
Includes validation, type checking, and sensible defaults.
"""

from __future__ import annotations

import secrets
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Dict, Optional, Set
from enum import Enum

from pydantic import (
    Field,
    SecretStr,
    field_validator,
    model_validator
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    MYSQL = "mysql"


class BaseSettingsConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )


class DatabaseSettings(BaseSettingsConfig):
    """
    Database Configuration Settings

    Supports PostgreSQL (production), SQLite (development), and MySQL.
    Includes connection pooling and timeout configuration.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        extra="ignore"
    )

    # Database type and connection
    type: DatabaseType = Field(
        default=DatabaseType.SQLITE,
        description="Database type: postgresql, sqlite, or mysql"
    )

    # PostgreSQL / MySQL settings
    host: str = Field(
        default="localhost",
        description="Database host address"
    )
    port: int = Field(
        default=5432,
        ge=1,
        le=65535,
        description="Database port number"
    )
    name: str = Field(
        default="deployment_monitor",
        min_length=1,
        max_length=64,
        description="Database name"
    )
    user: str = Field(
        default="postgres",
        min_length=1,
        max_length=64,
        description="Database username"
    )
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password"
    )

    # SQLite settings
    sqlite_path: Path = Field(
        default=Path("data/deployment_monitor.db"),
        description="Path to SQLite database file"
    )

    # Connection pool settings
    pool_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Connection pool size"
    )
    max_overflow: int = Field(
        default=20,
        ge=0,
        le=100,
        description="Maximum overflow connections"
    )
    pool_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Pool connection timeout in seconds"
    )
    pool_recycle: int = Field(
        default=1800,
        ge=60,
        le=7200,
        description="Connection recycle time in seconds"
    )
    pool_pre_ping: bool = Field(
        default=True,
        description="Enable connection health check before use"
    )

    # Query settings
    echo: bool = Field(
        default=False,
        description="Echo SQL queries (debug mode)"
    )

    # Schema settings
    auto_create_tables: bool = Field(
        default=True,
        description="Create missing tables on startup"
    )

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured backend is SQLite."""
        return self.type == DatabaseType.SQLITE

    @property
    def url(self) -> str:
        """Generate async database URL based on configuration."""
        if self.type == DatabaseType.SQLITE:
            return f"sqlite+aiosqlite:///{self.sqlite_path}"

        elif self.type == DatabaseType.POSTGRESQL:
            password = self.password.get_secret_value()
            return (
                f"postgresql+asyncpg://{self.user}:{password}"
                f"@{self.host}:{self.port}/{self.name}"
            )

        elif self.type == DatabaseType.MYSQL:
            password = self.password.get_secret_value()
            return (
                f"mysql+aiomysql://{self.user}:{password}"
                f"@{self.host}:{self.port}/{self.name}"
            )

        raise ValueError(f"Unsupported database type: {self.type}")

    @field_validator("sqlite_path")
    @classmethod
    def validate_sqlite_path(cls, v: Path) -> Path:
        """Validate and normalize SQLite path."""
        if not v.suffix:
            v = v.with_suffix(".db")
        return v


class MonitoringSettings(BaseSettingsConfig):
    """
    Monitoring Configuration Settings

    Controls the health probe, the periodic sweep, and the default
    history limits returned with deployment views.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        env_file=".env",
        extra="ignore"
    )

    # Probe settings
    probe_timeout: float = Field(
        default=10.0,
        gt=0.0,
        le=120.0,
        description="Hard deadline for a single health probe in seconds"
    )
    user_agent: str = Field(
        default="DeploymentMonitor/1.0",
        description="User-Agent header sent with health probes"
    )
    follow_redirects: bool = Field(
        default=True,
        description="Follow redirects before classifying the response"
    )

    # Scheduler settings
    scheduler_enabled: bool = Field(
        default=True,
        description="Run the periodic health sweep"
    )
    check_interval: int = Field(
        default=300,  # 5 minutes
        ge=60,
        le=86400,
        description="Seconds between health sweeps"
    )
    max_concurrent_checks: int = Field(
        default=10,
        ge=1,
        le=200,
        description="Maximum number of probes in flight during a sweep"
    )
    heartbeat_interval: int = Field(
        default=600,
        ge=60,
        le=86400,
        description="Seconds between heartbeat log entries"
    )

    # History limits
    detail_log_limit: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Logs returned with a single deployment"
    )
    detail_stat_limit: int = Field(
        default=30,
        ge=1,
        le=366,
        description="Daily stat rows returned with a single deployment"
    )
    preview_log_limit: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Logs returned per deployment in listings"
    )
    preview_stat_limit: int = Field(
        default=7,
        ge=0,
        le=100,
        description="Daily stat rows returned per deployment in listings"
    )


class LoggingSettings(BaseSettingsConfig):
    """
    Logging Configuration Settings

    Console and file sinks, rotation, and structured output.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore"
    )

    # General settings
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Minimum logging level"
    )

    # Console logging
    console_enabled: bool = Field(
        default=True,
        description="Enable console logging"
    )
    console_colored: bool = Field(
        default=True,
        description="Enable colored console output"
    )

    # File logging
    file_enabled: bool = Field(
        default=False,
        description="Enable file logging"
    )
    file_path: Path = Field(
        default=Path("logs/deployment_monitor.log"),
        description="Log file path"
    )
    file_rotation: str = Field(
        default="10 MB",
        description="Log rotation size (e.g., '10 MB', '1 day')"
    )
    file_retention: str = Field(
        default="30 days",
        description="Log retention period"
    )
    file_compression: str = Field(
        default="zip",
        description="Compression format for rotated logs"
    )

    # Error logging (separate file for errors)
    error_file_enabled: bool = Field(
        default=False,
        description="Enable separate error log file"
    )
    error_file_path: Path = Field(
        default=Path("logs/errors.log"),
        description="Error log file path"
    )

    # JSON logging
    json_enabled: bool = Field(
        default=False,
        description="Serialize file log records as JSON"
    )


class SecuritySettings(BaseSettingsConfig):
    """
    Security Configuration Settings

    Session cookie gate for the HTTP API and URL acceptance policy.
    """

    model_config = SettingsConfigDict(
        env_prefix="SECURITY_",
        env_file=".env",
        extra="ignore"
    )

    # Session gate
    auth_enabled: bool = Field(
        default=False,
        description="Require a session cookie on API routes"
    )
    secret_key: SecretStr = Field(
        default_factory=lambda: SecretStr(secrets.token_hex(32)),
        description="Key used to sign session tokens"
    )
    session_cookie_name: str = Field(
        default="ih_session",
        min_length=1,
        description="Name of the session cookie"
    )
    session_max_age: int = Field(
        default=86400,  # 24 hours
        ge=60,
        le=2592000,
        description="Session lifetime in seconds"
    )
    admin_email: Optional[str] = Field(
        default=None,
        description="Operator login email"
    )
    admin_password: Optional[SecretStr] = Field(
        default=None,
        description="Operator login password"
    )

    # URL policy
    allowed_url_schemes: Annotated[Set[str], NoDecode] = Field(
        default_factory=lambda: {"http", "https"},
        description="Allowed URL schemes for monitored targets"
    )
    max_url_length: int = Field(
        default=2048,
        ge=50,
        le=8192,
        description="Maximum URL length"
    )

    @field_validator("allowed_url_schemes", mode="before")
    @classmethod
    def parse_schemes(cls, v: Any) -> Set[str]:
        """Parse allowed schemes from string or list."""
        if isinstance(v, str):
            return {x.strip().lower() for x in v.split(",") if x.strip()}

        if isinstance(v, (list, set, tuple)):
            return {str(x).lower() for x in v}

        return v

    @model_validator(mode="after")
    def validate_credentials(self) -> "SecuritySettings":
        """Auth gate needs operator credentials to be usable."""
        if self.auth_enabled and not (self.admin_email and self.admin_password):
            raise ValueError(
                "auth_enabled requires admin_email and admin_password"
            )
        return self


class Settings(BaseSettingsConfig):
    """
    Main Settings Class

    Aggregates all settings sections and provides the main
    configuration interface for the application.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Application info
    app_name: str = Field(
        default="Deployment Monitor",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )

    # Web server
    web_host: str = Field(
        default="0.0.0.0",
        description="Web server host"
    )
    web_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Web server port"
    )

    # Nested settings
    database: DatabaseSettings = Field(
        default_factory=DatabaseSettings
    )
    monitoring: MonitoringSettings = Field(
        default_factory=MonitoringSettings
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings
    )
    security: SecuritySettings = Field(
        default_factory=SecuritySettings
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == Environment.TESTING

    @model_validator(mode="after")
    def configure_for_environment(self) -> "Settings":
        """Apply environment-specific configuration."""
        if self.is_production:
            # Force quiet defaults in production
            self.debug = False
            self.database.echo = False

        elif self.is_development:
            if self.logging.level == LogLevel.INFO:
                self.logging.level = LogLevel.DEBUG

        return self

    def to_dict(self, *, exclude_secrets: bool = True) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        data = self.model_dump(mode="json")

        if exclude_secrets:
            def remove_secrets(obj: Any) -> Any:
                if isinstance(obj, dict):
                    return {
                        k: remove_secrets(v)
                        for k, v in obj.items()
                        if "password" not in k.lower()
                        and "secret" not in k.lower()
                        and "token" not in k.lower()
                    }
                elif isinstance(obj, list):
                    return [remove_secrets(item) for item in obj]
                return obj

            data = remove_secrets(data)

        return data


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure a single settings instance
    is used throughout the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
