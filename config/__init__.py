"""
Configuration Package for Deployment Monitor

This package contains settings management with environment variable
support, split into database, monitoring, logging and security sections.
"""

from config.settings import (
    Settings,
    DatabaseSettings,
    MonitoringSettings,
    LoggingSettings,
    SecuritySettings,
    Environment,
    LogLevel,
    DatabaseType,
    get_settings
)

__all__ = [
    "Settings",
    "DatabaseSettings",
    "MonitoringSettings",
    "LoggingSettings",
    "SecuritySettings",
    "Environment",
    "LogLevel",
    "DatabaseType",
    "get_settings"
]
