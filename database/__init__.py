"""
Database Package for Deployment Monitor

Provides database connectivity, models, and repository patterns
for data persistence using SQLAlchemy with async support.
"""

from database.connection import DatabaseManager

from database.models import (
    Base,
    Deployment,
    DeploymentLog,
    DeploymentStat,
    DeploymentStatus,
    HealthStatus,
    LogType,
    Platform
)

from database.repositories import (
    BaseRepository,
    DeploymentRepository,
    DeploymentLogRepository,
    DeploymentStatRepository
)

__all__ = [
    # Connection
    "DatabaseManager",

    # Models
    "Base",
    "Deployment",
    "DeploymentLog",
    "DeploymentStat",
    "DeploymentStatus",
    "HealthStatus",
    "LogType",
    "Platform",

    # Repositories
    "BaseRepository",
    "DeploymentRepository",
    "DeploymentLogRepository",
    "DeploymentStatRepository"
]
