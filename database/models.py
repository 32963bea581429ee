"""
============================================================================
DEPLOYMENT MONITOR - DATABASE MODELS
============================================================================
SQLAlchemy ORM models for monitored deployments, their immutable event
trail and their per-day statistics buckets.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import enum
import uuid
from typing import Any, Dict

from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Text, Float, JSON,
    ForeignKey, Index, UniqueConstraint, CheckConstraint, func
)
from sqlalchemy.orm import declarative_base

from utils.helpers import TimeHelper


# ============================================================================
# BASE MODEL CONFIGURATION
# ============================================================================

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    Automatically manages these fields.
    """
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=TimeHelper.get_utc_now,
        server_default=func.now(),
        index=True
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=TimeHelper.get_utc_now,
        onupdate=TimeHelper.get_utc_now,
        server_default=func.now()
    )


# ============================================================================
# ENUMERATIONS
# ============================================================================

class Platform(str, enum.Enum):
    """Hosting platform of a deployment"""
    RENDER = "render"
    VERCEL = "vercel"
    NETLIFY = "netlify"
    AWS = "aws"
    OTHER = "other"


class DeploymentStatus(str, enum.Enum):
    """Lifecycle tag of a deployment"""
    DEPLOYED = "deployed"
    DEPLOYING = "deploying"
    FAILED = "failed"
    STOPPED = "stopped"


class HealthStatus(str, enum.Enum):
    """Outcome of the most recent health probe"""
    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class LogType(str, enum.Enum):
    """Kind of event recorded in the deployment log"""
    CREATED = "created"
    UPDATED = "updated"
    HEALTH_CHECK = "health_check"
    DELETED = "deleted"
    DEPLOYED = "deployed"


# ============================================================================
# DEPLOYMENT MODEL
# ============================================================================

class Deployment(Base, TimestampMixin):
    """
    A monitored target.

    ``health_status`` and ``last_health_check_at`` are written only by
    the health check path; everything else is operator-managed.
    """
    __tablename__ = "deployments"

    # Primary Key
    id = Column(String(36), primary_key=True, default=_new_id)

    # Identity
    name = Column(String(255), nullable=False, unique=True)
    display_name = Column(String(255), nullable=False)

    # Targets
    url = Column(String(2048), nullable=False)
    health_check_url = Column(String(2048), nullable=True)

    # Source & Hosting
    platform = Column(String(32), nullable=False, default=Platform.RENDER.value)
    repository_url = Column(String(2048), nullable=True)
    branch = Column(String(255), nullable=False, default="main")
    environment = Column(String(64), nullable=False, default="production")

    # Status
    status = Column(String(32), nullable=False, default=DeploymentStatus.DEPLOYED.value)
    health_status = Column(String(20), nullable=False, default=HealthStatus.UNKNOWN.value, index=True)
    last_deployed_at = Column(DateTime(timezone=True), nullable=True)
    last_health_check_at = Column(DateTime(timezone=True), nullable=True)

    # Free-form
    notes = Column(Text, nullable=True)
    meta = Column("metadata", JSON, nullable=False, default=dict)

    @property
    def check_url(self) -> str:
        """URL the health probe should hit."""
        return self.health_check_url or self.url

    def __repr__(self) -> str:
        return f"<Deployment(id={self.id!r}, name={self.name!r}, health={self.health_status})>"

    def to_dict(self) -> Dict[str, Any]:
        """Convert deployment to dictionary"""
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "url": self.url,
            "health_check_url": self.health_check_url,
            "platform": self.platform,
            "repository_url": self.repository_url,
            "branch": self.branch,
            "environment": self.environment,
            "status": self.status,
            "health_status": self.health_status,
            "last_deployed_at": TimeHelper.to_iso(self.last_deployed_at),
            "last_health_check_at": TimeHelper.to_iso(self.last_health_check_at),
            "notes": self.notes,
            "metadata": dict(self.meta or {}),
            "created_at": TimeHelper.to_iso(self.created_at),
            "updated_at": TimeHelper.to_iso(self.updated_at),
        }


# ============================================================================
# DEPLOYMENT LOG MODEL
# ============================================================================

class DeploymentLog(Base):
    """
    Immutable, append-only event for a deployment.
    """
    __tablename__ = "deployment_logs"

    # Primary Key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Foreign Keys
    deployment_id = Column(
        String(36),
        ForeignKey("deployments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Event
    log_type = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    meta = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=TimeHelper.get_utc_now,
        server_default=func.now()
    )

    __table_args__ = (
        Index("idx_deployment_log_deployment_time", "deployment_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary"""
        return {
            "id": self.id,
            "deployment_id": self.deployment_id,
            "log_type": self.log_type,
            "message": self.message,
            "metadata": dict(self.meta or {}),
            "created_at": TimeHelper.to_iso(self.created_at),
        }


# ============================================================================
# DEPLOYMENT STAT MODEL
# ============================================================================

class DeploymentStat(Base, TimestampMixin):
    """
    Daily statistics bucket, one row per deployment per UTC day.

    ``response_time_ms`` holds the most recent sample, not an average.
    """
    __tablename__ = "deployment_stats"

    # Primary Key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Foreign Keys
    deployment_id = Column(
        String(36),
        ForeignKey("deployments.id", ondelete="CASCADE"),
        nullable=False
    )

    # Bucket key
    stat_date = Column(Date, nullable=False)

    # Counters
    total_requests = Column(Integer, nullable=False, default=0)
    success_count = Column(Integer, nullable=False, default=0)
    error_count = Column(Integer, nullable=False, default=0)
    uptime_percentage = Column(Float, nullable=False, default=0.0)
    response_time_ms = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("deployment_id", "stat_date", name="uq_deployment_stat_day"),
        CheckConstraint(
            "total_requests = success_count + error_count",
            name="ck_deployment_stat_totals"
        ),
        Index("idx_deployment_stat_deployment_date", "deployment_id", "stat_date"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats bucket to dictionary"""
        return {
            "id": self.id,
            "deployment_id": self.deployment_id,
            "stat_date": TimeHelper.to_iso(self.stat_date),
            "total_requests": self.total_requests,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "uptime_percentage": round(self.uptime_percentage, 2),
            "response_time_ms": self.response_time_ms,
        }


# ============================================================================
# END OF MODELS MODULE
# ============================================================================
