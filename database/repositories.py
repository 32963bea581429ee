"""
============================================================================
DEPLOYMENT MONITOR - REPOSITORIES
============================================================================
Data access for deployments, their event log and their daily statistics.

Every method accepts an optional ``session``. When given, the work joins
the caller's transaction; otherwise a fresh committing session is used.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, AsyncGenerator, Dict, List, Optional

from sqlalchemy import Float, cast, delete, func, select, update
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import DatabaseManager
from database.models import Deployment, DeploymentLog, DeploymentStat
from exceptions import (
    DatabaseDuplicateError,
    DatabaseNotFoundError,
    DatabaseQueryError
)
from utils.helpers import TimeHelper
from utils.logger import get_logger


# ============================================================================
# DATABASE REPOSITORY BASE CLASS
# ============================================================================

class BaseRepository:
    """
    Base repository class for database operations.
    """

    def __init__(self, db_manager: DatabaseManager):
        """
        Initialize repository.

        Args:
            db_manager: DatabaseManager instance
        """
        self.db = db_manager
        self.logger = get_logger(self.__class__.__name__)

    @asynccontextmanager
    async def _scope(
        self,
        session: Optional[AsyncSession] = None
    ) -> AsyncGenerator[AsyncSession, None]:
        """Join the caller's session or open a committing one."""
        if session is not None:
            yield session
            return

        async with self.db.session() as own_session:
            yield own_session


# ============================================================================
# DEPLOYMENT REPOSITORY
# ============================================================================

class DeploymentRepository(BaseRepository):
    """Repository for Deployment model operations."""

    async def create(
        self,
        deployment: Deployment,
        session: Optional[AsyncSession] = None
    ) -> Deployment:
        """
        Insert a new deployment.

        Raises:
            DatabaseDuplicateError: If the name is already taken
        """
        async with self._scope(session) as s:
            s.add(deployment)
            try:
                await s.flush()
            except IntegrityError as e:
                raise DatabaseDuplicateError(
                    f"Deployment name already exists: {deployment.name}",
                    entity_type="Deployment",
                    field="name",
                    value=deployment.name,
                    table=Deployment.__tablename__,
                    cause=e
                )
            return deployment

    async def get_by_id(
        self,
        deployment_id: str,
        session: Optional[AsyncSession] = None
    ) -> Optional[Deployment]:
        """Get a deployment by id, or None."""
        async with self._scope(session) as s:
            return await s.get(Deployment, deployment_id)

    async def get_by_name(
        self,
        name: str,
        session: Optional[AsyncSession] = None
    ) -> Optional[Deployment]:
        """Get a deployment by its unique name, or None."""
        async with self._scope(session) as s:
            result = await s.execute(
                select(Deployment).where(Deployment.name == name)
            )
            return result.scalar_one_or_none()

    async def list_all(
        self,
        session: Optional[AsyncSession] = None
    ) -> List[Deployment]:
        """All deployments, oldest first."""
        async with self._scope(session) as s:
            result = await s.execute(
                select(Deployment).order_by(
                    Deployment.created_at.asc(), Deployment.name.asc()
                )
            )
            return list(result.scalars().all())

    async def list_ids(self, session: Optional[AsyncSession] = None) -> List[str]:
        """Ids of all deployments, oldest first."""
        async with self._scope(session) as s:
            result = await s.execute(
                select(Deployment.id).order_by(Deployment.created_at.asc())
            )
            return list(result.scalars().all())

    async def count(self, session: Optional[AsyncSession] = None) -> int:
        """Count total deployments."""
        async with self._scope(session) as s:
            result = await s.execute(select(func.count(Deployment.id)))
            return int(result.scalar() or 0)

    async def update(
        self,
        deployment_id: str,
        values: Dict[str, Any],
        session: Optional[AsyncSession] = None
    ) -> Deployment:
        """
        Apply ``values`` to a deployment.

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
            DatabaseDuplicateError: If a rename collides with another name
        """
        async with self._scope(session) as s:
            deployment = await s.get(Deployment, deployment_id)
            if deployment is None:
                raise DatabaseNotFoundError(
                    entity_type="Deployment", entity_id=deployment_id
                )

            for key, value in values.items():
                setattr(deployment, key, value)

            try:
                await s.flush()
            except IntegrityError as e:
                raise DatabaseDuplicateError(
                    f"Deployment name already exists: {values.get('name')}",
                    entity_type="Deployment",
                    field="name",
                    value=values.get("name"),
                    table=Deployment.__tablename__,
                    cause=e
                )
            return deployment

    async def set_health(
        self,
        deployment_id: str,
        health_status: str,
        checked_at: datetime,
        session: Optional[AsyncSession] = None
    ) -> None:
        """
        Overwrite the probe-owned columns of a deployment.

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
        """
        async with self._scope(session) as s:
            result = await s.execute(
                update(Deployment)
                .where(Deployment.id == deployment_id)
                .values(health_status=health_status, last_health_check_at=checked_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise DatabaseNotFoundError(
                    entity_type="Deployment", entity_id=deployment_id
                )

    async def delete(
        self,
        deployment_id: str,
        session: Optional[AsyncSession] = None
    ) -> None:
        """
        Delete a deployment together with its logs and stats.

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
        """
        async with self._scope(session) as s:
            await s.execute(
                delete(DeploymentLog).where(DeploymentLog.deployment_id == deployment_id)
            )
            await s.execute(
                delete(DeploymentStat).where(DeploymentStat.deployment_id == deployment_id)
            )
            result = await s.execute(
                delete(Deployment).where(Deployment.id == deployment_id)
            )
            if result.rowcount == 0:
                raise DatabaseNotFoundError(
                    entity_type="Deployment", entity_id=deployment_id
                )


# ============================================================================
# DEPLOYMENT LOG REPOSITORY
# ============================================================================

class DeploymentLogRepository(BaseRepository):
    """Insert-only repository for DeploymentLog."""

    async def insert(
        self,
        deployment_id: str,
        log_type: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        session: Optional[AsyncSession] = None
    ) -> DeploymentLog:
        """
        Append one log row.

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
        """
        entry = DeploymentLog(
            deployment_id=deployment_id,
            log_type=log_type,
            message=message,
            meta=dict(metadata or {}),
            created_at=TimeHelper.get_utc_now()
        )

        async with self._scope(session) as s:
            s.add(entry)
            try:
                await s.flush()
            except IntegrityError as e:
                raise DatabaseNotFoundError(
                    entity_type="Deployment",
                    entity_id=deployment_id,
                    table=DeploymentLog.__tablename__,
                    cause=e
                )
            return entry

    async def list_for_deployment(
        self,
        deployment_id: str,
        limit: Optional[int] = None,
        session: Optional[AsyncSession] = None
    ) -> List[DeploymentLog]:
        """Logs of a deployment, newest first."""
        query = (
            select(DeploymentLog)
            .where(DeploymentLog.deployment_id == deployment_id)
            .order_by(DeploymentLog.created_at.desc(), DeploymentLog.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)

        async with self._scope(session) as s:
            result = await s.execute(query)
            return list(result.scalars().all())

    async def count_for_deployment(
        self,
        deployment_id: str,
        session: Optional[AsyncSession] = None
    ) -> int:
        """Number of log rows for a deployment."""
        async with self._scope(session) as s:
            result = await s.execute(
                select(func.count(DeploymentLog.id))
                .where(DeploymentLog.deployment_id == deployment_id)
            )
            return int(result.scalar() or 0)


# ============================================================================
# DEPLOYMENT STAT REPOSITORY
# ============================================================================

class DeploymentStatRepository(BaseRepository):
    """Repository for the per-day DeploymentStat buckets."""

    def _build_increment(
        self,
        deployment_id: str,
        stat_date: date,
        is_healthy: bool,
        response_time_ms: Optional[int]
    ):
        """
        Build the dialect-native insert-or-increment statement.

        The update branch derives every new value from the stored row,
        so concurrent writers cannot lose each other's increments.
        """
        table = DeploymentStat.__table__
        success_inc = 1 if is_healthy else 0
        error_inc = 1 - success_inc
        now = TimeHelper.get_utc_now()

        values = {
            "deployment_id": deployment_id,
            "stat_date": stat_date,
            "total_requests": 1,
            "success_count": success_inc,
            "error_count": error_inc,
            "uptime_percentage": 100.0 if is_healthy else 0.0,
            "response_time_ms": response_time_ms,
            "created_at": now,
            "updated_at": now,
        }

        new_uptime = (
            cast(table.c.success_count + success_inc, Float) * 100.0
            / (table.c.total_requests + 1)
        )

        # Uptime comes first: MySQL applies assignments left to right.
        assignments = [
            ("uptime_percentage", new_uptime),
            ("total_requests", table.c.total_requests + 1),
            ("success_count", table.c.success_count + success_inc),
            ("error_count", table.c.error_count + error_inc),
            ("response_time_ms", response_time_ms),
            ("updated_at", now),
        ]

        dialect = self.db.dialect_name
        if dialect == "sqlite":
            stmt = sqlite_insert(table).values(**values)
            return stmt.on_conflict_do_update(
                index_elements=[table.c.deployment_id, table.c.stat_date],
                set_=dict(assignments)
            )
        if dialect == "postgresql":
            stmt = pg_insert(table).values(**values)
            return stmt.on_conflict_do_update(
                constraint="uq_deployment_stat_day",
                set_=dict(assignments)
            )
        if dialect == "mysql":
            stmt = mysql_insert(table).values(**values)
            return stmt.on_duplicate_key_update(assignments)

        raise DatabaseQueryError(
            f"Atomic upsert is not supported on dialect {dialect}",
            operation="UPSERT",
            table=DeploymentStat.__tablename__
        )

    async def increment_daily(
        self,
        deployment_id: str,
        stat_date: date,
        is_healthy: bool,
        response_time_ms: Optional[int],
        session: Optional[AsyncSession] = None
    ) -> DeploymentStat:
        """
        Record one probe outcome in the ``(deployment_id, stat_date)`` bucket.

        Creates the bucket on the first probe of the day, increments it
        in place afterwards, and returns the stored row.

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
        """
        stmt = self._build_increment(
            deployment_id, stat_date, is_healthy, response_time_ms
        )

        async with self._scope(session) as s:
            try:
                await s.execute(stmt)
            except IntegrityError as e:
                raise DatabaseNotFoundError(
                    entity_type="Deployment",
                    entity_id=deployment_id,
                    table=DeploymentStat.__tablename__,
                    cause=e
                )

            result = await s.execute(
                select(DeploymentStat)
                .where(
                    DeploymentStat.deployment_id == deployment_id,
                    DeploymentStat.stat_date == stat_date
                )
                .execution_options(populate_existing=True)
            )
            return result.scalar_one()

    async def get_for_day(
        self,
        deployment_id: str,
        stat_date: date,
        session: Optional[AsyncSession] = None
    ) -> Optional[DeploymentStat]:
        """The bucket for one deployment and day, or None."""
        async with self._scope(session) as s:
            result = await s.execute(
                select(DeploymentStat).where(
                    DeploymentStat.deployment_id == deployment_id,
                    DeploymentStat.stat_date == stat_date
                )
            )
            return result.scalar_one_or_none()

    async def list_for_deployment(
        self,
        deployment_id: str,
        limit: Optional[int] = None,
        session: Optional[AsyncSession] = None
    ) -> List[DeploymentStat]:
        """Buckets of a deployment, newest day first."""
        query = (
            select(DeploymentStat)
            .where(DeploymentStat.deployment_id == deployment_id)
            .order_by(DeploymentStat.stat_date.desc())
        )
        if limit is not None:
            query = query.limit(limit)

        async with self._scope(session) as s:
            result = await s.execute(query)
            return list(result.scalars().all())


# ============================================================================
# END OF REPOSITORIES MODULE
# ============================================================================
