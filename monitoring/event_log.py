"""
Event Log Appender for Deployment Monitor

Records one immutable, timestamped event per probe outcome and per
administrative change. Rows are only ever inserted.
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import DatabaseManager
from database.models import DeploymentLog, LogType
from database.repositories import DeploymentLogRepository
from utils.logger import get_logger


logger = get_logger("EventLog")


class EventLogAppender:
    """Append-only writer over the deployment log table."""

    def __init__(self, db_manager: DatabaseManager):
        self.repository = DeploymentLogRepository(db_manager)

    async def append(
        self,
        deployment_id: str,
        log_type: Union[LogType, str],
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        session: Optional[AsyncSession] = None,
    ) -> DeploymentLog:
        """
        Insert exactly one log entry.

        Args:
            deployment_id: Owning deployment
            log_type: Kind of event
            message: Human-readable description
            metadata: Structured payload stored alongside the message
            session: Join an existing transaction instead of opening one

        Returns:
            The stored entry

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
        """
        log_type = LogType(log_type).value
        entry = await self.repository.insert(
            deployment_id, log_type, message, metadata, session=session
        )
        logger.debug(f"[{log_type}] {deployment_id}: {message}")
        return entry

    async def recent(
        self,
        deployment_id: str,
        limit: Optional[int] = None,
        session: Optional[AsyncSession] = None,
    ) -> List[DeploymentLog]:
        """Entries for a deployment, newest first."""
        return await self.repository.list_for_deployment(
            deployment_id, limit=limit, session=session
        )
