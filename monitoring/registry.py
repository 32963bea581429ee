"""
============================================================================
DEPLOYMENT MONITOR - DEPLOYMENT REGISTRY
============================================================================
Holds the set of monitored deployments and their configuration.

Every administrative change is written together with its log entry in a
single transaction: either both land or neither does.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from config.settings import MonitoringSettings
from database.connection import DatabaseManager
from database.models import Deployment, DeploymentLog, DeploymentStat, LogType
from database.repositories import DeploymentRepository, DeploymentStatRepository
from exceptions import DatabaseDuplicateError, DatabaseNotFoundError
from monitoring.event_log import EventLogAppender
from utils.helpers import DataHelper, TimeHelper
from utils.logger import get_logger
from utils.validators import DeploymentValidator


logger = get_logger("Registry")


def _json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return TimeHelper.to_iso(value)
    return value


# ============================================================================
# DEPLOYMENT VIEW
# ============================================================================

class DeploymentView:
    """
    A deployment together with its most recent log entries and stat rows,
    both ordered newest first.
    """
    __slots__ = ("deployment", "logs", "stats")

    def __init__(
        self,
        deployment: Deployment,
        logs: List[DeploymentLog],
        stats: List[DeploymentStat],
    ):
        self.deployment = deployment
        self.logs = logs
        self.stats = stats

    def to_dict(self) -> Dict[str, Any]:
        data = self.deployment.to_dict()
        data["deployment_logs"] = [entry.to_dict() for entry in self.logs]
        data["deployment_stats"] = [stat.to_dict() for stat in self.stats]
        return data


# ============================================================================
# DEPLOYMENT REGISTRY
# ============================================================================

class DeploymentRegistry:
    """
    Create, read, update and delete monitored deployments.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        settings: MonitoringSettings,
        validator: DeploymentValidator,
        event_log: EventLogAppender,
    ):
        self.db = db_manager
        self.settings = settings
        self.validator = validator
        self.event_log = event_log
        self.deployments = DeploymentRepository(db_manager)
        self.stats = DeploymentStatRepository(db_manager)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, payload: Any) -> Deployment:
        """
        Register a new deployment and record a ``created`` log entry.

        Args:
            payload: Decoded request body

        Returns:
            The stored deployment

        Raises:
            ValidationException: If required fields are missing or invalid
            DatabaseDuplicateError: If the name is already registered
        """
        values = self.validator.validate_create(payload)

        async with self.db.session() as session:
            if await self.deployments.get_by_name(values["name"], session=session):
                raise DatabaseDuplicateError(
                    f"Deployment name already exists: {values['name']}",
                    entity_type="Deployment",
                    field="name",
                    value=values["name"],
                )

            deployment = await self.deployments.create(Deployment(**values), session=session)
            await self.event_log.append(
                deployment.id,
                LogType.CREATED,
                f"Deployment {deployment.display_name} created",
                {"url": deployment.url, "platform": deployment.platform},
                session=session,
            )

        logger.info(f"Deployment {deployment.name} registered ({deployment.id})")
        return deployment

    async def update(self, deployment_id: str, payload: Any) -> Deployment:
        """
        Merge ``payload`` into a deployment and record an ``updated`` entry
        whose metadata holds the field-level diff.

        An empty or no-op payload returns the deployment unchanged and
        writes no log entry.

        Raises:
            ValidationException: If a field is invalid, unknown or read-only
            DatabaseNotFoundError: If the deployment does not exist
            DatabaseDuplicateError: If renaming to a taken name
        """
        values = self.validator.validate_update(payload)

        async with self.db.session() as session:
            deployment = await self._require(deployment_id, session=session)

            before = {key: _json_safe(getattr(deployment, key)) for key in values}
            after = {key: _json_safe(value) for key, value in values.items()}
            changes = DataHelper.diff_dicts(before, after)

            if not changes:
                return deployment

            new_name = values.get("name")
            if new_name and new_name != deployment.name:
                if await self.deployments.get_by_name(new_name, session=session):
                    raise DatabaseDuplicateError(
                        f"Deployment name already exists: {new_name}",
                        entity_type="Deployment",
                        field="name",
                        value=new_name,
                    )

            changed_values = {key: values[key] for key in changes}
            deployment = await self.deployments.update(
                deployment_id, changed_values, session=session
            )

            # The column attribute is ``meta``; callers know it as ``metadata``
            if "meta" in changes:
                changes["metadata"] = changes.pop("meta")

            await self.event_log.append(
                deployment.id,
                LogType.UPDATED,
                f"Deployment {deployment.display_name} updated",
                {"changes": changes},
                session=session,
            )

        logger.info(f"Deployment {deployment.name} updated: {sorted(changes)}")
        return deployment

    async def delete(self, deployment_id: str) -> None:
        """
        Remove a deployment. Its logs and stats are deleted with it.

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
        """
        async with self.db.session() as session:
            deployment = await self._require(deployment_id, session=session)
            name = deployment.display_name
            await self.deployments.delete(deployment_id, session=session)

        logger.info(f"Deployment {name} deleted ({deployment_id}) with its logs and stats")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(
        self,
        deployment_id: str,
        log_limit: Optional[int] = None,
        stat_limit: Optional[int] = None,
    ) -> DeploymentView:
        """
        A deployment with its most recent logs and stat rows.

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
        """
        log_limit = self.settings.detail_log_limit if log_limit is None else log_limit
        stat_limit = self.settings.detail_stat_limit if stat_limit is None else stat_limit

        async with self.db.session() as session:
            deployment = await self._require(deployment_id, session=session)
            logs = await self.event_log.recent(deployment_id, limit=log_limit, session=session)
            stats = await self.stats.list_for_deployment(
                deployment_id, limit=stat_limit, session=session
            )

        return DeploymentView(deployment, logs, stats)

    async def get_deployment(self, deployment_id: str) -> Deployment:
        """
        The bare deployment row.

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
        """
        return await self._require(deployment_id)

    async def list(
        self,
        log_limit: Optional[int] = None,
        stat_limit: Optional[int] = None,
    ) -> List[DeploymentView]:
        """All deployments, oldest first, each with a short history preview."""
        log_limit = self.settings.preview_log_limit if log_limit is None else log_limit
        stat_limit = self.settings.preview_stat_limit if stat_limit is None else stat_limit

        views: List[DeploymentView] = []
        async with self.db.session() as session:
            for deployment in await self.deployments.list_all(session=session):
                logs = await self.event_log.recent(
                    deployment.id, limit=log_limit, session=session
                )
                stats = await self.stats.list_for_deployment(
                    deployment.id, limit=stat_limit, session=session
                )
                views.append(DeploymentView(deployment, logs, stats))

        return views

    async def list_ids(self) -> List[str]:
        """Ids of every registered deployment."""
        return await self.deployments.list_ids()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _require(self, deployment_id: str, session=None) -> Deployment:
        deployment = await self.deployments.get_by_id(deployment_id, session=session)
        if deployment is None:
            raise DatabaseNotFoundError(
                f"Deployment not found: {deployment_id}",
                entity_type="Deployment",
                entity_id=deployment_id,
            )
        return deployment


# ============================================================================
# END OF REGISTRY MODULE
# ============================================================================
