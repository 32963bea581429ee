"""
============================================================================
DEPLOYMENT MONITOR - DAILY STATS AGGREGATOR
============================================================================
Maintains one running statistics bucket per deployment per UTC day.

Each outcome is applied with a single insert-or-increment statement, so
the bucket is created on the first probe of a day and incremented in
place afterwards. Within this process, writers for the same
(deployment, day) are also queued behind an asyncio.Lock so they reach
the database one at a time.

Invariants kept for every bucket
--------------------------------
• total_requests == success_count + error_count
• uptime_percentage == success_count / total_requests * 100
• response_time_ms holds the latest sample (last write wins)

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import AsyncGenerator, Callable, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import DatabaseManager
from database.models import DeploymentStat
from database.repositories import DeploymentStatRepository
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("StatsAggregator")

BucketKey = Tuple[str, date]


class DailyStatsAggregator:
    """
    Applies probe outcomes to the per-day statistics buckets.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        clock: Callable[[], datetime] = TimeHelper.get_utc_now,
    ):
        """
        Args:
            db_manager: Shared database manager
            clock: Source of the current time; the UTC date of its value
                is the bucket key
        """
        self.repository = DeploymentStatRepository(db_manager)
        self.clock = clock

        self._locks: Dict[BucketKey, asyncio.Lock] = {}
        self._waiting: Dict[BucketKey, int] = {}

    def today(self) -> date:
        """Current UTC calendar day."""
        return TimeHelper.get_utc_today(self.clock())

    @asynccontextmanager
    async def _bucket_lock(self, key: BucketKey) -> AsyncGenerator[None, None]:
        """Serialize writers of one bucket; drop the lock when nobody holds it."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiting[key] = self._waiting.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiting[key] -= 1
            if self._waiting[key] == 0:
                del self._waiting[key]
                del self._locks[key]

    async def record_outcome(
        self,
        deployment_id: str,
        is_healthy: bool,
        response_time_ms: Optional[int],
        session: Optional[AsyncSession] = None,
    ) -> DeploymentStat:
        """
        Apply one probe outcome to today's bucket.

        Args:
            deployment_id: Probed deployment
            is_healthy: Whether the probe classified the target as healthy
            response_time_ms: Observed latency of the probe
            session: Join an existing transaction instead of opening one

        Returns:
            The bucket as stored after the update

        Raises:
            DatabaseNotFoundError: If the deployment does not exist
            DatabaseException: If the store rejects the write
        """
        stat_date = self.today()

        async with self._bucket_lock((deployment_id, stat_date)):
            stat = await self.repository.increment_daily(
                deployment_id,
                stat_date,
                is_healthy,
                response_time_ms,
                session=session,
            )

        logger.debug(
            f"[Stats] {deployment_id} {stat_date}: "
            f"{stat.success_count}/{stat.total_requests} ok "
            f"({stat.uptime_percentage:.2f}%)"
        )
        return stat

    async def daily_stats(
        self,
        deployment_id: str,
        limit: Optional[int] = None,
        session: Optional[AsyncSession] = None,
    ) -> List[DeploymentStat]:
        """Buckets for a deployment, newest day first."""
        return await self.repository.list_for_deployment(
            deployment_id, limit=limit, session=session
        )


# ============================================================================
# END OF AGGREGATOR MODULE
# ============================================================================
