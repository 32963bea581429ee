"""
============================================================================
DEPLOYMENT MONITOR - HEALTH PROBE
============================================================================
Executes one bounded-time HTTP GET against a deployment and classifies
the outcome. The probe never raises: transport errors, timeouts and
unexpected exceptions all become an ``unhealthy`` ProbeResult.

Classification
--------------
• response with status 200..399   → healthy
• response with any other status  → unhealthy, "HTTP <code>: <reason>"
• timeout / transport error       → unhealthy, the failure reason

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from config.settings import MonitoringSettings
from database.models import Deployment, HealthStatus
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("HealthProbe")


HEALTHY_STATUS_RANGE = range(200, 400)


# ============================================================================
# PROBE RESULT
# ============================================================================

class ProbeResult:
    """
    Value object carrying the outcome of a single probe.
    """
    __slots__ = ("status", "response_time_ms", "error_message", "status_code")

    def __init__(
        self,
        status: HealthStatus,
        response_time_ms: int,
        error_message: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.status = status
        self.response_time_ms = response_time_ms
        self.error_message = error_message
        self.status_code = status_code

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "response_time_ms": self.response_time_ms,
            "error": self.error_message,
            "status_code": self.status_code,
        }

    def __repr__(self) -> str:
        return (
            f"ProbeResult(status={self.status.value}, "
            f"response_time_ms={self.response_time_ms}, error={self.error_message!r})"
        )


# ============================================================================
# HEALTH PROBE
# ============================================================================

class HealthProbe:
    """
    Performs health probes using a shared httpx async client.

    The hard deadline is enforced with ``asyncio.wait_for`` around the
    whole request, so slow DNS, connect and body reads all count
    against the same budget.
    """

    def __init__(
        self,
        settings: MonitoringSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            settings: Monitoring section of the application settings
            transport: Optional transport override (tests pass a MockTransport)
        """
        self.settings = settings
        self.timeout = settings.probe_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=self.settings.follow_redirects,
                headers={"User-Agent": self.settings.user_agent},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def probe(self, deployment: Deployment) -> ProbeResult:
        """
        Probe a deployment at its resolved check URL.

        Parameters
        ----------
        deployment : Deployment
            Target; ``health_check_url`` wins over ``url`` when set.

        Returns
        -------
        ProbeResult
        """
        return await self.probe_url(deployment.check_url)

    async def probe_url(self, url: str) -> ProbeResult:
        """
        Issue a single GET to ``url`` and classify the outcome.
        """
        start_time = time.perf_counter()

        try:
            response = await asyncio.wait_for(
                self._get_client().get(url),
                timeout=self.timeout
            )
            elapsed_ms = TimeHelper.elapsed_ms(start_time)

        except (asyncio.TimeoutError, httpx.TimeoutException):
            elapsed_ms = TimeHelper.elapsed_ms(start_time)
            message = f"Request timed out after {self.timeout:g}s"
            logger.warning(f"[Probe] {url} → {message}")
            return ProbeResult(HealthStatus.UNHEALTHY, elapsed_ms, message)

        except Exception as e:
            elapsed_ms = TimeHelper.elapsed_ms(start_time)
            message = str(e) or type(e).__name__
            logger.warning(f"[Probe] {url} → {type(e).__name__}: {message}")
            return ProbeResult(HealthStatus.UNHEALTHY, elapsed_ms, message)

        if response.status_code in HEALTHY_STATUS_RANGE:
            logger.debug(f"[Probe] {url} → {response.status_code} in {elapsed_ms}ms")
            return ProbeResult(
                HealthStatus.HEALTHY, elapsed_ms, None, response.status_code
            )

        message = f"HTTP {response.status_code}: {response.reason_phrase}"
        logger.warning(f"[Probe] {url} → {message} in {elapsed_ms}ms")
        return ProbeResult(
            HealthStatus.UNHEALTHY, elapsed_ms, message, response.status_code
        )


# ============================================================================
# END OF PROBE MODULE
# ============================================================================
