"""
============================================================================
DEPLOYMENT MONITOR - HTTP API SERVER
============================================================================
aiohttp application exposing the registry and on-demand health checks.

Routes
------
    GET    /health                        → service + database liveness
    POST   /auth/login                    → issue session cookie
    POST   /auth/logout                   → clear session cookie
    GET    /deployments                   → all deployments with previews
    POST   /deployments                   → register a deployment (201)
    GET    /deployments/{id}              → one deployment with history
    PATCH  /deployments/{id}              → partial update
    DELETE /deployments/{id}              → remove with logs and stats
    POST   /deployments/{id}/health-check → run one check now

Errors are rendered by ``error_middleware`` as ``{error, details}``.
When ``SECURITY_AUTH_ENABLED`` is set every route except /health and
/auth/login requires a valid session cookie.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import json
from typing import Any, Dict, Optional

from aiohttp import web

from api.auth import SessionManager
from api.middleware import auth_middleware, error_middleware
from config.settings import Settings
from database.connection import DatabaseManager
from exceptions import (
    AuthenticationError,
    DatabaseConnectionError,
    InvalidFormatError,
    ValidationException,
)
from monitoring.orchestrator import MonitoringOrchestrator
from monitoring.registry import DeploymentRegistry
from utils.helpers import TimeHelper
from utils.logger import get_logger


logger = get_logger("API")


# ============================================================================
# API SERVER
# ============================================================================

class ApiServer:
    """
    HTTP front end for the monitoring core.

    Attributes
    ----------
    app : aiohttp.web.Application
        The configured application (also used directly by tests).
    _runner : aiohttp.web.AppRunner
    _site : aiohttp.web.TCPSite
    """

    def __init__(
        self,
        settings: Settings,
        db_manager: DatabaseManager,
        registry: DeploymentRegistry,
        orchestrator: MonitoringOrchestrator,
        sessions: Optional[SessionManager] = None,
    ):
        self.settings = settings
        self.db_manager = db_manager
        self.registry = registry
        self.orchestrator = orchestrator
        self.sessions = sessions or SessionManager(settings.security)

        self._host = settings.web_host
        self._port = settings.web_port
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

        self._app = web.Application(
            middlewares=[error_middleware, auth_middleware(self.sessions)]
        )

        # Register routes
        router = self._app.router
        router.add_get("/health", self._handle_health)
        router.add_post("/auth/login", self._handle_login)
        router.add_post("/auth/logout", self._handle_logout)
        router.add_get("/deployments", self._handle_list)
        router.add_post("/deployments", self._handle_create)
        router.add_get("/deployments/{deployment_id}", self._handle_get)
        router.add_patch("/deployments/{deployment_id}", self._handle_update)
        router.add_delete("/deployments/{deployment_id}", self._handle_delete)
        router.add_post(
            "/deployments/{deployment_id}/health-check", self._handle_health_check
        )

    @property
    def app(self) -> web.Application:
        return self._app

    async def start(self) -> None:
        """Bind and start serving."""
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        logger.info(f"✓ API server listening on {self._host}:{self._port}")

    async def stop(self) -> None:
        """Gracefully shut down the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
        logger.info("✓ API server stopped")

    # ------------------------------------------------------------------
    # REQUEST HELPERS
    # ------------------------------------------------------------------

    @staticmethod
    async def _read_json(request: web.Request) -> Any:
        """Decode the request body, rejecting anything that is not JSON."""
        if not request.can_read_body:
            return {}
        try:
            return await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidFormatError(
                "Request body must be valid JSON",
                field="body",
                expected_format="JSON object",
                cause=e,
            )

    # ------------------------------------------------------------------
    # SERVICE HEALTH
    # ------------------------------------------------------------------

    async def _handle_health(self, request: web.Request) -> web.Response:
        """GET /health - 200 when the database answers, 503 otherwise."""
        database: Dict[str, Any] = {"status": "connected", "error": None}
        try:
            await self.db_manager.ping()
        except DatabaseConnectionError as e:
            database = {"status": "error", "error": e.message}

        healthy = database["status"] == "connected"
        payload = {
            "status": "ok" if healthy else "degraded",
            "timestamp": TimeHelper.to_iso(TimeHelper.get_utc_now()),
            "version": self.settings.app_version,
            "database": database,
        }
        return web.json_response(payload, status=200 if healthy else 503)

    # ------------------------------------------------------------------
    # AUTH
    # ------------------------------------------------------------------

    async def _handle_login(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        if not isinstance(body, dict):
            body = {}

        email = body.get("email")
        password = body.get("password")
        email_ok = isinstance(email, str) and bool(email)
        password_ok = isinstance(password, str) and bool(password)
        if not email_ok or not password_ok:
            raise ValidationException(
                "Email and password are required",
                field="email" if not email_ok else "password",
            )

        if not self.sessions.check_credentials(email, password):
            logger.warning(f"Rejected login for {email}")
            raise AuthenticationError("Invalid email or password", reason="invalid_credentials")

        response = web.json_response({"success": True, "email": email})
        response.set_cookie(
            self.sessions.cookie_name,
            self.sessions.issue(email),
            max_age=self.sessions.max_age,
            httponly=True,
            samesite="Lax",
            secure=self.settings.is_production,
            path="/",
        )
        logger.info(f"Login for {email}")
        return response

    async def _handle_logout(self, request: web.Request) -> web.Response:
        response = web.json_response({"success": True})
        response.del_cookie(self.sessions.cookie_name, path="/")
        return response

    # ------------------------------------------------------------------
    # DEPLOYMENTS
    # ------------------------------------------------------------------

    async def _handle_list(self, request: web.Request) -> web.Response:
        views = await self.registry.list()
        return web.json_response([view.to_dict() for view in views])

    async def _handle_create(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        deployment = await self.registry.create(body)
        return web.json_response(deployment.to_dict(), status=201)

    async def _handle_get(self, request: web.Request) -> web.Response:
        view = await self.registry.get(request.match_info["deployment_id"])
        return web.json_response(view.to_dict())

    async def _handle_update(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        deployment = await self.registry.update(request.match_info["deployment_id"], body)
        return web.json_response(deployment.to_dict())

    async def _handle_delete(self, request: web.Request) -> web.Response:
        await self.registry.delete(request.match_info["deployment_id"])
        return web.json_response({"message": "Deployment deleted successfully"})

    async def _handle_health_check(self, request: web.Request) -> web.Response:
        result = await self.orchestrator.run_check(request.match_info["deployment_id"])
        return web.json_response(result.to_dict())


# ============================================================================
# END OF API SERVER MODULE
# ============================================================================
