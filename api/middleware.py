"""
HTTP Middleware for Deployment Monitor

Error translation into the ``{error, details}`` payload and the session
cookie gate.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, FrozenSet

from aiohttp import web

from api.auth import SessionManager
from exceptions import DeploymentMonitorException
from utils.logger import get_logger


logger = get_logger("API")

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

PUBLIC_PATHS: FrozenSet[str] = frozenset({"/health", "/auth/login"})

# Verified session ``{"email", "created_at"}`` for gated requests
SESSION_KEY = web.RequestKey("session", Dict[str, Any])


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """
    Convert exceptions into JSON error responses.

    Application exceptions use their own HTTP status; aiohttp HTTP errors
    keep theirs; anything else becomes a 500.
    """
    try:
        return await handler(request)

    except DeploymentMonitorException as e:
        if e.http_status >= 500:
            logger.error(f"{request.method} {request.path} → {e.log_format()}")
        else:
            logger.info(f"{request.method} {request.path} → {e.http_status} {e.full_message}")
        return web.json_response(e.to_payload(), status=e.http_status)

    except web.HTTPException as e:
        if e.status < 400:
            raise
        return web.json_response(
            {"error": e.reason, "details": {"status": e.status}},
            status=e.status,
        )

    except Exception as e:
        logger.opt(exception=e).error(f"{request.method} {request.path} → unhandled error: {e}")
        return web.json_response(
            {"error": "Internal server error", "details": {"type": type(e).__name__}},
            status=500,
        )


def auth_middleware(sessions: SessionManager):
    """
    Build the session gate. When auth is disabled every request passes.

    Args:
        sessions: Session manager used to verify the cookie

    Returns:
        aiohttp middleware
    """

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if not sessions.enabled or request.path in PUBLIC_PATHS:
            return await handler(request)

        request[SESSION_KEY] = sessions.verify(request.cookies.get(sessions.cookie_name))
        return await handler(request)

    return middleware
