"""
API Package for Deployment Monitor

aiohttp server, middleware and session authentication.
"""

from api.auth import SessionManager
from api.middleware import auth_middleware, error_middleware, PUBLIC_PATHS, SESSION_KEY
from api.server import ApiServer

__all__ = [
    "ApiServer",
    "SessionManager",
    "auth_middleware",
    "error_middleware",
    "PUBLIC_PATHS",
    "SESSION_KEY",
]
