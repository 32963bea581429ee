"""
============================================================================
DEPLOYMENT MONITOR - LOGGING UTILITY
============================================================================
Loguru-based logging with console, rotating file and error-only sinks.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import asyncio
import sys
import time
from functools import wraps
from typing import Optional

from loguru import logger

from config.settings import Settings


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}"


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

def setup_logging(settings: Settings) -> None:
    """
    Configure the loguru sinks from the logging settings section.

    Removes any previously installed sinks first, so calling this
    again (e.g. after a settings reload) does not duplicate output.

    Args:
        settings: Application settings
    """
    log_settings = settings.logging
    log_level = log_settings.level.value

    logger.remove()
    logger.configure(extra={"name": "app"})

    # Console Handler
    if log_settings.console_enabled:
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=log_settings.console_colored,
            backtrace=settings.debug,
            diagnose=settings.debug,
        )

    # File Handler
    if log_settings.file_enabled:
        log_settings.file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_settings.file_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation=log_settings.file_rotation,
            retention=log_settings.file_retention,
            compression=log_settings.file_compression,
            serialize=log_settings.json_enabled,
            enqueue=True,
        )

    # Error log file (separate file for errors)
    if log_settings.error_file_enabled:
        log_settings.error_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_settings.error_file_path,
            format=FILE_FORMAT,
            level="ERROR",
            rotation="1 day",
            retention="7 days",
            compression=log_settings.file_compression,
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    log = get_logger("Logging")
    log.info("Logging system initialized")
    log.debug(
        f"Level: {log_level} | Console: {log_settings.console_enabled} | "
        f"File: {log_settings.file_enabled}"
    )


def get_logger(name: Optional[str] = None):
    """
    Get logger instance with optional name.

    Args:
        name: Logger name (usually a component label)

    Returns:
        Logger instance
    """
    return logger.bind(name=name or "app")


# ============================================================================
# LOG DECORATORS
# ============================================================================

def log_execution_time(func):
    """
    Decorator to log function execution time.

    Works for both coroutine functions and plain callables.

    Args:
        func: Function to decorate

    Returns:
        Decorated function
    """
    log = get_logger("Timing")

    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
            log.debug(
                f"{func.__qualname__} executed in "
                f"{time.perf_counter() - start_time:.4f} seconds"
            )
            return result
        except Exception as e:
            log.warning(
                f"{func.__qualname__} failed after "
                f"{time.perf_counter() - start_time:.4f} seconds: {e}"
            )
            raise

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            log.debug(
                f"{func.__qualname__} executed in "
                f"{time.perf_counter() - start_time:.4f} seconds"
            )
            return result
        except Exception as e:
            log.warning(
                f"{func.__qualname__} failed after "
                f"{time.perf_counter() - start_time:.4f} seconds: {e}"
            )
            raise

    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper


# ============================================================================
# END OF LOGGER MODULE
# ============================================================================
