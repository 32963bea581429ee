"""
============================================================================
DEPLOYMENT MONITOR - HELPERS UTILITY
============================================================================
Time and dictionary helpers shared across components.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

import time
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional


# ============================================================================
# TIME UTILITIES
# ============================================================================

class TimeHelper:
    """
    Time and date manipulation utilities.

    All timestamps handled by the application are timezone-aware UTC.
    """

    @staticmethod
    def get_utc_now() -> datetime:
        """Get current UTC datetime."""
        return datetime.now(timezone.utc)

    @staticmethod
    def get_utc_today(now: Optional[datetime] = None) -> date:
        """
        Get the UTC calendar day for a moment in time.

        Args:
            now: Reference moment (defaults to the current time)

        Returns:
            The UTC date, used as the daily statistics bucket key
        """
        moment = TimeHelper.ensure_utc(now) if now else TimeHelper.get_utc_now()
        return moment.date()

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """
        Attach UTC to naive datetimes and convert aware ones to UTC.

        SQLite hands back naive values even for timezone-aware columns.
        """
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def to_iso(value: Optional[Any]) -> Optional[str]:
        """
        Serialize a date or datetime to ISO-8601.

        Args:
            value: datetime, date or None

        Returns:
            ISO string, or None when value is None
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            return TimeHelper.ensure_utc(value).isoformat()
        return value.isoformat()

    @staticmethod
    def elapsed_ms(start: float) -> int:
        """
        Milliseconds elapsed since a ``time.perf_counter()`` reading.

        Args:
            start: Value previously returned by ``time.perf_counter()``

        Returns:
            Whole milliseconds, never negative
        """
        return max(0, int(round((time.perf_counter() - start) * 1000)))

    @staticmethod
    def seconds_to_human_readable(seconds: float) -> str:
        """
        Convert seconds to human-readable format.

        Args:
            seconds: Number of seconds

        Returns:
            Human-readable string (e.g., "2h 30m 15s")
        """
        seconds = int(seconds)
        if seconds < 0:
            return "0s"

        days, remainder = divmod(seconds, 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes, secs = divmod(remainder, 60)

        parts = []
        if days > 0:
            parts.append(f"{days}d")
        if hours > 0:
            parts.append(f"{hours}h")
        if minutes > 0:
            parts.append(f"{minutes}m")
        if secs > 0 or not parts:
            parts.append(f"{secs}s")

        return " ".join(parts)


# ============================================================================
# DATA UTILITIES
# ============================================================================

class DataHelper:
    """
    Data manipulation utilities.
    """

    @staticmethod
    def diff_dicts(old: Dict[str, Any], new: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        """
        Compute a field-level diff between two flat dictionaries.

        Only keys present in ``new`` are compared.

        Args:
            old: Values before the change
            new: Values after the change

        Returns:
            Mapping of changed field to ``{"old": ..., "new": ...}``
        """
        return {
            key: {"old": old.get(key), "new": value}
            for key, value in new.items()
            if old.get(key) != value
        }


# ============================================================================
# END OF HELPERS MODULE
# ============================================================================
