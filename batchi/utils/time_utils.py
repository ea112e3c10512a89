"""Time helpers for CLI input and display."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional


def minutes_to_timedelta(minutes: Optional[float]) -> Optional[timedelta]:
    """--since N (minutes) -> timedelta; non-positive values mean no filter."""
    if minutes is None or minutes <= 0:
        return None
    return timedelta(minutes=minutes)


def format_timestamp(timestamp: Any) -> str:
    """
    Format timestamp for display.

    Args:
        timestamp: Epoch milliseconds (as Batch returns), ISO string, or datetime

    Returns:
        Formatted timestamp string (UTC)
    """
    if timestamp is None or timestamp == "":
        return "-"
    if isinstance(timestamp, (int, float)):
        dt = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
        return dt.strftime("%Y-%m-%d %H:%M:%S UTC")
    if isinstance(timestamp, str):
        try:
            dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
            return dt.strftime("%Y-%m-%d %H:%M:%S")
        except ValueError:
            return timestamp
    if hasattr(timestamp, "strftime"):
        return timestamp.strftime("%Y-%m-%d %H:%M:%S")
    return str(timestamp)
