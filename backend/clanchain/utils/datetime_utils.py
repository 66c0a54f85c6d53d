"""
Datetime utilities: timezone-aware replacements for datetime.utcnow()
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time with timezone awareness

    Example:
        >>> from clanchain.utils.datetime_utils import utc_now
        >>> utc_now().tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string"""
    return utc_now().isoformat()


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 date or datetime from a query string.

    A trailing ``Z`` is accepted. Naive values are taken as UTC.

    Raises:
        ValueError: if the value is not ISO formatted
    """
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timeframe_start(timeframe: str, now: Optional[datetime] = None) -> datetime:
    """Start of a '7d' / '30d' / '90d' window; unknown values fall back to 30 days"""
    days = {"7d": 7, "30d": 30, "90d": 90}.get(timeframe, 30)
    return (now or utc_now()) - timedelta(days=days)
