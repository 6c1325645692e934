"""UTC helpers. SQLite hands timestamps back naive, PostgreSQL hands them back aware."""

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_instant(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 instant; naive input is taken as UTC. Returns None when malformed."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return as_utc(parsed)


def parse_calendar_date(value: Optional[str]) -> Optional[date]:
    """Strict YYYY-MM-DD parse. Returns None when malformed."""
    if not value or len(value) != 10:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None
