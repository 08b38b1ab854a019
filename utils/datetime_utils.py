"""Datetime utility functions."""
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

# Fixtures count as live for this long after kickoff
LIVE_WINDOW = timedelta(hours=3)

DATE_FILTERS = ("today", "tomorrow", "upcoming", "past")


def normalize_iso_datetime(dt_str: str) -> str:
    """Normalize various ISO datetime formats to consistent format with Z suffix."""
    if not dt_str:
        return dt_str
    dt_str = dt_str.replace(" ", "T")
    dt_str = re.sub(r'(\.\d{1,6})?\+00:00$', 'Z', dt_str)
    dt_str = re.sub(r'(\.\d{1,6})?\+0000$', 'Z', dt_str)
    if dt_str and dt_str[-1].lower() == 'z':
        return dt_str[:-1] + 'Z'
    return dt_str


def parse_datetime(dt_str: str) -> datetime:
    """Parse ISO datetime string to an aware UTC datetime."""
    if dt_str.endswith("Z"):
        dt_str = dt_str[:-1]
    dt = datetime.fromisoformat(dt_str)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fixture_status(kickoff_utc: str, now: Optional[datetime] = None) -> str:
    """upcoming before kickoff, live for LIVE_WINDOW after it, finished later."""
    now = now or utc_now()
    kickoff = parse_datetime(kickoff_utc)
    if now < kickoff:
        return "upcoming"
    if now - kickoff <= LIVE_WINDOW:
        return "live"
    return "finished"


def validate_date_filter(date_filter: Optional[str]) -> Optional[str]:
    """Return the filter unchanged if it is a keyword or YYYY-MM-DD; raise ValueError otherwise."""
    if date_filter is None or date_filter in DATE_FILTERS:
        return date_filter
    try:
        date.fromisoformat(date_filter)
    except ValueError:
        raise ValueError(
            f"Invalid date filter {date_filter!r}: use {', '.join(DATE_FILTERS)} or YYYY-MM-DD"
        ) from None
    return date_filter


def matches_date_filter(kickoff_utc: str, date_filter: Optional[str], now: Optional[datetime] = None) -> bool:
    """Check a kickoff against today/tomorrow/upcoming/past or an ISO date. None matches everything."""
    if date_filter is None:
        return True
    now = now or utc_now()
    kickoff = parse_datetime(kickoff_utc)

    if date_filter == "today":
        return kickoff.date() == now.date()
    if date_filter == "tomorrow":
        return kickoff.date() == (now + timedelta(days=1)).date()
    if date_filter == "upcoming":
        return kickoff > now
    if date_filter == "past":
        return kickoff <= now
    return kickoff.date() == date.fromisoformat(date_filter)
