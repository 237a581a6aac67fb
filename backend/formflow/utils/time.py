"""Time Utilities - UTC timestamps, plant-local conversion and formatting"""
from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional
from dateutil import parser as date_parser
from dateutil import tz


# Signature of every injectable clock in the engine
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def get_timezone(name: str) -> tzinfo:
    """
    Resolve an IANA timezone name

    Raises:
        ValueError: If the name is unknown
    """
    zone = tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone: {name}")
    return zone


def to_local(dt: datetime, zone: Optional[tzinfo]) -> datetime:
    """
    Convert an aware datetime to the given zone.

    Naive datetimes are assumed to already be plant-local and are returned as-is.
    """
    if dt.tzinfo is None or zone is None:
        return dt
    return dt.astimezone(zone)


def sunday_based_weekday(dt: datetime) -> int:
    """Weekday number with 0=Sunday .. 6=Saturday"""
    return dt.isoweekday() % 7


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """Parse ISO 8601 string to a UTC-aware datetime"""
    dt = date_parser.isoparse(iso_string)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
