"""Wall-clock access and parsing of the ``YYYY-MM-DD`` / ``HH:MM`` wire formats.

All times are facility-local and naive; no timezone conversion happens anywhere.
"""
import re
from datetime import date, datetime, time, timedelta


DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$")


class SystemClock:
    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock frozen at a given instant until moved explicitly."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime):
        self.current = current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


def parse_date(value: str) -> date:
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date format: {value!r}, expected YYYY-MM-DD")
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_time(value: str) -> time:
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time format: {value!r}, expected HH:MM")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def combine(day: str, at: str) -> datetime:
    """Instant for a ``YYYY-MM-DD`` date at an ``HH:MM`` time."""
    return datetime.combine(parse_date(day), parse_time(at))


def format_date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def format_time(value: datetime) -> str:
    return value.strftime("%H:%M")
