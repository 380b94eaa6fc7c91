from __future__ import annotations
import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, List, Optional

from .models import TimeRecord


WEEKDAY_KEYS = ["MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"]

HOUR_DECIMALS = 4
MONEY_DECIMALS = 2

_DURATION_RE = re.compile(r"PT(?:(\d+(?:\.\d+)?)H)?(?:(\d+(?:\.\d+)?)M)?(?:(\d+(?:\.\d+)?)S)?")


def to_number(value: Any) -> Optional[float]:
    """Coerce a bare number or numeric string to a finite float, else None."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def safe_round(value: float, decimals: int = HOUR_DECIMALS) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    # normalise -0.0
    return round(value, decimals) + 0.0


def parse_iso_duration(value: Optional[str]) -> float:
    """Hours in an ISO-8601 ``PT#H#M#S`` string; 0 for anything unparseable."""

    if not value or not isinstance(value, str):
        return 0.0
    match = _DURATION_RE.search(value)
    if not match:
        return 0.0
    hours, minutes, seconds = (float(part or 0) for part in match.groups())
    return hours + minutes / 60 + seconds / 3600


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _as_utc(value: datetime) -> datetime:
    # naive timestamps are read as UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        parsed = parse_timestamp(value)
        return parsed.date() if parsed else None


def record_date(record: TimeRecord) -> Optional[date]:
    """Calendar day a record belongs to: the wall-clock date of its start."""

    if record.interval is None:
        return None
    return parse_date(record.interval.start)


def record_duration_hours(record: TimeRecord) -> float:
    """Duration in hours from the explicit duration, else end minus start, else 0."""

    interval = record.interval
    if interval is None:
        return 0.0
    duration = parse_iso_duration(interval.duration)
    if duration == 0 and interval.start and interval.end:
        start = parse_timestamp(interval.start)
        end = parse_timestamp(interval.end)
        if start is not None and end is not None:
            duration = (_as_utc(end) - _as_utc(start)).total_seconds() / 3600
    if not math.isfinite(duration) or duration < 0:
        return 0.0
    return duration


def weekday_key(day: date) -> str:
    return WEEKDAY_KEYS[day.weekday()]


def iter_dates(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def date_range(start: date, end: date) -> List[date]:
    return list(iter_dates(start, end))
