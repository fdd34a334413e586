"""
Conversions between local calendar time and epoch milliseconds.

All naive datetimes are interpreted in the local time zone, which is what
day bucketing in the calendar relies on.
"""

from __future__ import annotations

import time
from datetime import date, datetime, timedelta
from typing import Union


def to_epoch_ms(dt: datetime) -> int:
    """
    Convert a naive local datetime to epoch milliseconds, exactly.
    """
    if dt.tzinfo is not None:
        return int(dt.replace(microsecond=0).timestamp()) * 1000 + dt.microsecond // 1000
    # mktime works on whole seconds, so the milliseconds are added separately
    seconds = int(time.mktime(dt.replace(microsecond=0).timetuple()))
    return seconds * 1000 + dt.microsecond // 1000


def from_epoch_ms(ms: int) -> datetime:
    """
    Convert epoch milliseconds to a naive local datetime.
    """
    return datetime.fromtimestamp(ms // 1000) + timedelta(milliseconds=ms % 1000)


def _as_date(day: Union[date, datetime]) -> date:
    return day.date() if isinstance(day, datetime) else day


def start_of_day_ms(day: Union[date, datetime]) -> int:
    d = _as_date(day)
    return to_epoch_ms(datetime(d.year, d.month, d.day, 0, 0, 0, 0))


def end_of_day_ms(day: Union[date, datetime]) -> int:
    d = _as_date(day)
    return to_epoch_ms(datetime(d.year, d.month, d.day, 23, 59, 59, 999_000))


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def parse_local(text: str) -> datetime:
    """
    Parse 'YYYY-MM-DD HH:MM' (or ISO 'YYYY-MM-DDTHH:MM') into a naive local datetime.
    Raises ValueError for invalid formats.
    """
    raw = text.strip().replace("T", " ")
    return datetime.strptime(raw, "%Y-%m-%d %H:%M")
