"""
Time and calendar utilities for timezone-local scheduling.

Key concepts:
  - Clock: any zero-argument callable returning an aware ``datetime``.
    Components accept one at construction so tests can pin "now" and
    simulate day rollover without waiting on real time.
  - Local calendar date: the ``YYYY-MM-DD`` date in the configured market
    timezone (``America/New_York`` by default), not the host's zone.
  - Week key: the Monday on or before a given date.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]

DATE_IN_NAME_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def local_now(clock: Clock, tz_name: str) -> datetime:
    """Return ``clock()`` converted to *tz_name*.

    Naive datetimes from a clock are treated as UTC.
    """
    now = clock()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name))


def local_today(clock: Clock, tz_name: str) -> date:
    """Return the calendar date in *tz_name* for the clock's current instant."""
    return local_now(clock, tz_name).date()


def week_start(day: date) -> date:
    """Return the Monday on or before ``day``.

    Sunday belongs to the week that started six days earlier.
    """
    return day - timedelta(days=day.weekday())


def extract_embedded_date(name: str) -> Optional[date]:
    """Return the first ``YYYY-MM-DD`` date embedded in a filename, or ``None``.

    Strings that look like a date but are not valid calendar dates
    (e.g. ``2024-13-40``) return ``None``.
    """
    match = DATE_IN_NAME_RE.search(name)
    if not match:
        return None
    try:
        return date.fromisoformat(match.group(1))
    except ValueError:
        return None


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up.

    ``round()`` uses banker's rounding (``round(62.5) == 62``); accuracy
    percentages are reported with halves rounded up (``62.5 -> 63``).
    """
    return int(math.floor(value + 0.5))
