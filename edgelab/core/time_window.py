"""Kickoff time windows, evaluated in US Eastern time.

The daily card is usually built in slices (early games, afternoon, evening)
so that late information can still change later picks.  Windows are defined
on the Eastern-time wall clock because that is how US sports slates are
published:

* ``EARLY``     — kickoff before 12:00 ET
* ``AFTERNOON`` — 12:00 to 17:59 ET
* ``EVENING``   — 18:00 ET onwards
* ``ALL``       — no restriction

Naive datetimes are interpreted as UTC, which is what the odds feed emits.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

EASTERN = ZoneInfo("America/New_York")


class TimeWindow(str, Enum):
    ALL = "ALL"
    EARLY = "EARLY"
    AFTERNOON = "AFTERNOON"
    EVENING = "EVENING"


def to_eastern(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(EASTERN)


def eastern_hour(moment: Optional[datetime]) -> Optional[int]:
    """Hour of day (0-23) in Eastern time, or ``None`` without a timestamp."""
    if moment is None:
        return None
    return to_eastern(moment).hour


def time_window_for(moment: Optional[datetime]) -> Optional[TimeWindow]:
    hour = eastern_hour(moment)
    if hour is None:
        return None
    if hour < 12:
        return TimeWindow.EARLY
    if hour < 18:
        return TimeWindow.AFTERNOON
    return TimeWindow.EVENING


def in_time_window(moment: Optional[datetime], window: Optional[TimeWindow]) -> bool:
    """True when ``moment`` falls in ``window``.

    ``None`` and ``ALL`` accept everything, including games without a
    kickoff time.  A specific window rejects games whose time is unknown.
    """
    if window is None or window == TimeWindow.ALL:
        return True
    return time_window_for(moment) == window


def format_hour(hour: int) -> str:
    """``13`` → ``"1:00 PM"``."""
    if hour == 0:
        return "12:00 AM"
    if hour < 12:
        return f"{hour}:00 AM"
    if hour == 12:
        return "12:00 PM"
    return f"{hour - 12}:00 PM"


def format_et_time(moment: Optional[datetime]) -> str:
    if moment is None:
        return "--:-- ET"
    return to_eastern(moment).strftime("%I:%M %p ET")
