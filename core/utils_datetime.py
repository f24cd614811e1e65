"""
DateTime utilities for the building's local wall clock.

Reservations are stored as UTC instants. Operating hours, calendar days and
"is this in the past" checks are evaluated in local wall-clock time, which is
a single fixed UTC offset (no daylight-saving rules). Everything that needs
that conversion goes through TimeZoneNormalizer.
"""
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

import pytz

from core.config import get_settings


Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current instant, UTC aware."""
    return datetime.now(pytz.utc)


def fixed_clock(instant: datetime) -> Clock:
    """
    Build a clock that always returns the same instant.

    Args:
        instant: The instant to return (naive values are taken as UTC)

    Returns:
        Zero-argument callable
    """
    frozen = ensure_utc(instant)
    return lambda: frozen


def ensure_utc(instant: datetime) -> datetime:
    """Normalize an instant to an aware UTC datetime (naive means UTC)."""
    if instant.tzinfo is None:
        return pytz.utc.localize(instant)
    return instant.astimezone(pytz.utc)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end."""
    return int((end - start).total_seconds() // 60)


class TimeZoneNormalizer:
    """Converts between UTC instants and the fixed-offset local wall clock."""

    def __init__(self, offset_minutes: Optional[int] = None, clock: Optional[Clock] = None):
        if offset_minutes is None:
            offset_minutes = get_settings().local_utc_offset_minutes
        self.offset_minutes = offset_minutes
        self.tz = pytz.FixedOffset(offset_minutes)
        self._clock = clock or system_clock

    def __repr__(self) -> str:
        return f"TimeZoneNormalizer(offset_minutes={self.offset_minutes})"

    def now(self) -> datetime:
        """Current instant in UTC."""
        return ensure_utc(self._clock())

    def now_local(self) -> datetime:
        """Current local wall-clock time."""
        return self.to_local(self.now())

    def to_local(self, instant: datetime) -> datetime:
        """
        Convert an instant to local wall-clock time.

        Naive input is treated as UTC.
        """
        return ensure_utc(instant).astimezone(self.tz)

    def to_instant(self, local: datetime) -> datetime:
        """
        Convert local wall-clock time to a UTC instant.

        Naive input is treated as local wall clock; aware input is converted.
        """
        if local.tzinfo is None:
            local = self.tz.localize(local)
        return local.astimezone(pytz.utc)

    def combine(self, day: date, wall_time: time) -> datetime:
        """UTC instant of a local calendar day at a local wall-clock time."""
        return self.to_instant(datetime.combine(day, wall_time))

    def local_date(self, instant: datetime) -> date:
        """Local calendar day an instant falls on."""
        return self.to_local(instant).date()

    def is_past(self, instant: datetime) -> bool:
        """True if the instant is not strictly in the future."""
        return ensure_utc(instant) <= self.now()

    def day_bounds(self, day: date):
        """
        UTC instants bounding a local calendar day.

        Returns:
            Tuple of (start, end) as a half-open interval
        """
        start = self.combine(day, time(0, 0))
        return start, start + timedelta(days=1)


def get_normalizer() -> TimeZoneNormalizer:
    """Normalizer with the configured offset and the system clock."""
    return TimeZoneNormalizer(get_settings().local_utc_offset_minutes)


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime
) -> bool:
    """Half-open interval intersection: touching endpoints do not overlap."""
    return a_start < b_end and b_start < a_end
