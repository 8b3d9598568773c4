"""Wall-clock access for the engine.

All calendar math (day, ISO week, month) goes through a Clock so reset
boundaries can be driven from tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, tzinfo


class Clock(ABC):
    """Base clock: subclasses supply ``now``; calendar helpers are shared.

    ``tz`` is the zone used for calendar boundaries. ``None`` means the
    host's local zone.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz

    @abstractmethod
    def now(self) -> datetime:
        """Current time."""

    def localize(self, ts: datetime) -> datetime:
        """Convert a timestamp into the clock's zone.

        Naive timestamps are taken to already be local wall time.
        """
        if ts.tzinfo is None:
            return ts.replace(tzinfo=self.tz) if self.tz else ts.astimezone()
        return ts.astimezone(self.tz)

    def local_date_parts(self, ts: datetime) -> tuple[int, int, int]:
        """(year, month, day) of ``ts`` in local time."""
        local = self.localize(ts)
        return local.year, local.month, local.day

    def iso_week_number(self, ts: datetime) -> tuple[int, int]:
        """(ISO year, ISO week) of ``ts`` in local time.

        The ISO year differs from the calendar year around New Year, e.g.
        2026-12-31 falls in week 53 of 2026 and 2027-01-01 does too.
        """
        iso = self.localize(ts).isocalendar()
        return iso.year, iso.week


class SystemClock(Clock):
    """Clock backed by the real time of day."""

    def now(self) -> datetime:
        if self.tz is not None:
            return datetime.now(self.tz)
        return datetime.now().astimezone()
