"""
TaskTrack Clock — "now" and "today" in the configured reference time zone.

Day boundaries ("today", "overdue", the dashboard week windows) are computed
in the reference zone and converted to UTC for comparison with stored
timestamps. Tests inject a fixed ``now``.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Optional


class Clock:
    """Time source bound to a reference time zone."""

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        self._tz = tz
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        """Current instant, timezone-aware UTC."""
        current = self._now_fn()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def today(self) -> date:
        """Calendar date in the reference zone."""
        return self.now().astimezone(self._tz).date()

    def start_of_day(self, day: date) -> datetime:
        """Midnight of *day* in the reference zone, as a UTC instant."""
        local = datetime.combine(day, time.min).replace(tzinfo=self._tz)
        return local.astimezone(timezone.utc)

    def start_of_today(self) -> datetime:
        return self.start_of_day(self.today())

    def days_ago(self, days: int) -> datetime:
        """Start of the day *days* before today, as a UTC instant."""
        return self.start_of_day(self.today() - timedelta(days=days))
