from datetime import datetime

from scheduling.dates import today_in


class SystemClock:
    """Wall-clock 'today' in the calendar's own timezone."""

    def today(self, tz_name: str = "UTC") -> str:
        return today_in(tz_name)

    def now(self) -> datetime:
        return datetime.utcnow()


class FixedClock:
    """A clock pinned to one date. Used by tests and the seed command."""

    def __init__(self, today: str, now: datetime = None):
        self._today = today
        self._now = now or datetime.fromisoformat(today + "T12:00:00")

    def today(self, tz_name: str = "UTC") -> str:
        return self._today

    def now(self) -> datetime:
        return self._now
