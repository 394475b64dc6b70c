"""Time zone aware clock helpers - zone projection, countdown diffs and reset boundaries."""
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Europe/Moscow"
STAMP_FORMAT = "%d.%m.%Y %H:%M:%S"

ONE_DAY = timedelta(days=1)
ONE_HOUR = timedelta(hours=1)


class ZonedClock:
    """
    Wall clock projected into a configured time zone.

    The current instant comes from ``now_fn`` (UTC-aware), so tests can pin
    the clock without patching the datetime module.
    """

    def __init__(
        self,
        tz_name: str = DEFAULT_TIMEZONE,
        now_fn: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize clock.

        Args:
            tz_name: IANA zone name (e.g., "Europe/Moscow")
            now_fn: Callable returning the current aware datetime

        Raises:
            zoneinfo.ZoneInfoNotFoundError: If the zone name is unknown
        """
        self.tz_name = tz_name
        self.tz = ZoneInfo(tz_name)
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        """Current instant as wall time in the configured zone."""
        return self._now_fn().astimezone(self.tz)

    def localize(self, value: datetime) -> datetime:
        """Treat naive values as wall time in the zone; convert aware ones into it."""
        if value.tzinfo is None:
            return value.replace(tzinfo=self.tz)
        return value.astimezone(self.tz)

    def stamp(self, value: Optional[datetime] = None) -> str:
        """Short human-readable stamp, e.g. "01.01.2025 12:00:00"."""
        value = self.now() if value is None else self.localize(value)
        return value.strftime(STAMP_FORMAT)


def diff(target: datetime, base: datetime) -> timedelta:
    """Signed absolute duration from base to target."""
    # Same-tzinfo subtraction in Python uses wall time, so compare in UTC
    return target.astimezone(timezone.utc) - base.astimezone(timezone.utc)


def days_floor(target: datetime, base: datetime) -> int:
    return diff(target, base) // ONE_DAY


def hours_ceil(target: datetime, base: datetime) -> int:
    return -(diff(base, target) // ONE_HOUR)


def effective_base(now: datetime, reset_hour: int, reset_minute: int) -> datetime:
    """
    Most recent instant on or before ``now`` whose wall time is the reset time.

    Countdown milestones flip at this boundary instead of at midnight.

    Args:
        now: Aware datetime, already projected into the target zone
        reset_hour: Hour of the daily reset (0-23)
        reset_minute: Minute of the daily reset (0-59)

    Returns:
        Aware datetime in ``now``'s zone with seconds zeroed
    """
    reset_at = time(reset_hour, reset_minute)
    day = now.date()
    if now.time() < reset_at:
        day -= ONE_DAY
    return datetime.combine(day, reset_at, tzinfo=now.tzinfo)
