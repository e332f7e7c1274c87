from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from slotfinder.observability import get_logger, record_warning

logger = get_logger(__name__)

UTC = timezone.utc
MINUTES_PER_DAY = 24 * 60
DAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)
WEEKEND = ("saturday", "sunday")


def resolve_zone(
    time_zone: Optional[str],
    diagnostics: Optional[List[Dict[str, Any]]] = None,
) -> ZoneInfo:
    if not time_zone:
        record_warning(logger, diagnostics, "timezone_fallback", time_zone=time_zone)
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError):
        # directory names such as "America" surface as IsADirectoryError
        record_warning(logger, diagnostics, "timezone_fallback", time_zone=time_zone)
        return ZoneInfo("UTC")


def wall_clock_in(instant: datetime, zone: ZoneInfo) -> datetime:
    """Naive datetime showing what a clock in ``zone`` reads at ``instant``."""
    return instant.astimezone(zone).replace(tzinfo=None)


def instant_for(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    zone: ZoneInfo = ZoneInfo("UTC"),
) -> datetime:
    """UTC instant at which a clock in ``zone`` shows the given wall time.

    Starts from the wall time read as UTC and shifts by the difference between
    the target and what the zone shows at that guess. When the guess and the
    answer sit on opposite sides of an offset change, one more shift is
    applied. Wall times skipped by a DST gap have no exact answer; the first
    shifted guess is returned for them (use ``exists_in`` to detect this).
    """
    target = datetime(year, month, day, hour, minute, second)
    guess = target.replace(tzinfo=UTC)
    result = guess + (target - wall_clock_in(guess, zone))
    observed = wall_clock_in(result, zone)
    if observed != target:
        corrected = result + (target - observed)
        if wall_clock_in(corrected, zone) == target:
            return corrected
    return result


def instant_at(day: date, minutes: int, zone: ZoneInfo) -> datetime:
    local = datetime.combine(day, time()) + timedelta(minutes=minutes)
    return instant_for(
        local.year, local.month, local.day, local.hour, local.minute, local.second, zone
    )


def exists_in(instant: datetime, day: date, minutes: int, zone: ZoneInfo) -> bool:
    local = datetime.combine(day, time()) + timedelta(minutes=minutes)
    return wall_clock_in(instant, zone) == local


def local_date(instant: datetime, zone: ZoneInfo) -> date:
    return wall_clock_in(instant, zone).date()


def midnight_tomorrow_in(zone: ZoneInfo, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(UTC)
    tomorrow = local_date(now, zone) + timedelta(days=1)
    return instant_at(tomorrow, 0, zone)


def parse_hhmm(value: str) -> Tuple[int, int]:
    if not isinstance(value, str):
        raise ValueError(f"Time of day must be a string, got {value!r}")
    hour_text, sep, minute_text = value.strip().partition(":")
    if not sep or not hour_text.isdigit() or not minute_text.isdigit():
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute = int(hour_text), int(minute_text)
    if minute > 59 or hour > 24 or (hour == 24 and minute != 0):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hour, minute


def time_to_minutes(value: str) -> int:
    hour, minute = parse_hhmm(value)
    return hour * 60 + minute


def minutes_to_time(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def minutes_since_midnight(instant: datetime, zone: ZoneInfo) -> int:
    local = wall_clock_in(instant, zone)
    return local.hour * 60 + local.minute


def day_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def day_of_week_in(instant: datetime, zone: ZoneInfo) -> str:
    return day_name(local_date(instant, zone))


def _clock_text(local: datetime) -> str:
    return f"{local:%I:%M %p}".lstrip("0")


def format_display_time(instant: datetime, zone: ZoneInfo) -> str:
    local = wall_clock_in(instant, zone)
    return f"{local:%A} {_clock_text(local)}"


def format_time_range(start: datetime, end: datetime, zone: ZoneInfo) -> str:
    return f"{_clock_text(wall_clock_in(start, zone))} - {_clock_text(wall_clock_in(end, zone))}"


def format_smart_day(
    instant: datetime, zone: ZoneInfo, now: Optional[datetime] = None
) -> str:
    now = now or datetime.now(UTC)
    today = local_date(now, zone)
    target = wall_clock_in(instant, zone)
    days_ahead = (target.date() - today).days
    if days_ahead == 0:
        return "Today"
    if days_ahead == 1:
        return "Tomorrow"
    if 1 < days_ahead <= 7:
        return f"{target:%A}"
    return f"{target:%b} {target.day}"
