from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from slotfinder.calendar.availability import SchedulableHours, day_windows
from slotfinder.calendar.base import Interval
from slotfinder.calendar.clock import (
    MINUTES_PER_DAY,
    day_name,
    day_of_week_in,
    instant_at,
    local_date,
    minutes_since_midnight,
)
from slotfinder.observability import get_logger, log_json
from slotfinder.settings import get_settings

logger = get_logger(__name__)


@dataclass(frozen=True)
class TravelBuffer:
    before_minutes: int = 0
    after_minutes: int = 0

    def __post_init__(self) -> None:
        if self.before_minutes < 0 or self.after_minutes < 0:
            raise ValueError("Travel buffer minutes must not be negative")

    @property
    def total_minutes(self) -> int:
        return self.before_minutes + self.after_minutes


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def bounds(self, zone: ZoneInfo) -> Tuple[datetime, datetime]:
        lower = instant_at(self.start, 0, zone)
        upper = instant_at(self.end, 23 * 60 + 59, zone) + timedelta(seconds=59)
        return lower, upper


@dataclass(frozen=True)
class EventConstraint:
    duration_minutes: int
    preferred_hours: Optional[SchedulableHours] = None
    preferred_dates: Optional[DateRange] = None
    travel_buffer: Optional[TravelBuffer] = None
    prefer_center_of_window: bool = False
    explicit_time_request: bool = False
    intent: str = "custom"

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError("Event duration must be positive")

    @property
    def before_minutes(self) -> int:
        return self.travel_buffer.before_minutes if self.travel_buffer else 0

    @property
    def after_minutes(self) -> int:
        return self.travel_buffer.after_minutes if self.travel_buffer else 0

    @property
    def block_minutes(self) -> int:
        return self.before_minutes + self.duration_minutes + self.after_minutes


def is_within_preferred_hours(
    slot_start: datetime,
    preferred_hours: SchedulableHours,
    duration_minutes: int,
    zone: ZoneInfo,
    before_minutes: int = 0,
    after_minutes: int = 0,
    tolerance_minutes: Optional[int] = None,
    diagnostics: Optional[List[Dict[str, Any]]] = None,
) -> bool:
    if tolerance_minutes is None:
        tolerance_minutes = get_settings().explicit_time_tolerance_minutes
    start_minutes = minutes_since_midnight(slot_start, zone)
    block = before_minutes + duration_minutes + after_minutes

    for window_start, window_end in day_windows(
        preferred_hours, day_of_week_in(slot_start, zone), diagnostics
    ):
        if window_start == window_end:
            # explicit single-time request
            if abs(start_minutes - window_start) < tolerance_minutes:
                return True
        elif window_end > window_start:
            if start_minutes >= window_start and start_minutes + block <= window_end:
                return True
        else:
            window_length = MINUTES_PER_DAY - window_start + window_end
            shifted = (start_minutes - window_start) % MINUTES_PER_DAY
            if shifted + block <= window_length:
                return True
    return False


def _has_consecutive_time(
    slots: List[Interval], index: int, required_start: datetime, required_end: datetime
) -> bool:
    first = index
    while first > 0 and slots[first - 1].end == slots[first].start:
        first -= 1

    run_end = slots[first].end
    last = first + 1
    while last < len(slots) and slots[last].start == run_end:
        run_end = slots[last].end
        last += 1

    return slots[first].start <= required_start and run_end >= required_end


def get_all_valid_slots(
    common_slots: List[Interval],
    constraint: EventConstraint,
    zone: ZoneInfo,
    *,
    tolerance_minutes: Optional[int] = None,
    diagnostics: Optional[List[Dict[str, Any]]] = None,
) -> List[Interval]:
    slots = sorted(common_slots)
    if constraint.preferred_dates:
        lower, upper = constraint.preferred_dates.bounds(zone)
        slots = [slot for slot in slots if lower <= slot.start <= upper]

    before = timedelta(minutes=constraint.before_minutes)
    duration = timedelta(minutes=constraint.duration_minutes)
    block = timedelta(minutes=constraint.block_minutes)

    valid: List[Interval] = []
    outside_hours = 0
    not_consecutive = 0
    for index, slot in enumerate(slots):
        if constraint.preferred_hours and not is_within_preferred_hours(
            slot.start,
            constraint.preferred_hours,
            constraint.duration_minutes,
            zone,
            constraint.before_minutes,
            constraint.after_minutes,
            tolerance_minutes,
            diagnostics,
        ):
            outside_hours += 1
            continue
        if not _has_consecutive_time(slots, index, slot.start, slot.start + block):
            not_consecutive += 1
            continue
        event_start = slot.start + before
        valid.append(Interval(event_start, event_start + duration))

    log_json(
        logger,
        "debug",
        "valid_slots_filtered",
        candidate_count=len(slots),
        valid_count=len(valid),
        outside_hours=outside_hours,
        not_consecutive=not_consecutive,
    )
    return valid


def calculate_window_center(
    preferred_hours: SchedulableHours, day: date
) -> Optional[int]:
    windows = day_windows(preferred_hours, day_name(day))
    if not windows:
        return None
    start, end = windows[0]
    if end < start:
        end += MINUTES_PER_DAY
    return ((start + end) // 2) % MINUTES_PER_DAY


def select_optimal_slot(
    slots: List[Interval],
    center_minutes: int,
    duration_minutes: int,
    zone: ZoneInfo,
) -> Optional[Interval]:
    if not slots:
        return None

    def distance(slot: Interval) -> float:
        midpoint = minutes_since_midnight(slot.start, zone) + duration_minutes / 2
        return abs(midpoint - center_minutes)

    return min(slots, key=lambda slot: (distance(slot), slot.start))


def select_best_slot(
    valid_slots: List[Interval],
    constraint: EventConstraint,
    zone: ZoneInfo,
) -> Optional[Interval]:
    """Pick one slot: first available, or closest to the window center.

    With ``prefer_center_of_window`` the choice is limited to the earliest
    local date present, then ranked by distance between the event midpoint
    and the center of that day's first preferred window; earlier start wins
    ties.
    """
    if not valid_slots:
        return None
    if not (constraint.prefer_center_of_window and constraint.preferred_hours):
        return valid_slots[0]

    earliest = local_date(valid_slots[0].start, zone)
    same_day = [slot for slot in valid_slots if local_date(slot.start, zone) == earliest]
    center = calculate_window_center(constraint.preferred_hours, earliest)
    if center is None or not same_day:
        return valid_slots[0]
    return select_optimal_slot(same_day, center, constraint.duration_minutes, zone)
