from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from slotfinder.calendar.availability import SchedulableHours, day_windows, effective_end
from slotfinder.calendar.base import Interval
from slotfinder.calendar.clock import (
    UTC,
    day_name,
    exists_in,
    instant_at,
    local_date,
    midnight_tomorrow_in,
)
from slotfinder.observability import get_logger, log_json
from slotfinder.settings import get_settings

logger = get_logger(__name__)


def availability_time_range(
    zone: ZoneInfo,
    now: Optional[datetime] = None,
    lookahead_days: Optional[int] = None,
) -> Tuple[datetime, datetime]:
    if lookahead_days is None:
        lookahead_days = get_settings().lookahead_days
    start = midnight_tomorrow_in(zone, now)
    end = instant_at(local_date(start, zone) + timedelta(days=lookahead_days), 0, zone)
    return start, end


def _is_busy(slot: Interval, busy: List[Interval]) -> bool:
    return any(slot.start < item.end and slot.end > item.start for item in busy)


def _window_slots(
    day,
    start_minutes: int,
    end_minutes: int,
    slot_minutes: int,
    zone: ZoneInfo,
) -> List[Interval]:
    slots = []
    minutes = start_minutes
    while minutes + slot_minutes <= end_minutes:
        slot_start = instant_at(day, minutes, zone)
        slot_end = instant_at(day, minutes + slot_minutes, zone)
        # wall times inside a DST gap do not exist locally
        if exists_in(slot_start, day, minutes, zone) and slot_start < slot_end:
            slots.append(Interval(slot_start, slot_end))
        minutes += slot_minutes
    return slots


def generate_free_slots(
    busy: List[Interval],
    schedulable_hours: Optional[SchedulableHours],
    range_start: datetime,
    range_end: datetime,
    zone: ZoneInfo,
    *,
    now: Optional[datetime] = None,
    slot_minutes: Optional[int] = None,
    max_slots: Optional[int] = None,
    diagnostics: Optional[List[Dict[str, Any]]] = None,
) -> List[Interval]:
    settings = get_settings()
    slot_minutes = slot_minutes or settings.slot_minutes
    max_slots = max_slots or settings.max_free_slots
    floor = max(range_start, midnight_tomorrow_in(zone, now or datetime.now(UTC)))

    slots: Dict[datetime, Interval] = {}
    # overnight windows from the previous day may extend past the floor
    day = local_date(floor, zone) - timedelta(days=1)
    while instant_at(day, 0, zone) < range_end and len(slots) < max_slots:
        for start_minutes, end_minutes in day_windows(
            schedulable_hours, day_name(day), diagnostics
        ):
            end_minutes = effective_end(start_minutes, end_minutes)
            for slot in _window_slots(day, start_minutes, end_minutes, slot_minutes, zone):
                if slot.start < floor or slot.start >= range_end:
                    continue
                if _is_busy(slot, busy):
                    continue
                slots.setdefault(slot.start, slot)
        day += timedelta(days=1)

    result = sorted(slots.values())[:max_slots]
    log_json(
        logger,
        "debug",
        "free_slots_generated",
        busy_count=len(busy),
        slot_count=len(result),
        range_start=range_start,
        range_end=range_end,
        time_zone=str(zone),
    )
    return result


def generate_open_slots(
    range_start: datetime,
    range_end: datetime,
    zone: ZoneInfo,
    *,
    now: Optional[datetime] = None,
    slot_minutes: Optional[int] = None,
    max_slots: Optional[int] = None,
) -> List[Interval]:
    """Around-the-clock slots for a participant with no connected calendar."""
    settings = get_settings()
    slot_minutes = slot_minutes or settings.slot_minutes
    max_slots = max_slots or settings.max_free_slots
    floor = max(range_start, midnight_tomorrow_in(zone, now or datetime.now(UTC)))

    step = timedelta(minutes=slot_minutes)
    epoch = datetime(1970, 1, 1, tzinfo=UTC)
    remainder = (floor - epoch) % step
    current = floor if not remainder else floor + (step - remainder)

    slots = []
    while current < range_end and len(slots) < max_slots:
        slots.append(Interval(current, current + step))
        current += step
    log_json(
        logger,
        "debug",
        "open_slots_generated",
        slot_count=len(slots),
        time_zone=str(zone),
    )
    return slots
