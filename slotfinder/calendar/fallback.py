from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from slotfinder.calendar.availability import (
    CALENDAR_KINDS,
    day_windows,
    effective_end,
)
from slotfinder.calendar.base import Interval
from slotfinder.calendar.clock import (
    UTC,
    WEEKEND,
    day_name,
    exists_in,
    instant_at,
    local_date,
    midnight_tomorrow_in,
)
from slotfinder.calendar.constraints import EventConstraint
from slotfinder.observability import get_logger, log_json
from slotfinder.settings import get_settings

logger = get_logger(__name__)

SYNTHETIC_START_MINUTES = 10 * 60


def default_windows(calendar_kind: str, day: date) -> List[Tuple[int, int]]:
    weekend = day_name(day) in WEEKEND
    if calendar_kind == "personal":
        return [(9 * 60, 21 * 60)] if weekend else [(17 * 60, 21 * 60)]
    if weekend:
        return []
    return [(9 * 60, 17 * 60)]


def _fallback_days(
    constraint: EventConstraint, tomorrow: date, lookahead_days: int
) -> List[date]:
    if constraint.preferred_dates:
        first, last = constraint.preferred_dates.start, constraint.preferred_dates.end
    else:
        first, last = tomorrow, tomorrow + timedelta(days=lookahead_days)
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


def create_fallback(
    constraint: EventConstraint,
    calendar_kind: str,
    zone: ZoneInfo,
    *,
    now: Optional[datetime] = None,
    slot_minutes: Optional[int] = None,
    max_slots: Optional[int] = None,
    diagnostics: Optional[List[Dict[str, Any]]] = None,
) -> List[Interval]:
    if calendar_kind not in CALENDAR_KINDS:
        raise ValueError(f"Unknown calendar kind: {calendar_kind}")
    settings = get_settings()
    slot_minutes = slot_minutes or settings.slot_minutes
    max_slots = max_slots or settings.max_free_slots
    floor = midnight_tomorrow_in(zone, now or datetime.now(UTC))
    tomorrow = local_date(floor, zone)
    block = timedelta(minutes=constraint.block_minutes)
    hours = constraint.preferred_hours

    slots: List[Interval] = []
    for day in _fallback_days(constraint, tomorrow, settings.lookahead_days):
        if len(slots) >= max_slots:
            break
        if hours and hours.get(day_name(day)) is not None:
            windows = day_windows(hours, day_name(day), diagnostics)
        else:
            windows = default_windows(calendar_kind, day)

        for start_minutes, end_minutes in windows:
            if start_minutes == end_minutes:
                # explicit time: offer exactly that time
                candidates = [start_minutes]
            else:
                end_minutes = effective_end(start_minutes, end_minutes)
                candidates = range(
                    start_minutes,
                    end_minutes - constraint.block_minutes + 1,
                    slot_minutes,
                )
            for minutes in candidates:
                start = instant_at(day, minutes, zone)
                if not exists_in(start, day, minutes, zone) or start < floor:
                    continue
                slots.append(Interval(start, start + block))

    slots = sorted(set(slots))[:max_slots]
    if not slots:
        start = instant_at(tomorrow, SYNTHETIC_START_MINUTES, zone)
        log_json(
            logger,
            "info",
            "fallback_synthetic_slot",
            calendar_kind=calendar_kind,
            start=start,
        )
        return [Interval(start, start + block)]

    log_json(
        logger,
        "info",
        "fallback_slots_generated",
        calendar_kind=calendar_kind,
        slot_count=len(slots),
    )
    return slots
