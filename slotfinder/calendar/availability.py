from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from slotfinder.calendar.clock import (
    DAY_NAMES,
    MINUTES_PER_DAY,
    WEEKEND,
    minutes_to_time,
    time_to_minutes,
)
from slotfinder.observability import get_logger, record_warning

logger = get_logger(__name__)

TimeWindow = Dict[str, str]
SchedulableHours = Dict[str, List[TimeWindow]]

CALENDAR_KINDS = ("personal", "work")


def _every_day(*windows: Tuple[str, str]) -> SchedulableHours:
    return {
        day: [{"start": start, "end": end} for start, end in windows]
        for day in DAY_NAMES
    }


def _weekdays(*windows: Tuple[str, str]) -> SchedulableHours:
    hours = _every_day(*windows)
    for day in WEEKEND:
        hours[day] = []
    return hours


WORK_SCHEDULABLE_HOURS = _weekdays(("09:00", "17:00"))

PERSONAL_SCHEDULABLE_HOURS = {
    **_weekdays(("08:00", "09:00"), ("17:00", "22:00")),
    "saturday": [{"start": "08:00", "end": "22:00"}],
    "sunday": [{"start": "08:00", "end": "22:00"}],
}

UNIVERSAL_SCHEDULABLE_HOURS = _every_day(("08:00", "22:00"))


def default_schedulable_hours(calendar_kind: str) -> SchedulableHours:
    if calendar_kind == "personal":
        source = PERSONAL_SCHEDULABLE_HOURS
    elif calendar_kind == "work":
        source = WORK_SCHEDULABLE_HOURS
    elif calendar_kind == "universal":
        source = UNIVERSAL_SCHEDULABLE_HOURS
    else:
        raise ValueError(f"Unknown calendar kind: {calendar_kind}")
    return {day: [dict(window) for window in windows] for day, windows in source.items()}


def window_minutes(
    window: Any,
    diagnostics: Optional[List[Dict[str, Any]]] = None,
    day: Optional[str] = None,
) -> Optional[Tuple[int, int]]:
    """Return (start, end) minutes for a window, or None if it cannot be parsed.

    End is returned as-is; overnight windows have ``end < start``.
    """
    try:
        return time_to_minutes(window["start"]), time_to_minutes(window["end"])
    except (KeyError, TypeError, ValueError) as exc:
        record_warning(
            logger,
            diagnostics,
            "invalid_time_window",
            day=day,
            window=window,
            error=str(exc),
        )
        return None


def day_windows(
    hours: Optional[SchedulableHours],
    day: str,
    diagnostics: Optional[List[Dict[str, Any]]] = None,
) -> List[Tuple[int, int]]:
    value = (hours or {}).get(day)
    if value is None:
        return []
    if not isinstance(value, list):
        record_warning(
            logger,
            diagnostics,
            "invalid_time_window",
            day=day,
            window=value,
            error="windows for a day must be a list",
        )
        return []
    windows = []
    for window in value:
        parsed = window_minutes(window, diagnostics, day)
        if parsed is not None:
            windows.append(parsed)
    windows.sort()
    return windows


def effective_end(start: int, end: int) -> int:
    return end + MINUTES_PER_DAY if end < start else end


def _coalesce(windows: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    coalesced: List[Tuple[int, int]] = []
    for start, end in sorted(windows):
        if coalesced and start <= coalesced[-1][1]:
            running_start, running_end = coalesced[-1]
            coalesced[-1] = (running_start, max(running_end, end))
        else:
            coalesced.append((start, end))
    return coalesced


def merge_schedulable_hours(
    first: Optional[SchedulableHours],
    second: Optional[SchedulableHours],
    diagnostics: Optional[List[Dict[str, Any]]] = None,
) -> SchedulableHours:
    """Union two weekly templates into sorted, non-overlapping windows per day.

    Windows are kept on the day they start, so an overnight window stays a
    single ``end < start`` entry. A span of a full day or more cannot be
    written that way: it becomes ``00:00``-``24:00`` and whatever runs past
    midnight is carried into the next day's windows.
    """
    spans = {
        day: [
            (start, effective_end(start, end))
            for start, end in day_windows(first, day, diagnostics)
            + day_windows(second, day, diagnostics)
        ]
        for day in DAY_NAMES
    }
    pending = list(DAY_NAMES)
    while pending:
        day = pending.pop(0)
        spans[day] = _coalesce(spans[day])
        for start, end in spans[day]:
            if end - start < MINUTES_PER_DAY:
                continue
            spans[day] = [(0, MINUTES_PER_DAY)]
            spill = end - MINUTES_PER_DAY
            if spill > 0:
                next_day = DAY_NAMES[(DAY_NAMES.index(day) + 1) % len(DAY_NAMES)]
                spans[next_day].append((0, spill))
                if next_day not in pending:
                    pending.append(next_day)
            break

    return {
        day: [
            {"start": minutes_to_time(start), "end": _format_end(end)}
            for start, end in spans[day]
        ]
        for day in DAY_NAMES
    }


def _format_end(end: int) -> str:
    if end > MINUTES_PER_DAY:
        return minutes_to_time(end - MINUTES_PER_DAY)
    return minutes_to_time(end)
