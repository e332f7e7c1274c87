from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from slotfinder.calendar.availability import (
    CALENDAR_KINDS,
    SchedulableHours,
    default_schedulable_hours,
)
from slotfinder.calendar.base import (
    Interval,
    IntervalLike,
    find_slot_intersection,
    merge_busy_times,
    parse_intervals,
)
from slotfinder.calendar.clock import UTC, resolve_zone
from slotfinder.calendar.constraints import (
    EventConstraint,
    get_all_valid_slots,
    select_best_slot,
)
from slotfinder.calendar.fallback import create_fallback
from slotfinder.calendar.free_slots import (
    availability_time_range,
    generate_free_slots,
    generate_open_slots,
)
from slotfinder.calendar.templates import EventTemplate, get_event_template
from slotfinder.observability import get_logger, log_json
from slotfinder.settings import SchedulingSettings, get_settings

logger = get_logger(__name__)


@dataclass
class SchedulingResult:
    slots: List[Interval]
    used_fallback: bool
    time_zone: str
    diagnostics: List[Dict[str, Any]] = field(default_factory=list)
    explicit_time_conflict: bool = False

    @property
    def best(self) -> Optional[Interval]:
        return self.slots[0] if self.slots else None


def _participant_free_slots(
    busy: Optional[Iterable[IntervalLike]],
    hours: Optional[SchedulableHours],
    calendar_kind: str,
    range_start: datetime,
    range_end: datetime,
    zone: ZoneInfo,
    now: datetime,
    settings: SchedulingSettings,
    diagnostics: List[Dict[str, Any]],
) -> List[Interval]:
    if busy is None:
        return generate_open_slots(
            range_start,
            range_end,
            zone,
            now=now,
            slot_minutes=settings.slot_minutes,
            max_slots=settings.max_free_slots,
        )
    merged = merge_busy_times([parse_intervals(busy, diagnostics)])
    if hours is None:
        hours = default_schedulable_hours(calendar_kind)
    return generate_free_slots(
        merged,
        hours,
        range_start,
        range_end,
        zone,
        now=now,
        slot_minutes=settings.slot_minutes,
        max_slots=settings.max_free_slots,
        diagnostics=diagnostics,
    )


def find_meeting_slots(
    participant_a_busy: Optional[Iterable[IntervalLike]],
    participant_b_busy: Optional[Iterable[IntervalLike]],
    participant_a_hours: Optional[SchedulableHours],
    participant_b_hours: Optional[SchedulableHours],
    time_zone: str,
    event: EventConstraint,
    calendar_kind: str = "personal",
    *,
    now: Optional[datetime] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
) -> SchedulingResult:
    """Find slots where two participants can meet for ``event``.

    A busy list of ``None`` means the participant has no calendar connected
    and is treated as free around the clock; a template of ``None`` uses the
    calendar kind's default hours. The best slot comes first. When no common
    time fits the event, fallback slots are returned with ``used_fallback``
    set, so the result is never empty.
    """
    if calendar_kind not in CALENDAR_KINDS:
        raise ValueError(f"Unknown calendar kind: {calendar_kind}")
    diagnostics: List[Dict[str, Any]] = []
    zone = resolve_zone(time_zone, diagnostics)
    now = now or datetime.now(UTC)
    settings = get_settings()

    default_start, default_end = availability_time_range(zone, now, settings.lookahead_days)
    range_start = range_start or default_start
    range_end = range_end or default_end

    free_slots = [
        _participant_free_slots(
            busy, hours, calendar_kind, range_start, range_end, zone, now, settings, diagnostics
        )
        for busy, hours in (
            (participant_a_busy, participant_a_hours),
            (participant_b_busy, participant_b_hours),
        )
    ]
    common = find_slot_intersection(*free_slots, max_slots=settings.max_common_slots)
    valid = get_all_valid_slots(
        common,
        event,
        zone,
        tolerance_minutes=settings.explicit_time_tolerance_minutes,
        diagnostics=diagnostics,
    )

    if valid:
        best = select_best_slot(valid, event, zone)
        slots = [best] + [slot for slot in valid if slot != best]
        used_fallback = False
    else:
        slots = create_fallback(
            event,
            calendar_kind,
            zone,
            now=now,
            slot_minutes=settings.slot_minutes,
            max_slots=settings.max_free_slots,
            diagnostics=diagnostics,
        )
        used_fallback = True

    log_json(
        logger,
        "info",
        "meeting_slots_found",
        time_zone=str(zone),
        calendar_kind=calendar_kind,
        free_slots_a=len(free_slots[0]),
        free_slots_b=len(free_slots[1]),
        common_slots=len(common),
        valid_slots=len(valid),
        used_fallback=used_fallback,
        diagnostics=len(diagnostics),
    )
    return SchedulingResult(
        slots=slots,
        used_fallback=used_fallback,
        time_zone=str(zone),
        diagnostics=diagnostics,
        explicit_time_conflict=used_fallback and event.explicit_time_request,
    )


def suggest_times(
    common_slots: Sequence[Interval],
    template_ids: Sequence[str],
    time_zone: str,
    dynamic_template: Optional[EventTemplate] = None,
) -> Dict[str, Optional[Interval]]:
    zone = resolve_zone(time_zone)
    times: Dict[str, Optional[Interval]] = {}
    for template_id in template_ids:
        if dynamic_template and dynamic_template.id == template_id:
            template = dynamic_template
        else:
            template = get_event_template(template_id)
        if not template:
            times[template_id] = None
            continue
        valid = get_all_valid_slots(list(common_slots), template.constraint, zone)
        times[template_id] = select_best_slot(valid, template.constraint, zone)
    return times
