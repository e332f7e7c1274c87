from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from slotfinder.calendar.clock import DAY_NAMES
from slotfinder.calendar.constraints import EventConstraint, TravelBuffer

IN_PERSON_BUFFER = TravelBuffer(before_minutes=30, after_minutes=30)


@dataclass(frozen=True)
class EventTemplate:
    id: str
    title: str
    event_type: str
    intent: str
    description: str
    constraint: EventConstraint


def _hours(start: str, end: str, **overrides: str):
    hours = {day: [{"start": start, "end": end}] for day in DAY_NAMES}
    for day, window_end in overrides.items():
        hours[day] = [{"start": start, "end": window_end}]
    return hours


def _template(
    template_id: str,
    title: str,
    event_type: str,
    intent: str,
    description: str,
    duration: int,
    hours,
    prefer_center: bool = False,
) -> EventTemplate:
    return EventTemplate(
        id=template_id,
        title=title,
        event_type=event_type,
        intent=intent,
        description=description,
        constraint=EventConstraint(
            duration_minutes=duration,
            preferred_hours=hours,
            travel_buffer=default_travel_buffer(event_type),
            prefer_center_of_window=prefer_center,
            intent=intent,
        ),
    )


def default_travel_buffer(event_type: str) -> Optional[TravelBuffer]:
    if event_type == "in-person":
        return IN_PERSON_BUFFER
    return None


def total_duration(duration_minutes: int, travel_buffer: Optional[TravelBuffer] = None) -> int:
    if not travel_buffer:
        return duration_minutes
    return duration_minutes + travel_buffer.total_minutes


EVENT_TEMPLATES: Dict[str, EventTemplate] = {
    template.id: template
    for template in (
        _template("video-30", "Video Call", "video", "first30m", "Quick video sync",
                  30, _hours("08:00", "22:00"), prefer_center=True),
        _template("coffee-30", "Coffee", "in-person", "coffee", "Casual coffee meetup",
                  30, _hours("08:00", "12:00"), prefer_center=True),
        _template("lunch-60", "Lunch", "in-person", "lunch", "Lunch meeting",
                  60, _hours("11:30", "14:30"), prefer_center=True),
        _template("dinner-60", "Dinner", "in-person", "dinner", "Dinner meeting",
                  60, _hours("17:00", "20:00"), prefer_center=True),
        _template("drinks-60", "Drinks", "in-person", "drinks", "Casual drinks meetup",
                  60, _hours("16:00", "18:00", friday="22:00", saturday="22:00"),
                  prefer_center=True),
        _template("quick-sync-30", "Quick Sync", "video", "quick_sync", "Quick video sync",
                  30, _hours("08:00", "22:00")),
        _template("deep-dive-60", "Deep Dive", "video", "deep_dive",
                  "Extended video discussion", 60, _hours("08:00", "22:00")),
        _template("live-working-session-60", "Live Working Session", "in-person",
                  "live_working_session", "Live working session at a cafe",
                  60, _hours("08:00", "22:00")),
    )
}


def get_event_template(template_id: str) -> Optional[EventTemplate]:
    return EVENT_TEMPLATES.get(template_id)


def get_event_template_by_intent(intent: str) -> Optional[EventTemplate]:
    for template in EVENT_TEMPLATES.values():
        if template.intent == intent:
            return template
    return None
