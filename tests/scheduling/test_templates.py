from slotfinder.calendar.constraints import TravelBuffer
from slotfinder.calendar.templates import (
    EVENT_TEMPLATES,
    IN_PERSON_BUFFER,
    default_travel_buffer,
    get_event_template,
    get_event_template_by_intent,
    total_duration,
)


def test_lookup_by_id():
    lunch = get_event_template("lunch-60")

    assert lunch.title == "Lunch"
    assert lunch.constraint.duration_minutes == 60
    assert lunch.constraint.preferred_hours["monday"] == [{"start": "11:30", "end": "14:30"}]
    assert lunch.constraint.prefer_center_of_window
    assert get_event_template("brunch-90") is None


def test_lookup_by_intent():
    assert get_event_template_by_intent("dinner").id == "dinner-60"
    assert get_event_template_by_intent("first30m").id == "video-30"
    assert get_event_template_by_intent("karaoke") is None


def test_in_person_templates_carry_travel_buffer():
    for template in EVENT_TEMPLATES.values():
        if template.event_type == "in-person":
            assert template.constraint.travel_buffer == IN_PERSON_BUFFER
        else:
            assert template.constraint.travel_buffer is None
        assert template.constraint.intent == template.intent


def test_drinks_run_later_at_the_weekend():
    hours = get_event_template("drinks-60").constraint.preferred_hours

    assert hours["wednesday"] == [{"start": "16:00", "end": "18:00"}]
    assert hours["friday"] == [{"start": "16:00", "end": "22:00"}]
    assert hours["saturday"] == [{"start": "16:00", "end": "22:00"}]


def test_travel_buffer_helpers():
    assert default_travel_buffer("in-person") == TravelBuffer(30, 30)
    assert default_travel_buffer("video") is None
    assert total_duration(60, IN_PERSON_BUFFER) == 120
    assert total_duration(30) == 30
