import base64
import json
from datetime import datetime, timezone

import pytest

import handlers.slots.slots_api as slots_api
from slotfinder.calendar import engine

# Saturday 2026-02-14, noon in Los Angeles
NOW = datetime(2026, 2, 14, 20, 0, tzinfo=timezone.utc)


@pytest.fixture
def metrics(monkeypatch):
    emitted = []
    monkeypatch.setattr(
        slots_api, "emit_metric", lambda name, value=1, unit="Count", dims=None: emitted.append(name)
    )
    return emitted


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch):
    def find_meeting_slots(*args, **kwargs):
        return engine.find_meeting_slots(*args, now=NOW, **kwargs)

    monkeypatch.setattr(slots_api, "find_meeting_slots", find_meeting_slots)


def _event(body, **extra):
    return {"body": json.dumps(body), "requestContext": {"requestId": "req-1"}, **extra}


def _request(**overrides):
    body = {
        "timezone": "America/Los_Angeles",
        "participantABusy": [
            {"start": "2026-02-16T17:00:00Z", "end": "2026-02-16T20:00:00Z"}
        ],
        "participantBBusy": [],
        "participantAAvailability": {"monday": [{"start": "09:00", "end": "17:00"}]},
        "participantBAvailability": {"monday": [{"start": "09:00", "end": "17:00"}]},
        "event": {"durationMinutes": 60},
    }
    body.update(overrides)
    return body


def test_slots_handler_returns_ranked_slots(metrics):
    response = slots_api.handler(_event(_request()), context={})

    assert response["statusCode"] == 200
    payload = json.loads(response["body"])
    assert payload["usedFallback"] is False
    assert payload["explicitTimeConflict"] is False
    assert payload["timezone"] == "America/Los_Angeles"
    assert payload["slots"][0] == {
        "start": "2026-02-16T20:00:00+00:00",
        "end": "2026-02-16T21:00:00+00:00",
        "display": "Monday 12:00 PM (12:00 PM - 1:00 PM)",
    }
    assert metrics == ["SlotsRequestDurationMs"]


def test_slots_handler_accepts_base64_body(metrics):
    raw = json.dumps(_request(limit=2)).encode("utf-8")
    event = {"body": base64.b64encode(raw).decode("ascii"), "isBase64Encoded": True}

    response = slots_api.handler(event, context={})

    assert response["statusCode"] == 200
    assert len(json.loads(response["body"])["slots"]) == 2


def test_slots_handler_uses_template(metrics):
    body = _request(templateId="lunch-60")
    body.pop("event")
    body["participantAAvailability"] = None
    body["participantBAvailability"] = None

    response = slots_api.handler(_event(body), context={})

    payload = json.loads(response["body"])
    assert response["statusCode"] == 200
    # lunch window 11:30-14:30 with 30 minute travel either side, centered
    assert payload["slots"][0]["start"] == "2026-02-15T20:30:00+00:00"


def test_slots_handler_reports_fallback(metrics):
    body = _request(participantBAvailability={"tuesday": [{"start": "09:00", "end": "17:00"}]})
    body["event"] = {
        "durationMinutes": 30,
        "preferredAvailability": {"wednesday": [{"start": "10:00", "end": "10:00"}]},
        "explicitTimeRequest": True,
    }

    response = slots_api.handler(_event(body), context={})

    payload = json.loads(response["body"])
    assert payload["usedFallback"] is True
    assert payload["explicitTimeConflict"] is True
    assert payload["slots"]
    assert metrics == ["SlotsRequestDurationMs", "SlotsFallbackUsed"]


def test_slots_handler_collects_diagnostics(metrics):
    body = _request(timezone="Nowhere/Special")
    body["event"] = {
        "durationMinutes": 30,
        "preferredDateRange": {"start": "2026-02-20", "end": "2026-02-18"},
    }

    response = slots_api.handler(_event(body), context={})

    payload = json.loads(response["body"])
    codes = [item["code"] for item in payload["diagnostics"]]
    assert response["statusCode"] == 200
    assert "invalid_date_range" in codes
    assert "timezone_fallback" in codes
    assert payload["timezone"] == "UTC"


def test_slots_handler_passes_travel_buffer(metrics):
    body = _request()
    body["event"] = {
        "durationMinutes": 30,
        "travelBuffer": {"beforeMinutes": 30, "afterMinutes": 30},
        "preferredAvailability": {"monday": [{"start": "12:00", "end": "14:00"}]},
        "preferredDateRange": {"start": "2026-02-16", "end": "2026-02-16"},
    }

    response = slots_api.handler(_event(body), context={})

    payload = json.loads(response["body"])
    assert [slot["start"] for slot in payload["slots"]] == [
        "2026-02-16T20:30:00+00:00",
        "2026-02-16T21:00:00+00:00",
    ]


@pytest.mark.parametrize(
    "body, error",
    [
        ({"event": {"durationMinutes": 30}}, "timezone is required"),
        ({"timezone": "UTC"}, "event or templateId is required"),
        ({"timezone": "UTC", "templateId": "brunch-90"}, "Unknown templateId: brunch-90"),
        ({"timezone": "UTC", "event": {"durationMinutes": "long"}}, "event.durationMinutes must be an integer"),
        ({"timezone": "UTC", "event": {"durationMinutes": 0}}, "Event duration must be positive"),
        (
            {"timezone": "UTC", "event": {"durationMinutes": 30}, "participantABusy": "busy"},
            "participantABusy must be a list of intervals or null",
        ),
        (
            {"timezone": "UTC", "event": {"durationMinutes": 30}, "calendarKind": "school"},
            "Unknown calendar kind: school",
        ),
    ],
)
def test_slots_handler_rejects_bad_requests(metrics, body, error):
    response = slots_api.handler(_event(body), context={})

    assert response["statusCode"] == 400
    assert json.loads(response["body"]) == {"error": error}
    assert metrics == ["SlotsRequestInvalid"]


def test_slots_handler_rejects_invalid_json(monkeypatch, metrics):
    log_calls = []
    monkeypatch.setattr(slots_api, "log_json", lambda *args, **kwargs: log_calls.append((args, kwargs)))

    response = slots_api.handler({"body": "{not json"}, context={})

    assert response["statusCode"] == 400
    assert log_calls[0][0][2] == "slots_request_invalid_json"
    assert slots_api.handler({"body": "[1, 2]"}, context={})["statusCode"] == 400


def test_slots_handler_failure_propagates(monkeypatch, metrics):
    def fail(*args, **kwargs):
        raise RuntimeError("engine failure")

    monkeypatch.setattr(slots_api, "find_meeting_slots", fail)

    with pytest.raises(RuntimeError):
        slots_api.handler(_event(_request()), context={})


@pytest.mark.parametrize(
    "body",
    [
        "abc",
        base64.b64encode(b"\xff\xfe{}").decode("ascii"),
    ],
)
def test_slots_handler_rejects_undecodable_body(metrics, body):
    response = slots_api.handler({"body": body, "isBase64Encoded": True}, context={})

    assert response["statusCode"] == 400
    assert json.loads(response["body"]) == {"error": "Request body must be a JSON object"}
    assert metrics == ["SlotsRequestInvalid"]


@pytest.mark.parametrize("flag", ["preferCenterOfWindow", "explicitTimeRequest"])
def test_slots_handler_requires_boolean_flags(metrics, flag):
    body = _request()
    body["event"] = {"durationMinutes": 30, flag: "false"}

    response = slots_api.handler(_event(body), context={})

    assert response["statusCode"] == 400
    assert json.loads(response["body"]) == {"error": f"event.{flag} must be a boolean"}


def test_slots_handler_accepts_boolean_flags(metrics):
    body = _request()
    body["event"] = {"durationMinutes": 30, "preferCenterOfWindow": False, "explicitTimeRequest": None}

    response = slots_api.handler(_event(body), context={})

    assert response["statusCode"] == 200


@pytest.mark.parametrize("limit", [True, 0, -1, "2", 1.5])
def test_slots_handler_rejects_invalid_limit(metrics, limit):
    response = slots_api.handler(_event(_request(limit=limit)), context={})

    assert response["statusCode"] == 400
    assert json.loads(response["body"]) == {"error": "limit must be a positive integer"}


def test_slots_handler_tolerates_null_request_context(metrics):
    response = slots_api.handler({"body": json.dumps(_request()), "requestContext": None}, context={})

    assert response["statusCode"] == 200
