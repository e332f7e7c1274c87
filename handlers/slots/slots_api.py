import base64
import json
import time
from datetime import date
from typing import Any, Dict, List, Optional

from slotfinder.calendar.clock import format_display_time, format_time_range, resolve_zone
from slotfinder.calendar.constraints import DateRange, EventConstraint, TravelBuffer
from slotfinder.calendar.engine import find_meeting_slots
from slotfinder.calendar.templates import get_event_template
from slotfinder.observability import (
    elapsed_ms,
    emit_metric,
    get_logger,
    log_exception,
    log_json,
    record_warning,
)

logger = get_logger(__name__)


class BadRequest(ValueError):
    pass


def _decode_body(event: Dict[str, Any]) -> str:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body).decode("utf-8")
    return body


def _response(status_code: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload, default=str),
    }


def _parse_date_range(
    value: Optional[Dict[str, Any]], diagnostics: List[Dict[str, Any]]
) -> Optional[DateRange]:
    if not value:
        return None
    try:
        date_range = DateRange(
            date.fromisoformat(value["start"]), date.fromisoformat(value["end"])
        )
    except (KeyError, TypeError, ValueError) as exc:
        record_warning(
            logger, diagnostics, "invalid_date_range", date_range=value, error=str(exc)
        )
        return None
    if date_range.end < date_range.start:
        record_warning(logger, diagnostics, "invalid_date_range", date_range=value)
        return None
    return date_range


def _availability(container: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = container.get(key)
    if value is not None and not isinstance(value, dict):
        raise BadRequest(f"{key} must be an object keyed by day of week")
    return value


def _busy(body: Dict[str, Any], key: str) -> Optional[List[Any]]:
    value = body.get(key)
    if value is not None and not isinstance(value, list):
        raise BadRequest(f"{key} must be a list of intervals or null")
    return value


def _flag(event: Dict[str, Any], key: str) -> bool:
    value = event.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise BadRequest(f"event.{key} must be a boolean")
    return value


def _limit(body: Dict[str, Any]) -> Optional[int]:
    limit = body.get("limit")
    if limit is None:
        return None
    # bool is an int subclass
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise BadRequest("limit must be a positive integer")
    return limit


def _parse_constraint(
    body: Dict[str, Any], diagnostics: List[Dict[str, Any]]
) -> EventConstraint:
    template_id = body.get("templateId")
    if template_id:
        template = get_event_template(template_id)
        if not template:
            raise BadRequest(f"Unknown templateId: {template_id}")
        return template.constraint

    event = body.get("event")
    if not isinstance(event, dict):
        raise BadRequest("event or templateId is required")
    try:
        duration = int(event["durationMinutes"])
    except (KeyError, TypeError, ValueError) as exc:
        raise BadRequest("event.durationMinutes must be an integer") from exc

    travel_buffer = None
    buffer_payload = event.get("travelBuffer")
    if buffer_payload:
        try:
            travel_buffer = TravelBuffer(
                before_minutes=int(buffer_payload.get("beforeMinutes", 0)),
                after_minutes=int(buffer_payload.get("afterMinutes", 0)),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise BadRequest(f"Invalid travelBuffer: {exc}") from exc

    return EventConstraint(
        duration_minutes=duration,
        preferred_hours=_availability(event, "preferredAvailability"),
        preferred_dates=_parse_date_range(event.get("preferredDateRange"), diagnostics),
        travel_buffer=travel_buffer,
        prefer_center_of_window=_flag(event, "preferCenterOfWindow"),
        explicit_time_request=_flag(event, "explicitTimeRequest"),
        intent=event.get("intent") or "custom",
    )


def _schedule(body: Dict[str, Any]) -> Dict[str, Any]:
    time_zone = body.get("timezone")
    if not time_zone:
        raise BadRequest("timezone is required")
    diagnostics: List[Dict[str, Any]] = []
    constraint = _parse_constraint(body, diagnostics)
    limit = _limit(body)

    result = find_meeting_slots(
        _busy(body, "participantABusy"),
        _busy(body, "participantBBusy"),
        _availability(body, "participantAAvailability"),
        _availability(body, "participantBAvailability"),
        time_zone,
        constraint,
        body.get("calendarKind") or "personal",
    )
    zone = resolve_zone(result.time_zone)
    slots = result.slots
    if limit:
        slots = slots[:limit]
    return {
        "slots": [
            {
                **slot.to_dict(),
                "display": f"{format_display_time(slot.start, zone)} "
                f"({format_time_range(slot.start, slot.end, zone)})",
            }
            for slot in slots
        ],
        "usedFallback": result.used_fallback,
        "explicitTimeConflict": result.explicit_time_conflict,
        "diagnostics": diagnostics + result.diagnostics,
        "timezone": result.time_zone,
    }


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    start_time = time.time()
    request_id = (event.get("requestContext") or {}).get("requestId")
    try:
        raw_body = _decode_body(event)
        body = json.loads(raw_body) if raw_body else None
    except ValueError:
        # undecodable base64, non-UTF-8 bytes and malformed JSON alike
        body = None
    if not isinstance(body, dict):
        log_json(logger, "warning", "slots_request_invalid_json", request_id=request_id)
        emit_metric("SlotsRequestInvalid", 1)
        return _response(400, {"error": "Request body must be a JSON object"})

    try:
        payload = _schedule(body)
    except ValueError as exc:
        log_json(
            logger, "warning", "slots_request_rejected", request_id=request_id, error=str(exc)
        )
        emit_metric("SlotsRequestInvalid", 1)
        return _response(400, {"error": str(exc)})
    except Exception:
        log_exception(logger, "slots_request_failed", request_id=request_id)
        raise

    duration_ms = elapsed_ms(start_time)
    emit_metric("SlotsRequestDurationMs", duration_ms, "Milliseconds")
    if payload["usedFallback"]:
        emit_metric("SlotsFallbackUsed", 1)
    log_json(
        logger,
        "info",
        "slots_request_ok",
        request_id=request_id,
        slot_count=len(payload["slots"]),
        used_fallback=payload["usedFallback"],
        duration_ms=duration_ms,
    )
    return _response(200, payload)
