import os
from dataclasses import dataclass

from slotfinder.observability import get_logger, log_json

logger = get_logger(__name__)


@dataclass(frozen=True)
class SchedulingSettings:
    slot_minutes: int = 30
    lookahead_days: int = 14
    max_free_slots: int = 500
    max_common_slots: int = 150
    explicit_time_tolerance_minutes: int = 30


def get_settings() -> SchedulingSettings:
    defaults = SchedulingSettings()
    return SchedulingSettings(
        slot_minutes=_positive_int("SLOT_MINUTES", defaults.slot_minutes),
        lookahead_days=_positive_int("LOOKAHEAD_DAYS", defaults.lookahead_days),
        max_free_slots=_positive_int("MAX_FREE_SLOTS", defaults.max_free_slots),
        max_common_slots=_positive_int("MAX_COMMON_SLOTS", defaults.max_common_slots),
        explicit_time_tolerance_minutes=_positive_int(
            "EXPLICIT_TIME_TOLERANCE_MINUTES",
            defaults.explicit_time_tolerance_minutes,
        ),
    )


def _positive_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        log_json(logger, "warning", "settings_invalid_value", name=name, value=raw)
        return default
    if value <= 0:
        log_json(logger, "warning", "settings_invalid_value", name=name, value=raw)
        return default
    return value
