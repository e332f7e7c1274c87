from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from slotfinder.observability import get_logger, log_json, record_warning

logger = get_logger(__name__)


def parse_rfc3339(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_rfc3339(value: datetime) -> str:
    return value.isoformat()


@dataclass(frozen=True, order=True)
class Interval:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("Interval bounds must be timezone-aware")
        if self.start >= self.end:
            raise ValueError(
                f"Interval start {self.start.isoformat()} is not before end {self.end.isoformat()}"
            )

    @classmethod
    def from_dict(cls, value: Dict[str, Any]) -> "Interval":
        return cls(parse_rfc3339(value["start"]), parse_rfc3339(value["end"]))

    def to_dict(self) -> Dict[str, str]:
        return {"start": to_rfc3339(self.start), "end": to_rfc3339(self.end)}

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and self.end > other.start

    def touches(self, other: "Interval") -> bool:
        return self.end == other.start or other.end == self.start

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


IntervalLike = Union[Interval, Dict[str, Any]]


def parse_intervals(
    items: Iterable[IntervalLike],
    diagnostics: Optional[List[Dict[str, Any]]] = None,
) -> List[Interval]:
    intervals: List[Interval] = []
    for item in items:
        if isinstance(item, Interval):
            intervals.append(item)
            continue
        try:
            intervals.append(Interval.from_dict(item))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            record_warning(
                logger,
                diagnostics,
                "invalid_interval",
                interval=item,
                error=str(exc),
            )
    return intervals


def merge_busy_times(busy_lists: Iterable[Iterable[Interval]]) -> List[Interval]:
    busy = sorted(interval for busy_list in busy_lists for interval in busy_list)
    merged: List[Interval] = []
    for interval in busy:
        if not merged:
            merged.append(interval)
            continue
        last = merged[-1]
        if interval.start <= last.end:
            merged[-1] = Interval(last.start, max(last.end, interval.end))
        else:
            merged.append(interval)
    log_json(
        logger,
        "debug",
        "busy_times_merged",
        input_count=len(busy),
        merged_count=len(merged),
    )
    return merged


def find_slot_intersection(
    first: Iterable[Interval],
    second: Iterable[Interval],
    max_slots: int = 150,
) -> List[Interval]:
    second_slots = list(second)
    common: Dict[datetime, Interval] = {}
    for slot_a in first:
        for slot_b in second_slots:
            overlap_start = max(slot_a.start, slot_b.start)
            overlap_end = min(slot_a.end, slot_b.end)
            if overlap_start < overlap_end and overlap_start not in common:
                common[overlap_start] = Interval(overlap_start, overlap_end)
    slots = sorted(common.values())[:max_slots]
    log_json(
        logger,
        "debug",
        "slot_intersection",
        common_count=len(common),
        returned_count=len(slots),
    )
    return slots
