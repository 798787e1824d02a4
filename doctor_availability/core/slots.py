from typing import Iterable, List, Optional

from pydantic import BaseModel

from doctor_availability.core.rules import BlockedWindow, ConsultationType, WorkWindow, format_minutes


class RawSlot(BaseModel):
    start: int
    end: int
    capacity: int
    consultation_type: ConsultationType = ConsultationType.BOTH

    @property
    def start_time(self) -> str:
        return format_minutes(self.start)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end)


def filter_windows(
    windows: Iterable[WorkWindow],
    consultation_type: Optional[ConsultationType] = None,
) -> List[WorkWindow]:
    """Keep windows offering the requested consultation type (``both`` always qualifies)."""
    if consultation_type is None or consultation_type == ConsultationType.BOTH:
        return list(windows)
    return [
        w for w in windows
        if w.consultation_type in (consultation_type, ConsultationType.BOTH)
    ]


def generate_slots(windows: Iterable[WorkWindow]) -> List[RawSlot]:
    """
    Cut each window into full-length slots.

    The cursor advances by duration + buffer and stops once another full slot
    no longer fits before the window end; the leftover is dropped, never
    shortened. Windows are processed independently and the result is sorted
    by start time.
    """
    slots = []
    for window in windows:
        duration = window.slot_duration_minutes
        step = duration + window.buffer_minutes
        cursor = window.start_minute
        while cursor + duration <= window.end_minute:
            slots.append(RawSlot(
                start=cursor,
                end=cursor + duration,
                capacity=window.capacity_per_slot,
                consultation_type=window.consultation_type,
            ))
            cursor += step
    slots.sort(key=lambda s: s.start)
    return slots


def remove_blocked(slots: Iterable[RawSlot], exclusions: Iterable[BlockedWindow]) -> List[RawSlot]:
    """Drop every slot that touches a blocked window; slots are never trimmed."""
    exclusions = list(exclusions)
    if not exclusions:
        return list(slots)
    return [
        slot for slot in slots
        if not any(block.overlaps(slot.start, slot.end) for block in exclusions)
    ]
