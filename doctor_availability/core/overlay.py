import logging
from typing import Iterable, List

from pydantic import BaseModel

from doctor_availability.core.rules import AppointmentRecord, ConsultationType, parse_time_string
from doctor_availability.core.slots import RawSlot

logger = logging.getLogger(__name__)


class ResolvedSlot(BaseModel):
    time: str
    end_time: str
    consultation_type: ConsultationType
    capacity_total: int
    capacity_remaining: int
    bookable: bool


def occupied_minutes(appointments: Iterable[AppointmentRecord]) -> List[int]:
    """Start minutes of every appointment that still holds a place."""
    minutes = []
    for appointment in appointments:
        if not appointment.is_occupying:
            continue
        try:
            minutes.append(parse_time_string(appointment.time))
        except ValueError:
            logger.warning(
                f"Skipping appointment {appointment.id} with unreadable time '{appointment.time}'"
            )
    return minutes


def annotate(raw_slots: Iterable[RawSlot], appointments: Iterable[AppointmentRecord]) -> List[ResolvedSlot]:
    """
    Attach remaining capacity to each slot.

    An appointment counts against a slot when its time falls inside
    ``[start, end)``, so bookings stored off the slot grid still show up.
    Nothing is written back.
    """
    taken = occupied_minutes(appointments)
    resolved = []
    for slot in raw_slots:
        count = sum(1 for minute in taken if slot.start <= minute < slot.end)
        remaining = max(0, slot.capacity - count)
        resolved.append(ResolvedSlot(
            time=slot.start_time,
            end_time=slot.end_time,
            consultation_type=slot.consultation_type,
            capacity_total=slot.capacity,
            capacity_remaining=remaining,
            bookable=remaining > 0,
        ))
    return resolved
