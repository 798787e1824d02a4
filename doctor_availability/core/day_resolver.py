"""
Day classification.

Decides what kind of day a calendar date is for one doctor. Sources are
checked in a fixed order and the first match wins:

    vacation > holiday > full-day block > weekly non-working day > working

A working day that also has partial blocks comes back as ``blocked-partial``
carrying the blocked windows, so the slot generator can prune them.
"""
import datetime as dt
import enum
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from doctor_availability.core.rules import BlockedWindow, RuleSet, WorkWindow

logger = logging.getLogger(__name__)

VACATION_MESSAGE = "Doctor is on vacation"
HOLIDAY_MESSAGE = "Doctor is on holiday on this date"
BLOCKED_MESSAGE = "Doctor is unavailable on this date"
NON_WORKING_MESSAGE = "Doctor is not available on this day"


class AvailabilityMode(str, enum.Enum):
    WORKING = "working"
    HOLIDAY = "holiday"
    VACATION = "vacation"
    BLOCKED_FULL = "blocked-full"
    BLOCKED_PARTIAL = "blocked-partial"
    NON_WORKING = "non-working"
    OUT_OF_HORIZON = "out-of-horizon"


class DayMode(BaseModel):
    mode: AvailabilityMode
    message: Optional[str] = None
    windows: List[WorkWindow] = Field(default_factory=list)
    exclusions: List[BlockedWindow] = Field(default_factory=list)

    @property
    def has_slots(self) -> bool:
        return self.mode in (AvailabilityMode.WORKING, AvailabilityMode.BLOCKED_PARTIAL)


def resolve_day_mode(rules: RuleSet, day: dt.date) -> DayMode:
    vacation = next((v for v in rules.vacations if v.covers(day)), None)
    if vacation:
        return DayMode(mode=AvailabilityMode.VACATION, message=vacation.message or VACATION_MESSAGE)

    holiday = next((h for h in rules.holidays if h.matches(day)), None)
    if holiday:
        return DayMode(mode=AvailabilityMode.HOLIDAY, message=holiday.reason or HOLIDAY_MESSAGE)

    blocks = [b for b in rules.blocked_dates if b.date == day]
    full_block = next((b for b in blocks if b.is_full_day), None)
    if full_block:
        return DayMode(mode=AvailabilityMode.BLOCKED_FULL, message=full_block.reason or BLOCKED_MESSAGE)

    if rules.weekly is None:
        logger.debug(f"Doctor {rules.doctor_id} has no weekly schedule configured")
        return DayMode(mode=AvailabilityMode.NON_WORKING, message=NON_WORKING_MESSAGE)

    schedule = rules.weekly.for_weekday(day.weekday())
    if not schedule.is_working or not schedule.windows:
        return DayMode(mode=AvailabilityMode.NON_WORKING, message=NON_WORKING_MESSAGE)

    # multiple partial entries on the same date are unioned
    exclusions = [w for b in blocks for w in b.blocked_windows]
    if exclusions:
        reasons = [b.reason for b in blocks if b.reason]
        return DayMode(
            mode=AvailabilityMode.BLOCKED_PARTIAL,
            message="; ".join(reasons) or None,
            windows=list(schedule.windows),
            exclusions=exclusions,
        )

    return DayMode(mode=AvailabilityMode.WORKING, windows=list(schedule.windows))
