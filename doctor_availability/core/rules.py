"""
Temporal rule model for doctor availability.

All rule types are plain pydantic models. They validate their own invariants
on construction and carry no persistence behaviour; the repository converts
database rows into these before anything reaches the engine.
"""
import datetime as dt
import enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from doctor_availability.core.exceptions import InvalidDateError, ScheduleValidationError


def to_minutes(value: dt.time) -> int:
    return value.hour * 60 + value.minute


def check_wall_clock(value: dt.time) -> dt.time:
    """Window bounds are naive whole minutes of the doctor's local day."""
    if value.tzinfo is not None:
        raise ScheduleValidationError(f"Time {value} must not carry a UTC offset")
    if value.second or value.microsecond:
        raise ScheduleValidationError(f"Time {value} must be a whole minute")
    return value


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time_string(value: str) -> int:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string into minutes since midnight."""
    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time '{value}'")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time '{value}'")
    return hours * 60 + minutes


def parse_calendar_date(value: str) -> dt.date:
    try:
        return dt.datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise InvalidDateError("Invalid date format. Use YYYY-MM-DD.")


class ConsultationType(str, enum.Enum):
    IN_CLINIC = "in_clinic"
    ONLINE = "online"
    BOTH = "both"


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


OCCUPYING_STATUSES = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.IN_PROGRESS,
})


class BlockedWindow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_time: dt.time
    end_time: dt.time

    wall_clock_times = field_validator("start_time", "end_time")(check_wall_clock)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time >= self.end_time:
            raise ScheduleValidationError("Blocked window start time must be before end time")
        return self

    @property
    def start_minute(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minute(self) -> int:
        return to_minutes(self.end_time)

    def overlaps(self, start: int, end: int) -> bool:
        """True when ``[start, end)`` intersects this window."""
        return start < self.end_minute and end > self.start_minute


class WorkWindow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_time: dt.time
    end_time: dt.time
    slot_duration_minutes: int = 15
    buffer_minutes: int = 0
    capacity_per_slot: Optional[int] = 1
    consultation_type: ConsultationType = ConsultationType.BOTH

    wall_clock_times = field_validator("start_time", "end_time")(check_wall_clock)

    @field_validator("capacity_per_slot", mode="before")
    @classmethod
    def default_capacity(cls, v):
        return 1 if v is None else v

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time >= self.end_time:
            raise ScheduleValidationError(
                f"Start time must be before end time ({self.start_time:%H:%M} >= {self.end_time:%H:%M})"
            )
        if self.slot_duration_minutes <= 0:
            raise ScheduleValidationError("Slot duration must be greater than zero")
        if self.buffer_minutes < 0:
            raise ScheduleValidationError("Buffer minutes cannot be negative")
        if self.capacity_per_slot < 1:
            raise ScheduleValidationError("Capacity per slot must be at least 1")
        return self

    @property
    def start_minute(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minute(self) -> int:
        return to_minutes(self.end_time)

    def label(self) -> str:
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"


class DaySchedule(BaseModel):
    """One weekday of the weekly rule. The window list is replaced as a unit."""

    model_config = ConfigDict(from_attributes=True)

    is_working: bool = False
    windows: List[WorkWindow] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_windows(self):
        self.windows.sort(key=lambda w: w.start_minute)
        for previous, current in zip(self.windows, self.windows[1:]):
            if current.start_minute < previous.end_minute:
                raise ScheduleValidationError(
                    f"Windows {previous.label()} and {current.label()} overlap"
                )
        if self.is_working and not self.windows:
            raise ScheduleValidationError("A working day needs at least one window")
        return self


class WeeklyScheduleRule(BaseModel):
    """Weekly template keyed by weekday, 0 = Monday ... 6 = Sunday."""

    days: Dict[int, DaySchedule] = Field(default_factory=dict)

    @field_validator("days")
    @classmethod
    def check_weekdays(cls, v):
        for weekday in v:
            if not 0 <= weekday <= 6:
                raise ScheduleValidationError(f"Invalid day of week {weekday}, expected 0-6")
        return v

    def for_weekday(self, weekday: int) -> DaySchedule:
        return self.days.get(weekday) or DaySchedule()


class BlockedDate(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    date: dt.date
    is_full_day: bool = True
    blocked_windows: List[BlockedWindow] = Field(default_factory=list)
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_partial(self):
        if not self.is_full_day and not self.blocked_windows:
            raise ScheduleValidationError("A partial block needs at least one blocked window")
        return self


class VacationPeriod(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    is_active: bool = True
    start_date: dt.date
    end_date: dt.date
    message: Optional[str] = None

    def covers(self, day: dt.date) -> bool:
        # an inverted range is stored as-is but never matches
        return self.is_active and self.start_date <= day <= self.end_date


class Holiday(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    date: dt.date
    reason: Optional[str] = None
    is_recurring: bool = False
    recurring_year: Optional[int] = None

    def matches(self, day: dt.date) -> bool:
        if self.is_recurring:
            return (self.date.month, self.date.day) == (day.month, day.day)
        return self.date == day


class AppointmentRecord(BaseModel):
    """Read-only view of a booking as the engine sees it."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    doctor_id: Optional[int] = None
    patient_name: Optional[str] = None
    date: dt.date
    time: str
    status: AppointmentStatus = AppointmentStatus.PENDING

    @property
    def is_occupying(self) -> bool:
        return self.status in OCCUPYING_STATUSES


class DoctorProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: Optional[str] = None
    specialty: Optional[str] = None
    timezone: str = "UTC"
    advance_booking_days: int = 30


class RuleSet(BaseModel):
    """Everything the resolver needs to know about one doctor."""

    doctor_id: int
    weekly: Optional[WeeklyScheduleRule] = None
    blocked_dates: List[BlockedDate] = Field(default_factory=list)
    vacations: List[VacationPeriod] = Field(default_factory=list)
    holidays: List[Holiday] = Field(default_factory=list)

    @property
    def active_vacation(self) -> Optional[VacationPeriod]:
        return next((v for v in self.vacations if v.is_active), None)
