"""Availability service - entry point for availability queries and rule changes"""

import datetime as dt
import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel

from doctor_availability.config import MAX_RANGE_DAYS
from doctor_availability.core import rules
from doctor_availability.core.day_resolver import AvailabilityMode, DayMode, resolve_day_mode
from doctor_availability.core.exceptions import (
    AppointmentNotFoundError,
    DoctorNotFoundError,
    DuplicateHolidayError,
    InvalidDateError,
    RuleNotFoundError,
    ScheduleValidationError,
    SlotUnavailableError,
)
from doctor_availability.core.horizon import is_queryable, local_today
from doctor_availability.core.overlay import ResolvedSlot, annotate
from doctor_availability.core.slots import filter_windows, generate_slots, remove_blocked
from doctor_availability.repositories.availability_repository import AvailabilityRepository

logger = logging.getLogger(__name__)


class DayAvailability(BaseModel):
    doctor_id: int
    date: dt.date
    mode: AvailabilityMode
    message: Optional[str] = None
    slots: List[ResolvedSlot]
    total_slots: int
    available_slots: int


class RangeAvailability(BaseModel):
    doctor_id: int
    start_date: dt.date
    end_date: dt.date
    days: List[DayAvailability]


class RuleSetResponse(BaseModel):
    doctor: rules.DoctorProfile
    weekly: Optional[rules.WeeklyScheduleRule] = None
    blocked_dates: List[rules.BlockedDate]
    vacation: Optional[rules.VacationPeriod] = None
    holidays: List[rules.Holiday]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class AvailabilityService:
    """
    Composes horizon check, day classification, slot generation and booking
    overlay into one query, and owns every rule mutation.

    Results are computed fresh on each call and never cached: booking state
    moves continuously. The slot view is advisory; ``book_slot`` re-checks
    capacity while holding the doctor's row lock.
    """

    def __init__(self, repository: AvailabilityRepository, now: Callable[[], dt.datetime] = utc_now):
        self.repo = repository
        self.now = now

    # Queries

    def _get_doctor(self, doctor_id: int) -> rules.DoctorProfile:
        doctor = self.repo.get_doctor(doctor_id)
        if not doctor:
            raise DoctorNotFoundError(doctor_id)
        return doctor

    def today_for(self, doctor: rules.DoctorProfile) -> dt.date:
        return local_today(doctor, self.now())

    def resolve_availability(
        self,
        doctor_id: int,
        day: dt.date,
        consultation_type: Optional[rules.ConsultationType] = None,
        available_only: bool = False,
    ) -> DayAvailability:
        doctor = self._get_doctor(doctor_id)
        today = self.today_for(doctor)
        if not is_queryable(doctor, day, today).queryable:
            # skip loading rules for dates that cannot be booked anyway
            return self._resolve_day(doctor, day, today, None, [], consultation_type, available_only)
        rule_set = self.repo.load_rules(doctor_id)
        appointments = self.repo.list_appointments(doctor_id, day, day)
        return self._resolve_day(doctor, day, today, rule_set, appointments, consultation_type, available_only)

    def resolve_availability_range(
        self,
        doctor_id: int,
        start_date: dt.date,
        end_date: dt.date,
        consultation_type: Optional[rules.ConsultationType] = None,
        available_only: bool = False,
    ) -> RangeAvailability:
        if start_date > end_date:
            raise InvalidDateError("start_date must not be after end_date")
        span = (end_date - start_date).days + 1
        if span > MAX_RANGE_DAYS:
            raise InvalidDateError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")

        doctor = self._get_doctor(doctor_id)
        today = self.today_for(doctor)
        rule_set = self.repo.load_rules(doctor_id)
        by_date: Dict[dt.date, List[rules.AppointmentRecord]] = defaultdict(list)
        for appointment in self.repo.list_appointments(doctor_id, start_date, end_date):
            by_date[appointment.date].append(appointment)

        days = [
            self._resolve_day(
                doctor, day, today, rule_set, by_date.get(day, []), consultation_type, available_only
            )
            for day in (start_date + dt.timedelta(days=offset) for offset in range(span))
        ]
        return RangeAvailability(doctor_id=doctor_id, start_date=start_date, end_date=end_date, days=days)

    def _resolve_day(
        self,
        doctor: rules.DoctorProfile,
        day: dt.date,
        today: dt.date,
        rule_set: Optional[rules.RuleSet],
        appointments: List[rules.AppointmentRecord],
        consultation_type: Optional[rules.ConsultationType],
        available_only: bool,
    ) -> DayAvailability:
        horizon = is_queryable(doctor, day, today)
        if not horizon.queryable:
            day_mode = DayMode(mode=AvailabilityMode.OUT_OF_HORIZON, message=horizon.reason)
        else:
            day_mode = resolve_day_mode(rule_set, day)

        slots: List[ResolvedSlot] = []
        if day_mode.has_slots:
            raw = generate_slots(filter_windows(day_mode.windows, consultation_type))
            raw = remove_blocked(raw, day_mode.exclusions)
            slots = annotate(raw, appointments)

        available = sum(1 for slot in slots if slot.bookable)
        logger.debug(
            f"Doctor {doctor.id} on {day}: {day_mode.mode.value}, {available}/{len(slots)} slots bookable"
        )
        return DayAvailability(
            doctor_id=doctor.id,
            date=day,
            mode=day_mode.mode,
            message=day_mode.message,
            slots=[slot for slot in slots if slot.bookable] if available_only else slots,
            total_slots=len(slots),
            available_slots=available,
        )

    def get_rules(self, doctor_id: int) -> RuleSetResponse:
        doctor = self._get_doctor(doctor_id)
        rule_set = self.repo.load_rules(doctor_id)
        return RuleSetResponse(
            doctor=doctor,
            weekly=rule_set.weekly,
            blocked_dates=rule_set.blocked_dates,
            vacation=rule_set.active_vacation,
            holidays=rule_set.holidays,
        )

    # Doctors

    def list_doctors(self, specialty: Optional[str] = None) -> List[rules.DoctorProfile]:
        return self.repo.list_doctors(specialty)

    def get_doctor(self, doctor_id: int) -> rules.DoctorProfile:
        return self._get_doctor(doctor_id)

    def create_doctor(
        self,
        full_name: str,
        specialty: Optional[str],
        timezone: str,
        advance_booking_days: int,
    ) -> rules.DoctorProfile:
        _validate_settings(advance_booking_days, timezone)
        doctor = self.repo.create_doctor(full_name, specialty, timezone, advance_booking_days)
        logger.info(f"Created doctor {doctor.id} ({full_name})")
        return doctor

    def update_doctor_settings(
        self,
        doctor_id: int,
        advance_booking_days: Optional[int] = None,
        timezone: Optional[str] = None,
    ) -> rules.DoctorProfile:
        self._get_doctor(doctor_id)
        _validate_settings(advance_booking_days, timezone)
        doctor = self.repo.update_doctor(
            doctor_id, advance_booking_days=advance_booking_days, timezone=timezone
        )
        logger.info(f"Updated settings for doctor {doctor_id}")
        return doctor

    # Rule mutations

    def set_weekly_window(self, doctor_id: int, day_of_week: int, schedule: rules.DaySchedule) -> RuleSetResponse:
        """Replace one weekday's entire window list."""
        self._get_doctor(doctor_id)
        if not 0 <= day_of_week <= 6:
            raise ScheduleValidationError(f"Invalid day of week {day_of_week}, expected 0-6")
        self.repo.replace_day(doctor_id, day_of_week, schedule)
        logger.info(
            f"Doctor {doctor_id} day {day_of_week}: working={schedule.is_working}, "
            f"{len(schedule.windows)} window(s)"
        )
        return self.get_rules(doctor_id)

    def set_weekly_schedule(self, doctor_id: int, weekly: rules.WeeklyScheduleRule) -> RuleSetResponse:
        self._get_doctor(doctor_id)
        self.repo.replace_week(doctor_id, weekly)
        logger.info(f"Replaced weekly schedule for doctor {doctor_id}")
        return self.get_rules(doctor_id)

    def add_blocked_date(self, doctor_id: int, blocked: rules.BlockedDate) -> RuleSetResponse:
        self._get_doctor(doctor_id)
        created = self.repo.add_blocked_date(doctor_id, blocked)
        logger.info(
            f"Blocked {created.date} for doctor {doctor_id} "
            f"({'full day' if created.is_full_day else f'{len(created.blocked_windows)} window(s)'})"
        )
        return self.get_rules(doctor_id)

    def remove_blocked_date(self, doctor_id: int, blocked_date_id: int) -> RuleSetResponse:
        self._get_doctor(doctor_id)
        if not self.repo.remove_blocked_date(doctor_id, blocked_date_id):
            raise RuleNotFoundError(f"Blocked date {blocked_date_id} not found")
        logger.info(f"Removed blocked date {blocked_date_id} for doctor {doctor_id}")
        return self.get_rules(doctor_id)

    def set_vacation(self, doctor_id: int, vacation: rules.VacationPeriod) -> RuleSetResponse:
        self._get_doctor(doctor_id)
        if vacation.start_date > vacation.end_date:
            logger.warning(f"Rejected vacation for doctor {doctor_id}: start after end")
            raise ScheduleValidationError("Vacation start date must not be after end date")
        self.repo.set_vacation(doctor_id, vacation)
        logger.info(f"Doctor {doctor_id} on vacation {vacation.start_date} to {vacation.end_date}")
        return self.get_rules(doctor_id)

    def clear_vacation(self, doctor_id: int) -> RuleSetResponse:
        self._get_doctor(doctor_id)
        cleared = self.repo.clear_vacation(doctor_id)
        logger.info(f"Cleared {cleared} active vacation(s) for doctor {doctor_id}")
        return self.get_rules(doctor_id)

    def add_holiday(self, doctor_id: int, holiday: rules.Holiday) -> RuleSetResponse:
        self._get_doctor(doctor_id)
        if not holiday.is_recurring:
            existing = self.repo.list_holidays(doctor_id)
            if any(not h.is_recurring and h.date == holiday.date for h in existing):
                raise DuplicateHolidayError(f"A holiday already exists on {holiday.date}")
        self.repo.add_holiday(doctor_id, holiday)
        logger.info(
            f"Added {'recurring ' if holiday.is_recurring else ''}holiday {holiday.date} for doctor {doctor_id}"
        )
        return self.get_rules(doctor_id)

    def remove_holiday(self, doctor_id: int, holiday_id: int) -> RuleSetResponse:
        self._get_doctor(doctor_id)
        if not self.repo.remove_holiday(doctor_id, holiday_id):
            raise RuleNotFoundError(f"Holiday {holiday_id} not found")
        logger.info(f"Removed holiday {holiday_id} for doctor {doctor_id}")
        return self.get_rules(doctor_id)

    # Bookings

    def book_slot(
        self,
        doctor_id: int,
        day: dt.date,
        time: str,
        patient_name: Optional[str] = None,
        consultation_type: Optional[rules.ConsultationType] = None,
    ) -> rules.AppointmentRecord:
        """
        Create a pending appointment after re-checking capacity.

        The doctor row stays locked from the capacity check until the insert
        commits, so two callers cannot both take the last place.
        """
        try:
            slot_time = rules.format_minutes(rules.parse_time_string(time))
        except ValueError:
            raise InvalidDateError("Invalid time format. Use HH:MM.")

        doctor = self.repo.lock_doctor(doctor_id)
        try:
            if not doctor:
                raise DoctorNotFoundError(doctor_id)

            availability = self._resolve_day(
                doctor,
                day,
                self.today_for(doctor),
                self.repo.load_rules(doctor_id),
                self.repo.list_appointments(doctor_id, day, day),
                consultation_type,
                False,
            )
            slot = next((s for s in availability.slots if s.time == slot_time), None)
            if slot is None or not slot.bookable:
                reason = availability.message if slot is None and availability.message else "Time slot is not available"
                logger.warning(f"Booking rejected for doctor {doctor_id} on {day} at {slot_time}: {reason}")
                raise SlotUnavailableError(reason)
        except Exception:
            # release the lock taken by lock_doctor
            self.repo.rollback()
            raise

        appointment = self.repo.add_appointment(
            doctor_id, day, slot_time, patient_name, rules.AppointmentStatus.PENDING
        )
        logger.info(f"Booked appointment {appointment.id} for doctor {doctor_id} on {day} at {slot_time}")
        return appointment

    def update_appointment_status(
        self, appointment_id: int, status: rules.AppointmentStatus
    ) -> rules.AppointmentRecord:
        appointment = self.repo.update_appointment_status(appointment_id, status)
        if not appointment:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")
        logger.info(f"Appointment {appointment_id} is now {status.value}")
        return appointment


def _validate_settings(advance_booking_days: Optional[int], timezone: Optional[str]) -> None:
    if advance_booking_days is not None and advance_booking_days < 0:
        raise ScheduleValidationError("advance_booking_days cannot be negative")
    if timezone is not None:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            # zone directories such as "America" raise IsADirectoryError
            raise ScheduleValidationError(f"Unknown timezone '{timezone}'")
