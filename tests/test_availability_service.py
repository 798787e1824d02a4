"""Tests for AvailabilityService against an in-memory database."""

import datetime as dt

import pytest

from doctor_availability.core.day_resolver import AvailabilityMode
from doctor_availability.core.exceptions import (
    AppointmentNotFoundError,
    DoctorNotFoundError,
    DuplicateHolidayError,
    InvalidDateError,
    RuleNotFoundError,
    ScheduleValidationError,
    SlotUnavailableError,
)
from doctor_availability.core.rules import (
    AppointmentStatus,
    BlockedDate,
    BlockedWindow,
    ConsultationType,
    DaySchedule,
    Holiday,
    VacationPeriod,
    WorkWindow,
)

MONDAY = dt.date(2025, 1, 6)
WEDNESDAY = dt.date(2025, 1, 8)
SATURDAY = dt.date(2025, 1, 11)


class TestResolveAvailability:
    def test_weekday_with_one_booking(self, service, repository, scheduled_doctor):
        """Mon-Fri 09-17, 30 min, one confirmed booking at 10:00 on Wednesday."""
        repository.add_appointment(
            scheduled_doctor.id, WEDNESDAY, "10:00", "Jane", AppointmentStatus.CONFIRMED
        )
        result = service.resolve_availability(scheduled_doctor.id, WEDNESDAY)

        assert result.mode == AvailabilityMode.WORKING
        assert len(result.slots) == 16
        assert result.slots[0].time == "09:00"
        assert result.slots[-1].time == "16:30"
        for slot in result.slots:
            if slot.time == "10:00":
                assert slot.capacity_remaining == 0
                assert slot.bookable is False
            else:
                assert slot.capacity_remaining == 1
                assert slot.bookable is True
        assert result.total_slots == 16
        assert result.available_slots == 15

    def test_same_inputs_same_output(self, service, repository, scheduled_doctor):
        repository.add_appointment(
            scheduled_doctor.id, WEDNESDAY, "11:00", None, AppointmentStatus.PENDING
        )
        first = service.resolve_availability(scheduled_doctor.id, WEDNESDAY)
        second = service.resolve_availability(scheduled_doctor.id, WEDNESDAY)
        assert first == second

    def test_non_working_day_is_empty(self, service, scheduled_doctor):
        result = service.resolve_availability(scheduled_doctor.id, SATURDAY)
        assert result.mode == AvailabilityMode.NON_WORKING
        assert result.slots == []
        assert result.message

    def test_doctor_without_schedule(self, service, doctor_profile):
        result = service.resolve_availability(doctor_profile.id, WEDNESDAY)
        assert result.mode == AvailabilityMode.NON_WORKING
        assert result.slots == []

    def test_unknown_doctor_raises(self, service):
        with pytest.raises(DoctorNotFoundError):
            service.resolve_availability(999, WEDNESDAY)

    def test_past_date_out_of_horizon(self, service, scheduled_doctor):
        result = service.resolve_availability(scheduled_doctor.id, dt.date(2025, 1, 3))
        assert result.mode == AvailabilityMode.OUT_OF_HORIZON
        assert result.slots == []
        assert "past" in result.message

    def test_far_future_out_of_horizon(self, service, scheduled_doctor):
        result = service.resolve_availability(scheduled_doctor.id, dt.date(2025, 3, 5))
        assert result.mode == AvailabilityMode.OUT_OF_HORIZON
        assert "30 days" in result.message

    def test_today_is_queryable(self, service, scheduled_doctor):
        assert service.resolve_availability(scheduled_doctor.id, MONDAY).mode == AvailabilityMode.WORKING

    def test_available_only_hides_full_slots(self, service, repository, scheduled_doctor):
        repository.add_appointment(
            scheduled_doctor.id, WEDNESDAY, "10:00", None, AppointmentStatus.CONFIRMED
        )
        result = service.resolve_availability(scheduled_doctor.id, WEDNESDAY, available_only=True)
        assert len(result.slots) == 15
        assert "10:00" not in [slot.time for slot in result.slots]
        assert result.total_slots == 16

    def test_consultation_type_filter(self, service, scheduled_doctor):
        service.set_weekly_window(scheduled_doctor.id, 2, DaySchedule(
            is_working=True,
            windows=[
                WorkWindow(start_time="09:00", end_time="10:00", slot_duration_minutes=30,
                           consultation_type=ConsultationType.IN_CLINIC),
                WorkWindow(start_time="14:00", end_time="15:00", slot_duration_minutes=30,
                           consultation_type=ConsultationType.ONLINE),
            ],
        ))
        online = service.resolve_availability(
            scheduled_doctor.id, WEDNESDAY, consultation_type=ConsultationType.ONLINE
        )
        assert [slot.time for slot in online.slots] == ["14:00", "14:30"]
        everything = service.resolve_availability(scheduled_doctor.id, WEDNESDAY)
        assert [slot.time for slot in everything.slots] == ["09:00", "09:30", "14:00", "14:30"]


class TestResolveRange:
    def test_week(self, service, scheduled_doctor):
        result = service.resolve_availability_range(scheduled_doctor.id, MONDAY, dt.date(2025, 1, 12))
        modes = [day.mode for day in result.days]
        assert len(modes) == 7
        assert modes[:5] == [AvailabilityMode.WORKING] * 5
        assert modes[5:] == [AvailabilityMode.NON_WORKING] * 2

    def test_bookings_land_on_their_own_day(self, service, repository, scheduled_doctor):
        repository.add_appointment(
            scheduled_doctor.id, WEDNESDAY, "09:00", None, AppointmentStatus.CONFIRMED
        )
        result = service.resolve_availability_range(scheduled_doctor.id, MONDAY, dt.date(2025, 1, 10))
        available = {day.date: day.available_slots for day in result.days}
        assert available[WEDNESDAY] == 15
        assert available[dt.date(2025, 1, 7)] == 16

    def test_inverted_range_rejected(self, service, scheduled_doctor):
        with pytest.raises(InvalidDateError):
            service.resolve_availability_range(scheduled_doctor.id, WEDNESDAY, MONDAY)

    def test_range_too_long_rejected(self, service, scheduled_doctor):
        with pytest.raises(InvalidDateError):
            service.resolve_availability_range(scheduled_doctor.id, MONDAY, dt.date(2025, 3, 1))


class TestWeeklyMutations:
    def test_replace_day_replaces_whole_window_list(self, service, scheduled_doctor):
        service.set_weekly_window(scheduled_doctor.id, 2, DaySchedule(
            is_working=True,
            windows=[WorkWindow(start_time="14:00", end_time="16:00", slot_duration_minutes=30)],
        ))
        result = service.resolve_availability(scheduled_doctor.id, WEDNESDAY)
        assert [slot.time for slot in result.slots] == ["14:00", "14:30", "15:00", "15:30"]
        # other days untouched
        assert len(service.resolve_availability(scheduled_doctor.id, dt.date(2025, 1, 9)).slots) == 16

    def test_turn_day_off(self, service, scheduled_doctor):
        rules = service.set_weekly_window(scheduled_doctor.id, 2, DaySchedule(is_working=False))
        assert rules.weekly.days[2].is_working is False
        assert service.resolve_availability(scheduled_doctor.id, WEDNESDAY).mode == AvailabilityMode.NON_WORKING

    def test_invalid_weekday_rejected(self, service, scheduled_doctor):
        with pytest.raises(ScheduleValidationError):
            service.set_weekly_window(scheduled_doctor.id, 7, DaySchedule())

    def test_unknown_doctor_rejected(self, service):
        with pytest.raises(DoctorNotFoundError):
            service.set_weekly_window(999, 1, DaySchedule())

    def test_buffer_and_capacity_applied(self, service, repository, scheduled_doctor):
        service.set_weekly_window(scheduled_doctor.id, 2, DaySchedule(
            is_working=True,
            windows=[WorkWindow(start_time="09:00", end_time="10:00", slot_duration_minutes=15,
                                buffer_minutes=5, capacity_per_slot=2)],
        ))
        repository.add_appointment(scheduled_doctor.id, WEDNESDAY, "09:20", None, AppointmentStatus.PENDING)
        slots = service.resolve_availability(scheduled_doctor.id, WEDNESDAY).slots
        assert [slot.time for slot in slots] == ["09:00", "09:20", "09:40"]
        assert [slot.capacity_remaining for slot in slots] == [2, 1, 2]


class TestBlockedDates:
    def test_partial_block(self, service, scheduled_doctor):
        service.add_blocked_date(scheduled_doctor.id, BlockedDate(
            date=WEDNESDAY, is_full_day=False, reason="Surgery",
            blocked_windows=[BlockedWindow(start_time="12:00", end_time="13:00")],
        ))
        result = service.resolve_availability(scheduled_doctor.id, WEDNESDAY)
        times = [slot.time for slot in result.slots]
        assert result.mode == AvailabilityMode.BLOCKED_PARTIAL
        assert "12:00" not in times and "12:30" not in times
        assert "11:30" in times and "13:00" in times

    def test_full_block_then_remove(self, service, scheduled_doctor):
        rules = service.add_blocked_date(scheduled_doctor.id, BlockedDate(date=WEDNESDAY, reason="Training"))
        assert service.resolve_availability(scheduled_doctor.id, WEDNESDAY).mode == AvailabilityMode.BLOCKED_FULL

        service.remove_blocked_date(scheduled_doctor.id, rules.blocked_dates[0].id)
        assert service.resolve_availability(scheduled_doctor.id, WEDNESDAY).mode == AvailabilityMode.WORKING

    def test_remove_unknown_block(self, service, scheduled_doctor):
        with pytest.raises(RuleNotFoundError):
            service.remove_blocked_date(scheduled_doctor.id, 12345)

    def test_multiple_entries_same_date_allowed(self, service, scheduled_doctor):
        for window in (("10:00", "11:00"), ("15:00", "16:00")):
            service.add_blocked_date(scheduled_doctor.id, BlockedDate(
                date=WEDNESDAY, is_full_day=False,
                blocked_windows=[BlockedWindow(start_time=window[0], end_time=window[1])],
            ))
        result = service.resolve_availability(scheduled_doctor.id, WEDNESDAY)
        assert len(result.slots) == 12


class TestVacation:
    def test_vacation_overrides_everything(self, service, scheduled_doctor):
        service.add_holiday(scheduled_doctor.id, Holiday(date=WEDNESDAY, reason="Festival"))
        service.set_vacation(scheduled_doctor.id, VacationPeriod(
            start_date=WEDNESDAY, end_date=dt.date(2025, 1, 10), message="Away at a conference"
        ))
        for day in (WEDNESDAY, dt.date(2025, 1, 10)):
            result = service.resolve_availability(scheduled_doctor.id, day)
            assert result.mode == AvailabilityMode.VACATION
            assert result.message == "Away at a conference"
            assert result.slots == []
        assert service.resolve_availability(scheduled_doctor.id, dt.date(2025, 1, 7)).mode == AvailabilityMode.WORKING

    def test_new_vacation_replaces_active_one(self, service, scheduled_doctor):
        service.set_vacation(scheduled_doctor.id, VacationPeriod(start_date=WEDNESDAY, end_date=WEDNESDAY))
        rules = service.set_vacation(scheduled_doctor.id, VacationPeriod(
            start_date=dt.date(2025, 1, 20), end_date=dt.date(2025, 1, 22)
        ))
        assert rules.vacation.start_date == dt.date(2025, 1, 20)
        assert service.resolve_availability(scheduled_doctor.id, WEDNESDAY).mode == AvailabilityMode.WORKING
        assert service.resolve_availability(scheduled_doctor.id, dt.date(2025, 1, 21)).mode == AvailabilityMode.VACATION

    def test_clear_vacation(self, service, scheduled_doctor):
        service.set_vacation(scheduled_doctor.id, VacationPeriod(start_date=WEDNESDAY, end_date=WEDNESDAY))
        rules = service.clear_vacation(scheduled_doctor.id)
        assert rules.vacation is None
        assert service.resolve_availability(scheduled_doctor.id, WEDNESDAY).mode == AvailabilityMode.WORKING

    def test_inverted_vacation_rejected(self, service, scheduled_doctor):
        with pytest.raises(ScheduleValidationError):
            service.set_vacation(scheduled_doctor.id, VacationPeriod(
                start_date=dt.date(2025, 1, 10), end_date=WEDNESDAY
            ))


class TestHolidays:
    def test_holiday(self, service, scheduled_doctor):
        service.add_holiday(scheduled_doctor.id, Holiday(date=WEDNESDAY, reason="Festival"))
        result = service.resolve_availability(scheduled_doctor.id, WEDNESDAY)
        assert result.mode == AvailabilityMode.HOLIDAY
        assert result.message == "Festival"

    def test_recurring_holiday_from_earlier_year(self, service, scheduled_doctor):
        service.add_holiday(scheduled_doctor.id, Holiday(
            date=dt.date(2019, 1, 8), is_recurring=True, recurring_year=2019
        ))
        assert service.resolve_availability(scheduled_doctor.id, WEDNESDAY).mode == AvailabilityMode.HOLIDAY

    def test_duplicate_fixed_holiday_rejected(self, service, scheduled_doctor):
        service.add_holiday(scheduled_doctor.id, Holiday(date=WEDNESDAY))
        with pytest.raises(DuplicateHolidayError):
            service.add_holiday(scheduled_doctor.id, Holiday(date=WEDNESDAY))

    def test_remove_holiday(self, service, scheduled_doctor):
        rules = service.add_holiday(scheduled_doctor.id, Holiday(date=WEDNESDAY))
        rules = service.remove_holiday(scheduled_doctor.id, rules.holidays[0].id)
        assert rules.holidays == []
        with pytest.raises(RuleNotFoundError):
            service.remove_holiday(scheduled_doctor.id, 999)


class TestDoctorSettings:
    def test_longer_horizon(self, service, scheduled_doctor):
        far = dt.date(2025, 2, 19)
        assert service.resolve_availability(scheduled_doctor.id, far).mode == AvailabilityMode.OUT_OF_HORIZON
        service.update_doctor_settings(scheduled_doctor.id, advance_booking_days=60)
        assert service.resolve_availability(scheduled_doctor.id, far).mode == AvailabilityMode.WORKING

    def test_bad_timezone_rejected(self, service, scheduled_doctor):
        with pytest.raises(ScheduleValidationError):
            service.update_doctor_settings(scheduled_doctor.id, timezone="Mars/Olympus")

    def test_negative_horizon_rejected(self, service, scheduled_doctor):
        with pytest.raises(ScheduleValidationError):
            service.update_doctor_settings(scheduled_doctor.id, advance_booking_days=-1)


class TestBookSlot:
    def test_book_and_fill(self, service, scheduled_doctor):
        appointment = service.book_slot(scheduled_doctor.id, WEDNESDAY, "10:00", "Jane")
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.time == "10:00"

        with pytest.raises(SlotUnavailableError):
            service.book_slot(scheduled_doctor.id, WEDNESDAY, "10:00", "John")

    def test_cancel_releases_capacity(self, service, scheduled_doctor):
        appointment = service.book_slot(scheduled_doctor.id, WEDNESDAY, "10:00", "Jane")
        service.update_appointment_status(appointment.id, AppointmentStatus.CANCELLED)
        slots = {s.time: s for s in service.resolve_availability(scheduled_doctor.id, WEDNESDAY).slots}
        assert slots["10:00"].bookable is True
        assert service.book_slot(scheduled_doctor.id, WEDNESDAY, "10:00", "John").id != appointment.id

    def test_time_must_be_a_slot_start(self, service, scheduled_doctor):
        with pytest.raises(SlotUnavailableError):
            service.book_slot(scheduled_doctor.id, WEDNESDAY, "10:10")

    def test_holiday_reason_reported(self, service, scheduled_doctor):
        service.add_holiday(scheduled_doctor.id, Holiday(date=WEDNESDAY, reason="Festival"))
        with pytest.raises(SlotUnavailableError, match="Festival"):
            service.book_slot(scheduled_doctor.id, WEDNESDAY, "10:00")

    def test_out_of_horizon_rejected(self, service, scheduled_doctor):
        with pytest.raises(SlotUnavailableError, match="30 days"):
            service.book_slot(scheduled_doctor.id, dt.date(2025, 3, 5), "10:00")

    def test_malformed_time(self, service, scheduled_doctor):
        with pytest.raises(InvalidDateError):
            service.book_slot(scheduled_doctor.id, WEDNESDAY, "ten")

    def test_unknown_doctor(self, service):
        with pytest.raises(DoctorNotFoundError):
            service.book_slot(999, WEDNESDAY, "10:00")

    def test_status_of_unknown_appointment(self, service):
        with pytest.raises(AppointmentNotFoundError):
            service.update_appointment_status(999, AppointmentStatus.CANCELLED)
