"""Availability repository - storage seam between the engine and the database"""

import abc
import datetime as dt
import logging
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from doctor_availability.core import rules
from doctor_availability.models.appointment import Appointment
from doctor_availability.models.blocked_date import BlockedDate, BlockedWindow
from doctor_availability.models.doctor import Doctor
from doctor_availability.models.holiday import Holiday
from doctor_availability.models.vacation import VacationPeriod
from doctor_availability.models.working_hours import WorkingDay, WorkWindow

logger = logging.getLogger(__name__)


class AvailabilityRepository(abc.ABC):
    """
    Everything the availability service reads and writes.

    Implementations hand back pure rule objects from ``core.rules`` so the
    engine never touches storage types.
    """

    @abc.abstractmethod
    def get_doctor(self, doctor_id: int) -> Optional[rules.DoctorProfile]:
        ...

    @abc.abstractmethod
    def list_doctors(self, specialty: Optional[str] = None) -> List[rules.DoctorProfile]:
        ...

    @abc.abstractmethod
    def create_doctor(self, full_name: str, specialty: Optional[str], timezone: str,
                      advance_booking_days: int) -> rules.DoctorProfile:
        ...

    @abc.abstractmethod
    def update_doctor(self, doctor_id: int, **updates) -> rules.DoctorProfile:
        ...

    @abc.abstractmethod
    def lock_doctor(self, doctor_id: int) -> Optional[rules.DoctorProfile]:
        """Load the doctor and hold a row lock until the next commit."""

    @abc.abstractmethod
    def get_weekly_rule(self, doctor_id: int) -> Optional[rules.WeeklyScheduleRule]:
        ...

    @abc.abstractmethod
    def replace_day(self, doctor_id: int, day_of_week: int, schedule: rules.DaySchedule) -> None:
        ...

    @abc.abstractmethod
    def replace_week(self, doctor_id: int, weekly: rules.WeeklyScheduleRule) -> None:
        ...

    @abc.abstractmethod
    def list_blocked_dates(self, doctor_id: int) -> List[rules.BlockedDate]:
        ...

    @abc.abstractmethod
    def add_blocked_date(self, doctor_id: int, blocked: rules.BlockedDate) -> rules.BlockedDate:
        ...

    @abc.abstractmethod
    def remove_blocked_date(self, doctor_id: int, blocked_date_id: int) -> bool:
        ...

    @abc.abstractmethod
    def get_active_vacations(self, doctor_id: int) -> List[rules.VacationPeriod]:
        ...

    @abc.abstractmethod
    def set_vacation(self, doctor_id: int, vacation: rules.VacationPeriod) -> rules.VacationPeriod:
        ...

    @abc.abstractmethod
    def clear_vacation(self, doctor_id: int) -> int:
        ...

    @abc.abstractmethod
    def list_holidays(self, doctor_id: int) -> List[rules.Holiday]:
        ...

    @abc.abstractmethod
    def add_holiday(self, doctor_id: int, holiday: rules.Holiday) -> rules.Holiday:
        ...

    @abc.abstractmethod
    def remove_holiday(self, doctor_id: int, holiday_id: int) -> bool:
        ...

    @abc.abstractmethod
    def list_appointments(self, doctor_id: int, start_date: dt.date,
                          end_date: dt.date) -> List[rules.AppointmentRecord]:
        ...

    @abc.abstractmethod
    def add_appointment(self, doctor_id: int, day: dt.date, time: str, patient_name: Optional[str],
                        status: rules.AppointmentStatus) -> rules.AppointmentRecord:
        ...

    @abc.abstractmethod
    def update_appointment_status(self, appointment_id: int,
                                  status: rules.AppointmentStatus) -> Optional[rules.AppointmentRecord]:
        ...

    @abc.abstractmethod
    def rollback(self) -> None:
        ...

    def load_rules(self, doctor_id: int) -> rules.RuleSet:
        return rules.RuleSet(
            doctor_id=doctor_id,
            weekly=self.get_weekly_rule(doctor_id),
            blocked_dates=self.list_blocked_dates(doctor_id),
            vacations=self.get_active_vacations(doctor_id),
            holidays=self.list_holidays(doctor_id),
        )


class SqlAlchemyAvailabilityRepository(AvailabilityRepository):
    """Repository backed by a SQLAlchemy session; each mutation commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    # Doctors

    def _doctor_query(self, doctor_id: int):
        return self.db.query(Doctor).filter(Doctor.id == doctor_id)

    def get_doctor(self, doctor_id: int) -> Optional[rules.DoctorProfile]:
        doctor = self._doctor_query(doctor_id).first()
        return rules.DoctorProfile.model_validate(doctor) if doctor else None

    def list_doctors(self, specialty: Optional[str] = None) -> List[rules.DoctorProfile]:
        query = self.db.query(Doctor)
        if specialty:
            query = query.filter(Doctor.specialty.ilike(f"%{specialty}%"))
        return [rules.DoctorProfile.model_validate(d) for d in query.order_by(Doctor.id).all()]

    def create_doctor(self, full_name: str, specialty: Optional[str], timezone: str,
                      advance_booking_days: int) -> rules.DoctorProfile:
        doctor = Doctor(
            full_name=full_name,
            specialty=specialty,
            timezone=timezone,
            advance_booking_days=advance_booking_days,
        )
        self.db.add(doctor)
        self.db.commit()
        self.db.refresh(doctor)
        return rules.DoctorProfile.model_validate(doctor)

    def update_doctor(self, doctor_id: int, **updates) -> rules.DoctorProfile:
        doctor = self._doctor_query(doctor_id).one()
        for key, value in updates.items():
            if value is not None and hasattr(doctor, key):
                setattr(doctor, key, value)
        self.db.commit()
        self.db.refresh(doctor)
        return rules.DoctorProfile.model_validate(doctor)

    def lock_doctor(self, doctor_id: int) -> Optional[rules.DoctorProfile]:
        self._begin_write()
        doctor = self._doctor_query(doctor_id).with_for_update().first()
        return rules.DoctorProfile.model_validate(doctor) if doctor else None

    def _begin_write(self) -> None:
        """
        SQLite has no row locks and pysqlite defers BEGIN until the first
        INSERT, so FOR UPDATE alone lets two bookers read the same capacity.
        Take the database write lock before anything is read instead.
        """
        connection = self.db.connection()
        if connection.dialect.name != "sqlite":
            return
        if not connection.connection.dbapi_connection.in_transaction:
            connection.exec_driver_sql("BEGIN IMMEDIATE")

    # Weekly schedule

    def get_weekly_rule(self, doctor_id: int) -> Optional[rules.WeeklyScheduleRule]:
        days = (
            self.db.query(WorkingDay)
            .options(selectinload(WorkingDay.windows))
            .filter(WorkingDay.doctor_id == doctor_id)
            .all()
        )
        if not days:
            return None
        return rules.WeeklyScheduleRule(
            days={day.day_of_week: rules.DaySchedule.model_validate(day) for day in days}
        )

    def _write_day(self, doctor_id: int, day_of_week: int, schedule: rules.DaySchedule) -> None:
        row = (
            self.db.query(WorkingDay)
            .filter(WorkingDay.doctor_id == doctor_id, WorkingDay.day_of_week == day_of_week)
            .first()
        )
        if row is None:
            row = WorkingDay(doctor_id=doctor_id, day_of_week=day_of_week)
            self.db.add(row)
        row.is_working = schedule.is_working
        # delete-orphan cascade drops the previous window list
        row.windows = [
            WorkWindow(
                start_time=w.start_time,
                end_time=w.end_time,
                slot_duration_minutes=w.slot_duration_minutes,
                buffer_minutes=w.buffer_minutes,
                capacity_per_slot=w.capacity_per_slot,
                consultation_type=w.consultation_type.value,
            )
            for w in schedule.windows
        ]

    def replace_day(self, doctor_id: int, day_of_week: int, schedule: rules.DaySchedule) -> None:
        self._write_day(doctor_id, day_of_week, schedule)
        self.db.commit()

    def replace_week(self, doctor_id: int, weekly: rules.WeeklyScheduleRule) -> None:
        for day_of_week in range(7):
            self._write_day(doctor_id, day_of_week, weekly.for_weekday(day_of_week))
        self.db.commit()

    # Blocked dates

    def list_blocked_dates(self, doctor_id: int) -> List[rules.BlockedDate]:
        rows = (
            self.db.query(BlockedDate)
            .options(selectinload(BlockedDate.blocked_windows))
            .filter(BlockedDate.doctor_id == doctor_id)
            .order_by(BlockedDate.date, BlockedDate.id)
            .all()
        )
        return [rules.BlockedDate.model_validate(row) for row in rows]

    def add_blocked_date(self, doctor_id: int, blocked: rules.BlockedDate) -> rules.BlockedDate:
        row = BlockedDate(
            doctor_id=doctor_id,
            date=blocked.date,
            is_full_day=blocked.is_full_day,
            reason=blocked.reason,
            blocked_windows=[
                BlockedWindow(start_time=w.start_time, end_time=w.end_time)
                for w in blocked.blocked_windows
            ],
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return rules.BlockedDate.model_validate(row)

    def remove_blocked_date(self, doctor_id: int, blocked_date_id: int) -> bool:
        row = (
            self.db.query(BlockedDate)
            .filter(BlockedDate.id == blocked_date_id, BlockedDate.doctor_id == doctor_id)
            .first()
        )
        if not row:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    # Vacations

    def get_active_vacations(self, doctor_id: int) -> List[rules.VacationPeriod]:
        rows = (
            self.db.query(VacationPeriod)
            .filter(VacationPeriod.doctor_id == doctor_id, VacationPeriod.is_active == True)
            .order_by(VacationPeriod.id.desc())
            .all()
        )
        return [rules.VacationPeriod.model_validate(row) for row in rows]

    def _deactivate_vacations(self, doctor_id: int) -> int:
        return (
            self.db.query(VacationPeriod)
            .filter(VacationPeriod.doctor_id == doctor_id, VacationPeriod.is_active == True)
            .update({"is_active": False}, synchronize_session=False)
        )

    def set_vacation(self, doctor_id: int, vacation: rules.VacationPeriod) -> rules.VacationPeriod:
        self._deactivate_vacations(doctor_id)
        row = VacationPeriod(
            doctor_id=doctor_id,
            is_active=True,
            start_date=vacation.start_date,
            end_date=vacation.end_date,
            message=vacation.message,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return rules.VacationPeriod.model_validate(row)

    def clear_vacation(self, doctor_id: int) -> int:
        cleared = self._deactivate_vacations(doctor_id)
        self.db.commit()
        return cleared

    # Holidays

    def list_holidays(self, doctor_id: int) -> List[rules.Holiday]:
        rows = (
            self.db.query(Holiday)
            .filter(Holiday.doctor_id == doctor_id)
            .order_by(Holiday.date, Holiday.id)
            .all()
        )
        return [rules.Holiday.model_validate(row) for row in rows]

    def add_holiday(self, doctor_id: int, holiday: rules.Holiday) -> rules.Holiday:
        row = Holiday(
            doctor_id=doctor_id,
            date=holiday.date,
            reason=holiday.reason,
            is_recurring=holiday.is_recurring,
            recurring_year=holiday.recurring_year,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return rules.Holiday.model_validate(row)

    def remove_holiday(self, doctor_id: int, holiday_id: int) -> bool:
        row = (
            self.db.query(Holiday)
            .filter(Holiday.id == holiday_id, Holiday.doctor_id == doctor_id)
            .first()
        )
        if not row:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    # Appointments

    def list_appointments(self, doctor_id: int, start_date: dt.date,
                          end_date: dt.date) -> List[rules.AppointmentRecord]:
        rows = (
            self.db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.date >= start_date,
                Appointment.date <= end_date,
            )
            .order_by(Appointment.date, Appointment.time)
            .all()
        )
        return [rules.AppointmentRecord.model_validate(row) for row in rows]

    def add_appointment(self, doctor_id: int, day: dt.date, time: str, patient_name: Optional[str],
                        status: rules.AppointmentStatus) -> rules.AppointmentRecord:
        row = Appointment(
            doctor_id=doctor_id,
            date=day,
            time=time,
            patient_name=patient_name,
            status=status,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return rules.AppointmentRecord.model_validate(row)

    def update_appointment_status(self, appointment_id: int,
                                  status: rules.AppointmentStatus) -> Optional[rules.AppointmentRecord]:
        row = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not row:
            return None
        row.status = status
        self.db.commit()
        self.db.refresh(row)
        return rules.AppointmentRecord.model_validate(row)

    def rollback(self) -> None:
        self.db.rollback()
