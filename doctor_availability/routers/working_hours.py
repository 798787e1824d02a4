from fastapi import APIRouter, Depends, status
from doctor_availability.core.rules import BlockedDate, DaySchedule, Holiday, VacationPeriod, WeeklyScheduleRule
from doctor_availability.dependencies import get_availability_service
from doctor_availability.services.availability_service import AvailabilityService, RuleSetResponse

router = APIRouter(prefix="/api/doctors", tags=["working-hours"])

@router.get("/{doctor_id}/schedule", response_model=RuleSetResponse)
def get_schedule(
    doctor_id: int,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.get_rules(doctor_id)

@router.put("/{doctor_id}/schedule", response_model=RuleSetResponse)
def set_weekly_schedule(
    doctor_id: int,
    weekly: WeeklyScheduleRule,
    service: AvailabilityService = Depends(get_availability_service)
):
    # Days left out of the body become non-working
    return service.set_weekly_schedule(doctor_id, weekly)

@router.put("/{doctor_id}/schedule/{day_of_week}", response_model=RuleSetResponse)
def set_working_day(
    doctor_id: int,
    day_of_week: int,
    schedule: DaySchedule,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.set_weekly_window(doctor_id, day_of_week, schedule)

@router.post("/{doctor_id}/blocked-dates", response_model=RuleSetResponse, status_code=status.HTTP_201_CREATED)
def add_blocked_date(
    doctor_id: int,
    blocked_date: BlockedDate,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.add_blocked_date(doctor_id, blocked_date)

@router.delete("/{doctor_id}/blocked-dates/{blocked_date_id}", response_model=RuleSetResponse)
def remove_blocked_date(
    doctor_id: int,
    blocked_date_id: int,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.remove_blocked_date(doctor_id, blocked_date_id)

@router.put("/{doctor_id}/vacation", response_model=RuleSetResponse)
def set_vacation(
    doctor_id: int,
    vacation: VacationPeriod,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.set_vacation(doctor_id, vacation)

@router.delete("/{doctor_id}/vacation", response_model=RuleSetResponse)
def clear_vacation(
    doctor_id: int,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.clear_vacation(doctor_id)

@router.post("/{doctor_id}/holidays", response_model=RuleSetResponse, status_code=status.HTTP_201_CREATED)
def add_holiday(
    doctor_id: int,
    holiday: Holiday,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.add_holiday(doctor_id, holiday)

@router.delete("/{doctor_id}/holidays/{holiday_id}", response_model=RuleSetResponse)
def remove_holiday(
    doctor_id: int,
    holiday_id: int,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.remove_holiday(doctor_id, holiday_id)
