from fastapi import APIRouter, Depends, Query
from typing import Optional
from doctor_availability.core.rules import ConsultationType, parse_calendar_date
from doctor_availability.dependencies import get_availability_service
from doctor_availability.services.availability_service import (
    AvailabilityService,
    DayAvailability,
    RangeAvailability,
)

router = APIRouter(prefix="/api/doctors", tags=["availability"])

@router.get("/{doctor_id}/availability", response_model=DayAvailability)
def get_availability(
    doctor_id: int,
    date_str: str = Query(..., alias="date"),
    consultation_type: Optional[ConsultationType] = None,
    available_only: bool = False,
    service: AvailabilityService = Depends(get_availability_service)
):
    """
    Returns the day's mode and slot list for a doctor on a specific date.
    Non-working days and dates outside the booking horizon come back as a
    mode with a message and no slots, never as an error.
    """
    target_date = parse_calendar_date(date_str)
    return service.resolve_availability(
        doctor_id,
        target_date,
        consultation_type=consultation_type,
        available_only=available_only,
    )

@router.get("/{doctor_id}/availability/range", response_model=RangeAvailability)
def get_availability_range(
    doctor_id: int,
    start_date: str = Query(...),
    end_date: str = Query(...),
    consultation_type: Optional[ConsultationType] = None,
    available_only: bool = False,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.resolve_availability_range(
        doctor_id,
        parse_calendar_date(start_date),
        parse_calendar_date(end_date),
        consultation_type=consultation_type,
        available_only=available_only,
    )
