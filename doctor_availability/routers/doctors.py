from fastapi import APIRouter, Depends, status
from typing import List, Optional
from doctor_availability.config import DEFAULT_ADVANCE_BOOKING_DAYS, DEFAULT_TIMEZONE
from doctor_availability.core.rules import DoctorProfile
from doctor_availability.dependencies import get_availability_service
from doctor_availability.services.availability_service import AvailabilityService
from pydantic import BaseModel

router = APIRouter(prefix="/api/doctors", tags=["doctors"])

class DoctorCreate(BaseModel):
    full_name: str
    specialty: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    advance_booking_days: int = DEFAULT_ADVANCE_BOOKING_DAYS

class DoctorSettingsUpdate(BaseModel):
    advance_booking_days: Optional[int] = None
    timezone: Optional[str] = None

@router.get("", response_model=List[DoctorProfile])
def list_doctors(
    specialty: Optional[str] = None,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.list_doctors(specialty)

@router.post("", response_model=DoctorProfile, status_code=status.HTTP_201_CREATED)
def create_doctor(
    doctor: DoctorCreate,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.create_doctor(
        doctor.full_name, doctor.specialty, doctor.timezone, doctor.advance_booking_days
    )

@router.get("/{doctor_id}", response_model=DoctorProfile)
def get_doctor(
    doctor_id: int,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.get_doctor(doctor_id)

@router.put("/{doctor_id}/settings", response_model=DoctorProfile)
def update_doctor_settings(
    doctor_id: int,
    settings: DoctorSettingsUpdate,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.update_doctor_settings(
        doctor_id,
        advance_booking_days=settings.advance_booking_days,
        timezone=settings.timezone,
    )
