from fastapi import APIRouter, Depends, status
from typing import Optional
from doctor_availability.core.rules import AppointmentRecord, AppointmentStatus, ConsultationType, parse_calendar_date
from doctor_availability.dependencies import get_availability_service
from doctor_availability.services.availability_service import AvailabilityService
from pydantic import BaseModel

router = APIRouter(prefix="/api/appointments", tags=["appointments"])

class AppointmentCreate(BaseModel):
    doctor_id: int
    date: str
    time: str
    patient_name: Optional[str] = None
    consultation_type: Optional[ConsultationType] = None

class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus

@router.post("", response_model=AppointmentRecord, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment: AppointmentCreate,
    service: AvailabilityService = Depends(get_availability_service)
):
    # Capacity is re-checked under the doctor's row lock, the availability view is only advisory
    return service.book_slot(
        appointment.doctor_id,
        parse_calendar_date(appointment.date),
        appointment.time,
        patient_name=appointment.patient_name,
        consultation_type=appointment.consultation_type,
    )

@router.put("/{appointment_id}/status", response_model=AppointmentRecord)
def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.update_appointment_status(appointment_id, update.status)
