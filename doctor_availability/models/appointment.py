from sqlalchemy import Column, Integer, String, ForeignKey, Date, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from doctor_availability.core.rules import AppointmentStatus
from doctor_availability.database import Base
from sqlalchemy.sql import func

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_doctor_date", "doctor_id", "date"),)

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"))
    patient_name = Column(String, nullable=True)
    date = Column(Date)
    time = Column(String(5))  # HH:MM in the doctor's local calendar
    status = Column(
        Enum(AppointmentStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=AppointmentStatus.PENDING,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    doctor = relationship("Doctor", back_populates="appointments")
