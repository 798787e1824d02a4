from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from doctor_availability.config import DEFAULT_ADVANCE_BOOKING_DAYS, DEFAULT_TIMEZONE
from doctor_availability.database import Base

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String)
    specialty = Column(String, nullable=True)
    timezone = Column(String, default=DEFAULT_TIMEZONE)  # IANA name, defines the doctor's calendar day
    advance_booking_days = Column(Integer, default=DEFAULT_ADVANCE_BOOKING_DAYS)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    working_days = relationship("WorkingDay", back_populates="doctor", cascade="all, delete-orphan")
    blocked_dates = relationship("BlockedDate", back_populates="doctor", cascade="all, delete-orphan")
    vacations = relationship("VacationPeriod", back_populates="doctor", cascade="all, delete-orphan")
    holidays = relationship("Holiday", back_populates="doctor", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="doctor")
