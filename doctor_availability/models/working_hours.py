from sqlalchemy import Column, Integer, String, ForeignKey, Time, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from doctor_availability.database import Base

class WorkingDay(Base):
    __tablename__ = "working_days"
    __table_args__ = (UniqueConstraint("doctor_id", "day_of_week", name="uq_working_day"),)

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True)
    day_of_week = Column(Integer)  # 0-6 (Monday-Sunday)
    is_working = Column(Boolean, default=False)

    # Relationships
    doctor = relationship("Doctor", back_populates="working_days")
    windows = relationship(
        "WorkWindow",
        back_populates="working_day",
        cascade="all, delete-orphan",
        order_by="WorkWindow.start_time",
    )

class WorkWindow(Base):
    __tablename__ = "work_windows"

    id = Column(Integer, primary_key=True, index=True)
    working_day_id = Column(Integer, ForeignKey("working_days.id"))
    start_time = Column(Time)
    end_time = Column(Time)
    slot_duration_minutes = Column(Integer)
    buffer_minutes = Column(Integer, default=0)
    capacity_per_slot = Column(Integer, default=1)
    consultation_type = Column(String, default="both")  # in_clinic, online, both

    # Relationships
    working_day = relationship("WorkingDay", back_populates="windows")
