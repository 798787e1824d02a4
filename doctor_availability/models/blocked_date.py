from sqlalchemy import Column, Integer, String, ForeignKey, Date, Time, Boolean, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from doctor_availability.database import Base

class BlockedDate(Base):
    __tablename__ = "blocked_dates"

    # several entries per (doctor_id, date) are allowed and get unioned
    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True)
    date = Column(Date, index=True)
    is_full_day = Column(Boolean, default=True)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    doctor = relationship("Doctor", back_populates="blocked_dates")
    blocked_windows = relationship(
        "BlockedWindow",
        back_populates="blocked_date",
        cascade="all, delete-orphan",
        order_by="BlockedWindow.start_time",
    )

class BlockedWindow(Base):
    __tablename__ = "blocked_windows"

    id = Column(Integer, primary_key=True, index=True)
    blocked_date_id = Column(Integer, ForeignKey("blocked_dates.id"))
    start_time = Column(Time)
    end_time = Column(Time)

    # Relationships
    blocked_date = relationship("BlockedDate", back_populates="blocked_windows")
