from sqlalchemy import Column, Integer, String, ForeignKey, Date, Boolean
from sqlalchemy.orm import relationship
from doctor_availability.database import Base

class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True)
    date = Column(Date)
    reason = Column(String, nullable=True)
    is_recurring = Column(Boolean, default=False)  # matches month/day every year
    recurring_year = Column(Integer, nullable=True)

    # Relationships
    doctor = relationship("Doctor", back_populates="holidays")
