from fastapi import Depends
from sqlalchemy.orm import Session

from doctor_availability.database import get_db
from doctor_availability.repositories.availability_repository import SqlAlchemyAvailabilityRepository
from doctor_availability.services.availability_service import AvailabilityService


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(SqlAlchemyAvailabilityRepository(db))
