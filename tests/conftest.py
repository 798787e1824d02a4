"""Shared test fixtures for doctor availability tests."""

import datetime as dt
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from doctor_availability.core.rules import DaySchedule, WeeklyScheduleRule, WorkWindow
from doctor_availability.database import Base
from doctor_availability.models import appointment, blocked_date, doctor, holiday, vacation, working_hours  # noqa: F401
from doctor_availability.repositories.availability_repository import SqlAlchemyAvailabilityRepository
from doctor_availability.services.availability_service import AvailabilityService

# Monday 2025-01-06, 08:00 UTC
FIXED_NOW = dt.datetime(2025, 1, 6, 8, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def fixed_now() -> dt.datetime:
    return FIXED_NOW


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def repository(db_session) -> SqlAlchemyAvailabilityRepository:
    return SqlAlchemyAvailabilityRepository(db_session)


@pytest.fixture
def service(repository) -> AvailabilityService:
    return AvailabilityService(repository, now=lambda: FIXED_NOW)


@pytest.fixture
def weekday_rule() -> WeeklyScheduleRule:
    """Mon-Fri 09:00-17:00, 30 minute slots, no buffer, one patient per slot."""
    working = DaySchedule(
        is_working=True,
        windows=[WorkWindow(start_time="09:00", end_time="17:00", slot_duration_minutes=30)],
    )
    return WeeklyScheduleRule(days={day: working for day in range(5)})


@pytest.fixture
def doctor_profile(service):
    return service.create_doctor("Dr. Smith", "cardiology", "UTC", 30)


@pytest.fixture
def scheduled_doctor(service, doctor_profile, weekday_rule):
    service.set_weekly_schedule(doctor_profile.id, weekday_rule)
    return doctor_profile


@pytest.fixture
def client(db_session):
    """Test client wired to the in-memory database and the fixed clock."""
    from doctor_availability.dependencies import get_availability_service
    from doctor_availability.main import app

    app.dependency_overrides[get_availability_service] = lambda: AvailabilityService(
        SqlAlchemyAvailabilityRepository(db_session), now=lambda: FIXED_NOW
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
