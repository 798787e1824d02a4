import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from doctor_availability.config import CORS_ORIGINS, LOG_LEVEL
from doctor_availability.core.exceptions import (
    AppointmentNotFoundError,
    AvailabilityError,
    DoctorNotFoundError,
    DuplicateHolidayError,
    InvalidDateError,
    RuleNotFoundError,
    ScheduleValidationError,
    SlotUnavailableError,
)
from doctor_availability.database import Base, engine
from doctor_availability.models import appointment, blocked_date, doctor, holiday, vacation, working_hours  # noqa: F401
from doctor_availability.routers import appointments, availability, doctors
from doctor_availability.routers import working_hours as working_hours_router

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Doctor Availability API")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS_CODES = {
    ScheduleValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidDateError: status.HTTP_400_BAD_REQUEST,
    DoctorNotFoundError: status.HTTP_404_NOT_FOUND,
    RuleNotFoundError: status.HTTP_404_NOT_FOUND,
    AppointmentNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateHolidayError: status.HTTP_409_CONFLICT,
    SlotUnavailableError: status.HTTP_409_CONFLICT,
}

@app.exception_handler(AvailabilityError)
async def availability_error_handler(request: Request, exc: AvailabilityError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})

# Include routers
app.include_router(doctors.router)
app.include_router(availability.router)
app.include_router(working_hours_router.router)
app.include_router(appointments.router)

@app.get("/")
async def root():
    return {"message": "Welcome to Doctor Availability API"}
