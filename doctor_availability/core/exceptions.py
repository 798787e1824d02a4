class AvailabilityError(Exception):
    """Base class for availability engine errors."""
    pass


class ScheduleValidationError(AvailabilityError, ValueError):
    """Raised when a rule mutation would break a schedule invariant."""
    pass


class DoctorNotFoundError(AvailabilityError):
    def __init__(self, doctor_id: int):
        self.doctor_id = doctor_id
        super().__init__(f"Doctor {doctor_id} not found")


class InvalidDateError(AvailabilityError):
    pass


class DuplicateHolidayError(AvailabilityError):
    pass


class RuleNotFoundError(AvailabilityError):
    pass


class SlotUnavailableError(AvailabilityError):
    pass


class AppointmentNotFoundError(AvailabilityError):
    pass
