import datetime as dt
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from doctor_availability.core.rules import DoctorProfile

PAST_DATE_MESSAGE = "Cannot book appointments in the past"


class HorizonCheck(BaseModel):
    queryable: bool
    reason: Optional[str] = None
    last_bookable_date: dt.date


def local_today(doctor: DoctorProfile, now: dt.datetime) -> dt.date:
    """Calendar date in the doctor's own timezone at instant ``now``."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.timezone.utc)
    return now.astimezone(ZoneInfo(doctor.timezone)).date()


def is_queryable(doctor: DoctorProfile, day: dt.date, today: dt.date) -> HorizonCheck:
    last_bookable = today + dt.timedelta(days=doctor.advance_booking_days)
    if day < today:
        return HorizonCheck(queryable=False, reason=PAST_DATE_MESSAGE, last_bookable_date=last_bookable)
    if day > last_bookable:
        return HorizonCheck(
            queryable=False,
            reason=f"Appointments can only be booked up to {doctor.advance_booking_days} days in advance",
            last_bookable_date=last_bookable,
        )
    return HorizonCheck(queryable=True, last_bookable_date=last_bookable)
