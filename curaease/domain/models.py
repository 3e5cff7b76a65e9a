import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

OPENING_HOUR = 9
CLOSING_HOUR = 17


class AppointmentType(str, Enum):
    """Bookable services. Each one maps to a fixed duration in whole hours."""

    CONSULTATION = "Consultation"
    CHECKUP = "Checkup"
    SPECIALIZATION = "Specialization"

    @property
    def duration_hours(self) -> int:
        return APPOINTMENT_DURATIONS[self]

    @property
    def duration(self) -> dt.timedelta:
        return dt.timedelta(hours=self.duration_hours)


APPOINTMENT_DURATIONS: dict[AppointmentType, int] = {
    AppointmentType.CONSULTATION: 1,
    AppointmentType.CHECKUP: 2,
    AppointmentType.SPECIALIZATION: 3,
}


class TimeInterval(BaseModel):
    """A half-open ``[start, end)`` window of clinic-local wall-clock time."""

    model_config = ConfigDict(frozen=True)

    start: dt.datetime
    end: dt.datetime

    @model_validator(mode="after")
    def _check_order(self) -> "TimeInterval":
        if self.end <= self.start:
            raise ValueError("interval end must be after its start")
        return self

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end


class Doctor(BaseModel):
    """A practitioner record from the doctor directory."""

    model_config = ConfigDict(frozen=True)

    uid: str
    first_name: str = ""
    last_name: str = ""
    specialty: str = ""
    email: str = ""

    @property
    def full_name(self) -> str:
        return f"Dr. {self.first_name} {self.last_name}".strip()


class AppointmentBase(BaseModel):
    """Fields shared by booking requests and stored appointments."""

    model_config = ConfigDict(frozen=True)

    doctor_id: str
    patient_id: str
    patient_name: str = ""
    patient_email: str = ""
    appointment_type: AppointmentType
    start: dt.datetime

    @property
    def end(self) -> dt.datetime:
        return self.start + self.appointment_type.duration

    @property
    def day(self) -> dt.date:
        return self.start.date()

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

    @property
    def fits_business_hours(self) -> bool:
        """True when the slot starts on the hour and lies inside 09:00-17:00."""
        return _business_hours_problem(self.start, self.end) is None


def _business_hours_problem(start: dt.datetime, end: dt.datetime) -> str | None:
    if start.minute or start.second or start.microsecond:
        return "appointments start on a whole hour"
    if start.hour < OPENING_HOUR:
        return f"appointments start at {OPENING_HOUR}:00 or later"
    if end > start.replace(hour=CLOSING_HOUR):
        return f"appointments end by {CLOSING_HOUR}:00"
    return None


class NewAppointment(AppointmentBase):
    """An appointment whose slot has been chosen but which has no id yet."""

    @model_validator(mode="after")
    def _check_business_hours(self) -> "NewAppointment":
        problem = _business_hours_problem(self.start, self.end)
        if problem:
            raise ValueError(problem)
        return self


class Appointment(AppointmentBase):
    """A booked appointment as held by the appointment store.

    Stored records are not held to the booking-time business-hours rules:
    documents written by older clients may start off the hour or run past
    closing, and their real interval still has to block new bookings.
    """

    appointment_id: str
    created_at: dt.datetime | None = None
