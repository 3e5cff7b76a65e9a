class BookingError(Exception):
    """Base exception for all booking-related errors."""


class BookingValidationError(BookingError):
    """Raised when a booking request is malformed or incomplete."""

    def __init__(self, reason: str, field: str | None = None) -> None:
        self.reason = reason
        self.field = field
        super().__init__(f"Invalid booking request: {reason}")


class NoAvailabilityError(BookingError):
    """Raised when no business-hours window fits the requested appointment."""

    def __init__(self, doctor_id: str, day: object, duration_hours: int) -> None:
        self.doctor_id = doctor_id
        self.day = day
        self.duration_hours = duration_hours
        super().__init__(
            f"No {duration_hours}h slot available for doctor {doctor_id} on {day}"
        )


class StoreError(BookingError):
    """Raised when the appointment store cannot be read or written."""


class SlotConflictError(StoreError):
    """Raised when a conditional insert finds the window already taken."""

    def __init__(self, reason: str, doctor_id: str | None = None) -> None:
        self.reason = reason
        self.doctor_id = doctor_id
        super().__init__(f"Slot conflict: {reason}")


class AppointmentNotFoundError(BookingError):
    """Raised when an appointment id does not exist in the store."""

    def __init__(self, appointment_id: str) -> None:
        self.appointment_id = appointment_id
        super().__init__(f"Appointment not found: {appointment_id}")
