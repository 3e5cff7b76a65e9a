import datetime as dt
from abc import ABC, abstractmethod
from typing import Protocol

from curaease.domain.models import Appointment, AppointmentType, Doctor, NewAppointment


class AbstractBookingService(ABC):
    """Abstract base class for appointment booking operations."""

    @abstractmethod
    async def book_appointment(
        self,
        doctor_id: str,
        patient_id: str,
        patient_name: str,
        patient_email: str,
        day: dt.date | None,
        appointment_type: AppointmentType | str,
    ) -> Appointment:
        """Book the earliest free slot with a doctor on a given day.

        Args:
            doctor_id: The practitioner's unique ID.
            patient_id: The authenticated patient's unique ID.
            patient_name: Display name captured at booking time.
            patient_email: Contact email captured at booking time.
            day: Calendar day to search. Time of day is ignored.
            appointment_type: One of the bookable services.

        Returns:
            The booked appointment with its assigned ID.

        Raises:
            BookingValidationError: If the request is malformed.
            NoAvailabilityError: If no window fits within business hours.
            SlotConflictError: If concurrent bookings kept taking the chosen slot.
            StoreError: If the appointment store fails.
        """

    @abstractmethod
    async def cancel_appointment(self, appointment_id: str) -> None:
        """Cancel (delete) a booked appointment.

        Args:
            appointment_id: The appointment's unique ID.

        Raises:
            AppointmentNotFoundError: If no appointment has this ID.
            StoreError: If the appointment store fails.
        """

    @abstractmethod
    async def list_doctor_appointments(self, doctor_id: str, day: dt.date) -> list[Appointment]:
        """Return a doctor's appointments on a day, ordered by start time."""

    @abstractmethod
    async def list_patient_appointments(self, patient_id: str) -> list[Appointment]:
        """Return a patient's appointments, ordered by start time."""

    @abstractmethod
    async def list_available_slots(
        self, doctor_id: str, day: dt.date, appointment_type: AppointmentType | str
    ) -> list[dt.datetime]:
        """Return every start time on a day that could be booked right now."""

    @abstractmethod
    async def is_doctor(self, uid: str) -> bool:
        """Check whether an authenticated principal is a registered doctor."""

    @abstractmethod
    async def list_doctors(self) -> list[Doctor]:
        """Return every registered doctor."""

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the backing store is reachable and responding.

        Returns:
            True if the store is healthy, False otherwise.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release resources held by this service."""


class AppointmentStoreProtocol(Protocol):
    """Low-level interface for appointment persistence."""

    async def list_for_doctor_on_day(self, doctor_id: str, day: dt.date) -> list[Appointment]:
        """List a doctor's appointments starting on ``day``."""
        ...

    async def list_for_patient(self, patient_id: str) -> list[Appointment]:
        """List a patient's appointments."""
        ...

    async def get(self, appointment_id: str) -> Appointment | None:
        """Fetch one appointment, or None if it does not exist."""
        ...

    async def insert(self, appointment: NewAppointment) -> Appointment:
        """Insert only if no booking for the same doctor overlaps.

        Raises SlotConflictError when the precondition does not hold at
        write time.
        """
        ...

    async def delete(self, appointment_id: str) -> None:
        """Delete an appointment. Raises AppointmentNotFoundError if absent."""
        ...

    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class DoctorDirectoryProtocol(Protocol):
    """Read-only lookup of registered doctors."""

    async def get_doctor(self, uid: str) -> Doctor | None:
        """Fetch a doctor by auth uid, or None if the uid is not a doctor."""
        ...

    async def list_doctors(self) -> list[Doctor]:
        """List every registered doctor."""
        ...
