import datetime as dt

from loguru import logger

from curaease.booking.ports import (
    AbstractBookingService,
    AppointmentStoreProtocol,
    DoctorDirectoryProtocol,
)
from curaease.booking.slots import find_available_slot, list_open_slots
from curaease.domain.exceptions import (
    AppointmentNotFoundError,
    BookingError,
    BookingValidationError,
    NoAvailabilityError,
    SlotConflictError,
    StoreError,
)
from curaease.domain.models import Appointment, AppointmentType, Doctor, NewAppointment


def _coerce_type(appointment_type: AppointmentType | str) -> AppointmentType:
    if isinstance(appointment_type, AppointmentType):
        return appointment_type
    try:
        return AppointmentType(appointment_type)
    except ValueError as exc:
        allowed = ", ".join(t.value for t in AppointmentType)
        raise BookingValidationError(
            f"unknown appointment type {appointment_type!r} (expected one of {allowed})",
            field="appointment_type",
        ) from exc


def _coerce_day(day: dt.date | None) -> dt.date:
    if day is None:
        raise BookingValidationError("day is required", field="day")
    if isinstance(day, dt.datetime):
        return day.date()
    if not isinstance(day, dt.date):
        raise BookingValidationError(
            f"day must be a date, got {type(day).__name__}", field="day"
        )
    return day


class BookingService(AbstractBookingService):
    """Booking coordinator: slot search and conditional persistence over a store."""

    def __init__(
        self,
        store: AppointmentStoreProtocol,
        doctors: DoctorDirectoryProtocol,
        *,
        max_conflict_retries: int = 3,
    ) -> None:
        if max_conflict_retries < 0:
            raise ValueError("max_conflict_retries must be zero or more")
        self._store = store
        self._doctors = doctors
        self._max_conflict_retries = max_conflict_retries

    async def _appointments_on_day(self, doctor_id: str, day: dt.date) -> list[Appointment]:
        try:
            return await self._store.list_for_doctor_on_day(doctor_id, day)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"Appointment lookup failed: {exc}") from exc

    async def book_appointment(
        self,
        doctor_id: str,
        patient_id: str,
        patient_name: str,
        patient_email: str,
        day: dt.date | None,
        appointment_type: AppointmentType | str,
    ) -> Appointment:
        """Find the earliest free slot and claim it with a conditional insert.

        A lost race against a concurrent booking re-reads the day and plans
        again; other store failures are surfaced without retrying.
        """
        if not doctor_id or not doctor_id.strip():
            raise BookingValidationError("doctor id is required", field="doctor_id")
        booking_day = _coerce_day(day)
        service = _coerce_type(appointment_type)

        logger.info(
            "Booking request: doctor={}, day={}, type={}",
            doctor_id,
            booking_day,
            service.value,
        )

        attempts = self._max_conflict_retries + 1
        for attempt in range(1, attempts + 1):
            existing = await self._appointments_on_day(doctor_id, booking_day)
            start = find_available_slot(
                (a.interval for a in existing), booking_day, service.duration_hours
            )
            if start is None:
                logger.info("No availability: doctor={}, day={}", doctor_id, booking_day)
                raise NoAvailabilityError(doctor_id, booking_day, service.duration_hours)

            try:
                candidate = NewAppointment(
                    doctor_id=doctor_id,
                    patient_id=patient_id,
                    patient_name=patient_name,
                    patient_email=patient_email,
                    appointment_type=service,
                    start=start,
                )
            except ValueError as exc:
                raise BookingValidationError(str(exc)) from exc

            try:
                appointment = await self._store.insert(candidate)
            except SlotConflictError as exc:
                if attempt == attempts:
                    raise
                logger.warning(
                    "Slot {} taken concurrently (attempt {}/{}): {}",
                    start,
                    attempt,
                    attempts,
                    exc.reason,
                )
                continue
            except StoreError:
                raise
            except Exception as exc:
                raise StoreError(f"Appointment insert failed: {exc}") from exc

            logger.info(
                "Appointment booked: id={}, start={}",
                appointment.appointment_id,
                appointment.start,
            )
            return appointment

        raise SlotConflictError("retries exhausted", doctor_id=doctor_id)

    async def cancel_appointment(self, appointment_id: str) -> None:
        """Delete an appointment. Rescheduling is a cancel followed by a new booking."""
        if not appointment_id:
            raise BookingValidationError("appointment id is required", field="appointment_id")

        logger.info("Cancelling appointment: id={}", appointment_id)
        try:
            await self._store.delete(appointment_id)
        except (AppointmentNotFoundError, StoreError):
            raise
        except Exception as exc:
            raise StoreError(f"Appointment delete failed: {exc}") from exc

        logger.info("Appointment cancelled: id={}", appointment_id)

    async def list_doctor_appointments(self, doctor_id: str, day: dt.date) -> list[Appointment]:
        appointments = await self._appointments_on_day(doctor_id, _coerce_day(day))
        return sorted(appointments, key=lambda a: a.start)

    async def list_patient_appointments(self, patient_id: str) -> list[Appointment]:
        try:
            appointments = await self._store.list_for_patient(patient_id)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"Appointment lookup failed: {exc}") from exc
        return sorted(appointments, key=lambda a: a.start)

    async def list_available_slots(
        self, doctor_id: str, day: dt.date, appointment_type: AppointmentType | str
    ) -> list[dt.datetime]:
        booking_day = _coerce_day(day)
        service = _coerce_type(appointment_type)
        existing = await self._appointments_on_day(doctor_id, booking_day)
        return list_open_slots((a.interval for a in existing), booking_day, service.duration_hours)

    async def is_doctor(self, uid: str) -> bool:
        if not uid:
            return False
        try:
            doctor = await self._doctors.get_doctor(uid)
        except BookingError:
            raise
        except Exception as exc:
            raise StoreError(f"Doctor lookup failed: {exc}") from exc
        return doctor is not None

    async def list_doctors(self) -> list[Doctor]:
        try:
            return await self._doctors.list_doctors()
        except BookingError:
            raise
        except Exception as exc:
            raise StoreError(f"Doctor listing failed: {exc}") from exc

    async def health_check(self) -> bool:
        return await self._store.health_check()

    async def close(self) -> None:
        await self._store.close()
