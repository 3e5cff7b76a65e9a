import asyncio
import datetime as dt
import uuid

from loguru import logger

from curaease.domain.exceptions import AppointmentNotFoundError, SlotConflictError
from curaease.domain.models import Appointment, Doctor, NewAppointment


class InMemoryAppointmentStore:
    """Process-local appointment store.

    The overlap check and the insert run under one ``asyncio.Lock``, which
    makes ``insert`` a conditional write for every coroutine sharing this
    instance.
    """

    def __init__(self, appointments: list[Appointment] | None = None) -> None:
        self._appointments: dict[str, Appointment] = {
            a.appointment_id: a for a in appointments or []
        }
        self._lock = asyncio.Lock()

    @property
    def appointments(self) -> list[Appointment]:
        return list(self._appointments.values())

    async def list_for_doctor_on_day(self, doctor_id: str, day: dt.date) -> list[Appointment]:
        return [
            a for a in self._appointments.values() if a.doctor_id == doctor_id and a.day == day
        ]

    async def list_for_patient(self, patient_id: str) -> list[Appointment]:
        return [a for a in self._appointments.values() if a.patient_id == patient_id]

    async def get(self, appointment_id: str) -> Appointment | None:
        return self._appointments.get(appointment_id)

    async def insert(self, appointment: NewAppointment) -> Appointment:
        async with self._lock:
            for existing in self._appointments.values():
                if existing.doctor_id == appointment.doctor_id and existing.interval.overlaps(
                    appointment.interval
                ):
                    raise SlotConflictError(
                        f"{appointment.start} overlaps appointment {existing.appointment_id}",
                        doctor_id=appointment.doctor_id,
                    )
            created = Appointment(
                **appointment.model_dump(),
                appointment_id=uuid.uuid4().hex,
                created_at=dt.datetime.now(dt.timezone.utc),
            )
            self._appointments[created.appointment_id] = created
        return created

    async def delete(self, appointment_id: str) -> None:
        async with self._lock:
            if self._appointments.pop(appointment_id, None) is None:
                raise AppointmentNotFoundError(appointment_id)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        logger.info("In-memory appointment store closed")


class InMemoryDoctorDirectory:
    """Doctor directory backed by a fixed list."""

    def __init__(self, doctors: list[Doctor] | None = None) -> None:
        self._doctors: dict[str, Doctor] = {d.uid: d for d in doctors or []}

    async def get_doctor(self, uid: str) -> Doctor | None:
        return self._doctors.get(uid)

    async def list_doctors(self) -> list[Doctor]:
        return list(self._doctors.values())
