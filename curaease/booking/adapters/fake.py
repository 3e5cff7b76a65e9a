import datetime as dt
from collections.abc import Awaitable, Callable

from curaease.booking.adapters.memory import InMemoryAppointmentStore
from curaease.domain.models import Appointment, NewAppointment


class FakeAppointmentStore(InMemoryAppointmentStore):
    """In-memory test double for the AppointmentStoreProtocol protocol.

    Pre-load ``appointments`` through the constructor to control what the
    store returns.  Set ``list_error``, ``insert_error``, etc. to make the
    corresponding method raise on every call.  Set ``before_insert`` to run a
    coroutine just before the conditional write, e.g. to book the same window
    from a "concurrent" request.

    After calls, inspect ``inserted`` and ``deleted`` to verify what was
    passed to the store.
    """

    def __init__(self, appointments: list[Appointment] | None = None) -> None:
        super().__init__(appointments)
        self.inserted: list[NewAppointment] = []
        self.deleted: list[str] = []
        self.list_calls: int = 0
        self.closed: bool = False
        self.healthy: bool = True

        self.list_error: Exception | None = None
        self.insert_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.before_insert: Callable[[NewAppointment], Awaitable[None]] | None = None

    async def list_for_doctor_on_day(self, doctor_id: str, day: dt.date) -> list[Appointment]:
        self.list_calls += 1
        if self.list_error:
            raise self.list_error
        return await super().list_for_doctor_on_day(doctor_id, day)

    async def list_for_patient(self, patient_id: str) -> list[Appointment]:
        if self.list_error:
            raise self.list_error
        return await super().list_for_patient(patient_id)

    async def insert(self, appointment: NewAppointment) -> Appointment:
        if self.insert_error:
            raise self.insert_error
        if self.before_insert:
            hook, self.before_insert = self.before_insert, None
            await hook(appointment)
        self.inserted.append(appointment)
        return await super().insert(appointment)

    async def delete(self, appointment_id: str) -> None:
        if self.delete_error:
            raise self.delete_error
        self.deleted.append(appointment_id)
        await super().delete(appointment_id)

    async def health_check(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True
