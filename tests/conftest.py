import pytest

from curaease.booking.adapters.fake import FakeAppointmentStore
from curaease.booking.adapters.memory import InMemoryDoctorDirectory
from curaease.booking.service import BookingService
from curaease.domain.models import Doctor


@pytest.fixture
def fake_store() -> FakeAppointmentStore:
    return FakeAppointmentStore()


@pytest.fixture
def doctor_directory() -> InMemoryDoctorDirectory:
    return InMemoryDoctorDirectory(
        [
            Doctor(
                uid="doc-1",
                first_name="Jane",
                last_name="Davis",
                specialty="General Physician",
                email="jane@clinic.test",
            )
        ]
    )


@pytest.fixture
def service(
    fake_store: FakeAppointmentStore, doctor_directory: InMemoryDoctorDirectory
) -> BookingService:
    return BookingService(store=fake_store, doctors=doctor_directory)
