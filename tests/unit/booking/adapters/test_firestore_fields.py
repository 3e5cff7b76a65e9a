import datetime as dt

import pytest

from curaease.booking.adapters.firestore_fields import (
    document_id,
    field_path,
    fields_to_appointment,
    fields_to_doctor,
)
from curaease.domain.models import AppointmentType

UTC = dt.timezone.utc


class TestFieldPath:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Doctor", "Doctor"),
            ("PatientId", "PatientId"),
            ("Appointment Date", "`Appointment Date`"),
            ("Appointment Type", "`Appointment Type`"),
        ],
        ids=["simple", "camel", "spaced-date", "spaced-type"],
    )
    def test_quotes_only_when_needed(self, name: str, expected: str) -> None:
        assert field_path(name) == expected


class TestDocumentId:
    def test_takes_last_segment(self) -> None:
        name = "projects/demo/databases/(default)/documents/appointments/abc123"

        assert document_id(name) == "abc123"


class TestFieldsToAppointment:
    def test_string_time_is_accepted(self) -> None:
        document = {
            "name": "x/appointments/a1",
            "fields": {
                "Appointment Time": {"stringValue": "2026-03-16T11:00:00Z"},
                "Appointment Type": {"stringValue": "Checkup"},
                "Doctor": {"stringValue": "doc-1"},
            },
        }

        appt = fields_to_appointment(document, UTC)

        assert appt is not None
        assert appt.start == dt.datetime(2026, 3, 16, 11)
        assert appt.appointment_type is AppointmentType.CHECKUP
        assert appt.patient_id == ""

    def test_falls_back_to_date_string(self) -> None:
        document = {
            "name": "x/appointments/a1",
            "fields": {"Appointment Date": {"stringValue": "2026-03-16T09:00:00"}},
        }

        appt = fields_to_appointment(document, UTC)

        assert appt is not None
        assert appt.start == dt.datetime(2026, 3, 16, 9)
        assert appt.appointment_type is AppointmentType.CONSULTATION

    def test_missing_time_is_skipped(self) -> None:
        assert fields_to_appointment({"name": "x/appointments/a1", "fields": {}}, UTC) is None

    def test_date_only_is_kept_as_stored(self) -> None:
        document = {
            "name": "x/appointments/a1",
            "fields": {"Appointment Date": {"stringValue": "2026-03-16"}},
        }

        appt = fields_to_appointment(document, UTC)

        assert appt is not None
        assert appt.start == dt.datetime(2026, 3, 16)
        assert not appt.fits_business_hours


class TestFieldsToDoctor:
    def test_falls_back_to_document_id(self) -> None:
        doctor = fields_to_doctor(
            {"name": "x/doctors/d9", "fields": {"firstName": {"stringValue": "Ann"}}}
        )

        assert doctor.uid == "d9"
        assert doctor.first_name == "Ann"
        assert doctor.email == ""
