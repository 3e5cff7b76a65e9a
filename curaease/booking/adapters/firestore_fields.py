"""Mapping between domain records and Firestore REST document payloads.

Field names match the existing ``appointments`` and ``doctors`` collections.
"""

import datetime as dt
from typing import Any

from loguru import logger

from curaease.booking.adapters.datetime_helpers import (
    day_to_iso,
    local_to_timestamp,
    timestamp_to_local,
    timestamp_to_utc,
)
from curaease.domain.models import Appointment, AppointmentType, Doctor, NewAppointment

APPOINTMENT_DATE = "Appointment Date"
APPOINTMENT_TIME = "Appointment Time"
APPOINTMENT_TYPE = "Appointment Type"
DOCTOR = "Doctor"
PATIENT_NAME = "Name"
PATIENT_ID = "PatientId"
PATIENT_EMAIL = "PatientEmail"
CREATED_AT = "CreatedAt"


def field_path(name: str) -> str:
    """Quote a field name for use in a structured query (``Appointment Date`` needs backticks)."""
    if name.replace("_", "").isalnum() and not name[0].isdigit():
        return name
    return f"`{name}`"


def document_id(name: str) -> str:
    """Extract the document ID from ``projects/.../documents/appointments/<id>``."""
    return name.rsplit("/", 1)[-1]


def string_value(value: str) -> dict[str, str]:
    return {"stringValue": value}


def _scalar(fields: dict[str, Any], key: str) -> Any:
    """Return the raw scalar of a typed Firestore value, or None."""
    value: dict[str, Any] = fields.get(key) or {}
    for kind in ("stringValue", "timestampValue", "integerValue", "booleanValue"):
        if kind in value:
            return value[kind]
    return None


def appointment_to_fields(
    appointment: NewAppointment, clinic_tz: dt.tzinfo, created_at: dt.datetime
) -> dict[str, Any]:
    return {
        APPOINTMENT_DATE: string_value(day_to_iso(appointment.day)),
        APPOINTMENT_TIME: {"timestampValue": local_to_timestamp(appointment.start, clinic_tz)},
        APPOINTMENT_TYPE: string_value(appointment.appointment_type.value),
        DOCTOR: string_value(appointment.doctor_id),
        PATIENT_NAME: string_value(appointment.patient_name),
        PATIENT_ID: string_value(appointment.patient_id),
        PATIENT_EMAIL: string_value(appointment.patient_email),
        CREATED_AT: {"timestampValue": local_to_timestamp(created_at, dt.timezone.utc)},
    }


def _parse_start(fields: dict[str, Any], clinic_tz: dt.tzinfo) -> dt.datetime | None:
    raw_time = _scalar(fields, APPOINTMENT_TIME)
    if raw_time:
        try:
            return timestamp_to_local(str(raw_time), clinic_tz)
        except ValueError:
            pass
    raw_date = _scalar(fields, APPOINTMENT_DATE)
    if raw_date:
        try:
            return dt.datetime.fromisoformat(str(raw_date))
        except ValueError:
            pass
    return None


def fields_to_appointment(
    document: dict[str, Any], clinic_tz: dt.tzinfo
) -> Appointment | None:
    """Decode an ``appointments`` document, or return None if it has no start time.

    Unknown or missing types fall back to ``Consultation``. Documents outside
    business hours are kept as stored so their interval still blocks bookings.
    """
    appointment_id = document_id(document.get("name", ""))
    fields: dict[str, Any] = document.get("fields") or {}

    start = _parse_start(fields, clinic_tz)
    if start is None:
        logger.warning("Skipping appointment {} with no readable start time", appointment_id)
        return None

    raw_type = _scalar(fields, APPOINTMENT_TYPE) or ""
    try:
        appointment_type = AppointmentType(raw_type)
    except ValueError:
        logger.warning(
            "Appointment {} has unknown type '{}'; treating as Consultation",
            appointment_id,
            raw_type,
        )
        appointment_type = AppointmentType.CONSULTATION

    raw_created = _scalar(fields, CREATED_AT)
    created_at: dt.datetime | None = None
    if raw_created:
        try:
            created_at = timestamp_to_utc(str(raw_created))
        except ValueError:
            created_at = None

    appointment = Appointment(
        appointment_id=appointment_id,
        doctor_id=_scalar(fields, DOCTOR) or "",
        patient_id=_scalar(fields, PATIENT_ID) or "",
        patient_name=_scalar(fields, PATIENT_NAME) or "",
        patient_email=_scalar(fields, PATIENT_EMAIL) or "",
        appointment_type=appointment_type,
        start=start,
        created_at=created_at,
    )
    if not appointment.fits_business_hours:
        logger.warning(
            "Appointment {} at {} lies outside business hours; keeping it as stored",
            appointment_id,
            appointment.start,
        )
    return appointment


def fields_to_doctor(document: dict[str, Any]) -> Doctor:
    fields: dict[str, Any] = document.get("fields") or {}
    return Doctor(
        uid=_scalar(fields, "uid") or document_id(document.get("name", "")),
        first_name=_scalar(fields, "firstName") or "",
        last_name=_scalar(fields, "lastName") or "",
        specialty=_scalar(fields, "specialty") or "",
        email=_scalar(fields, "email") or "",
    )
