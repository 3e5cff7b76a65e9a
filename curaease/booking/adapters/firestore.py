import datetime as dt
import uuid
from typing import Any

import httpx
from loguru import logger

from curaease.booking.adapters.datetime_helpers import day_to_iso, resolve_timezone
from curaease.booking.adapters.firestore_fields import (
    APPOINTMENT_DATE,
    DOCTOR,
    PATIENT_ID,
    appointment_to_fields,
    field_path,
    fields_to_appointment,
    fields_to_doctor,
    string_value,
)
from curaease.domain.exceptions import AppointmentNotFoundError, SlotConflictError, StoreError
from curaease.domain.models import Appointment, AppointmentBase, Doctor, NewAppointment

_SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

APPOINTMENTS = "appointments"
SLOT_CLAIMS = "appointmentSlots"
DOCTORS = "doctors"

# Firestore statuses meaning a commit precondition did not hold.
_CONFLICT_STATUSES = frozenset({"ALREADY_EXISTS", "FAILED_PRECONDITION", "ABORTED"})


class FirestoreStatusError(StoreError):
    """A Firestore REST call returned a non-success status."""

    def __init__(self, status_code: int, status: str, message: str) -> None:
        self.status_code = status_code
        self.status = status
        self.message = message
        super().__init__(f"Firestore returned {status_code} {status}: {message}")


def claim_id(doctor_id: str, hour_start: dt.datetime) -> str:
    """Lock document ID for one booked hour, e.g. ``doc-1_2026-03-15_09``."""
    return f"{doctor_id}_{day_to_iso(hour_start.date())}_{hour_start.hour:02d}"


def claimed_hours(appointment: AppointmentBase) -> list[dt.datetime]:
    """Hours covered by claim documents. Off-hour or after-hours records never had any."""
    if not appointment.fits_business_hours:
        return []
    hours = appointment.appointment_type.duration_hours
    return [appointment.start + dt.timedelta(hours=i) for i in range(hours)]


class FirestoreClient:
    """Appointment store and doctor directory over the Firestore REST API.

    Bookings claim one ``appointmentSlots`` document per hour they cover, created
    with an ``exists: false`` precondition in the same commit as the appointment
    itself. Two bookings that share an hour can therefore never both commit.
    """

    def __init__(
        self,
        project_id: str,
        *,
        database: str = "(default)",
        api_url: str = "https://firestore.googleapis.com/v1",
        api_key: str = "",
        email: str = "",
        password: str = "",
        token: str = "",
        clinic_timezone: str = "America/New_York",
    ) -> None:
        self._project_id = project_id
        self._database_path = f"projects/{project_id}/databases/{database}"
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._email = email
        self._password = password
        self._token: str | None = token or None
        self._client = httpx.AsyncClient(timeout=30)
        self._clinic_timezone = clinic_timezone
        self._clinic_tz = resolve_timezone(clinic_timezone)

    @property
    def _documents_url(self) -> str:
        return f"{self._api_url}/{self._database_path}/documents"

    def _document_name(self, collection: str, doc_id: str) -> str:
        return f"{self._database_path}/documents/{collection}/{doc_id}"

    def _has_credentials(self) -> bool:
        return bool(self._email and self._password and self._api_key)

    async def _ensure_authenticated(self) -> str | None:
        """Return a bearer token, signing in with email/password if necessary.

        Without a token or credentials requests go out unauthenticated, which
        is what the local emulator expects.
        """
        if self._token:
            return self._token
        if not self._has_credentials():
            return None

        logger.info("Authenticating with Firebase Auth via signInWithPassword...")
        try:
            resp = await self._client.post(
                _SIGN_IN_URL,
                params={"key": self._api_key},
                json={"email": self._email, "password": self._password, "returnSecureToken": True},
            )
            resp.raise_for_status()
            data: dict[str, Any] = resp.json()
        except Exception as exc:
            raise StoreError(f"Firebase sign-in request failed: {exc}") from exc

        token: str | None = data.get("idToken")
        if not token:
            raise StoreError("Firebase sign-in returned no idToken")

        self._token = token
        logger.info("Authenticated with Firebase, token cached for subsequent requests")
        return token

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        _retry_on_auth: bool = True,
    ) -> Any:
        """Execute an authenticated Firestore REST request and return its JSON body."""
        token = await self._ensure_authenticated()
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        query = dict(params or {})
        if self._api_key:
            query["key"] = self._api_key

        try:
            resp = await self._client.request(method, url, headers=headers, params=query, json=json)
        except Exception as exc:
            raise StoreError(f"Firestore request failed: {exc}") from exc

        if resp.is_success:
            return resp.json() if resp.content else {}

        if _retry_on_auth and resp.status_code in {401, 403} and self._has_credentials():
            logger.warning(
                "Firestore token rejected (status {}), retrying authentication",
                resp.status_code,
            )
            self._token = None
            return await self._request(method, url, json=json, params=params, _retry_on_auth=False)

        status, message = "UNKNOWN", resp.reason_phrase
        try:
            body = resp.json()
            if isinstance(body, list):
                body = body[0] if body else {}
            error: dict[str, Any] = body.get("error") or {}
            status = error.get("status") or status
            message = error.get("message") or message
        except ValueError:
            pass
        raise FirestoreStatusError(resp.status_code, status, message)

    async def _run_query(
        self, collection: str, filters: dict[str, str], *, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """Run an equality-filtered structured query and return the matching documents."""
        field_filters = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": field_path(name)},
                    "op": "EQUAL",
                    "value": string_value(value),
                }
            }
            for name, value in filters.items()
        ]
        structured: dict[str, Any] = {"from": [{"collectionId": collection}]}
        if len(field_filters) == 1:
            structured["where"] = field_filters[0]
        elif field_filters:
            structured["where"] = {"compositeFilter": {"op": "AND", "filters": field_filters}}
        if limit is not None:
            structured["limit"] = limit

        rows = await self._request(
            "POST", f"{self._documents_url}:runQuery", json={"structuredQuery": structured}
        )
        return [row["document"] for row in rows or [] if row.get("document")]

    async def _commit(self, writes: list[dict[str, Any]]) -> None:
        await self._request("POST", f"{self._documents_url}:commit", json={"writes": writes})

    def _decode_all(self, documents: list[dict[str, Any]]) -> list[Appointment]:
        appointments = (fields_to_appointment(d, self._clinic_tz) for d in documents)
        return [a for a in appointments if a is not None]

    async def list_for_doctor_on_day(self, doctor_id: str, day: dt.date) -> list[Appointment]:
        documents = await self._run_query(
            APPOINTMENTS, {DOCTOR: doctor_id, APPOINTMENT_DATE: day_to_iso(day)}
        )
        return [a for a in self._decode_all(documents) if a.day == day]

    async def list_for_patient(self, patient_id: str) -> list[Appointment]:
        documents = await self._run_query(APPOINTMENTS, {PATIENT_ID: patient_id})
        return self._decode_all(documents)

    async def _get_document(self, appointment_id: str) -> dict[str, Any] | None:
        try:
            document: dict[str, Any] = await self._request(
                "GET", f"{self._documents_url}/{APPOINTMENTS}/{appointment_id}"
            )
        except FirestoreStatusError as exc:
            if exc.status_code == 404:
                return None
            raise
        return document

    async def get(self, appointment_id: str) -> Appointment | None:
        document = await self._get_document(appointment_id)
        if document is None:
            return None
        return fields_to_appointment(document, self._clinic_tz)

    async def insert(self, appointment: NewAppointment) -> Appointment:
        appointment_id = uuid.uuid4().hex
        created_at = dt.datetime.now(dt.timezone.utc).replace(microsecond=0)
        name = self._document_name(APPOINTMENTS, appointment_id)

        writes: list[dict[str, Any]] = [
            {
                "update": {
                    "name": self._document_name(SLOT_CLAIMS, claim_id(appointment.doctor_id, hour)),
                    "fields": {
                        DOCTOR: string_value(appointment.doctor_id),
                        "AppointmentId": string_value(appointment_id),
                    },
                },
                "currentDocument": {"exists": False},
            }
            for hour in claimed_hours(appointment)
        ]
        writes.append(
            {
                "update": {
                    "name": name,
                    "fields": appointment_to_fields(appointment, self._clinic_tz, created_at),
                },
                "currentDocument": {"exists": False},
            }
        )

        try:
            await self._commit(writes)
        except FirestoreStatusError as exc:
            if exc.status in _CONFLICT_STATUSES or exc.status_code == 409:
                raise SlotConflictError(exc.message, doctor_id=appointment.doctor_id) from exc
            raise

        return Appointment(
            **appointment.model_dump(),
            appointment_id=appointment_id,
            created_at=created_at,
        )

    async def delete(self, appointment_id: str) -> None:
        document = await self._get_document(appointment_id)
        if document is None:
            raise AppointmentNotFoundError(appointment_id)
        appointment = fields_to_appointment(document, self._clinic_tz)
        claims: list[str] = []
        if appointment is not None:
            claims = [claim_id(appointment.doctor_id, hour) for hour in claimed_hours(appointment)]

        writes: list[dict[str, Any]] = [
            {
                "delete": self._document_name(APPOINTMENTS, appointment_id),
                "currentDocument": {"exists": True},
            }
        ]
        writes.extend({"delete": self._document_name(SLOT_CLAIMS, claim)} for claim in claims)

        try:
            await self._commit(writes)
        except FirestoreStatusError as exc:
            if exc.status_code == 404 or exc.status == "NOT_FOUND":
                raise AppointmentNotFoundError(appointment_id) from exc
            raise

    async def get_doctor(self, uid: str) -> Doctor | None:
        documents = await self._run_query(DOCTORS, {"uid": uid}, limit=1)
        return fields_to_doctor(documents[0]) if documents else None

    async def list_doctors(self) -> list[Doctor]:
        documents = await self._run_query(DOCTORS, {})
        return [fields_to_doctor(d) for d in documents]

    async def health_check(self) -> bool:
        try:
            await self._request("GET", f"{self._documents_url}/{DOCTORS}", params={"pageSize": 1})
            return True
        except Exception as exc:
            logger.warning("Firestore health check failed: {}", exc)
            return False

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Firestore client closed")
