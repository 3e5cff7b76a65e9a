from typing import Callable

from loguru import logger

from curaease.booking.adapters.firestore import FirestoreClient
from curaease.booking.adapters.memory import InMemoryAppointmentStore, InMemoryDoctorDirectory
from curaease.booking.service import BookingService
from curaease.config import AppConfig, StoreAdapter


def _build_firestore(config: AppConfig) -> BookingService:
    client = FirestoreClient(
        project_id=config.firestore.project_id,
        database=config.firestore.database,
        api_url=config.firestore.api_url,
        api_key=config.firestore.api_key,
        email=config.firestore.email,
        password=config.firestore.password,
        token=config.firestore.access_token,
        clinic_timezone=config.clinic_timezone,
    )
    return BookingService(
        store=client,
        doctors=client,
        max_conflict_retries=config.booking.max_conflict_retries,
    )


def _build_memory(config: AppConfig) -> BookingService:
    return BookingService(
        store=InMemoryAppointmentStore(),
        doctors=InMemoryDoctorDirectory(),
        max_conflict_retries=config.booking.max_conflict_retries,
    )


_BUILDERS: dict[StoreAdapter, Callable[[AppConfig], BookingService]] = {
    StoreAdapter.FIRESTORE: _build_firestore,
    StoreAdapter.MEMORY: _build_memory,
}


def build_booking_service(config: AppConfig) -> BookingService:
    """Build the booking service on top of the configured appointment store."""
    adapter = config.store_adapter
    logger.info("Building booking service with store adapter: {}", adapter.value)
    return _BUILDERS[adapter](config)
