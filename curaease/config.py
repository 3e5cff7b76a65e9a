from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreAdapter(Enum):
    MEMORY = "memory"
    FIRESTORE = "firestore"


class FirestoreConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FIRESTORE_", env_file=".env", extra="ignore")

    project_id: str = "curaease"
    database: str = "(default)"
    api_url: str = "https://firestore.googleapis.com/v1"
    api_key: str = ""
    email: str = ""
    password: str = ""
    access_token: str = ""


class BookingConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BOOKING_", env_file=".env", extra="ignore")

    max_conflict_retries: int = Field(default=3, ge=0)


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    clinic_timezone: str = "America/New_York"
    store_adapter: StoreAdapter = StoreAdapter.FIRESTORE
    firestore: FirestoreConfig = Field(default_factory=lambda: FirestoreConfig())
    booking: BookingConfig = Field(default_factory=lambda: BookingConfig())
