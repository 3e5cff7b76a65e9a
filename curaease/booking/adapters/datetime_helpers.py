import datetime as dt
import re
from zoneinfo import ZoneInfo

from loguru import logger

_FRACTION = re.compile(r"\.(\d{1,9})")


def resolve_timezone(name: str) -> dt.tzinfo:
    """Resolve a timezone name, falling back to UTC if invalid."""
    try:
        return ZoneInfo(name)
    except Exception:
        logger.warning("Invalid clinic timezone '{}'; defaulting to UTC", name)
        return dt.timezone.utc


def day_to_iso(day: dt.date) -> str:
    """Convert ``date(2026, 3, 5)`` → ``2026-03-05`` for the ``Appointment Date`` field."""
    return day.strftime("%Y-%m-%d")


def local_to_timestamp(value: dt.datetime, clinic_tz: dt.tzinfo) -> str:
    """Convert a clinic wall-clock datetime to a Firestore UTC timestamp string.

    Naive values are taken to be in ``clinic_tz``; aware values are converted.
    ``datetime(2026, 3, 15, 9)`` in New York → ``2026-03-15T13:00:00Z``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=clinic_tz)
    return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def timestamp_to_utc(raw: str) -> dt.datetime:
    """Parse a Firestore timestamp into an aware UTC datetime.

    Firestore emits up to nanosecond precision (``2026-03-15T13:00:00.123456789Z``);
    digits past microseconds are dropped.

    Raises:
        ValueError: If ``raw`` is not an RFC 3339 timestamp.
    """
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    value = dt.datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def timestamp_to_local(raw: str, clinic_tz: dt.tzinfo) -> dt.datetime:
    """Convert a Firestore timestamp to a naive clinic wall-clock datetime."""
    return timestamp_to_utc(raw).astimezone(clinic_tz).replace(tzinfo=None)
