"""Whole-hour slot search over a doctor's bookings for one day.

Candidate starts are only tried on the hour (09:00, 10:00, ... 16:00), never at
the end of an existing booking. Every booking made through the coordinator is
hour-aligned, so this never hides a usable gap in practice.
"""

import datetime as dt
from collections.abc import Iterable, Iterator

from curaease.domain.exceptions import BookingValidationError
from curaease.domain.models import (
    APPOINTMENT_DURATIONS,
    CLOSING_HOUR,
    OPENING_HOUR,
    TimeInterval,
)

_STEP = dt.timedelta(hours=1)
_ALLOWED_DURATIONS = frozenset(APPOINTMENT_DURATIONS.values())


def business_hours(day: dt.date) -> TimeInterval:
    """Return the ``[09:00, 17:00)`` window of ``day``."""
    if isinstance(day, dt.datetime):
        day = day.date()
    return TimeInterval(
        start=dt.datetime.combine(day, dt.time(OPENING_HOUR)),
        end=dt.datetime.combine(day, dt.time(CLOSING_HOUR)),
    )


def _candidates(day: dt.date, duration_hours: int) -> Iterator[TimeInterval]:
    if duration_hours not in _ALLOWED_DURATIONS:
        raise BookingValidationError(
            f"duration must be one of {sorted(_ALLOWED_DURATIONS)} hours, got {duration_hours}",
            field="duration_hours",
        )
    window = business_hours(day)
    length = dt.timedelta(hours=duration_hours)
    cursor = window.start
    while cursor + length <= window.end:
        yield TimeInterval(start=cursor, end=cursor + length)
        cursor += _STEP


def list_open_slots(
    existing: Iterable[TimeInterval], day: dt.date, duration_hours: int
) -> list[dt.datetime]:
    """Every whole-hour start on ``day`` whose window overlaps no booking, earliest first."""
    booked = list(existing)
    return [
        candidate.start
        for candidate in _candidates(day, duration_hours)
        if not any(candidate.overlaps(interval) for interval in booked)
    ]


def find_available_slot(
    existing: Iterable[TimeInterval], day: dt.date, duration_hours: int
) -> dt.datetime | None:
    """Return the earliest free whole-hour start on ``day``, or ``None`` if nothing fits.

    ``existing`` must already be limited to one doctor's bookings on ``day``.
    The time-of-day component of ``day`` is ignored.
    """
    booked = list(existing)
    for candidate in _candidates(day, duration_hours):
        if not any(candidate.overlaps(interval) for interval in booked):
            return candidate.start
    return None
