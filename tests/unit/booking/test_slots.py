import datetime as dt

import pytest

from curaease.booking.slots import business_hours, find_available_slot, list_open_slots
from curaease.domain.exceptions import BookingValidationError
from curaease.domain.models import TimeInterval

DAY = dt.date(2026, 3, 16)


def _at(hour: int) -> dt.datetime:
    return dt.datetime.combine(DAY, dt.time(hour))


def _booked(*spans: tuple[int, int]) -> list[TimeInterval]:
    return [TimeInterval(start=_at(start), end=_at(end)) for start, end in spans]


class TestFindAvailableSlot:
    """Earliest whole-hour start inside 09:00-17:00 that overlaps no booking."""

    @pytest.mark.parametrize("duration", [1, 2, 3], ids=["1h", "2h", "3h"])
    def test_empty_day_returns_opening_hour(self, duration: int) -> None:
        assert find_available_slot([], DAY, duration) == _at(9)

    def test_checkup_after_single_consultation(self) -> None:
        # 09-11 and 10-12 both overlap [10, 11); 11-13 is the first fit.
        assert find_available_slot(_booked((10, 11)), DAY, 2) == _at(11)

    def test_consultation_after_back_to_back_morning(self) -> None:
        assert find_available_slot(_booked((9, 10), (10, 12)), DAY, 1) == _at(12)

    @pytest.mark.parametrize("duration", [1, 2, 3], ids=["1h", "2h", "3h"])
    def test_fully_booked_day_has_no_slot(self, duration: int) -> None:
        assert find_available_slot(_booked((9, 17)), DAY, duration) is None

    def test_back_to_back_bookings_exhaust_the_day(self) -> None:
        existing = _booked((9, 12), (12, 14), (14, 15), (15, 17))

        assert find_available_slot(existing, DAY, 1) is None

    def test_specialization_never_starts_after_14(self) -> None:
        existing = _booked((9, 14))

        assert find_available_slot(existing, DAY, 3) == _at(14)
        assert find_available_slot(_booked((9, 15)), DAY, 3) is None

    def test_gap_too_short_is_skipped(self) -> None:
        existing = _booked((9, 10), (11, 12))

        assert find_available_slot(existing, DAY, 2) == _at(12)

    def test_last_hour_is_bookable(self) -> None:
        assert find_available_slot(_booked((9, 16)), DAY, 1) == _at(16)

    def test_time_of_day_of_search_date_is_ignored(self) -> None:
        late = dt.datetime.combine(DAY, dt.time(15, 42))

        assert find_available_slot([], late, 1) == _at(9)

    def test_is_deterministic(self) -> None:
        existing = _booked((9, 10), (13, 15))

        results = {find_available_slot(existing, DAY, 2) for _ in range(5)}

        assert results == {_at(10)}

    def test_does_not_modify_input(self) -> None:
        existing = _booked((10, 11))
        snapshot = list(existing)

        find_available_slot(existing, DAY, 1)

        assert existing == snapshot

    @pytest.mark.parametrize("duration", [0, 4, -1, 8], ids=["zero", "four", "negative", "full-day"])
    def test_rejects_durations_outside_the_table(self, duration: int) -> None:
        with pytest.raises(BookingValidationError, match="duration"):
            find_available_slot([], DAY, duration)


class TestListOpenSlots:
    def test_lists_every_whole_hour_start_on_empty_day(self) -> None:
        assert list_open_slots([], DAY, 1) == [_at(h) for h in range(9, 17)]
        assert list_open_slots([], DAY, 3) == [_at(h) for h in range(9, 15)]

    def test_excludes_overlapping_windows(self) -> None:
        existing = _booked((11, 12), (14, 16))

        assert list_open_slots(existing, DAY, 2) == [_at(9), _at(12)]

    def test_first_entry_matches_find_available_slot(self) -> None:
        existing = _booked((9, 10), (12, 13))

        assert list_open_slots(existing, DAY, 2)[0] == find_available_slot(existing, DAY, 2)

    def test_full_day_lists_nothing(self) -> None:
        assert list_open_slots(_booked((9, 17)), DAY, 1) == []


class TestBusinessHours:
    def test_spans_nine_to_five(self) -> None:
        window = business_hours(DAY)

        assert window.start == _at(9)
        assert window.end == _at(17)
