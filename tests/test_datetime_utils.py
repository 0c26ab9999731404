from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from rollcall.common.datetime_utils import DayWindow, local_date_of, resolve_day_window, time_on_same_day
from rollcall.common.validators import require_minute_of_day, require_non_negative, require_pin
from rollcall.core.constants import MS_PER_DAY
from rollcall.core.exceptions import ValidationError


def _ms(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


def test_explicit_window_wins_over_offset():
    window = resolve_day_window(start_of_day=100, end_of_day=200, timezone_offset=-330, now=5)
    assert window == DayWindow(start=100, end=200)


def test_window_needs_both_bounds():
    with pytest.raises(ValidationError):
        resolve_day_window(start_of_day=100)

    with pytest.raises(ValidationError):
        resolve_day_window(start_of_day=200, end_of_day=100)


def test_offset_east_of_utc_rolls_to_next_local_day():
    now = _ms(2025, 1, 15, 20, 0)  # 01:30 on the 16th in UTC+5:30
    window = resolve_day_window(timezone_offset=-330, now=now)

    assert window.start == _ms(2025, 1, 15, 18, 30)
    assert window.end == window.start + MS_PER_DAY - 1
    assert window.contains(now)
    assert local_date_of(now, -330) == date(2025, 1, 16)


def test_offset_west_of_utc_stays_on_previous_local_day():
    now = _ms(2025, 1, 15, 5, 0)  # 21:00 on the 14th in UTC-8
    window = resolve_day_window(timezone_offset=480, now=now)

    assert window.start == _ms(2025, 1, 14, 8, 0)
    assert local_date_of(now, 480) == date(2025, 1, 14)


def test_server_zone_is_the_fallback():
    now = _ms(2025, 6, 1, 12, 0)
    assert resolve_day_window(now=now).contains(now)


def test_time_on_same_day_places_shift_end():
    assert time_on_same_day(_ms(2025, 1, 15, 9, 30), 17 * 60, 0) == _ms(2025, 1, 15, 17, 0)
    assert time_on_same_day(_ms(2025, 1, 15, 20, 0), 17 * 60, -330) == _ms(2025, 1, 16, 11, 30)


def test_minute_of_day_bounds():
    assert require_minute_of_day(0, "Start time") == 0
    assert require_minute_of_day(1439, "End time") == 1439
    for bad in (-1, 1440, True, "540", 9.5, None):
        with pytest.raises(ValidationError):
            require_minute_of_day(bad, "Start time")


def test_pin_and_rate_validation():
    assert require_pin("0420", 4) == "0420"
    for bad in ("123", "12345", "12a4", "", None):
        with pytest.raises(ValidationError):
            require_pin(bad, 4)

    assert require_non_negative("12.5", "Rate per day") == 12.5
    with pytest.raises(ValidationError):
        require_non_negative(-1, "Rate per day")
