import math
from datetime import date

import pytest

from timetable_engine.core.config import Settings
from timetable_engine.services import time_utils
from timetable_engine.services.time_utils import (
    current_academic_year,
    is_valid_time,
    normalize_time,
    overlaps,
    to_minutes,
)


def test_to_minutes_parses_padded_and_unpadded_hours():
    assert to_minutes("09:30") == 570
    assert to_minutes("9:05") == 545
    assert to_minutes("00:00") == 0
    assert to_minutes("23:59") == 23 * 60 + 59


@pytest.mark.parametrize("value", [None, "", "abc", "9", "ab:cd", "09:xx", 930, ["09:00"]])
def test_to_minutes_treats_garbage_as_infinitely_late(value):
    assert to_minutes(value) == math.inf


def test_sorting_by_minutes_never_raises_and_sinks_bad_rows():
    times = ["13:00", "garbage", "8:15", None, "10:00"]
    ordered = sorted(times, key=to_minutes)
    assert ordered[:3] == ["8:15", "10:00", "13:00"]
    assert set(ordered[3:]) == {"garbage", None}


def test_back_to_back_slots_do_not_overlap():
    assert overlaps("09:00", "10:00", "10:00", "11:00") is False
    assert overlaps("10:00", "11:00", "09:00", "10:00") is False


def test_overlap_cases():
    assert overlaps("09:00", "10:00", "09:30", "10:30")
    assert overlaps("09:00", "12:00", "10:00", "11:00")
    assert overlaps("10:00", "11:00", "09:00", "12:00")
    assert overlaps("09:00", "10:00", "09:00", "10:00")
    assert not overlaps("09:00", "10:00", "13:00", "14:00")


def test_overlap_compares_minutes_not_strings():
    # "9:30" sorts after "10:00" as a string but is earlier in the day.
    assert overlaps("9:30", "10:30", "10:00", "11:00")


def test_is_valid_time():
    assert is_valid_time("09:00")
    assert is_valid_time("9:00")
    assert is_valid_time("23:59")
    assert not is_valid_time("24:00")
    assert not is_valid_time("09:60")
    assert not is_valid_time("0900")
    assert not is_valid_time(None)


def test_normalize_time_pads_hours():
    assert normalize_time("9:05") == "09:05"
    assert normalize_time("14:30") == "14:30"


def test_current_academic_year():
    assert current_academic_year(date(2025, 9, 1)) == "2025-2026"
    assert current_academic_year(date(2026, 1, 15)) == "2026-2027"


def test_default_academic_year_prefers_configured_value(monkeypatch):
    monkeypatch.setattr(time_utils, "get_settings", lambda: Settings(academic_year="2030-2031"))
    assert time_utils.default_academic_year() == "2030-2031"

    monkeypatch.setattr(time_utils, "get_settings", lambda: Settings(academic_year=None))
    assert time_utils.default_academic_year() == current_academic_year()
