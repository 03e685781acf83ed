from __future__ import annotations

import math
import re
from datetime import date

from timetable_engine.core.config import get_settings

# Single-digit hours are accepted ("9:00"); minutes are always two digits.
TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


def is_valid_time(value: object) -> bool:
    return isinstance(value, str) and TIME_PATTERN.match(value.strip()) is not None


def to_minutes(value: object) -> float:
    """Minutes since midnight for an ``HH:MM`` string.

    Anything unparseable maps to ``math.inf`` so that sorting by start time
    never raises and corrupt rows sink to the end of their day.
    """
    if not isinstance(value, str) or not value:
        return math.inf
    hours_raw, separator, minutes_raw = value.strip().partition(":")
    if not separator:
        return math.inf
    try:
        hours = int(hours_raw)
        minutes = int(minutes_raw)
    except ValueError:
        return math.inf
    return hours * 60 + minutes


def overlaps(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    # Half-open intervals: a slot ending at 10:00 does not clash with one starting at 10:00.
    return to_minutes(start_a) < to_minutes(end_b) and to_minutes(end_a) > to_minutes(start_b)


def normalize_time(value: str) -> str:
    """Zero-pad a valid ``H:MM`` value to ``HH:MM``."""
    hours, minutes = value.strip().split(":")
    return f"{int(hours):02d}:{minutes}"


def current_academic_year(today: date | None = None) -> str:
    year = (today or date.today()).year
    return f"{year}-{year + 1}"


def default_academic_year() -> str:
    return get_settings().academic_year or current_academic_year()
