from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

from sqlalchemy.orm import Session

from timetable_engine.models.schedule import DAY_ORDER, DayOfWeek
from timetable_engine.schemas.schedule import ScheduleFilters, ScheduleItemOut, WeeklyScheduleOut
from timetable_engine.services.projection import build_schedule_items
from timetable_engine.services.schedule_store import list_schedule_entries
from timetable_engine.services.time_utils import default_academic_year, to_minutes

T = TypeVar("T")


def _day_key(value: DayOfWeek | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, DayOfWeek):
        return value.value
    return str(value) or None


def group_by_day(items: Iterable[T]) -> dict[str, list[T]]:
    """Bucket items by ``day_of_week`` and sort each day by start time.

    Every day of the week is present, in week order, even when empty.
    """
    grouped: dict[str, list[T]] = {day: [] for day in DAY_ORDER}
    for item in items:
        day = _day_key(getattr(item, "day_of_week", None))
        if day is None:
            continue
        grouped.setdefault(day, []).append(item)

    for day_items in grouped.values():
        day_items.sort(key=lambda item: to_minutes(getattr(item, "start_time", None)))
    return grouped


def empty_weekly_schedule() -> WeeklyScheduleOut:
    return WeeklyScheduleOut(items=[], grouped_by_day=group_by_day([]))


def get_schedules_ui_ready(db: Session, filters: ScheduleFilters | dict | None = None) -> WeeklyScheduleOut:
    items: list[ScheduleItemOut] = build_schedule_items(db, list_schedule_entries(db, filters))
    return WeeklyScheduleOut(items=items, grouped_by_day=group_by_day(items))


def get_weekly_schedule_for_class(
    db: Session,
    class_id: str,
    section: str,
    academic_year: str | None = None,
) -> dict[str, list[ScheduleItemOut]]:
    filters = {
        "class_id": class_id,
        "section": section,
        "academic_year": academic_year or default_academic_year(),
    }
    return get_schedules_ui_ready(db, filters).grouped_by_day


def get_weekly_schedule_for_teacher(
    db: Session,
    teacher_id: str,
    academic_year: str | None = None,
) -> dict[str, list[ScheduleItemOut]]:
    # Without a year the teacher sees every session they are booked in.
    filters = {"teacher_id": teacher_id}
    if academic_year:
        filters["academic_year"] = academic_year
    return get_schedules_ui_ready(db, filters).grouped_by_day
