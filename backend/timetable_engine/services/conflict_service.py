from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from timetable_engine.models.schedule import DayOfWeek, ScheduleEntry
from timetable_engine.schemas.conflict import ConflictDetail
from timetable_engine.services.time_utils import overlaps


@dataclass(frozen=True)
class ScheduleSlot:
    """The fields of an entry that take part in double-booking checks."""

    class_id: str
    section: str
    teacher_id: str
    room: str
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    academic_year: str

    @classmethod
    def from_entry(cls, entry: ScheduleEntry) -> "ScheduleSlot":
        return cls(
            class_id=entry.class_id,
            section=entry.section,
            teacher_id=entry.teacher_id,
            room=entry.room,
            day_of_week=DayOfWeek(entry.day_of_week),
            start_time=entry.start_time,
            end_time=entry.end_time,
            academic_year=entry.academic_year,
        )


def _bucket_query(slot: ScheduleSlot, exclude_id: str | None):
    query = select(ScheduleEntry).where(
        ScheduleEntry.day_of_week == slot.day_of_week,
        ScheduleEntry.academic_year == slot.academic_year,
        ScheduleEntry.is_active.is_(True),
    )
    if exclude_id is not None:
        query = query.where(ScheduleEntry.id != exclude_id)
    return query.order_by(ScheduleEntry.start_time.asc())


def _overlapping(db: Session, query, slot: ScheduleSlot) -> list[ScheduleEntry]:
    return [
        entry
        for entry in db.execute(query).scalars()
        if overlaps(slot.start_time, slot.end_time, entry.start_time, entry.end_time)
    ]


def check_conflicts(db: Session, candidate: ScheduleSlot, exclude_id: str | None = None) -> list[ConflictDetail]:
    """Report every active entry the candidate would double-book.

    Teacher, room and class-section are scanned independently, so one existing
    entry can show up once per dimension it shares with the candidate.
    """
    base = _bucket_query(candidate, exclude_id)
    conflicts: list[ConflictDetail] = []

    for entry in _overlapping(db, base.where(ScheduleEntry.teacher_id == candidate.teacher_id), candidate):
        conflicts.append(
            ConflictDetail(
                type="teacher",
                message=(
                    f"Teacher is already scheduled in {entry.room} "
                    f"from {entry.start_time} to {entry.end_time}"
                ),
                conflicting_entry_id=entry.id,
            )
        )

    for entry in _overlapping(db, base.where(ScheduleEntry.room == candidate.room), candidate):
        conflicts.append(
            ConflictDetail(
                type="room",
                message=f"Room {candidate.room} is already booked from {entry.start_time} to {entry.end_time}",
                conflicting_entry_id=entry.id,
            )
        )

    class_query = base.where(
        ScheduleEntry.class_id == candidate.class_id,
        ScheduleEntry.section == candidate.section,
    )
    for entry in _overlapping(db, class_query, candidate):
        conflicts.append(
            ConflictDetail(
                type="class",
                message=(
                    f"Class already has a scheduled subject "
                    f"from {entry.start_time} to {entry.end_time}"
                ),
                conflicting_entry_id=entry.id,
            )
        )

    return conflicts
