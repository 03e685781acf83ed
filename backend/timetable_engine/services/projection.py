from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from timetable_engine.models.schedule import ScheduleEntry
from timetable_engine.schemas.schedule import (
    ClassSummary,
    ScheduleItemOut,
    SubjectSummary,
    TeacherSummary,
)
from timetable_engine.services.directory import get_classes, get_subjects, get_teacher_display_names


def build_schedule_items(db: Session, entries: Sequence[ScheduleEntry]) -> list[ScheduleItemOut]:
    """Attach class, subject and teacher display data to stored entries.

    Names are looked up at read time (three batched queries per call) and
    never written back onto the entry.
    """
    classes = get_classes(db, (entry.class_id for entry in entries))
    subjects = get_subjects(db, (entry.subject_id for entry in entries))
    teacher_names = get_teacher_display_names(db, (entry.teacher_id for entry in entries))

    items: list[ScheduleItemOut] = []
    for entry in entries:
        school_class = classes.get(entry.class_id)
        subject = subjects.get(entry.subject_id)
        items.append(
            ScheduleItemOut(
                id=entry.id,
                class_id=entry.class_id,
                subject_id=entry.subject_id,
                teacher_id=entry.teacher_id,
                day_of_week=entry.day_of_week,
                start_time=entry.start_time,
                end_time=entry.end_time,
                room=entry.room,
                section=entry.section,
                academic_year=entry.academic_year,
                period_number=entry.period_number,
                is_active=entry.is_active,
                created_at=entry.created_at,
                updated_at=entry.updated_at,
                school_class=(
                    ClassSummary(
                        id=school_class.id,
                        name=school_class.name,
                        section=school_class.section,
                        academic_year=school_class.academic_year,
                    )
                    if school_class is not None
                    else None
                ),
                subject=(
                    SubjectSummary(id=subject.id, name=subject.name, code=subject.code)
                    if subject is not None
                    else None
                ),
                teacher=(
                    TeacherSummary(id=entry.teacher_id, name=teacher_names[entry.teacher_id])
                    if entry.teacher_id in teacher_names
                    else None
                ),
            )
        )
    return items
