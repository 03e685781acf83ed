"""Read-only lookups into the school directory.

The scheduling engine never writes classes, subjects or profiles; it only asks
whether they exist and how to display them.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from timetable_engine.core.exceptions import ResourceNotFoundError
from timetable_engine.models.profiles import ParentProfile, StudentProfile, TeacherProfile
from timetable_engine.models.school_class import SchoolClass
from timetable_engine.models.subject import Subject
from timetable_engine.models.user import User


def class_exists(db: Session, class_id: str) -> bool:
    return db.get(SchoolClass, class_id) is not None


def teacher_exists(db: Session, teacher_id: str) -> bool:
    return db.get(TeacherProfile, teacher_id) is not None


def get_assigned_teacher(db: Session, subject_id: str) -> str | None:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise ResourceNotFoundError("Subject", subject_id)
    return subject.assigned_teacher_id


def get_classes(db: Session, class_ids: Iterable[str]) -> dict[str, SchoolClass]:
    ids = set(class_ids)
    if not ids:
        return {}
    rows = db.execute(select(SchoolClass).where(SchoolClass.id.in_(ids))).scalars()
    return {row.id: row for row in rows}


def get_subjects(db: Session, subject_ids: Iterable[str]) -> dict[str, Subject]:
    ids = set(subject_ids)
    if not ids:
        return {}
    rows = db.execute(select(Subject).where(Subject.id.in_(ids))).scalars()
    return {row.id: row for row in rows}


def get_teacher_display_names(db: Session, teacher_ids: Iterable[str]) -> dict[str, str | None]:
    """Map teacher profile ids to the linked user's name.

    Profiles without a user row map to ``None``; unknown profile ids are absent.
    """
    ids = set(teacher_ids)
    if not ids:
        return {}
    rows = db.execute(
        select(TeacherProfile.id, User.name)
        .outerjoin(User, User.id == TeacherProfile.user_id)
        .where(TeacherProfile.id.in_(ids))
    ).all()
    return {teacher_id: name for teacher_id, name in rows}


def resolve_teacher_profile(db: Session, user: User) -> TeacherProfile | None:
    if user.profile_id:
        profile = db.get(TeacherProfile, user.profile_id)
        if profile is not None:
            return profile
    return db.execute(select(TeacherProfile).where(TeacherProfile.user_id == user.id)).scalar_one_or_none()


def resolve_student_profile(db: Session, user: User) -> StudentProfile | None:
    if user.profile_id:
        profile = db.get(StudentProfile, user.profile_id)
        if profile is not None:
            return profile
    return db.execute(select(StudentProfile).where(StudentProfile.user_id == user.id)).scalar_one_or_none()


def resolve_parent_profile(db: Session, user: User) -> ParentProfile | None:
    if user.profile_id:
        profile = db.get(ParentProfile, user.profile_id)
        if profile is not None:
            return profile
    return db.execute(select(ParentProfile).where(ParentProfile.user_id == user.id)).scalar_one_or_none()


def get_user_names(db: Session, user_ids: Iterable[str]) -> dict[str, str]:
    ids = set(user_ids)
    if not ids:
        return {}
    rows = db.execute(select(User.id, User.name).where(User.id.in_(ids))).all()
    return {user_id: name for user_id, name in rows}
