"""Seed a small demo school and a week of timetable entries for role-scope checks.

Run:
  PYTHONPATH=backend python scripts/seed_demo_schedule.py

Re-running is safe: directory rows are upserted and slots that already exist
are reported as conflicts and skipped.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from timetable_engine.core.exceptions import ScheduleConflictError
from timetable_engine.core.logging import configure_logging
from timetable_engine.db.bootstrap import ensure_runtime_schema_compatibility
from timetable_engine.db.session import SessionLocal
from timetable_engine.models.profiles import ParentProfile, StudentProfile, TeacherProfile
from timetable_engine.models.school_class import SchoolClass
from timetable_engine.models.subject import Subject
from timetable_engine.models.user import User, UserRole
from timetable_engine.services.schedule_store import create_schedule_entry
from timetable_engine.services.time_utils import default_academic_year

logger = logging.getLogger("seed_demo_schedule")

ACADEMIC_YEAR = os.getenv("DEMO_ACADEMIC_YEAR", "").strip() or default_academic_year()
EMAIL_DOMAIN = os.getenv("DEMO_EMAIL_DOMAIN", "demo.school.test")

DEMO_USERS = {
    "admin": ("Demo Admin", UserRole.admin),
    "teacher_1": ("Demo Teacher One", UserRole.teacher),
    "teacher_2": ("Demo Teacher Two", UserRole.teacher),
    "student_a": ("Demo Student A", UserRole.student),
    "student_b": ("Demo Student B", UserRole.student),
    "student_new": ("Demo Student Unplaced", UserRole.student),
    "parent": ("Demo Parent", UserRole.parent),
}

# (subject code, class section, day, start, end, room)
DEMO_SLOTS = [
    ("DEMO-MATH", "A", "Monday", "08:50", "09:40", "A101"),
    ("DEMO-MATH", "A", "Wednesday", "08:50", "09:40", "A101"),
    ("DEMO-PHY", "B", "Tuesday", "09:40", "10:30", "A102"),
    ("DEMO-PHY", "A", "Thursday", "09:40", "10:30", "Lab 1"),
]


def _upsert_user(session: Session, key: str, name: str, role: UserRole) -> User:
    email = f"{key.replace('_', '.')}@{EMAIL_DOMAIN}"
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(name=name, email=email, role=role, is_active=True)
        session.add(user)
    else:
        user.name = name
        user.role = role
        user.is_active = True
    session.flush()
    return user


def _upsert_profile(session: Session, model, user: User, **fields):
    profile = session.execute(select(model).where(model.user_id == user.id)).scalar_one_or_none()
    if profile is None:
        profile = model(user_id=user.id, **fields)
        session.add(profile)
    else:
        for name, value in fields.items():
            setattr(profile, name, value)
    session.flush()
    user.profile_id = profile.id
    return profile


def _upsert_class(session: Session, section: str) -> SchoolClass:
    school_class = session.execute(
        select(SchoolClass).where(
            SchoolClass.name == "Demo 10",
            SchoolClass.section == section,
            SchoolClass.academic_year == ACADEMIC_YEAR,
        )
    ).scalar_one_or_none()
    if school_class is None:
        school_class = SchoolClass(name="Demo 10", section=section, academic_year=ACADEMIC_YEAR)
        session.add(school_class)
        session.flush()
    return school_class


def _upsert_subject(session: Session, code: str, name: str, teacher: TeacherProfile) -> Subject:
    subject = session.execute(select(Subject).where(Subject.code == code)).scalar_one_or_none()
    if subject is None:
        subject = Subject(code=code, name=name, academic_year=ACADEMIC_YEAR)
        session.add(subject)
    subject.assigned_teacher_id = teacher.id
    session.flush()
    return subject


def _seed_directory(session: Session) -> dict:
    users = {key: _upsert_user(session, key, name, role) for key, (name, role) in DEMO_USERS.items()}
    classes = {section: _upsert_class(session, section) for section in ("A", "B")}

    teacher_one = _upsert_profile(session, TeacherProfile, users["teacher_1"])
    teacher_two = _upsert_profile(session, TeacherProfile, users["teacher_2"])
    student_a = _upsert_profile(
        session, StudentProfile, users["student_a"],
        class_id=classes["A"].id, section="A", academic_year=ACADEMIC_YEAR,
    )
    student_b = _upsert_profile(
        session, StudentProfile, users["student_b"],
        class_id=classes["B"].id, section="B", academic_year=ACADEMIC_YEAR,
    )
    _upsert_profile(session, StudentProfile, users["student_new"])
    parent = _upsert_profile(session, ParentProfile, users["parent"])
    parent.children = [student_a, student_b]

    subjects = {
        "DEMO-MATH": _upsert_subject(session, "DEMO-MATH", "Demo Mathematics", teacher_one),
        "DEMO-PHY": _upsert_subject(session, "DEMO-PHY", "Demo Physics", teacher_two),
    }
    session.commit()
    return {"users": users, "classes": classes, "subjects": subjects}


def _seed_slots(session: Session, directory: dict) -> int:
    admin = directory["users"]["admin"]
    created = 0
    for code, section, day, start, end, room in DEMO_SLOTS:
        payload = {
            "class_id": directory["classes"][section].id,
            "section": section,
            "subject_id": directory["subjects"][code].id,
            "room": room,
            "day_of_week": day,
            "start_time": start,
            "end_time": end,
            "academic_year": ACADEMIC_YEAR,
        }
        try:
            create_schedule_entry(session, payload, actor=admin)
        except ScheduleConflictError as exc:
            logger.info("Skipping %s %s %s-%s: %d conflict(s)", code, day, start, end, len(exc.conflicts))
            continue
        created += 1
    return created


def _print_accounts(users: Iterable[tuple[str, User]]) -> None:
    print("\nDemo accounts ready:")
    for label, user in users:
        print(f"  - {label}: {user.email} | role={user.role.value}")
    print("\nExpected views:")
    print("  - teacher_1 sees only Demo Mathematics slots")
    print("  - student_a sees section A slots, student_b sees section B slots")
    print("  - student_new sees an empty week")
    print("  - parent sees one week per linked child")


def main() -> None:
    configure_logging()
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        directory = _seed_directory(session)
        created = _seed_slots(session, directory)
        logger.info("Seeded %d schedule entries for %s", created, ACADEMIC_YEAR)
        _print_accounts(directory["users"].items())


if __name__ == "__main__":
    main()
