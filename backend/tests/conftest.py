import os
import uuid

# Keep the module-level engine off the default Postgres URL during tests.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import timetable_engine.models  # noqa: F401
from timetable_engine.db.base import Base
from timetable_engine.models.profiles import ParentProfile, StudentProfile, TeacherProfile
from timetable_engine.models.school_class import SchoolClass
from timetable_engine.models.subject import Subject
from timetable_engine.models.user import User, UserRole

YEAR = "2025-2026"


@pytest.fixture()
def engine():
    engine = create_engine(  # isolated in-memory DB shared by every connection of the test
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


class DirectoryFactory:
    """Creates committed directory rows the scheduling engine reads from."""

    def __init__(self, db):
        self.db = db

    def _commit(self, *rows):
        self.db.add_all(rows)
        self.db.commit()
        for row in rows:
            self.db.refresh(row)

    def user(self, name, role, profile_id=None):
        user = User(
            name=name,
            email=f"{uuid.uuid4().hex[:12]}@example.com",
            role=role,
            profile_id=profile_id,
        )
        self._commit(user)
        return user

    def admin(self, name="Admin User"):
        return self.user(name, UserRole.admin)

    def teacher(self, name="Teacher"):
        user = self.user(name, UserRole.teacher)
        profile = TeacherProfile(user_id=user.id)
        self._commit(profile)
        user.profile_id = profile.id
        self._commit(user)
        return profile

    def teacher_user(self, profile):
        return self.db.get(User, profile.user_id)

    def school_class(self, name="10", section="A", academic_year=YEAR):
        school_class = SchoolClass(name=name, section=section, academic_year=academic_year)
        self._commit(school_class)
        return school_class

    def subject(self, code, *, name=None, teacher=None, academic_year=YEAR):
        subject = Subject(
            name=name or code.title(),
            code=code,
            assigned_teacher_id=teacher.id if teacher is not None else None,
            academic_year=academic_year,
        )
        self._commit(subject)
        return subject

    def student(self, name="Student", *, school_class=None, section=None, academic_year=None):
        user = self.user(name, UserRole.student)
        profile = StudentProfile(
            user_id=user.id,
            class_id=school_class.id if school_class is not None else None,
            section=section,
            academic_year=academic_year,
        )
        self._commit(profile)
        user.profile_id = profile.id
        self._commit(user)
        return user, profile

    def parent(self, name="Parent", children=()):
        user = self.user(name, UserRole.parent)
        profile = ParentProfile(user_id=user.id)
        profile.children = list(children)
        self._commit(profile)
        user.profile_id = profile.id
        self._commit(user)
        return user, profile


@pytest.fixture()
def directory(db):
    return DirectoryFactory(db)


@pytest.fixture()
def school(directory):
    """Two teachers, two class sections and subjects taught by each teacher."""
    t1 = directory.teacher("Teacher One")
    t2 = directory.teacher("Teacher Two")
    class_10a = directory.school_class("10", "A")
    class_10b = directory.school_class("10", "B")
    maths = directory.subject("MATH10", name="Mathematics", teacher=t1)
    physics = directory.subject("PHY10", name="Physics", teacher=t2)
    unassigned = directory.subject("ART10", name="Art")
    return {
        "t1": t1,
        "t2": t2,
        "class_10a": class_10a,
        "class_10b": class_10b,
        "maths": maths,
        "physics": physics,
        "unassigned": unassigned,
    }


@pytest.fixture()
def slot_payload(school):
    def build(**overrides):
        payload = {
            "class_id": school["class_10a"].id,
            "section": "A",
            "subject_id": school["maths"].id,
            "teacher_id": school["t1"].id,
            "room": "Room 101",
            "day_of_week": "Monday",
            "start_time": "09:00",
            "end_time": "10:00",
            "academic_year": YEAR,
        }
        payload.update(overrides)
        return payload

    return build
