"""Turn "who is asking" into the right timetable view.

Nothing is cached between calls; each request resolves the caller's profile
afresh from the directory.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from timetable_engine.core.exceptions import AuthorizationError, ResourceNotFoundError
from timetable_engine.models.profiles import StudentProfile
from timetable_engine.models.user import User, UserRole
from timetable_engine.schemas.schedule import (
    ChildScheduleOut,
    ParentScheduleOut,
    ScheduleFilters,
    WeeklyScheduleOut,
)
from timetable_engine.services.directory import (
    get_user_names,
    resolve_parent_profile,
    resolve_student_profile,
    resolve_teacher_profile,
)
from timetable_engine.services.schedule_store import parse_filters, parse_identifier
from timetable_engine.services.weekly_view import empty_weekly_schedule, get_schedules_ui_ready

logger = logging.getLogger(__name__)


def require_roles(user: User, *roles: UserRole) -> User:
    if not user.is_active:
        raise AuthorizationError("User account is inactive")
    if user.role not in set(roles):
        raise AuthorizationError()
    return user


def _student_view(db: Session, student: StudentProfile, filters: ScheduleFilters) -> WeeklyScheduleOut:
    if not (student.class_id and student.section and student.academic_year):
        return empty_weekly_schedule()
    return get_schedules_ui_ready(
        db,
        ScheduleFilters(
            class_id=student.class_id,
            section=student.section,
            academic_year=student.academic_year,
            day_of_week=filters.day_of_week,
        ),
    )


def get_admin_schedules(db: Session, user: User, filters: ScheduleFilters | dict | None = None) -> WeeklyScheduleOut:
    require_roles(user, UserRole.admin)
    return get_schedules_ui_ready(db, parse_filters(filters))


def get_teacher_schedules_for_me(
    db: Session,
    user: User,
    filters: ScheduleFilters | dict | None = None,
) -> WeeklyScheduleOut:
    require_roles(user, UserRole.teacher)
    requested = parse_filters(filters)
    profile = resolve_teacher_profile(db, user)
    if profile is None:
        raise ResourceNotFoundError("Teacher profile")
    logger.debug("Resolved teacher %s to profile %s", user.id, profile.id)
    return get_schedules_ui_ready(
        db,
        ScheduleFilters(
            teacher_id=profile.id,
            day_of_week=requested.day_of_week,
            academic_year=requested.academic_year,
        ),
    )


def get_student_schedules_for_me(
    db: Session,
    user: User,
    filters: ScheduleFilters | dict | None = None,
) -> WeeklyScheduleOut:
    require_roles(user, UserRole.student)
    requested = parse_filters(filters)
    profile = resolve_student_profile(db, user)
    if profile is None:
        raise ResourceNotFoundError("Student profile")
    logger.debug("Resolved student %s to profile %s", user.id, profile.id)
    return _student_view(db, profile, requested)


def get_parent_schedules_for_me(
    db: Session,
    user: User,
    filters: ScheduleFilters | dict | None = None,
) -> ParentScheduleOut:
    require_roles(user, UserRole.parent)
    requested = parse_filters(filters)
    profile = resolve_parent_profile(db, user)
    if profile is None:
        raise ResourceNotFoundError("Parent profile")

    names = get_user_names(db, (child.user_id for child in profile.children))
    children = sorted(profile.children, key=lambda child: (names.get(child.user_id) or "", child.id))
    logger.debug("Resolved parent %s to %d linked children", user.id, len(children))

    # One child without a class placement gets an empty week; siblings are unaffected.
    return ParentScheduleOut(
        children=[
            ChildScheduleOut(
                student_id=child.id,
                student_name=names.get(child.user_id),
                class_id=child.class_id,
                section=child.section,
                academic_year=child.academic_year,
                schedule=_student_view(db, child, requested),
            )
            for child in children
        ]
    )


def resolve_schedules_for_user(
    db: Session,
    user: User,
    filters: ScheduleFilters | dict | None = None,
) -> WeeklyScheduleOut | ParentScheduleOut:
    if user.role == UserRole.admin:
        return get_admin_schedules(db, user, filters)
    if user.role == UserRole.teacher:
        return get_teacher_schedules_for_me(db, user, filters)
    if user.role == UserRole.student:
        return get_student_schedules_for_me(db, user, filters)
    if user.role == UserRole.parent:
        return get_parent_schedules_for_me(db, user, filters)
    raise AuthorizationError()


def get_weekly_schedule_for_teacher_as(
    db: Session,
    user: User,
    teacher_id: str,
    academic_year: str | None = None,
) -> WeeklyScheduleOut:
    require_roles(user, UserRole.admin, UserRole.teacher)
    teacher_id = parse_identifier(teacher_id, label="teacher")
    if user.role == UserRole.teacher:
        profile = resolve_teacher_profile(db, user)
        if profile is None or profile.id != teacher_id:
            raise AuthorizationError("You can only view your own schedule")
    return get_schedules_ui_ready(db, parse_filters({"teacher_id": teacher_id, "academic_year": academic_year}))
