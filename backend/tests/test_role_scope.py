import pytest

from timetable_engine.core.exceptions import AuthorizationError, ResourceNotFoundError
from timetable_engine.models.schedule import DAY_ORDER
from timetable_engine.models.user import UserRole
from timetable_engine.schemas.schedule import ParentScheduleOut, WeeklyScheduleOut
from timetable_engine.services.role_scope import (
    get_admin_schedules,
    get_parent_schedules_for_me,
    get_student_schedules_for_me,
    get_teacher_schedules_for_me,
    get_weekly_schedule_for_teacher_as,
    require_roles,
    resolve_schedules_for_user,
)
from timetable_engine.services.schedule_store import create_schedule_entry

YEAR = "2025-2026"


def seed_week(db, school, slot_payload):
    """Maths for 10-A with teacher one, physics for 10-B with teacher two."""
    maths = create_schedule_entry(db, slot_payload())
    physics = create_schedule_entry(
        db,
        slot_payload(
            class_id=school["class_10b"].id,
            section="B",
            subject_id=school["physics"].id,
            teacher_id=school["t2"].id,
            room="Lab 1",
            day_of_week="Tuesday",
        ),
    )
    return maths, physics


def test_admin_sees_everything_and_filters_pass_through(db, directory, school, slot_payload):
    maths, physics = seed_week(db, school, slot_payload)
    admin = directory.admin()

    everything = get_admin_schedules(db, admin)
    only_tuesday = get_admin_schedules(db, admin, {"day_of_week": "Tuesday"})

    assert {item.id for item in everything.items} == {maths.id, physics.id}
    assert [item.id for item in only_tuesday.items] == [physics.id]


def test_teacher_sees_only_own_sessions(db, directory, school, slot_payload):
    maths, _ = seed_week(db, school, slot_payload)
    user = directory.teacher_user(school["t1"])

    view = get_teacher_schedules_for_me(db, user)

    assert [item.id for item in view.items] == [maths.id]
    assert view.grouped_by_day["Tuesday"] == []


def test_teacher_filter_cannot_widen_scope(db, directory, school, slot_payload):
    seed_week(db, school, slot_payload)
    user = directory.teacher_user(school["t1"])

    view = get_teacher_schedules_for_me(db, user, {"teacher_id": school["t2"].id})

    assert {item.teacher_id for item in view.items} == {school["t1"].id}


def test_teacher_without_profile_is_not_found(db, directory):
    user = directory.user("Orphan Teacher", UserRole.teacher)

    with pytest.raises(ResourceNotFoundError) as exc_info:
        get_teacher_schedules_for_me(db, user)
    assert exc_info.value.message == "Teacher profile not found"


def test_teacher_cannot_read_another_teachers_week(db, directory, school, slot_payload):
    _, physics = seed_week(db, school, slot_payload)
    user = directory.teacher_user(school["t1"])

    with pytest.raises(AuthorizationError) as exc_info:
        get_weekly_schedule_for_teacher_as(db, user, school["t2"].id)
    assert exc_info.value.status_code == 403

    own = get_weekly_schedule_for_teacher_as(db, user, school["t1"].id)
    assert all(item.teacher_id == school["t1"].id for item in own.items)

    as_admin = get_weekly_schedule_for_teacher_as(db, directory.admin(), school["t2"].id)
    assert [item.id for item in as_admin.items] == [physics.id]


def test_unplaced_student_gets_empty_week(db, directory, school, slot_payload):
    seed_week(db, school, slot_payload)
    user, _ = directory.student("New Student")

    view = get_student_schedules_for_me(db, user)

    assert isinstance(view, WeeklyScheduleOut)
    assert view.items == []
    assert list(view.grouped_by_day) == DAY_ORDER
    assert all(items == [] for items in view.grouped_by_day.values())


def test_placed_student_sees_their_class(db, directory, school, slot_payload):
    maths, _ = seed_week(db, school, slot_payload)
    user, _ = directory.student(
        "Placed Student", school_class=school["class_10a"], section="A", academic_year=YEAR
    )

    view = get_student_schedules_for_me(db, user)

    assert [item.id for item in view.items] == [maths.id]
    assert view.items[0].subject.name == "Mathematics"


def test_student_without_profile_is_not_found(db, directory):
    user = directory.user("Orphan Student", UserRole.student)

    with pytest.raises(ResourceNotFoundError):
        get_student_schedules_for_me(db, user)


def test_parent_gets_one_view_per_child(db, directory, school, slot_payload):
    maths, _ = seed_week(db, school, slot_payload)
    _, placed = directory.student(
        "Bea Student", school_class=school["class_10a"], section="A", academic_year=YEAR
    )
    _, unplaced = directory.student("Abe Student")
    parent, _ = directory.parent("Parent", children=[placed, unplaced])

    view = get_parent_schedules_for_me(db, parent)

    assert isinstance(view, ParentScheduleOut)
    assert [child.student_name for child in view.children] == ["Abe Student", "Bea Student"]
    empty, populated = view.children
    assert empty.student_id == unplaced.id
    assert empty.schedule.items == []
    assert list(empty.schedule.grouped_by_day) == DAY_ORDER
    assert populated.class_id == school["class_10a"].id
    assert [item.id for item in populated.schedule.items] == [maths.id]


def test_parent_without_children_gets_empty_list(db, directory):
    parent, _ = directory.parent("Lonely Parent")

    assert get_parent_schedules_for_me(db, parent).children == []


def test_resolve_dispatches_on_role(db, directory, school, slot_payload):
    maths, physics = seed_week(db, school, slot_payload)
    parent, _ = directory.parent("Parent")

    assert len(resolve_schedules_for_user(db, directory.admin()).items) == 2
    teacher_view = resolve_schedules_for_user(db, directory.teacher_user(school["t2"]))
    assert [item.id for item in teacher_view.items] == [physics.id]
    assert isinstance(resolve_schedules_for_user(db, parent), ParentScheduleOut)
    assert maths.id not in {item.id for item in teacher_view.items}


def test_wrong_role_is_rejected(db, directory, school):
    student, _ = directory.student("Curious Student")

    with pytest.raises(AuthorizationError) as exc_info:
        get_admin_schedules(db, student)
    assert exc_info.value.message == "Insufficient permissions"

    with pytest.raises(AuthorizationError):
        get_weekly_schedule_for_teacher_as(db, student, school["t1"].id)


def test_inactive_user_is_rejected(db, directory):
    admin = directory.admin()
    admin.is_active = False
    db.commit()

    with pytest.raises(AuthorizationError) as exc_info:
        require_roles(admin, UserRole.admin)
    assert exc_info.value.message == "User account is inactive"
