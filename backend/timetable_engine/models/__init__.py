from timetable_engine.models.activity_log import ActivityLog  # noqa: F401
from timetable_engine.models.profiles import (  # noqa: F401
    ParentProfile,
    StudentProfile,
    TeacherProfile,
    parent_children,
)
from timetable_engine.models.schedule import DAY_ORDER, DayOfWeek, ScheduleEntry, ScheduleLock  # noqa: F401
from timetable_engine.models.school_class import SchoolClass  # noqa: F401
from timetable_engine.models.subject import Subject  # noqa: F401
from timetable_engine.models.user import User, UserRole  # noqa: F401
