from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

import timetable_engine.models  # noqa: F401
from timetable_engine.db.base import Base
from timetable_engine.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "schedule_entries": {
        "id",
        "class_id",
        "section",
        "subject_id",
        "teacher_id",
        "room",
        "day_of_week",
        "period_number",
        "start_time",
        "end_time",
        "academic_year",
        "is_active",
    },
    "schedule_locks": {"academic_year", "day_of_week", "version"},
    "subjects": {"id", "assigned_teacher_id"},
    "student_profiles": {"id", "class_id", "section", "academic_year"},
    "users": {"id", "role", "profile_id"},
}


def _ensure_schedule_period_number_column(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "schedule_entries" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("schedule_entries")}
        if "period_number" in column_names:
            return
        connection.execute(text("ALTER TABLE schedule_entries ADD COLUMN period_number INTEGER"))


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility(engine: Engine | None = None) -> None:
    bind = engine or default_engine
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=bind)
        _ensure_schedule_period_number_column(bind)
        _assert_required_columns(bind)
    except Exception as exc:
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
