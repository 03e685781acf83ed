import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from timetable_engine.db import bootstrap


def _raise_error(message: str):
    raise RuntimeError(message)


def _sqlite_engine():
    return create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_schedule_period_number_column", lambda engine: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda engine: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility(_sqlite_engine())


def test_runtime_schema_bootstrap_creates_missing_tables():
    engine = _sqlite_engine()

    bootstrap.ensure_runtime_schema_compatibility(engine)

    table_names = set(inspect(engine).get_table_names())
    assert set(bootstrap.REQUIRED_COLUMNS) <= table_names
    assert "activity_logs" in table_names


def test_runtime_schema_bootstrap_adds_period_number_to_old_tables():
    engine = _sqlite_engine()
    with engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE schedule_entries ("
                "id VARCHAR(36) PRIMARY KEY, class_id VARCHAR(36), section VARCHAR(20), "
                "subject_id VARCHAR(36), teacher_id VARCHAR(36), room VARCHAR(100), "
                "day_of_week VARCHAR(10), start_time VARCHAR(5), end_time VARCHAR(5), "
                "academic_year VARCHAR(9), is_active BOOLEAN, "
                "created_at DATETIME, updated_at DATETIME)"
            )
        )

    bootstrap.ensure_runtime_schema_compatibility(engine)

    columns = {column["name"] for column in inspect(engine).get_columns("schedule_entries")}
    assert "period_number" in columns
