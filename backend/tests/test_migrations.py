from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from timetable_engine.db.bootstrap import REQUIRED_COLUMNS

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "database" / "migrations"


def _alembic_config(url: str) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", url)
    return config


def test_migrations_upgrade_and_downgrade_on_sqlite(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    url = f"sqlite+pysqlite:///{tmp_path / 'migrated.db'}"
    config = _alembic_config(url)

    command.upgrade(config, "head")

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert set(REQUIRED_COLUMNS) <= tables
        assert {"activity_logs", "parent_children", "alembic_version"} <= tables
        for table_name, required in REQUIRED_COLUMNS.items():
            columns = {column["name"] for column in inspector.get_columns(table_name)}
            assert required <= columns, table_name

        command.downgrade(config, "base")

        assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    finally:
        engine.dispose()
