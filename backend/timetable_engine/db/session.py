from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from timetable_engine.core.config import get_settings
from timetable_engine.core.exceptions import ConfigurationError


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    if not database_url or not database_url.strip():
        raise ConfigurationError("database_url must be configured")
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, pool_pre_ping=True, connect_args=connect_args)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.sql_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
