from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from timetable_engine.models.schedule import DayOfWeek, ScheduleLock

logger = logging.getLogger(__name__)


def _insert_missing(db: Session, academic_year: str, day: str) -> None:
    dialect_name = db.get_bind().dialect.name
    values = {"academic_year": academic_year, "day_of_week": day, "version": 0}
    if dialect_name == "postgresql":
        statement = postgresql.insert(ScheduleLock).values(**values).on_conflict_do_nothing(
            index_elements=["academic_year", "day_of_week"]
        )
        db.execute(statement)
        return
    if dialect_name == "sqlite":
        statement = sqlite.insert(ScheduleLock).values(**values).on_conflict_do_nothing(
            index_elements=["academic_year", "day_of_week"]
        )
        db.execute(statement)
        return

    existing = db.execute(
        select(ScheduleLock).where(
            ScheduleLock.academic_year == academic_year,
            ScheduleLock.day_of_week == day,
        )
    ).scalar_one_or_none()
    if existing is None:
        db.add(ScheduleLock(**values))
        db.flush()


def lock_schedule_buckets(db: Session, buckets: Iterable[tuple[str, DayOfWeek | str]]) -> None:
    """Take the write lock on each (academic year, day) bucket for this transaction.

    Bumping the version row blocks any other writer touching the same bucket
    until commit or rollback, so its conflict check runs against committed
    data. Buckets are locked in sorted order so two writers never deadlock.
    """
    keys = sorted({(year, DayOfWeek(day).value) for year, day in buckets})
    for academic_year, day in keys:
        _insert_missing(db, academic_year, day)
        db.execute(
            update(ScheduleLock)
            .where(
                ScheduleLock.academic_year == academic_year,
                ScheduleLock.day_of_week == day,
            )
            .values(version=ScheduleLock.version + 1)
        )
        logger.debug("Locked schedule bucket %s/%s", academic_year, day)
