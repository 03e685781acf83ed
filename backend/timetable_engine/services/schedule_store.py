from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timetable_engine.core.exceptions import (
    AppError,
    PersistenceError,
    ResourceNotFoundError,
    ScheduleConflictError,
    ValidationError,
)
from timetable_engine.models.schedule import DAY_ORDER, DayOfWeek, ScheduleEntry
from timetable_engine.models.user import User
from timetable_engine.schemas.schedule import (
    ScheduleEntryCreate,
    ScheduleEntryUpdate,
    ScheduleFilters,
    ScheduleItemOut,
    normalize_identifier,
)
from timetable_engine.services.audit import log_activity
from timetable_engine.services.conflict_service import ScheduleSlot, check_conflicts
from timetable_engine.services.directory import class_exists, get_assigned_teacher, teacher_exists
from timetable_engine.services.projection import build_schedule_items
from timetable_engine.services.slot_lock import lock_schedule_buckets
from timetable_engine.services.time_utils import default_academic_year, to_minutes

logger = logging.getLogger(__name__)

ENTITY_TYPE = "schedule_entry"

MERGE_FIELDS = (
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
)

DAY_INDEX = {day: index for index, day in enumerate(DAY_ORDER)}


def parse_identifier(value: object, *, label: str = "schedule") -> str:
    """Normalise an id, rejecting anything that is not a UUID.

    A malformed id is a ``ValidationError``; whether a well-formed id exists is
    decided later and reported as ``ResourceNotFoundError``.
    """
    if value is None:
        raise ValidationError(f"{label.capitalize()} id is required")
    try:
        return normalize_identifier(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid {label} id format", details={"id": str(value)}) from exc


def _parse(model: type[BaseModel], payload: BaseModel | dict | None, *, label: str) -> BaseModel:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload or {})
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid {label}",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


@contextmanager
def _write_transaction(db: Session, action: str) -> Iterator[None]:
    try:
        yield
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Schedule %s failed in the backing store", action)
        raise PersistenceError() from exc


def _ensure_references(db: Session, *, class_id: str, teacher_id: str) -> None:
    if not class_exists(db, class_id):
        raise ValidationError(f"Class {class_id} does not exist", details={"class_id": class_id})
    if not teacher_exists(db, teacher_id):
        raise ValidationError(
            f"Teacher {teacher_id} does not resolve to a teacher profile",
            details={"teacher_id": teacher_id},
        )


def _reject_conflicts(conflicts: list, *, action: str) -> None:
    if not conflicts:
        return
    logger.warning(
        "Rejected schedule %s with %d conflict(s): %s",
        action,
        len(conflicts),
        ", ".join(sorted({conflict.type for conflict in conflicts})),
    )
    raise ScheduleConflictError(conflicts)


def _get_entry(db: Session, entry_id: str, *, include_inactive: bool = False) -> ScheduleEntry:
    entry = db.get(ScheduleEntry, entry_id)
    if entry is None or (not entry.is_active and not include_inactive):
        raise ResourceNotFoundError("Schedule", entry_id)
    return entry


def _bucket(academic_year: str, day: DayOfWeek | str) -> tuple[str, str]:
    return academic_year, DayOfWeek(day).value


def _lock_and_merge(db: Session, entry: ScheduleEntry, changes: dict) -> dict:
    """Lock the entry's current and target buckets, then merge ``changes`` over the stored row.

    The row is re-read under the lock. If another writer moved it to a bucket
    not yet held, that bucket is locked as well and the row is read again, so
    the merged state always reflects what is committed.
    """
    held: set[tuple[str, str]] = set()
    while True:
        # Untouched fields still take part in re-validation.
        merged = {field: changes.get(field, getattr(entry, field)) for field in MERGE_FIELDS}
        buckets = {
            _bucket(entry.academic_year, entry.day_of_week),
            _bucket(merged["academic_year"], merged["day_of_week"]),
        }
        if buckets <= held:
            return merged
        lock_schedule_buckets(db, buckets - held)
        held |= buckets
        db.refresh(entry, with_for_update=True)
        if not entry.is_active:
            raise ResourceNotFoundError("Schedule", entry.id)


def create_schedule_entry(
    db: Session,
    payload: ScheduleEntryCreate | dict,
    *,
    actor: User | None = None,
) -> ScheduleItemOut:
    data = _parse(ScheduleEntryCreate, payload, label="schedule data")

    with _write_transaction(db, "create"):
        assigned_teacher_id = get_assigned_teacher(db, data.subject_id)
        teacher_id = data.teacher_id or assigned_teacher_id
        if teacher_id is None:
            raise ValidationError(
                "Subject has no assigned teacher. Please assign a teacher to this subject first.",
                details={"subject_id": data.subject_id},
            )
        academic_year = data.academic_year or default_academic_year()
        _ensure_references(db, class_id=data.class_id, teacher_id=teacher_id)

        slot = ScheduleSlot(
            class_id=data.class_id,
            section=data.section,
            teacher_id=teacher_id,
            room=data.room,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            academic_year=academic_year,
        )
        lock_schedule_buckets(db, [(academic_year, data.day_of_week)])
        _reject_conflicts(check_conflicts(db, slot), action="create")

        entry = ScheduleEntry(
            class_id=data.class_id,
            section=data.section,
            subject_id=data.subject_id,
            teacher_id=teacher_id,
            room=data.room,
            day_of_week=data.day_of_week,
            period_number=data.period_number,
            start_time=data.start_time,
            end_time=data.end_time,
            academic_year=academic_year,
            is_active=True,
        )
        db.add(entry)
        db.flush()
        log_activity(
            db,
            user=actor,
            action="schedule.create",
            entity_type=ENTITY_TYPE,
            entity_id=entry.id,
            details={
                "day_of_week": data.day_of_week.value,
                "start_time": data.start_time,
                "end_time": data.end_time,
                "room": data.room,
                "academic_year": academic_year,
            },
        )

    db.refresh(entry)
    logger.info(
        "Created schedule %s (%s %s-%s, room %s)",
        entry.id,
        entry.day_of_week.value,
        entry.start_time,
        entry.end_time,
        entry.room,
    )
    return build_schedule_items(db, [entry])[0]


def update_schedule_entry(
    db: Session,
    entry_id: str,
    patch: ScheduleEntryUpdate | dict,
    *,
    actor: User | None = None,
) -> ScheduleItemOut:
    entry_id = parse_identifier(entry_id)
    data = _parse(ScheduleEntryUpdate, patch, label="schedule update")
    changes = data.changes()

    with _write_transaction(db, "update"):
        entry = _get_entry(db, entry_id)
        if not changes:
            return build_schedule_items(db, [entry])[0]

        merged = _lock_and_merge(db, entry, changes)
        if to_minutes(merged["end_time"]) <= to_minutes(merged["start_time"]):
            raise ValidationError(
                "End time must be after start time",
                details={"start_time": merged["start_time"], "end_time": merged["end_time"]},
            )
        if "subject_id" in changes:
            get_assigned_teacher(db, merged["subject_id"])
        if "class_id" in changes or "teacher_id" in changes:
            _ensure_references(db, class_id=merged["class_id"], teacher_id=merged["teacher_id"])

        slot = ScheduleSlot(
            class_id=merged["class_id"],
            section=merged["section"],
            teacher_id=merged["teacher_id"],
            room=merged["room"],
            day_of_week=DayOfWeek(merged["day_of_week"]),
            start_time=merged["start_time"],
            end_time=merged["end_time"],
            academic_year=merged["academic_year"],
        )
        _reject_conflicts(check_conflicts(db, slot, exclude_id=entry_id), action="update")

        for field, value in changes.items():
            setattr(entry, field, value)
        db.flush()
        log_activity(
            db,
            user=actor,
            action="schedule.update",
            entity_type=ENTITY_TYPE,
            entity_id=entry_id,
            details={
                "changes": {
                    key: value
                    for key, value in data.model_dump(mode="json", exclude_unset=True).items()
                    if value is not None
                }
            },
        )

    db.refresh(entry)
    logger.info("Updated schedule %s (%s)", entry_id, ", ".join(sorted(changes)))
    return build_schedule_items(db, [entry])[0]


def soft_delete_schedule_entry(db: Session, entry_id: str, *, actor: User | None = None) -> None:
    entry_id = parse_identifier(entry_id)

    with _write_transaction(db, "delete"):
        entry = _get_entry(db, entry_id, include_inactive=True)
        lock_schedule_buckets(db, [_bucket(entry.academic_year, entry.day_of_week)])
        db.refresh(entry, with_for_update=True)
        if not entry.is_active:
            logger.info("Schedule %s is already inactive", entry_id)
            return
        entry.is_active = False
        log_activity(
            db,
            user=actor,
            action="schedule.delete",
            entity_type=ENTITY_TYPE,
            entity_id=entry_id,
        )

    logger.info("Soft-deleted schedule %s", entry_id)


def get_schedule_entry(db: Session, entry_id: str, *, include_inactive: bool = False) -> ScheduleItemOut:
    entry_id = parse_identifier(entry_id)
    entry = _get_entry(db, entry_id, include_inactive=include_inactive)
    return build_schedule_items(db, [entry])[0]


def parse_filters(filters: ScheduleFilters | dict | None) -> ScheduleFilters:
    return _parse(ScheduleFilters, filters, label="schedule filters")


def list_schedule_entries(db: Session, filters: ScheduleFilters | dict | None = None) -> list[ScheduleEntry]:
    criteria = parse_filters(filters)
    query = select(ScheduleEntry).where(ScheduleEntry.is_active.is_(True))
    if criteria.class_id is not None:
        query = query.where(ScheduleEntry.class_id == criteria.class_id)
    if criteria.section is not None:
        query = query.where(ScheduleEntry.section == criteria.section)
    if criteria.teacher_id is not None:
        query = query.where(ScheduleEntry.teacher_id == criteria.teacher_id)
    if criteria.day_of_week is not None:
        query = query.where(ScheduleEntry.day_of_week == criteria.day_of_week)
    if criteria.academic_year is not None:
        query = query.where(ScheduleEntry.academic_year == criteria.academic_year)
    query = query.order_by(ScheduleEntry.created_at.desc())

    entries = list(db.execute(query).scalars())
    # Stored times may lack zero padding, so ordering is done on parsed minutes.
    entries.sort(key=lambda entry: (DAY_INDEX.get(entry.day_of_week.value, len(DAY_INDEX)), to_minutes(entry.start_time)))
    return entries
