from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from timetable_engine.core.config import normalize_academic_year
from timetable_engine.models.schedule import DayOfWeek
from timetable_engine.services.time_utils import is_valid_time, normalize_time, to_minutes


def normalize_identifier(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        return str(uuid.UUID(str(value).strip()))
    except ValueError as exc:
        raise ValueError("must be a valid identifier") from exc


def _normalize_section(value: str | None) -> str | None:
    if value is None or not isinstance(value, str):
        return value
    section = value.strip().upper()
    if not section:
        raise ValueError("Section is required")
    return section


def _normalize_time_value(value: str | None) -> str | None:
    if value is None:
        return None
    if not is_valid_time(value):
        raise ValueError(f"{value} is not a valid time format (HH:MM)")
    return normalize_time(value)


class ScheduleEntryCreate(BaseModel):
    class_id: str
    section: str = Field(min_length=1, max_length=20)
    subject_id: str
    teacher_id: str | None = None
    room: str = Field(min_length=1, max_length=100)
    day_of_week: DayOfWeek
    period_number: int | None = Field(default=None, ge=1)
    start_time: str
    end_time: str
    academic_year: str | None = Field(default=None, max_length=20)

    @field_validator("class_id", "subject_id", "teacher_id", mode="before")
    @classmethod
    def validate_identifiers(cls, value: str | None) -> str | None:
        return normalize_identifier(value)

    @field_validator("section", mode="before")
    @classmethod
    def validate_section(cls, value: str) -> str:
        return _normalize_section(value)

    @field_validator("room", mode="before")
    @classmethod
    def validate_room(cls, value: str) -> str:
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _normalize_time_value(value)

    @field_validator("academic_year")
    @classmethod
    def validate_academic_year(cls, value: str | None) -> str | None:
        return normalize_academic_year(value)

    @model_validator(mode="after")
    def validate_order(self) -> "ScheduleEntryCreate":
        if to_minutes(self.end_time) <= to_minutes(self.start_time):
            raise ValueError("End time must be after start time")
        return self


class ScheduleEntryUpdate(BaseModel):
    class_id: str | None = None
    section: str | None = Field(default=None, min_length=1, max_length=20)
    subject_id: str | None = None
    teacher_id: str | None = None
    room: str | None = Field(default=None, min_length=1, max_length=100)
    day_of_week: DayOfWeek | None = None
    period_number: int | None = Field(default=None, ge=1)
    start_time: str | None = None
    end_time: str | None = None
    academic_year: str | None = Field(default=None, max_length=20)

    @field_validator("class_id", "subject_id", "teacher_id", mode="before")
    @classmethod
    def validate_identifiers(cls, value: str | None) -> str | None:
        return normalize_identifier(value)

    @field_validator("section", mode="before")
    @classmethod
    def validate_section(cls, value: str | None) -> str | None:
        return _normalize_section(value)

    @field_validator("room", mode="before")
    @classmethod
    def validate_room(cls, value: str | None) -> str | None:
        return value.strip() if isinstance(value, str) else value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        return _normalize_time_value(value)

    @field_validator("academic_year")
    @classmethod
    def validate_academic_year(cls, value: str | None) -> str | None:
        return normalize_academic_year(value)

    def changes(self) -> dict:
        """Fields the caller actually supplied; ``None`` means "leave as stored"."""
        return {key: value for key, value in self.model_dump(exclude_unset=True).items() if value is not None}


class ScheduleFilters(BaseModel):
    class_id: str | None = None
    section: str | None = None
    teacher_id: str | None = None
    day_of_week: DayOfWeek | None = None
    academic_year: str | None = None

    @field_validator("class_id", "teacher_id", mode="before")
    @classmethod
    def validate_identifiers(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return normalize_identifier(value)

    @field_validator("section", mode="before")
    @classmethod
    def validate_section(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return _normalize_section(value)

    @field_validator("academic_year")
    @classmethod
    def validate_academic_year(cls, value: str | None) -> str | None:
        return normalize_academic_year(value)


class ClassSummary(BaseModel):
    id: str
    name: str
    section: str
    academic_year: str


class SubjectSummary(BaseModel):
    id: str
    name: str
    code: str


class TeacherSummary(BaseModel):
    id: str
    name: str | None = None


class ScheduleItemOut(BaseModel):
    id: str
    class_id: str
    subject_id: str
    teacher_id: str
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    room: str
    section: str
    academic_year: str
    period_number: int | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    school_class: ClassSummary | None = None
    subject: SubjectSummary | None = None
    teacher: TeacherSummary | None = None


class WeeklyScheduleOut(BaseModel):
    items: list[ScheduleItemOut] = Field(default_factory=list)
    grouped_by_day: dict[str, list[ScheduleItemOut]] = Field(default_factory=dict)


class ChildScheduleOut(BaseModel):
    student_id: str
    student_name: str | None = None
    class_id: str | None = None
    section: str | None = None
    academic_year: str | None = None
    schedule: WeeklyScheduleOut


class ParentScheduleOut(BaseModel):
    children: list[ChildScheduleOut] = Field(default_factory=list)
