from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
MAX_DAY_INDEX = len(DAY_NAMES) - 1


def day_name(day_of_week: int) -> str:
    if 0 <= day_of_week <= MAX_DAY_INDEX:
        return DAY_NAMES[day_of_week]
    return f"Day {day_of_week}"


def period_label(short_name: str | None, sort_order: int) -> str:
    return short_name or f"P{sort_order}"


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class PeriodOut(BaseModel):
    id: str
    campus_id: str
    sort_order: int
    short_name: str = ""
    title: str | None = None
    length_minutes: int | None = None
    start_time: str | None = None
    end_time: str | None = None
    is_break: bool = False

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def label(self) -> str:
        return period_label(self.short_name, self.sort_order)

    @computed_field
    @property
    def duration_label(self) -> str:
        if self.length_minutes:
            return f"{self.length_minutes}min"
        return ""


class SubjectOut(BaseModel):
    id: str
    name: str
    code: str | None = None
    grade_id: str | None = None
    campus_id: str | None = None

    model_config = {"from_attributes": True}


class TeacherOut(BaseModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    display_name: str = "Unassigned"
    campus_id: str | None = None

    model_config = {"from_attributes": True}


class TimetableEntryCreate(BaseModel):
    section_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    period_id: str = Field(min_length=1, max_length=36)
    day_of_week: int = Field(ge=0, le=MAX_DAY_INDEX)
    academic_year_id: str = Field(min_length=1, max_length=36)
    room_number: str | None = Field(default=None, max_length=50)
    campus_id: str | None = Field(default=None, max_length=36)
    created_by: str | None = Field(default=None, max_length=36)

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class TimetableEntryUpdate(BaseModel):
    subject_id: str | None = Field(default=None, min_length=1, max_length=36)
    teacher_id: str | None = Field(default=None, min_length=1, max_length=36)
    period_id: str | None = Field(default=None, min_length=1, max_length=36)
    day_of_week: int | None = Field(default=None, ge=0, le=MAX_DAY_INDEX)
    room_number: str | None = Field(default=None, max_length=50)

    @field_validator("room_number")
    @classmethod
    def normalize_room_number(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def reject_null_references(self) -> "TimetableEntryUpdate":
        # room_number may be cleared; the references may only be replaced.
        for name in ("subject_id", "teacher_id", "period_id", "day_of_week"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class TimetableEntryOut(BaseModel):
    id: str
    section_id: str
    subject_id: str
    teacher_id: str
    period_id: str
    day_of_week: int
    academic_year_id: str
    room_number: str | None = None
    campus_id: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None

    section_name: str | None = None
    grade_name: str | None = None
    subject_name: str | None = None
    teacher_name: str | None = None
    period_label: str | None = None
    period_sort_order: int | None = None
    start_time: str | None = None
    end_time: str | None = None

    model_config = {"from_attributes": True}


class ConflictResult(BaseModel):
    has_conflict: bool
    conflict_details: str | None = None


class CopyDayRequest(BaseModel):
    from_day: int = Field(ge=0, le=MAX_DAY_INDEX)
    to_day: int = Field(ge=0, le=MAX_DAY_INDEX)
    academic_year_id: str = Field(min_length=1, max_length=36)
    campus_id: str | None = Field(default=None, max_length=36)

    @model_validator(mode="after")
    def validate_distinct_days(self) -> "CopyDayRequest":
        if self.from_day == self.to_day:
            raise ValueError("from_day and to_day must differ")
        return self


class ClearDayRequest(BaseModel):
    day: int = Field(ge=0, le=MAX_DAY_INDEX)
    academic_year_id: str = Field(min_length=1, max_length=36)
    confirm: bool = False


OutcomeStatus = Literal["created", "skipped", "deleted", "failed"]


class EntryOutcome(BaseModel):
    source_entry_id: str
    period_id: str
    status: OutcomeStatus
    reason: str | None = None
    entry_id: str | None = None


class BulkDayResult(BaseModel):
    operation: Literal["copy_day", "clear_day"]
    requested: int = 0
    created: int = 0
    skipped: int = 0
    deleted: int = 0
    failed: int = 0
    nothing_to_copy: bool = False
    nothing_to_clear: bool = False
    outcomes: list[EntryOutcome] = Field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return self.skipped > 0 or self.failed > 0

    def summary(self) -> str:
        if self.operation == "copy_day":
            if self.nothing_to_copy:
                return "Nothing to copy"
            text = f"Copied {self.created} entries. Skipped {self.skipped} (conflicts/existing)."
        else:
            if self.nothing_to_clear:
                return "Nothing to clear"
            text = f"Cleared {self.deleted} of {self.requested} entries."
        if self.failed:
            text += f" {self.failed} failed."
        return text
