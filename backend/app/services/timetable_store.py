from __future__ import annotations

from typing import Protocol

from app.schemas.timetable import (
    ConflictResult,
    PeriodOut,
    SubjectOut,
    TeacherOut,
    TimetableEntryCreate,
    TimetableEntryOut,
    TimetableEntryUpdate,
)


class TimetableStore(Protocol):
    """Backing store the timetable engine reads from and writes to.

    Implementations raise PersistenceError when the store fails or rejects a
    write, and ConflictError when the store itself refuses a double-booking.
    """

    def list_periods(self, campus_id: str) -> list[PeriodOut]: ...

    def list_entries(self, section_id: str, academic_year_id: str) -> list[TimetableEntryOut]: ...

    def create_entry(self, entry: TimetableEntryCreate) -> TimetableEntryOut: ...

    def update_entry(self, entry_id: str, patch: TimetableEntryUpdate) -> TimetableEntryOut: ...

    def delete_entry(self, entry_id: str) -> None: ...

    def check_teacher_conflict(
        self,
        teacher_id: str,
        day_of_week: int,
        period_id: str,
        academic_year_id: str,
        exclude_entry_id: str | None = None,
    ) -> ConflictResult: ...

    def list_subjects(self, grade_id: str | None = None, campus_id: str | None = None) -> list[SubjectOut]: ...

    def list_teachers(self, campus_id: str | None = None) -> list[TeacherOut]: ...
