from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
import logging
from threading import Lock

from app.core.exceptions import AppError, SubmissionInProgressError, ValidationError
from app.schemas.timetable import (
    BulkDayResult,
    ConflictResult,
    PeriodOut,
    SubjectOut,
    TeacherOut,
    TimetableEntryOut,
    day_name,
)
from app.services.bulk_day import BulkDayOperator
from app.services.conflict_checker import ConflictChecker, validate_day_of_week
from app.services.occupancy import OccupancyIndex
from app.services.slot_assignment import SlotAssignmentEngine
from app.services.timetable_store import TimetableStore

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[int, str], bool]


class TimetableBuilderSession:
    """Everything a timetable grid needs for one section and academic year.

    Writes go through the assignment engine or the bulk operator and are
    always followed by a full reload; the occupancy index is never patched
    locally. Only one write may be in flight at a time.
    """

    def __init__(
        self,
        store: TimetableStore,
        *,
        section_id: str,
        academic_year_id: str,
        campus_id: str | None = None,
        on_change: Callable[[OccupancyIndex], None] | None = None,
    ) -> None:
        self.store = store
        self.section_id = section_id
        self.academic_year_id = academic_year_id
        self.campus_id = campus_id
        self.on_change = on_change

        self.checker = ConflictChecker(store)
        self.assignments = SlotAssignmentEngine(store, self.checker)
        self.bulk = BulkDayOperator(store, self.checker)

        self.subjects: list[SubjectOut] = []
        self.teachers: list[TeacherOut] = []
        self._periods: list[PeriodOut] = []
        self._index = OccupancyIndex.empty(section_id=section_id, academic_year_id=academic_year_id)
        self._saving = Lock()

    @property
    def occupancy(self) -> OccupancyIndex:
        return self._index

    @property
    def periods(self) -> list[PeriodOut]:
        return list(self._periods)

    @property
    def saving(self) -> bool:
        return self._saving.locked()

    @contextmanager
    def _submission(self) -> Iterator[None]:
        if not self._saving.acquire(blocking=False):
            raise SubmissionInProgressError()
        try:
            yield
        finally:
            self._saving.release()

    def reload(self) -> OccupancyIndex:
        entries = self.store.list_entries(self.section_id, self.academic_year_id)
        if self.campus_id:
            self._periods = sorted(self.store.list_periods(self.campus_id), key=lambda period: period.sort_order)
        self._index = OccupancyIndex.build(
            entries,
            section_id=self.section_id,
            academic_year_id=self.academic_year_id,
        )
        if self.on_change is not None:
            self.on_change(self._index)
        return self._index

    def load_roster(self, grade_id: str | None = None) -> None:
        # The grid stays usable with an empty picker when a roster fails to load.
        try:
            self.subjects = self.store.list_subjects(grade_id, self.campus_id)
        except AppError:
            logger.warning("Failed to load subjects for section %s", self.section_id, exc_info=True)
            self.subjects = []
        try:
            self.teachers = self.store.list_teachers(self.campus_id)
        except AppError:
            logger.warning("Failed to load teachers for section %s", self.section_id, exc_info=True)
            self.teachers = []

    def get_period(self, period_id: str) -> PeriodOut | None:
        return next((period for period in self._periods if period.id == period_id), None)

    def get_entry_for_slot(self, day_of_week: int, period_id: str) -> TimetableEntryOut | None:
        return self._index.get(day_of_week, period_id)

    def grid(self) -> list[list[TimetableEntryOut | None]]:
        return self._index.grid(self._periods)

    def preview_conflict(
        self,
        teacher_id: str | None,
        day_of_week: int,
        period_id: str,
        existing_entry_id: str | None = None,
    ) -> ConflictResult | None:
        if not teacher_id:
            return None
        return self.checker.preview(teacher_id, day_of_week, period_id, self.academic_year_id, existing_entry_id)

    def assign_slot(
        self,
        day_of_week: int,
        period_id: str,
        *,
        subject_id: str | None,
        teacher_id: str | None,
        room_number: str | None = None,
        existing_entry: TimetableEntryOut | None = None,
        created_by: str | None = None,
    ) -> TimetableEntryOut:
        if existing_entry is not None and (existing_entry.day_of_week, existing_entry.period_id) != (day_of_week, period_id):
            raise ValidationError("Selected entry does not occupy this slot", field="existing_entry")
        # An occupied cell is always edited in place, never doubled up.
        existing = existing_entry or self._index.get(day_of_week, period_id)
        with self._submission():
            entry = self.assignments.assign_slot(
                section_id=self.section_id,
                period_id=period_id,
                day_of_week=day_of_week,
                subject_id=subject_id,
                teacher_id=teacher_id,
                academic_year_id=self.academic_year_id,
                room_number=room_number,
                existing_entry_id=existing.id if existing is not None else None,
                campus_id=self.campus_id,
                created_by=created_by,
                period=self.get_period(period_id),
            )
            self.reload()
        return entry

    def erase_slot(self, entry: TimetableEntryOut | str) -> None:
        entry_id = entry if isinstance(entry, str) else entry.id
        with self._submission():
            self.assignments.erase_slot(entry_id)
            self.reload()

    def copy_day(self, from_day: int, to_day: int) -> BulkDayResult:
        with self._submission():
            result = self.bulk.copy_day(
                from_day,
                to_day,
                self.section_id,
                self.academic_year_id,
                campus_id=self.campus_id,
            )
            if not result.nothing_to_copy:
                self.reload()
        return result

    def clear_day(self, day_of_week: int, confirm: ConfirmCallback | bool = False) -> BulkDayResult | None:
        """Delete every entry on a weekday after confirmation.

        Returns None when the confirmation is declined.
        """
        validate_day_of_week(day_of_week)
        count = len(self._index.entries_for_day(day_of_week))
        if count == 0:
            return BulkDayResult(operation="clear_day", nothing_to_clear=True)

        confirmed = confirm(count, day_name(day_of_week)) if callable(confirm) else bool(confirm)
        if not confirmed:
            return None

        with self._submission():
            result = self.bulk.clear_day(
                day_of_week,
                self.section_id,
                self.academic_year_id,
                confirm=True,
            )
            self.reload()
        return result
