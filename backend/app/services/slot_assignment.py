from __future__ import annotations

import logging

from app.core.exceptions import ValidationError
from app.schemas.timetable import PeriodOut, TimetableEntryCreate, TimetableEntryOut, TimetableEntryUpdate
from app.services.conflict_checker import ConflictChecker, validate_day_of_week
from app.services.timetable_store import TimetableStore

logger = logging.getLogger(__name__)


def _require(value: str | None, field: str, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"Please select a {label}", field=field)
    return cleaned


def reject_break_period(period: PeriodOut | None) -> None:
    if period is not None and period.is_break:
        raise ValidationError("Cannot assign classes during break", field="period_id")


def _clean_room(room_number: str | None) -> str | None:
    if room_number is None:
        return None
    return room_number.strip() or None


class SlotAssignmentEngine:
    """Commits or removes a single slot's (subject, teacher, room) assignment."""

    def __init__(self, store: TimetableStore, checker: ConflictChecker | None = None) -> None:
        self.store = store
        self.checker = checker or ConflictChecker(store)

    def assign_slot(
        self,
        *,
        section_id: str,
        period_id: str,
        day_of_week: int,
        subject_id: str | None,
        teacher_id: str | None,
        academic_year_id: str,
        room_number: str | None = None,
        existing_entry_id: str | None = None,
        campus_id: str | None = None,
        created_by: str | None = None,
        period: PeriodOut | None = None,
    ) -> TimetableEntryOut:
        # Local validation happens before any store call.
        subject_id = _require(subject_id, "subject_id", "subject")
        teacher_id = _require(teacher_id, "teacher_id", "teacher")
        validate_day_of_week(day_of_week)
        reject_break_period(period)
        room_number = _clean_room(room_number)

        # The live warning may be stale by the time the user clicks save.
        self.checker.ensure_free(teacher_id, day_of_week, period_id, academic_year_id, existing_entry_id)

        if existing_entry_id:
            patch = TimetableEntryUpdate(subject_id=subject_id, teacher_id=teacher_id, room_number=room_number)
            entry = self.store.update_entry(existing_entry_id, patch)
            logger.info("Updated timetable entry %s (day %s, period %s)", entry.id, day_of_week, period_id)
            return entry

        entry = self.store.create_entry(
            TimetableEntryCreate(
                section_id=section_id,
                subject_id=subject_id,
                teacher_id=teacher_id,
                period_id=period_id,
                day_of_week=day_of_week,
                academic_year_id=academic_year_id,
                room_number=room_number,
                campus_id=campus_id,
                created_by=created_by,
            )
        )
        logger.info("Assigned timetable entry %s (day %s, period %s)", entry.id, day_of_week, period_id)
        return entry

    def erase_slot(self, entry_id: str) -> None:
        # Removing an entry can never create a conflict.
        if not entry_id:
            raise ValidationError("No entry selected", field="entry_id")
        self.store.delete_entry(entry_id)
        logger.info("Erased timetable entry %s", entry_id)
