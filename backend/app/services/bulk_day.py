from __future__ import annotations

import logging

from app.core.exceptions import AppError, ConfirmationRequiredError, ConflictError, ValidationError
from app.schemas.timetable import (
    BulkDayResult,
    EntryOutcome,
    TimetableEntryCreate,
    day_name,
)
from app.services.conflict_checker import ConflictChecker, validate_day_of_week
from app.services.occupancy import OccupancyIndex
from app.services.timetable_store import TimetableStore

logger = logging.getLogger(__name__)


class BulkDayOperator:
    """Copy or clear a whole weekday of one section's timetable.

    Entries are processed one at a time and each write is independent: a
    failure is recorded as an outcome and the loop moves on. Both operations
    start from a fresh read of the store, so running them again after a
    partial failure only touches slots that are still unresolved.
    """

    def __init__(self, store: TimetableStore, checker: ConflictChecker | None = None) -> None:
        self.store = store
        self.checker = checker or ConflictChecker(store)

    def _load_index(self, section_id: str, academic_year_id: str) -> OccupancyIndex:
        return OccupancyIndex.build(
            self.store.list_entries(section_id, academic_year_id),
            section_id=section_id,
            academic_year_id=academic_year_id,
        )

    def _break_period_ids(self, campus_id: str | None) -> set[str]:
        if not campus_id:
            return set()
        return {period.id for period in self.store.list_periods(campus_id) if period.is_break}

    def copy_day(
        self,
        from_day: int,
        to_day: int,
        section_id: str,
        academic_year_id: str,
        campus_id: str | None = None,
    ) -> BulkDayResult:
        validate_day_of_week(from_day, "from_day")
        validate_day_of_week(to_day, "to_day")
        if from_day == to_day:
            raise ValidationError("Cannot copy a day onto itself", field="to_day")

        index = self._load_index(section_id, academic_year_id)
        source_entries = index.entries_for_day(from_day)
        result = BulkDayResult(operation="copy_day", requested=len(source_entries))
        if not source_entries:
            result.nothing_to_copy = True
            logger.info("No entries found for %s in section %s", day_name(from_day), section_id)
            return result

        break_period_ids = self._break_period_ids(campus_id or source_entries[0].campus_id)
        for entry in source_entries:
            outcome = EntryOutcome(source_entry_id=entry.id, period_id=entry.period_id, status="skipped")
            if entry.period_id in break_period_ids:
                outcome.reason = "break_period"
                result.skipped += 1
                result.outcomes.append(outcome)
                continue
            if index.is_occupied(to_day, entry.period_id):
                outcome.reason = "occupied"
                result.skipped += 1
                result.outcomes.append(outcome)
                continue

            try:
                conflict = self.checker.check(entry.teacher_id, to_day, entry.period_id, academic_year_id)
                if conflict.has_conflict:
                    outcome.reason = f"teacher_conflict: {conflict.conflict_details}"
                    result.skipped += 1
                    result.outcomes.append(outcome)
                    continue

                created = self.store.create_entry(
                    TimetableEntryCreate(
                        section_id=section_id,
                        subject_id=entry.subject_id,
                        teacher_id=entry.teacher_id,
                        period_id=entry.period_id,
                        day_of_week=to_day,
                        academic_year_id=academic_year_id,
                        room_number=entry.room_number,
                        campus_id=campus_id or entry.campus_id,
                    )
                )
            except ConflictError as exc:
                # The store caught a booking made after our check.
                outcome.reason = f"teacher_conflict: {exc.conflict_details}"
                result.skipped += 1
                result.outcomes.append(outcome)
                continue
            except AppError as exc:
                logger.warning("Copying entry %s to %s failed: %s", entry.id, day_name(to_day), exc.message)
                outcome.status = "failed"
                outcome.reason = exc.message
                result.failed += 1
                result.outcomes.append(outcome)
                continue

            outcome.status = "created"
            outcome.entry_id = created.id
            result.created += 1
            result.outcomes.append(outcome)

        logger.info("%s to %s for section %s: %s", day_name(from_day), day_name(to_day), section_id, result.summary())
        return result

    def clear_day(
        self,
        day: int,
        section_id: str,
        academic_year_id: str,
        *,
        confirm: bool = False,
    ) -> BulkDayResult:
        validate_day_of_week(day, "day")
        if not confirm:
            raise ConfirmationRequiredError(f"Clearing {day_name(day)} must be confirmed")

        index = self._load_index(section_id, academic_year_id)
        day_entries = index.entries_for_day(day)
        result = BulkDayResult(operation="clear_day", requested=len(day_entries))
        if not day_entries:
            result.nothing_to_clear = True
            return result

        for entry in day_entries:
            outcome = EntryOutcome(source_entry_id=entry.id, period_id=entry.period_id, status="deleted")
            try:
                self.store.delete_entry(entry.id)
            except AppError as exc:
                logger.warning("Deleting entry %s failed: %s", entry.id, exc.message)
                outcome.status = "failed"
                outcome.reason = exc.message
                result.failed += 1
            else:
                result.deleted += 1
            result.outcomes.append(outcome)

        logger.info("%s for section %s: %s", day_name(day), section_id, result.summary())
        return result
