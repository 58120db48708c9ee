from __future__ import annotations

import logging

from app.core.exceptions import AppError, ConflictError, ValidationError
from app.schemas.timetable import MAX_DAY_INDEX, ConflictResult
from app.services.timetable_store import TimetableStore

logger = logging.getLogger(__name__)


def validate_day_of_week(day_of_week: int, field: str = "day_of_week") -> int:
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int) or not 0 <= day_of_week <= MAX_DAY_INDEX:
        raise ValidationError(f"{field} must be a weekday index between 0 and {MAX_DAY_INDEX}", field=field)
    return day_of_week


class ConflictChecker:
    """Answers whether a teacher is already booked at a (day, period) slot.

    The scan covers every section of the school for the academic year. Only
    teacher double-booking is considered; rooms are not treated as scarce.
    """

    def __init__(self, store: TimetableStore) -> None:
        self.store = store

    def check(
        self,
        teacher_id: str,
        day_of_week: int,
        period_id: str,
        academic_year_id: str,
        exclude_entry_id: str | None = None,
    ) -> ConflictResult:
        validate_day_of_week(day_of_week)
        return self.store.check_teacher_conflict(
            teacher_id,
            day_of_week,
            period_id,
            academic_year_id,
            exclude_entry_id,
        )

    def ensure_free(
        self,
        teacher_id: str,
        day_of_week: int,
        period_id: str,
        academic_year_id: str,
        exclude_entry_id: str | None = None,
    ) -> None:
        result = self.check(teacher_id, day_of_week, period_id, academic_year_id, exclude_entry_id)
        if result.has_conflict:
            logger.info(
                "Teacher %s is already booked on day %s period %s: %s",
                teacher_id,
                day_of_week,
                period_id,
                result.conflict_details,
            )
            raise ConflictError(result.conflict_details)

    def preview(
        self,
        teacher_id: str,
        day_of_week: int,
        period_id: str,
        academic_year_id: str,
        exclude_entry_id: str | None = None,
    ) -> ConflictResult | None:
        """Live-warning variant: returns None when the store cannot answer.

        A failed lookup must not block the user; the commit path re-checks.
        """
        validate_day_of_week(day_of_week)
        try:
            return self.store.check_teacher_conflict(
                teacher_id,
                day_of_week,
                period_id,
                academic_year_id,
                exclude_entry_id,
            )
        except AppError:
            logger.warning("Conflict preview failed for teacher %s", teacher_id, exc_info=True)
            return None
