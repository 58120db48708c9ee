from datetime import date

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_actor_id, get_timetable_store
from app.schemas.timetable import (
    MAX_DAY_INDEX,
    BulkDayResult,
    ClearDayRequest,
    ConflictResult,
    CopyDayRequest,
    PeriodOut,
    SubjectOut,
    TeacherOut,
    TimetableEntryCreate,
    TimetableEntryOut,
    TimetableEntryUpdate,
)
from app.services.bulk_day import BulkDayOperator
from app.services.conflict_checker import ConflictChecker
from app.services.slot_assignment import reject_break_period
from app.services.sql_store import SqlTimetableStore

router = APIRouter()


@router.get("/periods", response_model=list[PeriodOut])
def list_periods(
    campus_id: str = Query(min_length=1),
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> list[PeriodOut]:
    return store.list_periods(campus_id)


@router.get("/subjects", response_model=list[SubjectOut])
def list_subjects(
    grade_id: str | None = Query(default=None),
    campus_id: str | None = Query(default=None),
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> list[SubjectOut]:
    return store.list_subjects(grade_id, campus_id)


@router.get("/teachers", response_model=list[TeacherOut])
def list_teachers(
    campus_id: str | None = Query(default=None),
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> list[TeacherOut]:
    return store.list_teachers(campus_id)


@router.get("/entries", response_model=list[TimetableEntryOut])
def list_section_entries(
    section_id: str = Query(min_length=1),
    academic_year_id: str = Query(min_length=1),
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> list[TimetableEntryOut]:
    return store.list_entries(section_id, academic_year_id)


@router.get("/entries/teacher", response_model=list[TimetableEntryOut])
def list_teacher_entries(
    teacher_id: str = Query(min_length=1),
    academic_year_id: str = Query(min_length=1),
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> list[TimetableEntryOut]:
    return store.list_entries_for_teacher(teacher_id, academic_year_id)


@router.get("/teacher-schedule", response_model=list[TimetableEntryOut])
def teacher_day_schedule(
    teacher_id: str = Query(min_length=1),
    academic_year_id: str = Query(min_length=1),
    day_of_week: int | None = Query(default=None, ge=0, le=MAX_DAY_INDEX),
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> list[TimetableEntryOut]:
    if day_of_week is None:
        day_of_week = date.today().weekday()
        if day_of_week > MAX_DAY_INDEX:
            return []
    return store.list_entries_for_teacher(teacher_id, academic_year_id, day_of_week)


@router.get("/check-conflict", response_model=ConflictResult)
def check_teacher_conflict(
    teacher_id: str = Query(min_length=1),
    day_of_week: int = Query(ge=0, le=MAX_DAY_INDEX),
    period_id: str = Query(min_length=1),
    academic_year_id: str = Query(min_length=1),
    exclude_entry_id: str | None = Query(default=None),
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> ConflictResult:
    return ConflictChecker(store).check(teacher_id, day_of_week, period_id, academic_year_id, exclude_entry_id)


@router.post("/entries", response_model=TimetableEntryOut, status_code=status.HTTP_201_CREATED)
def create_entry(
    payload: TimetableEntryCreate,
    store: SqlTimetableStore = Depends(get_timetable_store),
    actor_id: str | None = Depends(get_actor_id),
) -> TimetableEntryOut:
    reject_break_period(store.get_period(payload.period_id))
    ConflictChecker(store).ensure_free(
        payload.teacher_id,
        payload.day_of_week,
        payload.period_id,
        payload.academic_year_id,
    )
    if actor_id and not payload.created_by:
        payload = payload.model_copy(update={"created_by": actor_id})
    return store.create_entry(payload)


@router.put("/entries/{entry_id}", response_model=TimetableEntryOut)
def update_entry(
    entry_id: str,
    payload: TimetableEntryUpdate,
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> TimetableEntryOut:
    existing = store.get_entry(entry_id)
    data = payload.model_dump(exclude_unset=True)
    if "period_id" in data:
        reject_break_period(store.get_period(data["period_id"]))
    if {"teacher_id", "day_of_week", "period_id"} & data.keys():
        ConflictChecker(store).ensure_free(
            data.get("teacher_id", existing.teacher_id),
            data.get("day_of_week", existing.day_of_week),
            data.get("period_id", existing.period_id),
            existing.academic_year_id,
            exclude_entry_id=entry_id,
        )
    return store.update_entry(entry_id, payload)


@router.delete("/entries/{entry_id}")
def delete_entry(
    entry_id: str,
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> dict:
    store.delete_entry(entry_id)
    return {"success": True}


@router.post("/sections/{section_id}/copy-day", response_model=BulkDayResult)
def copy_day(
    section_id: str,
    payload: CopyDayRequest,
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> BulkDayResult:
    result = BulkDayOperator(store).copy_day(
        payload.from_day,
        payload.to_day,
        section_id,
        payload.academic_year_id,
        campus_id=payload.campus_id,
    )
    if not result.nothing_to_copy:
        store.record_bulk_activity(
            "timetable.copy_day",
            section_id=section_id,
            details={
                "from_day": payload.from_day,
                "to_day": payload.to_day,
                "created": result.created,
                "skipped": result.skipped,
                "failed": result.failed,
            },
        )
    return result


@router.post("/sections/{section_id}/clear-day", response_model=BulkDayResult)
def clear_day(
    section_id: str,
    payload: ClearDayRequest,
    store: SqlTimetableStore = Depends(get_timetable_store),
) -> BulkDayResult:
    result = BulkDayOperator(store).clear_day(
        payload.day,
        section_id,
        payload.academic_year_id,
        confirm=payload.confirm,
    )
    if not result.nothing_to_clear:
        store.record_bulk_activity(
            "timetable.clear_day",
            section_id=section_id,
            details={
                "day": payload.day,
                "requested": result.requested,
                "deleted": result.deleted,
                "failed": result.failed,
            },
        )
    return result
