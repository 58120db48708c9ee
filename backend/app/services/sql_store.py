from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import PersistenceError, ResourceNotFoundError
from app.models.period import Period
from app.models.section import Section
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.models.timetable_entry import TimetableEntry
from app.schemas.timetable import (
    ConflictResult,
    PeriodOut,
    SubjectOut,
    TeacherOut,
    TimetableEntryCreate,
    TimetableEntryOut,
    TimetableEntryUpdate,
    period_label,
)
from app.services.audit import log_activity

logger = logging.getLogger(__name__)

NO_CONFLICTS = "No conflicts"


def _integrity_error(exc: IntegrityError) -> PersistenceError:
    text = str(exc.orig).lower()
    if "unique" in text or "duplicate" in text:
        return PersistenceError("This slot already has an entry for the section", status_code=409)
    if "foreign key" in text:
        return PersistenceError("Timetable entry references a record that does not exist", status_code=400)
    return PersistenceError("Timetable entry was rejected by the database", status_code=409)


def _teacher_name(first_name: str | None, last_name: str | None) -> str:
    name = f"{first_name or ''} {last_name or ''}".strip()
    return name or "Unassigned"


class SqlTimetableStore:
    """TimetableStore backed by the application database.

    Every write commits on its own, so a bulk loop that fails on one entry
    keeps the entries written before it.
    """

    def __init__(self, db: Session, *, actor_id: str | None = None) -> None:
        self.db = db
        self.actor_id = actor_id

    @contextmanager
    def _reading(self, what: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception("Failed to load %s", what)
            raise PersistenceError(f"Failed to load {what}") from exc

    @contextmanager
    def _writing(self, action: str) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise _integrity_error(exc) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Timetable write failed during %s", action)
            raise PersistenceError(f"Failed to {action}") from exc

    def _entry_query(self):
        return (
            select(
                TimetableEntry,
                Section.name.label("section_name"),
                Section.grade_name.label("grade_name"),
                Subject.name.label("subject_name"),
                Teacher.first_name.label("teacher_first_name"),
                Teacher.last_name.label("teacher_last_name"),
                Period.short_name.label("period_short_name"),
                Period.sort_order.label("period_sort_order"),
                Period.start_time.label("start_time"),
                Period.end_time.label("end_time"),
            )
            .select_from(TimetableEntry)
            .outerjoin(Section, Section.id == TimetableEntry.section_id)
            .outerjoin(Subject, Subject.id == TimetableEntry.subject_id)
            .outerjoin(Teacher, Teacher.id == TimetableEntry.teacher_id)
            .outerjoin(Period, Period.id == TimetableEntry.period_id)
            .order_by(TimetableEntry.day_of_week, Period.sort_order)
        )

    @staticmethod
    def _row_to_out(row) -> TimetableEntryOut:
        entry = TimetableEntryOut.model_validate(row.TimetableEntry)
        label = None
        if row.period_sort_order is not None:
            label = period_label(row.period_short_name, row.period_sort_order)
        return entry.model_copy(
            update={
                "section_name": row.section_name,
                "grade_name": row.grade_name,
                "subject_name": row.subject_name,
                "teacher_name": _teacher_name(row.teacher_first_name, row.teacher_last_name),
                "period_label": label,
                "period_sort_order": row.period_sort_order,
                "start_time": row.start_time,
                "end_time": row.end_time,
            }
        )

    def get_entry(self, entry_id: str) -> TimetableEntryOut:
        with self._reading("timetable entry"):
            row = self.db.execute(self._entry_query().where(TimetableEntry.id == entry_id)).first()
        if row is None:
            raise ResourceNotFoundError("Timetable entry", entry_id)
        return self._row_to_out(row)

    def get_period(self, period_id: str) -> PeriodOut | None:
        with self._reading("period"):
            period = self.db.get(Period, period_id)
        return PeriodOut.model_validate(period) if period is not None else None

    def list_periods(self, campus_id: str) -> list[PeriodOut]:
        with self._reading("periods"):
            rows = self.db.execute(
                select(Period)
                .where(Period.campus_id == campus_id, Period.is_active.is_(True))
                .order_by(Period.sort_order)
            ).scalars()
            return [PeriodOut.model_validate(period) for period in rows]

    def list_entries(self, section_id: str, academic_year_id: str) -> list[TimetableEntryOut]:
        query = self._entry_query().where(
            TimetableEntry.section_id == section_id,
            TimetableEntry.academic_year_id == academic_year_id,
        )
        with self._reading("section timetable"):
            return [self._row_to_out(row) for row in self.db.execute(query)]

    def list_entries_for_teacher(
        self,
        teacher_id: str,
        academic_year_id: str,
        day_of_week: int | None = None,
    ) -> list[TimetableEntryOut]:
        query = self._entry_query().where(
            TimetableEntry.teacher_id == teacher_id,
            TimetableEntry.academic_year_id == academic_year_id,
        )
        if day_of_week is not None:
            query = query.where(TimetableEntry.day_of_week == day_of_week)
        with self._reading("teacher timetable"):
            return [self._row_to_out(row) for row in self.db.execute(query)]

    def create_entry(self, entry: TimetableEntryCreate) -> TimetableEntryOut:
        record = TimetableEntry(**entry.model_dump())
        with self._writing("create timetable entry"):
            self.db.add(record)
            self.db.flush()
            log_activity(
                self.db,
                actor_id=self.actor_id or entry.created_by,
                action="timetable_entry.created",
                entity_type="timetable_entry",
                entity_id=record.id,
                details={
                    "section_id": record.section_id,
                    "day_of_week": record.day_of_week,
                    "period_id": record.period_id,
                    "teacher_id": record.teacher_id,
                },
            )
        return self.get_entry(record.id)

    def update_entry(self, entry_id: str, patch: TimetableEntryUpdate) -> TimetableEntryOut:
        record = self.db.get(TimetableEntry, entry_id)
        if record is None:
            raise ResourceNotFoundError("Timetable entry", entry_id)
        data = patch.model_dump(exclude_unset=True)
        with self._writing("update timetable entry"):
            for key, value in data.items():
                setattr(record, key, value)
            if data:
                log_activity(
                    self.db,
                    actor_id=self.actor_id,
                    action="timetable_entry.updated",
                    entity_type="timetable_entry",
                    entity_id=entry_id,
                    details={"changes": data},
                )
        return self.get_entry(entry_id)

    def delete_entry(self, entry_id: str) -> None:
        record = self.db.get(TimetableEntry, entry_id)
        if record is None:
            raise ResourceNotFoundError("Timetable entry", entry_id)
        with self._writing("delete timetable entry"):
            log_activity(
                self.db,
                actor_id=self.actor_id,
                action="timetable_entry.deleted",
                entity_type="timetable_entry",
                entity_id=entry_id,
                details={
                    "section_id": record.section_id,
                    "day_of_week": record.day_of_week,
                    "period_id": record.period_id,
                },
            )
            self.db.delete(record)

    def check_teacher_conflict(
        self,
        teacher_id: str,
        day_of_week: int,
        period_id: str,
        academic_year_id: str,
        exclude_entry_id: str | None = None,
    ) -> ConflictResult:
        query = (
            select(Section.name, Subject.name)
            .select_from(TimetableEntry)
            .join(Section, Section.id == TimetableEntry.section_id)
            .join(Subject, Subject.id == TimetableEntry.subject_id)
            .where(
                TimetableEntry.teacher_id == teacher_id,
                TimetableEntry.day_of_week == day_of_week,
                TimetableEntry.period_id == period_id,
                TimetableEntry.academic_year_id == academic_year_id,
            )
            .order_by(Section.name, Subject.name)
        )
        if exclude_entry_id:
            query = query.where(TimetableEntry.id != exclude_entry_id)

        with self._reading("teacher conflicts"):
            rows = self.db.execute(query).all()
        if not rows:
            return ConflictResult(has_conflict=False, conflict_details=NO_CONFLICTS)
        details = ", ".join(f"Section: {section_name} - Subject: {subject_name}" for section_name, subject_name in rows)
        return ConflictResult(has_conflict=True, conflict_details=details)

    def list_subjects(self, grade_id: str | None = None, campus_id: str | None = None) -> list[SubjectOut]:
        query = select(Subject).where(Subject.is_active.is_(True)).order_by(Subject.name)
        if grade_id:
            query = query.where(Subject.grade_id == grade_id)
        if campus_id:
            query = query.where(Subject.campus_id == campus_id)
        with self._reading("subjects"):
            return [SubjectOut.model_validate(item) for item in self.db.execute(query).scalars()]

    def list_teachers(self, campus_id: str | None = None) -> list[TeacherOut]:
        query = select(Teacher).where(Teacher.is_active.is_(True)).order_by(Teacher.first_name, Teacher.last_name)
        if campus_id:
            query = query.where(Teacher.campus_id == campus_id)
        with self._reading("teachers"):
            return [TeacherOut.model_validate(item) for item in self.db.execute(query).scalars()]

    def record_bulk_activity(self, action: str, *, section_id: str, details: dict) -> None:
        with self._writing(f"record {action}"):
            log_activity(
                self.db,
                actor_id=self.actor_id,
                action=action,
                entity_type="section",
                entity_id=section_id,
                details=details,
            )
