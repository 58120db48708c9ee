import os
import tempfile
import uuid
from types import SimpleNamespace

# Point the module-level engine at a throwaway file before the app is imported.
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+pysqlite:///{os.path.join(tempfile.gettempdir(), f'timetable-test-{os.getpid()}.db')}",
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.exceptions import PersistenceError, ResourceNotFoundError
from app.db.base import Base
from app.db.session import enable_sqlite_foreign_keys
from app.main import app
from app.models import AcademicYear, Period, Section, Subject, Teacher
from app.schemas.timetable import (
    ConflictResult,
    PeriodOut,
    SubjectOut,
    TeacherOut,
    TimetableEntryCreate,
    TimetableEntryOut,
    TimetableEntryUpdate,
)

CAMPUS_ID = "campus-main"


@pytest.fixture()
def session_factory():
    engine = create_engine( #create isolated DB
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory): #fake http client
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def school(db_session):
    """Seed one campus: eight periods, three sections, four subjects, four teachers, one year."""
    year = AcademicYear(name="2026-2027", is_current=True)
    other_year = AcademicYear(name="2027-2028")
    periods = [
        Period(campus_id=CAMPUS_ID, sort_order=order, short_name=f"P{order}", length_minutes=45)
        for order in range(1, 9)
    ]
    sections = {
        "S": Section(name="Grade 5 - A", grade_name="Grade 5", campus_id=CAMPUS_ID),
        "S2": Section(name="Grade 5 - B", grade_name="Grade 5", campus_id=CAMPUS_ID),
        "S3": Section(name="Grade 6 - A", grade_name="Grade 6", campus_id=CAMPUS_ID),
    }
    subjects = {
        "math": Subject(name="Mathematics", code="MATH", campus_id=CAMPUS_ID),
        "english": Subject(name="English", code="ENG", campus_id=CAMPUS_ID),
        "science": Subject(name="Science", code="SCI", campus_id=CAMPUS_ID),
        "art": Subject(name="Art", code="ART", campus_id=CAMPUS_ID),
    }
    teachers = {
        "T": Teacher(first_name="Tara", last_name="Singh", campus_id=CAMPUS_ID),
        "U": Teacher(first_name="Umar", last_name="Khan", campus_id=CAMPUS_ID),
        "V": Teacher(first_name="Vera", last_name="Lopez", campus_id=CAMPUS_ID),
        "W": Teacher(first_name="Wen", last_name="Li", campus_id=CAMPUS_ID),
    }
    db_session.add_all([year, other_year, *periods, *sections.values(), *subjects.values(), *teachers.values()])
    db_session.commit()

    return SimpleNamespace(
        campus_id=CAMPUS_ID,
        year_id=year.id,
        other_year_id=other_year.id,
        period_ids=[period.id for period in periods],
        section_ids={key: value.id for key, value in sections.items()},
        section_names={key: value.name for key, value in sections.items()},
        subject_ids={key: value.id for key, value in subjects.items()},
        teacher_ids={key: value.id for key, value in teachers.items()},
    )


class InMemoryTimetableStore:
    """Store double that keeps entries in a dict and records every call."""

    def __init__(self, *, section_names=None, subject_names=None, periods=None):
        self.section_names = dict(section_names or {})
        self.subject_names = dict(subject_names or {})
        self.periods = list(periods or [])
        self.entries: dict[str, TimetableEntryOut] = {}
        self.calls: list[str] = []
        self.fail_create_periods: set[str] = set()
        self.fail_delete_ids: set[str] = set()
        self.fail_conflict_checks = False
        self.fail_list_entries = False

    def seed(self, **fields) -> TimetableEntryOut:
        entry = TimetableEntryOut(id=fields.pop("id", str(uuid.uuid4())), **fields)
        self.entries[entry.id] = entry
        return entry

    def list_periods(self, campus_id):
        self.calls.append("list_periods")
        return [period for period in self.periods if period.campus_id == campus_id]

    def list_entries(self, section_id, academic_year_id):
        self.calls.append("list_entries")
        if self.fail_list_entries:
            raise PersistenceError("list failed", status_code=503)
        return [
            entry
            for entry in self.entries.values()
            if entry.section_id == section_id and entry.academic_year_id == academic_year_id
        ]

    def create_entry(self, entry: TimetableEntryCreate):
        self.calls.append("create_entry")
        if entry.period_id in self.fail_create_periods:
            raise PersistenceError("store rejected the write", status_code=409)
        for existing in self.entries.values():
            if (
                existing.section_id == entry.section_id
                and existing.day_of_week == entry.day_of_week
                and existing.period_id == entry.period_id
                and existing.academic_year_id == entry.academic_year_id
            ):
                raise PersistenceError("This slot already has an entry for the section", status_code=409)
        return self.seed(**entry.model_dump())

    def update_entry(self, entry_id, patch: TimetableEntryUpdate):
        self.calls.append("update_entry")
        if entry_id not in self.entries:
            raise ResourceNotFoundError("Timetable entry", entry_id)
        updated = self.entries[entry_id].model_copy(update=patch.model_dump(exclude_unset=True))
        self.entries[entry_id] = updated
        return updated

    def delete_entry(self, entry_id):
        self.calls.append("delete_entry")
        if entry_id in self.fail_delete_ids:
            raise PersistenceError("delete rejected", status_code=500)
        if entry_id not in self.entries:
            raise ResourceNotFoundError("Timetable entry", entry_id)
        del self.entries[entry_id]

    def check_teacher_conflict(self, teacher_id, day_of_week, period_id, academic_year_id, exclude_entry_id=None):
        self.calls.append("check_teacher_conflict")
        if self.fail_conflict_checks:
            raise PersistenceError("conflict lookup failed", status_code=502)
        clashes = [
            entry
            for entry in self.entries.values()
            if entry.teacher_id == teacher_id
            and entry.day_of_week == day_of_week
            and entry.period_id == period_id
            and entry.academic_year_id == academic_year_id
            and entry.id != exclude_entry_id
        ]
        if not clashes:
            return ConflictResult(has_conflict=False, conflict_details="No conflicts")
        details = ", ".join(
            f"Section: {self.section_names.get(item.section_id, item.section_id)}"
            f" - Subject: {self.subject_names.get(item.subject_id, item.subject_id)}"
            for item in clashes
        )
        return ConflictResult(has_conflict=True, conflict_details=details)

    def list_subjects(self, grade_id=None, campus_id=None):
        self.calls.append("list_subjects")
        return [SubjectOut(id=key, name=name) for key, name in self.subject_names.items()]

    def list_teachers(self, campus_id=None):
        self.calls.append("list_teachers")
        return [TeacherOut(id="t-1", first_name="Tara", last_name="Singh", display_name="Tara Singh")]


@pytest.fixture()
def memory_store():
    periods = [
        PeriodOut(id=f"p{order}", campus_id=CAMPUS_ID, sort_order=order, short_name=f"P{order}")
        for order in range(1, 9)
    ]
    return InMemoryTimetableStore(
        section_names={"sec-a": "Grade 5 - A", "sec-b": "Grade 5 - B"},
        subject_names={"math": "Mathematics", "eng": "English", "sci": "Science"},
        periods=periods,
    )
