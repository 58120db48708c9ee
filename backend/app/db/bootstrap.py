from __future__ import annotations

import logging

from sqlalchemy import inspect, text

from app.db.base import Base
from app.db.session import engine
import app.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "periods": {"id", "campus_id", "sort_order", "short_name", "length_minutes"},
    "timetable_entries": {
        "id",
        "section_id",
        "subject_id",
        "teacher_id",
        "period_id",
        "day_of_week",
        "academic_year_id",
        "room_number",
        "campus_id",
    },
    "activity_logs": {"id", "action", "entity_type", "entity_id", "details"},
}


def _ensure_timetable_entries_campus_column() -> None:
    # Older databases were created before entries were campus specific.
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "timetable_entries" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("timetable_entries")}
        if "campus_id" in column_names:
            return
        connection.execute(text("ALTER TABLE timetable_entries ADD COLUMN campus_id VARCHAR(36)"))


def _ensure_periods_length_column() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "periods" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("periods")}
        if "length_minutes" in column_names:
            return
        connection.execute(text("ALTER TABLE periods ADD COLUMN length_minutes INTEGER"))


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_timetable_entries_campus_column()
        _ensure_periods_length_column()
        _assert_required_columns()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
