import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class TimetableEntry(Base):
    __tablename__ = "timetable_entries"
    __table_args__ = (
        UniqueConstraint(
            "section_id",
            "day_of_week",
            "period_id",
            "academic_year_id",
            name="uq_timetable_entries_section_slot",
        ),
        CheckConstraint("day_of_week >= 0 and day_of_week <= 4", name="ck_timetable_entries_day"),
        Index("ix_timetable_entries_teacher_slot", "teacher_id", "day_of_week", "period_id", "academic_year_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    section_id: Mapped[str] = mapped_column(ForeignKey("sections.id"), nullable=False, index=True)
    subject_id: Mapped[str] = mapped_column(ForeignKey("subjects.id"), nullable=False)
    teacher_id: Mapped[str] = mapped_column(ForeignKey("teachers.id"), nullable=False, index=True)
    period_id: Mapped[str] = mapped_column(ForeignKey("periods.id"), nullable=False)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    academic_year_id: Mapped[str] = mapped_column(ForeignKey("academic_years.id"), nullable=False, index=True)
    room_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    campus_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
