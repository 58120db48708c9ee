from collections.abc import Generator

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.services.sql_store import SqlTimetableStore


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_actor_id(x_actor_id: str | None = Header(default=None, max_length=36)) -> str | None:
    # Authentication lives upstream; the caller's id is only used for audit rows.
    return x_actor_id or None


def get_timetable_store(
    db: Session = Depends(get_db),
    actor_id: str | None = Depends(get_actor_id),
) -> SqlTimetableStore:
    return SqlTimetableStore(db, actor_id=actor_id)
