from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from app.core.config import get_settings
from app.core.exceptions import ConflictError, PersistenceError
from app.schemas.timetable import (
    ConflictResult,
    PeriodOut,
    SubjectOut,
    TeacherOut,
    TimetableEntryCreate,
    TimetableEntryOut,
    TimetableEntryUpdate,
)

logger = logging.getLogger(__name__)


def _drop_none(params: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


def _parse(shape: Any, data: Any, what: str) -> Any:
    try:
        return TypeAdapter(shape).validate_python(data)
    except ValidationError as exc:
        logger.warning("Timetable API returned malformed %s: %s", what, exc)
        raise PersistenceError(f"Timetable service returned malformed {what}", status_code=502) from exc


class ApiTimetableStore:
    """TimetableStore that talks to the timetable JSON API over HTTP.

    `client` can be any httpx.Client, including FastAPI's TestClient.
    """

    def __init__(self, client: httpx.Client, *, path_prefix: str = "/api/timetable") -> None:
        self.client = client
        self.path_prefix = path_prefix.rstrip("/")

    @classmethod
    def from_settings(cls) -> "ApiTimetableStore":
        settings = get_settings()
        client = httpx.Client(
            base_url=settings.timetable_api_base_url,
            timeout=settings.timetable_api_timeout_seconds,
            follow_redirects=True,
        )
        return cls(client, path_prefix="/timetable")

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ApiTimetableStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.path_prefix}{path}"
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Timetable API %s %s failed: %s", method, url, exc)
            raise PersistenceError(f"Timetable service unreachable: {exc}", status_code=502) from exc

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                logger.warning("Timetable API %s %s returned a non-JSON body", method, url)
                raise PersistenceError("Timetable service returned a non-JSON response", status_code=502) from exc

        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}
        if not isinstance(body, dict):
            body = {"message": str(body)}

        details = body.get("details") if isinstance(body.get("details"), dict) else {}
        if response.status_code == 409 and details.get("conflict_details"):
            raise ConflictError(details["conflict_details"])

        message = body.get("message") or body.get("detail") or f"Timetable API returned {response.status_code}"
        if not isinstance(message, str):
            message = str(message)
        raise PersistenceError(message, status_code=response.status_code, details=details)

    def list_periods(self, campus_id: str) -> list[PeriodOut]:
        data = self._request("GET", "/periods", params={"campus_id": campus_id})
        return _parse(list[PeriodOut], data, "periods")

    def list_entries(self, section_id: str, academic_year_id: str) -> list[TimetableEntryOut]:
        data = self._request(
            "GET",
            "/entries",
            params={"section_id": section_id, "academic_year_id": academic_year_id},
        )
        return _parse(list[TimetableEntryOut], data, "timetable entries")

    def create_entry(self, entry: TimetableEntryCreate) -> TimetableEntryOut:
        data = self._request("POST", "/entries", json=entry.model_dump(mode="json"))
        return _parse(TimetableEntryOut, data, "timetable entry")

    def update_entry(self, entry_id: str, patch: TimetableEntryUpdate) -> TimetableEntryOut:
        data = self._request("PUT", f"/entries/{entry_id}", json=patch.model_dump(mode="json", exclude_unset=True))
        return _parse(TimetableEntryOut, data, "timetable entry")

    def delete_entry(self, entry_id: str) -> None:
        self._request("DELETE", f"/entries/{entry_id}")

    def check_teacher_conflict(
        self,
        teacher_id: str,
        day_of_week: int,
        period_id: str,
        academic_year_id: str,
        exclude_entry_id: str | None = None,
    ) -> ConflictResult:
        params = _drop_none(
            {
                "teacher_id": teacher_id,
                "day_of_week": day_of_week,
                "period_id": period_id,
                "academic_year_id": academic_year_id,
                "exclude_entry_id": exclude_entry_id,
            }
        )
        return _parse(ConflictResult, self._request("GET", "/check-conflict", params=params), "conflict result")

    def list_subjects(self, grade_id: str | None = None, campus_id: str | None = None) -> list[SubjectOut]:
        data = self._request("GET", "/subjects", params=_drop_none({"grade_id": grade_id, "campus_id": campus_id}))
        return _parse(list[SubjectOut], data, "subjects")

    def list_teachers(self, campus_id: str | None = None) -> list[TeacherOut]:
        data = self._request("GET", "/teachers", params=_drop_none({"campus_id": campus_id}))
        return _parse(list[TeacherOut], data, "teachers")
