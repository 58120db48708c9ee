from app.core.exceptions import (
    AppError,
    ConfirmationRequiredError,
    ConflictError,
    OccupancyCollisionError,
    PersistenceError,
    ResourceNotFoundError,
    SubmissionInProgressError,
    ValidationError,
)


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}


def test_validation_error_structure():
    err = ValidationError("Please select a subject", field="subject_id")
    assert err.status_code == 400
    assert err.field == "subject_id"
    assert err.details == {"field": "subject_id"}
    assert isinstance(err, AppError)


def test_conflict_error_carries_details():
    err = ConflictError("Section: Grade 5 - A - Subject: Mathematics")
    assert err.status_code == 409
    assert err.message == "Teacher conflict: Section: Grade 5 - A - Subject: Mathematics"
    assert err.details == {"conflict_details": "Section: Grade 5 - A - Subject: Mathematics"}

    fallback = ConflictError(None)
    assert fallback.conflict_details == "Teacher is already booked for this slot"


def test_persistence_error_family():
    missing = ResourceNotFoundError("Timetable entry", "abc")
    assert isinstance(missing, PersistenceError)
    assert missing.status_code == 404
    assert missing.message == "Timetable entry with id abc not found"

    assert PersistenceError("boom").status_code == 500


def test_session_errors():
    assert ConfirmationRequiredError("confirm first").status_code == 400
    assert SubmissionInProgressError().status_code == 409

    collision = OccupancyCollisionError(1, "p2", ["a", "b"])
    assert collision.details == {"day_of_week": 1, "period_id": "p2", "entry_ids": ["a", "b"]}


def test_error_handler_returns_message_and_details(client):
    response = client.get(
        "/api/timetable/check-conflict",
        params={"teacher_id": "t", "day_of_week": 0, "period_id": "p", "academic_year_id": "y"},
    )
    assert response.status_code == 200

    missing = client.delete("/api/timetable/entries/nope")
    assert missing.status_code == 404
    assert missing.json() == {"message": "Timetable entry with id nope not found", "details": {}}
