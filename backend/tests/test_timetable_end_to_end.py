"""Builder sessions driven over HTTP against the real API and database."""

import httpx
import pytest

from app.core.exceptions import ConflictError, PersistenceError
from app.services.api_store import ApiTimetableStore
from app.services.conflict_checker import ConflictChecker
from app.services.timetable_session import TimetableBuilderSession

MONDAY, TUESDAY, WEDNESDAY = 0, 1, 2


@pytest.fixture()
def api_store(client):
    return ApiTimetableStore(client)


def open_session(api_store, school, section="S"):
    session = TimetableBuilderSession(
        api_store,
        section_id=school.section_ids[section],
        academic_year_id=school.year_id,
        campus_id=school.campus_id,
    )
    session.reload()
    return session


def test_teacher_can_teach_other_days_but_not_the_same_slot(api_store, school):
    section_s = open_session(api_store, school, "S")
    section_s2 = open_session(api_store, school, "S2")
    p1 = school.period_ids[0]
    teacher = school.teacher_ids["T"]

    section_s.assign_slot(MONDAY, p1, subject_id=school.subject_ids["math"], teacher_id=teacher)

    preview = section_s2.preview_conflict(teacher, TUESDAY, p1)
    assert preview.has_conflict is False
    section_s2.assign_slot(TUESDAY, p1, subject_id=school.subject_ids["english"], teacher_id=teacher)

    preview = section_s2.preview_conflict(teacher, MONDAY, p1)
    assert preview.has_conflict is True
    assert "Section: Grade 5 - A" in preview.conflict_details

    with pytest.raises(ConflictError) as excinfo:
        section_s2.assign_slot(MONDAY, p1, subject_id=school.subject_ids["english"], teacher_id=teacher)

    assert excinfo.value.conflict_details == "Section: Grade 5 - A - Subject: Mathematics"
    assert section_s2.get_entry_for_slot(MONDAY, p1) is None


def test_room_only_edit_through_the_session(api_store, school):
    session = open_session(api_store, school)
    p3 = school.period_ids[2]
    first = session.assign_slot(
        WEDNESDAY,
        p3,
        subject_id=school.subject_ids["science"],
        teacher_id=school.teacher_ids["T"],
        room_number="Lab 1",
    )

    edited = session.assign_slot(
        WEDNESDAY,
        p3,
        subject_id=school.subject_ids["science"],
        teacher_id=school.teacher_ids["T"],
        room_number="Lab 2",
    )

    assert edited.id == first.id
    assert session.get_entry_for_slot(WEDNESDAY, p3).room_number == "Lab 2"
    assert len(session.occupancy) == 1


def test_copy_monday_to_tuesday_with_two_occupied_targets(api_store, school):
    session = open_session(api_store, school)
    teachers = ["T", "U", "V", "T", "U"]
    for period, teacher in enumerate(teachers):
        session.assign_slot(
            MONDAY,
            school.period_ids[period],
            subject_id=school.subject_ids["math"],
            teacher_id=school.teacher_ids[teacher],
        )
    for period in (1, 3):
        session.assign_slot(
            TUESDAY,
            school.period_ids[period],
            subject_id=school.subject_ids["art"],
            teacher_id=school.teacher_ids["W"],
        )

    first = session.copy_day(MONDAY, TUESDAY)

    assert (first.created, first.skipped, first.failed) == (3, 2, 0)
    assert len(session.occupancy.entries_for_day(TUESDAY)) == 5
    tuesday_subjects = [entry.subject_name for entry in session.occupancy.entries_for_day(TUESDAY)]
    assert tuesday_subjects == ["Mathematics", "Art", "Mathematics", "Art", "Mathematics"]

    second = session.copy_day(MONDAY, TUESDAY)

    assert (second.created, second.skipped) == (0, 5)
    assert len(session.occupancy) == 10


def test_copy_skips_teacher_booked_in_another_section(api_store, school):
    other = open_session(api_store, school, "S3")
    other.assign_slot(
        WEDNESDAY,
        school.period_ids[0],
        subject_id=school.subject_ids["science"],
        teacher_id=school.teacher_ids["T"],
    )
    session = open_session(api_store, school)
    session.assign_slot(MONDAY, school.period_ids[0], subject_id=school.subject_ids["math"], teacher_id=school.teacher_ids["T"])
    session.assign_slot(MONDAY, school.period_ids[1], subject_id=school.subject_ids["math"], teacher_id=school.teacher_ids["U"])

    result = session.copy_day(MONDAY, WEDNESDAY)

    assert (result.created, result.skipped) == (1, 1)
    skipped = next(outcome for outcome in result.outcomes if outcome.status == "skipped")
    assert skipped.reason == "teacher_conflict: Section: Grade 6 - A - Subject: Science"
    assert session.get_entry_for_slot(WEDNESDAY, school.period_ids[0]) is None


def test_clear_day_leaves_nothing_behind(api_store, school):
    session = open_session(api_store, school)
    for period in range(4):
        session.assign_slot(
            WEDNESDAY,
            school.period_ids[period],
            subject_id=school.subject_ids["math"],
            teacher_id=school.teacher_ids["V"],
        )
    session.assign_slot(MONDAY, school.period_ids[0], subject_id=school.subject_ids["math"], teacher_id=school.teacher_ids["V"])

    result = session.clear_day(WEDNESDAY, confirm=True)

    assert (result.requested, result.deleted, result.failed) == (4, 4, 0)
    remaining = api_store.list_entries(school.section_ids["S"], school.year_id)
    assert [entry.day_of_week for entry in remaining] == [MONDAY]


def test_api_store_maps_error_responses(api_store, school):
    with pytest.raises(PersistenceError) as excinfo:
        api_store.delete_entry("missing")

    assert excinfo.value.status_code == 404
    assert "not found" in excinfo.value.message


def test_api_store_wraps_transport_errors():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    store = ApiTimetableStore(httpx.Client(base_url="http://timetable.invalid", transport=httpx.MockTransport(refuse)))

    with store, pytest.raises(PersistenceError) as excinfo:
        store.list_periods("campus-main")

    assert excinfo.value.status_code == 502


def stub_store(respond):
    return ApiTimetableStore(httpx.Client(base_url="http://timetable.invalid", transport=httpx.MockTransport(respond)))


def test_api_store_rejects_non_json_success_bodies():
    store = stub_store(lambda request: httpx.Response(200, text="<html>gateway</html>"))

    with store:
        assert ConflictChecker(store).preview("t1", 0, "p1", "y1") is None
        with pytest.raises(PersistenceError) as excinfo:
            ConflictChecker(store).check("t1", 0, "p1", "y1")

    assert excinfo.value.status_code == 502
    assert "non-JSON" in excinfo.value.message


def test_api_store_rejects_bodies_of_the_wrong_shape():
    store = stub_store(lambda request: httpx.Response(200, json={"unexpected": 1}))

    with store:
        assert ConflictChecker(store).preview("t1", 0, "p1", "y1") is None
        with pytest.raises(PersistenceError) as conflict_error:
            store.check_teacher_conflict("t1", 0, "p1", "y1")
        with pytest.raises(PersistenceError) as periods_error:
            store.list_periods("campus-main")

    assert conflict_error.value.status_code == 502
    assert periods_error.value.status_code == 502
    assert "malformed" in periods_error.value.message


def test_api_store_from_settings_uses_configured_base_url():
    with ApiTimetableStore.from_settings() as store:
        assert str(store.client.base_url).rstrip("/") == "http://localhost:8000/api"
        assert store.path_prefix == "/timetable"
