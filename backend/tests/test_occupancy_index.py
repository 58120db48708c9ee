import pytest

from app.core.exceptions import OccupancyCollisionError
from app.schemas.timetable import PeriodOut, TimetableEntryOut
from app.services.occupancy import OccupancyIndex


def make_entry(entry_id, day, period_id, sort_order=None, section_id="sec-a", year_id="y1"):
    return TimetableEntryOut(
        id=entry_id,
        section_id=section_id,
        subject_id="math",
        teacher_id="t1",
        period_id=period_id,
        day_of_week=day,
        academic_year_id=year_id,
        period_sort_order=sort_order,
    )


def test_build_keys_entries_by_day_and_period():
    entries = [make_entry("e1", 0, "p1", 1), make_entry("e2", 0, "p2", 2), make_entry("e3", 3, "p1", 1)]
    index = OccupancyIndex.build(entries, section_id="sec-a", academic_year_id="y1")

    assert len(index) == 3
    assert index.get(0, "p2").id == "e2"
    assert index.get(1, "p1") is None
    assert index.is_occupied(3, "p1")
    assert not index.is_occupied(3, "p2")
    assert (0, "p1") in index
    assert {entry.id for entry in index} == {"e1", "e2", "e3"}


def test_build_rejects_two_entries_for_one_slot():
    entries = [make_entry("e1", 2, "p4"), make_entry("e2", 2, "p4")]

    with pytest.raises(OccupancyCollisionError) as excinfo:
        OccupancyIndex.build(entries)

    assert excinfo.value.details["entry_ids"] == ["e1", "e2"]
    assert excinfo.value.details["day_of_week"] == 2


def test_build_rejects_entries_from_other_scope():
    with pytest.raises(ValueError, match="section"):
        OccupancyIndex.build([make_entry("e1", 0, "p1", section_id="sec-b")], section_id="sec-a")

    with pytest.raises(ValueError, match="academic year"):
        OccupancyIndex.build([make_entry("e1", 0, "p1", year_id="y2")], academic_year_id="y1")


def test_entries_for_day_follow_period_order():
    entries = [
        make_entry("late", 1, "p7", 7),
        make_entry("early", 1, "p2", 2),
        make_entry("middle", 1, "p4", 4),
        make_entry("tuesday", 2, "p1", 1),
    ]
    index = OccupancyIndex.build(entries)

    assert [entry.id for entry in index.entries_for_day(1)] == ["early", "middle", "late"]
    assert index.entries_for_day(4) == []


def test_grid_has_a_cell_for_every_day_and_period():
    periods = [
        PeriodOut(id="p2", campus_id="c", sort_order=2),
        PeriodOut(id="p1", campus_id="c", sort_order=1),
    ]
    index = OccupancyIndex.build([make_entry("e1", 4, "p2", 2)])

    grid = index.grid(periods)

    assert len(grid) == 5
    assert all(len(row) == 2 for row in grid)
    assert grid[4][1].id == "e1"
    assert grid[4][0] is None


def test_index_is_read_only():
    index = OccupancyIndex.build([make_entry("e1", 0, "p1")])

    with pytest.raises(TypeError):
        index.slots[(1, "p1")] = make_entry("e2", 1, "p1")


def test_empty_index():
    index = OccupancyIndex.empty(section_id="sec-a", academic_year_id="y1")

    assert len(index) == 0
    assert index.section_id == "sec-a"
    assert index.academic_year_id == "y1"
    assert index.get(0, "p1") is None


def test_period_labels():
    named = PeriodOut(id="p1", campus_id="c", sort_order=1, short_name="Assembly", length_minutes=20)
    unnamed = PeriodOut(id="p2", campus_id="c", sort_order=2)

    assert (named.label, named.duration_label) == ("Assembly", "20min")
    assert (unnamed.label, unnamed.duration_label) == ("P2", "")
