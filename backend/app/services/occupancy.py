from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from types import MappingProxyType

from app.core.exceptions import OccupancyCollisionError
from app.schemas.timetable import DAY_NAMES, PeriodOut, TimetableEntryOut

SlotKey = tuple[int, str]


class OccupancyIndex:
    """Read model of one section's weekly timetable keyed by (day, period).

    The index is never patched. After every write the caller rebuilds it from
    the authoritative entry list, so what the grid shows and what the store
    holds stay identical.
    """

    __slots__ = ("_slots", "_section_id", "_academic_year_id")

    def __init__(
        self,
        slots: dict[SlotKey, TimetableEntryOut],
        *,
        section_id: str | None = None,
        academic_year_id: str | None = None,
    ) -> None:
        self._slots = MappingProxyType(dict(slots))
        self._section_id = section_id
        self._academic_year_id = academic_year_id

    @classmethod
    def build(
        cls,
        entries: Iterable[TimetableEntryOut],
        *,
        section_id: str | None = None,
        academic_year_id: str | None = None,
    ) -> "OccupancyIndex":
        by_slot: dict[SlotKey, list[TimetableEntryOut]] = defaultdict(list)
        for entry in entries:
            if section_id is not None and entry.section_id != section_id:
                raise ValueError(f"Entry {entry.id} belongs to section {entry.section_id}, not {section_id}")
            if academic_year_id is not None and entry.academic_year_id != academic_year_id:
                raise ValueError(
                    f"Entry {entry.id} belongs to academic year {entry.academic_year_id}, not {academic_year_id}"
                )
            by_slot[(entry.day_of_week, entry.period_id)].append(entry)

        slots: dict[SlotKey, TimetableEntryOut] = {}
        for (day, period_id), held in by_slot.items():
            if len(held) > 1:
                raise OccupancyCollisionError(day, period_id, [item.id for item in held])
            slots[(day, period_id)] = held[0]
        return cls(slots, section_id=section_id, academic_year_id=academic_year_id)

    @classmethod
    def empty(cls, *, section_id: str | None = None, academic_year_id: str | None = None) -> "OccupancyIndex":
        return cls({}, section_id=section_id, academic_year_id=academic_year_id)

    @property
    def section_id(self) -> str | None:
        return self._section_id

    @property
    def academic_year_id(self) -> str | None:
        return self._academic_year_id

    @property
    def slots(self) -> MappingProxyType:
        return self._slots

    def get(self, day_of_week: int, period_id: str) -> TimetableEntryOut | None:
        return self._slots.get((day_of_week, period_id))

    def is_occupied(self, day_of_week: int, period_id: str) -> bool:
        return (day_of_week, period_id) in self._slots

    def entries_for_day(self, day_of_week: int) -> list[TimetableEntryOut]:
        day_entries = [entry for (day, _), entry in self._slots.items() if day == day_of_week]
        day_entries.sort(key=lambda entry: (entry.period_sort_order is None, entry.period_sort_order or 0, entry.period_id))
        return day_entries

    def grid(self, periods: Sequence[PeriodOut], days: int = len(DAY_NAMES)) -> list[list[TimetableEntryOut | None]]:
        ordered = sorted(periods, key=lambda period: period.sort_order)
        return [[self.get(day, period.id) for period in ordered] for day in range(days)]

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[TimetableEntryOut]:
        return iter(self._slots.values())

    def __contains__(self, key: object) -> bool:
        return key in self._slots
