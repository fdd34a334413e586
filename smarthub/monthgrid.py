"""
Month grid computation for calendar views.

A month is laid out as 6 rows x 7 columns, Sunday first.
Cells before day 1 and after the last day are blank (None).
Six rows always suffice: the worst case is a 31-day month starting on
Saturday, which needs 6 + 31 = 37 cells.
"""

from __future__ import annotations

import calendar as _stdlib_calendar
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterator, List, Optional, Tuple

from smarthub.events import EventCalendar

ROWS = 6
COLUMNS = 7
WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def first_weekday(year: int, month: int) -> int:
    """
    Weekday index of day 1 of the month, 0=Sunday .. 6=Saturday.
    """
    # date.weekday() is Monday=0, shift so that Sunday=0
    return (date(year, month, 1).weekday() + 1) % 7


def days_in_month(year: int, month: int) -> int:
    return _stdlib_calendar.monthrange(year, month)[1]


@dataclass(frozen=True)
class MonthGrid:
    year: int
    month: int
    first_weekday: int
    days_in_month: int
    cells: Tuple[Tuple[Optional[int], ...], ...]

    def days(self) -> Iterator[Tuple[int, int, int]]:
        """
        Yield (row, column, day) for every populated cell.
        """
        for r, row in enumerate(self.cells):
            for c, day in enumerate(row):
                if day is not None:
                    yield r, c, day

    def position_of(self, day: int) -> Tuple[int, int]:
        if not 1 <= day <= self.days_in_month:
            raise ValueError(f"Day {day} is outside {self.year}-{self.month:02d}")
        index = self.first_weekday + day - 1
        return index // COLUMNS, index % COLUMNS

    def previous(self) -> "MonthGrid":
        if self.month == 1:
            return build_month_grid(self.year - 1, 12)
        return build_month_grid(self.year, self.month - 1)

    def next(self) -> "MonthGrid":
        if self.month == 12:
            return build_month_grid(self.year + 1, 1)
        return build_month_grid(self.year, self.month + 1)

    @property
    def title(self) -> str:
        return f"{_stdlib_calendar.month_name[self.month]} {self.year}"


def build_month_grid(year: int, month: int) -> MonthGrid:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")

    offset = first_weekday(year, month)
    n_days = days_in_month(year, month)

    rows: List[Tuple[Optional[int], ...]] = []
    for row in range(ROWS):
        cells: List[Optional[int]] = []
        for col in range(COLUMNS):
            day = row * COLUMNS + col - offset + 1
            cells.append(day if 1 <= day <= n_days else None)
        rows.append(tuple(cells))

    return MonthGrid(year=year, month=month, first_weekday=offset, days_in_month=n_days, cells=tuple(rows))


def event_markers(grid: MonthGrid, events: EventCalendar) -> Dict[int, bool]:
    """
    Map each day of the grid to whether it has at least one event.

    Each populated cell queries the calendar on its own (one lookup per day).
    """
    markers: Dict[int, bool] = {}
    for _, _, day in grid.days():
        markers[day] = bool(events.get_events_for_date(date(grid.year, grid.month, day)))
    return markers
