"""Date math for the shared timeline window.

Everything here is pure and works on whole days (``datetime.date``), so
offsets never pick up time-of-day or DST fractions. Both the interactive
chart and the slide export consume these helpers.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from .models import Task


MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

LEAD_PADDING_DAYS = 5
TRAIL_PADDING_DAYS = 10
EMPTY_WINDOW_DAYS = 30


def as_date(value: date | datetime) -> date:
    """Strip the time of day from ``value``."""
    if isinstance(value, datetime):
        return value.date()
    return value


def days_between(first: date | datetime, second: date | datetime) -> int:
    return (as_date(second) - as_date(first)).days


def add_days(value: date, days: int) -> date:
    return as_date(value) + timedelta(days=days)


def start_of_week(value: date) -> date:
    """Monday on or before ``value``."""
    value = as_date(value)
    return value - timedelta(days=value.weekday())


def end_of_week(value: date) -> date:
    """Sunday on or after ``value``."""
    return start_of_week(value) + timedelta(days=6)


@dataclass(frozen=True)
class TimelineWindow:
    """Derived ``{min_date, max_date, total_days}`` bounding box."""

    min_date: date
    max_date: date
    total_days: int

    def offset(self, value: date) -> int:
        return days_between(self.min_date, value)

    def date_at(self, offset: int) -> date:
        return add_days(self.min_date, offset)

    def contains(self, value: date) -> bool:
        return self.min_date <= as_date(value) <= self.max_date


@dataclass(frozen=True)
class WeekTick:
    date: date
    offset: int
    label: str


@dataclass(frozen=True)
class Band:
    """A labelled run of days; ``days`` counts both ends."""

    label: str
    offset: int
    days: int


def date_extent(tasks: Iterable[Task]) -> Optional[Tuple[date, date]]:
    """Earliest and latest date touched by a visible bar, segment or milestone."""
    lowest: Optional[date] = None
    highest: Optional[date] = None

    def widen(start: date, end: date) -> None:
        nonlocal lowest, highest
        if lowest is None or start < lowest:
            lowest = start
        if highest is None or end > highest:
            highest = end

    for task in tasks:
        if task.has_bar:
            widen(task.start, max(task.start, task.end))
        for milestone in task.milestones:
            widen(milestone.date, milestone.date)
        for segment in task.segments:
            widen(segment.start, max(segment.start, segment.end))
    if lowest is None or highest is None:
        return None
    return lowest, highest


def compute_window(tasks: Iterable[Task], today: Optional[date] = None) -> TimelineWindow:
    """Pad the task extent and snap it outward to whole Monday-based weeks."""
    extent = date_extent(tasks)
    if extent is None:
        anchor = as_date(today or date.today())
        extent = (anchor, add_days(anchor, EMPTY_WINDOW_DAYS))
    lowest, highest = extent
    min_date = start_of_week(add_days(lowest, -LEAD_PADDING_DAYS))
    max_date = end_of_week(add_days(highest, TRAIL_PADDING_DAYS))
    return TimelineWindow(min_date, max_date, days_between(min_date, max_date) + 1)


def week_ticks(window: TimelineWindow) -> List[WeekTick]:
    ticks: List[WeekTick] = []
    current = window.min_date
    while current <= window.max_date:
        ticks.append(WeekTick(current, window.offset(current), f"{current.day}."))
        current = add_days(current, 7)
    return ticks


def _month_end(year: int, month: int) -> date:
    if month == 12:
        return date(year, 12, 31)
    return date(year, month + 1, 1) - timedelta(days=1)


def _clipped_band(window: TimelineWindow, label: str, start: date, end: date) -> Band:
    lo = window.offset(max(start, window.min_date))
    hi = window.offset(min(end, window.max_date))
    return Band(label, lo, hi - lo + 1)


def month_bands(window: TimelineWindow, with_year: bool = True) -> List[Band]:
    """One band per calendar month overlapping the window, clipped to it."""
    bands: List[Band] = []
    year, month = window.min_date.year, window.min_date.month
    while date(year, month, 1) <= window.max_date:
        first = date(year, month, 1)
        label = MONTH_ABBR[month - 1]
        if with_year:
            label += f" '{str(max(first, window.min_date).year)[2:]}"
        bands.append(_clipped_band(window, label, first, _month_end(year, month)))
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return bands


def year_bands(window: TimelineWindow) -> List[Band]:
    return [
        _clipped_band(window, str(year), date(year, 1, 1), date(year, 12, 31))
        for year in range(window.min_date.year, window.max_date.year + 1)
    ]


def today_offset(window: TimelineWindow, today: Optional[date] = None) -> Optional[int]:
    """Offset of today, or ``None`` when today lies outside the window."""
    current = as_date(today or date.today())
    if not window.contains(current):
        return None
    return window.offset(current)
