"""Display settings, catalog defaults and date formatting."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List

from .models import MilestoneType
from .timeline import MONTH_ABBR


DEFAULT_DATE_FORMAT = "DD.MM.YYYY"
DATE_FORMATS = (DEFAULT_DATE_FORMAT, "MM/DD/YYYY", "YYYY-MM-DD", "DD MMM YYYY", "MMM DD")

DEFAULT_MS_COLOR = "#37474F"

DEFAULT_SCOPE_PALETTE = [
    "#388E3C", "#1565C0", "#880E4F", "#E65100",
    "#4527A0", "#00695C", "#37474F", "#AD1457",
    "#00838F", "#BF360C", "#283593", "#558B2F",
]

DEFAULT_PRESET_MS_COLORS = ["#2E7D32", "#F9A825", "#C62828"]


def default_ms_types() -> List[MilestoneType]:
    return [
        MilestoneType(type="IA", label="Initial Approval", color="#E65100"),
        MilestoneType(type="FA", label="Final Approval", color="#2E7D32"),
        MilestoneType(type="TL", label="Technical Launch", color="#1565C0"),
    ]


@dataclass
class TimeScale:
    """Which header bands are visible above the chart."""

    show_years: bool = True
    show_months: bool = True
    show_weeks: bool = True


@dataclass
class DisplaySettings:
    date_format: str = DEFAULT_DATE_FORMAT
    show_today: bool = True
    show_ms_dates: bool = True
    show_legend: bool = True
    ms_color: str = DEFAULT_MS_COLOR
    time_scale: TimeScale = field(default_factory=TimeScale)
    preset_ms_colors: List[str] = field(default_factory=lambda: list(DEFAULT_PRESET_MS_COLORS))

    def format(self, value: date) -> str:
        return format_date(value, self.date_format)


def format_date(value: date | None, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    """Render ``value`` in one of the supported display formats.

    Unknown formats fall back to ``DD.MM.YYYY``.
    """
    if value is None:
        return ""
    month_abbr = MONTH_ABBR[value.month - 1]
    if fmt == "MM/DD/YYYY":
        return f"{value.month:02d}/{value.day:02d}/{value.year}"
    if fmt == "YYYY-MM-DD":
        return value.isoformat()
    if fmt == "DD MMM YYYY":
        return f"{value.day:02d} {month_abbr} {value.year}"
    if fmt == "MMM DD":
        return f"{month_abbr} {value.day}"
    return f"{value.day:02d}.{value.month:02d}.{value.year}"
