"""Projection of day offsets onto a horizontal axis.

The interactive chart projects onto ``0..100`` (percent of the chart
cell), the export projects onto absolute inches starting at the chart's
left edge. The math is the same fraction ``offset / total_days``.
"""
from __future__ import annotations

import math
from datetime import date
from typing import Tuple

from .timeline import Band, TimelineWindow


BASE_CHART_WIDTH = 900
MIN_ZOOM = 25
MAX_ZOOM = 400
DEFAULT_ZOOM = 100


def round_half_up(value: float) -> int:
    """Round like a pointer snap: halves go towards positive infinity."""
    return int(math.floor(value + 0.5))


def chart_min_width(zoom: int) -> int:
    """Minimum rendered chart width in pixels; zoom never touches the percent math."""
    return round_half_up(BASE_CHART_WIDTH * zoom / 100)


class Projector:
    """Maps a timeline window onto ``extent`` units starting at ``origin``."""

    def __init__(self, window: TimelineWindow, extent: float = 100.0, origin: float = 0.0) -> None:
        self.window = window
        self.extent = extent
        self.origin = origin

    @property
    def total_days(self) -> int:
        return self.window.total_days

    def fraction(self, offset: float) -> float:
        return offset / self.window.total_days

    def x(self, offset: float) -> float:
        return self.origin + self.fraction(offset) * self.extent

    def length(self, days: float) -> float:
        return self.fraction(days) * self.extent

    def at(self, value: date) -> float:
        """Position of the left edge of ``value``'s day (ticks, today line)."""
        return self.x(self.window.offset(value))

    def point(self, value: date) -> float:
        """Position of a point marker, centred within its day."""
        return self.x(self.window.offset(value) + 0.5)

    def span(self, start: date, end: date) -> Tuple[float, float]:
        """Left edge and width of an inclusive date range."""
        start_offset = self.window.offset(start)
        end_offset = self.window.offset(end)
        return self.x(start_offset), self.length(end_offset - start_offset + 1)

    def band(self, band: Band) -> Tuple[float, float]:
        return self.x(band.offset), self.length(band.days)

    # Inverse mapping ---------------------------------------------------
    def day_delta(self, dx: float, rendered_width: float) -> int:
        """Whole days covered by a pointer displacement of ``dx`` pixels."""
        if rendered_width <= 0:
            return 0
        return round_half_up(dx / rendered_width * self.window.total_days)

    def date_at(self, px: float, rendered_width: float) -> date:
        """Date under a pointer ``px`` pixels right of the chart's left edge."""
        return self.window.date_at(self.day_delta(px, rendered_width))


def percent_projector(window: TimelineWindow) -> Projector:
    return Projector(window, 100.0, 0.0)


def absolute_projector(window: TimelineWindow, left: float, width: float) -> Projector:
    return Projector(window, width, left)
