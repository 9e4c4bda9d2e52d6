"""View context: per-view state the composer and controller share."""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from .geometry import DEFAULT_ZOOM, MAX_ZOOM, MIN_ZOOM, chart_min_width
from .models import Task
from .timeline import TimelineWindow, compute_window


class ViewContext:
    """Zoom level, the last computed timeline window and the clock.

    One instance lives alongside each chart view. Nothing in here is
    persisted; the window is refreshed by every layout pass.
    """

    def __init__(self, zoom: int = DEFAULT_ZOOM, today: Optional[date] = None) -> None:
        self._zoom = DEFAULT_ZOOM
        self._window: Optional[TimelineWindow] = None
        self._today = today
        self.set_zoom(zoom)

    @property
    def zoom(self) -> int:
        return self._zoom

    def set_zoom(self, value: int) -> None:
        self._zoom = max(MIN_ZOOM, min(MAX_ZOOM, int(value)))

    @property
    def chart_min_width(self) -> int:
        return chart_min_width(self._zoom)

    def today(self) -> date:
        return self._today or date.today()

    @property
    def window(self) -> Optional[TimelineWindow]:
        return self._window

    def remember_window(self, window: Optional[TimelineWindow]) -> None:
        self._window = window

    def timeline(self, tasks: Iterable[Task]) -> TimelineWindow:
        """Return the cached window, computing it on first use."""
        if self._window is None:
            self._window = compute_window(tasks, self.today())
        return self._window
