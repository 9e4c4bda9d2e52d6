"""Pointer-driven editing of the chart.

The controller is a two-state machine (``idle`` and ``dragging``). A
press on a draggable element opens a :class:`DragSession`; moves update
a live preview through the store's preview-only writes; the release
commits and always returns the controller to ``idle``. Coordinates are
plain floats in the chart widget's pixel space, so the controller runs
without any rendering surface.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Optional, Sequence, Tuple

from .context import ViewContext
from .geometry import percent_projector, round_half_up
from .logger import get_logger
from .store import Project
from .timeline import TimelineWindow, add_days

log = get_logger("interaction")

STATE_IDLE = "idle"
STATE_DRAGGING = "dragging"

MODE_MOVE = "move"
MODE_RESIZE_START = "resize-start"
MODE_RESIZE_END = "resize-end"
MODE_MILESTONE = "milestone"
MODE_ACTIVITY = "activity-milestone"
MODE_REORDER = "reorder"

HANDLE_START = "start"
HANDLE_END = "end"

CURSOR_GRABBING = "grabbing"
TOOLTIP_OFFSET = (14.0, -30.0)
RANGE_SEPARATOR = "  →  "


@dataclass(frozen=True)
class RowGeometry:
    """Vertical extent of one task row, in widget pixels."""

    task_id: str
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def mid(self) -> float:
        return self.top + self.height / 2

    def contains(self, y: float) -> bool:
        return self.top <= y <= self.bottom


@dataclass
class DragSession:
    """Everything a drag needs, captured once at pointer-down."""

    mode: str
    task_id: str
    origin_x: float
    origin_y: float
    window: TimelineWindow
    chart_width: float = 0.0
    segment_index: Optional[int] = None
    milestone_index: Optional[int] = None
    original_start: Optional[date] = None
    original_end: Optional[date] = None
    linked_milestone_ids: Tuple[str, ...] = ()
    rows: Tuple[RowGeometry, ...] = ()
    row_index: int = -1
    row_height: float = 0.0
    dx: float = 0.0
    dy: float = 0.0

    @property
    def is_segment(self) -> bool:
        return self.segment_index is not None

    @property
    def displaced(self) -> bool:
        return self.dx != 0 or self.dy != 0

    def day_delta(self) -> int:
        return percent_projector(self.window).day_delta(self.dx, self.chart_width)


@dataclass
class DragFeedback:
    """What the view shows while a drag is in flight."""

    cursor: str = ""
    selection_disabled: bool = False
    tooltip: Optional[str] = None
    tooltip_pos: Tuple[float, float] = (0.0, 0.0)
    highlighted_row: Optional[str] = None
    translations: Dict[tuple, Tuple[float, float]] = field(default_factory=dict)


class InteractionController:
    """Drag-to-move, resize, retarget and reorder on top of a :class:`Project`."""

    def __init__(self, project: Project, context: ViewContext) -> None:
        self.project = project
        self.context = context
        self.session: Optional[DragSession] = None
        self.feedback = DragFeedback()

    @property
    def state(self) -> str:
        return STATE_DRAGGING if self.session is not None else STATE_IDLE

    # --- Pointer-down ----------------------------------------------------------

    def _begin(self, session: DragSession) -> bool:
        self.session = session
        self.feedback = DragFeedback(cursor=CURSOR_GRABBING, selection_disabled=True)
        log.debug("drag start: %s %s", session.mode, session.task_id)
        return True

    def _window(self) -> TimelineWindow:
        return self.context.timeline(self.project.tasks)

    def press_bar(
        self,
        task_id: str,
        x: float,
        y: float,
        chart_width: float,
        rows: Sequence[RowGeometry] = (),
        *,
        segment_index: Optional[int] = None,
        handle: Optional[str] = None,
    ) -> bool:
        """Start moving or resizing a task bar or one of its segments."""
        if self.session is not None:
            return False
        task = self.project.get_task(task_id)
        if task is None:
            return False
        if segment_index is not None:
            if not 0 <= segment_index < len(task.segments):
                return False
            start, end = task.segments[segment_index].start, task.segments[segment_index].end
            linked: Tuple[str, ...] = ()
        else:
            start, end = task.start, task.end
            linked = tuple(ms.id for ms in self.project.linked_milestones(task_id))
        mode = {HANDLE_START: MODE_RESIZE_START, HANDLE_END: MODE_RESIZE_END}.get(handle or "", MODE_MOVE)
        self.project.select(task_id)
        return self._begin(
            DragSession(
                mode=mode,
                task_id=task_id,
                origin_x=x,
                origin_y=y,
                window=self._window(),
                chart_width=chart_width,
                segment_index=segment_index,
                original_start=start,
                original_end=end,
                linked_milestone_ids=linked,
                rows=tuple(rows),
            )
        )

    def press_standalone_milestone(
        self, milestone_id: str, x: float, y: float, chart_width: float, rows: Sequence[RowGeometry] = ()
    ) -> bool:
        if self.session is not None:
            return False
        milestone = self.project.get_task(milestone_id)
        if milestone is None or not milestone.is_milestone:
            return False
        self.project.select(milestone_id)
        return self._begin(
            DragSession(
                mode=MODE_MILESTONE,
                task_id=milestone_id,
                origin_x=x,
                origin_y=y,
                window=self._window(),
                chart_width=chart_width,
                original_start=milestone.start,
                original_end=milestone.start,
                rows=tuple(rows),
            )
        )

    def press_activity_milestone(self, task_id: str, index: int, x: float, y: float, chart_width: float) -> bool:
        """Start dragging an activity milestone; pinned markers refuse."""
        if self.session is not None:
            return False
        task = self.project.get_task(task_id)
        if task is None or not 0 <= index < len(task.milestones):
            return False
        milestone = task.milestones[index]
        if not milestone.is_draggable:
            return False
        return self._begin(
            DragSession(
                mode=MODE_ACTIVITY,
                task_id=task_id,
                origin_x=x,
                origin_y=y,
                window=self._window(),
                chart_width=chart_width,
                milestone_index=index,
                original_start=milestone.date,
                original_end=milestone.date,
            )
        )

    def press_row_handle(self, task_id: str, y: float, row_height: float) -> bool:
        if self.session is not None:
            return False
        index = self.project.index_of(task_id)
        if index < 0:
            return False
        task = self.project.tasks[index]
        self.project.select(task_id)
        return self._begin(
            DragSession(
                mode=MODE_REORDER,
                task_id=task_id,
                origin_x=0.0,
                origin_y=y,
                window=self._window(),
                original_start=task.start,
                original_end=task.end,
                row_index=index,
                row_height=row_height,
            )
        )

    # --- Pointer-move ----------------------------------------------------------

    def move(self, x: float, y: float) -> None:
        session = self.session
        if session is None:
            return
        session.dx = x - session.origin_x if session.mode != MODE_REORDER else 0.0
        session.dy = y - session.origin_y
        if session.mode in (MODE_MOVE, MODE_RESIZE_START, MODE_RESIZE_END):
            start, end = self._preview_bar(session)
            self._show_tooltip(x, y, start, end)
            if session.mode == MODE_MOVE:
                target = self._row_under(session, y)
                self.feedback.highlighted_row = target.task_id if target else None
                self._translate_bar(session)
        elif session.mode == MODE_MILESTONE:
            self._show_tooltip(x, y, self._shifted(session))
            self.feedback.translations = {("standalone", session.task_id): (session.dx, session.dy)}
        elif session.mode == MODE_ACTIVITY:
            self._show_tooltip(x, y, self._preview_activity(session))
        elif session.mode == MODE_REORDER:
            self._show_tooltip(x, y, session.original_start, session.original_end)
            self.feedback.translations = {("row", session.task_id): (0.0, session.dy)}

    def _shifted(self, session: DragSession) -> date:
        return add_days(session.original_start, session.day_delta())

    def _bar_dates(self, session: DragSession) -> Tuple[date, date]:
        delta = session.day_delta()
        start, end = session.original_start, session.original_end
        if session.mode == MODE_MOVE:
            return add_days(start, delta), add_days(end, delta)
        if session.mode == MODE_RESIZE_START:
            return min(add_days(start, delta), end), end
        return start, max(add_days(end, delta), start)

    def _current_bar_dates(self, session: DragSession) -> Optional[Tuple[date, date]]:
        task = self.project.get_task(session.task_id)
        if task is None:
            return None
        if session.segment_index is None:
            return task.start, task.end
        if not 0 <= session.segment_index < len(task.segments):
            return None
        segment = task.segments[session.segment_index]
        return segment.start, segment.end

    def _preview_bar(self, session: DragSession) -> Tuple[date, date]:
        start, end = self._bar_dates(session)
        current = self._current_bar_dates(session)
        if current is not None and current != (start, end):
            if session.segment_index is None:
                self.project.update_task(session.task_id, preview=True, start=start, end=end)
            else:
                self.project.update_segment(
                    session.task_id, session.segment_index, preview=True, start=start, end=end
                )
        return start, end

    def _preview_activity(self, session: DragSession) -> date:
        new_date = self._shifted(session)
        task = self.project.get_task(session.task_id)
        index = session.milestone_index
        if task is not None and index is not None and index < len(task.milestones):
            if task.milestones[index].date != new_date:
                self.project.update_activity_milestone(session.task_id, index, preview=True, date=new_date)
        return new_date

    def _translate_bar(self, session: DragSession) -> None:
        offset = (0.0, session.dy)
        translations = {("bar", session.task_id, session.segment_index): offset}
        if not session.is_segment:
            task = self.project.get_task(session.task_id)
            for index in range(len(task.milestones) if task else 0):
                translations[("activity", session.task_id, index)] = offset
            for milestone_id in session.linked_milestone_ids:
                translations[("standalone", milestone_id)] = offset
        self.feedback.translations = translations

    def _show_tooltip(self, x: float, y: float, start: Optional[date], end: Optional[date] = None) -> None:
        settings = self.project.settings
        text = settings.format(start)
        if end is not None:
            text += RANGE_SEPARATOR + settings.format(end)
        self.feedback.tooltip = text
        self.feedback.tooltip_pos = (x + TOOLTIP_OFFSET[0], y + TOOLTIP_OFFSET[1])

    @staticmethod
    def _row_under(session: DragSession, y: float) -> Optional[RowGeometry]:
        """A different task's row under the pointer, if any."""
        target = None
        for row in session.rows:
            if row.task_id != session.task_id and row.contains(y):
                target = row
        return target

    @staticmethod
    def _closest_row(session: DragSession, y: float) -> Optional[RowGeometry]:
        closest, closest_distance = None, None
        for row in session.rows:
            distance = abs(y - row.mid)
            if closest_distance is None or distance < closest_distance:
                closest, closest_distance = row, distance
        return closest

    # --- Pointer-up ------------------------------------------------------------

    def release(self, x: float, y: float) -> None:
        """Finish the drag. Feedback is reset even if the commit fails."""
        session = self.session
        if session is None:
            return
        try:
            session.dx = x - session.origin_x if session.mode != MODE_REORDER else 0.0
            session.dy = y - session.origin_y
            if session.mode in (MODE_MOVE, MODE_RESIZE_START, MODE_RESIZE_END):
                self._drop_bar(session, y)
            elif session.mode == MODE_MILESTONE:
                self._drop_milestone(session, y)
            elif session.mode == MODE_ACTIVITY:
                self._drop_activity(session)
            elif session.mode == MODE_REORDER:
                self._drop_row(session)
        finally:
            self.session = None
            self.feedback = DragFeedback()
            log.debug("drag end: %s %s", session.mode, session.task_id)

    def _drop_bar(self, session: DragSession, y: float) -> None:
        start, end = self._preview_bar(session)
        target = self._row_under(session, y) if session.mode == MODE_MOVE and session.displaced else None
        if target is not None:
            if session.is_segment:
                self.project.move_segment_to_task(session.task_id, session.segment_index, target.task_id)
            elif self.project.move_bar_to_task(session.task_id, target.task_id) is not None:
                for milestone_id in session.linked_milestone_ids:
                    self.project.update_task(milestone_id, linked_task_id=target.task_id)
            return
        if (start, end) == (session.original_start, session.original_end):
            return
        if session.is_segment:
            self.project.update_segment(session.task_id, session.segment_index, start=start, end=end)
        else:
            self.project.update_task(session.task_id, start=start, end=end)

    def _drop_milestone(self, session: DragSession, y: float) -> None:
        if not session.displaced:
            return
        new_date = self._shifted(session)
        changes: dict = {"start": new_date, "end": new_date}
        closest = self._closest_row(session, y)
        if closest is not None:
            changes["linked_task_id"] = closest.task_id
        self.project.update_task(session.task_id, **changes)

    def _drop_activity(self, session: DragSession) -> None:
        new_date = self._preview_activity(session)
        if new_date != session.original_start and session.milestone_index is not None:
            self.project.update_activity_milestone(session.task_id, session.milestone_index, date=new_date)

    def _drop_row(self, session: DragSession) -> None:
        if session.row_height <= 0:
            return
        rows_moved = round_half_up(session.dy / session.row_height)
        if rows_moved == 0:
            return
        target = max(0, min(len(self.project.tasks) - 1, session.row_index + rows_moved))
        self.project.reorder_task(session.row_index, target)
