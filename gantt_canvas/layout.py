"""Layout composition: turns the project into an immutable visual tree.

The tree is made of frozen dataclasses positioned in percent of the
chart cell, so two passes over the same data compare equal and the Qt
widget only has to scale them to pixels.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from . import colors
from .context import ViewContext
from .geometry import Projector, percent_projector
from .models import STATUS_COMPLETE, STATUS_IN_PROGRESS, STATUS_NOT_STARTED, Task
from .store import Project
from .timeline import TimelineWindow, compute_window, month_bands, today_offset, week_ticks, year_bands


PLACEHOLDER_TEXT = "Add tasks to see the Gantt chart"

HEADER_YEARS = "years"
HEADER_MONTHS = "months"
HEADER_WEEKS = "weeks"

STATUS_LABELS = {
    STATUS_COMPLETE: "Complete",
    STATUS_IN_PROGRESS: "In progress",
    STATUS_NOT_STARTED: "Not started",
}
STATUS_ICONS = {
    STATUS_COMPLETE: "●",
    STATUS_IN_PROGRESS: "◐",
    STATUS_NOT_STARTED: "○",
}

MARKER_ACTIVITY = "activity"
MARKER_STANDALONE = "standalone"


@dataclass(frozen=True)
class HeaderCell:
    label: str
    left: float
    width: float


@dataclass(frozen=True)
class HeaderRow:
    kind: str
    cells: Tuple[HeaderCell, ...]


@dataclass(frozen=True)
class BarGlyph:
    task_id: str
    segment_index: Optional[int]
    left: float
    width: float
    color: str
    style: str
    start: date
    end: date

    @property
    def key(self) -> tuple:
        return ("bar", self.task_id, self.segment_index)


@dataclass(frozen=True)
class MarkerGlyph:
    kind: str
    task_id: str
    index: Optional[int]
    milestone_id: Optional[str]
    left: float
    color: str
    label: str
    date_label: str
    done: bool
    pinned: bool = False

    @property
    def key(self) -> tuple:
        if self.kind == MARKER_STANDALONE:
            return (MARKER_STANDALONE, self.milestone_id)
        return (MARKER_ACTIVITY, self.task_id, self.index)

    @property
    def draggable(self) -> bool:
        return self.kind == MARKER_STANDALONE or not self.pinned


@dataclass(frozen=True)
class ScopeSeparatorRow:
    scope: str


@dataclass(frozen=True)
class TaskRow:
    task_id: str
    index: int
    name: str
    scope_color: Optional[str]
    selected: bool
    status: str
    comment: str
    grid: Tuple[float, ...]
    today: Optional[float]
    bars: Tuple[BarGlyph, ...]
    markers: Tuple[MarkerGlyph, ...]

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, self.status)

    @property
    def status_icon(self) -> str:
        return STATUS_ICONS.get(self.status, STATUS_ICONS[STATUS_NOT_STARTED])


@dataclass(frozen=True)
class TodayRow:
    left: float
    label: str = "TODAY"


@dataclass(frozen=True)
class LegendEntry:
    name: str
    color: str


@dataclass(frozen=True)
class LegendRow:
    entries: Tuple[LegendEntry, ...]


Row = Union[HeaderRow, ScopeSeparatorRow, TaskRow, TodayRow, LegendRow]


@dataclass(frozen=True)
class ChartTree:
    rows: Tuple[Row, ...]
    window: Optional[TimelineWindow]
    min_width: int
    placeholder: str = ""

    @property
    def is_placeholder(self) -> bool:
        return self.window is None

    def task_rows(self) -> List[TaskRow]:
        return [row for row in self.rows if isinstance(row, TaskRow)]

    def header_rows(self) -> List[HeaderRow]:
        return [row for row in self.rows if isinstance(row, HeaderRow)]


# --- Helpers shared with the export -------------------------------------------


def resolve_milestone_lanes(regular: Sequence[Task], milestones: Sequence[Task]) -> Dict[str, List[Task]]:
    """Assign each standalone milestone to a task lane.

    A valid link wins. Otherwise the milestone goes to the task whose
    range is closest to its date (zero when the date falls inside), and
    the first task in list order wins ties.
    """
    lanes: Dict[str, List[Task]] = {}
    if not regular:
        return lanes
    known = {task.id for task in regular}
    for milestone in milestones:
        lane_id = milestone.linked_task_id
        if not lane_id or lane_id not in known:
            best = regular[0]
            best_distance: Optional[int] = None
            for candidate in regular:
                distance = candidate.distance_to(milestone.start)
                if best_distance is None or distance < best_distance:
                    best, best_distance = candidate, distance
            lane_id = best.id
        lanes.setdefault(lane_id, []).append(milestone)
    return lanes


@dataclass(frozen=True)
class ScopeRun:
    """Consecutive tasks sharing one scope, with the union of their visible dates.

    ``start``/``end`` are ``None`` when no task in the run draws a bar.
    """

    scope: str
    start: Optional[date]
    end: Optional[date]


def _visible_span(task: Task) -> Optional[Tuple[date, date]]:
    spans = [(segment.start, max(segment.start, segment.end)) for segment in task.segments]
    if task.has_bar:
        spans.append((task.start, max(task.start, task.end)))
    if not spans:
        return None
    return min(lo for lo, _ in spans), max(hi for _, hi in spans)


def scope_runs(tasks: Sequence[Task]) -> List[ScopeRun]:
    runs: List[ScopeRun] = []
    for task in tasks:
        if not task.scope:
            continue
        span = _visible_span(task)
        if runs and runs[-1].scope == task.scope:
            last = runs[-1]
            if span is None:
                continue
            if last.start is None or last.end is None:
                runs[-1] = ScopeRun(task.scope, *span)
            else:
                runs[-1] = ScopeRun(task.scope, min(last.start, span[0]), max(last.end, span[1]))
        else:
            runs.append(ScopeRun(task.scope, *(span or (None, None))))
    return runs


def scope_breaks(tasks: Sequence[Task]) -> Set[int]:
    """Indices where a scoped task starts a new run after a different scope."""
    breaks: Set[int] = set()
    previous = ""
    for index, task in enumerate(tasks):
        if not task.scope:
            continue
        if previous and task.scope != previous:
            breaks.add(index)
        previous = task.scope
    return breaks


# --- Composition ----------------------------------------------------------------


def _header_rows(project: Project, window: TimelineWindow, projector: Projector) -> List[HeaderRow]:
    scale = project.settings.time_scale
    rows: List[HeaderRow] = []
    if scale.show_years:
        cells = tuple(HeaderCell(band.label, *projector.band(band)) for band in year_bands(window))
        rows.append(HeaderRow(HEADER_YEARS, cells))
    if scale.show_months:
        cells = tuple(
            HeaderCell(band.label, *projector.band(band))
            for band in month_bands(window, with_year=scale.show_years)
        )
        rows.append(HeaderRow(HEADER_MONTHS, cells))
    if scale.show_weeks:
        cells = tuple(
            HeaderCell(tick.label, projector.x(tick.offset), projector.length(7))
            for tick in week_ticks(window)
        )
        rows.append(HeaderRow(HEADER_WEEKS, cells))
    return rows


def _bars(project: Project, task: Task, projector: Projector) -> Tuple[BarGlyph, ...]:
    bars: List[BarGlyph] = []
    bar_color = project.task_color(task)
    if task.has_bar:
        left, width = projector.span(task.start, task.end)
        bars.append(BarGlyph(task.id, None, left, width, bar_color, task.bar_style, task.start, task.end))
    for index, segment in enumerate(task.segments):
        left, width = projector.span(segment.start, segment.end)
        color = colors.segment_color(segment, bar_color, project.scopes)
        bars.append(BarGlyph(task.id, index, left, width, color, segment.bar_style, segment.start, segment.end))
    return tuple(bars)


def _markers(project: Project, task: Task, lane: Sequence[Task], projector: Projector) -> Tuple[MarkerGlyph, ...]:
    settings = project.settings
    markers: List[MarkerGlyph] = []
    for index, milestone in enumerate(task.milestones):
        markers.append(
            MarkerGlyph(
                kind=MARKER_ACTIVITY,
                task_id=task.id,
                index=index,
                milestone_id=None,
                left=projector.point(milestone.date),
                color=colors.activity_milestone_color(milestone, project.ms_types, settings),
                label=milestone.display_label,
                date_label=settings.format(milestone.date) if settings.show_ms_dates else "",
                done=milestone.done,
                pinned=bool(milestone.pin),
            )
        )
    for milestone in lane:
        markers.append(
            MarkerGlyph(
                kind=MARKER_STANDALONE,
                task_id=task.id,
                index=None,
                milestone_id=milestone.id,
                left=projector.point(milestone.start),
                color=colors.standalone_milestone_color(milestone, settings),
                label=milestone.name,
                date_label=settings.format(milestone.start) if settings.show_ms_dates else "",
                done=milestone.is_complete,
            )
        )
    return tuple(markers)


def compose_chart(project: Project, context: ViewContext) -> ChartTree:
    """Build the full visual tree for the current project snapshot."""
    regular = project.regular_tasks()
    if not regular:
        context.remember_window(None)
        return ChartTree((), None, context.chart_min_width, PLACEHOLDER_TEXT)

    settings = project.settings
    window = compute_window(project.tasks, context.today())
    context.remember_window(window)
    projector = percent_projector(window)

    today = today_offset(window, context.today()) if settings.show_today else None
    today_left = projector.x(today) if today is not None else None
    grid = tuple(projector.x(tick.offset) for tick in week_ticks(window))
    lanes = resolve_milestone_lanes(regular, project.standalone_milestones())
    breaks = scope_breaks(regular)

    rows: List[Row] = list(_header_rows(project, window, projector))
    for position, task in enumerate(regular):
        if position in breaks:
            rows.append(ScopeSeparatorRow(task.scope))
        scope = project.scope_by_id(task.scope)
        rows.append(
            TaskRow(
                task_id=task.id,
                index=project.index_of(task.id),
                name=task.name,
                scope_color=scope.color if scope else None,
                selected=task.id == project.selected_id,
                status=task.status,
                comment=task.comment,
                grid=grid,
                today=today_left,
                bars=_bars(project, task, projector),
                markers=_markers(project, task, lanes.get(task.id, ()), projector),
            )
        )

    if today_left is not None:
        rows.append(TodayRow(today_left))
    # the legend lists every scope, referenced by a task or not
    if project.scopes and settings.show_legend:
        rows.append(LegendRow(tuple(LegendEntry(scope.name, scope.color) for scope in project.scopes)))

    return ChartTree(tuple(rows), window, context.chart_min_width)
