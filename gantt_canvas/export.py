"""Export projection: the chart laid out on a fixed 13.33 x 7.5 inch canvas.

The canvas is a flat list of rectangles, lines and positioned text in
inches with ``RRGGBB`` colors. ``exporters`` turns it into a PowerPoint
slide or a PDF page; neither writer does any layout of its own.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Sequence, Set, Tuple, Union

from . import colors
from .geometry import Projector, absolute_projector
from .layout import STATUS_ICONS, STATUS_LABELS, resolve_milestone_lanes, scope_breaks, scope_runs
from .models import BAR_DASHED, BAR_HATCHED, STATUS_COMPLETE, STATUS_IN_PROGRESS, Task
from .store import Project
from .timeline import TimelineWindow, compute_window, month_bands, today_offset, week_ticks


SLIDE_W = 13.33
SLIDE_H = 7.5
MARGIN_L, MARGIN_R, MARGIN_T = 0.3, 0.2, 0.15
SCOPE_COL_W = 0.12
LABEL_COL_W = 2.3
STATUS_COL_W = 1.0
COMMENT_COL_W = 1.3

CHART_L = MARGIN_L + SCOPE_COL_W + LABEL_COL_W
CHART_R = SLIDE_W - MARGIN_R - STATUS_COL_W - COMMENT_COL_W
CHART_W = CHART_R - CHART_L

SCOPE_BAND_H = 0.22
MONTH_ROW_H = 0.22
DAY_ROW_H = 0.18
HEADER_H = SCOPE_BAND_H + MONTH_ROW_H + DAY_ROW_H
ROW_H = 0.28
BAR_H = 0.17
SCOPE_GAP = 0.06
MIN_BAR_W = 0.04

# hatched bars: thin light strokes repeated at a fixed pitch
HATCH_PITCH = 0.06
HATCH_SLANT = 0.04

FONT = "Segoe UI"

GRID = "D0D4DB"
GRID_LIGHT = "ECEDF0"
HEADER_TEXT = "4A5568"
LABEL_TEXT = "1A1F36"
MUTED_TEXT = "718096"
WHITE = "FFFFFF"
TODAY = "C62828"
STATUS_COLORS = {
    STATUS_COMPLETE: "2E7D32",
    STATUS_IN_PROGRESS: "1565C0",
}
STATUS_NOT_STARTED_COLOR = "9E9E9E"

ColorNormalizer = Callable[[Optional[str], str], str]


@dataclass(frozen=True)
class TextRun:
    text: str
    size: float
    color: str
    bold: bool = False


@dataclass(frozen=True)
class CanvasShape:
    """One drawable item; lines run from ``(x, y)`` to ``(x + w, y + h)``."""

    kind: str
    x: float
    y: float
    w: float
    h: float
    fill: Optional[str] = None
    line: Optional[str] = None
    line_width: float = 0.0
    dashed: bool = False
    runs: Tuple[TextRun, ...] = ()
    align: str = "left"
    valign: str = "middle"
    wrap: bool = False
    font: str = FONT

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


class ExportCanvas:
    """Fixed-size vector canvas measured in inches."""

    def __init__(self, width: float = SLIDE_W, height: float = SLIDE_H) -> None:
        self.width = width
        self.height = height
        self.shapes: List[CanvasShape] = []

    def rect(self, x: float, y: float, w: float, h: float, *, fill: Optional[str] = None,
             line: Optional[str] = None, line_width: float = 0.0, dashed: bool = False) -> None:
        self.shapes.append(CanvasShape("rect", x, y, w, h, fill=fill, line=line, line_width=line_width, dashed=dashed))

    def line(self, x1: float, y1: float, x2: float, y2: float, *, color: str, width: float = 0.5,
             dashed: bool = False) -> None:
        self.shapes.append(CanvasShape("line", x1, y1, x2 - x1, y2 - y1, line=color, line_width=width, dashed=dashed))

    def text(self, x: float, y: float, w: float, h: float, content: Union[str, Sequence[TextRun]], *,
             size: float = 8, color: str = LABEL_TEXT, bold: bool = False, align: str = "left",
             valign: str = "middle", wrap: bool = False) -> None:
        if isinstance(content, str):
            runs: Tuple[TextRun, ...] = (TextRun(content, size, color, bold),)
        else:
            runs = tuple(content)
        self.shapes.append(CanvasShape("text", x, y, w, h, runs=runs, align=align, valign=valign, wrap=wrap))

    def of_kind(self, kind: str) -> List[CanvasShape]:
        return [shape for shape in self.shapes if shape.kind == kind]


def _row_top(chart_top: float, index: int, breaks: Set[int]) -> float:
    gaps = sum(1 for position in breaks if position <= index)
    return chart_top + index * ROW_H + gaps * SCOPE_GAP


class _Painter:
    """Draws one project onto one canvas."""

    def __init__(self, project: Project, canvas: ExportCanvas, window: TimelineWindow,
                 normalize: ColorNormalizer, today: Optional[date]) -> None:
        self.project = project
        self.canvas = canvas
        self.window = window
        self.projector: Projector = absolute_projector(window, CHART_L, CHART_W)
        self.normalize = normalize
        self.today = today

    def hex(self, value: Optional[str], default: str = colors.DEFAULT_BAR_COLOR) -> str:
        return self.normalize(value, default)

    def scope_bands(self, tasks: Sequence[Task], top: float) -> None:
        for run in scope_runs(tasks):
            scope = self.project.scope_by_id(run.scope)
            if scope is None or run.start is None or run.end is None:
                continue
            lo = max(0, self.window.offset(run.start))
            hi = min(self.window.offset(run.end), self.window.total_days - 1)
            if hi < lo:
                continue
            x, w = self.projector.x(lo), self.projector.length(hi - lo + 1)
            if w < 0.01:
                continue
            self.canvas.rect(x, top, w, SCOPE_BAND_H, fill=self.hex(scope.color, colors.DEFAULT_SCOPE_COLOR))
            self.canvas.text(x, top, w, SCOPE_BAND_H, scope.name.upper(), size=7, color=WHITE, bold=True,
                             align="center")

    def month_header(self, top: float) -> None:
        self.canvas.rect(CHART_L, top, CHART_W, MONTH_ROW_H, fill=WHITE, line=GRID, line_width=0.3)
        for band in month_bands(self.window, with_year=False):
            x, w = self.projector.band(band)
            if w < 0.01:
                continue
            self.canvas.line(x, top, x, top + MONTH_ROW_H, color=GRID, width=0.4)
            self.canvas.text(x, top, w, MONTH_ROW_H, band.label, size=8, color=HEADER_TEXT, bold=True,
                             align="center")

    def week_header(self, top: float) -> None:
        for tick in week_ticks(self.window):
            x = self.projector.x(tick.offset)
            self.canvas.text(x - 0.12, top, 0.24, DAY_ROW_H, tick.label, size=7, color=MUTED_TEXT, align="center")

    def column_headers(self, top: float) -> None:
        self.canvas.text(MARGIN_L + SCOPE_COL_W + 0.08, top, LABEL_COL_W - 0.16, DAY_ROW_H, "Activity",
                         size=7, color=HEADER_TEXT, bold=True)
        self.canvas.text(CHART_R + 0.05, top, STATUS_COL_W - 0.1, DAY_ROW_H, "Status",
                         size=7, color=HEADER_TEXT, bold=True)
        self.canvas.text(CHART_R + STATUS_COL_W + 0.05, top, COMMENT_COL_W - 0.1, DAY_ROW_H, "Comment",
                         size=7, color=HEADER_TEXT, bold=True)

    def grid(self, chart_top: float, body_h: float) -> None:
        for tick in week_ticks(self.window):
            x = self.projector.x(tick.offset)
            self.canvas.line(x, chart_top, x, chart_top + body_h, color=GRID, width=0.3, dashed=True)

    def bar(self, start: date, end: date, row_top: float, color: str, style: str) -> None:
        x, w = self.projector.span(start, end)
        w = max(w, MIN_BAR_W)
        y = row_top + (ROW_H - BAR_H) / 2
        if style == BAR_DASHED:
            self.canvas.rect(x, y, w, BAR_H, line=color, line_width=1.2, dashed=True)
            return
        self.canvas.rect(x, y, w, BAR_H, fill=color)
        if style == BAR_HATCHED:
            step = 0.0
            while step < w:
                x1 = x + step
                x2 = min(x1 + HATCH_SLANT, x + w)
                self.canvas.line(x1, y, x2, y + BAR_H, color=WHITE, width=0.4)
                step += HATCH_PITCH

    def marker(self, x: float, row_top: float, color: str, done: bool, label: str, label_w: float) -> None:
        self.canvas.text(x - 0.06, row_top, 0.12, ROW_H * 0.6, "✓" if done else "▲", size=8, color=color,
                         align="center")
        self.canvas.text(x - label_w / 2, row_top + ROW_H * 0.5, label_w, ROW_H * 0.5, label, size=5,
                         color=HEADER_TEXT, bold=True, align="center", valign="top", wrap=True)

    def task_row(self, task: Task, row_top: float, lane: Sequence[Task]) -> None:
        project = self.project
        settings = project.settings
        canvas = self.canvas
        canvas.line(MARGIN_L, row_top + ROW_H, SLIDE_W - MARGIN_R, row_top + ROW_H, color=GRID_LIGHT, width=0.3)

        scope = project.scope_by_id(task.scope)
        if scope is not None:
            canvas.rect(MARGIN_L, row_top, SCOPE_COL_W - 0.02, ROW_H,
                        fill=self.hex(scope.color, colors.DEFAULT_SCOPE_COLOR))
        canvas.text(MARGIN_L + SCOPE_COL_W + 0.08, row_top, LABEL_COL_W - 0.16, ROW_H, task.name, size=8,
                    color=LABEL_TEXT)

        bar_color = project.task_color(task)
        if task.has_bar:
            self.bar(task.start, task.end, row_top, self.hex(bar_color), task.bar_style)
        for segment in task.segments:
            color = colors.segment_color(segment, bar_color, project.scopes)
            self.bar(segment.start, segment.end, row_top, self.hex(color), segment.bar_style)

        for milestone in task.milestones:
            color = colors.activity_milestone_color(milestone, project.ms_types, settings)
            self.marker(self.projector.point(milestone.date), row_top,
                        self.hex(color, colors.DEFAULT_ACTIVITY_MS_COLOR), milestone.done,
                        milestone.display_label, 0.3)
        for milestone in lane:
            color = colors.standalone_milestone_color(milestone, settings)
            self.marker(self.projector.point(milestone.start), row_top,
                        self.hex(color, colors.DEFAULT_STANDALONE_MS_COLOR), milestone.is_complete,
                        milestone.name, 0.8)

        status_color = STATUS_COLORS.get(task.status, STATUS_NOT_STARTED_COLOR)
        icon = STATUS_ICONS.get(task.status, "○")
        label = STATUS_LABELS.get(task.status, task.status)
        canvas.text(CHART_R + 0.05, row_top, STATUS_COL_W - 0.1, ROW_H,
                    [TextRun(icon + " ", 8, status_color), TextRun(label, 7, MUTED_TEXT)])
        if task.comment:
            canvas.text(CHART_R + STATUS_COL_W + 0.05, row_top, COMMENT_COL_W - 0.1, ROW_H, task.comment,
                        size=7, color=MUTED_TEXT)

    def today_line(self, chart_top: float, body_h: float) -> None:
        offset = today_offset(self.window, self.today)
        if offset is None:
            return
        x = self.projector.x(offset)
        self.canvas.line(x, chart_top, x, chart_top + body_h, color=TODAY, width=1.2, dashed=True)
        self.canvas.text(x - 0.22, chart_top + body_h + 0.02, 0.44, 0.14, "TODAY", size=6, color=TODAY,
                         bold=True, align="center")

    def unlinked_milestones(self, milestones: Sequence[Task], chart_top: float, top: float) -> None:
        if not milestones:
            return
        self.canvas.line(CHART_L, top, CHART_R, top, color=GRID, width=0.8)
        for milestone in milestones:
            x = self.projector.point(milestone.start)
            color = self.hex(colors.standalone_milestone_color(milestone, self.project.settings),
                             colors.DEFAULT_STANDALONE_MS_COLOR)
            self.canvas.line(x, chart_top, x, top, color=GRID, width=0.5, dashed=True)
            self.canvas.text(x - 0.08, top + 0.02, 0.16, 0.14, "✓" if milestone.is_complete else "▲", size=8,
                             color=color, align="center")
            self.canvas.text(x - 0.5, top + 0.16, 1.0, 0.35, milestone.name, size=6, color=HEADER_TEXT,
                             align="center", valign="top", wrap=True)

    def borders(self, chart_top: float, body_h: float) -> None:
        canvas = self.canvas
        bottom = chart_top + body_h
        columns_top = MARGIN_T + SCOPE_BAND_H + MONTH_ROW_H
        canvas.line(MARGIN_L, chart_top, SLIDE_W - MARGIN_R, chart_top, color=GRID, width=0.6)
        canvas.line(MARGIN_L, bottom, SLIDE_W - MARGIN_R, bottom, color=GRID, width=0.6)
        canvas.line(CHART_L, chart_top, CHART_L, bottom, color=GRID, width=0.4)
        canvas.line(CHART_R, columns_top, CHART_R, bottom, color=GRID, width=0.3)
        canvas.line(CHART_R + STATUS_COL_W, columns_top, CHART_R + STATUS_COL_W, bottom, color=GRID, width=0.3)


def build_export_canvas(
    project: Project,
    *,
    today: Optional[date] = None,
    normalize: ColorNormalizer = colors.normalize_hex,
) -> ExportCanvas:
    """Lay the project out on a slide-sized canvas."""
    today = today or date.today()
    regular = project.regular_tasks()
    known = {task.id for task in regular}
    linked = [ms for ms in project.standalone_milestones() if ms.linked_task_id in known]
    unlinked = [ms for ms in project.standalone_milestones() if ms.linked_task_id not in known]
    lanes = resolve_milestone_lanes(regular, linked)
    breaks = scope_breaks(regular)

    window = compute_window(project.tasks, today)
    canvas = ExportCanvas()
    painter = _Painter(project, canvas, window, normalize, today if project.settings.show_today else None)

    chart_top = MARGIN_T + HEADER_H
    body_h = len(regular) * ROW_H + len(breaks) * SCOPE_GAP

    painter.scope_bands(regular, MARGIN_T)
    painter.month_header(MARGIN_T + SCOPE_BAND_H)
    painter.week_header(MARGIN_T + SCOPE_BAND_H + MONTH_ROW_H)
    painter.column_headers(MARGIN_T + SCOPE_BAND_H + MONTH_ROW_H)
    painter.grid(chart_top, body_h)
    for index, task in enumerate(regular):
        painter.task_row(task, _row_top(chart_top, index, breaks), lanes.get(task.id, ()))
    if project.settings.show_today:
        painter.today_line(chart_top, body_h)
    painter.unlinked_milestones(unlinked, chart_top, chart_top + body_h)
    painter.borders(chart_top, body_h)
    return canvas
