"""Main PyQt application entry point."""
from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QAction, QBrush, QCloseEvent, QColor, QFont, QKeySequence, QPainter, QPen
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QFileDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QMainWindow,
    QMessageBox,
    QScrollArea,
    QSlider,
    QSplitter,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from .colors import css_hex
from .context import ViewContext
from .export import build_export_canvas
from .exporters import export_as_pdf, export_as_pptx
from .geometry import MAX_ZOOM, MIN_ZOOM
from .interaction import (
    CURSOR_GRABBING,
    HANDLE_END,
    HANDLE_START,
    InteractionController,
    RowGeometry,
)
from .layout import (
    MARKER_STANDALONE,
    STATUS_LABELS,
    BarGlyph,
    ChartTree,
    HeaderRow,
    LegendRow,
    MarkerGlyph,
    ScopeSeparatorRow,
    TaskRow,
    TodayRow,
    compose_chart,
)
from .logger import get_logger, setup_logger
from .models import BAR_DASHED, BAR_HATCHED, STATUS_COMPLETE, STATUS_IN_PROGRESS
from .storage import load_project, save_project
from .store import Project

log = get_logger("app")

TASK_HEADERS = ["Task", "Start", "End", "Scope", "Status"]
PROJECT_FILTER = "Gantt projects (*.json)"

HANDLE_COL_W = 18
ACTIVITY_COL_W = 220
STATUS_COL_W = 110
COMMENT_COL_W = 160
HEADER_ROW_H = 22
ROW_H = 34
BAR_H = 16
SEPARATOR_H = 8
TODAY_ROW_H = 16
LEGEND_ROW_H = 26
RESIZE_GRIP_W = 6
MARKER_HIT_RADIUS = 7

GRID_COLOR = QColor("#D0D4DB")
GRID_LIGHT = QColor("#ECEDF0")
HEADER_BG = QColor("#F0F2F5")
HEADER_TEXT = QColor("#4A5568")
LABEL_TEXT = QColor("#1A1F36")
MUTED_TEXT = QColor("#718096")
TODAY_COLOR = QColor("#C62828")
SELECTED_BG = QColor("#E3F2FD")
DROP_TARGET_BG = QColor("#BBDEFB")
TOOLTIP_BG = QColor("#263238")
STATUS_COLORS = {
    STATUS_COMPLETE: QColor("#2E7D32"),
    STATUS_IN_PROGRESS: QColor("#1565C0"),
}
STATUS_DEFAULT_COLOR = QColor("#9E9E9E")


@dataclass(slots=True)
class PlacedRow:
    row: object
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(slots=True)
class ChartHit:
    kind: str  # bar, marker, row-handle or row
    task_id: str
    segment_index: Optional[int] = None
    handle: Optional[str] = None
    marker: Optional[MarkerGlyph] = None


def _row_height(row: object) -> float:
    if isinstance(row, HeaderRow):
        return HEADER_ROW_H
    if isinstance(row, ScopeSeparatorRow):
        return SEPARATOR_H
    if isinstance(row, TaskRow):
        return ROW_H
    if isinstance(row, TodayRow):
        return TODAY_ROW_H
    return LEGEND_ROW_H


class GanttChartWidget(QWidget):
    """Paints the composed chart tree and turns mouse input into drags."""

    def __init__(self, project: Project, context: ViewContext, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.project = project
        self.context = context
        self.controller = InteractionController(project, context)
        self.tree: ChartTree
        self.placed: List[PlacedRow] = []
        self.setMouseTracking(True)
        self.project.subscribe(self._handle_project_changed)
        self.refresh()

    # --- Geometry --------------------------------------------------------------

    @property
    def chart_left(self) -> float:
        return HANDLE_COL_W + ACTIVITY_COL_W

    @property
    def fixed_width(self) -> int:
        return HANDLE_COL_W + ACTIVITY_COL_W + STATUS_COL_W + COMMENT_COL_W

    @property
    def chart_width(self) -> float:
        return max(float(self.width() - self.fixed_width), float(self.tree.min_width))

    def to_px(self, percent: float) -> float:
        return self.chart_left + percent / 100.0 * self.chart_width

    def row_geometries(self) -> List[RowGeometry]:
        return [
            RowGeometry(placed.row.task_id, placed.top, placed.height)
            for placed in self.placed
            if isinstance(placed.row, TaskRow)
        ]

    def refresh(self) -> None:
        """Recompose the tree and resize to fit it."""
        self.tree = compose_chart(self.project, self.context)
        self.placed = []
        top = 0.0
        for row in self.tree.rows:
            height = _row_height(row)
            self.placed.append(PlacedRow(row, top, height))
            top += height
        self.setMinimumSize(self.fixed_width + self.tree.min_width, max(int(top) + 1, 120))
        self.update()

    def _handle_project_changed(self, preview: bool) -> None:
        self.refresh()

    # --- Hit testing -----------------------------------------------------------

    def hit_test(self, x: float, y: float) -> Optional[ChartHit]:
        for placed in self.placed:
            row = placed.row
            if not isinstance(row, TaskRow) or not placed.top <= y <= placed.bottom:
                continue
            if x < HANDLE_COL_W:
                return ChartHit("row-handle", row.task_id)
            for marker in reversed(row.markers):
                if abs(x - self.to_px(marker.left)) <= MARKER_HIT_RADIUS:
                    return ChartHit("marker", row.task_id, marker=marker)
            for bar in reversed(row.bars):
                left = self.to_px(bar.left)
                right = left + bar.width / 100.0 * self.chart_width
                if not left <= x <= right:
                    continue
                handle = None
                if x - left <= RESIZE_GRIP_W:
                    handle = HANDLE_START
                elif right - x <= RESIZE_GRIP_W:
                    handle = HANDLE_END
                return ChartHit("bar", row.task_id, segment_index=bar.segment_index, handle=handle)
            return ChartHit("row", row.task_id)
        return None

    # --- Mouse -----------------------------------------------------------------

    def mousePressEvent(self, event):  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        pos = event.position()
        x, y = pos.x(), pos.y()
        hit = self.hit_test(x, y)
        if hit is None:
            super().mousePressEvent(event)
            return
        started = False
        if hit.kind == "bar":
            started = self.controller.press_bar(
                hit.task_id, x, y, self.chart_width, self.row_geometries(),
                segment_index=hit.segment_index, handle=hit.handle,
            )
        elif hit.kind == "marker" and hit.marker is not None:
            marker = hit.marker
            if marker.kind == MARKER_STANDALONE and marker.milestone_id:
                started = self.controller.press_standalone_milestone(
                    marker.milestone_id, x, y, self.chart_width, self.row_geometries()
                )
            elif marker.index is not None:
                started = self.controller.press_activity_milestone(marker.task_id, marker.index, x, y, self.chart_width)
        elif hit.kind == "row-handle":
            started = self.controller.press_row_handle(hit.task_id, y, ROW_H)
        if not started:
            self.project.select(hit.task_id)
        self._update_cursor(x, y)
        self.update()

    def mouseMoveEvent(self, event):  # type: ignore[override]
        pos = event.position()
        if self.controller.session is not None:
            self.controller.move(pos.x(), pos.y())
            self.update()
        self._update_cursor(pos.x(), pos.y())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):  # type: ignore[override]
        pos = event.position()
        if self.controller.session is not None:
            self.controller.release(pos.x(), pos.y())
            self.update()
        self._update_cursor(pos.x(), pos.y())
        super().mouseReleaseEvent(event)

    def _update_cursor(self, x: float, y: float) -> None:
        if self.controller.feedback.cursor == CURSOR_GRABBING:
            self.setCursor(Qt.CursorShape.ClosedHandCursor)
            return
        hit = self.hit_test(x, y)
        if hit is None or hit.kind == "row":
            self.unsetCursor()
        elif hit.kind == "bar" and hit.handle:
            self.setCursor(Qt.CursorShape.SizeHorCursor)
        elif hit.kind == "marker" and hit.marker is not None and not hit.marker.draggable:
            self.setCursor(Qt.CursorShape.ForbiddenCursor)
        else:
            self.setCursor(Qt.CursorShape.OpenHandCursor)

    # --- Painting --------------------------------------------------------------

    def paintEvent(self, event):  # type: ignore[override]
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
            painter.fillRect(self.rect(), QColor("#FFFFFF"))
            if self.tree.is_placeholder:
                painter.setPen(MUTED_TEXT)
                painter.drawText(QRectF(self.rect()), Qt.AlignmentFlag.AlignCenter, self.tree.placeholder)
                return
            for placed in self.placed:
                self._paint_row(painter, placed)
            self._paint_tooltip(painter)
        finally:
            painter.end()

    def _paint_row(self, painter: QPainter, placed: PlacedRow) -> None:
        row = placed.row
        rect = QRectF(0, placed.top, self.width(), placed.height)
        if isinstance(row, HeaderRow):
            self._paint_header(painter, row, rect)
        elif isinstance(row, ScopeSeparatorRow):
            painter.fillRect(rect, GRID_LIGHT)
        elif isinstance(row, TaskRow):
            offset = self.controller.feedback.translations.get(("row", row.task_id), (0.0, 0.0))
            painter.save()
            painter.translate(*offset)
            self._paint_task_row(painter, row, rect)
            painter.restore()
        elif isinstance(row, TodayRow):
            x = self.to_px(row.left)
            painter.setPen(TODAY_COLOR)
            painter.setFont(self._font(7, bold=True))
            painter.drawText(QRectF(x - 30, rect.top(), 60, rect.height()), Qt.AlignmentFlag.AlignCenter, row.label)
        elif isinstance(row, LegendRow):
            self._paint_legend(painter, row, rect)

    def _paint_header(self, painter: QPainter, row: HeaderRow, rect: QRectF) -> None:
        painter.fillRect(rect, HEADER_BG)
        painter.setFont(self._font(8, bold=True))
        for cell in row.cells:
            left = self.to_px(cell.left)
            cell_rect = QRectF(left, rect.top(), cell.width / 100.0 * self.chart_width, rect.height())
            painter.setPen(QPen(GRID_COLOR, 1))
            painter.drawLine(QPointF(left, rect.top()), QPointF(left, rect.bottom()))
            painter.setPen(HEADER_TEXT)
            painter.drawText(cell_rect, Qt.AlignmentFlag.AlignCenter, cell.label)
        if row is self.tree.header_rows()[-1]:
            painter.setPen(HEADER_TEXT)
            activity = QRectF(HANDLE_COL_W + 6, rect.top(), ACTIVITY_COL_W - 12, rect.height())
            painter.drawText(activity, Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, "Activity")
            status_left = self.chart_left + self.chart_width
            painter.drawText(QRectF(status_left + 6, rect.top(), STATUS_COL_W, rect.height()),
                             Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, "Status")
            painter.drawText(QRectF(status_left + STATUS_COL_W + 6, rect.top(), COMMENT_COL_W, rect.height()),
                             Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, "Comment")

    def _paint_task_row(self, painter: QPainter, row: TaskRow, rect: QRectF) -> None:
        feedback = self.controller.feedback
        if feedback.highlighted_row == row.task_id:
            painter.fillRect(rect, DROP_TARGET_BG)
        elif row.selected:
            painter.fillRect(rect, SELECTED_BG)
        painter.setPen(QPen(GRID_LIGHT, 1))
        painter.drawLine(QPointF(0, rect.bottom()), QPointF(rect.right(), rect.bottom()))

        # drag grip and scope strip
        painter.setPen(MUTED_TEXT)
        painter.setFont(self._font(9))
        painter.drawText(QRectF(0, rect.top(), HANDLE_COL_W, rect.height()), Qt.AlignmentFlag.AlignCenter, "⠿")
        if row.scope_color:
            painter.fillRect(QRectF(HANDLE_COL_W, rect.top(), 4, rect.height()), QColor(css_hex(row.scope_color)))
        painter.setPen(LABEL_TEXT)
        painter.drawText(QRectF(HANDLE_COL_W + 10, rect.top(), ACTIVITY_COL_W - 16, rect.height()),
                         Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, row.name)

        painter.setPen(QPen(GRID_COLOR, 1, Qt.PenStyle.DashLine))
        for left in row.grid:
            x = self.to_px(left)
            painter.drawLine(QPointF(x, rect.top()), QPointF(x, rect.bottom()))
        if row.today is not None:
            x = self.to_px(row.today)
            painter.setPen(QPen(TODAY_COLOR, 2, Qt.PenStyle.DashLine))
            painter.drawLine(QPointF(x, rect.top()), QPointF(x, rect.bottom()))

        for bar in row.bars:
            self._paint_bar(painter, bar, rect, feedback.translations.get(bar.key, (0.0, 0.0)))
        for marker in row.markers:
            self._paint_marker(painter, marker, rect, feedback.translations.get(marker.key, (0.0, 0.0)))

        status_left = self.chart_left + self.chart_width
        painter.setPen(STATUS_COLORS.get(row.status, STATUS_DEFAULT_COLOR))
        painter.drawText(QRectF(status_left + 6, rect.top(), STATUS_COL_W - 6, rect.height()),
                         Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft,
                         f"{row.status_icon} {row.status_label}")
        if row.comment:
            painter.setPen(MUTED_TEXT)
            painter.drawText(QRectF(status_left + STATUS_COL_W + 6, rect.top(), COMMENT_COL_W - 12, rect.height()),
                             Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, row.comment)

    def _paint_bar(self, painter: QPainter, bar: BarGlyph, rect: QRectF, offset: Tuple[float, float]) -> None:
        color = QColor(css_hex(bar.color))
        bar_rect = QRectF(
            self.to_px(bar.left) + offset[0],
            rect.top() + (rect.height() - BAR_H) / 2 + offset[1],
            max(bar.width / 100.0 * self.chart_width, 3.0),
            BAR_H,
        )
        if bar.style == BAR_DASHED:
            painter.setPen(QPen(color, 1.5, Qt.PenStyle.DashLine))
            painter.setBrush(Qt.BrushStyle.NoBrush)
            painter.drawRoundedRect(bar_rect, 3, 3)
            return
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(color)
        painter.drawRoundedRect(bar_rect, 3, 3)
        if bar.style == BAR_HATCHED:
            painter.setBrush(QBrush(QColor(255, 255, 255, 150), Qt.BrushStyle.BDiagPattern))
            painter.drawRoundedRect(bar_rect, 3, 3)

    def _paint_marker(self, painter: QPainter, marker: MarkerGlyph, rect: QRectF, offset: Tuple[float, float]) -> None:
        x = self.to_px(marker.left) + offset[0]
        top = rect.top() + offset[1]
        painter.setPen(QColor(css_hex(marker.color)))
        painter.setFont(self._font(10))
        glyph = "✓" if marker.done else ("▲" if marker.kind == MARKER_STANDALONE else "◆")
        painter.drawText(QRectF(x - 8, top, 16, rect.height() * 0.55), Qt.AlignmentFlag.AlignCenter, glyph)
        painter.setPen(HEADER_TEXT)
        painter.setFont(self._font(6, bold=True))
        caption = marker.label if not marker.date_label else f"{marker.label} {marker.date_label}"
        painter.drawText(QRectF(x - 50, top + rect.height() * 0.55, 100, rect.height() * 0.45),
                         Qt.AlignmentFlag.AlignHCenter | Qt.AlignmentFlag.AlignTop, caption)

    def _paint_legend(self, painter: QPainter, row: LegendRow, rect: QRectF) -> None:
        x = self.chart_left
        painter.setFont(self._font(8))
        for entry in row.entries:
            painter.fillRect(QRectF(x, rect.center().y() - 5, 10, 10), QColor(css_hex(entry.color)))
            painter.setPen(LABEL_TEXT)
            width = painter.fontMetrics().horizontalAdvance(entry.name) + 8
            painter.drawText(QRectF(x + 14, rect.top(), width, rect.height()),
                             Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, entry.name)
            x += width + 24

    def _paint_tooltip(self, painter: QPainter) -> None:
        feedback = self.controller.feedback
        if not feedback.tooltip:
            return
        painter.setFont(self._font(8, bold=True))
        width = painter.fontMetrics().horizontalAdvance(feedback.tooltip) + 16
        box = QRectF(feedback.tooltip_pos[0], feedback.tooltip_pos[1], width, 20)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(TOOLTIP_BG)
        painter.drawRoundedRect(box, 4, 4)
        painter.setPen(QColor("#FFFFFF"))
        painter.drawText(box, Qt.AlignmentFlag.AlignCenter, feedback.tooltip)

    def _font(self, size: float, *, bold: bool = False) -> QFont:
        font = QFont(self.font())
        font.setPointSizeF(size)
        font.setBold(bold)
        return font


class TaskListWidget(QTableWidget):
    """Read-only task grid kept in sync with the project.

    Preview notifications (live drags, selection) only move the row
    highlight; the rows are rebuilt on committed changes.
    """

    def __init__(self, project: Project, parent: Optional[QWidget] = None) -> None:
        super().__init__(0, len(TASK_HEADERS), parent)
        self.project = project
        self.rebuild_count = 0
        self._syncing_selection = False
        self._setup_table()
        self.project.subscribe(self._handle_project_changed)
        self.rebuild()

    def _setup_table(self) -> None:
        self.setHorizontalHeaderLabels(TASK_HEADERS)
        self.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.verticalHeader().setVisible(False)
        header = self.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        for col in range(1, len(TASK_HEADERS)):
            header.setSectionResizeMode(col, QHeaderView.ResizeMode.ResizeToContents)
        self.itemSelectionChanged.connect(self._handle_selection_changed)

    def _handle_project_changed(self, preview: bool) -> None:
        if not preview:
            self.rebuild()
        self._sync_selection()

    def rebuild(self) -> None:
        """Re-populate every row from the project."""
        settings = self.project.settings
        self._syncing_selection = True
        self.setRowCount(len(self.project.tasks))
        for row, task in enumerate(self.project.tasks):
            scope = self.project.scope_by_id(task.scope)
            name = ("◆ " if task.is_milestone else "") + task.name
            values = [
                name,
                settings.format(task.start),
                settings.format(task.end),
                scope.name if scope else "",
                STATUS_LABELS.get(task.status, task.status),
            ]
            for col, value in enumerate(values):
                item = QTableWidgetItem(value)
                item.setData(Qt.ItemDataRole.UserRole, task.id)
                self.setItem(row, col, item)
        self._syncing_selection = False
        self.rebuild_count += 1
        self._sync_selection()

    def task_id_at(self, row: int) -> Optional[str]:
        item = self.item(row, 0)
        return item.data(Qt.ItemDataRole.UserRole) if item else None

    def _sync_selection(self) -> None:
        index = self.project.index_of(self.project.selected_id or "")
        self._syncing_selection = True
        if index < 0 or index >= self.rowCount():
            self.clearSelection()
        elif self.currentRow() != index or not self.selectedItems():
            self.selectRow(index)
        self._syncing_selection = False

    def _handle_selection_changed(self) -> None:
        if self._syncing_selection:
            return
        rows = {index.row() for index in self.selectedIndexes()}
        if len(rows) == 1:
            self.project.select(self.task_id_at(rows.pop()))


class MainWindow(QMainWindow):
    """Primary window with menus, the chart and the task list."""

    def __init__(self, project: Optional[Project] = None, context: Optional[ViewContext] = None) -> None:
        super().__init__()
        self.setWindowTitle("Gantt Canvas")
        self.project = project or Project()
        self.context = context or ViewContext()
        self.current_path: Optional[Path] = None
        self.chart = GanttChartWidget(self.project, self.context)
        self.task_list = TaskListWidget(self.project)
        self.zoom_slider = QSlider(Qt.Orientation.Horizontal)
        self.zoom_label = QLabel()
        self._build_layout()
        self._build_menu()
        self.resize(1400, 800)

    def _build_layout(self) -> None:
        """Zoom bar on top, then the chart above the task list."""
        self.zoom_slider.setRange(MIN_ZOOM, MAX_ZOOM)
        self.zoom_slider.setValue(self.context.zoom)
        self.zoom_slider.valueChanged.connect(self.set_zoom)
        self.zoom_label.setText(f"{self.context.zoom}%")

        zoom_bar = QHBoxLayout()
        zoom_bar.addWidget(QLabel("Zoom"))
        zoom_bar.addWidget(self.zoom_slider)
        zoom_bar.addWidget(self.zoom_label)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self.chart)

        splitter = QSplitter(Qt.Orientation.Vertical)
        splitter.addWidget(scroll)
        splitter.addWidget(self.task_list)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)

        container = QWidget()
        layout = QVBoxLayout(container)
        layout.addLayout(zoom_bar)
        layout.addWidget(splitter)
        self.setCentralWidget(container)

    def _build_menu(self) -> None:
        """Create File/Edit menus along with shortcuts."""
        menu = self.menuBar()
        file_menu = menu.addMenu("File")
        self._add_action(file_menu, "New", self.action_new, QKeySequence.StandardKey.New)
        self._add_action(file_menu, "Open...", self.action_open, QKeySequence.StandardKey.Open)
        self._add_action(file_menu, "Save", self.action_save, QKeySequence.StandardKey.Save)
        self._add_action(file_menu, "Save As...", self.action_save_as, QKeySequence.StandardKey.SaveAs)
        file_menu.addSeparator()
        self._add_action(file_menu, "Export PowerPoint...", self.action_export_pptx)
        self._add_action(file_menu, "Export PDF...", self.action_export_pdf)
        file_menu.addSeparator()
        self._add_action(file_menu, "Load sample", self.action_load_sample)
        file_menu.addSeparator()
        self._add_action(file_menu, "Quit", self.close, QKeySequence.StandardKey.Quit)

        edit_menu = menu.addMenu("Edit")
        self._add_action(edit_menu, "Add task", self.action_add_task, "Ctrl+T")
        self._add_action(edit_menu, "Add milestone", self.action_add_milestone, "Ctrl+M")
        self._add_action(edit_menu, "Add segment", self.action_add_segment)
        edit_menu.addSeparator()
        self._add_action(edit_menu, "Delete selected", self.action_delete_selected, QKeySequence.StandardKey.Delete)

    def _add_action(self, menu, text: str, slot, shortcut=None) -> QAction:
        action = QAction(text, self)
        if shortcut is not None:
            action.setShortcut(shortcut)
        action.triggered.connect(slot)
        menu.addAction(action)
        return action

    def set_zoom(self, value: int) -> None:
        self.context.set_zoom(value)
        self.zoom_label.setText(f"{self.context.zoom}%")
        self.chart.refresh()

    # Menu actions ------------------------------------------------------

    def action_new(self) -> None:
        self.project.set_data([])
        self.current_path = None
        self.statusBar().showMessage("Started new project", 3000)

    def action_load_sample(self) -> None:
        self.project.load_sample(self.context.today())
        self.current_path = None
        self.statusBar().showMessage("Loaded sample project", 3000)

    def action_open(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open project", filter=PROJECT_FILTER)
        if path:
            self.open_path(path)

    def open_path(self, path: Path | str) -> bool:
        """Replace the current project with the contents of ``path``."""
        try:
            loaded = load_project(path)
        except (OSError, ValueError) as exc:
            log.error("Failed to open %s: %s", path, exc)
            QMessageBox.critical(self, "Open failed", str(exc))
            return False
        self.project.set_data(loaded.tasks, loaded.scopes, loaded.ms_types, loaded.settings)
        self.current_path = Path(path)
        self.statusBar().showMessage(f"Loaded project from {path}", 3000)
        return True

    def action_save(self) -> None:
        if self.current_path is None:
            self.action_save_as()
            return
        self.save_to(self.current_path)

    def action_save_as(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Save project", filter=PROJECT_FILTER)
        if path:
            self.save_to(path)

    def save_to(self, path: Path | str) -> bool:
        try:
            save_project(path, self.project)
        except OSError as exc:
            log.error("Failed to save %s: %s", path, exc)
            QMessageBox.critical(self, "Save failed", str(exc))
            return False
        self.current_path = Path(path)
        self.statusBar().showMessage(f"Saved to {path}", 3000)
        return True

    def action_export_pptx(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Export PowerPoint", filter="PowerPoint (*.pptx)")
        if path:
            self.export_to(path)

    def action_export_pdf(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Export PDF", filter="PDF Files (*.pdf)")
        if path:
            self.export_to(path)

    def export_to(self, path: Path | str) -> bool:
        """Export by file extension: ``.pdf`` or PowerPoint otherwise."""
        target = Path(path)
        canvas = build_export_canvas(self.project, today=self.context.today())
        try:
            if target.suffix.lower() == ".pdf":
                export_as_pdf(target, canvas)
            else:
                export_as_pptx(target.with_suffix(".pptx"), canvas)
        except OSError as exc:
            log.error("Export to %s failed: %s", target, exc)
            QMessageBox.critical(self, "Export failed", str(exc))
            return False
        self.statusBar().showMessage(f"Exported to {target}", 3000)
        return True

    def action_add_task(self) -> None:
        task = self.project.add_task()
        self.project.select(task.id)

    def action_add_milestone(self) -> None:
        milestone = self.project.add_milestone()
        self.project.select(milestone.id)

    def action_add_segment(self) -> None:
        if self.project.selected_id is None or self.project.add_segment(self.project.selected_id) is None:
            self.statusBar().showMessage("Select a task to add a segment", 3000)

    def action_delete_selected(self) -> None:
        if self.project.selected_id is not None:
            self.project.delete_task(self.project.selected_id)

    def closeEvent(self, event: QCloseEvent) -> None:  # pragma: no cover - requires UI
        """Ask for confirmation before closing the application."""
        if QMessageBox.question(self, "Quit", "Close Gantt Canvas?") == QMessageBox.StandardButton.Yes:
            event.accept()
        else:
            event.ignore()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gantt-canvas", description="Interactive Gantt chart editor")
    parser.add_argument("project", nargs="?", help="project JSON file to open")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase log verbosity (-v, -vv)")
    return parser


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point used by `python -m gantt_canvas` and the console script."""
    args = build_parser().parse_args(argv)
    setup_logger(args.verbose)
    app = QApplication.instance() or QApplication(sys.argv[:1])
    window = MainWindow()
    if args.project:
        window.open_path(args.project)
    else:
        window.project.load_sample(window.context.today())
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
