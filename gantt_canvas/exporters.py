"""Export writers for PowerPoint and PDF.

Both writers draw the same ``ExportCanvas``; all layout decisions live in
``export.build_export_canvas``.
"""
from __future__ import annotations

from pathlib import Path

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.dml import MSO_LINE_DASH_STYLE
from pptx.enum.shapes import MSO_CONNECTOR, MSO_SHAPE
from pptx.enum.text import MSO_VERTICAL_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt
from PyQt6.QtCore import QMarginsF, QPointF, QRectF, QSizeF, Qt
from PyQt6.QtGui import QColor, QFont, QPageLayout, QPageSize, QPainter, QPen, QPdfWriter

from .export import CanvasShape, ExportCanvas
from .logger import get_logger

log = get_logger("exporters")

PPTX_BLANK_LAYOUT = 6
PDF_RESOLUTION = 300
POINTS_PER_INCH = 72

_PPTX_ALIGN = {"left": PP_ALIGN.LEFT, "center": PP_ALIGN.CENTER, "right": PP_ALIGN.RIGHT}
_PPTX_ANCHOR = {
    "top": MSO_VERTICAL_ANCHOR.TOP,
    "middle": MSO_VERTICAL_ANCHOR.MIDDLE,
    "bottom": MSO_VERTICAL_ANCHOR.BOTTOM,
}
_QT_HALIGN = {
    "left": Qt.AlignmentFlag.AlignLeft,
    "center": Qt.AlignmentFlag.AlignHCenter,
    "right": Qt.AlignmentFlag.AlignRight,
}
_QT_VALIGN = {
    "top": Qt.AlignmentFlag.AlignTop,
    "middle": Qt.AlignmentFlag.AlignVCenter,
    "bottom": Qt.AlignmentFlag.AlignBottom,
}


def _rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color.upper())


# --- PowerPoint ---------------------------------------------------------------


def export_as_pptx(path: Path | str, canvas: ExportCanvas) -> None:
    """Write the canvas as a single editable slide."""
    pptx_path = Path(path)
    pptx_path.parent.mkdir(parents=True, exist_ok=True)

    prs = Presentation()
    prs.slide_width = Inches(canvas.width)
    prs.slide_height = Inches(canvas.height)
    slide = prs.slides.add_slide(prs.slide_layouts[PPTX_BLANK_LAYOUT])

    for shape in canvas.shapes:
        if shape.kind == "rect":
            _pptx_rect(slide, shape)
        elif shape.kind == "line":
            _pptx_line(slide, shape)
        elif shape.kind == "text":
            _pptx_text(slide, shape)

    prs.save(str(pptx_path))
    log.info("Exported %d shapes to %s", len(canvas.shapes), pptx_path)


def _pptx_rect(slide, shape: CanvasShape) -> None:
    rect = slide.shapes.add_shape(
        MSO_SHAPE.RECTANGLE, Inches(shape.x), Inches(shape.y), Inches(shape.w), Inches(shape.h)
    )
    rect.shadow.inherit = False
    if shape.fill:
        rect.fill.solid()
        rect.fill.fore_color.rgb = _rgb(shape.fill)
    else:
        rect.fill.background()
    if shape.line:
        rect.line.color.rgb = _rgb(shape.line)
        rect.line.width = Pt(shape.line_width)
        if shape.dashed:
            rect.line.dash_style = MSO_LINE_DASH_STYLE.DASH
    else:
        rect.line.fill.background()


def _pptx_line(slide, shape: CanvasShape) -> None:
    connector = slide.shapes.add_connector(
        MSO_CONNECTOR.STRAIGHT,
        Inches(shape.x),
        Inches(shape.y),
        Inches(shape.x + shape.w),
        Inches(shape.y + shape.h),
    )
    connector.line.color.rgb = _rgb(shape.line or "000000")
    connector.line.width = Pt(shape.line_width)
    if shape.dashed:
        connector.line.dash_style = MSO_LINE_DASH_STYLE.DASH


def _pptx_text(slide, shape: CanvasShape) -> None:
    box = slide.shapes.add_textbox(Inches(shape.x), Inches(shape.y), Inches(shape.w), Inches(shape.h))
    tf = box.text_frame
    tf.clear()
    tf.word_wrap = shape.wrap
    tf.vertical_anchor = _PPTX_ANCHOR.get(shape.valign, MSO_VERTICAL_ANCHOR.MIDDLE)
    tf.margin_left = tf.margin_right = 0
    tf.margin_top = tf.margin_bottom = 0
    paragraph = tf.paragraphs[0]
    paragraph.alignment = _PPTX_ALIGN.get(shape.align, PP_ALIGN.LEFT)
    for text_run in shape.runs:
        run = paragraph.add_run()
        run.text = text_run.text
        run.font.name = shape.font
        run.font.size = Pt(text_run.size)
        run.font.bold = text_run.bold
        run.font.color.rgb = _rgb(text_run.color)


# --- PDF ------------------------------------------------------------------------


def export_as_pdf(path: Path | str, canvas: ExportCanvas) -> None:
    """Paint the canvas onto one PDF page of the same size."""
    pdf_path = Path(path)
    pdf_path.parent.mkdir(parents=True, exist_ok=True)

    writer = QPdfWriter(str(pdf_path))
    page_size = QPageSize(QSizeF(canvas.width, canvas.height), QPageSize.Unit.Inch, "Slide")
    writer.setPageLayout(
        QPageLayout(page_size, QPageLayout.Orientation.Portrait, QMarginsF(0, 0, 0, 0), QPageLayout.Unit.Inch)
    )
    writer.setResolution(PDF_RESOLUTION)

    painter = QPainter(writer)
    try:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        _draw_canvas(painter, canvas, writer.resolution())
    finally:
        painter.end()
    log.info("Exported %d shapes to %s", len(canvas.shapes), pdf_path)


def _pen(hex_color: str, width_pt: float, dpi: int, dashed: bool) -> QPen:
    pen = QPen(QColor("#" + hex_color))
    pen.setWidthF(max(width_pt, 0.1) * dpi / POINTS_PER_INCH)
    if dashed:
        pen.setStyle(Qt.PenStyle.DashLine)
    return pen


def _draw_canvas(painter: QPainter, canvas: ExportCanvas, dpi: int) -> None:
    for shape in canvas.shapes:
        rect = QRectF(shape.x * dpi, shape.y * dpi, shape.w * dpi, shape.h * dpi)
        if shape.kind == "rect":
            if shape.fill:
                painter.fillRect(rect, QColor("#" + shape.fill))
            if shape.line:
                painter.setPen(_pen(shape.line, shape.line_width, dpi, shape.dashed))
                painter.setBrush(Qt.BrushStyle.NoBrush)
                painter.drawRect(rect)
        elif shape.kind == "line":
            painter.setPen(_pen(shape.line or "000000", shape.line_width, dpi, shape.dashed))
            painter.drawLine(rect.topLeft(), QPointF(rect.right(), rect.bottom()))
        elif shape.kind == "text":
            _draw_text(painter, shape, rect)


def _draw_text(painter: QPainter, shape: CanvasShape, rect: QRectF) -> None:
    halign = _QT_HALIGN.get(shape.align, Qt.AlignmentFlag.AlignLeft)
    valign = _QT_VALIGN.get(shape.valign, Qt.AlignmentFlag.AlignVCenter)
    # alignment and text flags are distinct enums; drawText takes their int union
    flags = halign.value | valign.value
    if shape.wrap:
        flags |= Qt.TextFlag.TextWordWrap.value
    if len(shape.runs) == 1:
        run = shape.runs[0]
        _set_font(painter, shape.font, run.size, run.bold, run.color)
        painter.drawText(rect, flags, run.text)
        return

    # mixed runs: lay them out left to right inside the box
    x = rect.left()
    for run in shape.runs:
        _set_font(painter, shape.font, run.size, run.bold, run.color)
        advance = painter.fontMetrics().horizontalAdvance(run.text)
        run_rect = QRectF(x, rect.top(), max(rect.right() - x, 0), rect.height())
        painter.drawText(run_rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, run.text)
        x += advance


def _set_font(painter: QPainter, family: str, size: float, bold: bool, color: str) -> None:
    font = QFont(family)
    font.setPointSizeF(size)
    font.setBold(bold)
    painter.setFont(font)
    painter.setPen(QColor("#" + color))
