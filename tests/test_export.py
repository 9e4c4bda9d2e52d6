import re
from datetime import date
from pathlib import Path

import pytest
from pptx import Presentation
from pptx.util import Inches
from PyQt6.QtWidgets import QApplication

from gantt_canvas.export import (
    BAR_H,
    CHART_L,
    CHART_W,
    HEADER_H,
    MARGIN_T,
    ROW_H,
    SLIDE_H,
    SLIDE_W,
    build_export_canvas,
)
from gantt_canvas.exporters import export_as_pdf, export_as_pptx
from gantt_canvas.models import Scope, Segment, Task
from gantt_canvas.store import Project

TODAY = date(2024, 1, 3)
HEX = re.compile(r"^[0-9A-F]{6}$")


def _texts(canvas):
    return [shape.text for shape in canvas.of_kind("text")]


def _bars(canvas):
    return [shape for shape in canvas.of_kind("rect") if shape.h == pytest.approx(BAR_H)]


@pytest.fixture
def sample() -> Project:
    project = Project()
    project.load_sample(TODAY)
    return project


def test_bar_geometry_matches_shared_timeline() -> None:
    project = Project([Task(id="t1", name="Kickoff", start=date(2024, 1, 1), end=date(2024, 1, 7))])

    canvas = build_export_canvas(project, today=TODAY)

    (bar,) = _bars(canvas)
    # window 2023-12-25..2024-01-21 is 28 days; the bar covers days 7..13
    assert bar.x == pytest.approx(CHART_L + 7 / 28 * CHART_W)
    assert bar.w == pytest.approx(7 / 28 * CHART_W)
    assert bar.y == pytest.approx(MARGIN_T + HEADER_H + (ROW_H - BAR_H) / 2)
    assert bar.fill == "1565C0"
    assert (canvas.width, canvas.height) == (SLIDE_W, SLIDE_H)


def test_all_colors_are_normalized_hex() -> None:
    project = Project([Task(id="t1", name="Odd", start=TODAY, end=TODAY, color="not-a-color")])

    canvas = build_export_canvas(project, today=TODAY)

    colors = []
    for shape in canvas.shapes:
        colors += [value for value in (shape.fill, shape.line) if value]
        colors += [run.color for run in shape.runs]
    assert colors
    assert all(HEX.match(value) for value in colors)
    assert _bars(canvas)[0].fill == "1565C0"


def test_sample_canvas_has_scope_bands_headers_and_milestones(sample: Project) -> None:
    canvas = build_export_canvas(sample, today=TODAY)
    texts = _texts(canvas)

    assert {"MARKETING", "VALUATION & DD", "NEGOTIATION & CLOSING"} <= set(texts)
    assert {"Activity", "Status", "Comment"} <= set(texts)
    assert "Teaser sent" in texts
    assert "TODAY" in texts
    # ms1/ms2 ride on their linked rows, ms3/ms4 go to the bottom band
    assert {"CIM reviewed", "Non-Binding Offer", "Letter of Intent", "Agreements signed"} <= set(texts)
    assert "● Complete" in texts
    assert "1 week delay" in texts


def test_dashed_hatched_and_hidden_bars() -> None:
    project = Project(
        [
            Task(id="t1", name="Dashed", start=TODAY, end=TODAY, bar_style="dashed"),
            Task(
                id="t2",
                name="Hidden",
                start=TODAY,
                end=TODAY,
                bar_style="none",
                segments=[Segment(id="s1", start=date(2024, 1, 8), end=date(2024, 1, 12), bar_style="hatched")],
            ),
        ]
    )

    canvas = build_export_canvas(project, today=TODAY)

    dashed, segment = _bars(canvas)
    assert dashed.fill is None and dashed.dashed and dashed.line == "1565C0"
    assert segment.fill == "1565C0" and not segment.dashed
    hatch = [shape for shape in canvas.of_kind("line") if shape.line == "FFFFFF"]
    assert hatch
    assert all(segment.x <= line.x <= segment.x + segment.w for line in hatch)


def test_today_line_is_optional(sample: Project) -> None:
    sample.update_settings(show_today=False)

    canvas = build_export_canvas(sample, today=TODAY)

    assert "TODAY" not in _texts(canvas)
    assert not [shape for shape in canvas.of_kind("line") if shape.line == "C62828"]


def test_scope_gaps_push_rows_down(sample: Project) -> None:
    canvas = build_export_canvas(sample, today=TODAY)
    names = {shape.text: shape.y for shape in canvas.of_kind("text")}

    # t4 starts the second scope run, so it sits one gap lower than a plain row
    assert names["Calls with Management"] - names["CIM sent"] > ROW_H


def test_export_pptx_writes_one_editable_slide(sample: Project, tmp_path: Path) -> None:
    canvas = build_export_canvas(sample, today=TODAY)
    path = tmp_path / "out" / "plan.pptx"

    export_as_pptx(path, canvas)

    prs = Presentation(str(path))
    assert prs.slide_width == Inches(SLIDE_W)
    assert prs.slide_height == Inches(SLIDE_H)
    (slide,) = prs.slides
    assert len(slide.shapes) == len(canvas.shapes)
    texts = {shape.text_frame.text for shape in slide.shapes if shape.has_text_frame and shape.text_frame.text}
    assert "Teaser sent" in texts


def test_export_pdf_writes_a_pdf(qapp: QApplication, sample: Project, tmp_path: Path) -> None:
    path = tmp_path / "plan.pdf"

    export_as_pdf(path, build_export_canvas(sample, today=TODAY))

    assert path.read_bytes().startswith(b"%PDF")


def test_scope_band_ignores_hidden_bars_and_stays_in_chart() -> None:
    project = Project(
        [
            Task(id="t1", name="Visible", start=date(2024, 1, 1), end=date(2024, 1, 7), scope="sc"),
            Task(id="t2", name="Hidden", start=date(2024, 1, 8), end=date(2024, 6, 30), scope="sc",
                 bar_style="none"),
        ],
        [Scope("sc", "Scope", "#388E3C")],
    )

    canvas = build_export_canvas(project, today=TODAY)

    bands = [shape for shape in canvas.of_kind("rect") if shape.y == pytest.approx(MARGIN_T)]
    (band,) = bands
    # window 2023-12-25..2024-01-21 comes from t1 alone; the band covers t1's days 7..13
    assert band.x == pytest.approx(CHART_L + 7 / 28 * CHART_W)
    assert band.x + band.w == pytest.approx(CHART_L + 14 / 28 * CHART_W)
    assert CHART_L <= band.x and band.x + band.w <= CHART_L + CHART_W
