from datetime import date

from gantt_canvas.context import ViewContext
from gantt_canvas.layout import (
    HEADER_MONTHS,
    HEADER_WEEKS,
    HEADER_YEARS,
    MARKER_ACTIVITY,
    MARKER_STANDALONE,
    LegendRow,
    ScopeSeparatorRow,
    TodayRow,
    compose_chart,
    resolve_milestone_lanes,
    scope_breaks,
    scope_runs,
)
from gantt_canvas.models import ActivityMilestone, Scope, Segment, Task
from gantt_canvas.store import Project

TODAY = date(2024, 1, 3)


def _task(task_id: str, start: date, end: date, **extra) -> Task:
    return Task(id=task_id, name=task_id, start=start, end=end, **extra)


def _milestone(ms_id: str, day: date, linked: str = "") -> Task:
    return Task(id=ms_id, name=ms_id, start=day, end=day, is_milestone=True, linked_task_id=linked)


def test_empty_project_yields_placeholder_without_window() -> None:
    context = ViewContext(today=TODAY)

    tree = compose_chart(Project(), context)

    assert tree.is_placeholder
    assert tree.window is None
    assert tree.header_rows() == []
    assert tree.placeholder
    assert context.window is None


def test_milestones_only_still_yield_placeholder() -> None:
    tree = compose_chart(Project([_milestone("ms", TODAY)]), ViewContext(today=TODAY))

    assert tree.is_placeholder


def test_composition_is_idempotent_and_remembers_window() -> None:
    project = Project()
    project.load_sample(TODAY)
    context = ViewContext(today=TODAY)

    first = compose_chart(project, context)
    second = compose_chart(project, context)

    assert first == second
    assert context.window == first.window


def test_header_rows_follow_time_scale() -> None:
    project = Project([_task("t1", date(2024, 1, 1), date(2024, 1, 7))])
    context = ViewContext(today=TODAY)

    assert [row.kind for row in compose_chart(project, context).header_rows()] == [
        HEADER_YEARS,
        HEADER_MONTHS,
        HEADER_WEEKS,
    ]

    project.update_settings(time_scale={"show_years": False, "show_weeks": False})
    rows = compose_chart(project, context).header_rows()
    assert [row.kind for row in rows] == [HEADER_MONTHS]
    assert [cell.label for cell in rows[0].cells] == ["Dec", "Jan"]


def test_bars_include_segments_and_skip_hidden_primary() -> None:
    task = _task(
        "t1",
        date(2024, 1, 1),
        date(2024, 1, 7),
        bar_style="none",
        segments=[Segment(id="s1", start=date(2024, 1, 8), end=date(2024, 1, 10), color="#ff0000")],
    )
    tree = compose_chart(Project([task]), ViewContext(today=TODAY))

    (row,) = tree.task_rows()
    (bar,) = row.bars
    assert bar.segment_index == 0
    assert bar.color == "#ff0000"
    assert bar.key == ("bar", "t1", 0)


def test_markers_for_activity_and_linked_milestones() -> None:
    task = _task(
        "t1",
        date(2024, 1, 1),
        date(2024, 1, 7),
        milestones=[ActivityMilestone(type="FA", date=date(2024, 1, 7), pin="end")],
    )
    project = Project([task, _milestone("ms1", date(2024, 1, 5), linked="t1")])
    project.update_settings(show_ms_dates=False)

    (row,) = compose_chart(project, ViewContext(today=TODAY)).task_rows()

    kinds = [marker.kind for marker in row.markers]
    assert kinds == [MARKER_ACTIVITY, MARKER_STANDALONE]
    activity, standalone = row.markers
    assert activity.color == "#2E7D32"  # catalog color for FA
    assert not activity.draggable
    assert standalone.draggable
    assert standalone.key == ("standalone", "ms1")
    assert standalone.date_label == ""


def test_scope_separators_legend_and_today_row() -> None:
    scopes = [Scope("a", "Alpha", "#388E3C"), Scope("b", "Beta", "#1565C0")]
    tasks = [
        _task("t1", date(2024, 1, 1), date(2024, 1, 3), scope="a"),
        _task("t2", date(2024, 1, 2), date(2024, 1, 4), scope="a"),
        _task("t3", date(2024, 1, 2), date(2024, 1, 4)),
        _task("t4", date(2024, 1, 5), date(2024, 1, 9), scope="b"),
    ]
    project = Project(tasks, scopes)

    tree = compose_chart(project, ViewContext(today=TODAY))

    separators = [row for row in tree.rows if isinstance(row, ScopeSeparatorRow)]
    assert separators == [ScopeSeparatorRow("b")]
    assert any(isinstance(row, TodayRow) for row in tree.rows)
    legend = [row for row in tree.rows if isinstance(row, LegendRow)]
    assert [entry.name for entry in legend[0].entries] == ["Alpha", "Beta"]
    assert tree.task_rows()[0].scope_color == "#388E3C"
    assert tree.task_rows()[2].scope_color is None

    project.update_settings(show_today=False, show_legend=False)
    tree = compose_chart(project, ViewContext(today=TODAY))
    assert not any(isinstance(row, (TodayRow, LegendRow)) for row in tree.rows)
    assert all(row.today is None for row in tree.task_rows())


def test_scope_breaks_ignore_unscoped_tasks() -> None:
    tasks = [
        _task("t1", TODAY, TODAY, scope="a"),
        _task("t2", TODAY, TODAY, scope="a"),
        _task("t3", TODAY, TODAY),
        _task("t4", TODAY, TODAY, scope="b"),
        _task("t5", TODAY, TODAY, scope="a"),
    ]

    assert scope_breaks(tasks) == {3, 4}
    assert [run.scope for run in scope_runs(tasks)] == ["a", "b", "a"]


def test_scope_runs_take_the_union_of_dates() -> None:
    tasks = [
        _task("t1", date(2024, 1, 5), date(2024, 1, 9), scope="a"),
        _task("t2", date(2024, 1, 1), date(2024, 1, 6), scope="a"),
    ]

    (run,) = scope_runs(tasks)

    assert (run.start, run.end) == (date(2024, 1, 1), date(2024, 1, 9))


def test_unlinked_milestone_lands_on_nearest_task_first_wins_ties() -> None:
    regular = [
        _task("t1", date(2024, 1, 1), date(2024, 1, 5)),
        _task("t2", date(2024, 1, 11), date(2024, 1, 20)),
    ]
    milestones = [
        _milestone("near-t2", date(2024, 1, 10)),
        _milestone("tie", date(2024, 1, 8)),
        _milestone("stale", date(2024, 1, 19), linked="missing"),
        _milestone("linked", date(2024, 1, 19), linked="t1"),
    ]

    lanes = resolve_milestone_lanes(regular, milestones)

    assert [ms.id for ms in lanes["t1"]] == ["tie", "linked"]
    assert [ms.id for ms in lanes["t2"]] == ["near-t2", "stale"]


def test_scope_runs_ignore_hidden_bars_but_keep_segments() -> None:
    tasks = [
        _task("t1", date(2024, 1, 1), date(2024, 1, 7), scope="a"),
        _task("t2", date(2024, 1, 8), date(2024, 6, 30), scope="a", bar_style="none"),
        _task(
            "t3",
            date(2024, 1, 1),
            date(2024, 9, 1),
            scope="a",
            bar_style="none",
            segments=[Segment(id="s1", start=date(2024, 1, 9), end=date(2024, 1, 12))],
        ),
        _task("t4", date(2024, 3, 1), date(2024, 3, 2), scope="b", bar_style="none"),
    ]

    hidden_free, nothing_visible = scope_runs(tasks)

    assert (hidden_free.start, hidden_free.end) == (date(2024, 1, 1), date(2024, 1, 12))
    assert (nothing_visible.scope, nothing_visible.start, nothing_visible.end) == ("b", None, None)
