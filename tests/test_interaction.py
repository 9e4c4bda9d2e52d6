from datetime import date

import pytest

from gantt_canvas.context import ViewContext
from gantt_canvas.interaction import (
    CURSOR_GRABBING,
    HANDLE_END,
    HANDLE_START,
    STATE_DRAGGING,
    STATE_IDLE,
    InteractionController,
    RowGeometry,
)
from gantt_canvas.models import ActivityMilestone, Task
from gantt_canvas.store import Project

TODAY = date(2024, 1, 3)
ROW = 30


def _task(task_id: str, start: date, end: date, **extra) -> Task:
    return Task(id=task_id, name=task_id, start=start, end=end, **extra)


def _setup(*tasks: Task):
    project = Project(list(tasks))
    context = ViewContext(today=TODAY)
    controller = InteractionController(project, context)
    window = context.timeline(project.tasks)
    # ten pixels per day keeps the pixel math readable
    chart_width = window.total_days * 10
    rows = [RowGeometry(task.id, index * ROW, ROW) for index, task in enumerate(project.regular_tasks())]
    return project, controller, chart_width, rows


def test_move_shifts_both_dates() -> None:
    project, controller, width, rows = _setup(_task("t1", date(2024, 1, 1), date(2024, 1, 7)))

    assert controller.press_bar("t1", 100, 15, width, rows)
    assert controller.state == STATE_DRAGGING
    controller.move(130, 15)
    controller.release(130, 15)

    task = project.get_task("t1")
    assert (task.start, task.end) == (date(2024, 1, 4), date(2024, 1, 10))
    assert controller.state == STATE_IDLE


def test_resize_start_clamps_to_end() -> None:
    project, controller, width, rows = _setup(_task("t1", date(2024, 1, 5), date(2024, 1, 10)))

    controller.press_bar("t1", 100, 15, width, rows, handle=HANDLE_START)
    controller.move(170, 15)
    controller.release(170, 15)

    task = project.get_task("t1")
    assert task.start == task.end == date(2024, 1, 10)


def test_resize_end_clamps_to_start() -> None:
    project, controller, width, rows = _setup(_task("t1", date(2024, 1, 5), date(2024, 1, 10)))

    controller.press_bar("t1", 100, 15, width, rows, handle=HANDLE_END)
    controller.release(0, 15)

    task = project.get_task("t1")
    assert task.start == task.end == date(2024, 1, 5)


def test_retarget_bar_becomes_segment_of_drop_row() -> None:
    project, controller, width, rows = _setup(
        _task("t1", date(2024, 1, 1), date(2024, 1, 7), bar_style="hatched", color="#FF0000"),
        _task("t2", date(2024, 1, 8), date(2024, 1, 14)),
        Task(id="ms1", name="Gate", start=date(2024, 1, 6), end=date(2024, 1, 6),
             is_milestone=True, linked_task_id="t1"),
    )

    controller.press_bar("t1", 100, 15, width, rows)
    controller.move(100, 45)
    assert controller.feedback.highlighted_row == "t2"
    assert controller.feedback.translations[("standalone", "ms1")] == (0.0, 30.0)
    controller.release(100, 45)

    source, target = project.get_task("t1"), project.get_task("t2")
    assert source.bar_style == "none"
    (segment,) = target.segments
    assert (segment.start, segment.end) == (date(2024, 1, 1), date(2024, 1, 7))
    assert (segment.bar_style, segment.color) == ("hatched", "#FF0000")
    assert project.get_task("ms1").linked_task_id == "t2"


def test_retarget_segment_moves_ownership() -> None:
    source = _task("t1", date(2024, 1, 1), date(2024, 1, 7))
    project, controller, width, rows = _setup(source, _task("t2", date(2024, 1, 8), date(2024, 1, 14)))
    segment = project.add_segment("t1")

    controller.press_bar("t1", 150, 15, width, rows, segment_index=0)
    controller.release(150, 50)

    assert project.get_task("t1").segments == []
    assert project.get_task("t2").segments == [segment]


def test_reorder_by_two_row_heights() -> None:
    tasks = [_task(f"t{i}", date(2024, 1, 1), date(2024, 1, 2)) for i in range(5)]
    project, controller, _width, _rows = _setup(*tasks)

    controller.press_row_handle("t1", 45, ROW)
    controller.move(0, 105)
    assert controller.feedback.translations == {("row", "t1"): (0.0, 60.0)}
    controller.release(0, 105)

    assert [task.id for task in project.tasks] == ["t0", "t2", "t3", "t1", "t4"]


def test_reorder_clamps_to_list_bounds() -> None:
    tasks = [_task(f"t{i}", date(2024, 1, 1), date(2024, 1, 2)) for i in range(3)]
    project, controller, _width, _rows = _setup(*tasks)

    controller.press_row_handle("t1", 45, ROW)
    controller.release(0, -300)

    assert [task.id for task in project.tasks] == ["t1", "t0", "t2"]


def test_move_previews_then_commits_once() -> None:
    project, controller, width, rows = _setup(_task("t1", date(2024, 1, 1), date(2024, 1, 7)))
    calls = []

    controller.press_bar("t1", 100, 15, width, rows)
    project.subscribe(calls.append)
    controller.move(120, 15)
    controller.move(124, 15)  # still two days, no new preview
    controller.release(130, 15)

    assert calls == [True, True, False]


def test_drag_back_to_origin_restores_dates_without_commit() -> None:
    project, controller, width, rows = _setup(_task("t1", date(2024, 1, 1), date(2024, 1, 7)))
    calls = []

    controller.press_bar("t1", 100, 15, width, rows)
    project.subscribe(calls.append)
    controller.move(150, 15)
    controller.release(100, 15)

    task = project.get_task("t1")
    assert (task.start, task.end) == (date(2024, 1, 1), date(2024, 1, 7))
    assert False not in calls


def test_feedback_shows_grabbing_cursor_and_tooltip() -> None:
    project, controller, width, rows = _setup(_task("t1", date(2024, 1, 1), date(2024, 1, 7)))

    controller.press_bar("t1", 100, 15, width, rows)
    controller.move(130, 20)

    feedback = controller.feedback
    assert feedback.cursor == CURSOR_GRABBING
    assert feedback.selection_disabled
    assert feedback.tooltip == "04.01.2024  →  10.01.2024"
    assert feedback.tooltip_pos == (144, -10)

    controller.release(130, 20)
    assert controller.feedback.tooltip is None
    assert controller.feedback.cursor == ""


def test_second_press_while_dragging_is_ignored() -> None:
    _project, controller, width, rows = _setup(_task("t1", date(2024, 1, 1), date(2024, 1, 7)))

    assert controller.press_bar("t1", 100, 15, width, rows)
    assert not controller.press_bar("t1", 100, 15, width, rows)
    assert not controller.press_row_handle("t1", 15, ROW)


def test_standalone_milestone_relinks_to_closest_row() -> None:
    project, controller, width, rows = _setup(
        _task("t1", date(2024, 1, 1), date(2024, 1, 7)),
        _task("t2", date(2024, 1, 8), date(2024, 1, 14)),
        Task(id="ms1", name="Gate", start=date(2024, 1, 6), end=date(2024, 1, 6), is_milestone=True),
    )

    assert controller.press_standalone_milestone("ms1", 120, 15, width, rows)
    controller.move(140, 40)
    assert controller.feedback.translations == {("standalone", "ms1"): (20.0, 25.0)}
    controller.release(140, 40)

    milestone = project.get_task("ms1")
    assert milestone.start == milestone.end == date(2024, 1, 8)
    assert milestone.linked_task_id == "t2"


def test_click_on_milestone_without_movement_changes_nothing() -> None:
    project, controller, width, rows = _setup(
        _task("t1", date(2024, 1, 1), date(2024, 1, 7)),
        Task(id="ms1", name="Gate", start=date(2024, 1, 6), end=date(2024, 1, 6), is_milestone=True),
    )
    calls = []
    controller.press_standalone_milestone("ms1", 120, 15, width, rows)
    project.subscribe(calls.append)

    controller.release(120, 15)

    assert calls == []
    assert project.get_task("ms1").linked_task_id == ""


def test_activity_milestone_drag_and_pinned_refusal() -> None:
    task = _task(
        "t1",
        date(2024, 1, 1),
        date(2024, 1, 7),
        milestones=[
            ActivityMilestone(type="IA", date=date(2024, 1, 3)),
            ActivityMilestone(type="FA", date=date(2024, 1, 7), pin="end"),
            ActivityMilestone(type="TL", date=date(2024, 1, 5), pin="fixed"),
        ],
    )
    project, controller, width, _rows = _setup(task)

    assert not controller.press_activity_milestone("t1", 1, 0, 0, width)
    assert not controller.press_activity_milestone("t1", 2, 0, 0, width)
    assert controller.press_activity_milestone("t1", 0, 50, 10, width)
    controller.move(70, 10)
    controller.release(70, 10)

    assert project.get_task("t1").milestones[0].date == date(2024, 1, 5)


def test_release_resets_state_even_when_commit_fails(monkeypatch) -> None:
    project, controller, width, rows = _setup(_task("t1", date(2024, 1, 1), date(2024, 1, 7)))
    controller.press_bar("t1", 100, 15, width, rows)

    def explode(*_args, **_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(project, "update_task", explode)
    with pytest.raises(RuntimeError):
        controller.release(130, 15)

    assert controller.state == STATE_IDLE
    assert controller.feedback.translations == {}


def test_session_keeps_window_captured_at_press() -> None:
    project, controller, width, rows = _setup(_task("t1", date(2024, 1, 1), date(2024, 1, 7)))
    controller.press_bar("t1", 100, 15, width, rows)
    window = controller.session.window

    controller.move(400, 15)  # pushes the end past the old window edge

    assert controller.session.window is window
    controller.release(400, 15)
    assert project.get_task("t1").start == date(2024, 1, 31)


def _pinned_task() -> Task:
    return _task(
        "t1",
        date(2024, 1, 1),
        date(2024, 1, 7),
        milestones=[
            ActivityMilestone(type="IA", date=date(2024, 1, 1), pin="start"),
            ActivityMilestone(type="FA", date=date(2024, 1, 7), pin="end"),
            ActivityMilestone(type="TL", date=date(2024, 1, 5), pin="fixed"),
        ],
    )


def test_pins_follow_bar_move_during_preview_and_commit() -> None:
    project, controller, width, rows = _setup(_pinned_task())

    controller.press_bar("t1", 100, 15, width, rows)
    controller.move(130, 15)
    start_pin, end_pin, fixed = project.get_task("t1").milestones
    assert (start_pin.date, end_pin.date) == (date(2024, 1, 4), date(2024, 1, 10))

    controller.release(130, 15)

    task = project.get_task("t1")
    start_pin, end_pin, fixed = task.milestones
    assert (task.start, task.end) == (date(2024, 1, 4), date(2024, 1, 10))
    assert (start_pin.date, end_pin.date) == (task.start, task.end)
    assert fixed.date == date(2024, 1, 5)


def test_pins_follow_bar_resize() -> None:
    project, controller, width, rows = _setup(_pinned_task())

    controller.press_bar("t1", 100, 15, width, rows, handle=HANDLE_END)
    controller.move(120, 15)
    assert project.get_task("t1").milestones[1].date == date(2024, 1, 9)
    controller.release(120, 15)

    controller.press_bar("t1", 100, 15, width, rows, handle=HANDLE_START)
    controller.release(120, 15)

    task = project.get_task("t1")
    start_pin, end_pin, fixed = task.milestones
    assert (task.start, task.end) == (date(2024, 1, 3), date(2024, 1, 9))
    assert (start_pin.date, end_pin.date) == (date(2024, 1, 3), date(2024, 1, 9))
    assert fixed.date == date(2024, 1, 5)
